"""Calendar and activity statistics over the session log."""

import calendar
from collections import Counter
from dataclasses import dataclass
from datetime import date, tzinfo
from typing import Protocol

from verg.domain.journal import SessionRecord
from verg.services.clock import Clock
from verg.services.streaks import calendar_day

DAYS_PER_WEEK = 7


class SessionLogRepository(Protocol):
    """Read access to the session log."""

    def list_sessions(self) -> list[SessionRecord]:
        """Return all sessions, newest first."""


@dataclass(frozen=True)
class CalendarDay:
    """Session count for one day of a month view."""

    day: date
    session_count: int


@dataclass
class JournalStatsService:
    """Derives calendar and activity figures from recorded sessions."""

    repository: SessionLogRepository
    clock: Clock
    timezone: tzinfo

    def today(self) -> date:
        return calendar_day(self.clock.now(), self.timezone)

    def sessions_on(self, day: date) -> list[SessionRecord]:
        """Return sessions that count toward the given day."""
        return [
            session
            for session in self.repository.list_sessions()
            if session.occurred_on == day
        ]

    def sessions_today(self) -> int:
        return len(self.sessions_on(self.today()))

    def dates_with_sessions(self) -> set[date]:
        return {session.occurred_on for session in self.repository.list_sessions()}

    def session_counts_by_date(self) -> dict[date, int]:
        return dict(
            Counter(session.occurred_on for session in self.repository.list_sessions())
        )

    def sessions_in_month(self, year: int, month: int) -> int:
        return sum(
            1
            for session in self.repository.list_sessions()
            if session.occurred_on.year == year and session.occurred_on.month == month
        )

    def sessions_this_month(self) -> int:
        today = self.today()
        return self.sessions_in_month(today.year, today.month)

    def average_sessions_per_week(self) -> float:
        """Average weekly sessions since the first one, over at least one week."""
        sessions = self.repository.list_sessions()
        if len(sessions) < 2:  # noqa: PLR2004
            return 0.0
        first_day = min(session.occurred_on for session in sessions)
        days_since_first = (self.today() - first_day).days
        weeks = max(days_since_first / DAYS_PER_WEEK, 1.0)
        return len(sessions) / weeks

    def month_grid(self, year: int, month: int) -> list[CalendarDay]:
        """Return every day of a month with its session count."""
        counts = self.session_counts_by_date()
        _, days_in_month = calendar.monthrange(year, month)
        return [
            CalendarDay(
                day=date(year, month, day_number),
                session_count=counts.get(date(year, month, day_number), 0),
            )
            for day_number in range(1, days_in_month + 1)
        ]
