"""Streak rules over calendar days."""

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta, tzinfo
from typing import Protocol

from verg.domain.journal import StorageError, UserStats
from verg.services.clock import Clock

logger = logging.getLogger(__name__)


class StatsRepository(Protocol):
    """Persistence interface for aggregate stats."""

    def load_stats(self) -> UserStats:
        """Return the stored stats, or defaults when none exist."""

    def save_stats(self, stats: UserStats) -> None:
        """Persist the stats."""


def calendar_day(instant: datetime, tz: tzinfo) -> date:
    """Return the calendar date of an instant in the given zone."""
    return instant.astimezone(tz).date()


def has_written_today(
    last_session_date: datetime | None, now: datetime, tz: tzinfo
) -> bool:
    """Return True when the last session falls on today's calendar day."""
    if last_session_date is None:
        return False
    return calendar_day(last_session_date, tz) == calendar_day(now, tz)


def wrote_yesterday(
    last_session_date: datetime | None, now: datetime, tz: tzinfo
) -> bool:
    """Return True when the last session falls on the previous calendar day."""
    if last_session_date is None:
        return False
    yesterday = calendar_day(now, tz) - timedelta(days=1)
    return calendar_day(last_session_date, tz) == yesterday


def record_session(stats: UserStats, now: datetime, tz: tzinfo) -> UserStats:
    """Return stats updated for a session completed at ``now``.

    The total always grows by one. The streak moves at most once per
    calendar day: it continues from yesterday (or from nothing) and
    restarts at 1 after a gap.
    """
    current = stats.current_streak
    if not has_written_today(stats.last_session_date, now, tz):
        if stats.last_session_date is None or wrote_yesterday(
            stats.last_session_date, now, tz
        ):
            current += 1
        else:
            current = 1
    return UserStats(
        current_streak=current,
        longest_streak=max(stats.longest_streak, current),
        total_sessions=stats.total_sessions + 1,
        last_session_date=now,
    )


def validate_streak(stats: UserStats, now: datetime, tz: tzinfo) -> UserStats:
    """Zero the current streak if it lapsed while the app was closed."""
    last = stats.last_session_date
    if last is None:
        lapsed = True
    else:
        lapsed = not has_written_today(last, now, tz) and not wrote_yesterday(
            last, now, tz
        )
    if not lapsed or stats.current_streak == 0:
        return stats
    return UserStats(
        current_streak=0,
        longest_streak=stats.longest_streak,
        total_sessions=stats.total_sessions,
        last_session_date=last,
    )


def streak_text(current_streak: int) -> str:
    if current_streak == 0:
        return "Start your streak!"
    if current_streak == 1:
        return "1 day streak"
    return f"{current_streak} day streak"


@dataclass
class StreakService:
    """Keeps stored stats consistent with the calendar."""

    repository: StatsRepository
    clock: Clock
    timezone: tzinfo

    def refresh_streak(self) -> UserStats:
        """Validate the stored streak at startup and persist any reset."""
        stats = self.repository.load_stats()
        validated = validate_streak(stats, self.clock.now(), self.timezone)
        if validated != stats:
            try:
                self.repository.save_stats(validated)
            except StorageError:
                logger.exception("Failed to persist validated streak")
            else:
                logger.info(
                    "Streak lapsed; reset from %s to 0", stats.current_streak
                )
        return validated

    def current_stats(self) -> UserStats:
        """Return the stored stats."""
        return self.repository.load_stats()

    def has_written_today(self) -> bool:
        stats = self.repository.load_stats()
        return has_written_today(
            stats.last_session_date, self.clock.now(), self.timezone
        )

    def streak_text(self) -> str:
        return streak_text(self.repository.load_stats().current_streak)

    def streak_display_text(self) -> str:
        """Streak text with a flame once a streak exists."""
        current = self.repository.load_stats().current_streak
        if current == 0:
            return "Start your streak today!"
        return f"\N{FIRE} {streak_text(current)}"

    def streak_at_risk(self) -> bool:
        """Return True when a running streak breaks unless the user writes today."""
        stats = self.repository.load_stats()
        written = has_written_today(
            stats.last_session_date, self.clock.now(), self.timezone
        )
        return not written and stats.current_streak > 0

    def days_until_streak_breaks(self) -> int:
        return 2 if self.has_written_today() else 1
