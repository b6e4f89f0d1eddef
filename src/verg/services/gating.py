"""Free-session gating for non-subscribers."""

import logging
import sys
from dataclasses import dataclass

from verg.services.streaks import StatsRepository
from verg.services.subscriptions import SubscriptionStatus

logger = logging.getLogger(__name__)

FREE_SESSIONS_LIMIT = 3
UNLIMITED = sys.maxsize


def can_start_session(
    is_premium: bool,
    completed_session_count: int,
    free_limit: int = FREE_SESSIONS_LIMIT,
) -> bool:
    """Return True when a new session may start."""
    if is_premium:
        return True
    return completed_session_count < free_limit


def remaining_free_sessions(
    is_premium: bool,
    completed_session_count: int,
    free_limit: int = FREE_SESSIONS_LIMIT,
) -> int:
    """Return free sessions left, or ``UNLIMITED`` for subscribers."""
    if is_premium:
        return UNLIMITED
    return max(0, free_limit - completed_session_count)


@dataclass
class SessionGatingService:
    """Evaluates the gate against live subscription and session counts."""

    subscription: SubscriptionStatus
    repository: StatsRepository
    free_limit: int = FREE_SESSIONS_LIMIT

    def completed_session_count(self) -> int:
        return self.repository.load_stats().total_sessions

    def can_start(self) -> bool:
        """Return True when the user may start a session right now."""
        return can_start_session(
            self.subscription.is_premium(),
            self.completed_session_count(),
            self.free_limit,
        )

    def should_show_paywall(self) -> bool:
        return not self.can_start()

    def remaining_free_sessions(self) -> int:
        return remaining_free_sessions(
            self.subscription.is_premium(),
            self.completed_session_count(),
            self.free_limit,
        )

    def log_gating_status(self) -> None:
        """Log the inputs and result of the gate."""
        is_premium = self.subscription.is_premium()
        count = self.completed_session_count()
        logger.info(
            "Session gate: premium=%s completed=%s can_start=%s",
            is_premium,
            count,
            can_start_session(is_premium, count, self.free_limit),
        )
