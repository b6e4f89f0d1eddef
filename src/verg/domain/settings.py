"""Domain models for user preferences."""

from dataclasses import dataclass
from datetime import time

TIMER_PRESETS: tuple[float, ...] = (300, 600, 900, 1200, 1800)
DEFAULT_TIMER_DURATION = 600.0
DEFAULT_NOTIFICATION_TIME = time(hour=20, minute=0)


@dataclass(frozen=True)
class AppSettings:
    """User preferences persisted alongside the journal."""

    timer_duration: float = DEFAULT_TIMER_DURATION
    sound_enabled: bool = True
    notifications_enabled: bool = False
    notification_time: time = DEFAULT_NOTIFICATION_TIME
    has_seen_onboarding: bool = False
    is_subscribed: bool = False

    @property
    def duration_minutes(self) -> int:
        return int(self.timer_duration // 60)


def preset_label(duration: float) -> str:
    """Return a label such as "10 minutes" for a timer preset."""
    return f"{int(duration // 60)} minutes"
