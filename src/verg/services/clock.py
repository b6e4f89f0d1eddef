"""Clock abstraction for time-dependent services."""

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Protocol


class Clock(Protocol):
    """Source of the current instant."""

    def now(self) -> datetime:
        """Return the current timezone-aware instant."""


@dataclass
class SystemClock(Clock):
    """Wall-clock time in UTC."""

    def now(self) -> datetime:
        """Return the current UTC instant."""
        return datetime.now(tz=UTC)
