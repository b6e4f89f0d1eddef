"""Domain models for the countdown timer."""

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum


class TimerPhase(StrEnum):
    """Lifecycle phases of a countdown."""

    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    COMPLETE = "complete"


@dataclass(frozen=True)
class TimerState:
    """Snapshot of a countdown at a point in time."""

    phase: TimerPhase
    total_duration: float
    remaining: float
    target_end: datetime | None
    progress: float

    @property
    def running(self) -> bool:
        return self.phase is TimerPhase.RUNNING

    @property
    def complete(self) -> bool:
        return self.phase is TimerPhase.COMPLETE

    @property
    def formatted_time(self) -> str:
        """Remaining time as M:SS."""
        seconds = int(self.remaining)
        return f"{seconds // 60}:{seconds % 60:02d}"
