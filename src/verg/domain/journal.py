"""Domain models for journaling sessions and streak statistics."""

from dataclasses import dataclass
from datetime import date, datetime
from uuid import UUID


class StorageError(RuntimeError):
    """Raised when the journal store cannot read or write data."""


@dataclass(frozen=True)
class SessionRecord:
    """A completed writing session."""

    id: UUID
    occurred_on: date
    duration: float
    image_reference: str | None
    created_at: datetime


@dataclass(frozen=True)
class UserStats:
    """Aggregate streak and session counters."""

    current_streak: int = 0
    longest_streak: int = 0
    total_sessions: int = 0
    last_session_date: datetime | None = None


@dataclass(frozen=True)
class OperationResult:
    """Outcome of a journal operation surfaced to the caller."""

    ok: bool
    message: str | None = None
    record: SessionRecord | None = None
    stats: UserStats | None = None
