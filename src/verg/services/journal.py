"""Session log and image bookkeeping for completed writing sessions."""

import logging
from dataclasses import dataclass
from datetime import tzinfo
from typing import Protocol
from uuid import UUID, uuid4

from verg.domain.journal import OperationResult, SessionRecord, StorageError, UserStats
from verg.domain.settings import AppSettings
from verg.services.clock import Clock
from verg.services.streaks import calendar_day, record_session

logger = logging.getLogger(__name__)

SAVE_FAILED_MESSAGE = "We couldn't save your session. Please try again."
DELETE_FAILED_MESSAGE = "We couldn't delete this page. Please try again."
CLEAR_FAILED_MESSAGE = "We couldn't clear your journal. Please try again."
NOT_FOUND_MESSAGE = "Session not found."


class JournalRepository(Protocol):
    """Persistence interface for the session log, stats and settings."""

    def list_sessions(self) -> list[SessionRecord]:
        """Return all sessions, newest first."""

    def get_session(self, session_id: UUID) -> SessionRecord | None:
        """Return a session by id, if present."""

    def append_session(self, record: SessionRecord, stats: UserStats) -> None:
        """Store a new session and the updated stats in one write."""

    def delete_session(self, session_id: UUID) -> SessionRecord | None:
        """Remove a session and return it, if present."""

    def load_stats(self) -> UserStats:
        """Return stored stats, or defaults when none exist."""

    def save_stats(self, stats: UserStats) -> None:
        """Persist stats."""

    def load_settings(self) -> AppSettings:
        """Return stored settings, or defaults when none exist."""

    def save_settings(self, settings: AppSettings) -> None:
        """Persist settings."""

    def clear(self) -> None:
        """Remove every session, stats and settings."""


class ImageStore(Protocol):
    """Storage for captured page images."""

    def save_image(self, data: bytes) -> str:
        """Store image bytes and return their reference."""

    def delete_image(self, reference: str) -> None:
        """Release the image behind a reference."""

    def image_url(self, reference: str) -> str:
        """Return a location the presentation layer can load the image from."""

    def clear(self) -> None:
        """Remove every stored image."""


@dataclass
class JournalService:
    """Records, lists and deletes completed sessions."""

    repository: JournalRepository
    image_store: ImageStore
    clock: Clock
    timezone: tzinfo

    def complete_session(
        self, duration: float, image: bytes | None = None
    ) -> OperationResult:
        """Record a finished session, optionally with a photo of the page.

        A skipped photo still counts as a completed session.
        """
        image_reference: str | None = None
        try:
            if image is not None:
                image_reference = self.image_store.save_image(image)
            now = self.clock.now()
            record = SessionRecord(
                id=uuid4(),
                occurred_on=calendar_day(now, self.timezone),
                duration=duration,
                image_reference=image_reference,
                created_at=now,
            )
            stats = record_session(self.repository.load_stats(), now, self.timezone)
            self.repository.append_session(record, stats)
        except StorageError:
            logger.exception("Failed to save journal session")
            if image_reference is not None:
                self._release_image(image_reference)
            return OperationResult(ok=False, message=SAVE_FAILED_MESSAGE)
        logger.info(
            "Recorded session %s (streak=%s, total=%s)",
            record.id,
            stats.current_streak,
            stats.total_sessions,
        )
        return OperationResult(ok=True, record=record, stats=stats)

    def list_sessions(self) -> list[SessionRecord]:
        return self.repository.list_sessions()

    def get_session(self, session_id: UUID) -> SessionRecord | None:
        return self.repository.get_session(session_id)

    def delete_session(self, session_id: UUID) -> OperationResult:
        """Delete a session and its image.

        Stats are left as they are, so the session still counts toward the
        lifetime total.
        """
        try:
            record = self.repository.delete_session(session_id)
        except StorageError:
            logger.exception("Failed to delete session %s", session_id)
            return OperationResult(ok=False, message=DELETE_FAILED_MESSAGE)
        if record is None:
            return OperationResult(ok=False, message=NOT_FOUND_MESSAGE)
        if record.image_reference is not None:
            self._release_image(record.image_reference)
        logger.info("Deleted session %s", session_id)
        return OperationResult(ok=True, record=record)

    def image_url(self, record: SessionRecord) -> str | None:
        if record.image_reference is None:
            return None
        return self.image_store.image_url(record.image_reference)

    def clear_all_data(self) -> OperationResult:
        """Erase sessions, stats, settings and images."""
        try:
            self.repository.clear()
            self.image_store.clear()
        except StorageError:
            logger.exception("Failed to clear journal data")
            return OperationResult(ok=False, message=CLEAR_FAILED_MESSAGE)
        logger.info("Cleared all journal data")
        return OperationResult(ok=True, stats=UserStats())

    def _release_image(self, reference: str) -> None:
        try:
            self.image_store.delete_image(reference)
        except StorageError:
            logger.warning("Failed to release image %s", reference, exc_info=True)
