"""JSON-file journal repository for on-device storage."""

import json
import logging
import os
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import TypeVar
from uuid import UUID

from verg.adapters.serialization import (
    encode_session,
    encode_settings,
    encode_stats,
    parse_session,
    parse_settings,
    parse_stats,
)
from verg.domain.journal import SessionRecord, StorageError, UserStats
from verg.domain.settings import AppSettings
from verg.services.journal import JournalRepository

logger = logging.getLogger(__name__)

SESSIONS_KEY = "verg.sessions"
STATS_KEY = "verg.stats"
SETTINGS_KEY = "verg.settings"

_T = TypeVar("_T")


@dataclass
class LocalJournalRepository(JournalRepository):
    """Key-value document on disk, replaced atomically on every write."""

    path: Path

    def list_sessions(self) -> list[SessionRecord]:
        """Return sessions sorted newest first, skipping unreadable rows."""
        sessions: list[SessionRecord] = []
        for row in _session_rows(self._read()):
            record = _decode(row, parse_session, default=None, key=SESSIONS_KEY)
            if record is not None:
                sessions.append(record)
        return sorted(sessions, key=lambda record: record.created_at, reverse=True)

    def get_session(self, session_id: UUID) -> SessionRecord | None:
        """Return a session by id, if present."""
        for record in self.list_sessions():
            if record.id == session_id:
                return record
        return None

    def append_session(self, record: SessionRecord, stats: UserStats) -> None:
        """Insert a session and replace the stats in a single write.

        Stored rows are carried over as they are, so one unreadable row never
        costs the rest of the log.
        """
        document = self._read()
        document[SESSIONS_KEY] = [encode_session(record), *_session_rows(document)]
        document[STATS_KEY] = encode_stats(stats)
        self._write(document)

    def delete_session(self, session_id: UUID) -> SessionRecord | None:
        """Remove a session from the log and return it."""
        removed = self.get_session(session_id)
        if removed is None:
            return None
        document = self._read()
        document[SESSIONS_KEY] = [
            row
            for row in _session_rows(document)
            if not (isinstance(row, dict) and row.get("id") == str(session_id))
        ]
        self._write(document)
        return removed

    def load_stats(self) -> UserStats:
        """Return stored stats or defaults."""
        return _decode(
            self._read().get(STATS_KEY), parse_stats, default=UserStats(), key=STATS_KEY
        )

    def save_stats(self, stats: UserStats) -> None:
        """Replace the stored stats."""
        document = self._read()
        document[STATS_KEY] = encode_stats(stats)
        self._write(document)

    def load_settings(self) -> AppSettings:
        """Return stored settings or defaults."""
        return _decode(
            self._read().get(SETTINGS_KEY),
            parse_settings,
            default=AppSettings(),
            key=SETTINGS_KEY,
        )

    def save_settings(self, settings: AppSettings) -> None:
        """Replace the stored settings."""
        document = self._read()
        document[SETTINGS_KEY] = encode_settings(settings)
        self._write(document)

    def clear(self) -> None:
        """Delete the backing document."""
        try:
            self.path.unlink(missing_ok=True)
        except OSError as exc:
            raise StorageError("Failed to clear journal store") from exc

    def _read(self) -> dict[str, object]:
        if not self.path.exists():
            return {}
        try:
            raw = self.path.read_text(encoding="utf-8")
        except OSError as exc:
            raise StorageError("Failed to read journal store") from exc
        try:
            document = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Journal store at %s is not valid JSON", self.path)
            return {}
        return document if isinstance(document, dict) else {}

    def _write(self, document: dict[str, object]) -> None:
        tmp_path = self.path.with_name(f"{self.path.name}.tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(json.dumps(document), encoding="utf-8")
            os.replace(tmp_path, self.path)
        except OSError as exc:
            raise StorageError("Failed to write journal store") from exc


def _session_rows(document: dict[str, object]) -> list[object]:
    rows = document.get(SESSIONS_KEY)
    return list(rows) if isinstance(rows, list) else []


def _decode(
    value: object, parse: Callable[..., _T], default: _T, key: str
) -> _T:
    """Decode one stored key, falling back to the default when it is unreadable."""
    if value is None:
        return default
    try:
        return parse(value)
    except (KeyError, TypeError, ValueError, AttributeError):
        logger.warning("Ignoring unreadable value for %s", key)
        return default
