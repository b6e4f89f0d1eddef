"""Supabase-backed journal repository."""

from dataclasses import dataclass
from typing import Any
from uuid import UUID

import httpx
from postgrest.exceptions import APIError
from supabase import Client

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

_SESSION_COLUMNS = "id, occurred_on, duration, image_reference, created_at"
_STATS_COLUMNS = "current_streak, longest_streak, total_sessions, last_session_date"
_SETTINGS_COLUMNS = (
    "timer_duration, sound_enabled, notifications_enabled, notification_time, "
    "has_seen_onboarding, is_subscribed"
)


@dataclass
class SupabaseJournalRepository(JournalRepository):
    """Supabase implementation scoped to a single device."""

    client: Client
    device_id: str

    def list_sessions(self) -> list[SessionRecord]:
        """Return sessions newest first."""
        response = _execute(
            self.client.table("journal_sessions")
            .select(_SESSION_COLUMNS)
            .eq("device_id", self.device_id)
            .order("created_at", desc=True),
            "list sessions",
        )
        return [parse_session(row) for row in response.data or []]

    def get_session(self, session_id: UUID) -> SessionRecord | None:
        """Return a session by id, if present."""
        response = _execute(
            self.client.table("journal_sessions")
            .select(_SESSION_COLUMNS)
            .eq("device_id", self.device_id)
            .eq("id", str(session_id))
            .limit(1),
            "get session",
        )
        if not response.data:
            return None
        return parse_session(response.data[0])

    def append_session(self, record: SessionRecord, stats: UserStats) -> None:
        """Insert the session and upsert stats in one database transaction."""
        _execute(
            self.client.rpc(
                "record_journal_session",
                {
                    "p_device_id": self.device_id,
                    "p_session": encode_session(record),
                    "p_stats": encode_stats(stats),
                },
            ),
            "record session",
        )

    def delete_session(self, session_id: UUID) -> SessionRecord | None:
        """Delete a session row and return it."""
        response = _execute(
            self.client.table("journal_sessions")
            .delete()
            .eq("device_id", self.device_id)
            .eq("id", str(session_id)),
            "delete session",
        )
        if not response.data:
            return None
        return parse_session(response.data[0])

    def load_stats(self) -> UserStats:
        """Return stats for the device or defaults."""
        response = _execute(
            self.client.table("journal_stats")
            .select(_STATS_COLUMNS)
            .eq("device_id", self.device_id)
            .limit(1),
            "load stats",
        )
        if not response.data:
            return UserStats()
        return parse_stats(response.data[0])

    def save_stats(self, stats: UserStats) -> None:
        """Upsert the stats row for the device."""
        _execute(
            self.client.table("journal_stats").upsert(
                {"device_id": self.device_id, **encode_stats(stats)}
            ),
            "save stats",
        )

    def load_settings(self) -> AppSettings:
        """Return settings for the device or defaults."""
        response = _execute(
            self.client.table("journal_settings")
            .select(_SETTINGS_COLUMNS)
            .eq("device_id", self.device_id)
            .limit(1),
            "load settings",
        )
        if not response.data:
            return AppSettings()
        return parse_settings(response.data[0])

    def save_settings(self, settings: AppSettings) -> None:
        """Upsert the settings row for the device."""
        _execute(
            self.client.table("journal_settings").upsert(
                {"device_id": self.device_id, **encode_settings(settings)}
            ),
            "save settings",
        )

    def clear(self) -> None:
        """Delete every row belonging to the device."""
        for table in ("journal_sessions", "journal_stats", "journal_settings"):
            _execute(
                self.client.table(table).delete().eq("device_id", self.device_id),
                f"clear {table}",
            )


def _execute(query: Any, action: str) -> Any:  # noqa: ANN401
    try:
        return query.execute()
    except (APIError, httpx.HTTPError) as exc:
        raise StorageError(f"Failed to {action}") from exc
