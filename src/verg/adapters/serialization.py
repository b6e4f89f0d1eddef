"""Row codecs shared by the journal repositories."""

from datetime import date, datetime, time
from uuid import UUID

from verg.domain.journal import SessionRecord, UserStats
from verg.domain.settings import (
    DEFAULT_NOTIFICATION_TIME,
    DEFAULT_TIMER_DURATION,
    AppSettings,
)


def encode_session(record: SessionRecord) -> dict[str, object]:
    return {
        "id": str(record.id),
        "occurred_on": record.occurred_on.isoformat(),
        "duration": record.duration,
        "image_reference": record.image_reference,
        "created_at": record.created_at.isoformat(),
    }


def parse_session(row: dict[str, object]) -> SessionRecord:
    image_reference = row.get("image_reference")
    return SessionRecord(
        id=UUID(str(row["id"])),
        occurred_on=date.fromisoformat(str(row["occurred_on"])),
        duration=float(row.get("duration", 0.0)),
        image_reference=str(image_reference) if image_reference else None,
        created_at=datetime.fromisoformat(str(row["created_at"])),
    )


def encode_stats(stats: UserStats) -> dict[str, object]:
    return {
        "current_streak": stats.current_streak,
        "longest_streak": stats.longest_streak,
        "total_sessions": stats.total_sessions,
        "last_session_date": (
            stats.last_session_date.isoformat() if stats.last_session_date else None
        ),
    }


def parse_stats(row: dict[str, object]) -> UserStats:
    last_raw = row.get("last_session_date")
    return UserStats(
        current_streak=int(row.get("current_streak", 0)),
        longest_streak=int(row.get("longest_streak", 0)),
        total_sessions=int(row.get("total_sessions", 0)),
        last_session_date=(
            datetime.fromisoformat(last_raw)
            if isinstance(last_raw, str) and last_raw
            else None
        ),
    )


def encode_settings(settings: AppSettings) -> dict[str, object]:
    return {
        "timer_duration": settings.timer_duration,
        "sound_enabled": settings.sound_enabled,
        "notifications_enabled": settings.notifications_enabled,
        "notification_time": settings.notification_time.strftime("%H:%M"),
        "has_seen_onboarding": settings.has_seen_onboarding,
        "is_subscribed": settings.is_subscribed,
    }


def parse_settings(row: dict[str, object]) -> AppSettings:
    time_raw = row.get("notification_time")
    return AppSettings(
        timer_duration=float(row.get("timer_duration", DEFAULT_TIMER_DURATION)),
        sound_enabled=bool(row.get("sound_enabled", True)),
        notifications_enabled=bool(row.get("notifications_enabled", False)),
        notification_time=(
            time.fromisoformat(time_raw)
            if isinstance(time_raw, str) and time_raw
            else DEFAULT_NOTIFICATION_TIME
        ),
        has_seen_onboarding=bool(row.get("has_seen_onboarding", False)),
        is_subscribed=bool(row.get("is_subscribed", False)),
    )
