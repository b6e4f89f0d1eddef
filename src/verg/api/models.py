"""Pydantic request and response models for the HTTP API."""

from datetime import date, datetime, time
from uuid import UUID

from pydantic import BaseModel, model_validator


class StatsResponse(BaseModel):
    """Streak and gate status."""

    current_streak: int
    longest_streak: int
    total_sessions: int
    last_session_date: datetime | None = None
    has_written_today: bool
    streak_text: str
    streak_at_risk: bool
    sessions_today: int
    can_start_session: bool
    remaining_free_sessions: int | None = None


class TimerResponse(BaseModel):
    """Countdown snapshot."""

    phase: str
    total_duration: float
    remaining: float
    progress: float
    formatted_time: str
    is_running: bool
    is_complete: bool


class StartSessionRequest(BaseModel):
    """Optional override of the configured timer duration."""

    duration: float | None = None


class CompleteSessionRequest(BaseModel):
    """Photo of the written page, or an explicit skip."""

    image_base64: str | None = None
    skip_photo: bool = False

    @model_validator(mode="after")
    def _require_image_or_skip(self) -> "CompleteSessionRequest":
        if self.image_base64 is None and not self.skip_photo:
            raise ValueError("Provide image_base64 or set skip_photo")
        return self


class SessionResponse(BaseModel):
    """A recorded session."""

    id: UUID
    occurred_on: date
    duration: float
    image_reference: str | None = None
    image_url: str | None = None
    created_at: datetime


class CompleteSessionResponse(BaseModel):
    """Recorded session with the updated stats."""

    session: SessionResponse
    current_streak: int
    longest_streak: int
    total_sessions: int


class CalendarDayResponse(BaseModel):
    day: date
    session_count: int


class CalendarResponse(BaseModel):
    """Month view of session counts."""

    year: int
    month: int
    sessions_in_month: int
    days: list[CalendarDayResponse]


class SettingsResponse(BaseModel):
    """Stored user preferences."""

    timer_duration: float
    sound_enabled: bool
    notifications_enabled: bool
    notification_time: time
    has_seen_onboarding: bool
    is_subscribed: bool


class SettingsUpdate(BaseModel):
    """Partial update of user preferences."""

    timer_duration: float | None = None
    sound_enabled: bool | None = None
    notifications_enabled: bool | None = None
    notification_time: time | None = None
    has_seen_onboarding: bool | None = None
