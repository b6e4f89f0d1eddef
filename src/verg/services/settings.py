"""User preference service."""

from dataclasses import dataclass, replace
from datetime import time
from typing import Protocol

from verg.domain.settings import TIMER_PRESETS, AppSettings


class SettingsRepository(Protocol):
    """Persistence interface for app settings."""

    def load_settings(self) -> AppSettings:
        """Return stored settings, or defaults when none exist."""

    def save_settings(self, settings: AppSettings) -> None:
        """Persist the settings."""


@dataclass
class SettingsService:
    """Reads and updates user preferences."""

    repository: SettingsRepository

    def get_settings(self) -> AppSettings:
        return self.repository.load_settings()

    def update_settings(self, settings: AppSettings) -> AppSettings:
        """Validate and persist a full settings object."""
        validate_duration(settings.timer_duration)
        self.repository.save_settings(settings)
        return settings

    def set_timer_duration(self, duration: float) -> AppSettings:
        """Persist a timer duration chosen from the presets."""
        validate_duration(duration)
        return self._update(timer_duration=float(duration))

    def set_duration_minutes(self, minutes: int) -> AppSettings:
        return self.set_timer_duration(minutes * 60)

    def set_sound_enabled(self, enabled: bool) -> AppSettings:
        return self._update(sound_enabled=enabled)

    def set_notifications_enabled(self, enabled: bool) -> AppSettings:
        return self._update(notifications_enabled=enabled)

    def set_notification_time(self, value: time) -> AppSettings:
        return self._update(notification_time=value)

    def set_has_seen_onboarding(self, seen: bool) -> AppSettings:
        return self._update(has_seen_onboarding=seen)

    def set_is_subscribed(self, subscribed: bool) -> AppSettings:
        return self._update(is_subscribed=subscribed)

    def _update(self, **changes: object) -> AppSettings:
        updated = replace(self.repository.load_settings(), **changes)
        self.repository.save_settings(updated)
        return updated


def validate_duration(duration: float) -> None:
    if duration not in TIMER_PRESETS:
        presets = ", ".join(str(int(value)) for value in TIMER_PRESETS)
        raise ValueError(f"Timer duration must be one of: {presets} seconds")
