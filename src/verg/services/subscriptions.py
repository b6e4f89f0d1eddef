"""Subscription entitlement status."""

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Protocol

import httpx

from verg.adapters.revenuecat_client import RevenueCatClient
from verg.domain.journal import StorageError
from verg.services.clock import Clock
from verg.services.settings import SettingsRepository

logger = logging.getLogger(__name__)


class SubscriptionStatus(Protocol):
    """Snapshot of the user's premium entitlement."""

    def is_premium(self) -> bool:
        """Return the last known entitlement state."""

    async def refresh(self) -> bool:
        """Refresh the entitlement state and return it."""


@dataclass
class StaticSubscriptionStatus(SubscriptionStatus):
    """Entitlement read from the stored app settings."""

    settings_repository: SettingsRepository

    def is_premium(self) -> bool:
        """Return the stored subscription flag."""
        try:
            return self.settings_repository.load_settings().is_subscribed
        except StorageError:
            logger.exception("Failed to read subscription flag")
            return False

    async def refresh(self) -> bool:
        """Re-read the stored flag."""
        return self.is_premium()


@dataclass
class RevenueCatSubscriptionStatus(SubscriptionStatus):
    """Entitlement fetched from RevenueCat and cached between refreshes."""

    client: RevenueCatClient
    app_user_id: str
    entitlement: str
    clock: Clock
    _is_premium: bool = field(default=False, init=False)

    def is_premium(self) -> bool:
        """Return the cached entitlement state."""
        return self._is_premium

    async def refresh(self) -> bool:
        """Fetch the subscriber and update the cached state."""
        try:
            payload = await self.client.get_subscriber(self.app_user_id)
        except (httpx.HTTPError, ValueError):
            logger.exception("Failed to refresh subscription status")
            return self._is_premium
        self._is_premium = entitlement_active(
            payload, self.entitlement, self.clock.now()
        )
        logger.info("Subscription refreshed: premium=%s", self._is_premium)
        return self._is_premium


def entitlement_active(
    payload: dict[str, object], entitlement: str, now: datetime
) -> bool:
    """Return True when the subscriber payload grants an unexpired entitlement."""
    if not isinstance(payload, dict):
        return False
    subscriber = payload.get("subscriber")
    if not isinstance(subscriber, dict):
        return False
    entitlements = subscriber.get("entitlements")
    if not isinstance(entitlements, dict):
        return False
    entry = entitlements.get(entitlement)
    if not isinstance(entry, dict):
        return False
    expires_raw = entry.get("expires_date")
    if expires_raw is None:
        return True
    if not isinstance(expires_raw, str):
        return False
    try:
        expires_at = datetime.fromisoformat(expires_raw)
    except ValueError:
        return False
    if expires_at.tzinfo is None:  # RevenueCat timestamps are UTC
        expires_at = expires_at.replace(tzinfo=UTC)
    return expires_at > now
