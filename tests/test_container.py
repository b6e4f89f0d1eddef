"""Tests for container wiring."""

import asyncio

import pytest

from verg.adapters.local_journal_repository import LocalJournalRepository
from verg.config import Settings
from verg.containers import build_container
from verg.services.subscriptions import (
    RevenueCatSubscriptionStatus,
    StaticSubscriptionStatus,
)


def test_build_container_creates_services(settings) -> None:
    container = build_container(settings)

    assert isinstance(container.repository, LocalJournalRepository)
    assert isinstance(container.subscription, StaticSubscriptionStatus)
    assert container.gating_service.can_start()
    asyncio.run(container.close_resources())


def test_build_container_uses_revenuecat_when_configured(tmp_path) -> None:
    container = build_container(
        Settings(data_dir=str(tmp_path), revenuecat_api_key="key")
    )

    assert isinstance(container.subscription, RevenueCatSubscriptionStatus)
    asyncio.run(container.close_resources())


def test_supabase_backend_requires_credentials(tmp_path) -> None:
    with pytest.raises(ValueError, match="SUPABASE_URL"):
        build_container(
            Settings(
                data_dir=str(tmp_path),
                storage_backend="supabase",
                supabase_url=None,
                supabase_service_key=None,
            )
        )
