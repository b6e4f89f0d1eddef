"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import tzinfo
from pathlib import Path

from supabase import create_client

from verg.adapters.local_image_store import LocalImageStore
from verg.adapters.local_journal_repository import LocalJournalRepository
from verg.adapters.revenuecat_client import HttpxRevenueCatClient
from verg.adapters.supabase_image_store import SupabaseImageStore
from verg.adapters.supabase_journal_repository import SupabaseJournalRepository
from verg.config import Settings, parse_timezone
from verg.services.clock import Clock, SystemClock
from verg.services.gating import SessionGatingService
from verg.services.journal import ImageStore, JournalRepository, JournalService
from verg.services.settings import SettingsService
from verg.services.stats import JournalStatsService
from verg.services.streaks import StreakService
from verg.services.subscriptions import (
    RevenueCatSubscriptionStatus,
    StaticSubscriptionStatus,
    SubscriptionStatus,
)
from verg.services.timer import CountdownTimer

JOURNAL_FILE_NAME = "journal.json"
IMAGES_DIR_NAME = "JournalImages"


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    timezone: tzinfo
    clock: Clock
    repository: JournalRepository
    image_store: ImageStore
    subscription: SubscriptionStatus
    journal_service: JournalService
    streak_service: StreakService
    gating_service: SessionGatingService
    stats_service: JournalStatsService
    settings_service: SettingsService
    timer: CountdownTimer
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    timezone = parse_timezone(resolved_settings.timezone)
    clock = SystemClock()

    repository: JournalRepository
    image_store: ImageStore
    if resolved_settings.storage_backend == "supabase":
        if not (
            resolved_settings.supabase_url and resolved_settings.supabase_service_key
        ):
            raise ValueError(
                "Supabase storage requires SUPABASE_URL and SUPABASE_SERVICE_KEY"
            )
        supabase_client = create_client(
            resolved_settings.supabase_url, resolved_settings.supabase_service_key
        )
        repository = SupabaseJournalRepository(
            supabase_client, resolved_settings.device_id
        )
        image_store = SupabaseImageStore(supabase_client, resolved_settings.device_id)
    else:
        data_dir = Path(resolved_settings.data_dir)
        repository = LocalJournalRepository(data_dir / JOURNAL_FILE_NAME)
        image_store = LocalImageStore(data_dir / IMAGES_DIR_NAME)

    revenuecat_client: HttpxRevenueCatClient | None = None
    subscription: SubscriptionStatus
    if resolved_settings.revenuecat_api_key:
        revenuecat_client = HttpxRevenueCatClient.create(
            api_key=resolved_settings.revenuecat_api_key,
            base_url=resolved_settings.revenuecat_base_url,
        )
        subscription = RevenueCatSubscriptionStatus(
            client=revenuecat_client,
            app_user_id=resolved_settings.device_id,
            entitlement=resolved_settings.revenuecat_entitlement,
            clock=clock,
        )
    else:
        subscription = StaticSubscriptionStatus(repository)

    timer = CountdownTimer(
        clock=clock, tick_interval=resolved_settings.timer_tick_interval
    )

    async def close_resources() -> None:
        timer.stop()
        if revenuecat_client is not None:
            await revenuecat_client.close()

    return AppContainer(
        settings=resolved_settings,
        timezone=timezone,
        clock=clock,
        repository=repository,
        image_store=image_store,
        subscription=subscription,
        journal_service=JournalService(
            repository=repository,
            image_store=image_store,
            clock=clock,
            timezone=timezone,
        ),
        streak_service=StreakService(
            repository=repository, clock=clock, timezone=timezone
        ),
        gating_service=SessionGatingService(
            subscription=subscription,
            repository=repository,
            free_limit=resolved_settings.free_session_limit,
        ),
        stats_service=JournalStatsService(
            repository=repository, clock=clock, timezone=timezone
        ),
        settings_service=SettingsService(repository),
        timer=timer,
        close_resources=close_resources,
    )
