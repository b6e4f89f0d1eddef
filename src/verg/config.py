"""Application configuration."""

import logging
import os
from datetime import tzinfo
from typing import Literal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic_settings import BaseSettings, SettingsConfigDict

from verg.adapters.revenuecat_client import REVENUECAT_BASE_URL
from verg.services.gating import FREE_SESSIONS_LIMIT
from verg.services.timer import DEFAULT_TICK_INTERVAL

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    storage_backend: Literal["local", "supabase"] = "local"
    data_dir: str = ".verg"
    supabase_url: str | None = None
    supabase_service_key: str | None = None
    device_id: str = "default"
    revenuecat_api_key: str | None = None
    revenuecat_base_url: str = REVENUECAT_BASE_URL
    revenuecat_entitlement: str = "premium"
    free_session_limit: int = FREE_SESSIONS_LIMIT
    timer_tick_interval: float = DEFAULT_TICK_INTERVAL
    timezone: str = "UTC"
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )


def parse_timezone(raw: str | None) -> tzinfo:
    """Resolve an IANA zone name, falling back to UTC."""
    if raw is None or not raw.strip():
        return ZoneInfo("UTC")
    try:
        return ZoneInfo(raw.strip())
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Unknown timezone %r; using UTC", raw)
        return ZoneInfo("UTC")
