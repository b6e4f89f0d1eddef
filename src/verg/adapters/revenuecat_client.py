"""RevenueCat REST API client."""

from dataclasses import dataclass
from typing import Protocol
from urllib.parse import quote

import httpx

REVENUECAT_BASE_URL = "https://api.revenuecat.com/v1"


class RevenueCatClient(Protocol):
    """Interface for RevenueCat subscriber lookups."""

    async def get_subscriber(self, app_user_id: str) -> dict[str, object]:
        """Return the raw subscriber payload."""


@dataclass
class HttpxRevenueCatClient(RevenueCatClient):
    """HTTPX-backed RevenueCat client."""

    api_key: str
    base_url: str
    http_client: httpx.AsyncClient

    @classmethod
    def create(
        cls, api_key: str, base_url: str = REVENUECAT_BASE_URL
    ) -> "HttpxRevenueCatClient":
        """Create a RevenueCat client with a managed httpx session."""
        return cls(api_key=api_key, base_url=base_url, http_client=httpx.AsyncClient())

    async def get_subscriber(self, app_user_id: str) -> dict[str, object]:
        """Fetch the subscriber record for an app user id."""
        url = f"{self.base_url}/subscribers/{quote(app_user_id, safe='')}"
        response = await self.http_client.get(
            url,
            headers={"Authorization": f"Bearer {self.api_key}"},
            timeout=15,
        )
        response.raise_for_status()
        return response.json()

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()
