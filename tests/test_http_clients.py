"""Tests for HTTP-based adapters."""

import asyncio

import httpx
import pytest

from verg.adapters.revenuecat_client import HttpxRevenueCatClient


def test_revenuecat_client_fetches_subscriber() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.raw_path == b"/v1/subscribers/device%2F1"
        assert request.headers["Authorization"] == "Bearer key"
        return httpx.Response(200, json={"subscriber": {"entitlements": {}}})

    transport = httpx.MockTransport(handler)
    async_client = httpx.AsyncClient(transport=transport)
    client = HttpxRevenueCatClient(
        api_key="key",
        base_url="https://api.revenuecat.com/v1",
        http_client=async_client,
    )

    result = asyncio.run(client.get_subscriber("device/1"))

    assert result == {"subscriber": {"entitlements": {}}}


def test_revenuecat_client_raises_on_error_status() -> None:
    def handler(_request: httpx.Request) -> httpx.Response:
        return httpx.Response(401, json={"message": "unauthorized"})

    transport = httpx.MockTransport(handler)
    client = HttpxRevenueCatClient(
        api_key="bad",
        base_url="https://api.revenuecat.com/v1",
        http_client=httpx.AsyncClient(transport=transport),
    )

    with pytest.raises(httpx.HTTPStatusError):
        asyncio.run(client.get_subscriber("device-1"))


def test_revenuecat_client_close() -> None:
    client = HttpxRevenueCatClient.create(api_key="key")

    asyncio.run(client.close())

    assert client.http_client.is_closed
