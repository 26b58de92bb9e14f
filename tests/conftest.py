"""Shared fixtures: a canned price feed served through httpx.MockTransport."""

import json
from typing import Any, Callable, List

import httpx
import pytest

from tokenswap.providers.price_feed import PriceFeedClient
from tokenswap.services.token_catalog import TokenCatalogBuilder

FEED_URL = "https://prices.test/prices.json"
ICON_BASE = "https://icons.test/tokens"


@pytest.fixture
def feed_payload() -> List[dict]:
    """The worked example: ETH twice (later price wins) and BTC once."""
    return [
        {"currency": "ETH", "date": "2024-01-01T00:00:00.000Z", "price": 2000},
        {"currency": "ETH", "date": "2024-01-02T00:00:00.000Z", "price": 2500},
        {"currency": "BTC", "date": "2024-01-01T00:00:00.000Z", "price": 40000},
    ]


@pytest.fixture
def make_client() -> Callable[..., PriceFeedClient]:
    """Build a PriceFeedClient whose transport answers with ``body``/``status``."""

    def _make(body: Any = None, status: int = 200, raw: bytes = None, exc: Exception = None) -> PriceFeedClient:
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            if exc is not None:
                raise exc
            content = raw if raw is not None else json.dumps(body).encode()
            return httpx.Response(status, content=content, headers={"content-type": "application/json"})

        client = PriceFeedClient(url=FEED_URL, timeout=1, transport=httpx.MockTransport(handler))
        client.calls = calls  # type: ignore[attr-defined]
        return client

    return _make


@pytest.fixture
def builder() -> TokenCatalogBuilder:
    return TokenCatalogBuilder(icon_ref_for=lambda currency: f"{ICON_BASE}/{currency}.svg")
