"""
Price feed provider.

Retrieves the raw price feed document (a JSON array of
``{currency, date, price}`` records) and parses it into
:class:`PriceObservation` values. Every call is a fresh request: there is no
cache and no retry, the caller owns retry.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

import httpx
from pydantic import BaseModel, ConfigDict, TypeAdapter, ValidationError, field_validator

from .base import Provider
from ..config import settings

logger = logging.getLogger(__name__)


class PriceObservation(BaseModel):
    """One timestamped price record for a currency, as published by the feed.

    The feed is untrusted: ``price`` may be missing, zero or negative. Those
    records are kept here and discarded by the catalog builder.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    currency: str
    date: datetime
    price: Optional[float] = None

    @field_validator("date")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        # Naive and aware datetimes cannot be compared
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


_OBSERVATIONS = TypeAdapter(List[PriceObservation])


class FetchErrorKind(str, Enum):
    """Why the feed could not be turned into observations."""

    NETWORK = "network"  # connection failure, timeout, non-2xx status
    PARSE = "parse"      # body is not a well-formed list of records


class FetchError(Exception):
    """Base error for price feed retrieval."""

    kind: FetchErrorKind

    def __init__(self, message: str, kind: FetchErrorKind, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.kind = kind
        self.status_code = status_code

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "message": self.message,
            "statusCode": self.status_code,
        }


class NetworkFetchError(FetchError):
    """The feed could not be retrieved."""

    def __init__(self, message: str = "Failed to fetch prices", status_code: Optional[int] = None):
        super().__init__(message, FetchErrorKind.NETWORK, status_code=status_code)


class ParseFetchError(FetchError):
    """The feed was retrieved but its body is malformed."""

    def __init__(self, message: str = "Malformed price feed"):
        super().__init__(message, FetchErrorKind.PARSE)


class PriceFeedClient(Provider):
    """
    HTTP client for the price feed.

    Args:
        url: Feed endpoint (default: ``settings.prices_url``).
        timeout: Request timeout in seconds.
        transport: Optional httpx transport, used by tests to stub responses.
    """

    name = "price_feed"

    def __init__(
        self,
        url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.url = url or settings.prices_url
        self.timeout_s = timeout if timeout is not None else settings.request_timeout_seconds
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout_s, transport=self._transport)

    async def ready(self) -> bool:
        return bool(self.url)

    async def health_check(self) -> Dict[str, Any]:
        if not await self.ready():
            return {"status": "unavailable", "reason": "No price feed URL configured"}

        try:
            observations = await self.fetch_prices()
        except FetchError as e:
            return {"status": "error", "reason": e.message, "kind": e.kind.value}
        return {"status": "healthy", "observations": len(observations)}

    async def fetch_prices(self) -> List[PriceObservation]:
        """
        Retrieve and parse the feed once.

        Returns:
            Observations in feed order, duplicates and bad prices included.

        Raises:
            NetworkFetchError: On connection errors, timeouts or non-2xx status.
            ParseFetchError: If the body is not a JSON list of price records.
        """
        async with self._client() as client:
            try:
                response = await client.get(self.url)
                response.raise_for_status()
            except httpx.HTTPStatusError as e:
                status = e.response.status_code
                logger.warning(f"Price feed returned HTTP {status}")
                raise NetworkFetchError(
                    f"Failed to fetch prices: HTTP {status}", status_code=status
                ) from e
            except httpx.HTTPError as e:
                logger.warning(f"Price feed request failed: {e!r}")
                raise NetworkFetchError(f"Failed to fetch prices: {e}") from e

        try:
            payload = response.json()
        except ValueError as e:
            raise ParseFetchError("Price feed body is not valid JSON") from e

        return parse_observations(payload)


def parse_observations(payload: Any) -> List[PriceObservation]:
    """Validate a decoded feed document as a homogeneous list of records."""
    if not isinstance(payload, list):
        raise ParseFetchError(
            f"Expected a JSON array of price records, got {type(payload).__name__}"
        )
    try:
        observations = _OBSERVATIONS.validate_python(payload)
    except ValidationError as e:
        raise ParseFetchError(
            f"Malformed price record: {e.error_count()} validation error(s)"
        ) from e

    logger.debug(f"Parsed {len(observations)} price observations")
    return observations
