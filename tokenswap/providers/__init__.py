"""External data providers."""

from .base import Provider
from .price_feed import (
    FetchError,
    FetchErrorKind,
    NetworkFetchError,
    ParseFetchError,
    PriceFeedClient,
    PriceObservation,
)

__all__ = [
    "Provider",
    "FetchError",
    "FetchErrorKind",
    "NetworkFetchError",
    "ParseFetchError",
    "PriceFeedClient",
    "PriceObservation",
]
