"""
Token Catalog Builder

Normalizes a raw price feed into a canonical catalog: bad prices are dropped,
each currency keeps its most recent observation and the result is sorted.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, Iterable, List, Optional

from .models import Token, TokenCatalog
from ...config import settings
from ...providers.price_feed import PriceObservation

logger = logging.getLogger(__name__)


def has_valid_price(observation: PriceObservation) -> bool:
    """True when the observation carries a strictly positive price."""
    price = observation.price
    # NaN fails the comparison and is dropped too
    return price is not None and price > 0


def catalog_sort_key(token: Token):
    return (token.currency.lower(), token.currency)


class TokenCatalogBuilder:
    """
    Builds a :class:`TokenCatalog` from price observations.

    Args:
        icon_ref_for: Maps a currency code to its icon reference
            (default: ``settings.icon_ref_for``).
    """

    def __init__(self, icon_ref_for: Optional[Callable[[str], str]] = None):
        self._icon_ref_for = icon_ref_for or settings.icon_ref_for

    def latest_by_currency(
        self, observations: Iterable[PriceObservation]
    ) -> Dict[str, PriceObservation]:
        """Most recent valid observation per currency.

        Recency compares ``date`` with ``date``. On equal dates the first
        observation seen wins.
        """
        latest: Dict[str, PriceObservation] = {}
        for obs in observations:
            if not has_valid_price(obs):
                continue
            current = latest.get(obs.currency)
            if current is None or obs.date > current.date:
                latest[obs.currency] = obs
        return latest

    def build(self, observations: Iterable[PriceObservation]) -> TokenCatalog:
        observations = list(observations)
        latest = self.latest_by_currency(observations)

        tokens: List[Token] = [
            Token(
                currency=currency,
                price=float(obs.price),
                icon_ref=self._icon_ref_for(currency),
            )
            for currency, obs in latest.items()
        ]
        tokens.sort(key=catalog_sort_key)

        discarded = sum(1 for obs in observations if not has_valid_price(obs))
        logger.debug(
            f"Built catalog: {len(observations)} observations, "
            f"{discarded} discarded, {len(tokens)} tokens"
        )
        return TokenCatalog(tokens)


def build_catalog(observations: Iterable[PriceObservation]) -> TokenCatalog:
    """Build a catalog with the default icon convention."""
    return TokenCatalogBuilder().build(observations)
