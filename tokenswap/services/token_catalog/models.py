"""
Token Catalog Models

Canonical token records and the catalog built from a price feed.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Iterator, Optional, Sequence, Tuple


@dataclass(frozen=True)
class Token:
    """One canonical, deduplicated token.

    ``price`` is always strictly positive; ``icon_ref`` is a constructed URL,
    it is never discovered or validated.
    """
    currency: str
    price: float
    icon_ref: str

    def __post_init__(self) -> None:
        if not self.price > 0:
            raise ValueError(f"Token price must be positive, got {self.price!r} for {self.currency}")

    @property
    def fallback_glyph(self) -> str:
        return self.currency[:1].upper()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "currency": self.currency,
            "price": self.price,
            "iconRef": self.icon_ref,
        }


class TokenCatalog(Sequence[Token]):
    """Sorted, immutable sequence of tokens, at most one per currency."""

    def __init__(self, tokens: Sequence[Token] = (), built_at: Optional[datetime] = None):
        self._tokens: Tuple[Token, ...] = tuple(tokens)
        self._by_currency: Dict[str, Token] = {t.currency: t for t in self._tokens}
        if len(self._by_currency) != len(self._tokens):
            raise ValueError("Catalog contains duplicate currencies")
        self.built_at = built_at or datetime.now(timezone.utc)

    def __getitem__(self, index):  # type: ignore[override]
        return self._tokens[index]

    def __len__(self) -> int:
        return len(self._tokens)

    def __iter__(self) -> Iterator[Token]:
        return iter(self._tokens)

    def __contains__(self, item: object) -> bool:
        if isinstance(item, Token):
            return self._by_currency.get(item.currency) == item
        return False

    def __repr__(self) -> str:
        return f"TokenCatalog({len(self._tokens)} tokens)"

    @property
    def currencies(self) -> Tuple[str, ...]:
        return tuple(t.currency for t in self._tokens)

    def get(self, currency: str) -> Optional[Token]:
        """Look up a token by its exact currency code."""
        return self._by_currency.get(currency)

    def to_list(self) -> list:
        return [t.to_dict() for t in self._tokens]


class CatalogStatus(str, Enum):
    """Load state of a session's catalog."""
    LOADING = "loading"
    READY = "ready"
    FAILED = "failed"


class IconKind(str, Enum):
    IMAGE = "image"
    FALLBACK = "fallback"


@dataclass(frozen=True)
class IconView:
    """What a token icon renders as: its image, or a one-letter glyph."""
    kind: IconKind
    src: Optional[str] = None
    glyph: Optional[str] = None
    alt: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "src": self.src,
            "glyph": self.glyph,
            "alt": self.alt,
        }
