"""
Token icon resolution.

Icons are rendered from the token's constructed ``icon_ref``. When an icon
fails to load, the token is rendered with a fallback glyph instead (the first
letter of its currency, uppercased). Load failures are never raised.
"""

from __future__ import annotations

import logging
from typing import Optional, Set

import httpx

from .models import IconKind, IconView, Token

logger = logging.getLogger(__name__)


class IconResolver:
    """Remembers which icons failed to load and renders tokens accordingly."""

    def __init__(self, timeout: float = 5.0, transport: Optional[httpx.AsyncBaseTransport] = None):
        self._failed: Set[str] = set()
        self._timeout = timeout
        self._transport = transport

    def render(self, token: Token) -> IconView:
        if token.currency in self._failed:
            return IconView(kind=IconKind.FALLBACK, glyph=token.fallback_glyph, alt=token.currency)
        return IconView(kind=IconKind.IMAGE, src=token.icon_ref, alt=token.currency)

    def mark_failed(self, token: Token) -> IconView:
        """Record a load failure reported by the renderer."""
        self._failed.add(token.currency)
        return self.render(token)

    def has_failed(self, currency: str) -> bool:
        return currency in self._failed

    async def check(self, token: Token) -> IconView:
        """Check the icon over HTTP and render the outcome."""
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                response = await client.head(token.icon_ref, follow_redirects=True)
                response.raise_for_status()
        except httpx.HTTPError as e:
            logger.debug(f"Icon for {token.currency} unavailable: {e!r}")
            return self.mark_failed(token)
        return self.render(token)
