"""
Swap sessions.

A session is one user's page lifetime: it owns the catalog built from the
last successful feed fetch and the swap form bound to it. Sessions live in
memory only.
"""

from __future__ import annotations

import asyncio
import logging
import time
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

import structlog

from ..config import settings
from ..core.swap.controller import SwapFormController
from ..core.swap.interactions import InteractionBus
from ..providers.price_feed import FetchError, PriceFeedClient
from .token_catalog.builder import TokenCatalogBuilder
from .token_catalog.icons import IconResolver
from .token_catalog.models import CatalogStatus, TokenCatalog

logger = logging.getLogger(__name__)
_slog = structlog.stdlib.get_logger("swap.session")


class SwapSession:
    """
    Coordinator for one catalog and one swap form.

    Args:
        client: Price feed client (default: a new :class:`PriceFeedClient`).
        builder: Catalog builder (default: a new :class:`TokenCatalogBuilder`).
        submit_latency: Forwarded to the form controller.
        success_display: Forwarded to the form controller.
        clock: Monotonic clock used to track idle time.
    """

    def __init__(
        self,
        client: Optional[PriceFeedClient] = None,
        builder: Optional[TokenCatalogBuilder] = None,
        submit_latency: Optional[float] = None,
        success_display: Optional[float] = None,
        session_id: Optional[str] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.id = session_id or uuid.uuid4().hex[:12]
        self.created_at = datetime.now(timezone.utc)
        self._clock = clock
        self.last_seen = clock()
        self.status = CatalogStatus.LOADING
        self.error: Optional[FetchError] = None
        self.catalog: Optional[TokenCatalog] = None
        self.form: Optional[SwapFormController] = None
        self.bus = InteractionBus()
        self.icons = IconResolver()

        self._client = client or PriceFeedClient()
        self._builder = builder or TokenCatalogBuilder()
        self._submit_latency = submit_latency
        self._success_display = success_display
        self._load_lock = asyncio.Lock()
        self._disposed = False

    @property
    def disposed(self) -> bool:
        return self._disposed

    def touch(self) -> None:
        self.last_seen = self._clock()

    def idle_for(self) -> float:
        return self._clock() - self.last_seen

    async def load(self) -> CatalogStatus:
        """Fetch the feed and (re)build the catalog.

        A failed fetch leaves no partial catalog behind. Concurrent calls
        share one in-flight fetch.
        """
        if self._load_lock.locked():
            async with self._load_lock:
                return self.status

        async with self._load_lock:
            self.status = CatalogStatus.LOADING
            try:
                observations = await self._client.fetch_prices()
            except FetchError as e:
                if self._disposed:
                    return self.status
                self.status = CatalogStatus.FAILED
                self.error = e
                self.catalog = None
                _slog.warning("catalog_load_failed", session_id=self.id, kind=e.kind.value, reason=e.message)
                return self.status

            if self._disposed:
                logger.debug(f"Session {self.id} disposed during fetch, dropping result")
                return self.status

            self._install(self._builder.build(observations))
            return self.status

    async def reload(self) -> CatalogStatus:
        """Manual retry: fetch again and rebuild the catalog wholesale."""
        return await self.load()

    def _install(self, catalog: TokenCatalog) -> None:
        self.catalog = catalog
        self.error = None
        self.status = CatalogStatus.READY
        if self.form is None:
            self.form = SwapFormController(
                catalog,
                submit_latency=self._submit_latency,
                success_display=self._success_display,
                bus=self.bus,
                icons=self.icons,
            )
        else:
            self.form.rebind(catalog)
        _slog.info(
            "catalog_loaded",
            session_id=self.id,
            tokens=len(catalog),
            deferred=self.form.has_deferred_catalog,
        )

    def require_form(self) -> SwapFormController:
        if self.form is None or self.status is not CatalogStatus.READY:
            raise RuntimeError(f"Session {self.id} has no loaded catalog")
        return self.form

    def dispose(self) -> None:
        if self._disposed:
            return
        self._disposed = True
        if self.form is not None:
            self.form.dispose()

    def snapshot(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "status": self.status.value,
            "error": self.error.to_dict() if self.error else None,
            "tokens": len(self.catalog) if self.catalog is not None else 0,
            "catalogBuiltAt": self.catalog.built_at.isoformat() if self.catalog is not None else None,
            "form": self.form.to_dict() if self.form is not None and self.catalog is not None else None,
        }


class SessionRegistry:
    """
    In-memory registry of live sessions.

    Sessions idle for longer than ``ttl_seconds`` are disposed the next time
    the registry is used.
    """

    def __init__(
        self,
        client: Optional[PriceFeedClient] = None,
        submit_latency: Optional[float] = None,
        success_display: Optional[float] = None,
        ttl_seconds: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._sessions: Dict[str, SwapSession] = {}
        self._client = client
        self._submit_latency = submit_latency
        self._success_display = success_display
        self._ttl = settings.session_ttl_seconds if ttl_seconds is None else ttl_seconds
        self._clock = clock

    async def create(self) -> SwapSession:
        self.sweep()
        session = SwapSession(
            client=self._client,
            submit_latency=self._submit_latency,
            success_display=self._success_display,
            clock=self._clock,
        )
        self._sessions[session.id] = session
        await session.load()
        return session

    def get(self, session_id: str) -> Optional[SwapSession]:
        self.sweep()
        session = self._sessions.get(session_id)
        if session is not None:
            session.touch()
        return session

    def sweep(self) -> List[str]:
        """Dispose every session idle past the TTL and return their ids."""
        expired = [sid for sid, session in self._sessions.items() if session.idle_for() > self._ttl]
        for session_id in expired:
            self.close(session_id)
        if expired:
            logger.info(f"Expired {len(expired)} idle session(s)")
        return expired

    def close(self, session_id: str) -> bool:
        session = self._sessions.pop(session_id, None)
        if session is None:
            return False
        session.dispose()
        return True

    def close_all(self) -> None:
        for session_id in list(self._sessions):
            self.close(session_id)

    def __len__(self) -> int:
        return len(self._sessions)


# Module-level singleton for convenience
_default_registry: Optional[SessionRegistry] = None


def get_session_registry(client: Optional[PriceFeedClient] = None) -> SessionRegistry:
    """
    Get or create the default SessionRegistry instance.

    Args:
        client: Optional price feed client. When given, the current registry
            is closed and replaced by one that uses this client.
    """
    global _default_registry
    if _default_registry is None or client is not None:
        if _default_registry is not None:
            _default_registry.close_all()
        _default_registry = SessionRegistry(client=client)
    return _default_registry
