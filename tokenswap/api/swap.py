from __future__ import annotations

from typing import Any, Dict, Literal

import structlog
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from ..core.swap.controller import SwapFormController
from ..core.swap.constants import POINTER_DOWN
from ..core.swap.models import Interaction, SwapSide
from ..core.swap.selector import TokenSelector
from ..services.sessions import SessionRegistry, SwapSession, get_session_registry

router = APIRouter(prefix="/sessions")


class AmountRequest(BaseModel):
    text: str = Field(description="Raw amount text as typed, e.g. '1.5' or '2.'")


class SearchRequest(BaseModel):
    text: str = Field(default="", description="Search text for the token list")


class CurrencyRequest(BaseModel):
    currency: str = Field(description="Currency code from the catalog")


class InteractionRequest(BaseModel):
    target: str = Field(description="Path of the element interacted with, e.g. 'selector:from/search'")
    kind: Literal["pointerdown", "pointerover"] = Field(
        default=POINTER_DOWN,
        description="Pointer-down dismisses open selectors it lands outside of; pointer-over never does",
    )


def registry_dependency() -> SessionRegistry:
    return get_session_registry()


def _session(session_id: str, registry: SessionRegistry) -> SwapSession:
    structlog.contextvars.bind_contextvars(session_id=session_id)
    session = registry.get(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail=f"Unknown session '{session_id}'")
    return session


def _form(session: SwapSession) -> SwapFormController:
    try:
        return session.require_form()
    except RuntimeError as e:
        raise HTTPException(
            status_code=409,
            detail={"reason": str(e), "session": session.snapshot()},
        ) from e


def _result(session: SwapSession, accepted: bool, reason: str) -> Dict[str, Any]:
    if not accepted:
        raise HTTPException(status_code=409, detail={"reason": reason, "session": session.snapshot()})
    return {"accepted": True, "session": session.snapshot()}


def _selector(session: SwapSession, side: SwapSide) -> TokenSelector:
    return _form(session).selector(side)


@router.post("", status_code=201)
async def create_session(registry: SessionRegistry = Depends(registry_dependency)) -> Dict[str, Any]:
    """Open a swap session and load its catalog. A failed load is reported in the snapshot."""
    session = await registry.create()
    return session.snapshot()


@router.get("/{session_id}")
async def get_session(session_id: str, registry: SessionRegistry = Depends(registry_dependency)) -> Dict[str, Any]:
    return _session(session_id, registry).snapshot()


@router.delete("/{session_id}", status_code=204)
async def close_session(session_id: str, registry: SessionRegistry = Depends(registry_dependency)) -> None:
    if not registry.close(session_id):
        raise HTTPException(status_code=404, detail=f"Unknown session '{session_id}'")


@router.post("/{session_id}/reload")
async def reload_session(session_id: str, registry: SessionRegistry = Depends(registry_dependency)) -> Dict[str, Any]:
    session = _session(session_id, registry)
    await session.reload()
    return session.snapshot()


@router.post("/{session_id}/amount")
async def edit_amount(
    session_id: str,
    req: AmountRequest,
    registry: SessionRegistry = Depends(registry_dependency),
) -> Dict[str, Any]:
    session = _session(session_id, registry)
    accepted = _form(session).edit_amount(req.text)
    return _result(session, accepted, "Amount rejected")


@router.post("/{session_id}/swap-direction")
async def swap_direction(session_id: str, registry: SessionRegistry = Depends(registry_dependency)) -> Dict[str, Any]:
    session = _session(session_id, registry)
    accepted = _form(session).swap_direction()
    return _result(session, accepted, "Form is not accepting input")


@router.post("/{session_id}/submit")
async def submit(session_id: str, registry: SessionRegistry = Depends(registry_dependency)) -> Dict[str, Any]:
    """Validate and submit. Validation failures come back as field errors, not as HTTP errors."""
    session = _session(session_id, registry)
    form = _form(session)
    if not form.accepts_input:
        return _result(session, False, f"Swap already {form.phase.value}")
    accepted = form.submit()
    return {"accepted": accepted, "session": session.snapshot()}


@router.post("/{session_id}/interactions")
async def interaction(
    session_id: str,
    req: InteractionRequest,
    registry: SessionRegistry = Depends(registry_dependency),
) -> Dict[str, Any]:
    session = _session(session_id, registry)
    session.bus.dispatch(Interaction(target=req.target, kind=req.kind))
    return {"accepted": True, "session": session.snapshot()}


@router.post("/{session_id}/selectors/{side}/open")
async def open_selector(
    session_id: str,
    side: SwapSide,
    registry: SessionRegistry = Depends(registry_dependency),
) -> Dict[str, Any]:
    session = _session(session_id, registry)
    accepted = _selector(session, side).open()
    return _result(session, accepted, "Selector is disabled")


@router.post("/{session_id}/selectors/{side}/close")
async def close_selector(
    session_id: str,
    side: SwapSide,
    registry: SessionRegistry = Depends(registry_dependency),
) -> Dict[str, Any]:
    session = _session(session_id, registry)
    _selector(session, side).close()
    return {"accepted": True, "session": session.snapshot()}


@router.post("/{session_id}/selectors/{side}/search")
async def search_selector(
    session_id: str,
    side: SwapSide,
    req: SearchRequest,
    registry: SessionRegistry = Depends(registry_dependency),
) -> Dict[str, Any]:
    session = _session(session_id, registry)
    selector = _selector(session, side)
    if not selector.is_open:
        return _result(session, False, "Selector is closed")
    selector.search(req.text)
    return {"accepted": True, "session": session.snapshot()}


@router.post("/{session_id}/selectors/{side}/select")
async def select_token(
    session_id: str,
    side: SwapSide,
    req: CurrencyRequest,
    registry: SessionRegistry = Depends(registry_dependency),
) -> Dict[str, Any]:
    session = _session(session_id, registry)
    form = _form(session)
    token = form.catalog.get(req.currency)
    if token is None:
        raise HTTPException(status_code=404, detail=f"Unknown currency '{req.currency}'")
    accepted = form.select(side, token)
    return _result(session, accepted, f"{req.currency} cannot be selected for '{side.value}'")


@router.post("/{session_id}/selectors/{side}/icon-error")
async def icon_error(
    session_id: str,
    side: SwapSide,
    req: CurrencyRequest,
    registry: SessionRegistry = Depends(registry_dependency),
) -> Dict[str, Any]:
    """The client could not load an icon; render the fallback glyph from now on."""
    session = _session(session_id, registry)
    form = _form(session)
    token = form.catalog.get(req.currency)
    if token is not None:
        form.selector(side).icon_failed(token)
    return {"accepted": True, "session": session.snapshot()}
