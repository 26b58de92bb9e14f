"""
Swap form controller.

Owns the form state and is its only writer. User actions arrive one at a time
from the surface's event dispatch; the only asynchronous work is the
simulated settlement scheduled by :meth:`SwapFormController.submit`, which is
a placeholder for a real settlement call and makes no timing guarantee.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Dict, List, Optional

import structlog

from ...config import settings
from ...services.token_catalog.icons import IconResolver
from ...services.token_catalog.models import Token, TokenCatalog
from .calculator import convert, exchange_rate, format_rate, is_amount_text, parse_amount, usd_value
from .constants import FIELD_FROM_AMOUNT, FIELD_FROM_TOKEN, FIELD_TO_TOKEN, SUBMIT_LABELS
from .interactions import InteractionBus
from .models import FieldError, SubmissionPhase, SwapFormState, SwapSide, ValidationErrorCode
from .selector import TokenSelector

logger = logging.getLogger(__name__)
_slog = structlog.stdlib.get_logger("swap.form")

FormListener = Callable[["SwapFormController"], None]


class SwapFormController:
    """
    State machine behind the swap form.

    ``idle -> validating -> submitting -> success -> idle``. Validation is
    synchronous; a valid submit schedules one settlement completion that
    cannot be cancelled by the user.

    Args:
        catalog: Tokens available to both selectors.
        submit_latency: Simulated settlement delay in seconds.
        success_display: Seconds the success state lasts before resetting.
        bus: Interaction bus shared with the surface.
        icons: Icon resolver shared by both selectors.
    """

    def __init__(
        self,
        catalog: TokenCatalog,
        submit_latency: Optional[float] = None,
        success_display: Optional[float] = None,
        bus: Optional[InteractionBus] = None,
        icons: Optional[IconResolver] = None,
    ) -> None:
        self.state = SwapFormState()
        self.bus = bus or InteractionBus()
        self.icons = icons or IconResolver()
        self._catalog = catalog
        self._submit_latency = settings.submit_latency_seconds if submit_latency is None else submit_latency
        self._success_display = settings.success_display_seconds if success_display is None else success_display
        self._listeners: List[FormListener] = []
        self._pending: Optional[asyncio.Task] = None
        self._deferred_catalog: Optional[TokenCatalog] = None
        self._disposed = False

        self.from_selector = self._make_selector(SwapSide.FROM)
        self.to_selector = self._make_selector(SwapSide.TO)

    def _make_selector(self, side: SwapSide) -> TokenSelector:
        return TokenSelector(
            scope=f"selector:{side.value}",
            catalog=lambda: self._catalog,
            on_select=lambda token: self._set_token(side, token),
            exclude=lambda: self.state.token(side.opposite),
            disabled=lambda: not self.accepts_input,
            bus=self.bus,
            icons=self.icons,
            selected=lambda: self.state.token(side),
        )

    # --- observation -----------------------------------------------------

    def subscribe(self, listener: FormListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def unsubscribe(self, listener: FormListener) -> None:
        self._listeners = [cb for cb in self._listeners if cb != listener]

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)

    @property
    def catalog(self) -> TokenCatalog:
        return self._catalog

    @property
    def phase(self) -> SubmissionPhase:
        return self.state.phase

    @property
    def errors(self) -> Dict[str, FieldError]:
        return dict(self.state.errors)

    @property
    def disposed(self) -> bool:
        return self._disposed

    @property
    def accepts_input(self) -> bool:
        return not self._disposed and self.state.phase is SubmissionPhase.IDLE

    def selector(self, side: SwapSide) -> TokenSelector:
        return self.from_selector if side is SwapSide.FROM else self.to_selector

    # --- derived values --------------------------------------------------

    @property
    def rate(self) -> Optional[float]:
        return exchange_rate(self.state.from_token, self.state.to_token)

    @property
    def receive_amount(self) -> Optional[str]:
        return convert(self.state.from_amount_text, self.rate)

    @property
    def rate_label(self) -> Optional[str]:
        rate = self.rate
        if rate is None:
            return None
        return format_rate(self.state.from_token, self.state.to_token, rate)

    @property
    def pay_usd(self) -> Optional[str]:
        return usd_value(self.state.from_amount_text, self.state.from_token)

    @property
    def receive_usd(self) -> Optional[str]:
        return usd_value(self.receive_amount, self.state.to_token)

    # --- actions ---------------------------------------------------------

    def edit_amount(self, text: str) -> bool:
        """Replace the amount text. Rejects text outside the amount lexicon."""
        if not self.accepts_input or not is_amount_text(text):
            return False
        self.state.from_amount_text = text
        self.state.errors.pop(FIELD_FROM_AMOUNT, None)
        self._notify()
        return True

    def select_from(self, token: Token) -> bool:
        return self.select(SwapSide.FROM, token)

    def select_to(self, token: Token) -> bool:
        return self.select(SwapSide.TO, token)

    def select(self, side: SwapSide, token: Token) -> bool:
        if not self.accepts_input:
            return False
        return self.selector(side).select(token)

    def _set_token(self, side: SwapSide, token: Token) -> None:
        if side is SwapSide.FROM:
            self.state.from_token = token
            self.state.errors.pop(FIELD_FROM_TOKEN, None)
        else:
            self.state.to_token = token
            self.state.errors.pop(FIELD_TO_TOKEN, None)
        self._notify()

    def swap_direction(self) -> bool:
        """Exchange the two tokens. The amount text stays as typed."""
        if not self.accepts_input:
            return False
        self.state.from_token, self.state.to_token = self.state.to_token, self.state.from_token
        self.state.errors.clear()
        self._notify()
        return True

    def validate(self) -> Dict[str, FieldError]:
        errors: Dict[str, FieldError] = {}
        if self.state.from_token is None:
            errors[FIELD_FROM_TOKEN] = FieldError.of(ValidationErrorCode.MISSING_FROM_TOKEN)
        if self.state.to_token is None:
            errors[FIELD_TO_TOKEN] = FieldError.of(ValidationErrorCode.MISSING_TO_TOKEN)
        amount = parse_amount(self.state.from_amount_text)
        if amount is None or amount <= 0:
            errors[FIELD_FROM_AMOUNT] = FieldError.of(ValidationErrorCode.INVALID_AMOUNT)
        return errors

    def submit(self) -> bool:
        """
        Validate and start the simulated settlement.

        Returns:
            True if the swap entered ``submitting``. False when the form was
            not idle (no-op) or validation failed (errors are populated).
        """
        if not self.accepts_input:
            return False

        self.state.phase = SubmissionPhase.VALIDATING
        errors = self.validate()
        if errors:
            self.state.errors = errors
            self.state.phase = SubmissionPhase.IDLE
            self._notify()
            return False

        self.state.errors = {}
        self.state.phase = SubmissionPhase.SUBMITTING
        self.from_selector.close()
        self.to_selector.close()
        swap = {
            "from_currency": self.state.from_token.currency,
            "to_currency": self.state.to_token.currency,
            "amount": self.state.from_amount_text,
            "receive": self.receive_amount,
        }
        _slog.info("swap_submitted", **swap)
        self._pending = asyncio.get_running_loop().create_task(self._settle(swap))
        self._notify()
        return True

    async def _settle(self, swap: Dict[str, Any]) -> None:
        await asyncio.sleep(self._submit_latency)
        if self._disposed:
            return
        self.state.phase = SubmissionPhase.SUCCESS
        _slog.info("swap_succeeded", **swap)
        self._notify()

        await asyncio.sleep(self._success_display)
        if self._disposed:
            return
        self.state.from_amount_text = ""
        self.state.phase = SubmissionPhase.IDLE
        if self._deferred_catalog is not None:
            catalog, self._deferred_catalog = self._deferred_catalog, None
            self._apply_catalog(catalog)
        self._notify()

    async def settled(self) -> None:
        """Wait for the pending settlement, if any, to finish."""
        if self._pending is not None and not self._pending.done():
            await asyncio.wait({self._pending})

    def rebind(self, catalog: TokenCatalog) -> None:
        """Switch to a freshly built catalog, keeping selections that still exist.

        Outside ``idle`` the submitted selections are frozen, so the catalog is
        held back and applied when the form returns to ``idle``.
        """
        if self.state.phase is not SubmissionPhase.IDLE:
            self._deferred_catalog = catalog
            logger.debug(f"Catalog rebind deferred while {self.state.phase.value}")
            return
        self._apply_catalog(catalog)
        self._notify()

    @property
    def has_deferred_catalog(self) -> bool:
        return self._deferred_catalog is not None

    def _apply_catalog(self, catalog: TokenCatalog) -> None:
        self._catalog = catalog
        for side in (SwapSide.FROM, SwapSide.TO):
            current = self.state.token(side)
            if current is None:
                continue
            fresh = catalog.get(current.currency)
            if side is SwapSide.FROM:
                self.state.from_token = fresh
            else:
                self.state.to_token = fresh
            if fresh is None:
                logger.info(f"{current.currency} is no longer in the catalog, clearing {side.value} token")

    def dispose(self) -> None:
        """Tear the form down. Later completions leave the state untouched."""
        if self._disposed:
            return
        self._disposed = True
        self.from_selector.close()
        self.to_selector.close()
        if self._pending is not None and not self._pending.done():
            self._pending.cancel()
        self._listeners.clear()

    # --- rendering -------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        phase = self.state.phase
        return {
            **self.state.to_dict(),
            "receiveAmount": self.receive_amount,
            "rate": self.rate,
            "rateLabel": self.rate_label,
            "payUsd": self.pay_usd,
            "receiveUsd": self.receive_usd,
            "submitLabel": SUBMIT_LABELS[phase.value],
            "submitDisabled": phase in (SubmissionPhase.SUBMITTING, SubmissionPhase.SUCCESS),
            "inputsDisabled": not self.accepts_input,
            "selectors": {
                SwapSide.FROM.value: self.from_selector.to_dict(),
                SwapSide.TO.value: self.to_selector.to_dict(),
            },
        }
