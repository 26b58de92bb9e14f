"""
Searchable token selector.

Each selector owns a small :class:`SelectorState` record. State changes go
through the pure transition functions below; the :class:`TokenSelector`
wires them to the catalog, the opposite side's exclusion and the interaction
bus used to close the dropdown on outside clicks.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Any, Callable, Dict, List, Optional, Sequence

from ...services.token_catalog.icons import IconResolver
from ...services.token_catalog.models import Token
from .calculator import format_price
from .constants import NO_TOKENS_FOUND, POINTER_DOWN, SELECT_TOKEN_PLACEHOLDER
from .interactions import InteractionBus
from .models import Interaction, TokenOption

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SelectorState:
    open: bool = False
    search_text: str = ""


CLOSED = SelectorState()


def opened(state: SelectorState, disabled: bool = False) -> SelectorState:
    if disabled:
        return state
    return replace(state, open=True)


def closed(state: SelectorState) -> SelectorState:
    return CLOSED


def toggled(state: SelectorState, disabled: bool = False) -> SelectorState:
    if state.open:
        return closed(state)
    return opened(state, disabled)


def searched(state: SelectorState, text: str) -> SelectorState:
    if not state.open:
        return state
    return replace(state, search_text=text)


def filter_tokens(
    catalog: Sequence[Token],
    search_text: str = "",
    exclude_currency: Optional[str] = None,
) -> List[Token]:
    """Tokens whose currency contains ``search_text`` (case-insensitive),
    never including ``exclude_currency``."""
    needle = (search_text or "").lower()
    return [
        token
        for token in catalog
        if needle in token.currency.lower() and token.currency != exclude_currency
    ]


class TokenSelector:
    """
    One side's token picker.

    Args:
        scope: Interaction target path this selector occupies. Interactions
            targeting the scope or anything below it are inside.
        catalog: Callable returning the current catalog.
        on_select: Invoked with the chosen token.
        exclude: Callable returning the opposite side's token, if any.
        disabled: Callable reporting whether the selector is disabled.
        bus: Interaction bus used to detect outside clicks.
        icons: Shared icon resolver.
    """

    def __init__(
        self,
        scope: str,
        catalog: Callable[[], Sequence[Token]],
        on_select: Callable[[Token], None],
        exclude: Callable[[], Optional[Token]] = lambda: None,
        disabled: Callable[[], bool] = lambda: False,
        bus: Optional[InteractionBus] = None,
        icons: Optional[IconResolver] = None,
        selected: Callable[[], Optional[Token]] = lambda: None,
    ) -> None:
        self.scope = scope
        self.state = CLOSED
        self._catalog = catalog
        self._on_select = on_select
        self._exclude = exclude
        self._disabled = disabled
        self._selected = selected
        self._bus = bus or InteractionBus()
        self._icons = icons or IconResolver()

    # --- state -----------------------------------------------------------

    @property
    def is_open(self) -> bool:
        return self.state.open

    @property
    def search_text(self) -> str:
        return self.state.search_text

    @property
    def disabled(self) -> bool:
        return self._disabled()

    @property
    def exclude_currency(self) -> Optional[str]:
        excluded = self._exclude()
        return excluded.currency if excluded else None

    def _transition(self, new_state: SelectorState) -> None:
        was_open = self.state.open
        self.state = new_state
        if new_state.open and not was_open:
            self._bus.subscribe(self._on_interaction)
        elif was_open and not new_state.open:
            self._bus.unsubscribe(self._on_interaction)

    # --- actions ---------------------------------------------------------

    def open(self) -> bool:
        """Open the dropdown. Refused while disabled."""
        self._transition(opened(self.state, self.disabled))
        return self.state.open

    def close(self) -> None:
        self._transition(closed(self.state))

    def toggle(self) -> bool:
        self._transition(toggled(self.state, self.disabled))
        return self.state.open

    def search(self, text: str) -> None:
        self._transition(searched(self.state, text))

    def select(self, token: Token) -> bool:
        """Choose ``token``; refused while disabled or for the opposite side's currency."""
        if self.disabled:
            return False
        if token not in self._catalog():
            return False
        if token.currency == self.exclude_currency:
            logger.debug(f"{self.scope}: {token.currency} is selected on the other side")
            return False
        self._on_select(token)
        self.close()
        return True

    def select_currency(self, currency: str) -> bool:
        token = next((t for t in self._catalog() if t.currency == currency), None)
        if token is None:
            raise KeyError(currency)
        return self.select(token)

    def icon_failed(self, token: Token) -> None:
        """Renderer reports that ``token``'s icon could not be loaded."""
        self._icons.mark_failed(token)

    def _on_interaction(self, interaction: Interaction) -> None:
        # Only a pointer-down outside the selector dismisses it
        if interaction.kind == POINTER_DOWN and not interaction.within(self.scope):
            self.close()

    # --- derived ---------------------------------------------------------

    def visible_tokens(self) -> List[Token]:
        return filter_tokens(self._catalog(), self.state.search_text, self.exclude_currency)

    def options(self) -> List[TokenOption]:
        if not self.state.open:
            return []
        selected = self._selected()
        selected_currency = selected.currency if selected else None
        return [
            TokenOption(
                token=token,
                selected=token.currency == selected_currency,
                icon=self._icons.render(token),
                price_label=format_price(token.price),
            )
            for token in self.visible_tokens()
        ]

    def to_dict(self) -> Dict[str, Any]:
        selected = self._selected()
        options = self.options()
        return {
            "open": self.state.open,
            "search": self.state.search_text,
            "disabled": self.disabled,
            "selected": selected.to_dict() if selected else None,
            "selectedIcon": self._icons.render(selected).to_dict() if selected else None,
            "placeholder": None if selected else SELECT_TOKEN_PLACEHOLDER,
            "options": [o.to_dict() for o in options],
            "empty": NO_TOKENS_FOUND if self.state.open and not options else None,
        }
