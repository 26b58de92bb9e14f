"""
Interaction bus.

Stands in for the document-level pointer listener: components that care about
clicks outside themselves subscribe while they are open and unsubscribe when
they close.
"""

from __future__ import annotations

import logging
from typing import Callable, List

from .constants import POINTER_DOWN, POINTER_OVER
from .models import Interaction

logger = logging.getLogger(__name__)

InteractionListener = Callable[[Interaction], None]


class InteractionBus:
    """Dispatches interactions to listeners in subscription order."""

    def __init__(self) -> None:
        self._listeners: List[InteractionListener] = []

    def subscribe(self, listener: InteractionListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def unsubscribe(self, listener: InteractionListener) -> None:
        self._listeners = [cb for cb in self._listeners if cb != listener]

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def dispatch(self, interaction: Interaction) -> None:
        # Listeners may unsubscribe while being notified
        for listener in list(self._listeners):
            listener(interaction)

    def pointer_down(self, target: str) -> None:
        self.dispatch(Interaction(target=target, kind=POINTER_DOWN))

    def hover(self, target: str) -> None:
        self.dispatch(Interaction(target=target, kind=POINTER_OVER))
