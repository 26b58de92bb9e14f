"""Typed models used by the swap form."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

from ...services.token_catalog.models import IconView, Token
from .constants import ERROR_MESSAGES, POINTER_DOWN


class SubmissionPhase(str, Enum):
    """Submit state machine: idle -> validating -> submitting -> success -> idle."""
    IDLE = "idle"
    VALIDATING = "validating"   # synchronous gate, never observed between actions
    SUBMITTING = "submitting"
    SUCCESS = "success"


class SwapSide(str, Enum):
    FROM = "from"
    TO = "to"

    @property
    def opposite(self) -> "SwapSide":
        return SwapSide.TO if self is SwapSide.FROM else SwapSide.FROM


class ValidationErrorCode(str, Enum):
    MISSING_FROM_TOKEN = "missing_from_token"
    MISSING_TO_TOKEN = "missing_to_token"
    INVALID_AMOUNT = "invalid_amount"


@dataclass(frozen=True)
class FieldError:
    """A field-scoped validation failure. Represented as data, never raised."""
    code: ValidationErrorCode
    message: str

    @classmethod
    def of(cls, code: ValidationErrorCode) -> "FieldError":
        return cls(code=code, message=ERROR_MESSAGES[code.value])

    def to_dict(self) -> Dict[str, Any]:
        return {"code": self.code.value, "message": self.message}


@dataclass
class SwapFormState:
    """Mutable form state, changed only by the form controller."""

    from_token: Optional[Token] = None
    to_token: Optional[Token] = None
    from_amount_text: str = ""
    phase: SubmissionPhase = SubmissionPhase.IDLE
    errors: Dict[str, FieldError] = field(default_factory=dict)

    def token(self, side: SwapSide) -> Optional[Token]:
        return self.from_token if side is SwapSide.FROM else self.to_token

    def to_dict(self) -> Dict[str, Any]:
        return {
            "fromToken": self.from_token.to_dict() if self.from_token else None,
            "toToken": self.to_token.to_dict() if self.to_token else None,
            "fromAmount": self.from_amount_text,
            "phase": self.phase.value,
            "errors": {name: err.to_dict() for name, err in self.errors.items()},
        }


@dataclass(frozen=True)
class TokenOption:
    """One row of an open token dropdown."""
    token: Token
    selected: bool
    icon: IconView
    price_label: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "currency": self.token.currency,
            "price": self.token.price,
            "priceLabel": self.price_label,
            "selected": self.selected,
            "icon": self.icon.to_dict(),
        }


@dataclass(frozen=True)
class Interaction:
    """A pointer interaction (``pointerdown`` or ``pointerover``) aimed at ``target``.

    Targets are slash-separated paths, e.g. ``"selector:from/search"``.
    """
    target: str
    kind: str = POINTER_DOWN

    def within(self, scope: str) -> bool:
        return self.target == scope or self.target.startswith(scope + "/")
