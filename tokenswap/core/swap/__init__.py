"""Swap form: exchange math, token selectors and the submit state machine."""

from .calculator import (
    convert,
    exchange_rate,
    format_price,
    format_rate,
    is_amount_text,
    parse_amount,
    usd_value,
)
from .controller import SwapFormController
from .interactions import InteractionBus
from .models import (
    FieldError,
    Interaction,
    SubmissionPhase,
    SwapFormState,
    SwapSide,
    TokenOption,
    ValidationErrorCode,
)
from .selector import SelectorState, TokenSelector, filter_tokens

__all__ = [
    "convert",
    "exchange_rate",
    "format_price",
    "format_rate",
    "is_amount_text",
    "parse_amount",
    "usd_value",
    "SwapFormController",
    "InteractionBus",
    "FieldError",
    "Interaction",
    "SubmissionPhase",
    "SwapFormState",
    "SwapSide",
    "TokenOption",
    "ValidationErrorCode",
    "SelectorState",
    "TokenSelector",
    "filter_tokens",
]
