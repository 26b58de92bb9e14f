"""
Exchange calculator.

Pure functions over tokens and amount text. Standard double precision
arithmetic; rounding only happens when values are formatted for display.
"""

from __future__ import annotations

import math
from typing import Optional

from ...services.token_catalog.models import Token
from .constants import (
    AMOUNT_DECIMALS,
    AMOUNT_PATTERN,
    PRICE_MAX_DECIMALS,
    PRICE_MIN_DECIMALS,
    RATE_DECIMALS,
    USD_DECIMALS,
)


def is_amount_text(text: str) -> bool:
    """True for text an amount field may hold, including partial input like ``"1."``."""
    return text == "" or bool(AMOUNT_PATTERN.fullmatch(text))


def parse_amount(text: Optional[str]) -> Optional[float]:
    """Parse amount text, returning None for anything that is not a number yet."""
    if not text or not AMOUNT_PATTERN.fullmatch(text):
        return None
    try:
        value = float(text)
    except ValueError:
        # "." alone matches the pattern
        return None
    if not math.isfinite(value):
        return None
    return value


def exchange_rate(from_token: Optional[Token], to_token: Optional[Token]) -> Optional[float]:
    """Units of ``to_token`` received per unit of ``from_token``."""
    if from_token is None or to_token is None:
        return None
    return from_token.price / to_token.price


def convert(amount_text: Optional[str], rate: Optional[float]) -> Optional[str]:
    """Converted amount fixed to 6 decimals, or None when it cannot be computed."""
    if rate is None:
        return None
    amount = parse_amount(amount_text)
    if amount is None or amount < 0:
        return None
    return f"{amount * rate:.{AMOUNT_DECIMALS}f}"


def format_rate(from_token: Token, to_token: Token, rate: Optional[float] = None) -> str:
    """``1 ETH = 0.062500 BTC``"""
    if rate is None:
        rate = exchange_rate(from_token, to_token)
    return f"1 {from_token.currency} = {rate:.{RATE_DECIMALS}f} {to_token.currency}"


def usd_value(amount_text: Optional[str], token: Optional[Token]) -> Optional[str]:
    """Approximate dollar value of an amount of ``token``, e.g. ``"≈ $1,250.00"``."""
    if token is None or not amount_text:
        return None
    amount = parse_amount(amount_text)
    if amount is None:
        return None
    return f"≈ ${amount * token.price:,.{USD_DECIMALS}f}"


def format_price(price: float) -> str:
    """Dollar price with grouping and 2 to 6 fraction digits."""
    text = f"{price:,.{PRICE_MAX_DECIMALS}f}"
    whole, _, fraction = text.partition(".")
    fraction = fraction.rstrip("0").ljust(PRICE_MIN_DECIMALS, "0")
    return f"${whole}.{fraction}"
