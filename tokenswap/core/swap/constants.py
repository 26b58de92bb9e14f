"""Constants for the swap form."""

from __future__ import annotations

import re
from typing import Dict, Tuple

# Digits with at most one decimal point; partial input such as "1." is allowed.
AMOUNT_PATTERN = re.compile(r"\d*\.?\d*", re.ASCII)

RATE_DECIMALS = 6
AMOUNT_DECIMALS = 6
USD_DECIMALS = 2
PRICE_MIN_DECIMALS = 2
PRICE_MAX_DECIMALS = 6

FIELD_FROM_TOKEN = "from_token"
FIELD_TO_TOKEN = "to_token"
FIELD_FROM_AMOUNT = "from_amount"

POINTER_DOWN = "pointerdown"
POINTER_OVER = "pointerover"

FORM_FIELDS: Tuple[str, ...] = (FIELD_FROM_TOKEN, FIELD_TO_TOKEN, FIELD_FROM_AMOUNT)

ERROR_MESSAGES: Dict[str, str] = {
    "missing_from_token": "Please select a token to swap from",
    "missing_to_token": "Please select a token to swap to",
    "invalid_amount": "Please enter a valid amount greater than 0",
}

NO_TOKENS_FOUND = "No tokens found"
SELECT_TOKEN_PLACEHOLDER = "Select token"

SUBMIT_LABELS: Dict[str, str] = {
    "idle": "Swap Tokens",
    "validating": "Swap Tokens",
    "submitting": "Swapping...",
    "success": "Swap Successful!",
}
