"""
Numeric normalization for OCR output.

Turns matched tokens such as "₹4,500", "Rs. 1,200.50" or "-INR 300" into
Decimal values, and Decimal values back into the canonical strings stored
on extracted samples.

Design Decisions:
- Currency prefixes are stripped explicitly, never guessed
- Thousands separators are commas (Indian and Western grouping both work)
- Canonical strings drop trailing zeros: Decimal("4500.00") -> "4500"
"""

import logging
import re
from decimal import Decimal, InvalidOperation

logger = logging.getLogger(__name__)


# Longest first so "Rs." is not left behind as "."
CURRENCY_PREFIXES = ["INR", "Rs.", "Rs", "₹"]

_CURRENCY_RE = re.compile(
    "|".join(re.escape(prefix) for prefix in CURRENCY_PREFIXES),
    re.IGNORECASE,
)


def parse_amount(text: str) -> Decimal | None:
    """
    Parse a currency or plain numeric token.

    The sign is dropped: deductions such as "-₹1,200" are shown negative on
    screenshots but stored as positive amounts.

    Args:
        text: Raw matched token

    Returns:
        Non-negative Decimal, or None if the token is not numeric
    """
    cleaned = _CURRENCY_RE.sub("", text)
    cleaned = cleaned.replace(",", "").replace(" ", "").strip().lstrip("-")

    if not cleaned or cleaned == ".":
        return None

    try:
        value = Decimal(cleaned)
    except InvalidOperation:
        logger.debug(f"Failed to parse amount '{text}'")
        return None

    return value if value.is_finite() else None


def format_number(value: Decimal) -> str:
    """Canonical string for a parsed value: no exponent, no trailing zeros."""
    if value == value.to_integral_value():
        return str(int(value))
    return format(value.normalize(), "f")
