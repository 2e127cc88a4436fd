"""Utility functions for orderdesk."""

import math
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum

CURRENCY_SYMBOLS = {
    "INR": "₹",
    "USD": "$",
    "EUR": "€",
}

_CENT = Decimal("0.01")


def round_money(value: float | None) -> float:
    """
    Round a monetary amount to 2 decimal places.

    Rounds half-up on the exact binary value of the float, the same
    result JavaScript's ``toFixed(2)`` gives, so totals agree with
    records produced by the console UI.
    """
    if value is None:
        return 0.0
    if not math.isfinite(value):
        return float(value)
    return float(Decimal(value).quantize(_CENT, rounding=ROUND_HALF_UP))


def as_number(value: float | int | None) -> float:
    """Treat a missing numeric field as zero."""
    return value if value is not None else 0


def status_value(status: object) -> str:
    """Lowercased wire string for a status, whether given as str or enum. None -> ''."""
    if status is None:
        return ""
    if isinstance(status, Enum):
        status = status.value
    return str(status).strip().lower()


def humanize(value: str) -> str:
    """
    Title-case a status string for display.

    "partially_refunded" -> "Partially Refunded"
    """
    words = value.replace("_", " ").replace("-", " ").split()
    return " ".join(word.capitalize() for word in words)


def format_currency(amount: float, currency: str = "INR") -> str:
    """
    Format an amount with its currency symbol and Indian digit grouping.

    format_currency(1234567.5) -> "₹12,34,567.50"
    """
    symbol = CURRENCY_SYMBOLS.get(currency.upper(), currency.upper() + " ")
    rounded = Decimal(str(round_money(abs(amount)))).quantize(_CENT)
    whole, fraction = f"{rounded:f}".split(".")

    # en-IN grouping: last three digits, then pairs
    if len(whole) > 3:
        head, tail = whole[:-3], whole[-3:]
        pairs = []
        while len(head) > 2:
            pairs.insert(0, head[-2:])
            head = head[:-2]
        if head:
            pairs.insert(0, head)
        whole = ",".join(pairs + [tail])

    sign = "-" if amount < 0 and rounded != 0 else ""
    return f"{sign}{symbol}{whole}.{fraction}"
