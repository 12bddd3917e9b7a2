"""
Display helpers for derived checkout values
"""

import math
from decimal import Decimal

EXPIRED_TEXT = "Expired"


def format_remaining(seconds: float) -> str:
    """Format the time left on a checkout.

    Partial seconds round up so "Expired" is never shown before the deadline.

    Examples:
        >>> format_remaining(1799.2)
        '30:00'
        >>> format_remaining(3725)
        '1:02:05'
        >>> format_remaining(0)
        'Expired'
    """
    if seconds <= 0:
        return EXPIRED_TEXT
    total = math.ceil(seconds)
    hours, rest = divmod(total, 3600)
    minutes, secs = divmod(rest, 60)
    if hours:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes:02d}:{secs:02d}"


def format_amount(amount: int, decimals: int = 6) -> str:
    """Format a base-unit amount with the asset's decimals, e.g. 1500000 -> '1.5'"""
    if decimals <= 0:
        return str(amount)
    value = Decimal(amount).scaleb(-decimals)
    text = f"{value:.{decimals}f}".rstrip("0").rstrip(".")
    return text or "0"
