"""Price acceptance and formatting shared by all providers."""
import math
from decimal import Decimal
from typing import Any


def parse_price(value: Any) -> float | None:
    """Accept only finite, strictly positive JSON numbers."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    price = float(value)
    if not math.isfinite(price) or price <= 0:
        return None
    return price


def format_price(price: float) -> str:
    """Plain decimal string: 178.25 -> "178.25", 100.0 -> "100", 1e-05 -> "0.00001"."""
    text = format(Decimal(repr(price)), "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def latest_close(closes: Any) -> float | None:
    """Most recent valid sample of an intraday close series (gaps are null)."""
    if not isinstance(closes, list):
        return None
    for value in reversed(closes):
        price = parse_price(value)
        if price is not None:
            return price
    return None
