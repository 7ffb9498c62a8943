"""Numeric coercion for user- and store-supplied amounts"""

import math
from decimal import Decimal
from typing import Any, Optional


def parse_amount(value: Any) -> Optional[float]:
    """
    Coerce a number or numeric string to float.

    Returns None for missing, boolean, non-numeric and non-finite values
    (NaN, Infinity). Callers decide whether None is an error.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float, Decimal)):
        number = float(value)
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    else:
        return None

    if not math.isfinite(number):
        return None
    return number


def to_number(value: Any, fallback: float = 0.0) -> float:
    """Lenient coercion: invalid or non-finite input becomes the fallback"""
    number = parse_amount(value)
    return fallback if number is None else number


def round_money(value: float) -> float:
    return round(value, 2)
