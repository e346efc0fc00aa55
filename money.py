"""
Project: SharePlate Canteen Backend
Description:
Lenient numeric coercion for cart amounts and quantities. Anything that is
missing or unusable counts as zero instead of raising.
"""

import math


def _finite(value):
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def clamp_non_negative(value):
    return max(0.0, value)


def as_amount(value) -> float:
    """Return a non-negative float for ``value``, or 0.0."""
    number = _finite(value)
    if number is None:
        return 0.0
    return clamp_non_negative(number)


def as_quantity(value) -> int:
    """Return a non-negative whole quantity for ``value``, or 0."""
    number = _finite(value)
    if number is None or number < 0:
        return 0
    return int(number)
