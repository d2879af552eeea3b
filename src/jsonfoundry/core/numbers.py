"""Floating-point helpers shared by the numeric generators and the enum filters."""

from __future__ import annotations

import math
from decimal import Decimal

INF = float("inf")
# Relative slack for accumulated rounding error in `multipleOf` checks
RELATIVE_TOLERANCE = 1e-15


def next_up(value: float) -> float:
    return math.nextafter(value, INF)


def next_down(value: float) -> float:
    return math.nextafter(value, -INF)


def ulp(value: float) -> float:
    return math.ulp(value)


def is_negative_zero(value: float | int) -> bool:
    return isinstance(value, float) and value == 0 and math.copysign(1.0, value) < 0


def is_finite_number(value: object) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return not isinstance(value, float) or math.isfinite(value)


def is_multiple_of(value: float | int, step: float | int) -> bool:
    """Check `multipleOf` with an ULP-scaled tolerance.

    Tolerates IEEE-754 rounding so that `0.1 + 0.2` counts as a multiple of `0.1`.
    """
    if isinstance(value, int) and isinstance(step, int):
        return value % step == 0
    quotient = value / step
    if not math.isfinite(quotient):
        return False
    k = round(quotient)
    tolerance = ulp(value) + abs(k) * ulp(step) + abs(value) * RELATIVE_TOLERANCE
    return abs(value - k * step) <= tolerance


def is_multiple_of_strict(value: float | int, step: float | int) -> bool:
    """Check `multipleOf` the way strict external validators do: the quotient must be an exact integer."""
    if isinstance(value, int) and isinstance(step, int):
        return value % step == 0
    try:
        quotient = value / step
    except OverflowError:
        return False
    if not math.isfinite(quotient):
        return False
    return int(quotient) == quotient


def decimal_places(value: float | int) -> int:
    """Number of fractional decimal digits in the shortest representation of `value`."""
    if isinstance(value, int):
        return 0
    exponent = Decimal(repr(value)).normalize().as_tuple().exponent
    if not isinstance(exponent, int):
        return 0
    return max(0, -exponent)


def as_number(value: float) -> int | float:
    """Turn integral floats into `int` so they serialize without a fractional part."""
    if math.isfinite(value) and value.is_integer() and abs(value) < 2**53:
        return int(value)
    return value
