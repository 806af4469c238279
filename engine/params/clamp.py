"""
Saturation helpers for interactive, often malformed, editing input.
Nothing here raises: bad values fall back instead.
"""
import math
from typing import Optional


def clamp(value: float, lo: float, hi: float) -> float:
    """Saturate value into [lo, hi]."""
    return min(hi, max(lo, value))


def clamp_if_bounds(
    value: float,
    min: Optional[float] = None,
    max: Optional[float] = None,
) -> float:
    """
    Clamp value to [min, max] when bounds are not None.
    If both are None, returns value unchanged.
    """
    try:
        v = float(value)
    except (TypeError, ValueError):
        return value
    if min is not None and v < min:
        return min
    if max is not None and v > max:
        return max
    return v


def finite_or(value, default: float) -> float:
    """float(value) when it parses to a finite number, else default."""
    try:
        v = float(value)
    except (TypeError, ValueError):
        return default
    return v if math.isfinite(v) else default
