"""Numeric helper functions used across scoring and curve logic."""

import math


def round_half_up(x: float, digits: int = 0) -> float:
    """Round with ties away from zero for positive inputs (0.5 -> 1, 2.5 -> 3)."""
    scale = 10.0 ** digits
    return math.floor(x * scale + 0.5) / scale


def clamp(x: float, low: float, high: float) -> float:
    """Return x limited to [low, high]."""
    return max(low, min(high, x))


def safe_ratio(num: float, den: float) -> float:
    """Return num / den, or 0.0 when the denominator is not positive."""
    if den <= 0.0:
        return 0.0
    return num / den
