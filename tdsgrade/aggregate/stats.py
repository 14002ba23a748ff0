"""Reference lines for TDS population curves."""

from __future__ import annotations

import math

DEFAULT_Z = 1.645  # one-tailed 95%


def chance_level(num_attributes: int) -> float:
    """P0: dominance rate expected if every attribute were equally likely."""
    if num_attributes <= 0:
        return 0.0
    return 1.0 / num_attributes


def significance_level(p0: float, n: int, z: float = DEFAULT_Z) -> float:
    """Ps = P0 + z * sqrt(P0 (1 - P0) / n).

    With no replications nothing can be called significant, so the bound
    is pinned to 1.0 instead of dividing by zero.
    """
    if n <= 0:
        return 1.0
    p0 = min(max(p0, 0.0), 1.0)
    return p0 + z * math.sqrt(p0 * (1.0 - p0) / n)
