"""Interval arithmetic on (start, end) second pairs."""

from __future__ import annotations

from typing import Dict, Iterable, List, Tuple

from tdsgrade.tasting.attributes import AttributeId
from tdsgrade.tasting.model import DominanceEvent

Interval = Tuple[float, float]


def merge_intervals(intervals: Iterable[Interval]) -> List[Interval]:
    """Union overlapping or touching intervals; input order does not matter."""
    ordered = sorted((float(a), float(b)) for a, b in intervals if b > a)
    merged: List[Interval] = []
    for start, end in ordered:
        if merged and start <= merged[-1][1]:
            last_start, last_end = merged[-1]
            merged[-1] = (last_start, max(last_end, end))
        else:
            merged.append((start, end))
    return merged


def merged_by_attribute(events: Iterable[DominanceEvent]) -> Dict[AttributeId, List[Interval]]:
    grouped: Dict[AttributeId, List[Interval]] = {}
    for ev in events:
        grouped.setdefault(ev.attribute, []).append((ev.start, ev.end))
    return {attr: merge_intervals(spans) for attr, spans in grouped.items()}


def overlap(intervals: Iterable[Interval], low: float, high: float) -> float:
    """Seconds of ``intervals`` falling inside [low, high)."""
    if high <= low:
        return 0.0
    total = 0.0
    for start, end in intervals:
        lo = max(start, low)
        hi = min(end, high)
        if hi > lo:
            total += hi - lo
    return total
