"""Timing repair for operator-entered profiles.

Operator timing carries small imprecision, so nothing here raises on bad
numbers: intervals are clamped into the session or dropped.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from tdsgrade.tasting.model import DominanceEvent, TastingProfile, phase_for
from tdsgrade.util.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class NormalizedTiming:
    events: Tuple[DominanceEvent, ...]
    swallow_time: float
    total_duration: float
    dropped: int = 0

    @property
    def first_onset(self) -> float:
        if not self.events:
            return 0.0
        return min(ev.start for ev in self.events)


def effective_total(events: List[DominanceEvent], total_duration: float) -> float:
    """A non-positive total falls back to the last event end."""
    total = float(total_duration) if total_duration and total_duration > 0 else 0.0
    if total <= 0.0 and events:
        total = max(ev.end for ev in events)
    return total


def effective_swallow(swallow_time: Optional[float], total_duration: float) -> float:
    """Missing or zero swallow means swallow at the end; otherwise clamp into the session."""
    if swallow_time is None or swallow_time <= 0.0:
        return max(0.0, total_duration)
    return min(max(0.0, float(swallow_time)), max(0.0, total_duration))


def normalize_events(
    events: Iterable[DominanceEvent],
    total_duration: float,
    swallow_time: Optional[float] = None,
) -> NormalizedTiming:
    if isinstance(events, (str, bytes)) or not hasattr(events, "__iter__"):
        raise TypeError(f"events must be iterable, got {type(events).__name__}")
    raw = list(events)
    total = effective_total(raw, total_duration)
    swallow = effective_swallow(swallow_time, total)
    kept: List[DominanceEvent] = []
    dropped = 0
    for ev in raw:
        start = min(max(0.0, ev.start), total)
        end = min(max(0.0, ev.end), total)
        if end <= start:
            dropped += 1
            continue
        if start == ev.start and end == ev.end and ev.phase == phase_for(start, swallow):
            kept.append(ev)
        else:
            kept.append(DominanceEvent(ev.attribute, start, end, phase_for(start, swallow)))
    if dropped:
        logger.debug("Dropped %d interval(s) outside the session window", dropped)
    kept.sort(key=lambda ev: (ev.start, ev.end))
    return NormalizedTiming(events=tuple(kept), swallow_time=swallow, total_duration=total, dropped=dropped)


def normalize_profile(profile: TastingProfile) -> NormalizedTiming:
    return normalize_events(profile.events, profile.total_duration, profile.swallow_time)
