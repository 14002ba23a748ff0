"""Attack / body / finish zone split of a normalized profile.

All times are re-based so the first event onset is t=0. The oral window
runs from the onset to the swallow marker; its first ``attack_fraction``
is the attack, the rest is the body. Everything after the swallow is the
finish.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List

from tdsgrade.dsp.intervals import Interval, merged_by_attribute, overlap
from tdsgrade.tasting.attributes import AttributeId
from tdsgrade.tasting.normalize import NormalizedTiming

DEFAULT_ATTACK_FRACTION = 0.2


@dataclass(frozen=True)
class ZoneWindows:
    first_onset: float
    attack_end: float
    swallow: float
    total: float

    @property
    def attack_s(self) -> float:
        return self.attack_end

    @property
    def body_s(self) -> float:
        return max(0.0, self.swallow - self.attack_end)

    @property
    def oral_s(self) -> float:
        return self.swallow

    @property
    def finish_s(self) -> float:
        return max(0.0, self.total - self.swallow)


@dataclass
class AttributeZones:
    attack: float = 0.0
    body: float = 0.0
    finish: float = 0.0

    @property
    def melting(self) -> float:
        return self.attack + self.body

    @property
    def covered(self) -> float:
        return self.melting + self.finish


def zone_windows(timing: NormalizedTiming, attack_fraction: float = DEFAULT_ATTACK_FRACTION) -> ZoneWindows:
    onset = timing.first_onset
    swallow = max(0.0, timing.swallow_time - onset)
    total = max(swallow, timing.total_duration - onset)
    return ZoneWindows(
        first_onset=onset,
        attack_end=swallow * attack_fraction,
        swallow=swallow,
        total=total,
    )


def _rebased(intervals: Iterable[Interval], onset: float) -> List[Interval]:
    return [(max(0.0, a - onset), max(0.0, b - onset)) for a, b in intervals]


def split_by_zone(timing: NormalizedTiming, windows: ZoneWindows) -> Dict[AttributeId, AttributeZones]:
    """Covered seconds per attribute and zone, from merged intervals."""
    zones: Dict[AttributeId, AttributeZones] = {}
    for attr, spans in merged_by_attribute(timing.events).items():
        shifted = _rebased(spans, windows.first_onset)
        zones[attr] = AttributeZones(
            attack=overlap(shifted, 0.0, windows.attack_end),
            body=overlap(shifted, windows.attack_end, windows.swallow),
            finish=overlap(shifted, windows.swallow, windows.total),
        )
    return zones
