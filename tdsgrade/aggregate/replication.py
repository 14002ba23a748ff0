"""Population TDS curve across replications of one sample.

Each replication is mapped onto a shared 131-slice axis: slices 0-100 are
percent of the time from first onset to swallow, slices 101-130 scale the
aftertaste to 30 extra points, so every swallow lands on slice 100.
Without a usable swallow marker a replication spans 0-100 only.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

import numpy as np

from tdsgrade.dsp.intervals import merged_by_attribute
from tdsgrade.dsp.smoothing import smooth_truncated
from tdsgrade.tasting.attributes import AttributeId
from tdsgrade.tasting.model import DominanceEvent, TastingProfile
from tdsgrade.util.logging import get_logger, log_duration

from .stats import DEFAULT_Z, chance_level, significance_level

logger = get_logger(__name__)

ORAL_SLICES = 100
AFTERTASTE_SLICES = 30
NUM_SLICES = ORAL_SLICES + AFTERTASTE_SLICES + 1
DEFAULT_SIGMA_SLICES = 3.0


@dataclass(frozen=True)
class Replication:
    id: str
    duration: float
    events: Tuple[DominanceEvent, ...]
    swallow_time: Optional[float] = None

    @classmethod
    def from_profile(cls, profile: TastingProfile) -> "Replication":
        return cls(
            id=profile.id,
            duration=float(profile.total_duration),
            events=tuple(profile.events),
            swallow_time=profile.swallow_time,
        )

    @property
    def first_start(self) -> float:
        return min((ev.start for ev in self.events), default=0.0)

    @property
    def has_valid_swallow(self) -> bool:
        swallow = self.swallow_time
        return swallow is not None and self.first_start < swallow < self.duration

    def slice_index(self, t: float) -> int:
        """Map a session time to its slice on the normalized axis."""
        t0 = self.first_start
        two_phase = self.has_valid_swallow
        if t <= t0:
            return 0
        if t >= self.duration:
            return NUM_SLICES - 1 if two_phase else ORAL_SLICES
        if two_phase:
            swallow = float(self.swallow_time)  # type: ignore[arg-type]
            if t < swallow:
                return int(math.floor((t - t0) / (swallow - t0) * ORAL_SLICES))
            ratio = (t - swallow) / (self.duration - swallow)
            return ORAL_SLICES + int(math.floor(ratio * AFTERTASTE_SLICES))
        return int(math.floor((t - t0) / (self.duration - t0) * ORAL_SLICES))

    def presence(self, attribute_ids: Sequence[AttributeId]) -> np.ndarray:
        """Boolean (NUM_SLICES, k) mask of slices each attribute covers."""
        mask = np.zeros((NUM_SLICES, len(attribute_ids)), dtype=bool)
        if self.duration <= 0.0 or not self.events:
            return mask
        last = NUM_SLICES - 1 if self.has_valid_swallow else ORAL_SLICES
        column = {attr: j for j, attr in enumerate(attribute_ids)}
        for attr, spans in merged_by_attribute(self.events).items():
            j = column.get(attr)
            if j is None:
                continue
            for start, end in spans:
                lo = min(max(self.slice_index(start), 0), last)
                hi = min(max(self.slice_index(end), 0), last)
                mask[lo : hi + 1, j] = True
        return mask


@dataclass(frozen=True)
class CurvePoint:
    time_percent: int
    rates: Dict[AttributeId, float]


@dataclass(frozen=True)
class AggregatedCurve:
    attributes: Tuple[AttributeId, ...]
    rates: np.ndarray  # smoothed, (NUM_SLICES, k)
    raw_rates: np.ndarray  # before smoothing
    chance_level: float
    significance_level: float
    replication_count: int

    @property
    def points(self) -> List[CurvePoint]:
        return [
            CurvePoint(i, {attr: float(self.rates[i, j]) for j, attr in enumerate(self.attributes)})
            for i in range(self.rates.shape[0])
        ]

    def rate(self, attribute: AttributeId, time_percent: int, *, smoothed: bool = True) -> float:
        matrix = self.rates if smoothed else self.raw_rates
        return float(matrix[time_percent, self.attributes.index(attribute)])

    def significant(self, attribute: AttributeId) -> np.ndarray:
        """Slices where the smoothed rate rises above the significance line."""
        return np.flatnonzero(self.rates[:, self.attributes.index(attribute)] > self.significance_level)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "curves": [
                {"timePercent": p.time_percent, "dominanceRates": {a.value: r for a, r in p.rates.items()}}
                for p in self.points
            ],
            "chanceLevel": self.chance_level,
            "significanceLevel": self.significance_level,
            "replicationCount": self.replication_count,
        }


def aggregate_replications(
    replications: Iterable[Replication],
    attribute_ids: Sequence[AttributeId],
    *,
    sigma: float = DEFAULT_SIGMA_SLICES,
    z_score: float = DEFAULT_Z,
) -> AggregatedCurve:
    if isinstance(replications, (str, bytes)) or not hasattr(replications, "__iter__"):
        raise TypeError(f"replications must be iterable, got {type(replications).__name__}")
    reps = list(replications)
    with log_duration(logger, "Aggregated replications", replications=len(reps)):
        return _aggregate(reps, tuple(attribute_ids), sigma, z_score)


def _aggregate(
    reps: List[Replication], attrs: Tuple[AttributeId, ...], sigma: float, z_score: float
) -> AggregatedCurve:
    n = len(reps)

    counts = np.zeros((NUM_SLICES, len(attrs)), dtype=np.float64)
    for rep in reps:
        if rep.duration <= 0.0:
            logger.debug("Replication has no duration; counted without presence", extra={"profile_id": rep.id})
            continue
        counts += rep.presence(attrs)

    raw = counts / n if n > 0 else counts
    smoothed = smooth_truncated(raw, sigma)
    p0 = chance_level(len(attrs))
    return AggregatedCurve(
        attributes=attrs,
        rates=smoothed,
        raw_rates=raw,
        chance_level=p0,
        significance_level=significance_level(p0, n, z_score),
        replication_count=n,
    )


def aggregate_profiles(
    profiles: Iterable[TastingProfile],
    attribute_ids: Sequence[AttributeId],
    *,
    sigma: float = DEFAULT_SIGMA_SLICES,
    z_score: float = DEFAULT_Z,
) -> AggregatedCurve:
    return aggregate_replications(
        [Replication.from_profile(p) for p in profiles],
        attribute_ids,
        sigma=sigma,
        z_score=z_score,
    )
