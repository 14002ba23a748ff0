"""Single-session "share of sensation" stream.

Every event spreads a Gaussian halo (sigma seconds, cut off at 3 sigma) around
its interval. At each sample time an attribute's share is its density over
the sum of all densities plus a fixed silence constant, so weak or absent
signal tapers toward zero instead of being inflated to 100%.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Iterator, List, Sequence

import numpy as np

from tdsgrade.tasting.attributes import AttributeId
from tdsgrade.tasting.model import DominanceEvent

from .kernels import CUTOFF_SIGMAS, gaussian, interval_distance

DEFAULT_RESOLUTION_S = 0.1
DEFAULT_SIGMA_S = 2.0
DEFAULT_SILENCE = 0.5


@dataclass(frozen=True)
class DensityPoint:
    time: float
    shares: Dict[AttributeId, float]


@dataclass(frozen=True)
class DensityStream:
    times: np.ndarray
    shares: np.ndarray  # (n_times, n_attributes)
    attributes: tuple

    def __len__(self) -> int:
        return int(self.times.size)

    def __iter__(self) -> Iterator[DensityPoint]:
        for i in range(len(self)):
            yield self.point(i)

    def point(self, index: int) -> DensityPoint:
        row = self.shares[index]
        return DensityPoint(
            time=float(self.times[index]),
            shares={attr: float(row[j]) for j, attr in enumerate(self.attributes)},
        )

    def series(self, attribute: AttributeId) -> np.ndarray:
        return self.shares[:, self.attributes.index(attribute)]

    def to_records(self) -> List[Dict[str, Any]]:
        records: List[Dict[str, Any]] = []
        for i in range(len(self)):
            record: Dict[str, Any] = {"time": float(self.times[i])}
            for j, attr in enumerate(self.attributes):
                record[attr.value] = float(self.shares[i, j])
            records.append(record)
        return records


def sample_times(total_duration: float, resolution: float) -> np.ndarray:
    """Sample grid 0, r, 2r, ... up to and including total_duration."""
    if total_duration <= 0 or resolution <= 0:
        return np.zeros(0, dtype=np.float64)
    count = int(math.floor(total_duration / resolution + 1e-9)) + 1
    decimals = max(0, -int(math.floor(math.log10(resolution)))) + 1
    return np.round(np.arange(count, dtype=np.float64) * resolution, decimals)


def generate_stream(
    events: Iterable[DominanceEvent],
    total_duration: float,
    attribute_ids: Sequence[AttributeId],
    *,
    resolution: float = DEFAULT_RESOLUTION_S,
    sigma: float = DEFAULT_SIGMA_S,
    silence: float = DEFAULT_SILENCE,
) -> DensityStream:
    if isinstance(events, (str, bytes)) or not hasattr(events, "__iter__"):
        raise TypeError(f"events must be iterable, got {type(events).__name__}")
    event_list = [ev for ev in events if ev.end > ev.start]
    attrs = tuple(attribute_ids)
    times = sample_times(float(total_duration), float(resolution))
    if not event_list or times.size == 0:
        return DensityStream(np.zeros(0, dtype=np.float64), np.zeros((0, len(attrs)), dtype=np.float64), attrs)

    column = {attr: j for j, attr in enumerate(attrs)}
    densities = np.zeros((times.size, len(attrs)), dtype=np.float64)
    total_density = np.zeros(times.size, dtype=np.float64)
    radius = CUTOFF_SIGMAS * sigma
    for ev in event_list:
        dist = interval_distance(times, ev.start, ev.end)
        contrib = np.where(dist <= radius, gaussian(dist, sigma), 0.0)
        total_density += contrib
        j = column.get(ev.attribute)
        if j is not None:
            densities[:, j] += contrib

    denominator = total_density + float(silence)
    # zero only when silence == 0 and no event is in range
    safe = np.where(denominator > 0.0, denominator, 1.0)
    shares = np.where(denominator[:, None] > 0.0, densities / safe[:, None], 0.0)
    return DensityStream(times=times, shares=shares, attributes=attrs)
