"""Duration-percent to score calibration curves.

A curve is an ordered list of bands. The first band whose upper bound
admits the duration percent decides the score, either flat or ramped
linearly across ``ramp_span`` and rounded half-up. Breakpoints are
calibration data and live in the product configuration.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple

import numpy as np

from tdsgrade.util.errors import ConfigError
from tdsgrade.util.math import clamp, round_half_up

MAX_SCORE = 10


@dataclass(frozen=True)
class ScoreBand:
    upper: float
    score: int
    ramp_to: Optional[int] = None
    ramp_span: Optional[Tuple[float, float]] = None

    def admits(self, pct: float) -> bool:
        return pct <= self.upper

    def evaluate(self, pct: float) -> int:
        if self.ramp_to is None or self.ramp_span is None:
            return int(self.score)
        lo, hi = self.ramp_span
        if hi <= lo:
            return int(self.ramp_to)
        frac = (clamp(pct, lo, hi) - lo) / (hi - lo)
        return int(round_half_up(self.score + frac * (self.ramp_to - self.score)))

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"upper": None if self.upper == float("inf") else self.upper, "score": self.score}
        if self.ramp_to is not None:
            out["ramp_to"] = self.ramp_to
            out["ramp_span"] = list(self.ramp_span) if self.ramp_span else None
        return out

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "ScoreBand":
        try:
            upper = payload.get("upper")
            span = payload.get("ramp_span")
            return cls(
                upper=float("inf") if upper is None else float(upper),
                score=int(payload["score"]),
                ramp_to=int(payload["ramp_to"]) if payload.get("ramp_to") is not None else None,
                ramp_span=(float(span[0]), float(span[1])) if span else None,
            )
        except (KeyError, TypeError, ValueError, IndexError) as exc:
            raise ConfigError(f"invalid score band {payload!r}: {exc}") from exc


@dataclass(frozen=True)
class ScoreCurve:
    bands: Tuple[ScoreBand, ...]

    def __call__(self, duration_percent: float) -> int:
        pct = clamp(float(duration_percent), 0.0, 100.0)
        for band in self.bands:
            if band.admits(pct):
                return int(clamp(band.evaluate(pct), 0, MAX_SCORE))
        return int(clamp(self.bands[-1].evaluate(pct), 0, MAX_SCORE)) if self.bands else 0

    def validate(self, name: str = "curve") -> None:
        """Reject curves that are unordered, leave zero unscored, or decrease anywhere."""
        if not self.bands:
            raise ConfigError(f"{name}: no bands")
        uppers = [band.upper for band in self.bands]
        if any(b < a for a, b in zip(uppers, uppers[1:])):
            raise ConfigError(f"{name}: band upper bounds must be ascending")
        if self(0.0) != 0:
            raise ConfigError(f"{name}: zero duration must score 0")
        grid = np.linspace(0.0, 100.0, 1001)
        values = np.array([self(float(p)) for p in grid])
        if np.any(np.diff(values) < 0):
            raise ConfigError(f"{name}: scores must not decrease as duration grows")

    def to_list(self) -> List[Dict[str, Any]]:
        return [band.to_dict() for band in self.bands]

    @classmethod
    def from_list(cls, payload: Sequence[Dict[str, Any]], name: str = "curve") -> "ScoreCurve":
        curve = cls(tuple(ScoreBand.from_dict(item) for item in payload))
        curve.validate(name)
        return curve


INF = float("inf")

# Reference anchors: trace (<5%) -> 1-2, distinct (10-15%) -> 3-5, dominant (>30%) -> 7+.
CORE_CURVE = ScoreCurve(
    (
        ScoreBand(0.0, 0),
        ScoreBand(2.5, 1),
        ScoreBand(5.0, 2),
        ScoreBand(10.0, 2, ramp_to=3, ramp_span=(5.0, 10.0)),
        ScoreBand(15.0, 3, ramp_to=5, ramp_span=(10.0, 15.0)),
        ScoreBand(30.0, 5, ramp_to=7, ramp_span=(15.0, 30.0)),
        ScoreBand(INF, 7, ramp_to=10, ramp_span=(30.0, 80.0)),
    )
)

EXPERT_CORE_CURVE = ScoreCurve(
    (
        ScoreBand(0.0, 0),
        ScoreBand(2.0, 1),
        ScoreBand(5.0, 2),
        ScoreBand(10.0, 2, ramp_to=3, ramp_span=(5.0, 10.0)),
        ScoreBand(15.0, 3, ramp_to=5, ramp_span=(10.0, 15.0)),
        ScoreBand(30.0, 5, ramp_to=7, ramp_span=(15.0, 30.0)),
        ScoreBand(INF, 7, ramp_to=10, ramp_span=(30.0, 80.0)),
    )
)

COMPLEMENTARY_CURVE = ScoreCurve(
    (
        ScoreBand(0.0, 0),
        ScoreBand(2.5, 1),
        ScoreBand(5.0, 2),
        ScoreBand(10.0, 2, ramp_to=3, ramp_span=(5.0, 10.0)),
        ScoreBand(15.0, 3, ramp_to=5, ramp_span=(10.0, 15.0)),
        ScoreBand(30.0, 5, ramp_to=7, ramp_span=(15.0, 30.0)),
        ScoreBand(INF, 7, ramp_to=10, ramp_span=(30.0, 60.0)),
    )
)

DEFECT_CURVE = ScoreCurve(
    (
        ScoreBand(0.0, 0),
        ScoreBand(3.0, 1),
        ScoreBand(5.0, 2),
        ScoreBand(15.0, 3, ramp_to=5, ramp_span=(5.0, 15.0)),
        ScoreBand(30.0, 6, ramp_to=8, ramp_span=(15.0, 30.0)),
        ScoreBand(INF, 9, ramp_to=10, ramp_span=(30.0, 60.0)),
    )
)


@dataclass(frozen=True)
class ScoreCalibration:
    normal_core: ScoreCurve = CORE_CURVE
    expert_core: ScoreCurve = EXPERT_CORE_CURVE
    complementary: ScoreCurve = COMPLEMENTARY_CURVE
    defect: ScoreCurve = DEFECT_CURVE

    def curve_for(self, category: str, expert: bool) -> ScoreCurve:
        if category == "defect":
            return self.defect
        if category == "complementary":
            return self.complementary
        return self.expert_core if expert else self.normal_core

    def to_dict(self) -> Dict[str, Any]:
        return {
            "normal_core": self.normal_core.to_list(),
            "expert_core": self.expert_core.to_list(),
            "complementary": self.complementary.to_list(),
            "defect": self.defect.to_list(),
        }

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "ScoreCalibration":
        base = cls()
        curves = {}
        for key in ("normal_core", "expert_core", "complementary", "defect"):
            if key in payload:
                curves[key] = ScoreCurve.from_list(payload[key], name=key)
            else:
                curves[key] = getattr(base, key)
        return cls(**curves)


@dataclass(frozen=True)
class IntensityLadder:
    """Step ladder from a strongest-share percent to a 0-10 intensity.

    ``steps`` are (exclusive lower bound, intensity) pairs, highest first.
    ``count_bonus_from`` adds one step when that many attributes stand out.
    """

    steps: Tuple[Tuple[float, int], ...]
    base: int = 3
    empty: Optional[int] = None
    count_bonus_from: Optional[int] = None

    def __call__(self, strongest_percent: float, notable_count: int = 0) -> int:
        if strongest_percent <= 0.0 and self.empty is not None:
            return self.empty
        value = self.base
        for threshold, intensity in self.steps:
            if strongest_percent > threshold:
                value = intensity
                break
        if self.count_bonus_from is not None and notable_count >= self.count_bonus_from:
            value += 1
        return int(clamp(value, 0, MAX_SCORE))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "steps": [list(step) for step in self.steps],
            "base": self.base,
            "empty": self.empty,
            "count_bonus_from": self.count_bonus_from,
        }

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "IntensityLadder":
        try:
            steps = tuple(sorted(((float(a), int(b)) for a, b in payload["steps"]), key=lambda s: -s[0]))
            empty = payload.get("empty")
            bonus = payload.get("count_bonus_from")
            return cls(
                steps=steps,
                base=int(payload.get("base", 3)),
                empty=int(empty) if empty is not None else None,
                count_bonus_from=int(bonus) if bonus is not None else None,
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise ConfigError(f"invalid intensity ladder: {exc}") from exc


AROMA_LADDER = IntensityLadder(
    steps=((50.0, 8), (30.0, 7), (20.0, 6), (10.0, 5), (5.0, 4)),
    base=3,
    empty=2,
    count_bonus_from=3,
)

AFTERTASTE_LADDER = IntensityLadder(
    steps=((60.0, 8), (40.0, 7), (25.0, 6), (15.0, 5), (5.0, 4)),
    base=3,
    count_bonus_from=3,
)
