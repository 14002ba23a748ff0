"""Aftertaste boost recommendations.

A boost is advisory: it suggests raising an attribute's score by hand
because the attribute kept dominating after the swallow. It is never
added to the computed score.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict

from tdsgrade.util.errors import ConfigError
from tdsgrade.util.math import safe_ratio


@dataclass(frozen=True)
class AftertasteBoostPolicy:
    min_presence_s: float = 5.0
    dominant_s: float = 10.0
    significant_amount: int = 1
    dominant_amount: int = 2
    share_threshold: float = 0.5
    share_bonus: int = 1

    def amount(self, residual_s: float, finish_window_s: float) -> int:
        """Recommended increase for ``residual_s`` seconds of aftertaste presence."""
        if residual_s <= self.min_presence_s or finish_window_s <= 0.0:
            return 0
        boost = self.dominant_amount if residual_s > self.dominant_s else self.significant_amount
        if safe_ratio(residual_s, finish_window_s) > self.share_threshold:
            boost += self.share_bonus
        return boost

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "AftertasteBoostPolicy":
        base = asdict(cls())
        unknown = set(payload) - set(base)
        if unknown:
            raise ConfigError(f"unknown boost policy keys: {sorted(unknown)}")
        merged = {**base, **payload}
        policy = cls(
            min_presence_s=float(merged["min_presence_s"]),
            dominant_s=float(merged["dominant_s"]),
            significant_amount=int(merged["significant_amount"]),
            dominant_amount=int(merged["dominant_amount"]),
            share_threshold=float(merged["share_threshold"]),
            share_bonus=int(merged["share_bonus"]),
        )
        if policy.min_presence_s < 0 or policy.dominant_s < policy.min_presence_s:
            raise ConfigError("boost thresholds must satisfy 0 <= min_presence_s <= dominant_s")
        return policy
