"""Dataclasses shared across the scorer, export, and service layers."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from tdsgrade.tasting.attributes import AttributeId


@dataclass
class BoostDetails:
    amount: int
    duration: float
    kind: str = "individual"  # "individual", "aggregated"
    reason: str = "aftertaste"  # "aftertaste", "mixed"

    def to_dict(self) -> Dict[str, Any]:
        return {"amount": self.amount, "duration": self.duration, "type": self.kind, "reason": self.reason}


@dataclass
class ZoneBreakdown:
    attack: float = 0.0
    body: float = 0.0
    finish: float = 0.0


@dataclass
class AttributeScoreResult:
    score: int
    duration_percent: float
    category: str  # "core", "complementary", "defect"
    is_flagged: bool
    boost_details: Optional[BoostDetails] = None
    total_duration: float = 0.0
    is_present: bool = False
    zone_breakdown: Optional[ZoneBreakdown] = None
    original_score: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "score": self.score,
            "durationPercent": self.duration_percent,
            "category": self.category,
            "isFlagged": self.is_flagged,
            "totalDuration": self.total_duration,
            "isPresent": self.is_present,
        }
        if self.boost_details is not None:
            out["boostDetails"] = self.boost_details.to_dict()
        if self.zone_breakdown is not None:
            zb = self.zone_breakdown
            out["zoneBreakdown"] = {"attack": zb.attack, "body": zb.body, "finish": zb.finish}
        if self.original_score is not None:
            out["originalScore"] = self.original_score
        return out


@dataclass
class AftertasteBoost:
    attribute: AttributeId
    amount: int


@dataclass
class TastingAnalysisResult:
    scores: Dict[AttributeId, AttributeScoreResult]
    core_scores: Dict[AttributeId, AttributeScoreResult]
    aroma_intensity: int
    aroma_percent: float
    aftertaste_intensity: int
    aftertaste_percent: float
    aftertaste_quality: str  # "positive", "neutral", "negative"
    dominant_aftertaste: Optional[AttributeId]
    quality_modifier: float
    first_onset: float
    attack_phase_duration: float
    adjusted_swallow_time: float
    aroma_notes: List[AttributeId] = field(default_factory=list)
    aftertaste_boosts: List[AftertasteBoost] = field(default_factory=list)
    kick_suggestions: List[str] = field(default_factory=list)
    quality_suggestions: List[str] = field(default_factory=list)

    @property
    def suggestions(self) -> List[str]:
        return self.kick_suggestions + self.quality_suggestions

    def to_dict(self) -> Dict[str, Any]:
        return {
            "scores": {attr.value: res.to_dict() for attr, res in self.scores.items()},
            "coreScores": {attr.value: res.to_dict() for attr, res in self.core_scores.items()},
            "aromaIntensity": self.aroma_intensity,
            "aromaPercent": self.aroma_percent,
            "aromaNotes": [attr.value for attr in self.aroma_notes],
            "aftertasteIntensity": self.aftertaste_intensity,
            "aftertastePercent": self.aftertaste_percent,
            "aftertasteQuality": self.aftertaste_quality,
            "dominantAftertaste": self.dominant_aftertaste.value if self.dominant_aftertaste else None,
            "aftertasteBoosts": [{"attrId": b.attribute.value, "amount": b.amount} for b in self.aftertaste_boosts],
            "kickSuggestions": list(self.kick_suggestions),
            "qualitySuggestions": list(self.quality_suggestions),
            "qualityModifier": self.quality_modifier,
            "firstOnset": self.first_onset,
            "attackPhaseDuration": self.attack_phase_duration,
            "adjustedSwallowTime": self.adjusted_swallow_time,
        }
