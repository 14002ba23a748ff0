"""Advisory prompts shown to the evaluator after a tasting."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Mapping, Sequence

from tdsgrade.tasting.attributes import AttributeId
from tdsgrade.tasting.model import Mode
from tdsgrade.util.errors import ConfigError

from .zones import AttributeZones, ZoneWindows


@dataclass(frozen=True)
class KickRule:
    """Prompt raised when ``attribute`` fills more than ``attack_share`` of the attack."""

    attribute: AttributeId
    attack_share: float
    message: str

    def fires(self, zones: Mapping[AttributeId, AttributeZones], windows: ZoneWindows) -> bool:
        spent = zones.get(self.attribute)
        if spent is None:
            return False
        return spent.attack > windows.attack_s * self.attack_share

    def to_dict(self) -> Dict[str, Any]:
        return {"attribute": self.attribute.value, "attack_share": self.attack_share, "message": self.message}

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "KickRule":
        attr = AttributeId.parse(payload.get("attribute"))
        if attr is None:
            raise ConfigError(f"kick rule has unknown attribute {payload.get('attribute')!r}")
        try:
            return cls(attribute=attr, attack_share=float(payload["attack_share"]), message=str(payload["message"]))
        except (KeyError, TypeError, ValueError) as exc:
            raise ConfigError(f"invalid kick rule {payload!r}: {exc}") from exc


def default_kick_rules() -> List[KickRule]:
    return [
        KickRule(
            AttributeId.ACIDITY,
            0.5,
            "High acidity in the attack often indicates Fruit notes. Did you perceive Citrus (Lemon/Lime) or Berry?",
        ),
        KickRule(
            AttributeId.BITTERNESS,
            0.5,
            "Strong early bitterness can indicate 'Green/Vegetal' notes (if raw) or 'Coffee/Burnt' notes "
            "(if roasted). Check these categories.",
        ),
        KickRule(
            AttributeId.ASTRINGENCY,
            0.5,
            "Sharp astringency often comes from 'Nut Skins' or 'Unripe Fruit'. Consider adding these to the profile.",
        ),
        KickRule(
            AttributeId.FLORAL,
            0.1,
            "Floral notes often carry subtle 'Spicy' (Coriander) or 'Light Wood' nuances. Did you perceive them?",
        ),
        KickRule(
            AttributeId.SWEETNESS,
            0.5,
            "Sweetness in dark chocolate is often aromatic. Check for 'Caramel/Panela', 'Malt', or 'Vanilla'.",
        ),
    ]


def kick_suggestions(
    rules: Sequence[KickRule],
    zones: Mapping[AttributeId, AttributeZones],
    windows: ZoneWindows,
) -> List[str]:
    if not zones or windows.attack_s <= 0.0:
        return []
    return [rule.message for rule in rules if rule.fires(zones, windows)]


@dataclass(frozen=True)
class QualityPolicy:
    severe_defect_score: int = 3
    clean_min_aroma: int = 5
    harsh_finish_share: float = 0.5
    positive_modifier: float = 0.5
    negative_modifier: float = -1.5
    aroma_bonus_from: int = 7
    aroma_modifier: float = 0.5
    mild_defect_modifier: float = -1.0
    severe_defect_modifier: float = -2.0

    def modifier(self, aftertaste_quality: str, aroma_intensity: int, defect_score: int) -> float:
        """Signed global-quality adjustment suggested by the tasting."""
        value = 0.0
        if aftertaste_quality == "positive":
            value += self.positive_modifier
        elif aftertaste_quality == "negative":
            value += self.negative_modifier
        if aroma_intensity >= self.aroma_bonus_from:
            value += self.aroma_modifier
        if defect_score >= self.severe_defect_score:
            value += self.severe_defect_modifier
        elif defect_score > 0:
            value += self.mild_defect_modifier
        return value

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "QualityPolicy":
        base = asdict(cls())
        unknown = set(payload) - set(base)
        if unknown:
            raise ConfigError(f"unknown quality policy keys: {sorted(unknown)}")
        merged = {**base, **payload}
        try:
            return cls(**{key: type(base[key])(value) for key, value in merged.items()})
        except (TypeError, ValueError) as exc:
            raise ConfigError(f"invalid quality policy: {exc}") from exc


def quality_suggestions(
    policy: QualityPolicy,
    zones: Mapping[AttributeId, AttributeZones],
    windows: ZoneWindows,
    *,
    mode: Mode,
    defect_score: int,
    aftertaste_quality: str,
    aroma_intensity: int,
) -> List[str]:
    def finish(attr: AttributeId) -> float:
        spent = zones.get(attr)
        return spent.finish if spent is not None else 0.0

    def lingers(attr: AttributeId) -> bool:
        return finish(attr) > 0.0

    out: List[str] = []
    if defect_score >= policy.severe_defect_score:
        out.append("Defect Intensity 3+ (Clearly characterizing). Recommend Global Quality 0-3.")
    elif defect_score > 0:
        out.append("Defect Intensity 1-2 (Low intensity). Recommend Global Quality 4-6.")
    elif aftertaste_quality == "positive" and aroma_intensity >= policy.clean_min_aroma:
        out.append("Clean sample (Absent defects). Recommend Global Quality 7-10.")

    sour_bitter = lingers(AttributeId.ACIDITY) and lingers(AttributeId.BITTERNESS)
    fruitless = not lingers(AttributeId.FRESH_FRUIT) and not lingers(AttributeId.BROWNED_FRUIT)
    if sour_bitter and fruitless:
        harsh = finish(AttributeId.ACIDITY) + finish(AttributeId.BITTERNESS)
        if harsh > windows.finish_s * policy.harsh_finish_share:
            if mode is Mode.EXPERT:
                out.append("Unbalanced, harsh finish (Sour+Bitter without Fruit). Suggest Low Quality.")
            else:
                out.append("Harsh finish (Sour+Bitter). If no Fruit was perceived, suggest Low Quality.")

    if all(lingers(a) for a in (AttributeId.FRESH_FRUIT, AttributeId.ACIDITY, AttributeId.SWEETNESS)):
        out.append("Bright, complex finish detected (Fruit+Acid+Sweet). Suggest Global Quality 8-10.")

    if (
        mode is Mode.NORMAL
        and lingers(AttributeId.ACIDITY)
        and lingers(AttributeId.CACAO)
        and not lingers(AttributeId.BITTERNESS)
        and not lingers(AttributeId.ASTRINGENCY)
    ):
        out.append(
            "Clean Cacao + Acidity finish detected. If fruity notes were present, consider Global Quality 8-10."
        )

    if (
        lingers(AttributeId.CACAO)
        and lingers(AttributeId.NUTTY)
        and (lingers(AttributeId.WOODY) or lingers(AttributeId.SPICE))
    ):
        out.append("Solid, comforting cacao base (Cocoa+Nutty+Woody). Suggest Global Quality 7-9.")
    return out
