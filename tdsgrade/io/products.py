"""Product configuration dataclasses and the built-in product registry."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

from tdsgrade.scoring.boosts import AftertasteBoostPolicy
from tdsgrade.scoring.curves import AFTERTASTE_LADDER, AROMA_LADDER, IntensityLadder, ScoreCalibration
from tdsgrade.scoring.suggestions import KickRule, QualityPolicy, default_kick_rules
from tdsgrade.tasting.attributes import AttributeId
from tdsgrade.util.errors import ConfigError

A = AttributeId


@dataclass(frozen=True)
class ZoneConfig:
    attack_fraction: float = 0.2
    presence_min_s: float = 0.05
    aroma_note_percent: float = 10.0
    aftertaste_persistence_s: float = 2.0
    clean_finish_min_s: float = 2.0
    clean_finish_max_percent: float = 10.0

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "ZoneConfig":
        base = asdict(cls())
        unknown = set(payload) - set(base)
        if unknown:
            raise ConfigError(f"unknown zone keys: {sorted(unknown)}")
        try:
            cfg = cls(**{key: float(value) for key, value in {**base, **payload}.items()})
        except (TypeError, ValueError) as exc:
            raise ConfigError(f"invalid zone config: {exc}") from exc
        if not 0.0 < cfg.attack_fraction < 1.0:
            raise ConfigError("attack_fraction must be between 0 and 1")
        return cfg


@dataclass(frozen=True)
class ProductConfig:
    id: str
    name: str
    attributes: Tuple[AttributeId, ...]
    core: Tuple[AttributeId, ...]
    complementary: Tuple[AttributeId, ...]
    defect: Tuple[AttributeId, ...]
    parent_children: Dict[AttributeId, Tuple[AttributeId, ...]] = field(default_factory=dict)
    pleasant_aftertaste: Tuple[AttributeId, ...] = ()
    unpleasant_aftertaste: Tuple[AttributeId, ...] = ()
    zones: ZoneConfig = ZoneConfig()
    calibration: ScoreCalibration = ScoreCalibration()
    boost_policy: AftertasteBoostPolicy = AftertasteBoostPolicy()
    aroma_ladder: IntensityLadder = AROMA_LADDER
    aftertaste_ladder: IntensityLadder = AFTERTASTE_LADDER
    kick_rules: Tuple[KickRule, ...] = ()
    quality: QualityPolicy = QualityPolicy()

    def category_of(self, attribute: AttributeId) -> str:
        if attribute in self.defect:
            return "defect"
        if attribute in self.core:
            return "core"
        return "complementary"

    def children_of(self, attribute: AttributeId) -> Tuple[AttributeId, ...]:
        return self.parent_children.get(attribute, ())

    def to_dict(self) -> Dict[str, Any]:
        def ids(values: Sequence[AttributeId]) -> List[str]:
            return [a.value for a in values]

        return {
            "id": self.id,
            "name": self.name,
            "attributes": ids(self.attributes),
            "core": ids(self.core),
            "complementary": ids(self.complementary),
            "defect": ids(self.defect),
            "parent_children": {parent.value: ids(kids) for parent, kids in self.parent_children.items()},
            "pleasant_aftertaste": ids(self.pleasant_aftertaste),
            "unpleasant_aftertaste": ids(self.unpleasant_aftertaste),
            "zones": asdict(self.zones),
            "calibration": self.calibration.to_dict(),
            "boost_policy": self.boost_policy.to_dict(),
            "aroma_ladder": self.aroma_ladder.to_dict(),
            "aftertaste_ladder": self.aftertaste_ladder.to_dict(),
            "kick_rules": [rule.to_dict() for rule in self.kick_rules],
            "quality": self.quality.to_dict(),
        }

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "ProductConfig":
        """Load a JSON product definition, rejecting unknown attribute ids."""
        if not isinstance(payload, dict):
            raise ConfigError("product definition must be a JSON object")
        product_id = str(payload.get("id") or "").strip()
        if not product_id:
            raise ConfigError("product definition needs an id")

        attributes = _attr_tuple(payload.get("attributes", [a.value for a in AttributeId]), "attributes")
        core = _attr_tuple(payload.get("core", []), "core")
        defect = _attr_tuple(payload.get("defect", []), "defect")
        if "complementary" in payload:
            complementary = _attr_tuple(payload["complementary"], "complementary")
        else:
            complementary = tuple(a for a in attributes if a not in core and a not in defect)
        for name, group in (("core", core), ("complementary", complementary), ("defect", defect)):
            stray = [a.value for a in group if a not in attributes]
            if stray:
                raise ConfigError(f"{name} lists attributes outside the product: {stray}")
        if set(core) & set(defect):
            raise ConfigError("an attribute cannot be both core and defect")

        parents: Dict[AttributeId, Tuple[AttributeId, ...]] = {}
        for raw_parent, raw_children in (payload.get("parent_children") or {}).items():
            parent = _attr(raw_parent, "parent_children")
            parents[parent] = _attr_tuple(raw_children, f"parent_children.{parent.value}")

        base = cacao_mass_config()
        return cls(
            id=product_id,
            name=str(payload.get("name") or product_id),
            attributes=attributes,
            core=core,
            complementary=complementary,
            defect=defect,
            parent_children=parents,
            pleasant_aftertaste=_attr_tuple(payload.get("pleasant_aftertaste", []), "pleasant_aftertaste"),
            unpleasant_aftertaste=_attr_tuple(payload.get("unpleasant_aftertaste", []), "unpleasant_aftertaste"),
            zones=ZoneConfig.from_dict(payload.get("zones") or {}),
            calibration=ScoreCalibration.from_dict(payload.get("calibration") or {}),
            boost_policy=AftertasteBoostPolicy.from_dict(payload.get("boost_policy") or {}),
            aroma_ladder=_ladder(payload.get("aroma_ladder"), base.aroma_ladder),
            aftertaste_ladder=_ladder(payload.get("aftertaste_ladder"), base.aftertaste_ladder),
            kick_rules=tuple(KickRule.from_dict(item) for item in payload.get("kick_rules", [])),
            quality=QualityPolicy.from_dict(payload.get("quality") or {}),
        )


def _attr(raw: Any, where: str) -> AttributeId:
    attr = AttributeId.parse(raw)
    if attr is None:
        raise ConfigError(f"{where}: unknown attribute id {raw!r}")
    return attr


def _attr_tuple(values: Any, where: str) -> Tuple[AttributeId, ...]:
    if isinstance(values, (str, bytes)) or not isinstance(values, (list, tuple)):
        raise ConfigError(f"{where}: expected a list of attribute ids")
    out: List[AttributeId] = []
    for raw in values:
        attr = _attr(raw, where)
        if attr not in out:
            out.append(attr)
    return tuple(out)


def _ladder(payload: Optional[Dict[str, Any]], default: IntensityLadder) -> IntensityLadder:
    if payload is None:
        return default
    return IntensityLadder.from_dict(payload)


def cacao_mass_config() -> ProductConfig:
    core = (A.CACAO, A.ACIDITY, A.BITTERNESS, A.ASTRINGENCY, A.ROAST)
    complementary = (
        A.FRESH_FRUIT,
        A.BROWNED_FRUIT,
        A.VEGETAL,
        A.FLORAL,
        A.WOODY,
        A.SPICE,
        A.NUTTY,
        A.CARAMEL,
        A.SWEETNESS,
    )
    return ProductConfig(
        id="cacao_mass",
        name="Cacao Mass",
        attributes=core + complementary + (A.DEFECTS,),
        core=core,
        complementary=complementary,
        defect=(A.DEFECTS,),
        parent_children={
            A.ACIDITY: (A.FRESH_FRUIT,),
            A.CACAO: (A.BROWNED_FRUIT, A.NUTTY),
            A.ROAST: (A.CARAMEL,),
            A.BITTERNESS: (A.VEGETAL, A.WOODY),
            A.ASTRINGENCY: (A.SPICE,),
        },
        pleasant_aftertaste=(
            A.CACAO,
            A.FRESH_FRUIT,
            A.BROWNED_FRUIT,
            A.FLORAL,
            A.CARAMEL,
            A.SWEETNESS,
            A.NUTTY,
        ),
        unpleasant_aftertaste=(A.DEFECTS, A.ASTRINGENCY, A.BITTERNESS),
        kick_rules=tuple(default_kick_rules()),
    )


def default_product_configs() -> Dict[str, ProductConfig]:
    products = [cacao_mass_config()]
    return {p.id.lower(): p for p in products}


def serialize_products() -> Dict[str, Any]:
    """Return ordered JSON-serializable description of built-in products."""

    products = default_product_configs()
    ordered = sorted(products.values(), key=lambda p: p.id.lower())
    return {"products": [prod.to_dict() for prod in ordered]}
