"""Enumerated sensory attribute identifiers."""

from __future__ import annotations

from enum import Enum
from typing import Any, Iterable, List, Optional


class AttributeId(str, Enum):
    CACAO = "cacao"
    ACIDITY = "acidity"
    BITTERNESS = "bitterness"
    ASTRINGENCY = "astringency"
    ROAST = "roast"
    FRESH_FRUIT = "fresh_fruit"
    BROWNED_FRUIT = "browned_fruit"
    VEGETAL = "vegetal"
    FLORAL = "floral"
    WOODY = "woody"
    SPICE = "spice"
    NUTTY = "nutty"
    CARAMEL = "caramel"
    SWEETNESS = "sweetness"
    DEFECTS = "defects"

    @classmethod
    def parse(cls, value: Any) -> Optional["AttributeId"]:
        """Return the member for a raw id (``"cacao"``, ``"attr_cacao"``), or None."""
        if isinstance(value, cls):
            return value
        if value is None:
            return None
        text = str(value).strip().lower()
        if text.startswith("attr_"):
            text = text[len("attr_"):]
        try:
            return cls(text)
        except ValueError:
            return None

    @property
    def label(self) -> str:
        return self.value.replace("_", " ").title()


def parse_attribute_list(values: Iterable[Any]) -> List[AttributeId]:
    """Parse raw ids in order, silently skipping unknown and duplicate entries."""
    out: List[AttributeId] = []
    for raw in values:
        attr = AttributeId.parse(raw)
        if attr is not None and attr not in out:
            out.append(attr)
    return out
