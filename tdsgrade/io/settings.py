"""Runtime curve settings read from TDSGRADE_* environment variables."""

from __future__ import annotations

import os
from dataclasses import asdict, dataclass
from typing import Any, Dict

from tdsgrade.aggregate.stats import DEFAULT_Z
from tdsgrade.dsp.density import DEFAULT_RESOLUTION_S, DEFAULT_SIGMA_S, DEFAULT_SILENCE


def _int_env(name: str, default: int) -> int:
    value = os.getenv(name)
    if value in (None, ""):
        return default
    try:
        return max(1, int(float(value)))
    except (TypeError, ValueError):
        return default


def _float_env(name: str, default: float) -> float:
    value = os.getenv(name)
    if value in (None, ""):
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _positive_float_env(name: str, default: float) -> float:
    value = _float_env(name, default)
    return value if value > 0 else default


@dataclass
class TDSSettings:
    """Curve and service knobs shared by the CLI and the analysis service."""

    resolution: float = DEFAULT_RESOLUTION_S
    sigma_single: float = DEFAULT_SIGMA_S
    sigma_multiple: float = 3.0
    silence_constant: float = DEFAULT_SILENCE
    significance_z: float = DEFAULT_Z
    analysis_workers: int = 2
    product: str = "cacao_mass"

    @classmethod
    def from_env(cls) -> "TDSSettings":
        return cls(
            resolution=_positive_float_env("TDSGRADE_RESOLUTION", DEFAULT_RESOLUTION_S),
            sigma_single=_positive_float_env("TDSGRADE_SIGMA_SINGLE", DEFAULT_SIGMA_S),
            sigma_multiple=_positive_float_env("TDSGRADE_SIGMA_MULTIPLE", 3.0),
            silence_constant=max(0.0, _float_env("TDSGRADE_SILENCE_CONSTANT", DEFAULT_SILENCE)),
            significance_z=_float_env("TDSGRADE_SIGNIFICANCE_Z", DEFAULT_Z),
            analysis_workers=_int_env("TDSGRADE_ANALYSIS_WORKERS", 2),
            product=os.getenv("TDSGRADE_PRODUCT", "").strip().lower() or "cacao_mass",
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
