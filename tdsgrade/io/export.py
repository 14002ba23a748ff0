"""Flatten a scored tasting into the TDS column block of an export row."""

from __future__ import annotations

import csv
import json
from typing import IO, Any, Iterable, List, Optional, Sequence

from tdsgrade.scoring.types import AftertasteBoost, TastingAnalysisResult
from tdsgrade.tasting.attributes import AttributeId
from tdsgrade.tasting.codec import encode_intervals
from tdsgrade.tasting.model import TastingProfile

EXPORT_ORDER = tuple(AttributeId)


def tds_header(attributes: Sequence[AttributeId] = EXPORT_ORDER) -> List[str]:
    header = [
        "TDS Mode",
        "TDS Total Duration (s)",
        "TDS Swallow Time (s)",
        "TDS Events JSON",
    ]
    header += [f"TDS Intervals - {attr.label}" for attr in attributes]
    header += [
        "TDS Aroma Intensity",
        "TDS Aftertaste Intensity",
        "TDS Aftertaste Quality",
        "TDS Dominant Aftertaste",
        "TDS Aftertaste Boosts",
        "TDS Attack Duration (s)",
    ]
    for attr in attributes:
        header += [f"TDS Duration % - {attr.label}", f"TDS Score - {attr.label}"]
    return header


def format_boosts(boosts: Iterable[AftertasteBoost]) -> str:
    return ", ".join(f"{b.attribute.value} +{b.amount}" for b in boosts)


def tds_row(
    profile: Optional[TastingProfile],
    analysis: Optional[TastingAnalysisResult],
    attributes: Sequence[AttributeId] = EXPORT_ORDER,
) -> List[Any]:
    """Values aligned with ``tds_header``; blanks where nothing was captured."""
    if profile is None:
        return [""] * len(tds_header(attributes))

    intervals = encode_intervals(profile.events, attributes)
    row: List[Any] = [
        profile.mode.value,
        profile.total_duration or "",
        profile.swallow_time or "",
        json.dumps([ev.to_dict() for ev in profile.events]) if profile.events else "",
    ]
    row += [intervals.get(attr, "") for attr in attributes]

    if analysis is None:
        row += [""] * 6
        row += [""] * (2 * len(attributes))
        return row

    row += [
        analysis.aroma_intensity,
        analysis.aftertaste_intensity,
        analysis.aftertaste_quality,
        analysis.dominant_aftertaste.value if analysis.dominant_aftertaste else "",
        format_boosts(analysis.aftertaste_boosts),
        round(analysis.attack_phase_duration, 2),
    ]
    for attr in attributes:
        result = analysis.scores.get(attr)
        if result is None:
            row += ["", ""]
        else:
            row += [f"{result.duration_percent:.1f}%", result.score]
    return row


def write_csv(stream: IO[str], header: Sequence[str], rows: Iterable[Sequence[Any]]) -> None:
    writer = csv.writer(stream)
    writer.writerow(header)
    for row in rows:
        writer.writerow(row)
