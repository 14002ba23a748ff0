"""Per-attribute interval arrays as embedded in exported rows.

Each attribute gets one JSON array of ``{"start", "end"}`` objects rounded to
0.01 s, e.g. ``[{"start": 0.0, "end": 10.25}]``.
"""

from __future__ import annotations

import json
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from tdsgrade.tasting.attributes import AttributeId
from tdsgrade.tasting.model import DominanceEvent, events_from_records
from tdsgrade.util.logging import get_logger
from tdsgrade.util.math import round_half_up

logger = get_logger(__name__)

INTERVAL_DECIMALS = 2


def encode_intervals(
    events: Iterable[DominanceEvent],
    attributes: Optional[Sequence[AttributeId]] = None,
) -> Dict[AttributeId, str]:
    """Return one JSON array string per attribute; attributes without events get ``""``."""
    grouped: Dict[AttributeId, List[Dict[str, float]]] = {}
    for ev in sorted(events, key=lambda e: (e.start, e.end)):
        grouped.setdefault(ev.attribute, []).append(
            {
                "start": round_half_up(ev.start, INTERVAL_DECIMALS),
                "end": round_half_up(ev.end, INTERVAL_DECIMALS),
            }
        )
    order = list(attributes) if attributes is not None else sorted(grouped, key=lambda a: list(AttributeId).index(a))
    out: Dict[AttributeId, str] = {}
    for attr in order:
        intervals = grouped.get(attr)
        out[attr] = json.dumps(intervals) if intervals else ""
    return out


def decode_intervals(
    columns: Mapping[object, str],
    swallow_time: Optional[float] = None,
) -> List[DominanceEvent]:
    """Rebuild events from interval columns keyed by attribute id.

    Unknown attribute keys and unreadable cells are skipped.
    """
    records: List[Dict[str, object]] = []
    for key, cell in columns.items():
        attr = AttributeId.parse(key)
        if attr is None or not cell:
            continue
        try:
            intervals = json.loads(cell)
        except (TypeError, ValueError):
            logger.debug("Skipping unreadable interval cell", extra={"attribute": attr.value})
            continue
        if not isinstance(intervals, list):
            continue
        for item in intervals:
            if isinstance(item, dict):
                records.append({"attrId": attr.value, "start": item.get("start"), "end": item.get("end")})
    events = events_from_records(records, swallow_time)
    events.sort(key=lambda ev: (ev.start, ev.end))
    return events
