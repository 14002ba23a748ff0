"""Immutable tasting profile model shared by capture, scoring, and curve layers."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Tuple

from tdsgrade.tasting.attributes import AttributeId
from tdsgrade.util.logging import get_logger
from tdsgrade.util.time import epoch_ms

logger = get_logger(__name__)


class Phase(str, Enum):
    MELTING = "melting"
    RESIDUAL = "residual"


class Mode(str, Enum):
    NORMAL = "normal"
    EXPERT = "expert"

    @classmethod
    def parse(cls, value: Any) -> "Mode":
        try:
            return cls(str(value or "normal").strip().lower())
        except ValueError:
            return cls.NORMAL


def phase_for(start: float, swallow_time: Optional[float]) -> Phase:
    """Intervals opened at or after the swallow marker belong to the aftertaste."""
    if swallow_time is not None and start >= swallow_time:
        return Phase.RESIDUAL
    return Phase.MELTING


@dataclass(frozen=True)
class DominanceEvent:
    attribute: AttributeId
    start: float
    end: float
    phase: Phase = Phase.MELTING

    def __post_init__(self) -> None:
        if not self.start < self.end:
            raise ValueError(f"event end {self.end} must be after start {self.start}")

    @property
    def duration(self) -> float:
        return self.end - self.start

    def to_dict(self) -> Dict[str, Any]:
        return {
            "attrId": self.attribute.value,
            "start": self.start,
            "end": self.end,
            "phase": self.phase.value,
        }


@dataclass(frozen=True)
class TastingProfile:
    """One finished tasting. Never mutated; edits go through ``revise``."""

    id: str
    mode: Mode
    events: Tuple[DominanceEvent, ...]
    swallow_time: float
    total_duration: float
    last_modified: int = field(default_factory=epoch_ms)

    @classmethod
    def create(
        cls,
        events: Iterable[DominanceEvent],
        *,
        swallow_time: float,
        total_duration: float,
        mode: Mode = Mode.NORMAL,
        profile_id: Optional[str] = None,
    ) -> "TastingProfile":
        ordered = tuple(sorted(events, key=lambda ev: (ev.start, ev.end)))
        return cls(
            id=profile_id or uuid.uuid4().hex,
            mode=mode,
            events=ordered,
            swallow_time=float(swallow_time),
            total_duration=float(total_duration),
        )

    @property
    def cache_key(self) -> Tuple[str, int]:
        return (self.id, self.last_modified)

    def revise(self, **changes: Any) -> "TastingProfile":
        """Return an edited copy carrying a strictly newer ``last_modified``."""
        if "events" in changes:
            changes["events"] = tuple(sorted(changes["events"], key=lambda ev: (ev.start, ev.end)))
        changes["last_modified"] = max(epoch_ms(), self.last_modified + 1)
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "mode": self.mode.value,
            "events": [ev.to_dict() for ev in self.events],
            "swallowTime": self.swallow_time,
            "totalDuration": self.total_duration,
            "lastModified": self.last_modified,
        }


def _first(payload: Dict[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in payload and payload[key] is not None:
            return payload[key]
    return None


def events_from_records(records: Any, swallow_time: Optional[float]) -> List[DominanceEvent]:
    """Build events from raw ``{attrId, start, end}`` records.

    Records with unknown attributes or non-positive duration are skipped.
    A non-iterable ``records`` value raises TypeError.
    """
    if isinstance(records, (str, bytes)) or not hasattr(records, "__iter__"):
        raise TypeError(f"events must be an iterable of records, got {type(records).__name__}")
    events: List[DominanceEvent] = []
    for raw in records:
        if not isinstance(raw, dict):
            logger.debug("Skipping non-mapping event record %r", raw)
            continue
        attribute = AttributeId.parse(_first(raw, "attrId", "attribute", "attributeId"))
        if attribute is None:
            logger.debug("Skipping event with unknown attribute", extra={"attribute": raw.get("attrId")})
            continue
        try:
            start = float(_first(raw, "start", "startSeconds", "startTime"))
            end = float(_first(raw, "end", "endSeconds", "endTime"))
        except (TypeError, ValueError):
            logger.debug("Skipping event with unreadable timing %r", raw)
            continue
        if not end > start:
            logger.debug("Dropping event with end <= start", extra={"attribute": attribute.value})
            continue
        events.append(DominanceEvent(attribute, start, end, phase_for(start, swallow_time)))
    return events


def profile_from_dict(payload: Dict[str, Any]) -> TastingProfile:
    """Parse a persisted or exported profile record (camelCase or snake_case keys)."""
    total = float(_first(payload, "totalDuration", "total_duration") or 0.0)
    raw_swallow = _first(payload, "swallowTime", "swallow_time")
    swallow = float(raw_swallow) if raw_swallow not in (None, 0, 0.0) else total
    records = _first(payload, "events")
    events = events_from_records(records if records is not None else [], swallow)
    last_modified = _first(payload, "lastModified", "last_modified")
    profile = TastingProfile.create(
        events,
        swallow_time=swallow,
        total_duration=total,
        mode=Mode.parse(payload.get("mode")),
        profile_id=str(payload["id"]) if payload.get("id") else None,
    )
    if last_modified is not None:
        profile = replace(profile, last_modified=int(last_modified))
    return profile
