"""Live TDS capture: operator taps in, immutable TastingProfile out."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional, Union

from tdsgrade.capture.states import CaptureAction, CaptureState, transition
from tdsgrade.tasting.attributes import AttributeId
from tdsgrade.tasting.model import DominanceEvent, Mode, TastingProfile, phase_for
from tdsgrade.util.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class OpenInterval:
    attribute: AttributeId
    start: float


class CaptureSession:
    """Single-timeline capture enforcing exactly one active attribute.

    The only open interval lives in ``active``; selecting a different
    attribute closes it before opening the next one.
    """

    def __init__(
        self,
        mode: Mode = Mode.NORMAL,
        *,
        attributes: Optional[Iterable[AttributeId]] = None,
        clock: Callable[[], float] = time.monotonic,
        profile_id: Optional[str] = None,
    ) -> None:
        self.mode = mode
        self.attributes = frozenset(attributes) if attributes is not None else None
        self.profile_id = profile_id
        self.state = CaptureState.IDLE
        self.active: Optional[OpenInterval] = None
        self.swallow_time: Optional[float] = None
        self._clock = clock
        self._t0 = 0.0
        self._events: List[DominanceEvent] = []

    @property
    def events(self) -> List[DominanceEvent]:
        """Closed intervals so far (a copy)."""
        return list(self._events)

    def elapsed(self) -> float:
        if self.state == CaptureState.IDLE:
            return 0.0
        return max(0.0, self._clock() - self._t0)

    def start(self) -> None:
        self.state = transition(self.state, CaptureAction.START)
        self._t0 = self._clock()
        self._events = []
        self.active = None
        self.swallow_time = None
        logger.debug("Capture started", extra={"state": self.state.value})

    def select(self, attribute: Union[AttributeId, str]) -> Optional[DominanceEvent]:
        """Toggle or switch the active attribute; returns the interval closed by this tap."""
        self.state = transition(self.state, CaptureAction.SELECT)
        attr = AttributeId.parse(attribute)
        if attr is None or (self.attributes is not None and attr not in self.attributes):
            logger.debug("Ignoring tap on unavailable attribute", extra={"attribute": str(attribute)})
            return None
        now = self.elapsed()
        previous = self.active
        closed = self._close_active(now)
        if previous is not None and previous.attribute == attr:
            return closed
        self.active = OpenInterval(attr, now)
        return closed

    def swallow(self) -> float:
        self.state = transition(self.state, CaptureAction.SWALLOW)
        self.swallow_time = self.elapsed()
        logger.debug("Swallow marked at %.2fs", self.swallow_time, extra={"state": self.state.value})
        return self.swallow_time

    def finish(self) -> TastingProfile:
        state = transition(self.state, CaptureAction.FINISH)
        now = self.elapsed()
        self._close_active(now)
        self.state = state
        swallow = self.swallow_time if self.swallow_time is not None else now
        profile = TastingProfile.create(
            self._events,
            swallow_time=swallow,
            total_duration=now,
            mode=self.mode,
            profile_id=self.profile_id,
        )
        logger.info(
            "Capture finished with %d interval(s) over %.2fs",
            len(profile.events),
            profile.total_duration,
            extra={"profile_id": profile.id, "state": self.state.value},
        )
        return profile

    def discard(self) -> None:
        """Abandon the capture; nothing is emitted."""
        self.state = transition(self.state, CaptureAction.DISCARD)
        self.active = None
        self._events = []
        logger.debug("Capture discarded", extra={"state": self.state.value})

    def _close_active(self, now: float) -> Optional[DominanceEvent]:
        open_iv = self.active
        self.active = None
        if open_iv is None:
            return None
        if now <= open_iv.start:
            # same clock tick; nothing measurable was captured
            return None
        event = DominanceEvent(open_iv.attribute, open_iv.start, now, phase_for(open_iv.start, self.swallow_time))
        self._events.append(event)
        return event
