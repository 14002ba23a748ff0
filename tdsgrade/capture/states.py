"""Capture lifecycle states and the legal transition table."""

from __future__ import annotations

from enum import Enum
from typing import Dict, Tuple

from tdsgrade.util.errors import InvalidTransition


class CaptureState(str, Enum):
    IDLE = "idle"
    TASTING = "tasting"
    SWALLOWED = "swallowed"
    FINISHED = "finished"
    DISCARDED = "discarded"


class CaptureAction(str, Enum):
    START = "start"
    SELECT = "select"
    SWALLOW = "swallow"
    FINISH = "finish"
    DISCARD = "discard"


_TRANSITIONS: Dict[Tuple[CaptureState, CaptureAction], CaptureState] = {
    (CaptureState.IDLE, CaptureAction.START): CaptureState.TASTING,
    (CaptureState.IDLE, CaptureAction.DISCARD): CaptureState.DISCARDED,
    (CaptureState.TASTING, CaptureAction.SELECT): CaptureState.TASTING,
    (CaptureState.TASTING, CaptureAction.SWALLOW): CaptureState.SWALLOWED,
    (CaptureState.TASTING, CaptureAction.FINISH): CaptureState.FINISHED,
    (CaptureState.TASTING, CaptureAction.DISCARD): CaptureState.DISCARDED,
    (CaptureState.SWALLOWED, CaptureAction.SELECT): CaptureState.SWALLOWED,
    (CaptureState.SWALLOWED, CaptureAction.FINISH): CaptureState.FINISHED,
    (CaptureState.SWALLOWED, CaptureAction.DISCARD): CaptureState.DISCARDED,
}


def transition(state: CaptureState, action: CaptureAction) -> CaptureState:
    """Return the state reached by ``action``; raises InvalidTransition if not allowed."""
    try:
        return _TRANSITIONS[(state, action)]
    except KeyError:
        raise InvalidTransition(state.value, action.value) from None


def allowed_actions(state: CaptureState) -> Tuple[CaptureAction, ...]:
    return tuple(action for (src, action) in _TRANSITIONS if src == state)
