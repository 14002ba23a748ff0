import pytest

from tdsgrade.capture.session import CaptureSession
from tdsgrade.capture.states import CaptureAction, CaptureState, allowed_actions, transition
from tdsgrade.tasting.attributes import AttributeId
from tdsgrade.tasting.model import DominanceEvent, Mode, Phase
from tdsgrade.util.errors import InvalidTransition


class _FakeClock:
    def __init__(self, now: float = 100.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def _make_session(**kwargs):
    clock = _FakeClock()
    session = CaptureSession(clock=clock, **kwargs)
    session.start()
    return session, clock


def test_transition_table_rejects_select_before_start() -> None:
    with pytest.raises(InvalidTransition):
        transition(CaptureState.IDLE, CaptureAction.SELECT)
    assert transition(CaptureState.IDLE, CaptureAction.START) is CaptureState.TASTING
    assert CaptureAction.SWALLOW not in allowed_actions(CaptureState.SWALLOWED)
    assert allowed_actions(CaptureState.FINISHED) == ()


def test_switching_attribute_closes_previous_interval() -> None:
    session, clock = _make_session()
    assert session.select(AttributeId.CACAO) is None
    clock.advance(3.0)
    closed = session.select(AttributeId.ACIDITY)
    assert closed == DominanceEvent(AttributeId.CACAO, 0.0, 3.0, Phase.MELTING)
    assert session.active is not None
    assert session.active.attribute is AttributeId.ACIDITY
    assert session.active.start == 3.0


def test_tapping_active_attribute_toggles_it_off() -> None:
    session, clock = _make_session()
    session.select("cacao")
    clock.advance(2.0)
    closed = session.select(AttributeId.CACAO)
    assert closed is not None and closed.end == 2.0
    assert session.active is None
    assert len(session.events) == 1


def test_intervals_after_swallow_are_residual() -> None:
    session, clock = _make_session()
    session.select(AttributeId.CACAO)
    clock.advance(4.0)
    assert session.swallow() == 4.0
    assert session.state is CaptureState.SWALLOWED
    clock.advance(1.0)
    session.select(AttributeId.BITTERNESS)
    clock.advance(3.0)
    profile = session.finish()

    assert session.state is CaptureState.FINISHED
    assert profile.swallow_time == 4.0
    assert profile.total_duration == 8.0
    cacao, bitter = profile.events
    assert (cacao.attribute, cacao.start, cacao.end, cacao.phase) == (AttributeId.CACAO, 0.0, 5.0, Phase.MELTING)
    assert (bitter.attribute, bitter.start, bitter.end, bitter.phase) == (
        AttributeId.BITTERNESS,
        5.0,
        8.0,
        Phase.RESIDUAL,
    )


def test_finish_without_swallow_uses_final_duration() -> None:
    session, clock = _make_session(mode=Mode.EXPERT, profile_id="run-1")
    session.select(AttributeId.ROAST)
    clock.advance(6.0)
    profile = session.finish()
    assert profile.id == "run-1"
    assert profile.mode is Mode.EXPERT
    assert profile.swallow_time == profile.total_duration == 6.0


def test_actions_after_finish_raise() -> None:
    session, _ = _make_session()
    session.finish()
    with pytest.raises(InvalidTransition):
        session.select(AttributeId.CACAO)
    with pytest.raises(InvalidTransition):
        session.finish()


def test_second_swallow_is_rejected() -> None:
    session, _ = _make_session()
    session.swallow()
    with pytest.raises(InvalidTransition) as excinfo:
        session.swallow()
    assert excinfo.value.state == "swallowed"


def test_discard_drops_everything() -> None:
    session, clock = _make_session()
    session.select(AttributeId.CACAO)
    clock.advance(2.0)
    session.select(AttributeId.ACIDITY)
    session.discard()
    assert session.state is CaptureState.DISCARDED
    assert session.events == []
    assert session.active is None
    with pytest.raises(InvalidTransition):
        session.finish()


def test_same_tick_switch_records_nothing() -> None:
    session, _ = _make_session()
    session.select(AttributeId.CACAO)
    assert session.select(AttributeId.ACIDITY) is None
    assert session.events == []
    assert session.active is not None and session.active.attribute is AttributeId.ACIDITY


def test_unavailable_attribute_is_ignored() -> None:
    session, clock = _make_session(attributes=[AttributeId.CACAO, AttributeId.ACIDITY])
    session.select(AttributeId.CACAO)
    clock.advance(1.0)
    assert session.select("umami") is None
    assert session.select(AttributeId.FLORAL) is None
    assert session.active is not None and session.active.attribute is AttributeId.CACAO
