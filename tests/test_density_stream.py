import numpy as np
import pytest

from tdsgrade.dsp.density import generate_stream, sample_times
from tdsgrade.dsp.smoothing import smooth_truncated
from tdsgrade.tasting.attributes import AttributeId
from tdsgrade.tasting.model import DominanceEvent

A = AttributeId
ALL = list(AttributeId)


def _make_events():
    return [
        DominanceEvent(A.CACAO, 0.0, 4.0),
        DominanceEvent(A.ACIDITY, 3.0, 7.5),
        DominanceEvent(A.FLORAL, 9.0, 10.0),
    ]


def test_sample_grid_includes_end() -> None:
    times = sample_times(1.0, 0.1)
    assert times.size == 11
    assert times[0] == 0.0
    assert times[-1] == pytest.approx(1.0)


def test_shares_never_sum_above_one() -> None:
    stream = generate_stream(_make_events(), 20.0, ALL)
    assert len(stream) == 201
    totals = stream.shares.sum(axis=1)
    assert np.all(totals <= 1.0 + 1e-12)
    assert np.all(stream.shares >= 0.0)
    assert np.all(np.isfinite(stream.shares))


def test_lone_event_is_damped_by_silence() -> None:
    stream = generate_stream([DominanceEvent(A.CACAO, 0.0, 2.0)], 30.0, ALL)
    cacao = stream.series(A.CACAO)
    assert cacao[10] == pytest.approx(1.0 / 1.5)
    tail = cacao[20:81]
    assert np.all(np.diff(tail) <= 0.0)
    assert cacao[200] == 0.0


def test_unreported_attributes_still_compete() -> None:
    events = [DominanceEvent(A.CACAO, 0.0, 10.0), DominanceEvent(A.ACIDITY, 0.0, 10.0)]
    stream = generate_stream(events, 10.0, [A.CACAO])
    assert stream.shares.shape == (101, 1)
    assert stream.point(50).shares[A.CACAO] == pytest.approx(1.0 / 2.5)


def test_degenerate_inputs_give_empty_stream() -> None:
    assert len(generate_stream([], 10.0, ALL)) == 0
    assert len(generate_stream(_make_events(), 0.0, ALL)) == 0


def test_non_iterable_events_raise() -> None:
    with pytest.raises(TypeError):
        generate_stream(42, 10.0, ALL)  # type: ignore[arg-type]


def test_records_carry_time_and_every_attribute() -> None:
    records = generate_stream(_make_events(), 2.0, [A.CACAO, A.ACIDITY]).to_records()
    assert len(records) == 21
    assert set(records[0]) == {"time", "cacao", "acidity"}
    assert records[-1]["time"] == pytest.approx(2.0)


def test_smoothing_keeps_constant_curves_constant() -> None:
    flat = np.full((40, 2), 0.75)
    out = smooth_truncated(flat, 3.0)
    assert out.shape == flat.shape
    assert np.allclose(out, 0.75)


def test_smoothing_does_not_wrap_around() -> None:
    spike = np.zeros(60)
    spike[-1] = 1.0
    out = smooth_truncated(spike, 3.0)
    assert out[0] == 0.0
    assert out[-1] > out[-5] > 0.0
