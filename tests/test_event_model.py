import json

import pytest

from tdsgrade.tasting.attributes import AttributeId, parse_attribute_list
from tdsgrade.tasting.codec import decode_intervals, encode_intervals
from tdsgrade.tasting.model import DominanceEvent, Mode, Phase, TastingProfile, profile_from_dict
from tdsgrade.tasting.normalize import normalize_events


def _make_payload(**overrides):
    payload = {
        "id": "sample-7",
        "mode": "expert",
        "swallowTime": 10,
        "totalDuration": 20,
        "lastModified": 1700000000000,
        "events": [
            {"attrId": "cacao", "start": 0.5, "end": 6.0},
            {"attrId": "attr_acidity", "start": 6.0, "end": 9.5},
            {"attrId": "umami", "start": 1.0, "end": 2.0},
            {"attrId": "roast", "start": 4.0, "end": 3.0},
            {"attrId": "nutty", "start": 12.0, "end": 15.0},
        ],
    }
    payload.update(overrides)
    return payload


def test_attribute_parse_accepts_prefixed_ids() -> None:
    assert AttributeId.parse("attr_fresh_fruit") is AttributeId.FRESH_FRUIT
    assert AttributeId.parse("Cacao") is AttributeId.CACAO
    assert AttributeId.parse("umami") is None
    assert parse_attribute_list(["cacao", "bogus", "cacao", "roast"]) == [AttributeId.CACAO, AttributeId.ROAST]


def test_event_requires_positive_duration() -> None:
    with pytest.raises(ValueError):
        DominanceEvent(AttributeId.CACAO, 3.0, 3.0)


def test_profile_from_dict_skips_unknown_and_inverted_events() -> None:
    profile = profile_from_dict(_make_payload())
    assert profile.id == "sample-7"
    assert profile.mode is Mode.EXPERT
    assert profile.last_modified == 1700000000000
    assert [ev.attribute for ev in profile.events] == [AttributeId.CACAO, AttributeId.ACIDITY, AttributeId.NUTTY]
    assert profile.events[-1].phase is Phase.RESIDUAL
    assert profile.events[0].phase is Phase.MELTING


def test_zero_swallow_means_swallow_at_end() -> None:
    profile = profile_from_dict(_make_payload(swallowTime=0))
    assert profile.swallow_time == 20.0
    assert all(ev.phase is Phase.MELTING for ev in profile.events)


def test_non_iterable_events_raise_type_error() -> None:
    with pytest.raises(TypeError):
        profile_from_dict(_make_payload(events=5))


def test_revise_produces_newer_profile() -> None:
    profile = profile_from_dict(_make_payload())
    revised = profile.revise(events=profile.events[:1])
    assert revised.id == profile.id
    assert revised.last_modified > profile.last_modified
    assert revised.cache_key != profile.cache_key
    assert len(profile.events) == 3


def test_normalize_clamps_and_drops() -> None:
    events = [
        DominanceEvent(AttributeId.CACAO, -2.0, 4.0),
        DominanceEvent(AttributeId.ACIDITY, 8.0, 14.0),
        DominanceEvent(AttributeId.ROAST, 11.0, 12.0),
    ]
    timing = normalize_events(events, total_duration=10.0, swallow_time=25.0)
    assert timing.swallow_time == 10.0
    assert timing.dropped == 1
    assert [(ev.start, ev.end) for ev in timing.events] == [(0.0, 4.0), (8.0, 10.0)]


def test_normalize_falls_back_to_last_event_end() -> None:
    timing = normalize_events([DominanceEvent(AttributeId.CACAO, 1.0, 7.5)], total_duration=0.0)
    assert timing.total_duration == 7.5
    assert timing.swallow_time == 7.5
    assert timing.first_onset == 1.0


def test_interval_columns_reproduce_events() -> None:
    profile = TastingProfile.create(
        [
            DominanceEvent(AttributeId.CACAO, 0.123, 4.567),
            DominanceEvent(AttributeId.CACAO, 6.0, 9.995),
            DominanceEvent(AttributeId.FLORAL, 4.567, 6.0),
        ],
        swallow_time=8.0,
        total_duration=12.0,
    )
    columns = encode_intervals(profile.events, list(AttributeId))
    assert columns[AttributeId.ROAST] == ""
    assert json.loads(columns[AttributeId.FLORAL]) == [{"start": 4.57, "end": 6.0}]

    decoded = decode_intervals({attr.value: cell for attr, cell in columns.items()}, swallow_time=8.0)
    assert len(decoded) == len(profile.events)
    for original, parsed in zip(sorted(profile.events, key=lambda e: e.start), decoded):
        assert parsed.attribute is original.attribute
        assert parsed.start == pytest.approx(original.start, abs=0.01)
        assert parsed.end == pytest.approx(original.end, abs=0.01)
    assert decoded[-1].phase is Phase.MELTING


def test_decode_skips_unknown_keys_and_bad_cells() -> None:
    events = decode_intervals(
        {
            "cacao": '[{"start": 0, "end": 2}]',
            "umami": '[{"start": 0, "end": 2}]',
            "roast": "not json",
            "nutty": "",
        }
    )
    assert [ev.attribute for ev in events] == [AttributeId.CACAO]
