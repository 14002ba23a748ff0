import json
import logging

import pytest

from tdsgrade.util.logging import ConsoleFormatter, JSONFormatter, log_duration


def _make_record(**extra) -> logging.LogRecord:
    record = logging.LogRecord("tdsgrade.scoring.scorer", logging.DEBUG, __file__, 1, "Scored profile", None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_console_line_carries_tasting_context() -> None:
    line = ConsoleFormatter(use_color=False).format(_make_record(profile_id="p1", attribute="cacao"))
    assert "[scoring.scorer] Scored profile" in line
    assert line.endswith("(profile_id=p1 attribute=cacao)")


def test_console_line_without_context_is_bare() -> None:
    line = ConsoleFormatter(use_color=False).format(_make_record())
    assert line.endswith("Scored profile")


def test_json_line_keeps_every_known_field() -> None:
    payload = json.loads(JSONFormatter().format(_make_record(replications=4, error_type="analysis", ignored="x")))
    assert payload["replications"] == 4
    assert payload["error_type"] == "analysis"
    assert "ignored" not in payload
    assert payload["message"] == "Scored profile"


def test_log_duration_reports_elapsed_time(caplog: pytest.LogCaptureFixture) -> None:
    logger = logging.getLogger("tdsgrade_tests.duration")
    caplog.set_level(logging.DEBUG, logger=logger.name)
    with log_duration(logger, "Aggregated replications", replications=3) as fields:
        fields["profile_id"] = "p9"
    record = caplog.records[-1]
    assert record.getMessage() == "Aggregated replications"
    assert record.replications == 3
    assert record.profile_id == "p9"
    assert record.duration_ms >= 0.0


def test_log_duration_is_silent_when_block_raises(caplog: pytest.LogCaptureFixture) -> None:
    logger = logging.getLogger("tdsgrade_tests.failure")
    caplog.set_level(logging.DEBUG, logger=logger.name)
    with pytest.raises(ValueError):
        with log_duration(logger, "Scored profile"):
            raise ValueError("bad profile")
    assert caplog.records == []
