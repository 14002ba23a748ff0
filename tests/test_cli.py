import json
from pathlib import Path

import pytest

from tdsgrade.cli import main, parse_args
from tdsgrade.util.exit_codes import ExitCode


def _write_profile(tmp_path: Path, name: str = "profile.json", **overrides) -> str:
    payload = {
        "id": name.split(".")[0],
        "mode": "normal",
        "swallowTime": 10,
        "totalDuration": 20,
        "events": [
            {"attrId": "cacao", "start": 0, "end": 10},
            {"attrId": "cacao", "start": 10, "end": 18},
        ],
    }
    payload.update(overrides)
    payload = {key: value for key, value in payload.items() if value is not None}
    path = tmp_path / name
    path.write_text(json.dumps(payload), encoding="utf-8")
    return str(path)


def test_analyze_prints_scores(tmp_path: Path, capsys: pytest.CaptureFixture) -> None:
    rc = main(["analyze", _write_profile(tmp_path)])
    assert rc == ExitCode.SUCCESS
    out = json.loads(capsys.readouterr().out)
    assert out["product"] == "cacao_mass"
    assert out["scores"]["cacao"]["score"] == 10
    assert out["scores"]["cacao"]["boostDetails"]["amount"] == 2


def test_analyze_reads_interval_columns(tmp_path: Path, capsys: pytest.CaptureFixture) -> None:
    path = _write_profile(tmp_path, events=None, intervals={"cacao": '[{"start": 0, "end": 10}]'})
    assert main(["analyze", path]) == ExitCode.SUCCESS
    out = json.loads(capsys.readouterr().out)
    assert out["scores"]["cacao"]["durationPercent"] == 100.0


def test_stream_and_aggregate(tmp_path: Path, capsys: pytest.CaptureFixture) -> None:
    first = _write_profile(tmp_path, "a.json")
    second = _write_profile(tmp_path, "b.json")
    assert main(["stream", first, "--resolution", "1.0"]) == ExitCode.SUCCESS
    stream = json.loads(capsys.readouterr().out)
    assert len(stream["points"]) == 21

    assert main(["aggregate", first, second]) == ExitCode.SUCCESS
    curve = json.loads(capsys.readouterr().out)
    assert len(curve["curves"]) == 131
    assert curve["replicationCount"] == 2


def test_export_writes_csv(tmp_path: Path, capsys: pytest.CaptureFixture) -> None:
    assert main(["export", _write_profile(tmp_path)]) == ExitCode.SUCCESS
    lines = capsys.readouterr().out.strip().splitlines()
    assert lines[0].startswith("TDS Mode,")
    assert len(lines) == 2


def test_list_products(capsys: pytest.CaptureFixture) -> None:
    assert main(["--list-products"]) == ExitCode.SUCCESS
    assert "cacao_mass" in capsys.readouterr().out


def test_missing_file_maps_to_exit_code(tmp_path: Path) -> None:
    assert main(["analyze", str(tmp_path / "nope.json")]) == ExitCode.INPUT_NOT_FOUND


def test_malformed_file_maps_to_exit_code(tmp_path: Path) -> None:
    bad = tmp_path / "bad.json"
    bad.write_text("{not json", encoding="utf-8")
    assert main(["analyze", str(bad)]) == ExitCode.INVALID_INPUT
    assert main(["analyze", _write_profile(tmp_path, events=7)]) == ExitCode.INVALID_INPUT


def test_unknown_product_maps_to_exit_code(tmp_path: Path) -> None:
    assert main(["--product", "milk_bar", "analyze", _write_profile(tmp_path)]) == ExitCode.CONFIG_ERROR
    broken = tmp_path / "product.json"
    broken.write_text(json.dumps({"id": "x", "core": ["umami"]}), encoding="utf-8")
    rc = main(["--product-file", str(broken), "analyze", _write_profile(tmp_path)])
    assert rc == ExitCode.CONFIG_ERROR


def test_command_is_required() -> None:
    with pytest.raises(SystemExit) as excinfo:
        parse_args([])
    assert excinfo.value.code == ExitCode.INVALID_ARGS
