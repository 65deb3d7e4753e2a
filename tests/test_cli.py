"""Tests for CLI entrypoints."""

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path

import pytest
from dateutil import tz
from openpyxl import load_workbook

from gluj import cli

_NOW = datetime(2015, 1, 15, 12, 0, 0, tzinfo=tz.UTC)


@pytest.fixture
def data_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    root = tmp_path / "data"
    root.mkdir()
    (root / "all.csv").write_text("2015-01-15T11:05:30+0000, 7.0\n", encoding="utf-8")
    monkeypatch.setattr(cli, "_now", lambda: _NOW)
    monkeypatch.delenv("GLUJ_DATA_DIR", raising=False)
    return root


def _run(data_dir: Path, *args: str) -> int:
    return cli.main(["--data-dir", str(data_dir), "--tz", "UTC", *args])


def test_parse_args_defaults_to_now() -> None:
    ns = cli.parse_args([])
    assert ns.command == "now"
    assert ns.at is None
    assert ns.verbose is False


def test_parse_args_custom_values() -> None:
    ns = cli.parse_args(["--data-dir", "/tmp/base", "days", "--days", "10"])
    assert ns.data_dir == "/tmp/base"
    assert ns.command == "days"
    assert ns.days == 10


def test_parse_args_rejects_zero_days() -> None:
    with pytest.raises(SystemExit):
        cli.parse_args(["days", "--days", "0"])


def test_now_prints_recent_window(data_dir: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert _run(data_dir) == 0
    assert capsys.readouterr().out == "       |       |       |   7---|\n"


def test_now_at_instant(data_dir: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert _run(data_dir, "now", "--at", "2015-01-15T13:00:00+00:00") == 0
    out = capsys.readouterr().out.rstrip("\n")
    assert len(out) == 32
    assert out.endswith("7---|----")


def test_day_prints_calendar_row(data_dir: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert _run(data_dir, "day", "2015-01-15") == 0
    row = capsys.readouterr().out.rstrip("\n")
    assert len(row) == 95
    assert row[36] == "7"


def test_days_prints_one_row_per_day(
    data_dir: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    assert _run(data_dir, "days", "--days", "3") == 0
    lines = capsys.readouterr().out.splitlines()
    assert [line[:10] for line in lines] == ["2015-01-13", "2015-01-14", "2015-01-15"]
    assert all(len(line) == 11 + 95 for line in lines)


def test_add_appends_reading(data_dir: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert _run(data_dir, "add", "6.44", "--at", "2015-01-15T11:50:00") == 0
    assert (data_dir / "new.csv").read_text(encoding="utf-8") == (
        "2015-01-15T11:50:00+0000, 6.4\n"
    )
    capsys.readouterr()
    assert _run(data_dir) == 0
    assert capsys.readouterr().out.rstrip("\n").endswith("7  6|")


def test_add_converts_mg_dl(data_dir: Path) -> None:
    assert _run(data_dir, "add", "108", "--mg-dl", "--at", "2015-01-15T11:50") == 0
    assert (data_dir / "new.csv").read_text(encoding="utf-8").endswith(", 6.0\n")


def test_import_appends_only_newer_readings(
    data_dir: Path, tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    export = tmp_path / "accuchek_2015-01-15.json"
    data = [
        {"timestamp": "2015/01/15 10:00", "mg/dL": 90, "mmol/L": 5.0},
        {"timestamp": "2015/01/15 11:40", "mg/dL": 108, "mmol/L": 6.0},
    ]
    export.write_text(json.dumps(data), encoding="utf-8")

    assert _run(data_dir, "import", str(export)) == 0
    assert "1 new readings" in capsys.readouterr().out
    assert (data_dir / "new.csv").read_text(encoding="utf-8") == (
        "2015-01-15T11:40:00+0000, 6.0\n"
    )

    assert _run(data_dir, "import", str(tmp_path)) == 0
    assert "0 new readings" in capsys.readouterr().out


def test_export_writes_xlsx(data_dir: Path, tmp_path: Path) -> None:
    out = tmp_path / "salidas" / "franjas.xlsx"
    assert _run(data_dir, "export", str(out), "--days", "2") == 0
    ws = load_workbook(out).active
    assert ws.max_row == 3
    assert ws.cell(row=3, column=3).value[36] == "7"


def test_missing_store_returns_source_unavailable(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    monkeypatch.setattr(cli, "_now", lambda: _NOW)
    assert _run(tmp_path / "vacio") == 3
    assert capsys.readouterr().err.startswith("error: Need file")


def test_malformed_store_returns_exit_code_four(
    data_dir: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    (data_dir / "new.csv").write_text("ayer, 5.0\n", encoding="utf-8")
    assert _run(data_dir, "day") == 4
    assert "record 1" in capsys.readouterr().err


def test_invalid_date_is_runtime_error(data_dir: Path) -> None:
    assert _run(data_dir, "day", "15/01/2015") == 1


def test_main_propagates_unexpected_errors(
    data_dir: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    def _boom(_: object) -> object:
        raise RuntimeError("boom")

    monkeypatch.setattr(cli, "_load_view", _boom)
    with pytest.raises(RuntimeError, match="boom"):
        _run(data_dir, "now")


def test_import_out_of_range_epoch_returns_exit_code_four(
    data_dir: Path, tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    export = tmp_path / "accuchek_overflow.json"
    export.write_text(json.dumps([{"epoch": 10**20, "mmol/L": 5.0}]), encoding="utf-8")
    assert _run(data_dir, "import", str(export)) == 4
    assert "record 1" in capsys.readouterr().err


def test_days_all_covers_stored_range(
    data_dir: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    (data_dir / "new.csv").write_text("2015-01-13T23:50:00+0000, 5.0\n", encoding="utf-8")
    assert _run(data_dir, "days", "--all") == 0
    lines = capsys.readouterr().out.splitlines()
    assert [line[:10] for line in lines] == ["2015-01-13", "2015-01-14", "2015-01-15"]
    assert lines[0][11 + 87] == "5"
    assert lines[2][11 + 36] == "7"


def test_days_all_with_empty_store_prints_nothing(
    data_dir: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    (data_dir / "all.csv").write_text("", encoding="utf-8")
    assert _run(data_dir, "days", "--all") == 0
    assert capsys.readouterr().out == ""


def test_days_and_all_are_exclusive() -> None:
    with pytest.raises(SystemExit):
        cli.parse_args(["days", "--days", "3", "--all"])


def test_export_all_writes_stored_range(data_dir: Path, tmp_path: Path) -> None:
    out = tmp_path / "todo.xlsx"
    assert _run(data_dir, "export", str(out), "--all") == 0
    ws = load_workbook(out).active
    assert ws.max_row == 2
    assert ws.cell(row=2, column=3).value[36] == "7"
