from __future__ import annotations

from pathlib import Path

import msgspec
import pytest
from typer.testing import CliRunner

from minereplay.cli import RecordingSummary, app
from minereplay.debug_log import DEBUG_LOG_ENV
from recording_bytes import LOSE_SCRIPT, build_avf, build_rawvf


def _write(tmp_path: Path, name: str, data: bytes) -> Path:
    path = tmp_path / name
    path.write_bytes(data)
    return path


def test_info_json_summary(tmp_path: Path) -> None:
    path = _write(tmp_path, "win.avf", build_avf())
    result = CliRunner().invoke(app, ["info", str(path), "--json"])

    assert result.exit_code == 0, result.output
    summary = msgspec.json.decode(result.stdout.encode("utf-8"), type=RecordingSummary)
    assert summary.format == "avf"
    assert summary.player == "Tester"
    assert summary.level == "custom"
    assert (summary.width, summary.height, summary.mines) == (3, 3, 2)
    assert summary.raw_events == 6
    assert summary.game_events == 25
    assert summary.terminal == "win"
    assert summary.end_time_ms == 450
    assert (summary.openings, summary.islands, summary.min_clicks) == (2, 1, 2)


def test_info_text_lists_fields(tmp_path: Path) -> None:
    path = _write(tmp_path, "game.rawvf", build_rawvf())
    result = CliRunner().invoke(app, ["info", str(path)])

    assert result.exit_code == 0, result.output
    assert "format" in result.stdout
    assert "rawvf" in result.stdout
    assert "min_clicks" in result.stdout


def test_info_writes_debug_log(tmp_path: Path) -> None:
    path = _write(tmp_path, "win.avf", build_avf())
    log_path = tmp_path / "trace.log"
    result = CliRunner().invoke(app, ["info", str(path), "--debug-log", str(log_path)])

    assert result.exit_code == 0, result.output
    text = log_path.read_text(encoding="utf-8")
    assert "event=decode" in text
    assert "event=simulate" in text


def test_info_takes_debug_log_from_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    path = _write(tmp_path, "win.avf", build_avf())
    log_path = tmp_path / "env" / "trace.log"
    monkeypatch.setenv(DEBUG_LOG_ENV, str(log_path))
    result = CliRunner().invoke(app, ["info", str(path)])

    assert result.exit_code == 0, result.output
    text = log_path.read_text(encoding="utf-8")
    assert "event=init" in text
    assert "event=simulate" in text


def test_events_lists_game_events(tmp_path: Path) -> None:
    path = _write(tmp_path, "lose.avf", build_avf(script=LOSE_SCRIPT))
    result = CliRunner().invoke(app, ["events", str(path)])

    assert result.exit_code == 0, result.output
    lines = result.stdout.splitlines()
    assert len(lines) == 10
    assert "detonated_mine" in lines[7]
    assert "0,0" in lines[7]
    assert "lose" in lines[-1].split()


def test_events_limit(tmp_path: Path) -> None:
    path = _write(tmp_path, "win.avf", build_avf())
    result = CliRunner().invoke(app, ["events", str(path), "--limit", "3"])

    assert result.exit_code == 0, result.output
    assert len(result.stdout.splitlines()) == 3


def test_board_at_time(tmp_path: Path) -> None:
    path = _write(tmp_path, "win.avf", build_avf())
    result = CliRunner().invoke(app, ["board", str(path), "--at", "200"])

    assert result.exit_code == 0, result.output
    lines = result.stdout.splitlines()
    assert lines[:3] == ["#1.", "#21", "###"]
    assert lines[3] == "face=normal index=12/25"


def test_bad_recording_exits_with_error(tmp_path: Path) -> None:
    path = _write(tmp_path, "broken.rmv", b"*rmv\x00")
    result = CliRunner().invoke(app, ["info", str(path)])

    assert result.exit_code == 1
    assert "failed to load" in result.output


def test_unsupported_extension_exits_with_error(tmp_path: Path) -> None:
    path = _write(tmp_path, "notes.txt", b"hello")
    result = CliRunner().invoke(app, ["info", str(path)])

    assert result.exit_code == 1
    assert "unsupported recording format" in result.output
