from __future__ import annotations

import pytest

from minereplay.errors import IncompleteRecording, MalformedRecording
from minereplay.formats import rawvf
from minereplay.recording import Difficulty, RawAction
from recording_bytes import WIN_SCRIPT, build_rawvf


def test_rawvf_reads_headers_board_and_mouse_lines() -> None:
    recording = rawvf.loads(build_rawvf())

    assert recording.format == "rawvf"
    assert recording.player_name() == "Tester"
    assert recording.difficulty_level == Difficulty.CUSTOM
    assert recording.allow_question_marks is False
    assert recording.mine_mask == (True, False, False, False, False, False, False, False, True)

    # One leading move before the script; the "start" annotation is skipped.
    assert len(recording.events) == len(WIN_SCRIPT) + 1
    lead = recording.events[0]
    assert lead.action == RawAction.MOVE
    assert lead.time_ms == 0
    assert [event.time_ms for event in recording.events[1:]] == [time_ms for _, time_ms, _, _ in WIN_SCRIPT]
    assert recording.events[-1].action == RawAction.LEFT_UP
    assert (recording.events[-1].column, recording.events[-1].row) == (0, 2)


def test_rawvf_level_from_layout_when_header_missing() -> None:
    assert rawvf.loads(build_rawvf(level=None)).difficulty_level == Difficulty.CUSTOM


def test_rawvf_level_header_names() -> None:
    assert rawvf.loads(build_rawvf(level="Expert")).difficulty_level == Difficulty.EXPERT
    assert rawvf.loads(build_rawvf(level="Whatever")).difficulty_level == Difficulty.UNKNOWN


@pytest.mark.parametrize(("raw", "expected"), [("On", True), ("1", True), ("off", False), ("0", False)])
def test_rawvf_marks_header(raw: str, expected: bool) -> None:
    assert rawvf.loads(build_rawvf(marks=raw)).allow_question_marks is expected


def test_rawvf_declared_mines_must_match_board() -> None:
    with pytest.raises(IncompleteRecording):
        rawvf.loads(build_rawvf(declared_mines=1))


def test_rawvf_missing_size_header() -> None:
    data = build_rawvf().replace(b"Height: 3\r\n", b"")
    with pytest.raises(MalformedRecording, match="height"):
        rawvf.loads(data)


def test_rawvf_board_row_width_mismatch() -> None:
    data = build_rawvf().replace(b"Board:\r\n*00", b"Board:\r\n*0")
    with pytest.raises(MalformedRecording, match="board row"):
        rawvf.loads(data)


def test_rawvf_requires_events_section() -> None:
    data = build_rawvf()
    head = data[: data.index(b"Events:")]
    with pytest.raises(MalformedRecording, match="Events"):
        rawvf.loads(head)


def test_rawvf_rejects_truncated_mouse_line() -> None:
    with pytest.raises(MalformedRecording):
        rawvf.loads(build_rawvf()[:-1])


def test_rawvf_rejects_non_numeric_event_line() -> None:
    data = build_rawvf() + b"\r\nnot an event"
    with pytest.raises(MalformedRecording, match="event line"):
        rawvf.loads(data)


def test_rawvf_rejects_cut_off_mouse_code() -> None:
    data = build_rawvf()
    cut = data[: data.rindex(b"0.450 l") + len(b"0.450 l")]
    with pytest.raises(MalformedRecording, match="truncated mouse code"):
        rawvf.loads(cut)


def test_rawvf_rejects_time_without_code() -> None:
    with pytest.raises(MalformedRecording, match="no code"):
        rawvf.loads(build_rawvf() + b"\r\n1.000\r\n")


def test_rawvf_unterminated_last_line_must_be_complete() -> None:
    data = build_rawvf()
    with pytest.raises(MalformedRecording, match="unterminated"):
        rawvf.loads(data + b"\r\n0.500 wo")

    assert len(rawvf.loads(data + b"\r\n0.500 won").events) == len(WIN_SCRIPT) + 1
    assert len(rawvf.loads(data + b"\r\n0.500 wo\r\n").events) == len(WIN_SCRIPT) + 1
