from __future__ import annotations

import pytest

from minereplay.errors import MalformedRecording
from minereplay.events import GameEventKind
from minereplay.formats import avf
from minereplay.recorder import RecordingRecorder
from minereplay.recording import Difficulty, RawAction
from minereplay.simulator import simulate
from recording_bytes import WIN_SCRIPT, build_avf

_MASK = (True, False, False, False, False, False, False, False, True)


def test_recorded_session_replays_like_the_decoded_one() -> None:
    recorder = RecordingRecorder(3, 3, _MASK, player_name_bytes=b"Live")
    for action, time_ms, x, y in WIN_SCRIPT:
        recorder.record(action, time_ms=time_ms, x=x, y=y)
    recording = recorder.finish()

    assert recording.format == "live"
    assert recording.difficulty_level == Difficulty.CUSTOM
    assert recording.player_name() == "Live"
    assert recording.mine_count == 2

    # The leading move is dropped because nothing was recorded yet.
    assert recorder.event_count == len(WIN_SCRIPT) - 1
    assert simulate(recording).terminal == GameEventKind.WIN


def test_leading_moves_are_dropped() -> None:
    recorder = RecordingRecorder(3, 3, _MASK)
    assert recorder.record(RawAction.MOVE, time_ms=0, x=8, y=8) is False
    assert recorder.record(RawAction.LEFT_DOWN, time_ms=10, x=8, y=8) is True
    assert recorder.record(RawAction.MOVE, time_ms=20, x=24, y=8) is True
    assert recorder.event_count == 2


def test_time_must_not_go_backwards() -> None:
    recorder = RecordingRecorder(3, 3, _MASK)
    recorder.record(RawAction.LEFT_DOWN, time_ms=50, x=8, y=8)
    with pytest.raises(ValueError):
        recorder.record(RawAction.LEFT_UP, time_ms=40, x=8, y=8)


def test_mask_size_checked() -> None:
    with pytest.raises(ValueError):
        RecordingRecorder(3, 3, _MASK[:-1])


def test_all_mine_board_rejected_on_finish() -> None:
    recorder = RecordingRecorder(1, 1, (True,))
    with pytest.raises(MalformedRecording, match="mine count"):
        recorder.finish()


def test_from_recording_copies_board() -> None:
    source = avf.loads(build_avf(marks=True))
    recorder = RecordingRecorder.from_recording(source)
    recorder.record(RawAction.RIGHT_DOWN, time_ms=5, x=8, y=8)
    recording = recorder.finish()
    assert recording.mine_mask == source.mine_mask
    assert recording.allow_question_marks is True
    assert recording.events[0].column == 0
