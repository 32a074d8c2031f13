from __future__ import annotations

from collections.abc import Sequence

from .formats.common import finish_recording, normalize_event
from .recording import CANONICAL_CELL_SIZE, Difficulty, RawAction, RawEvent, Recording, difficulty_for_layout

FORMAT = "live"


class RecordingRecorder:
    """Collects raw input for a session played live on a known board."""

    def __init__(
        self,
        width: int,
        height: int,
        mine_mask: Sequence[bool],
        *,
        allow_question_marks: bool = False,
        difficulty_level: Difficulty | None = None,
        player_name_bytes: bytes = b"",
    ) -> None:
        self._width = int(width)
        self._height = int(height)
        self._mine_mask = tuple(bool(mine) for mine in mine_mask)
        if len(self._mine_mask) != self._width * self._height:
            raise ValueError(f"mine mask has {len(self._mine_mask)} cells, expected {self._width * self._height}")
        self._marks = bool(allow_question_marks)
        mines = sum(self._mine_mask)
        self._level = difficulty_level if difficulty_level is not None else difficulty_for_layout(width, height, mines)
        self._player_name = bytes(player_name_bytes)
        self._events: list[RawEvent] = []

    @classmethod
    def from_recording(cls, recording: Recording, *, allow_question_marks: bool | None = None) -> RecordingRecorder:
        marks = recording.allow_question_marks if allow_question_marks is None else allow_question_marks
        return cls(
            recording.width,
            recording.height,
            recording.mine_mask,
            allow_question_marks=marks,
            difficulty_level=recording.difficulty_level,
        )

    @property
    def event_count(self) -> int:
        return len(self._events)

    def record(self, action: RawAction, *, time_ms: int, x: float, y: float) -> bool:
        """Append one input event at canonical coordinates.

        Returns False when the event is dropped (a move before any other input).
        """

        if action == RawAction.MOVE and not self._events:
            return False
        if self._events and int(time_ms) < self._events[-1].time_ms:
            raise ValueError(f"event time {time_ms} is before the previous event ({self._events[-1].time_ms})")
        self._events.append(
            normalize_event(
                time_ms=int(time_ms),
                action=action,
                x_raw=float(x),
                y_raw=float(y),
                pixel_size=CANONICAL_CELL_SIZE,
            )
        )
        return True

    def finish(self) -> Recording:
        return finish_recording(
            format=FORMAT,
            width=self._width,
            height=self._height,
            mine_count=sum(self._mine_mask),
            mine_mask=self._mine_mask,
            events=list(self._events),
            allow_question_marks=self._marks,
            difficulty_level=self._level,
            player_name_bytes=self._player_name,
        )
