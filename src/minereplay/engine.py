from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from .debug_log import debug_log
from .errors import ReplayStateError
from .events import FACE_TRANSITIONS, CellState, FaceStatus, GameEvent, GameEventKind, Snapshot, cell_after
from .recording import Recording
from .simulator import SimulationResult, simulate


@dataclass(frozen=True, slots=True)
class PathSample:
    x: float
    y: float


_POINT_LOGS: dict[GameEventKind, str] = {
    GameEventKind.CURSOR_MOVE: "move",
    GameEventKind.LEFT_CLICK_COUNT: "left",
    GameEventKind.RIGHT_CLICK_COUNT: "right",
    GameEventKind.DOUBLE_CLICK_COUNT: "double",
}


class ReplayEngine:
    """Bidirectional stepper over a derived `GameEvent` sequence.

    The engine exclusively owns the cell grid, face status and mouse point
    logs. Each forward step records what it overwrites in the event's
    snapshot so stepping back is O(1).
    """

    def __init__(self, width: int, height: int, events: Sequence[GameEvent]) -> None:
        self._width = int(width)
        self._height = int(height)
        self._events = list(events)
        self._index = 0
        self._elapsed_ms: float | None = None
        self._cells = [CellState.NORMAL] * (self._width * self._height)
        self._face = FaceStatus.NORMAL
        self._started = False
        self._points: dict[str, list[PathSample]] = {name: [] for name in _POINT_LOGS.values()}

    @classmethod
    def from_recording(cls, recording: Recording) -> ReplayEngine:
        return cls.from_simulation(recording, simulate(recording))

    @classmethod
    def from_simulation(cls, recording: Recording, result: SimulationResult) -> ReplayEngine:
        return cls(recording.width, recording.height, result.events)

    @property
    def index(self) -> int:
        return self._index

    @property
    def event_count(self) -> int:
        return len(self._events)

    @property
    def events(self) -> tuple[GameEvent, ...]:
        return tuple(self._events)

    @property
    def elapsed_ms(self) -> float:
        return self._elapsed_ms if self._elapsed_ms is not None else 0.0

    @property
    def game_started(self) -> bool:
        return self._started

    @property
    def finished(self) -> bool:
        return self._index > 0 and self._events[self._index - 1].is_terminal

    def current_cell_grid(self) -> tuple[CellState, ...]:
        return tuple(self._cells)

    def cell_at(self, column: int, row: int) -> CellState:
        return self._cells[int(row) * self._width + int(column)]

    def current_face_status(self) -> FaceStatus:
        return self._face

    def current_mouse_path_samples(self) -> tuple[PathSample, ...]:
        return tuple(self._points["move"])

    def current_click_samples(self) -> dict[str, tuple[PathSample, ...]]:
        return {name: tuple(points) for name, points in self._points.items() if name != "move"}

    def step_forward(self) -> GameEvent:
        if self._index >= len(self._events):
            raise ReplayStateError(f"step_forward past the last event ({self._index})")
        event = self._events[self._index]
        cell = event.cell
        if event.snapshot is None:
            event.snapshot = Snapshot(
                prior_cell_state=self._cells[cell] if cell is not None else None,
                prior_face_status=self._face,
                prior_started=self._started,
            )

        if cell is not None:
            state = cell_after(event.kind, event.number)
            if state is not None:
                self._cells[cell] = state
        face = FACE_TRANSITIONS.get(event.kind)
        if face is not None:
            self._face = face
        if event.kind == GameEventKind.START:
            self._started = True
        log = _POINT_LOGS.get(event.kind)
        if log is not None:
            self._points[log].append(PathSample(event.x, event.y))

        self._index += 1
        if event.is_terminal:
            debug_log("replay_terminal", kind=event.kind.value, time_ms=event.time_ms, index=self._index)
        return event

    def step_backward(self) -> GameEvent:
        if self._index <= 0:
            raise ReplayStateError("step_backward before the first event")
        event = self._events[self._index - 1]
        snapshot = event.snapshot
        if snapshot is None:
            raise ReplayStateError(f"event {self._index - 1} has no snapshot; it was never applied")
        self._index -= 1

        if event.cell is not None and snapshot.prior_cell_state is not None:
            self._cells[event.cell] = snapshot.prior_cell_state
        self._face = snapshot.prior_face_status
        self._started = snapshot.prior_started
        log = _POINT_LOGS.get(event.kind)
        if log is not None:
            self._points[log].pop()
        return event

    def seek(self, target_elapsed_ms: float) -> int:
        """Move to the state at `target_elapsed_ms`; returns the number of steps taken."""
        target = float(target_elapsed_ms)
        steps = 0
        if self._elapsed_ms is not None and target == self._elapsed_ms:
            return steps
        if self._elapsed_ms is None or target > self._elapsed_ms:
            self._elapsed_ms = target
            while self._index < len(self._events) and self._events[self._index].time_ms <= target:
                self.step_forward()
                steps += 1
        else:
            self._elapsed_ms = target
            while self._index > 0 and (self._events[self._index - 1].time_ms > target or target <= 0):
                self.step_backward()
                steps += 1
        return steps

    def reset(self) -> None:
        while self._index > 0:
            self.step_backward()
        self._elapsed_ms = None
