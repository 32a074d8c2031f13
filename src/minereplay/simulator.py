from __future__ import annotations

from collections import deque
from dataclasses import dataclass

from .board import BoardMetrics, neighbors
from .debug_log import debug_log
from .errors import MalformedRecording
from .events import CellState, GameEvent, GameEventKind, cell_after
from .recording import RawAction, RawEvent, Recording

_UNOPENED = (CellState.NORMAL, CellState.QUESTIONED)


@dataclass(frozen=True, slots=True)
class SimulationResult:
    metrics: BoardMetrics
    events: tuple[GameEvent, ...]
    terminal: GameEventKind

    @property
    def end_time_ms(self) -> int:
        if not self.events:
            return 0
        return int(self.events[-1].time_ms)


class BoardSimulator:
    """Derives the replayable `GameEvent` stream from a recording's raw input.

    Raw events are replayed once against a scratch board; every emitted
    event is also applied to that board so later decisions (chords, wins)
    see exactly what the replay engine will show.
    """

    def __init__(self, recording: Recording) -> None:
        self._recording = recording
        self._width = int(recording.width)
        self._height = int(recording.height)
        self._metrics = recording.metrics()
        self._numbers = recording.adjacent_counts()
        self._mines = recording.mine_mask

        self._cells = [CellState.NORMAL] * (self._width * self._height)
        self._safe_remaining = sum(1 for mine in self._mines if not mine)
        self._marks = bool(recording.allow_question_marks)
        self._started = False
        self._terminal: GameEventKind | None = None

        self._left = False
        self._right = False
        self._middle = False
        self._chording = False
        self._chord_spent = False
        self._pressing = False
        self._press_center: int | None = None
        self._press_area = False
        self._pressed: list[int] = []

        self._out: list[GameEvent] = []
        self._time = 0
        self._x = 0.0
        self._y = 0.0

    def run(self) -> SimulationResult:
        previous = 0
        for index, raw in enumerate(self._recording.events):
            if raw.time_ms < previous:
                raise MalformedRecording(
                    f"event {index} goes back in time ({raw.time_ms} < {previous})",
                    format=self._recording.format,
                )
            previous = raw.time_ms
            self._step(raw)
            if self._terminal is not None:
                break

        if self._terminal is None:
            self._emit(GameEventKind.PREMATURE_END)
            self._terminal = GameEventKind.PREMATURE_END

        debug_log(
            "simulate",
            format=self._recording.format,
            raw_events=len(self._recording.events),
            game_events=len(self._out),
            terminal=self._terminal.value,
            openings=self._metrics.openings,
            islands=self._metrics.islands,
            min_clicks=self._metrics.min_clicks,
        )
        return SimulationResult(metrics=self._metrics, events=tuple(self._out), terminal=self._terminal)

    def _emit(self, kind: GameEventKind, cell: int | None = None, number: int = 0) -> None:
        self._out.append(GameEvent(kind=kind, time_ms=self._time, cell=cell, x=self._x, y=self._y, number=number))
        if cell is not None:
            state = cell_after(kind, number)
            if state is not None:
                self._cells[cell] = state

    def _step(self, raw: RawEvent) -> None:
        self._time = int(raw.time_ms)
        self._x = float(raw.x)
        self._y = float(raw.y)
        cell = self._recording.cell_index(raw.column, raw.row)
        action = raw.action

        if action == RawAction.MOVE:
            self._emit(GameEventKind.CURSOR_MOVE, cell)
            if self._pressing and cell != self._press_center:
                self._release_pressed()
                self._press(cell, area=self._press_area)
        elif action == RawAction.LEFT_DOWN:
            self._left = True
            self._emit(GameEventKind.LEFT_PRESS, cell)
            if self._right:
                self._start_chord(cell)
            else:
                self._release_pressed()
                self._press(cell, area=False)
        elif action == RawAction.LEFT_DOWN_WITH_MODIFIER:
            self._left = True
            self._emit(GameEventKind.LEFT_PRESS_WITH_MODIFIER, cell)
            self._start_chord(cell)
        elif action == RawAction.LEFT_UP:
            self._emit(GameEventKind.LEFT_RELEASE, cell)
            self._release_pressed()
            if self._chording:
                self._finish_chord(cell)
            elif self._left and not self._chord_spent:
                self._left_click(cell)
            self._left = False
            self._buttons_changed()
        elif action == RawAction.RIGHT_DOWN:
            self._right = True
            self._emit(GameEventKind.RIGHT_PRESS, cell)
            if self._left:
                self._start_chord(cell)
            else:
                self._toggle_flag(cell)
        elif action == RawAction.RIGHT_UP:
            self._emit(GameEventKind.RIGHT_RELEASE, cell)
            self._release_pressed()
            if self._chording:
                self._finish_chord(cell)
            self._right = False
            self._buttons_changed()
        elif action == RawAction.MIDDLE_DOWN:
            self._middle = True
            self._emit(GameEventKind.MIDDLE_PRESS, cell)
            self._start_chord(cell)
        elif action == RawAction.MIDDLE_UP:
            self._emit(GameEventKind.MIDDLE_RELEASE, cell)
            self._release_pressed()
            if self._chording:
                self._finish_chord(cell)
            self._middle = False
            self._buttons_changed()
        elif action == RawAction.TOGGLE_MARK_SETTING:
            self._marks = not self._marks

    def _buttons_changed(self) -> None:
        if not (self._left or self._right or self._middle):
            self._chord_spent = False
            self._pressing = False
        elif self._left and not self._chord_spent and not self._chording:
            self._pressing = True

    # pressed-cell feedback

    def _press(self, cell: int | None, *, area: bool) -> None:
        self._pressing = True
        self._press_center = cell
        self._press_area = area
        if cell is None:
            return
        targets = [cell, *neighbors(cell, self._width, self._height)] if area else [cell]
        for target in targets:
            if self._cells[target] == CellState.NORMAL:
                self._emit(GameEventKind.PRESS, target)
                self._pressed.append(target)

    def _release_pressed(self) -> None:
        for target in self._pressed:
            if self._cells[target] == CellState.PRESSED:
                self._emit(GameEventKind.RELEASE, target)
        self._pressed = []
        self._pressing = False
        self._press_center = None

    # clicks

    def _start_chord(self, cell: int | None) -> None:
        self._chording = True
        self._chord_spent = False
        self._release_pressed()
        self._press(cell, area=True)

    def _finish_chord(self, cell: int | None) -> None:
        self._chording = False
        self._chord_spent = True
        self._emit(GameEventKind.DOUBLE_CLICK_COUNT, cell)
        if cell is None or not self._cells[cell].is_opened:
            return
        number = self._numbers[cell]
        if number == 0:
            return
        around = list(neighbors(cell, self._width, self._height))
        flags = sum(1 for other in around if self._cells[other] == CellState.FLAGGED)
        if flags != number:
            return
        targets = [other for other in around if self._cells[other] in _UNOPENED]
        if not targets:
            return
        self._emit(GameEventKind.REVEAL, cell)
        detonated = [other for other in targets if self._mines[other]]
        if detonated:
            self._lose(detonated)
            return
        for other in targets:
            self._open_flood(other)
        self._check_win()

    def _left_click(self, cell: int | None) -> None:
        if cell is None or self._cells[cell] not in _UNOPENED:
            return
        self._emit(GameEventKind.LEFT_CLICK_COUNT, cell)
        if not self._started:
            self._started = True
            self._emit(GameEventKind.START, cell)
        if self._mines[cell]:
            self._lose([cell])
            return
        self._emit(GameEventKind.REVEAL, cell)
        self._open_flood(cell)
        self._check_win()

    def _toggle_flag(self, cell: int | None) -> None:
        if cell is None:
            return
        state = self._cells[cell]
        if state == CellState.NORMAL:
            kind = GameEventKind.FLAG
        elif state == CellState.FLAGGED:
            kind = GameEventKind.MARK if self._marks else GameEventKind.UNFLAG
        elif state == CellState.QUESTIONED:
            kind = GameEventKind.UNMARK
        else:
            return
        self._emit(GameEventKind.RIGHT_CLICK_COUNT, cell)
        self._emit(kind, cell)

    # board outcomes

    def _open_flood(self, start: int) -> None:
        if self._cells[start] not in _UNOPENED:
            return
        queued = {start}
        queue = deque([start])
        while queue:
            cell = queue.popleft()
            number = self._numbers[cell]
            self._emit(GameEventKind.OPEN, cell, number=number)
            self._safe_remaining -= 1
            if number != 0:
                continue
            for other in neighbors(cell, self._width, self._height):
                if other not in queued and self._cells[other] in _UNOPENED:
                    queued.add(other)
                    queue.append(other)

    def _check_win(self) -> None:
        if self._safe_remaining > 0:
            return
        for cell, mine in enumerate(self._mines):
            if mine and self._cells[cell] != CellState.FLAGGED:
                self._emit(GameEventKind.FLAG, cell)
        self._emit(GameEventKind.WIN)
        self._terminal = GameEventKind.WIN

    def _lose(self, detonated: list[int]) -> None:
        for cell in detonated:
            self._emit(GameEventKind.DETONATED_MINE, cell)
        exploded = set(detonated)
        for cell, mine in enumerate(self._mines):
            if cell in exploded:
                continue
            state = self._cells[cell]
            if mine and state != CellState.FLAGGED:
                self._emit(GameEventKind.EXPOSED_MINE, cell)
            elif not mine and state == CellState.FLAGGED:
                self._emit(GameEventKind.MISLABELED_MINE, cell)
        self._emit(GameEventKind.LOSE)
        self._terminal = GameEventKind.LOSE


def simulate(recording: Recording) -> SimulationResult:
    return BoardSimulator(recording).run()
