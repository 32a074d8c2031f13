from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntEnum


class CellState(IntEnum):
    """Visible state of one grid cell; values 0..8 are opened numbers."""

    OPENED_0 = 0
    OPENED_1 = 1
    OPENED_2 = 2
    OPENED_3 = 3
    OPENED_4 = 4
    OPENED_5 = 5
    OPENED_6 = 6
    OPENED_7 = 7
    OPENED_8 = 8
    NORMAL = 9
    FLAGGED = 10
    QUESTIONED = 11
    PRESSED = 12
    MINE = 13
    MINE_WRONG_FLAG = 14
    MINE_EXPLODED = 15

    @classmethod
    def opened(cls, adjacent_mines: int) -> CellState:
        adjacent_mines = int(adjacent_mines)
        if not (0 <= adjacent_mines <= 8):
            raise ValueError(f"adjacent mine count out of range: {adjacent_mines}")
        return cls(adjacent_mines)

    @property
    def is_opened(self) -> bool:
        return int(self) <= 8

    @property
    def adjacent_mines(self) -> int | None:
        return int(self) if self.is_opened else None

    @property
    def glyph(self) -> str:
        if self.is_opened:
            return "." if int(self) == 0 else str(int(self))
        return _GLYPHS[self]


_GLYPHS = {
    CellState.NORMAL: "#",
    CellState.FLAGGED: "F",
    CellState.QUESTIONED: "?",
    CellState.PRESSED: "_",
    CellState.MINE: "*",
    CellState.MINE_WRONG_FLAG: "X",
    CellState.MINE_EXPLODED: "@",
}


class FaceStatus(str, Enum):
    NORMAL = "normal"
    PRESSED = "pressed"
    WIN = "win"
    LOSE = "lose"


class GameEventKind(str, Enum):
    START = "start"
    CURSOR_MOVE = "cursor_move"
    LEFT_CLICK_COUNT = "left_click_count"
    RIGHT_CLICK_COUNT = "right_click_count"
    DOUBLE_CLICK_COUNT = "double_click_count"
    LEFT_PRESS = "left_press"
    LEFT_PRESS_WITH_MODIFIER = "left_press_with_modifier"
    LEFT_RELEASE = "left_release"
    RIGHT_PRESS = "right_press"
    RIGHT_RELEASE = "right_release"
    MIDDLE_PRESS = "middle_press"
    MIDDLE_RELEASE = "middle_release"
    FLAG = "flag"
    UNFLAG = "unflag"
    MARK = "mark"
    UNMARK = "unmark"
    PRESS = "press"
    RELEASE = "release"
    REVEAL = "reveal"
    EXPOSED_MINE = "exposed_mine"
    MISLABELED_MINE = "mislabeled_mine"
    DETONATED_MINE = "detonated_mine"
    OPEN = "open"
    WIN = "win"
    LOSE = "lose"
    PREMATURE_END = "premature_end"


TERMINAL_KINDS = frozenset({GameEventKind.WIN, GameEventKind.LOSE, GameEventKind.PREMATURE_END})

# Cell mutation applied by each cell-targeting kind (OPEN is handled by number).
CELL_TRANSITIONS: dict[GameEventKind, CellState] = {
    GameEventKind.FLAG: CellState.FLAGGED,
    GameEventKind.UNFLAG: CellState.NORMAL,
    GameEventKind.MARK: CellState.QUESTIONED,
    GameEventKind.UNMARK: CellState.NORMAL,
    GameEventKind.PRESS: CellState.PRESSED,
    GameEventKind.RELEASE: CellState.NORMAL,
    GameEventKind.EXPOSED_MINE: CellState.MINE,
    GameEventKind.MISLABELED_MINE: CellState.MINE_WRONG_FLAG,
    GameEventKind.DETONATED_MINE: CellState.MINE_EXPLODED,
}

FACE_TRANSITIONS: dict[GameEventKind, FaceStatus] = {
    GameEventKind.LEFT_PRESS: FaceStatus.PRESSED,
    GameEventKind.LEFT_PRESS_WITH_MODIFIER: FaceStatus.PRESSED,
    GameEventKind.RIGHT_PRESS: FaceStatus.PRESSED,
    GameEventKind.MIDDLE_PRESS: FaceStatus.PRESSED,
    GameEventKind.LEFT_RELEASE: FaceStatus.NORMAL,
    GameEventKind.RIGHT_RELEASE: FaceStatus.NORMAL,
    GameEventKind.MIDDLE_RELEASE: FaceStatus.NORMAL,
    GameEventKind.WIN: FaceStatus.WIN,
    GameEventKind.LOSE: FaceStatus.LOSE,
}


def cell_after(kind: GameEventKind, number: int = 0) -> CellState | None:
    """Return the state a cell takes after `kind`, or None if the cell is untouched."""
    if kind == GameEventKind.OPEN:
        return CellState.opened(number)
    return CELL_TRANSITIONS.get(kind)


@dataclass(frozen=True, slots=True)
class Snapshot:
    prior_cell_state: CellState | None
    prior_face_status: FaceStatus
    prior_started: bool


@dataclass(slots=True)
class GameEvent:
    """One replay step derived from a raw input event.

    `cell` is the row-major target index, or None for events that do not
    touch a cell. `snapshot` is filled in the first time the event is
    applied forward.
    """

    kind: GameEventKind
    time_ms: int
    cell: int | None = None
    x: float = 0.0
    y: float = 0.0
    number: int = 0
    snapshot: Snapshot | None = None

    @property
    def is_terminal(self) -> bool:
        return self.kind in TERMINAL_KINDS
