from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum, IntEnum
from typing import TYPE_CHECKING, Iterable

if TYPE_CHECKING:
    from .board import BoardMetrics

CANONICAL_CELL_SIZE = 16


class RawAction(str, Enum):
    LEFT_DOWN = "lc"
    LEFT_UP = "lr"
    RIGHT_DOWN = "rc"
    RIGHT_UP = "rr"
    MIDDLE_DOWN = "mc"
    MIDDLE_UP = "mr"
    MOVE = "mv"
    LEFT_DOWN_WITH_MODIFIER = "sc"
    TOGGLE_MARK_SETTING = "mt"


class Difficulty(IntEnum):
    UNKNOWN = 0
    BEGINNER = 1
    INTERMEDIATE = 2
    EXPERT = 3
    CUSTOM = 4


# (width, height, mines) of the standard boards.
STANDARD_LAYOUTS: dict[Difficulty, tuple[int, int, int]] = {
    Difficulty.BEGINNER: (8, 8, 10),
    Difficulty.INTERMEDIATE: (16, 16, 40),
    Difficulty.EXPERT: (30, 16, 99),
}


def difficulty_for_layout(width: int, height: int, mine_count: int) -> Difficulty:
    for level, layout in STANDARD_LAYOUTS.items():
        if layout == (int(width), int(height), int(mine_count)):
            return level
    return Difficulty.CUSTOM


@dataclass(frozen=True, slots=True)
class RawEvent:
    time_ms: int
    action: RawAction
    column: int
    row: int
    x: float
    y: float


@dataclass(frozen=True, slots=True)
class Recording:
    """A decoded, finished game session: board layout plus input events.

    `mine_mask` is row-major (`index = row * width + column`). Instances are
    produced by the format decoders after shared validation and are never
    mutated afterwards.
    """

    width: int
    height: int
    mine_count: int
    mine_mask: tuple[bool, ...]
    events: tuple[RawEvent, ...] = ()
    allow_question_marks: bool = False
    difficulty_level: Difficulty = Difficulty.UNKNOWN
    player_name_bytes: bytes = b""
    format: str = ""
    _adjacent: tuple[int, ...] | None = field(default=None, init=False, repr=False, compare=False)

    @property
    def cell_count(self) -> int:
        return int(self.width) * int(self.height)

    def cell_index(self, column: int, row: int) -> int | None:
        if 0 <= column < self.width and 0 <= row < self.height:
            return int(row) * int(self.width) + int(column)
        return None

    def is_mine(self, column: int, row: int) -> bool:
        index = self.cell_index(column, row)
        return index is not None and bool(self.mine_mask[index])

    def player_name(self, encoding: str = "utf-8") -> str:
        return self.player_name_bytes.decode(encoding, errors="replace")

    def adjacent_counts(self) -> tuple[int, ...]:
        counts = self._adjacent
        if counts is None:
            from .board import adjacent_mine_counts

            counts = adjacent_mine_counts(self.width, self.height, self.mine_mask)
            object.__setattr__(self, "_adjacent", counts)
        return counts

    def metrics(self) -> BoardMetrics:
        from .board import compute_board_metrics

        return compute_board_metrics(self.width, self.height, self.mine_mask)

    def with_events(self, events: Iterable[RawEvent]) -> Recording:
        return replace(self, events=tuple(events))
