from __future__ import annotations

import math
from collections.abc import Iterable, Sequence
from typing import Final

from ..config import resolve_max_events
from ..debug_log import debug_log
from ..errors import IncompleteRecording, InconsistentMouseState, MalformedRecording
from ..recording import CANONICAL_CELL_SIZE, Difficulty, RawAction, RawEvent, Recording

# Action codes shared by the native binary formats.
ACTION_CODES: Final[dict[int, RawAction]] = {
    1: RawAction.MOVE,
    3: RawAction.LEFT_DOWN,
    5: RawAction.LEFT_UP,
    9: RawAction.RIGHT_DOWN,
    17: RawAction.RIGHT_UP,
    33: RawAction.MIDDLE_DOWN,
    65: RawAction.MIDDLE_UP,
    11: RawAction.LEFT_DOWN_WITH_MODIFIER,
    13: RawAction.TOGGLE_MARK_SETTING,
}
COMBINED_CLICK_CODE: Final[int] = 21

LEFT_CLICK_STATES: Final[frozenset[int]] = frozenset({2, 3})
RIGHT_CLICK_STATES: Final[frozenset[int]] = frozenset({4, 7})


def resolve_combined_click(previous_state: int | None, *, format: str) -> RawAction:
    """Turn a combined click/release marker into a press using the previous mouse state."""
    if previous_state in LEFT_CLICK_STATES:
        return RawAction.LEFT_DOWN
    if previous_state in RIGHT_CLICK_STATES:
        return RawAction.RIGHT_DOWN
    raise InconsistentMouseState(
        f"combined click cannot follow mouse state {previous_state!r}",
        format=format,
    )


def action_from_code(code: int, *, format: str) -> RawAction:
    action = ACTION_CODES.get(int(code))
    if action is None:
        raise MalformedRecording(f"unknown action code {int(code)}", format=format)
    return action


def normalize_event(
    *,
    time_ms: int,
    action: RawAction,
    x_raw: float,
    y_raw: float,
    pixel_size: float,
) -> RawEvent:
    """Map native pixel coordinates onto the canonical 16-unit cell grid."""
    pixel_size = float(pixel_size)
    return RawEvent(
        time_ms=int(time_ms),
        action=action,
        column=int(math.floor(x_raw / pixel_size)),
        row=int(math.floor(y_raw / pixel_size)),
        x=x_raw / pixel_size * CANONICAL_CELL_SIZE,
        y=y_raw / pixel_size * CANONICAL_CELL_SIZE,
    )


def check_dimensions(width: int, height: int, mine_count: int, *, format: str) -> None:
    width = int(width)
    height = int(height)
    if width < 1 or height < 1:
        raise MalformedRecording(f"invalid board size {width}x{height}", format=format)
    if not (0 <= int(mine_count) < width * height):
        raise MalformedRecording(f"invalid mine count {mine_count} for {width}x{height}", format=format)


def check_event_count(count: int, *, format: str) -> None:
    limit = resolve_max_events()
    if int(count) > limit:
        raise MalformedRecording(f"declared event count {count} exceeds limit {limit}", format=format)


def mine_mask_from_positions(
    width: int,
    height: int,
    positions: Iterable[tuple[int, int]],
    *,
    format: str,
) -> tuple[bool, ...]:
    """Build a row-major mine mask from zero-based (column, row) pairs."""
    mask = [False] * (int(width) * int(height))
    for column, row in positions:
        if not (0 <= column < width and 0 <= row < height):
            raise MalformedRecording(f"mine position ({column}, {row}) outside {width}x{height}", format=format)
        index = row * width + column
        if mask[index]:
            raise MalformedRecording(f"duplicate mine position ({column}, {row})", format=format)
        mask[index] = True
    return tuple(mask)


def finish_recording(
    *,
    format: str,
    width: int,
    height: int,
    mine_count: int,
    mine_mask: Sequence[bool],
    events: Sequence[RawEvent],
    allow_question_marks: bool = False,
    difficulty_level: Difficulty | int = Difficulty.UNKNOWN,
    player_name_bytes: bytes = b"",
) -> Recording:
    """Run the validation every decoder shares and build the `Recording`."""
    check_dimensions(width, height, mine_count, format=format)
    if len(mine_mask) != int(width) * int(height):
        raise MalformedRecording(
            f"board has {len(mine_mask)} cells, expected {int(width) * int(height)}",
            format=format,
        )

    marked = sum(1 for mine in mine_mask if mine)
    if marked != int(mine_count):
        raise IncompleteRecording(
            f"terminal board accounts for {marked} of {int(mine_count)} mines",
            format=format,
        )
    previous = 0
    for index, event in enumerate(events):
        if event.time_ms < 0:
            raise MalformedRecording(f"event {index} has negative time {event.time_ms}", format=format)
        if event.time_ms < previous:
            raise MalformedRecording(
                f"event {index} goes back in time ({event.time_ms} < {previous})",
                format=format,
            )
        previous = event.time_ms

    try:
        level = Difficulty(int(difficulty_level))
    except ValueError:
        level = Difficulty.UNKNOWN

    recording = Recording(
        width=int(width),
        height=int(height),
        mine_count=int(mine_count),
        mine_mask=tuple(bool(mine) for mine in mine_mask),
        events=tuple(events),
        allow_question_marks=bool(allow_question_marks),
        difficulty_level=level,
        player_name_bytes=bytes(player_name_bytes),
        format=str(format),
    )
    debug_log(
        "decode",
        format=format,
        width=recording.width,
        height=recording.height,
        mines=recording.mine_count,
        level=recording.difficulty_level.name.lower(),
        events=len(recording.events),
    )
    return recording
