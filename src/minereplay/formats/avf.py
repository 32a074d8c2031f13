from __future__ import annotations

from pathlib import Path
from typing import Final

from construct import Int8ub, Int16ub, Int24ub, Padding, Struct

from ..cursor import ByteCursor
from ..errors import MalformedRecording
from ..recording import STANDARD_LAYOUTS, Difficulty, RawEvent, Recording
from .common import (
    action_from_code,
    check_dimensions,
    check_event_count,
    finish_recording,
    mine_mask_from_positions,
    normalize_event,
)

FORMAT: Final[str] = "avf"
PIXEL_SIZE: Final[int] = 16
MARKS_ON: Final[int] = 0x11
PLAYER_NAME_MAX: Final[int] = 64
SUPPORTED_VERSIONS: Final[frozenset[int]] = frozenset({1, 2, 3})

MODE_BEGINNER: Final[int] = 3
MODE_INTERMEDIATE: Final[int] = 4
MODE_EXPERT: Final[int] = 5
MODE_CUSTOM: Final[int] = 6

_MODE_LEVELS: Final[dict[int, Difficulty]] = {
    MODE_BEGINNER: Difficulty.BEGINNER,
    MODE_INTERMEDIATE: Difficulty.INTERMEDIATE,
    MODE_EXPERT: Difficulty.EXPERT,
    MODE_CUSTOM: Difficulty.CUSTOM,
}

_HEADER_V1 = Struct(
    "version" / Int8ub,
    Padding(4),
    "mode" / Int8ub,
)

_CUSTOM_SIZE_V1 = Struct(
    "width" / Int8ub,
    "height" / Int8ub,
    "mines" / Int16ub,
)

_EVENT_V1 = Struct(
    "action" / Int8ub,
    "time_ms" / Int24ub,
    "x" / Int16ub,
    "y" / Int16ub,
)


def loads(data: bytes) -> Recording:
    cursor = ByteCursor(data, format=FORMAT)

    header = cursor.read_struct(_HEADER_V1)
    version = int(header["version"])
    if version not in SUPPORTED_VERSIONS:
        raise MalformedRecording(f"unsupported version: {version}", format=FORMAT)

    mode = int(header["mode"])
    level = _MODE_LEVELS.get(mode)
    if level is None:
        raise MalformedRecording(f"unknown mode: {mode}", format=FORMAT)
    if level == Difficulty.CUSTOM:
        size = cursor.read_struct(_CUSTOM_SIZE_V1)
        width, height, mines = int(size["width"]), int(size["height"]), int(size["mines"])
    else:
        width, height, mines = STANDARD_LAYOUTS[level]
    check_dimensions(width, height, mines, format=FORMAT)

    positions: list[tuple[int, int]] = []
    for _ in range(mines):
        row = cursor.read_byte() - 1
        column = cursor.read_byte() - 1
        positions.append((column, row))
    mine_mask = mine_mask_from_positions(width, height, positions, format=FORMAT)

    marks = cursor.read_byte() == MARKS_ON
    player_name = cursor.read_line(PLAYER_NAME_MAX + 1)
    if player_name is None:
        raise MalformedRecording("missing player name", format=FORMAT)
    if len(player_name) > PLAYER_NAME_MAX:
        raise MalformedRecording(f"player name longer than {PLAYER_NAME_MAX} bytes", format=FORMAT)

    event_count = cursor.read_u16()
    check_event_count(event_count, format=FORMAT)
    events: list[RawEvent] = []
    for _ in range(event_count):
        raw = cursor.read_struct(_EVENT_V1)
        events.append(
            normalize_event(
                time_ms=int(raw["time_ms"]),
                action=action_from_code(int(raw["action"]), format=FORMAT),
                x_raw=float(raw["x"]),
                y_raw=float(raw["y"]),
                pixel_size=PIXEL_SIZE,
            )
        )
    if not cursor.at_end():
        raise MalformedRecording(f"{cursor.remaining()} bytes of trailing data", format=FORMAT)

    return finish_recording(
        format=FORMAT,
        width=width,
        height=height,
        mine_count=mines,
        mine_mask=mine_mask,
        events=events,
        allow_question_marks=marks,
        difficulty_level=level,
        player_name_bytes=player_name,
    )


def load(path: Path) -> Recording:
    return loads(Path(path).read_bytes())
