from __future__ import annotations

from pathlib import Path
from typing import Final

from construct import Int8ub, Int16ub, Int24ub, Struct

from ..cursor import ByteCursor, SeekMode
from ..errors import MalformedRecording
from ..recording import RawAction, RawEvent, Recording, difficulty_for_layout
from .common import check_dimensions, check_event_count, finish_recording, mine_mask_from_positions, normalize_event

FORMAT: Final[str] = "rmv"
MAGIC: Final[bytes] = b"*rmv"
VERSION: Final[int] = 1
PIXEL_SIZE: Final[int] = 16
TRAILER_SIZE: Final[int] = 2

FLAG_MARKS: Final[int] = 1 << 0

RECORD_END: Final[int] = 0
RECORD_ANNOTATION: Final[int] = 10

RECORD_ACTIONS: Final[dict[int, RawAction]] = {
    1: RawAction.MOVE,
    2: RawAction.LEFT_DOWN,
    3: RawAction.LEFT_UP,
    4: RawAction.RIGHT_DOWN,
    5: RawAction.RIGHT_UP,
    6: RawAction.MIDDLE_DOWN,
    7: RawAction.MIDDLE_UP,
    8: RawAction.LEFT_DOWN_WITH_MODIFIER,
    9: RawAction.TOGGLE_MARK_SETTING,
}

_BOARD = Struct(
    "width" / Int8ub,
    "height" / Int8ub,
    "mines" / Int16ub,
    "flags" / Int8ub,
)

_MOUSE_RECORD = Struct(
    "time_ms" / Int24ub,
    "x" / Int16ub,
    "y" / Int16ub,
)

_ANNOTATION_RECORD = Struct(
    "time_ms" / Int24ub,
    "payload" / Int8ub,
)


def loads(data: bytes) -> Recording:
    cursor = ByteCursor(data, format=FORMAT)

    if cursor.read_bytes(len(MAGIC)) != MAGIC:
        raise MalformedRecording("invalid magic", format=FORMAT)

    # The trailer holds the mouse record count; event records must stop short of it.
    events_end = cursor.seek(TRAILER_SIZE, SeekMode.FROM_END)
    if events_end < len(MAGIC):
        raise MalformedRecording("missing trailer", format=FORMAT)
    declared_count = cursor.read_u16()
    check_event_count(declared_count, format=FORMAT)
    cursor.seek(len(MAGIC), SeekMode.ABSOLUTE)

    version = cursor.read_u16()
    if version != VERSION:
        raise MalformedRecording(f"unsupported version: {version}", format=FORMAT)
    info_size = cursor.read_u16()
    player_name = cursor.read_bytes(info_size)

    board = cursor.read_struct(_BOARD)
    width = int(board["width"])
    height = int(board["height"])
    mines = int(board["mines"])
    check_dimensions(width, height, mines, format=FORMAT)

    positions: list[tuple[int, int]] = []
    for _ in range(mines):
        column = cursor.read_byte()
        row = cursor.read_byte()
        positions.append((column, row))
    mine_mask = mine_mask_from_positions(width, height, positions, format=FORMAT)

    events: list[RawEvent] = []
    while True:
        if cursor.position() >= events_end:
            raise MalformedRecording("event records run into the trailer", format=FORMAT)
        record_type = cursor.read_byte()
        if record_type == RECORD_END:
            break
        if record_type == RECORD_ANNOTATION:
            cursor.read_struct(_ANNOTATION_RECORD)
            continue
        action = RECORD_ACTIONS.get(record_type)
        if action is None:
            raise MalformedRecording(f"unknown record type {record_type}", format=FORMAT)
        raw = cursor.read_struct(_MOUSE_RECORD)
        events.append(
            normalize_event(
                time_ms=int(raw["time_ms"]),
                action=action,
                x_raw=float(raw["x"]),
                y_raw=float(raw["y"]),
                pixel_size=PIXEL_SIZE,
            )
        )

    if cursor.position() != events_end:
        raise MalformedRecording("event records overlap the trailer", format=FORMAT)
    if len(events) != declared_count:
        raise MalformedRecording(
            f"trailer declares {declared_count} mouse records, found {len(events)}",
            format=FORMAT,
        )

    return finish_recording(
        format=FORMAT,
        width=width,
        height=height,
        mine_count=mines,
        mine_mask=mine_mask,
        events=events,
        allow_question_marks=bool(int(board["flags"]) & FLAG_MARKS),
        difficulty_level=difficulty_for_layout(width, height, mines),
        player_name_bytes=player_name,
    )


def load(path: Path) -> Recording:
    return loads(Path(path).read_bytes())
