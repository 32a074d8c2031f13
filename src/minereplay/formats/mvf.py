from __future__ import annotations

from pathlib import Path
from typing import Final

from construct import Const, Int8ub, Int16ub, Int24ub, Struct

from ..cursor import ByteCursor
from ..errors import MalformedRecording
from ..recording import RawEvent, Recording
from .common import (
    COMBINED_CLICK_CODE,
    action_from_code,
    check_dimensions,
    check_event_count,
    finish_recording,
    normalize_event,
    resolve_combined_click,
)

FORMAT: Final[str] = "mvf"
MAGIC: Final[bytes] = b"\x11\x4d"
VERSION: Final[int] = 2

_HEADER_V2 = Struct(
    "magic" / Const(MAGIC),
    "version" / Int8ub,
    "level" / Int8ub,
    "width" / Int8ub,
    "height" / Int8ub,
    "mines" / Int16ub,
    "marks" / Int8ub,
    "pixel_size" / Int8ub,
)

_EVENT_V2 = Struct(
    "time_ms" / Int24ub,
    "action" / Int8ub,
    "mouse_state" / Int8ub,
    "x" / Int16ub,
    "y" / Int16ub,
)


def _unpack_bitmap(bitmap: bytes, cell_count: int) -> tuple[bool, ...]:
    mask = tuple(bool(bitmap[index >> 3] & (0x80 >> (index & 7))) for index in range(cell_count))
    spare_bits = len(bitmap) * 8 - cell_count
    if spare_bits and bitmap[-1] & ((1 << spare_bits) - 1):
        raise MalformedRecording("mine bitmap has non-zero padding bits", format=FORMAT)
    return mask


def loads(data: bytes) -> Recording:
    cursor = ByteCursor(data, format=FORMAT)

    header = cursor.read_struct(_HEADER_V2)
    version = int(header["version"])
    if version != VERSION:
        raise MalformedRecording(f"unsupported version: {version}", format=FORMAT)

    width = int(header["width"])
    height = int(header["height"])
    mines = int(header["mines"])
    check_dimensions(width, height, mines, format=FORMAT)
    pixel_size = int(header["pixel_size"])
    if pixel_size < 1:
        raise MalformedRecording("pixel size must be positive", format=FORMAT)

    cell_count = width * height
    mine_mask = _unpack_bitmap(cursor.read_bytes((cell_count + 7) // 8), cell_count)

    name_len = cursor.read_byte()
    player_name = cursor.read_bytes(name_len)

    event_count = cursor.read_u32()
    check_event_count(event_count, format=FORMAT)
    events: list[RawEvent] = []
    previous_state: int | None = None
    for _ in range(event_count):
        raw = cursor.read_struct(_EVENT_V2)
        code = int(raw["action"])
        if code == COMBINED_CLICK_CODE:
            action = resolve_combined_click(previous_state, format=FORMAT)
        else:
            action = action_from_code(code, format=FORMAT)
        previous_state = int(raw["mouse_state"])
        events.append(
            normalize_event(
                time_ms=int(raw["time_ms"]),
                action=action,
                x_raw=float(raw["x"]),
                y_raw=float(raw["y"]),
                pixel_size=pixel_size,
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
        allow_question_marks=bool(header["marks"]),
        difficulty_level=int(header["level"]),
        player_name_bytes=player_name,
    )


def load(path: Path) -> Recording:
    return loads(Path(path).read_bytes())
