from __future__ import annotations

import re
from pathlib import Path
from typing import Final

from ..cursor import ByteCursor
from ..errors import MalformedRecording
from ..recording import Difficulty, RawAction, RawEvent, Recording, difficulty_for_layout
from .common import check_dimensions, finish_recording, normalize_event

FORMAT: Final[str] = "rawvf"
PIXEL_SIZE: Final[int] = 16
LINE_MAX: Final[int] = 4096
MINE_CHAR: Final[str] = "*"

_HEADER_RE = re.compile(rb"^\s*([A-Za-z_][A-Za-z0-9_]*)\s*:\s*(.*?)\s*$")
_EVENT_RE = re.compile(
    r"^\s*(-?\d+(?:\.\d+)?)\s+([a-z]{2})\s+(-?\d+)\s+(-?\d+)\s+\(\s*(-?\d+(?:\.\d+)?)\s+(-?\d+(?:\.\d+)?)\s*\)"
)
_NUMBER_RE = re.compile(r"^\s*-?\d+(?:\.\d+)?(?:\s|$)")

_MOUSE_CODES: Final[dict[str, RawAction]] = {action.value: action for action in RawAction}

# Annotation words a file may legitimately end on without a line feed.
_ANNOTATIONS: Final[frozenset[str]] = frozenset({"start", "won", "blast"})

_LEVEL_NAMES: Final[dict[str, Difficulty]] = {
    "beginner": Difficulty.BEGINNER,
    "intermediate": Difficulty.INTERMEDIATE,
    "expert": Difficulty.EXPERT,
    "custom": Difficulty.CUSTOM,
}


def _next_line(cursor: ByteCursor) -> bytes | None:
    line = cursor.read_line(LINE_MAX)
    if line is None:
        return None
    return line.rstrip(b"\r")


def _header_int(headers: dict[str, bytes], key: str) -> int:
    raw = headers.get(key)
    if raw is None:
        raise MalformedRecording(f"missing {key} header", format=FORMAT)
    try:
        return int(raw.decode("ascii"))
    except (UnicodeDecodeError, ValueError) as exc:
        raise MalformedRecording(f"invalid {key} header: {raw!r}", format=FORMAT) from exc


def _parse_marks(raw: bytes | None) -> bool:
    if raw is None:
        return False
    return raw.strip().lower() in (b"on", b"1", b"yes", b"true")


def _parse_event(text: str, *, unterminated: bool = False) -> RawEvent | None:
    """Parse one event line; annotation lines (start, won, blast, ...) return None.

    `unterminated` marks a last line with no line feed, which may have been cut short.
    """

    if not _NUMBER_RE.match(text):
        raise MalformedRecording(f"invalid event line: {text!r}", format=FORMAT)
    parts = text.split()
    if len(parts) < 2:
        raise MalformedRecording(f"event line has no code: {text!r}", format=FORMAT)
    code = parts[1]
    if code not in _MOUSE_CODES:
        if any(mouse.startswith(code) for mouse in _MOUSE_CODES):
            raise MalformedRecording(f"truncated mouse code: {text!r}", format=FORMAT)
        if unterminated and code not in _ANNOTATIONS:
            raise MalformedRecording(f"unterminated last line: {text!r}", format=FORMAT)
        return None
    match = _EVENT_RE.match(text)
    if match is None:
        raise MalformedRecording(f"invalid mouse event line: {text!r}", format=FORMAT)
    seconds = float(match.group(1))
    return normalize_event(
        time_ms=round(max(seconds, 0.0) * 1000),
        action=_MOUSE_CODES[match.group(2)],
        x_raw=float(match.group(5)),
        y_raw=float(match.group(6)),
        pixel_size=PIXEL_SIZE,
    )


def loads(data: bytes) -> Recording:
    cursor = ByteCursor(data, format=FORMAT)

    headers: dict[str, bytes] = {}
    while True:
        line = _next_line(cursor)
        if line is None:
            raise MalformedRecording("missing Board section", format=FORMAT)
        if line.strip() == b"Board:":
            break
        if not line.strip():
            continue
        match = _HEADER_RE.match(line)
        if match is None:
            raise MalformedRecording(f"invalid header line: {line!r}", format=FORMAT)
        headers[match.group(1).decode("ascii").lower()] = match.group(2)

    width = _header_int(headers, "width")
    height = _header_int(headers, "height")
    mines = _header_int(headers, "mines")
    check_dimensions(width, height, mines, format=FORMAT)

    mine_mask: list[bool] = []
    for row in range(height):
        line = _next_line(cursor)
        if line is None:
            raise MalformedRecording(f"board ends after {row} of {height} rows", format=FORMAT)
        text = line.decode("latin-1").strip()
        if len(text) != width:
            raise MalformedRecording(f"board row {row} has {len(text)} cells, expected {width}", format=FORMAT)
        mine_mask.extend(char == MINE_CHAR for char in text)

    while True:
        line = _next_line(cursor)
        if line is None:
            raise MalformedRecording("missing Events section", format=FORMAT)
        if line.strip() == b"Events:":
            break
        if line.strip():
            raise MalformedRecording(f"unexpected line after board: {line!r}", format=FORMAT)

    terminated = bytes(data).endswith(b"\n")
    events: list[RawEvent] = []
    while (line := _next_line(cursor)) is not None:
        text = line.decode("latin-1")
        if not text.strip():
            continue
        event = _parse_event(text, unterminated=cursor.at_end() and not terminated)
        if event is not None:
            events.append(event)

    level_raw = headers.get("level")
    if level_raw is not None:
        level = _LEVEL_NAMES.get(level_raw.decode("latin-1").strip().lower(), Difficulty.UNKNOWN)
    else:
        level = difficulty_for_layout(width, height, mines)

    return finish_recording(
        format=FORMAT,
        width=width,
        height=height,
        mine_count=mines,
        mine_mask=mine_mask,
        events=events,
        allow_question_marks=_parse_marks(headers.get("marks")),
        difficulty_level=level,
        player_name_bytes=headers.get("player", b""),
    )


def load(path: Path) -> Recording:
    return loads(Path(path).read_bytes())
