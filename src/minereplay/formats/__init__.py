from __future__ import annotations

from collections.abc import Callable
from enum import Enum
from pathlib import Path

from ..errors import UnsupportedFormat
from ..recording import Recording
from . import avf, evf, mvf, rawvf, rmv


class RecordingFormat(str, Enum):
    EVF = "evf"
    AVF = "avf"
    MVF = "mvf"
    RMV = "rmv"
    RAWVF = "rawvf"


_DECODERS: dict[RecordingFormat, Callable[[bytes], Recording]] = {
    RecordingFormat.EVF: evf.loads,
    RecordingFormat.AVF: avf.loads,
    RecordingFormat.MVF: mvf.loads,
    RecordingFormat.RMV: rmv.loads,
    RecordingFormat.RAWVF: rawvf.loads,
}


def resolve_format(tag: str | RecordingFormat) -> RecordingFormat:
    if isinstance(tag, RecordingFormat):
        return tag
    normalized = str(tag).strip().lstrip(".").lower()
    try:
        return RecordingFormat(normalized)
    except ValueError as exc:
        raise UnsupportedFormat("unsupported recording format", format=str(tag)) from exc


def format_for_path(path: Path) -> RecordingFormat:
    return resolve_format(Path(path).suffix)


def decode(data: bytes, format_tag: str | RecordingFormat) -> Recording:
    """Decode a recording buffer in the format named by its extension tag."""
    return _DECODERS[resolve_format(format_tag)](bytes(data))


def decode_file(path: Path) -> Recording:
    path = Path(path)
    return decode(path.read_bytes(), format_for_path(path))


__all__ = [
    "RecordingFormat",
    "decode",
    "decode_file",
    "format_for_path",
    "resolve_format",
]
