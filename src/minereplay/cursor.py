from __future__ import annotations

from enum import IntEnum
from typing import Any

from construct import ConstructError, Struct

from .errors import MalformedRecording, UnexpectedEndOfData

LINE_FEED = 0x0A
DEFAULT_LINE_MAX = 1000


class SeekMode(IntEnum):
    ABSOLUTE = 0
    RELATIVE = 1
    FROM_END = 2


class ByteCursor:
    """Sequential reader over an immutable byte buffer.

    Multi-byte integers are composed big-endian from successive `read_byte`
    calls. Reads past the end raise `UnexpectedEndOfData`; the buffer itself
    is never modified.
    """

    def __init__(self, data: bytes, *, format: str = "") -> None:
        self._data = bytes(data)
        self._offset = 0
        self._format = str(format)

    def __len__(self) -> int:
        return len(self._data)

    @property
    def format(self) -> str:
        return self._format

    def position(self) -> int:
        return int(self._offset)

    def remaining(self) -> int:
        return max(0, len(self._data) - self._offset)

    def at_end(self) -> bool:
        return self._offset >= len(self._data)

    def seek(self, offset: int, mode: SeekMode = SeekMode.ABSOLUTE) -> int:
        offset = int(offset)
        if mode == SeekMode.ABSOLUTE:
            target = offset
        elif mode == SeekMode.RELATIVE:
            target = self._offset + offset
        elif mode == SeekMode.FROM_END:
            target = len(self._data) - offset
        else:  # pragma: no cover
            raise ValueError(f"unknown seek mode: {mode!r}")
        if target < 0:
            raise MalformedRecording(f"seek before start of data ({target})", format=self._format)
        self._offset = target
        return target

    def read_byte(self) -> int:
        if self._offset >= len(self._data):
            raise UnexpectedEndOfData(format=self._format)
        value = self._data[self._offset]
        self._offset += 1
        return value

    def read_u16(self) -> int:
        return (self.read_byte() << 8) | self.read_byte()

    def read_u24(self) -> int:
        return (self.read_byte() << 16) | (self.read_byte() << 8) | self.read_byte()

    def read_u32(self) -> int:
        return (self.read_byte() << 24) | (self.read_byte() << 16) | (self.read_byte() << 8) | self.read_byte()

    def read_char(self) -> str:
        return chr(self.read_byte())

    def read_bytes(self, size: int) -> bytes:
        size = int(size)
        if size < 0:
            raise MalformedRecording(f"negative read size {size}", format=self._format)
        end = self._offset + size
        if end > len(self._data):
            raise UnexpectedEndOfData(format=self._format)
        chunk = self._data[self._offset : end]
        self._offset = end
        return chunk

    def read_line(self, max: int = DEFAULT_LINE_MAX) -> bytes | None:
        """Read up to `max` bytes or through the next line feed (not included).

        Returns None when the cursor is already at the end of the data.
        """

        if self.at_end():
            return None
        line = bytearray()
        while len(line) < int(max) and not self.at_end():
            value = self.read_byte()
            if value == LINE_FEED:
                break
            line.append(value)
        return bytes(line)

    def read_struct(self, layout: Struct) -> Any:
        """Parse one fixed-size construct record at the cursor."""
        try:
            size = int(layout.sizeof())
        except ConstructError as exc:  # pragma: no cover
            raise MalformedRecording(f"layout is not fixed size: {exc}", format=self._format) from exc
        raw = self.read_bytes(size)
        try:
            return layout.parse(raw)
        except ConstructError as exc:
            raise MalformedRecording(str(exc), format=self._format) from exc
