from __future__ import annotations

import pytest
from construct import Int8ub, Int16ub, Struct

from minereplay.cursor import ByteCursor, SeekMode
from minereplay.errors import MalformedRecording, UnexpectedEndOfData


def test_multi_byte_reads_are_big_endian() -> None:
    cursor = ByteCursor(bytes([0x12, 0x34, 0x01, 0x02, 0x03, 0xDE, 0xAD, 0xBE, 0xEF]))
    assert cursor.read_u16() == 0x1234
    assert cursor.read_u24() == 0x010203
    assert cursor.read_u32() == 0xDEADBEEF
    assert cursor.at_end()


def test_read_past_end_raises_and_keeps_buffer() -> None:
    data = b"\x01"
    cursor = ByteCursor(data, format="avf")
    assert cursor.read_byte() == 1
    with pytest.raises(UnexpectedEndOfData) as excinfo:
        cursor.read_byte()
    assert excinfo.value.format == "avf"
    assert str(excinfo.value) == "avf: unexpected end of data"

    cursor.seek(0)
    with pytest.raises(UnexpectedEndOfData):
        cursor.read_u16()
    assert data == b"\x01"


def test_read_char_and_bytes() -> None:
    cursor = ByteCursor(b"AB\x00\x01")
    assert cursor.read_char() == "A"
    assert cursor.read_bytes(3) == b"B\x00\x01"
    with pytest.raises(UnexpectedEndOfData):
        cursor.read_bytes(1)


def test_read_line_stops_at_line_feed_or_max() -> None:
    cursor = ByteCursor(b"hello\nworld!\nlast")
    assert cursor.read_line() == b"hello"
    assert cursor.read_line(max=3) == b"wor"
    assert cursor.read_line() == b"ld!"
    assert cursor.read_line() == b"last"
    assert cursor.read_line() is None


def test_read_line_empty_line() -> None:
    cursor = ByteCursor(b"\n\n")
    assert cursor.read_line() == b""
    assert cursor.read_line() == b""
    assert cursor.read_line() is None


def test_seek_modes() -> None:
    cursor = ByteCursor(bytes(range(10)))
    assert cursor.seek(4) == 4
    assert cursor.read_byte() == 4
    cursor.seek(2, SeekMode.RELATIVE)
    assert cursor.position() == 7
    cursor.seek(-3, SeekMode.RELATIVE)
    assert cursor.read_byte() == 4
    cursor.seek(2, SeekMode.FROM_END)
    assert cursor.read_u16() == 0x0809
    assert cursor.remaining() == 0


def test_seek_before_start_is_malformed() -> None:
    cursor = ByteCursor(b"abc", format="rmv")
    with pytest.raises(MalformedRecording):
        cursor.seek(4, SeekMode.FROM_END)


def test_read_struct_uses_construct_layout() -> None:
    layout = Struct("kind" / Int8ub, "value" / Int16ub)
    cursor = ByteCursor(b"\x07\x01\x00\x09")
    parsed = cursor.read_struct(layout)
    assert parsed["kind"] == 7
    assert parsed["value"] == 0x0100
    assert cursor.position() == 3
    with pytest.raises(UnexpectedEndOfData):
        cursor.read_struct(layout)
