from __future__ import annotations

from pathlib import Path

import pytest

from minereplay.errors import MalformedRecording, UnexpectedEndOfData, UnsupportedFormat
from minereplay.formats import RecordingFormat, decode, decode_file, format_for_path, resolve_format
from recording_bytes import build_avf, build_mvf, build_rawvf, build_rmv


@pytest.mark.parametrize(
    ("tag", "expected"),
    [
        ("evf", RecordingFormat.EVF),
        (".AVF", RecordingFormat.AVF),
        ("Mvf", RecordingFormat.MVF),
        ("rmv", RecordingFormat.RMV),
        (".rawvf", RecordingFormat.RAWVF),
    ],
)
def test_resolve_format_accepts_extension_tags(tag: str, expected: RecordingFormat) -> None:
    assert resolve_format(tag) == expected


def test_unsupported_tag_raises() -> None:
    with pytest.raises(UnsupportedFormat) as excinfo:
        decode(b"", "txt")
    assert excinfo.value.format == "txt"
    assert isinstance(excinfo.value, MalformedRecording)


def test_format_for_path_uses_suffix() -> None:
    assert format_for_path(Path("games/best.RMV")) == RecordingFormat.RMV


@pytest.mark.parametrize(
    ("tag", "builder"),
    [("avf", build_avf), ("mvf", build_mvf), ("rmv", build_rmv), ("rawvf", build_rawvf)],
)
def test_decoders_agree_on_board(tag: str, builder) -> None:  # noqa: ANN001
    recording = decode(builder(), tag)
    assert recording.format == tag
    assert recording.metrics().openings == 2
    assert recording.metrics().islands == 1
    assert recording.metrics().min_clicks == 2


@pytest.mark.parametrize(
    ("tag", "builder"),
    [("avf", build_avf), ("mvf", build_mvf), ("rmv", build_rmv)],
)
def test_every_strict_prefix_fails(tag: str, builder) -> None:  # noqa: ANN001
    data = builder()
    for size in range(len(data)):
        with pytest.raises((UnexpectedEndOfData, MalformedRecording)):
            decode(data[:size], tag)


def test_rawvf_prefix_cut_mid_line_fails() -> None:
    data = build_rawvf()
    # Prefixes that stop inside a line; a cut at a line break leaves a shorter but well-formed file.
    sizes = [size for size in range(1, len(data)) if data[size] not in b"\r\n" and data[size - 1] not in b"\r\n"]
    assert sizes
    for size in sizes:
        with pytest.raises((UnexpectedEndOfData, MalformedRecording)):
            decode(data[:size], "rawvf")


def test_decode_does_not_modify_input() -> None:
    data = bytearray(build_avf())
    original = bytes(data)
    decode(data, "avf")
    assert bytes(data) == original


def test_decode_file_dispatches_on_extension(tmp_path: Path) -> None:
    path = tmp_path / "session.mvf"
    path.write_bytes(build_mvf())
    assert decode_file(path).format == "mvf"
