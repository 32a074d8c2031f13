from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("minereplay")
except PackageNotFoundError:  # pragma: no cover
    # Allow running from source (e.g. `PYTHONPATH=src`) without installed package metadata.
    __version__ = "0.0.0+dev"

from .board import BoardMetrics, compute_board_metrics
from .cursor import ByteCursor, SeekMode
from .engine import PathSample, ReplayEngine
from .errors import (
    IncompleteRecording,
    InconsistentMouseState,
    InvalidBoardLayout,
    MalformedRecording,
    RecordingError,
    ReplayStateError,
    UnexpectedEndOfData,
    UnsupportedFormat,
)
from .events import CellState, FaceStatus, GameEvent, GameEventKind, Snapshot
from .formats import RecordingFormat, decode, decode_file
from .playback import PlaybackClock
from .recorder import RecordingRecorder
from .recording import Difficulty, RawAction, RawEvent, Recording
from .simulator import BoardSimulator, SimulationResult, simulate

__all__ = [
    "BoardMetrics",
    "BoardSimulator",
    "ByteCursor",
    "CellState",
    "Difficulty",
    "FaceStatus",
    "GameEvent",
    "GameEventKind",
    "IncompleteRecording",
    "InconsistentMouseState",
    "InvalidBoardLayout",
    "MalformedRecording",
    "PathSample",
    "PlaybackClock",
    "RawAction",
    "RawEvent",
    "Recording",
    "RecordingError",
    "RecordingFormat",
    "RecordingRecorder",
    "ReplayEngine",
    "ReplayStateError",
    "SeekMode",
    "SimulationResult",
    "Snapshot",
    "UnexpectedEndOfData",
    "UnsupportedFormat",
    "compute_board_metrics",
    "decode",
    "decode_file",
    "simulate",
]
