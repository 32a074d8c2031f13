from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Final, Protocol

from ..errors import MalformedRecording, RecordingError
from ..recording import Difficulty, RawAction, RawEvent, Recording
from .common import check_dimensions, check_event_count, finish_recording, normalize_event, resolve_combined_click

FORMAT: Final[str] = "evf"
COMBINED_CLICK: Final[str] = "cc"
# Terminal board values at or above this mark a mine (flagged or exposed).
MINE_CELL_THRESHOLD: Final[int] = 10
# Engine level codes start at 3 for beginner.
ENGINE_LEVEL_OFFSET: Final[int] = 2

_ACTIONS: Final[dict[str, RawAction]] = {action.value: action for action in RawAction}


@dataclass(frozen=True, slots=True)
class EngineEvent:
    time_s: float
    x: float
    y: float
    action: str
    mouse_state: int


class DecodingEngine(Protocol):
    """Narrow view of the external EVF decoder; only its observable contract matters."""

    def parse(self, data: bytes) -> None: ...

    def dimensions(self) -> tuple[int, int]: ...

    def mine_count(self) -> int: ...

    def cell_pixel_size(self) -> int: ...

    def difficulty_level(self) -> int: ...

    def start_time(self) -> float: ...

    def terminal_board_grid(self) -> Sequence[Sequence[int]]: ...

    def player_name_bytes(self) -> bytes: ...

    def event_count(self) -> int: ...

    def event_at(self, index: int) -> EngineEvent: ...


class MsToollibEngine:
    """`DecodingEngine` backed by the `ms_toollib` extension module (optional `evf` extra)."""

    # Seek far past the end so the engine reports the terminal board.
    _END_OF_VIDEO_S = 1e8

    def __init__(self) -> None:
        self._video: Any = None

    def parse(self, data: bytes) -> None:
        try:
            import ms_toollib
        except ModuleNotFoundError as exc:
            raise MalformedRecording(
                "ms_toollib is required for evf recordings (install minereplay[evf])",
                format=FORMAT,
            ) from exc
        video = ms_toollib.EvfVideo("", list(data))
        video.parse_video()
        video.analyse()
        video.current_time = self._END_OF_VIDEO_S
        self._video = video

    def dimensions(self) -> tuple[int, int]:
        return int(self._video.column), int(self._video.row)

    def mine_count(self) -> int:
        return int(self._video.mine_num)

    def cell_pixel_size(self) -> int:
        return int(self._video.pix_size)

    def difficulty_level(self) -> int:
        return int(self._video.level)

    def start_time(self) -> float:
        return float(self._video.video_start_time)

    def terminal_board_grid(self) -> Sequence[Sequence[int]]:
        return self._video.game_board

    def player_name_bytes(self) -> bytes:
        name = getattr(self._video, "player_identifier", None)
        if name is None:
            name = getattr(self._video, "player_designator", b"")
        if isinstance(name, str):
            return name.encode("utf-8")
        return bytes(name)

    def event_count(self) -> int:
        return int(self._video.events_len)

    def event_at(self, index: int) -> EngineEvent:
        video = self._video
        return EngineEvent(
            time_s=float(video.events_time(index)),
            x=float(video.events_x(index)),
            y=float(video.events_y(index)),
            action=str(video.events_mouse(index)),
            mouse_state=int(video.events_mouse_state(index)),
        )


EngineFactory = Callable[[], DecodingEngine]


def _mine_mask_from_grid(grid: Sequence[Sequence[int]], width: int, height: int) -> tuple[bool, ...]:
    if len(grid) != height or any(len(row) != width for row in grid):
        raise MalformedRecording(f"terminal board does not match {width}x{height}", format=FORMAT)
    return tuple(int(value) >= MINE_CELL_THRESHOLD for row in grid for value in row)


def _level_from_engine(level: int) -> Difficulty:
    try:
        return Difficulty(int(level) - ENGINE_LEVEL_OFFSET)
    except ValueError:
        return Difficulty.UNKNOWN


def loads(data: bytes, *, engine_factory: EngineFactory | None = None) -> Recording:
    engine = (engine_factory or MsToollibEngine)()
    try:
        engine.parse(bytes(data))
    except RecordingError:
        raise
    except Exception as exc:
        raise MalformedRecording(f"engine rejected recording: {exc}", format=FORMAT) from exc

    width, height = engine.dimensions()
    mines = engine.mine_count()
    check_dimensions(width, height, mines, format=FORMAT)
    pixel_size = engine.cell_pixel_size()
    if pixel_size < 1:
        raise MalformedRecording(f"invalid pixel size {pixel_size}", format=FORMAT)

    mine_mask = _mine_mask_from_grid(engine.terminal_board_grid(), width, height)
    start_s = engine.start_time()

    event_count = engine.event_count()
    check_event_count(event_count, format=FORMAT)
    events: list[RawEvent] = []
    previous: EngineEvent | None = None
    for index in range(event_count):
        raw = engine.event_at(index)
        if raw.action == COMBINED_CLICK:
            action = resolve_combined_click(
                previous.mouse_state if previous is not None else None,
                format=FORMAT,
            )
        else:
            action = _ACTIONS.get(raw.action)
            if action is None:
                raise MalformedRecording(f"unknown mouse action {raw.action!r}", format=FORMAT)
        events.append(
            normalize_event(
                time_ms=round(max(raw.time_s + start_s, 0.0) * 1000),
                action=action,
                x_raw=raw.x,
                y_raw=raw.y,
                pixel_size=pixel_size,
            )
        )
        previous = raw

    return finish_recording(
        format=FORMAT,
        width=width,
        height=height,
        mine_count=mines,
        mine_mask=mine_mask,
        events=events,
        difficulty_level=_level_from_engine(engine.difficulty_level()),
        player_name_bytes=engine.player_name_bytes(),
    )


def load(path: Path, *, engine_factory: EngineFactory | None = None) -> Recording:
    return loads(Path(path).read_bytes(), engine_factory=engine_factory)
