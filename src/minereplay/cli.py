from __future__ import annotations

from pathlib import Path

import msgspec
import typer

from .config import ReplaySettings
from .debug_log import init_debug_log
from .engine import ReplayEngine
from .errors import RecordingError
from .events import GameEventKind
from .formats import decode_file
from .recording import Recording
from .simulator import simulate

app = typer.Typer(add_completion=False)


class RecordingSummary(msgspec.Struct, forbid_unknown_fields=True):
    format: str
    player: str
    level: str
    width: int
    height: int
    mines: int
    marks: bool
    raw_events: int
    game_events: int
    terminal: str
    end_time_ms: int
    openings: int
    islands: int
    min_clicks: int


def _load(path: Path, debug_log: Path | None) -> Recording:
    if debug_log is None:
        debug_log = ReplaySettings.from_env().debug_log_path
    if debug_log is not None:
        init_debug_log(debug_log)
    try:
        return decode_file(path)
    except (RecordingError, OSError) as exc:
        typer.echo(f"failed to load {path}: {exc}", err=True)
        raise typer.Exit(code=1) from exc


def summarize(recording: Recording) -> RecordingSummary:
    result = simulate(recording)
    return RecordingSummary(
        format=recording.format,
        player=recording.player_name(),
        level=recording.difficulty_level.name.lower(),
        width=recording.width,
        height=recording.height,
        mines=recording.mine_count,
        marks=recording.allow_question_marks,
        raw_events=len(recording.events),
        game_events=len(result.events),
        terminal=result.terminal.value,
        end_time_ms=result.end_time_ms,
        openings=result.metrics.openings,
        islands=result.metrics.islands,
        min_clicks=result.metrics.min_clicks,
    )


def render_grid(engine: ReplayEngine, width: int) -> str:
    cells = engine.current_cell_grid()
    rows = [
        "".join(cell.glyph for cell in cells[start : start + width])
        for start in range(0, len(cells), width)
    ]
    return "\n".join(rows)


@app.command("info")
def cmd_info(
    recording_file: Path = typer.Argument(..., help="recording file (.evf, .avf, .mvf, .rmv, .rawvf)"),
    as_json: bool = typer.Option(False, "--json", help="print the summary as JSON"),
    debug_log: Path | None = typer.Option(None, "--debug-log", help="append a key=value trace to this file"),
) -> None:
    """Print recording header fields and board metrics."""
    recording = _load(recording_file, debug_log)
    summary = summarize(recording)
    if as_json:
        typer.echo(msgspec.json.format(msgspec.json.encode(summary), indent=2).decode("utf-8"))
        return
    for field in summary.__struct_fields__:
        typer.echo(f"{field:12s} {getattr(summary, field)}")


@app.command("events")
def cmd_events(
    recording_file: Path = typer.Argument(..., help="recording file"),
    limit: int | None = typer.Option(None, help="stop after N game events"),
    debug_log: Path | None = typer.Option(None, "--debug-log", help="append a key=value trace to this file"),
) -> None:
    """List the derived game events."""
    recording = _load(recording_file, debug_log)
    result = simulate(recording)
    events = result.events if limit is None else result.events[: max(0, int(limit))]
    for index, event in enumerate(events):
        if event.cell is None:
            where = "-"
        else:
            where = f"{event.cell % recording.width},{event.cell // recording.width}"
        extra = f" n={event.number}" if event.kind == GameEventKind.OPEN else ""
        typer.echo(f"{index:6d}  t={event.time_ms:8d}  {event.kind.value:24s} {where}{extra}")


@app.command("board")
def cmd_board(
    recording_file: Path = typer.Argument(..., help="recording file"),
    at: float = typer.Option(..., "--at", help="elapsed time in milliseconds"),
    debug_log: Path | None = typer.Option(None, "--debug-log", help="append a key=value trace to this file"),
) -> None:
    """Print the board as it looks at a point in the replay."""
    recording = _load(recording_file, debug_log)
    engine = ReplayEngine.from_recording(recording)
    engine.seek(at)
    typer.echo(render_grid(engine, recording.width))
    typer.echo(f"face={engine.current_face_status().value} index={engine.index}/{engine.event_count}")


def main(argv: list[str] | None = None) -> None:
    app(prog_name="minereplay", args=argv)


if __name__ == "__main__":
    main()
