from __future__ import annotations

import datetime as dt
import os
from pathlib import Path
from threading import Lock

DEBUG_LOG_ENV = "MINEREPLAY_DEBUG_LOG"

_TRACE_LOCK = Lock()
_TRACE_PATH: Path | None = None
_ENV_CHECKED = False


def _format_value(value: object) -> str:
    text = str(value)
    return text.replace("\n", "\\n")


def _format_fields(fields: dict[str, object]) -> str:
    parts: list[str] = []
    for key in sorted(fields):
        parts.append(f"{key}={_format_value(fields[key])}")
    return " ".join(parts)


def debug_log_path() -> Path | None:
    with _TRACE_LOCK:
        return _TRACE_PATH


def init_debug_log(path: Path) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    with _TRACE_LOCK:
        global _TRACE_PATH, _ENV_CHECKED
        _TRACE_PATH = path
        _ENV_CHECKED = True

    debug_log("init", pid=int(os.getpid()))
    return path


def close_debug_log() -> None:
    with _TRACE_LOCK:
        global _TRACE_PATH, _ENV_CHECKED
        _TRACE_PATH = None
        _ENV_CHECKED = True


def _resolve_env_path() -> Path | None:
    global _TRACE_PATH, _ENV_CHECKED
    if not _ENV_CHECKED:
        _ENV_CHECKED = True
        raw = os.environ.get(DEBUG_LOG_ENV, "").strip()
        if raw:
            _TRACE_PATH = Path(raw)
            _TRACE_PATH.parent.mkdir(parents=True, exist_ok=True)
    return _TRACE_PATH


def debug_log(event: str, **fields: object) -> None:
    timestamp = dt.datetime.now(dt.timezone.utc).isoformat(timespec="milliseconds")
    payload = _format_fields(fields)
    line = f"{timestamp} event={str(event).strip()}"
    if payload:
        line += f" {payload}"
    line += "\n"

    with _TRACE_LOCK:
        path = _resolve_env_path()
        if path is None:
            return
        with path.open("a", encoding="utf-8") as handle:
            handle.write(line)
