from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from .debug_log import DEBUG_LOG_ENV

SPEED_ENV = "MINEREPLAY_SPEED"
MAX_EVENTS_ENV = "MINEREPLAY_MAX_EVENTS"

PLAYBACK_SPEEDS: tuple[float, ...] = (0.1, 0.25, 0.5, 1.0, 1.5, 2.0, 3.0, 5.0)
DEFAULT_SPEED = 1.0
DEFAULT_MAX_EVENTS = 2_000_000


def resolve_playback_speed(default: float = DEFAULT_SPEED) -> float:
    speed = float(default) if float(default) in PLAYBACK_SPEEDS else DEFAULT_SPEED
    raw = os.environ.get(SPEED_ENV)
    if raw is None:
        return speed
    try:
        value = float(raw)
    except ValueError:
        return speed
    if value not in PLAYBACK_SPEEDS:
        return speed
    return value


def resolve_max_events(default: int = DEFAULT_MAX_EVENTS) -> int:
    limit = max(1, int(default))
    raw = os.environ.get(MAX_EVENTS_ENV)
    if raw is None:
        return limit
    try:
        return max(1, int(raw))
    except ValueError:
        return limit


@dataclass(frozen=True, slots=True)
class ReplaySettings:
    speed: float = DEFAULT_SPEED
    max_events: int = DEFAULT_MAX_EVENTS
    debug_log_path: Path | None = None

    @classmethod
    def from_env(cls) -> ReplaySettings:
        raw_log = os.environ.get(DEBUG_LOG_ENV, "").strip()
        return cls(
            speed=resolve_playback_speed(),
            max_events=resolve_max_events(),
            debug_log_path=Path(raw_log) if raw_log else None,
        )
