from __future__ import annotations

from .config import PLAYBACK_SPEEDS, ReplaySettings
from .engine import ReplayEngine


class PlaybackClock:
    """Maps wall-clock ticks from an external scheduler onto `ReplayEngine.seek`.

    Each schedule is tagged with a generation token; a tick carrying a stale
    token does nothing and tells the caller not to reschedule.
    """

    def __init__(self, engine: ReplayEngine, *, speed: float | None = None) -> None:
        self._engine = engine
        self._speed = ReplaySettings.from_env().speed if speed is None else self._check_speed(speed)
        self._generation = 0
        self._last_tick_ms: float | None = None
        self._running = False

    @staticmethod
    def _check_speed(speed: float) -> float:
        speed = float(speed)
        if speed not in PLAYBACK_SPEEDS:
            raise ValueError(f"unsupported playback speed: {speed}")
        return speed

    @property
    def engine(self) -> ReplayEngine:
        return self._engine

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def speed(self) -> float:
        return self._speed

    @property
    def running(self) -> bool:
        return self._running

    def set_speed(self, speed: float) -> None:
        self._speed = self._check_speed(speed)

    def start(self) -> int:
        self._generation += 1
        self._last_tick_ms = None
        self._running = True
        return self._generation

    def resume(self) -> int:
        return self.start()

    def pause(self) -> None:
        self._generation += 1
        self._last_tick_ms = None
        self._running = False

    def restart(self) -> int:
        self.pause()
        self._engine.reset()
        return self.start()

    def scrub(self, elapsed_ms: float) -> int:
        """Seek directly (e.g. from a progress bar); running playback continues from there."""
        running = self._running
        self.pause()
        self._engine.seek(max(0.0, float(elapsed_ms)))
        if running:
            return self.start()
        return self._generation

    def tick(self, now_ms: float, generation: int) -> bool:
        """Advance playback to `now_ms`; returns True when the caller should schedule another tick."""
        if generation != self._generation or not self._running:
            return False
        now_ms = float(now_ms)
        if self._last_tick_ms is None:
            delta = 0.0
        else:
            delta = max(0.0, now_ms - self._last_tick_ms) * self._speed
        self._last_tick_ms = now_ms
        self._engine.seek(self._engine.elapsed_ms + delta)
        if self._engine.finished:
            self._running = False
            return False
        return True
