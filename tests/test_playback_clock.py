from __future__ import annotations

import pytest

from minereplay.config import SPEED_ENV
from minereplay.engine import ReplayEngine
from minereplay.formats import avf
from minereplay.playback import PlaybackClock
from recording_bytes import build_avf


def _clock(**kwargs) -> PlaybackClock:  # noqa: ANN003
    engine = ReplayEngine.from_recording(avf.loads(build_avf()))
    return PlaybackClock(engine, **kwargs)


def test_ticks_advance_engine_by_scaled_wall_time() -> None:
    clock = _clock(speed=1.0)
    token = clock.start()

    assert clock.tick(1_000, token) is True
    assert clock.engine.index == 1

    assert clock.tick(1_100, token) is True
    assert clock.engine.elapsed_ms == pytest.approx(100.0)
    assert clock.engine.index == 3

    clock.set_speed(2.0)
    assert clock.tick(1_200, token) is True
    assert clock.engine.elapsed_ms == pytest.approx(300.0)
    assert clock.engine.index == 13


def test_clock_stops_when_replay_finishes() -> None:
    clock = _clock(speed=5.0)
    token = clock.start()
    clock.tick(0, token)
    assert clock.tick(1_000, token) is False
    assert clock.engine.finished
    assert not clock.running
    assert clock.tick(1_100, token) is False


def test_stale_generation_is_ignored() -> None:
    clock = _clock(speed=1.0)
    old = clock.start()
    new = clock.start()
    assert new != old
    clock.tick(0, new)
    assert clock.tick(500, old) is False
    assert clock.engine.index == 1


def test_pause_invalidates_scheduled_ticks() -> None:
    clock = _clock(speed=1.0)
    token = clock.start()
    clock.tick(0, token)
    clock.pause()
    assert clock.tick(1_000, token) is False
    assert clock.engine.index == 1

    resumed = clock.resume()
    # The first tick after resuming only anchors the wall clock.
    assert clock.tick(5_000, resumed) is True
    assert clock.engine.index == 1


def test_scrub_keeps_running_state() -> None:
    clock = _clock(speed=1.0)
    token = clock.start()
    clock.tick(0, token)
    new_token = clock.scrub(200)
    assert new_token != token
    assert clock.running
    assert clock.engine.index == 12

    clock.pause()
    paused_token = clock.scrub(50)
    assert not clock.running
    assert paused_token == clock.generation
    assert clock.engine.index == 1


def test_restart_rewinds_engine() -> None:
    clock = _clock(speed=1.0)
    token = clock.start()
    clock.tick(0, token)
    clock.tick(10_000, token)
    token = clock.restart()
    assert clock.engine.index == 0
    assert clock.tick(0, token) is True
    assert clock.engine.index == 1


def test_unsupported_speed_rejected() -> None:
    with pytest.raises(ValueError):
        _clock(speed=4.0)
    clock = _clock(speed=1.0)
    with pytest.raises(ValueError):
        clock.set_speed(0.0)


def test_default_speed_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv(SPEED_ENV, "0.5")
    assert _clock().speed == 0.5
    monkeypatch.setenv(SPEED_ENV, "7")
    assert _clock().speed == 1.0
