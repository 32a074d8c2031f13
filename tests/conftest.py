from __future__ import annotations

import sys
from pathlib import Path

import pytest


def pytest_configure(config: pytest.Config) -> None:
    # Ensure the local `src/` tree wins over any other editable install that may exist.
    src_dir = Path(__file__).resolve().parents[1] / "src"
    src_str = str(src_dir)
    if src_str not in sys.path:
        sys.path.insert(0, src_str)


@pytest.fixture(autouse=True)
def _isolated_debug_log(monkeypatch: pytest.MonkeyPatch):
    from minereplay import debug_log

    monkeypatch.delenv(debug_log.DEBUG_LOG_ENV, raising=False)
    debug_log.close_debug_log()
    yield
    debug_log.close_debug_log()
