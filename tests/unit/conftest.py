from __future__ import annotations

import pytest

_CAPTURE_ENV = ("CAPTURE_DATA_DIR", "CAPTURE_ATTEMPT_ID", "CAPTURE_FORMAT", "CAPTURE_LOG_LEVEL")


@pytest.fixture(autouse=True)
def _no_threads_in_unit_tests(monkeypatch: pytest.MonkeyPatch):
    """Run `asyncio.to_thread` inline for unit tests.

    The logger's async helpers hand blocking flushes to a worker thread; in unit
    tests that only adds threadpool workers without changing behaviour.
    """

    async def _to_thread(func, /, *args, **kwargs):  # noqa: ANN001, D401
        return func(*args, **kwargs)

    monkeypatch.setattr("capture.logger.asyncio.to_thread", _to_thread)
    yield


@pytest.fixture(autouse=True)
def _isolated_capture_env(monkeypatch: pytest.MonkeyPatch, tmp_path):
    """Keep tests away from a developer's `.env` and real data directory."""
    monkeypatch.chdir(tmp_path)
    for name in _CAPTURE_ENV:
        monkeypatch.delenv(name, raising=False)
    yield
