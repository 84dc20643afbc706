import logging
from typing import Any

import pytest
import structlog

from src.core import observability
from src.core.observability import clear_correlation_id, set_correlation_id, traced


class _RecordingLogger:
    """Stands in for the module's structlog logger and keeps every event."""

    def __init__(self) -> None:
        self.events: list[dict[str, Any]] = []

    def log(self, level: int, event: str, **kwargs: Any) -> None:
        self.events.append({"event": event, "level": level, **kwargs})

    def error(self, event: str, **kwargs: Any) -> None:
        self.events.append({"event": event, "level": "error", **kwargs})


@pytest.fixture
def recorder(monkeypatch: pytest.MonkeyPatch) -> _RecordingLogger:
    logger = _RecordingLogger()
    monkeypatch.setattr(observability, "logger", logger)
    return logger


@pytest.mark.asyncio
async def test_traced_async_logs_start_and_done(recorder: _RecordingLogger) -> None:
    @traced(capture_result=True, log_level="INFO", add_metadata={"layer": "db"})
    async def _save(row_id: int, api_key: str = "") -> str:
        return "ok"

    assert await _save(1, api_key="RGAPI-0123456789") == "ok"

    start, done = recorder.events
    assert start["event"] == "call_start"
    assert start["layer"] == "db"
    assert start["args"] == [1]
    # Sensitive keyword arguments are masked
    assert start["kwargs"]["api_key"] != "RGAPI-0123456789"
    assert done["event"] == "call_done"
    assert done["result"] == "ok"
    assert start["execution_id"] == done["execution_id"]


@pytest.mark.asyncio
async def test_traced_reraises_and_logs_failure(recorder: _RecordingLogger) -> None:
    @traced()
    async def _explode() -> None:
        raise RuntimeError("boom")

    with pytest.raises(RuntimeError, match="boom"):
        await _explode()

    failed = recorder.events[-1]
    assert failed["event"] == "call_failed"
    assert failed["error_type"] == "RuntimeError"
    assert "execution_id" not in structlog.contextvars.get_contextvars()


def test_traced_sync_function(recorder: _RecordingLogger) -> None:
    @traced(capture_args=False)
    def _add(a: int, b: int) -> int:
        return a + b

    assert _add(2, 3) == 5
    assert [e["event"] for e in recorder.events] == ["call_start", "call_done"]
    assert "args" not in recorder.events[0]


def test_correlation_id_binding() -> None:
    cid = set_correlation_id()
    try:
        assert structlog.contextvars.get_contextvars()["correlation_id"] == cid
        assert set_correlation_id("fixed") == "fixed"
    finally:
        clear_correlation_id()

    assert "correlation_id" not in structlog.contextvars.get_contextvars()


def test_configure_logging_quiets_noisy_libraries(tmp_path) -> None:
    root = logging.getLogger()
    saved_handlers, saved_level = list(root.handlers), root.level
    try:
        observability.configure_logging(level="DEBUG", file_target=str(tmp_path / "bot.log"))

        assert root.level == logging.DEBUG
        assert logging.getLogger("discord").level == logging.WARNING
        logging.getLogger(__name__).info("written")
        assert (tmp_path / "bot.log").exists()
    finally:
        for handler in root.handlers:
            handler.close()
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)
