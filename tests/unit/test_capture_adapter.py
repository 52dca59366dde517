"""Unit tests for CaptureEngineAdapter notification translation."""

from unittest.mock import AsyncMock

import pytest

from src.core.exceptions import (
    CaptureAlreadyActiveError,
    CaptureEngineError,
    CaptureUnavailableError,
)
from src.services.capture.adapter import CaptureEngineAdapter
from src.services.capture.base import (
    BaseCaptureEngine,
    EngineEnded,
    EngineFailed,
    EngineStarted,
    PartialResult,
)


@pytest.fixture
def deliver():
    return AsyncMock()


@pytest.fixture
def adapter(engine, deliver):
    return CaptureEngineAdapter(engine, deliver)


@pytest.mark.parametrize(
    ("event", "kwargs", "expected"),
    [
        ("start", {}, EngineStarted()),
        ("result", {"text": "两瓶可乐"}, PartialResult("两瓶可乐")),
        ("end", {}, EngineEnded()),
        ("error", {"code": "no-speech"}, EngineFailed("no-speech")),
        ("error", {}, EngineFailed("unknown")),
    ],
)
async def test_notify_translates_events(adapter, deliver, event, kwargs, expected):
    await adapter.notify(event, **kwargs)
    deliver.assert_awaited_once_with(expected)


async def test_unknown_notification_rejected(adapter, deliver):
    with pytest.raises(ValueError, match="Unknown engine notification"):
        await adapter.notify("pause")
    deliver.assert_not_awaited()


async def test_start_forwards_language(adapter, engine):
    await adapter.start("zh-CN")
    assert engine.start_calls == ["zh-CN"]


async def test_start_failure_becomes_already_active(adapter, engine):
    engine.listening = True
    with pytest.raises(CaptureAlreadyActiveError):
        await adapter.start("zh-CN")


async def test_start_without_engine_is_unavailable(deliver):
    adapter = CaptureEngineAdapter(None, deliver)
    assert adapter.available is False
    with pytest.raises(CaptureUnavailableError):
        await adapter.start("zh-CN")


async def test_stop_without_engine_is_noop(deliver):
    await CaptureEngineAdapter(None, deliver).stop()


async def test_stop_failure_wrapped(deliver):
    engine = AsyncMock(spec=BaseCaptureEngine)
    engine.stop.side_effect = RuntimeError("socket closed")
    adapter = CaptureEngineAdapter(engine, deliver)
    with pytest.raises(CaptureEngineError, match="socket closed"):
        await adapter.stop()
