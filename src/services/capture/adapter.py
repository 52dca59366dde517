"""Façade between a speech capture capability and the capture session.

Forwards start/stop commands to the engine and translates its raw
notifications ("start", "result", "end", "error") into session events,
delivered to the coordinator through a callback. The adapter never mutates
session state itself.
"""

import logging
from collections.abc import Awaitable, Callable

from src.core.exceptions import (
    CaptureAlreadyActiveError,
    CaptureEngineError,
    CaptureUnavailableError,
)
from src.services.capture.base import (
    BaseCaptureEngine,
    EngineEnded,
    EngineFailed,
    EngineStarted,
    PartialResult,
    SessionEvent,
)

logger = logging.getLogger(__name__)


class CaptureEngineAdapter:
    """Wraps one engine instance for the lifetime of its connection.

    Args:
        engine: The capability, or None when the client has none.
        deliver: Coroutine receiving each translated session event in order.
    """

    def __init__(
        self,
        engine: BaseCaptureEngine | None,
        deliver: Callable[[SessionEvent], Awaitable[None]],
    ) -> None:
        self._engine = engine
        self._deliver = deliver

    @property
    def available(self) -> bool:
        return self._engine is not None

    @property
    def engine(self) -> BaseCaptureEngine | None:
        return self._engine

    async def start(self, language: str) -> None:
        """Ask the engine to begin listening.

        Raises:
            CaptureUnavailableError: If there is no engine.
            CaptureAlreadyActiveError: If the engine throws on start.
        """
        if self._engine is None:
            raise CaptureUnavailableError()
        try:
            await self._engine.start(language)
        except Exception as exc:
            logger.warning("Speech engine refused to start: %s", exc)
            raise CaptureAlreadyActiveError() from exc

    async def stop(self) -> None:
        """Ask the engine to stop listening (no-op without an engine)."""
        if self._engine is None:
            return
        try:
            await self._engine.stop()
        except Exception as exc:
            logger.warning("Speech engine failed to stop: %s", exc)
            raise CaptureEngineError(f"Failed to stop speech engine: {exc}") from exc

    # -- notifications --

    async def on_start(self) -> None:
        await self._deliver(EngineStarted())

    async def on_result(self, text: str) -> None:
        await self._deliver(PartialResult(text))

    async def on_end(self) -> None:
        await self._deliver(EngineEnded())

    async def on_error(self, code: str) -> None:
        await self._deliver(EngineFailed(code or "unknown"))

    async def notify(self, event: str, text: str = "", code: str = "") -> None:
        """Translate a raw notification name into a session event."""
        if event == "start":
            await self.on_start()
        elif event == "result":
            await self.on_result(text)
        elif event == "end":
            await self.on_end()
        elif event == "error":
            await self.on_error(code)
        else:
            raise ValueError(f"Unknown engine notification: {event}")
