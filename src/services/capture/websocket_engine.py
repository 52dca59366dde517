"""Capture engine backed by a client connected over WebSocket.

The speech recognizer runs in the client (typically a browser's Web Speech
API). Commands are sent as ``CaptureMessage`` JSON; the client reports the
recognizer's lifecycle back on the same socket.
"""

import logging

from fastapi import WebSocket

from src.core.models import CaptureMessage, CaptureMessageType
from src.services.capture.base import BaseCaptureEngine

logger = logging.getLogger(__name__)


class WebSocketCaptureEngine(BaseCaptureEngine):
    """Remote recognizer reachable through one WebSocket connection.

    Mirrors the recognizer's own rule that ``start()`` throws while it is
    already listening.
    """

    def __init__(self, websocket: WebSocket) -> None:
        self._websocket = websocket
        self._listening = False

    @property
    def listening(self) -> bool:
        return self._listening

    async def start(self, language: str) -> None:
        if self._listening:
            raise RuntimeError("recognition has already started")
        self._listening = True
        await self._send_command("start", language=language)

    async def stop(self) -> None:
        await self._send_command("stop")

    def observe(self, event: str) -> None:
        """Track the client recognizer's state from its notifications."""
        if event == "start":
            self._listening = True
        elif event == "end":
            self._listening = False

    async def _send_command(self, action: str, **data) -> None:
        msg = CaptureMessage(
            type=CaptureMessageType.command,
            data={"action": action, **data},
        )
        logger.debug("Sending capture command: %s", action)
        await self._websocket.send_json(msg.model_dump(mode="json"))
