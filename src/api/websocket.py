"""WebSocket bridge to a client-side speech recognizer.

The client (typically a browser using its built-in speech recognition)
hosts the capture capability. It reports the recognizer's lifecycle as JSON
notifications; the server sends back start/stop commands and a state
snapshot after every change.

Client -> server::

    {"event": "start"}
    {"event": "result", "text": "<full hypothesis>"}
    {"event": "end"}
    {"event": "error", "code": "no-speech"}
    {"event": "unavailable"}

Server -> client: ``CaptureMessage`` objects (connected / command / state / error).
"""

import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from src.core.config import get_settings
from src.core.models import (
    CaptureMessage,
    CaptureMessageType,
    EngineNotification,
    SessionSnapshot,
)
from src.services import orchestrator
from src.services.capture.websocket_engine import WebSocketCaptureEngine

logger = logging.getLogger(__name__)

router = APIRouter()


async def _send(websocket: WebSocket, msg_type: CaptureMessageType, data: dict) -> None:
    msg = CaptureMessage(type=msg_type, data=data)
    await websocket.send_json(msg.model_dump(mode="json"))


@router.websocket("/ws/capture")
async def capture_ws(websocket: WebSocket) -> None:
    """Attach the connected client as the coordinator's capture engine.

    Notifications are processed strictly in arrival order, each to
    completion (including classification) before the next is read.
    """
    await websocket.accept()
    coordinator = orchestrator.get_coordinator()
    engine = WebSocketCaptureEngine(websocket)
    adapter = coordinator.attach_engine(engine)
    logger.info("Capture client connected")

    async def _push_state(snapshot: SessionSnapshot) -> None:
        await _send(websocket, CaptureMessageType.state, snapshot.model_dump(mode="json"))

    coordinator.subscribe(_push_state)
    await _send(
        websocket,
        CaptureMessageType.connected,
        {"language": get_settings().capture_language},
    )

    try:
        while True:
            raw = await websocket.receive_json()
            try:
                note = EngineNotification.model_validate(raw)
            except ValidationError as exc:
                await _send(
                    websocket,
                    CaptureMessageType.error,
                    {"detail": f"Invalid notification: {exc.errors()[0]['msg']}"},
                )
                continue

            if note.event == "unavailable":
                await coordinator.report_unavailable()
                continue

            engine.observe(note.event)
            await adapter.notify(note.event, text=note.text, code=note.code)

    except WebSocketDisconnect:
        logger.info("Capture client disconnected")
    except Exception:
        logger.exception("Capture bridge failed")
        try:
            await _send(websocket, CaptureMessageType.error, {"detail": "Capture bridge error"})
        except Exception:
            logger.debug("Could not report bridge error to client")
    finally:
        coordinator.unsubscribe(_push_state)
        await coordinator.detach_engine(engine)
