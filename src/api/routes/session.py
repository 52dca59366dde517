"""
Capture session REST endpoints.

Thin handlers over the process-wide ``SessionCoordinator``; every endpoint
returns the resulting ``SessionSnapshot``. No business logic here.
"""

import logging

from fastapi import APIRouter

from src.core.models import (
    CaptureStartRequest,
    CaptureStopRequest,
    ConfirmRequest,
    LanguageRequest,
    SessionSnapshot,
    TextRequest,
)
from src.services import orchestrator

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/session", tags=["session"])


@router.get("", response_model=SessionSnapshot)
async def get_session_state():
    """Current capture state, verdict, countdown and views."""
    return orchestrator.get_coordinator().snapshot()


@router.post("/capture", response_model=SessionSnapshot)
async def begin_capture(body: CaptureStartRequest | None = None):
    """Start recording through the connected capture client."""
    coordinator = orchestrator.get_coordinator()
    await coordinator.begin_capture(body.mode if body else CaptureStartRequest().mode)
    return coordinator.snapshot()


@router.post("/capture/stop", response_model=SessionSnapshot)
async def end_capture(body: CaptureStopRequest | None = None):
    """Stop recording; the finalized transcript is classified when the engine ends."""
    coordinator = orchestrator.get_coordinator()
    await coordinator.end_capture(body.reason if body else None)
    return coordinator.snapshot()


@router.put("/text", response_model=SessionSnapshot)
async def edit_text(body: TextRequest):
    """Replace an input buffer without submitting it."""
    coordinator = orchestrator.get_coordinator()
    await coordinator.edit_text(body.text, body.mode)
    return coordinator.snapshot()


@router.post("/text", response_model=SessionSnapshot)
async def submit_text(body: TextRequest):
    """Classify typed text and act on the verdict."""
    coordinator = orchestrator.get_coordinator()
    await coordinator.submit_text(body.text, body.mode)
    return coordinator.snapshot()


@router.post("/cancel", response_model=SessionSnapshot)
async def cancel_pending_commit():
    """Cancel the auto-commit countdown, if one is running."""
    coordinator = orchestrator.get_coordinator()
    cancelled = await coordinator.cancel_pending_commit()
    logger.debug("Cancel requested (cancelled=%s)", cancelled)
    return coordinator.snapshot()


@router.post("/confirm", response_model=SessionSnapshot)
async def confirm_verdict(body: ConfirmRequest | None = None):
    """Commit the held verdict now, optionally with corrected items."""
    coordinator = orchestrator.get_coordinator()
    await coordinator.confirm_verdict(body.items if body else None)
    return coordinator.snapshot()


@router.post("/default-view", response_model=SessionSnapshot)
async def return_to_default_view():
    """Leave the search view and show the collection mirrors."""
    coordinator = orchestrator.get_coordinator()
    await coordinator.return_to_default_view()
    return coordinator.snapshot()


@router.post("/refresh", response_model=SessionSnapshot)
async def refresh_collections():
    """Reload the inventory and habit mirrors from the service."""
    coordinator = orchestrator.get_coordinator()
    await coordinator.refresh_collections()
    return coordinator.snapshot()


@router.put("/language", response_model=SessionSnapshot)
async def set_language(body: LanguageRequest):
    """Switch the language of status messages."""
    coordinator = orchestrator.get_coordinator()
    coordinator.set_language(body.language)
    return coordinator.snapshot()
