"""Capture session state machine.

Owns the recording lifecycle (idle -> recording -> finalizing -> idle) and
the accumulated transcript. Engine notifications arrive as events and are
consumed by ``handle()``, the single transition function; it returns the
effects (stop the engine, disarm the timeout, classify text) for the
coordinator to carry out.
"""

import logging

from src.core.exceptions import CaptureAlreadyActiveError
from src.core.messages import DEFAULT_LANGUAGE, message
from src.core.models import CaptureMode, CaptureState
from src.services.capture.base import (
    CancelTimeout,
    EngineEnded,
    EngineFailed,
    EngineStarted,
    Finalize,
    PartialResult,
    RequestStop,
    SessionEffect,
    SessionEvent,
)

logger = logging.getLogger(__name__)

NO_SPEECH = "no-speech"


class CaptureSession:
    """One capture session's state, transcript and user-visible status.

    Args:
        language: Status text language ("zh" or "en").
        timeout_seconds: Hard recording limit, shown in the recording status.
        stop_keyword: Token that ends the recording when heard.
    """

    def __init__(
        self,
        language: str = DEFAULT_LANGUAGE,
        timeout_seconds: float = 30.0,
        stop_keyword: str = "over",
    ) -> None:
        self.language = language
        self._timeout_seconds = timeout_seconds
        self._stop_keyword = stop_keyword.lower()
        self.state = CaptureState.idle
        self.mode = CaptureMode.main
        self.transcript = ""
        self.status = message("ready", language)
        self.error: str | None = None
        self._stop_requested = False

    @property
    def is_idle(self) -> bool:
        return self.state is CaptureState.idle

    def _say(self, key: str, **params) -> None:
        self.status = message(key, self.language, **params)

    # -- commands --

    def start(self, mode: CaptureMode = CaptureMode.main) -> None:
        """Enter recording with a cleared transcript.

        Raises:
            CaptureAlreadyActiveError: If the session is not idle. The
                in-progress transcript is left untouched.
        """
        if not self.is_idle:
            raise CaptureAlreadyActiveError(message("already_active", self.language))
        self.transcript = ""
        self.mode = mode
        self.error = None
        self._stop_requested = False
        self.state = CaptureState.recording
        self._say("recording", timeout=int(self._timeout_seconds))
        logger.info("Capture session started (mode=%s)", mode)

    def abort_start(self, detail: str) -> None:
        """Return to idle after the engine refused to start."""
        self.state = CaptureState.idle
        self.error = detail

    def mark_stopping(self, reason: str) -> None:
        """Record why a stop was requested; the engine's end event follows."""
        self._say("stopped", reason=reason)

    def edit(self, text: str) -> None:
        """Replace the transcript by hand.

        Raises:
            CaptureAlreadyActiveError: Unless the session is idle.
        """
        if not self.is_idle:
            raise CaptureAlreadyActiveError(message("already_active", self.language))
        self.transcript = text

    def finish(self) -> None:
        """Leave finalizing once the transcript has been handed off."""
        if self.state is CaptureState.finalizing:
            self.state = CaptureState.idle

    # -- transitions --

    def handle(self, event: SessionEvent) -> list[SessionEffect]:
        """Apply one engine notification and return the resulting effects."""
        if isinstance(event, EngineStarted):
            return self._on_started()
        if isinstance(event, PartialResult):
            return self._on_result(event.text)
        if isinstance(event, EngineEnded):
            return self._on_ended()
        if isinstance(event, EngineFailed):
            return self._on_failed(event.code)
        raise TypeError(f"Unknown session event: {event!r}")

    def _on_started(self) -> list[SessionEffect]:
        if self.is_idle:
            # Engine began on its own (e.g. restarted by the client)
            self.transcript = ""
            self._stop_requested = False
            self.state = CaptureState.recording
        self.error = None
        self._say("recording", timeout=int(self._timeout_seconds))
        return []

    def _on_result(self, text: str) -> list[SessionEffect]:
        if self.state is not CaptureState.recording:
            logger.debug("Ignoring partial result while %s", self.state)
            return []
        self.transcript = text
        if self._stop_keyword and self._stop_keyword in text.lower():
            self._say("stopped_keyword", keyword=self._stop_keyword)
            if not self._stop_requested:
                self._stop_requested = True
                return [RequestStop()]
        return []

    def _on_ended(self) -> list[SessionEffect]:
        if self.is_idle:
            return []
        self.state = CaptureState.finalizing
        effects: list[SessionEffect] = [CancelTimeout()]
        final_text = self.transcript.strip()
        if final_text:
            effects.append(Finalize(final_text))
        else:
            self.state = CaptureState.idle
            self._say("no_content")
        logger.info("Capture session ended (%d chars)", len(final_text))
        return effects

    def _on_failed(self, code: str) -> list[SessionEffect]:
        if code == NO_SPEECH:
            self._say("no_speech")
        else:
            self.error = message("engine_error", self.language, code=code)
            logger.warning("Speech engine error: %s", code)
        return []
