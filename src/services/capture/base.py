"""
Abstract speech capture capability and the session events it produces.

The capability itself lives outside this service (e.g. a browser's speech
recognizer). Implementations forward ``start``/``stop`` commands to it; its
notifications come back through ``CaptureEngineAdapter`` as the event
dataclasses below.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


class BaseCaptureEngine(ABC):
    """Interface every speech capture capability must implement."""

    @abstractmethod
    async def start(self, language: str) -> None:
        """Begin listening.

        Args:
            language: BCP-47 language tag for recognition (e.g. "zh-CN").

        Raises:
            Exception: Any engine failure, typically because it is already
                listening. Callers translate it to ``CaptureAlreadyActiveError``.
        """

    @abstractmethod
    async def stop(self) -> None:
        """Stop listening. The engine answers with an end notification."""


# ---------------------------------------------------------------------------
# Session events
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class EngineStarted:
    """The engine confirmed it is listening."""


@dataclass(frozen=True)
class PartialResult:
    """Full current hypothesis (not a delta)."""

    text: str


@dataclass(frozen=True)
class EngineEnded:
    """Listening finished, for whatever reason."""


@dataclass(frozen=True)
class EngineFailed:
    """Engine-reported error code, e.g. "no-speech" or "network"."""

    code: str


SessionEvent = EngineStarted | PartialResult | EngineEnded | EngineFailed


# ---------------------------------------------------------------------------
# Effects requested by the session
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RequestStop:
    """Ask the engine to stop (self-terminating keyword)."""


@dataclass(frozen=True)
class CancelTimeout:
    """Disarm the hard recording timeout."""


@dataclass(frozen=True)
class Finalize:
    """Hand the finalized transcript to classification."""

    text: str


SessionEffect = RequestStop | CancelTimeout | Finalize
