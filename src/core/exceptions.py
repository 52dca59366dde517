"""
VoiceLedger exception hierarchy.

All application-specific exceptions inherit from VoiceLedgerError,
enabling centralized error handling in the API middleware layer.
"""

from datetime import UTC, datetime


class VoiceLedgerError(Exception):
    """Base exception for all VoiceLedger errors."""

    def __init__(
        self,
        detail: str = "An unexpected error occurred",
        code: str = "VOICELEDGER_ERROR",
        status_code: int = 500,
    ) -> None:
        self.detail = detail
        self.code = code
        self.status_code = status_code
        self.timestamp = datetime.now(UTC).isoformat()
        super().__init__(detail)


class CaptureAlreadyActiveError(VoiceLedgerError):
    """Raised when a capture is started (or text submitted) while one is active."""

    def __init__(self, detail: str = "A capture session is already active") -> None:
        super().__init__(
            detail=detail,
            code="CAPTURE_ALREADY_ACTIVE",
            status_code=409,
        )


class CaptureUnavailableError(VoiceLedgerError):
    """Raised when no speech capability is connected."""

    def __init__(self, detail: str = "Speech capture is not available") -> None:
        super().__init__(
            detail=detail,
            code="CAPTURE_UNAVAILABLE",
            status_code=503,
        )


class CaptureEngineError(VoiceLedgerError):
    """Raised when the speech engine fails to accept a command."""

    def __init__(self, detail: str = "Speech engine error") -> None:
        super().__init__(
            detail=detail,
            code="CAPTURE_ENGINE_ERROR",
            status_code=500,
        )


class CollectionServiceError(VoiceLedgerError):
    """Raised when the remote collection service cannot be reached or rejects a call.

    ``category`` is one of "connection", "timeout", "http", "network",
    "rejected" or "payload".
    """

    def __init__(self, detail: str, category: str = "unknown") -> None:
        self.category = category
        super().__init__(
            detail=detail,
            code="COLLECTION_SERVICE_ERROR",
            status_code=502,
        )


class ClassificationError(VoiceLedgerError):
    """Raised when an utterance cannot be classified."""

    def __init__(self, detail: str = "Classification failed") -> None:
        super().__init__(
            detail=detail,
            code="CLASSIFICATION_ERROR",
            status_code=502,
        )


class LookupFailedError(VoiceLedgerError):
    """Raised when a collection search fails."""

    def __init__(self, detail: str = "Lookup failed") -> None:
        super().__init__(detail=detail, code="LOOKUP_ERROR", status_code=502)


class CommitError(VoiceLedgerError):
    """Raised when applying a write to a collection fails."""

    def __init__(self, detail: str = "Commit failed") -> None:
        super().__init__(detail=detail, code="COMMIT_ERROR", status_code=502)


class NoPendingVerdictError(VoiceLedgerError):
    """Raised when confirming a verdict while none is held."""

    def __init__(
        self, detail: str = "No classified change is waiting for confirmation"
    ) -> None:
        super().__init__(
            detail=detail,
            code="NO_PENDING_VERDICT",
            status_code=409,
        )


class ItemNotFoundError(VoiceLedgerError):
    """Raised when an item or habit is not present in the local mirror."""

    def __init__(self, key: str) -> None:
        super().__init__(
            detail=f"Item not found: {key}",
            code="ITEM_NOT_FOUND",
            status_code=404,
        )
