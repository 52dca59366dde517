"""
Global error handling for the FastAPI application.

Converts VoiceLedgerError subclasses, request validation errors and
unexpected exceptions into one JSON envelope: ``{detail, code, timestamp}``
(plus ``category`` for collection-service failures).
"""

import logging
from datetime import UTC, datetime

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from src.core.exceptions import CollectionServiceError, VoiceLedgerError

logger = logging.getLogger(__name__)


def _envelope(detail: str, code: str, timestamp: str | None = None) -> dict:
    return {
        "detail": detail,
        "code": code,
        "timestamp": timestamp or datetime.now(UTC).isoformat(),
    }


def register_error_handlers(app: FastAPI) -> None:
    """Attach exception handlers to the FastAPI application.

    1. ``VoiceLedgerError``: domain errors keep their own status and code.
    2. ``RequestValidationError``: malformed body/params (422).
    3. ``Exception``: anything else (500), logged with traceback.

    Args:
        app: The FastAPI application instance to register handlers on.
    """

    @app.exception_handler(VoiceLedgerError)
    async def voiceledger_error_handler(_request: Request, exc: VoiceLedgerError) -> JSONResponse:
        content = _envelope(exc.detail, exc.code, exc.timestamp)
        if isinstance(exc, CollectionServiceError):
            content["category"] = exc.category
        return JSONResponse(status_code=exc.status_code, content=content)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        _request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return JSONResponse(status_code=422, content=_envelope(str(exc), "VALIDATION_ERROR"))

    @app.exception_handler(Exception)
    async def generic_error_handler(request: Request, exc: Exception) -> JSONResponse:
        """Catch-all handler; prevents stack traces from leaking to clients."""
        logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
        return JSONResponse(
            status_code=500, content=_envelope("Internal server error", "INTERNAL_ERROR")
        )
