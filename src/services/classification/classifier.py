"""Utterance classification service.

Sends finalized text to the remote classifier and converts its verdict into
a typed ``ParsedIntent`` (target collection, retrieval vs. write, items).
"""

import logging

from pydantic import ValidationError

from src.core.exceptions import ClassificationError, CollectionServiceError
from src.core.models import ParsedIntent
from src.services.collection.client import CollectionClient

logger = logging.getLogger(__name__)


class ClassifierClient:
    """Classifies one utterance at a time through the collection service."""

    def __init__(self, client: CollectionClient) -> None:
        """Initialize with the shared collection client.

        Args:
            client: HTTP client for the classification endpoint.
        """
        self._client = client

    async def classify(self, text: str) -> ParsedIntent:
        """Classify a finalized utterance.

        Args:
            text: The user's spoken or typed text. Must not be blank.

        Returns:
            The classifier's verdict.

        Raises:
            ClassificationError: On transport failure, a rejected request or a
                verdict that does not match the expected shape.
        """
        if not text or not text.strip():
            raise ClassificationError(detail="Empty input text")

        try:
            body = await self._client.classify(text)
        except CollectionServiceError as exc:
            raise ClassificationError(detail=exc.detail) from exc

        data = body.get("data")
        if not isinstance(data, dict) or "target" not in data:
            raise ClassificationError(
                detail=f"Malformed classification verdict: {str(body)[:200]}"
            )

        try:
            intent = ParsedIntent.model_validate(data)
        except ValidationError as exc:
            raise ClassificationError(detail=f"Invalid classification verdict: {exc}") from exc

        logger.info(
            "Classified utterance as %s (retrieval=%s, %d items)",
            intent.target,
            intent.retrieval,
            len(intent.items),
        )
        return intent
