"""Read-only lookup for retrieval verdicts.

Picks the search endpoint by target, sends the item names as hints and
flattens every per-query match list into one ordered sequence.
"""

import logging

from pydantic import ValidationError

from src.core.exceptions import CollectionServiceError, LookupFailedError
from src.core.messages import DEFAULT_LANGUAGE, message
from src.core.models import (
    ParsedIntent,
    SearchView,
    SearchViewKind,
    Target,
    item_class_for,
)
from src.services.collection.client import CollectionClient

logger = logging.getLogger(__name__)


class LookupRouter:
    """Dispatches retrieval verdicts to the habit or inventory search."""

    def __init__(self, client: CollectionClient) -> None:
        self._client = client

    async def lookup(self, intent: ParsedIntent, language: str = DEFAULT_LANGUAGE) -> SearchView:
        """Run a single-shot search for the intent's item names.

        Matches are kept in endpoint order; duplicates across queries are
        not removed.

        Raises:
            LookupFailedError: If the search endpoint fails or rejects the query.
        """
        hints = [{"name": item.name} for item in intent.items]
        try:
            if intent.target is Target.habit:
                body = await self._client.search_habits(hints)
            else:
                body = await self._client.search_inventory(hints)
        except CollectionServiceError as exc:
            raise LookupFailedError(detail=exc.detail) from exc

        item_cls = item_class_for(intent.target)
        try:
            matches = [
                item_cls.model_validate(match)
                for result in body.get("results") or []
                for match in result.get("matches") or []
            ]
        except (ValidationError, AttributeError, TypeError) as exc:
            logger.warning("Malformed search reply from %s lookup: %s", intent.target, exc)
            raise LookupFailedError(detail=f"Malformed search reply: {exc}") from exc

        if matches:
            summary = message("found", language, count=len(matches))
        else:
            summary = message("no_matches", language)

        logger.info(
            "Lookup on %s for %d names returned %d matches",
            intent.target,
            len(hints),
            len(matches),
        )
        return SearchView(
            kind=SearchViewKind.lookup,
            target=intent.target,
            items=matches,
            message=summary,
        )
