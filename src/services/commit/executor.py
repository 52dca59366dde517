"""Applies write verdicts to the remote collections.

Routes the verdict's items to the habit or inventory update endpoint and
folds the confirmed result into the projection. Nothing is written to the
mirrors before the endpoint confirms. Every inventory commit schedules a
background ``list-inventory`` refresh, successful or not, so the mirror
reconciles with the service.
"""

import asyncio
import logging
from dataclasses import dataclass

from pydantic import ValidationError

from src.core.exceptions import CollectionServiceError, CommitError
from src.core.messages import DEFAULT_LANGUAGE, message
from src.core.models import (
    ChangeRecord,
    HabitItem,
    InventoryItem,
    ParsedIntent,
    SearchView,
    SearchViewKind,
    Target,
)
from src.services.collection.client import CollectionClient
from src.services.projection import ProjectionState

logger = logging.getLogger(__name__)


def _parse_changes(body: dict) -> list[ChangeRecord]:
    return [ChangeRecord.model_validate(c) for c in body.get("changes") or []]


def _malformed(collection: str, exc: Exception) -> CommitError:
    logger.warning("Malformed %s update reply: %s", collection, exc)
    return CommitError(detail=f"Malformed {collection} update reply: {exc}")


@dataclass
class CommitOutcome:
    """What a confirmed update produced, before it is folded into the projection."""

    view: SearchView
    habits: list[HabitItem] | None = None
    service_message: str = ""


class CommitExecutor:
    """Sends write verdicts to the update endpoints.

    Args:
        client: HTTP client for the collection service.
        projection: The mirrors that confirmed results are folded into.
    """

    def __init__(self, client: CollectionClient, projection: ProjectionState) -> None:
        self._client = client
        self._projection = projection
        self._refreshes: set[asyncio.Task] = set()

    async def commit(
        self, intent: ParsedIntent, language: str = DEFAULT_LANGUAGE
    ) -> CommitOutcome:
        """Apply the intent's items through the matching update endpoint.

        Raises:
            CommitError: If the endpoint fails or reports failure.
        """
        if intent.target is Target.habit:
            return await self._commit_habits(intent, language)
        try:
            return await self._commit_inventory(intent, language)
        finally:
            self.schedule_inventory_refresh()

    async def _commit_inventory(self, intent: ParsedIntent, language: str) -> CommitOutcome:
        try:
            body = await self._client.update_inventory(intent.item_payloads())
        except CollectionServiceError as exc:
            raise CommitError(detail=exc.detail) from exc

        try:
            changes = _parse_changes(body)
            if body.get("items") is not None:
                items = [InventoryItem.model_validate(i) for i in body["items"]]
            else:
                items = [
                    InventoryItem(name=c.name, expire_date=c.expire_date) for c in changes
                ]
        except (ValidationError, TypeError) as exc:
            raise _malformed("inventory", exc) from exc

        logger.info("Inventory update applied: %d items, %d changes", len(items), len(changes))
        return CommitOutcome(
            view=SearchView(
                kind=SearchViewKind.commit_result,
                target=intent.target,
                items=items,
                changes=changes,
                message=message("updated_items", language, count=len(items)),
            ),
            service_message=body.get("message", ""),
        )

    async def _commit_habits(self, intent: ParsedIntent, language: str) -> CommitOutcome:
        try:
            body = await self._client.update_habits(intent.item_payloads())
        except CollectionServiceError as exc:
            raise CommitError(detail=exc.detail) from exc

        habits = None
        try:
            changes = _parse_changes(body)
            if body.get("habits") is not None:
                habits = [HabitItem.model_validate(h) for h in body["habits"]]
        except (ValidationError, TypeError) as exc:
            self._schedule(self.refresh_habits())
            raise _malformed("habit", exc) from exc
        if habits is None:
            # Partial answer; reconcile the mirror in the background
            self._schedule(self.refresh_habits())
        shown = habits if habits is not None else []
        count = len(shown) if habits is not None else len(changes)

        logger.info("Habit update applied: %d habits returned", len(shown))
        return CommitOutcome(
            view=SearchView(
                kind=SearchViewKind.commit_result,
                target=intent.target,
                items=shown,
                changes=changes,
                message=message("updated_habits", language, count=count),
            ),
            habits=habits,
            service_message=body.get("message", ""),
        )

    def fold(self, outcome: CommitOutcome) -> None:
        """Fold a confirmed outcome into the projection."""
        if outcome.habits is not None:
            self._projection.replace_habits(outcome.habits)
        self._projection.show(outcome.view)

    # -- background reconciliation --

    def schedule_inventory_refresh(self) -> None:
        self._schedule(self.refresh_inventory())

    def _schedule(self, coro) -> None:
        task = asyncio.create_task(coro)
        self._refreshes.add(task)
        task.add_done_callback(self._refreshes.discard)

    async def refresh_inventory(self) -> None:
        """Reload the inventory mirror from the service (failures are logged)."""
        try:
            rows = await self._client.list_inventory()
        except CollectionServiceError as exc:
            logger.warning("Inventory refresh failed: %s", exc.detail)
            return
        self._projection.replace_inventory([InventoryItem.model_validate(r) for r in rows])
        logger.debug("Inventory mirror refreshed (%d items)", len(rows))

    async def refresh_habits(self) -> None:
        """Reload the habit mirror from the service (failures are logged)."""
        try:
            rows = await self._client.list_habits()
        except CollectionServiceError as exc:
            logger.warning("Habit refresh failed: %s", exc.detail)
            return
        self._projection.replace_habits([HabitItem.model_validate(r) for r in rows])

    async def drain(self) -> None:
        """Wait for any scheduled refreshes to finish."""
        if self._refreshes:
            await asyncio.gather(*list(self._refreshes), return_exceptions=True)
