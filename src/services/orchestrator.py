"""Voice-capture-to-commit orchestrator.

``SessionCoordinator`` wires the capture session, classifier, lookup router,
auto-commit timer and commit executor together. It is the single writer of
all session, timer and projection state, and the only component that
triggers classification or arms/cancels the countdown.

At most one write (timer-pending or in flight) and one lookup are
outstanding at any moment. Starting a capture or submitting text bumps a
generation counter; any async result that comes back under an older
generation is discarded instead of applied.

Usage::

    from src.services.orchestrator import init_coordinator, get_coordinator

    coordinator = await init_coordinator()
    await coordinator.submit_text("买了两瓶可乐")
    await coordinator.cancel_pending_commit()
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable

from src.core.config import Settings, get_settings
from src.core.exceptions import (
    CaptureAlreadyActiveError,
    CaptureEngineError,
    CaptureUnavailableError,
    ClassificationError,
    CollectionServiceError,
    CommitError,
    ItemNotFoundError,
    LookupFailedError,
    NoPendingVerdictError,
)
from src.core.messages import MESSAGES, message
from src.core.models import (
    CaptureMode,
    CaptureState,
    HabitItem,
    InventoryItem,
    MealPlan,
    ParsedIntent,
    SessionSnapshot,
)
from src.services.capture.adapter import CaptureEngineAdapter
from src.services.capture.base import (
    BaseCaptureEngine,
    CancelTimeout,
    EngineStarted,
    Finalize,
    RequestStop,
    SessionEvent,
)
from src.services.capture.session import CaptureSession
from src.services.classification.classifier import ClassifierClient
from src.services.collection.client import CollectionClient
from src.services.commit.executor import CommitExecutor
from src.services.commit.timer import AutoCommitTimer
from src.services.lookup.router import LookupRouter
from src.services.projection import ProjectionState

logger = logging.getLogger(__name__)

Listener = Callable[[SessionSnapshot], Awaitable[None]]


class SessionCoordinator:
    """Owns one capture session and everything downstream of it.

    Args:
        client: HTTP client for the collection service.
        settings: Optional Settings instance (defaults to get_settings()).
        sleep: Awaitable sleep between countdown ticks (injectable for tests).
    """

    def __init__(
        self,
        client: CollectionClient,
        settings: Settings | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._settings = settings or get_settings()
        self._client = client
        self._sleep = sleep
        self._language = self._settings.ui_language

        self.session = CaptureSession(
            language=self._language,
            timeout_seconds=self._settings.capture_timeout_seconds,
            stop_keyword=self._settings.capture_stop_keyword,
        )
        self.projection = ProjectionState()
        self._classifier = ClassifierClient(client)
        self._lookup = LookupRouter(client)
        self._executor = CommitExecutor(client, self.projection)
        self._adapter = CaptureEngineAdapter(None, self.dispatch)

        self._buffers: dict[CaptureMode, str] = {mode: "" for mode in CaptureMode}
        self._generation = 0
        self._timer: AutoCommitTimer | None = None
        self._verdict: ParsedIntent | None = None
        self._commit_in_flight = False
        self._timeout_task: asyncio.Task | None = None
        self._listeners: list[Listener] = []

    # ------------------------------------------------------------------
    # Read-only projections
    # ------------------------------------------------------------------

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def adapter(self) -> CaptureEngineAdapter:
        return self._adapter

    @property
    def timer(self) -> AutoCommitTimer | None:
        return self._timer

    @property
    def verdict(self) -> ParsedIntent | None:
        return self._verdict

    @property
    def executor(self) -> CommitExecutor:
        return self._executor

    def buffer(self, mode: CaptureMode = CaptureMode.main) -> str:
        return self._buffers[mode]

    def snapshot(self) -> SessionSnapshot:
        timer = self._timer
        return SessionSnapshot(
            state=self.session.state,
            mode=self.session.mode,
            buffers=dict(self._buffers),
            status=self.session.status,
            error=self.session.error,
            capture_available=self._adapter.available,
            language=self._language,
            verdict=self._verdict,
            countdown=timer.remaining_seconds if timer is not None and timer.pending else None,
            commit_in_flight=self._commit_in_flight,
            search_view=self.projection.search_view,
            inventory=self.projection.inventory,
            habits=self.projection.habits,
            meal_plan=self.projection.meal_plan,
        )

    def subscribe(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def unsubscribe(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    async def _publish(self) -> None:
        """Push the current snapshot to every listener (failures are non-fatal)."""
        if not self._listeners:
            return
        snap = self.snapshot()
        for listener in list(self._listeners):
            try:
                await listener(snap)
            except Exception:
                logger.warning("Snapshot listener failed (non-fatal)")

    def _say(self, key: str, **params) -> None:
        self.session.status = message(key, self._language, **params)

    def _fail(self, key: str, **params) -> None:
        text = message(key, self._language, **params)
        self.session.status = text
        self.session.error = text

    def set_language(self, language: str) -> None:
        if language not in MESSAGES:
            raise ValueError(f"Unsupported language: {language}")
        self._language = language
        self.session.language = language

    # ------------------------------------------------------------------
    # Capability wiring
    # ------------------------------------------------------------------

    def attach_engine(self, engine: BaseCaptureEngine) -> CaptureEngineAdapter:
        """Connect a speech capability; its notifications flow into ``dispatch``."""
        self._adapter = CaptureEngineAdapter(engine, self.dispatch)
        if self.session.error == message("capture_unavailable", self._language):
            self.session.error = None
        logger.info("Speech capture engine attached")
        return self._adapter

    async def detach_engine(self, engine: BaseCaptureEngine) -> None:
        """Disconnect a capability; an open recording is ended as if by the engine."""
        if self._adapter.engine is not engine:
            return
        adapter = self._adapter
        if self.session.state is CaptureState.recording:
            await adapter.on_end()
        self._adapter = CaptureEngineAdapter(None, self.dispatch)
        logger.info("Speech capture engine detached")
        await self._publish()

    async def report_unavailable(self) -> None:
        """The client has no speech capability; typed input stays usable."""
        self._adapter = CaptureEngineAdapter(None, self.dispatch)
        self.session.error = message("capture_unavailable", self._language)
        logger.warning("Speech capture capability unavailable")
        await self._publish()

    # ------------------------------------------------------------------
    # Capture control
    # ------------------------------------------------------------------

    async def begin_capture(self, mode: CaptureMode = CaptureMode.main) -> None:
        """Start a new recording, clearing any pending write or lookup.

        Raises:
            CaptureUnavailableError: If no speech capability is connected.
            CaptureAlreadyActiveError: If a recording is in progress or the
                engine refuses to start.
        """
        if not self._adapter.available:
            self.session.error = message("capture_unavailable", self._language)
            raise CaptureUnavailableError(self.session.error)

        try:
            self.session.start(mode)
        except CaptureAlreadyActiveError as exc:
            self.session.error = exc.detail
            raise

        try:
            await self._adapter.start(self._settings.capture_language)
        except CaptureAlreadyActiveError:
            # Engine refused; any pending write or lookup stays as it was
            detail = message("already_active", self._language)
            self.session.abort_start(detail)
            await self._publish()
            raise CaptureAlreadyActiveError(detail) from None

        self._reset_pending()
        self._buffers[mode] = ""
        self._arm_timeout()
        await self._publish()

    async def end_capture(self, reason: str | None = None) -> None:
        """Ask the engine to stop; finalization follows its end notification."""
        if self.session.state is not CaptureState.recording:
            return
        self.session.mark_stopping(reason or message("reason_manual", self._language))
        await self._stop_engine()
        await self._publish()

    async def _stop_engine(self) -> None:
        try:
            await self._adapter.stop()
        except CaptureEngineError as exc:
            self.session.error = exc.detail

    def _arm_timeout(self) -> None:
        self._cancel_timeout()
        self._timeout_task = asyncio.create_task(self._hard_timeout())

    def _cancel_timeout(self) -> None:
        task = self._timeout_task
        self._timeout_task = None
        if task is not None and task is not asyncio.current_task():
            task.cancel()

    async def _hard_timeout(self) -> None:
        await asyncio.sleep(self._settings.capture_timeout_seconds)
        logger.info("Capture hard timeout reached")
        await self.end_capture(message("reason_timeout", self._language))

    async def dispatch(self, event: SessionEvent) -> None:
        """Process one engine notification to completion."""
        effects = self.session.handle(event)
        if self.session.state is CaptureState.recording:
            self._buffers[self.session.mode] = self.session.transcript
            if isinstance(event, EngineStarted) and self._timeout_task is None:
                # Engine started without begin_capture (client-side button)
                self._reset_pending()
                self._arm_timeout()

        for effect in effects:
            if isinstance(effect, RequestStop):
                await self._stop_engine()
            elif isinstance(effect, CancelTimeout):
                self._cancel_timeout()
            elif isinstance(effect, Finalize):
                self._buffers[self.session.mode] = self.session.transcript
                self.session.finish()
                await self._publish()
                await self._process_text(effect.text)

        await self._publish()

    # ------------------------------------------------------------------
    # Typed input
    # ------------------------------------------------------------------

    async def edit_text(self, text: str, mode: CaptureMode = CaptureMode.main) -> None:
        """Replace an input buffer by hand (idle only)."""
        self.session.edit(text)
        self.session.mode = mode
        self._buffers[mode] = text
        await self._publish()

    async def submit_text(self, text: str, mode: CaptureMode = CaptureMode.main) -> None:
        """Classify typed text exactly as a finalized recording would be.

        Raises:
            CaptureAlreadyActiveError: If a recording is in progress.
        """
        await self.edit_text(text, mode)
        if not text.strip():
            self._say("no_content")
            await self._publish()
            return
        await self._process_text(text.strip())

    # ------------------------------------------------------------------
    # Verdict handling
    # ------------------------------------------------------------------

    def _reset_pending(self) -> None:
        """Drop any pending write/lookup and start a new generation."""
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        self._generation += 1
        self._verdict = None
        self._commit_in_flight = False
        self.projection.return_to_default()

    async def _process_text(self, text: str) -> None:
        if not text.strip():
            return
        self._reset_pending()
        generation = self._generation
        self.session.error = None
        self._say("classifying")
        await self._publish()

        try:
            intent = await self._classifier.classify(text)
        except ClassificationError as exc:
            logger.warning("Classification failed: %s", exc.detail)
            if generation == self._generation:
                self._fail("classification_failed", detail=exc.detail)
                await self._publish()
            return

        if generation != self._generation:
            logger.info("Discarding stale verdict (generation %s)", generation)
            return

        self._verdict = intent
        if intent.retrieval:
            await self._run_lookup(intent, generation)
        else:
            await self._arm_commit(intent, generation)

    async def _run_lookup(self, intent: ParsedIntent, generation: int) -> None:
        self._say("searching")
        await self._publish()
        try:
            view = await self._lookup.lookup(intent, self._language)
        except LookupFailedError as exc:
            logger.warning("Lookup failed: %s", exc.detail)
            if generation == self._generation:
                self._fail("lookup_failed", detail=exc.detail)
                await self._publish()
            return

        if generation != self._generation:
            logger.info("Discarding stale lookup result (generation %s)", generation)
            return
        self.projection.show(view)
        self.session.status = view.message
        await self._publish()

    async def _arm_commit(self, intent: ParsedIntent, generation: int) -> None:
        if self._timer is not None:
            self._timer.cancel()
        timer = AutoCommitTimer(
            intent,
            generation,
            on_expire=self._on_timer_expired,
            on_tick=self._on_timer_tick,
            seconds=self._settings.auto_commit_seconds,
            sleep=self._sleep,
        )
        self._timer = timer
        self._say("countdown", seconds=timer.remaining_seconds)
        timer.arm()
        await self._publish()

    async def _on_timer_tick(self, remaining: int) -> None:
        if remaining > 0:
            self._say("countdown", seconds=remaining)
            await self._publish()

    async def _on_timer_expired(self, intent: ParsedIntent, generation: int) -> None:
        timer = self._timer
        if timer is None or timer.generation != generation or generation != self._generation:
            logger.info("Ignoring stale auto-commit (generation %s)", generation)
            return
        self._timer = None
        await self._commit(intent, generation)

    async def _commit(self, intent: ParsedIntent, generation: int) -> None:
        self._commit_in_flight = True
        self._say("committing")
        await self._publish()
        try:
            outcome = await self._executor.commit(intent, self._language)
        except CommitError as exc:
            logger.warning("Commit failed: %s", exc.detail)
            if generation == self._generation:
                self._commit_in_flight = False
                self._fail("commit_failed", detail=exc.detail)
                await self._publish()
            return
        except Exception:
            if generation == self._generation:
                self._commit_in_flight = False
                self._fail("commit_failed", detail="unexpected error")
                await self._publish()
            raise

        if generation != self._generation:
            logger.info("Discarding stale commit result (generation %s)", generation)
            return
        self._executor.fold(outcome)
        self._commit_in_flight = False
        self._verdict = None
        self.session.status = outcome.view.message
        await self._publish()

    async def cancel_pending_commit(self) -> bool:
        """Cancel the countdown; the verdict stays visible for manual correction.

        Returns:
            True if a pending commit was prevented.
        """
        timer = self._timer
        if timer is None or not timer.cancel():
            return False
        self._timer = None
        self._say("cancelled")
        logger.info("Pending commit cancelled by user")
        await self._publish()
        return True

    async def confirm_verdict(self, items: list[dict] | None = None) -> None:
        """Commit the held verdict now, optionally with corrected items.

        Raises:
            NoPendingVerdictError: If no write verdict is held, or its
                commit is already in flight.
        """
        verdict = self._verdict
        if verdict is None:
            raise NoPendingVerdictError()
        if verdict.retrieval:
            raise NoPendingVerdictError("The held verdict is a lookup, not a change")
        if self._commit_in_flight:
            raise NoPendingVerdictError("The classified change is already being committed")
        intent = ParsedIntent.model_validate(
            {
                "target": verdict.target,
                "retrieval": False,
                "items": items if items is not None else list(verdict.items),
            }
        )
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        self._generation += 1
        await self._commit(intent, self._generation)

    async def return_to_default_view(self) -> None:
        self.projection.return_to_default()
        self._say("default_view")
        await self._publish()

    # ------------------------------------------------------------------
    # Collections and manual edits
    # ------------------------------------------------------------------

    async def refresh_collections(self) -> None:
        await self._executor.refresh_inventory()
        await self._executor.refresh_habits()
        await self._publish()

    async def delete_item(self, item_id: str) -> None:
        try:
            body = await self._client.delete_item(item_id)
        except CollectionServiceError as exc:
            self._fail("crud_failed", detail=exc.detail)
            await self._publish()
            raise
        self.projection.remove_item(str(body.get("deleted_id") or item_id))
        self._say("deleted", name=item_id)
        await self._publish()

    async def edit_item(self, item_id: str, fields: dict) -> InventoryItem:
        if not any(item.id == item_id for item in self.projection.inventory):
            raise ItemNotFoundError(item_id)
        try:
            body = await self._client.edit_item(item_id, fields)
        except CollectionServiceError as exc:
            self._fail("crud_failed", detail=exc.detail)
            await self._publish()
            raise
        item = InventoryItem.model_validate(body.get("item") or {**fields, "id": item_id})
        self.projection.upsert_item(item)
        self._say("edited", name=item.name)
        await self._publish()
        return item

    async def delete_habit(self, name: str) -> None:
        try:
            await self._client.delete_habit(name)
        except CollectionServiceError as exc:
            self._fail("crud_failed", detail=exc.detail)
            await self._publish()
            raise
        self.projection.remove_habit(name)
        self._say("deleted", name=name)
        await self._publish()

    async def edit_habit(self, name: str, fields: dict) -> HabitItem:
        if not any(habit.name == name for habit in self.projection.habits):
            raise ItemNotFoundError(name)
        try:
            body = await self._client.edit_habit(name, fields)
        except CollectionServiceError as exc:
            self._fail("crud_failed", detail=exc.detail)
            await self._publish()
            raise
        habit = HabitItem.model_validate(body.get("habit") or {**fields, "name": name})
        self.projection.upsert_habit(habit, previous_name=name)
        self._say("edited", name=habit.name)
        await self._publish()
        return habit

    async def recommend_meals(self) -> MealPlan:
        try:
            body = await self._client.recommend_meals(
                [item.payload() for item in self.projection.inventory],
                [habit.payload() for habit in self.projection.habits],
            )
        except CollectionServiceError as exc:
            self._fail("meal_plan_failed", detail=exc.detail)
            await self._publish()
            raise
        plan = MealPlan(
            suggestions=body.get("suggestions") or [],
            summary=body.get("summary", ""),
        )
        self.projection.meal_plan = plan
        self._say("meal_plan_ready")
        await self._publish()
        return plan

    async def shutdown(self) -> None:
        """Cancel timers, wait for background refreshes and close the client."""
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        self._cancel_timeout()
        await self._executor.drain()
        await self._client.aclose()


# ---------------------------------------------------------------------------
# Module-level singleton management
# ---------------------------------------------------------------------------

_coordinator: SessionCoordinator | None = None


async def init_coordinator(client: CollectionClient | None = None) -> SessionCoordinator:
    """Create the process-wide coordinator and load the collection mirrors.

    A failed initial load is logged; the mirrors stay empty until refreshed.
    """
    global _coordinator
    if _coordinator is not None:
        return _coordinator
    coordinator = SessionCoordinator(client or CollectionClient())
    try:
        await coordinator.refresh_collections()
    except Exception:
        logger.exception("Initial collection load failed")
    _coordinator = coordinator
    logger.info("Session coordinator initialized")
    return coordinator


def get_coordinator() -> SessionCoordinator:
    """Return the active coordinator, creating an unloaded one if needed."""
    global _coordinator
    if _coordinator is None:
        _coordinator = SessionCoordinator(CollectionClient())
    return _coordinator


async def cleanup() -> None:
    """Shut down the coordinator (called during app shutdown)."""
    global _coordinator
    if _coordinator is None:
        return
    coordinator = _coordinator
    _coordinator = None
    await coordinator.shutdown()
    logger.info("Session coordinator shut down")
