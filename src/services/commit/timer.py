"""Cancellable auto-commit countdown.

A write verdict is not applied immediately: it arms a countdown that ticks
once per second and calls the expiry callback exactly once when it reaches
zero. Each timer carries the coordinator generation it was armed under so a
stale timer can be recognised and ignored.
"""

import asyncio
import contextlib
import logging
from collections.abc import Awaitable, Callable

from src.core.models import ParsedIntent

logger = logging.getLogger(__name__)


class AutoCommitTimer:
    """One pending auto-commit.

    Args:
        intent: The write verdict to commit on expiry.
        generation: Coordinator generation at arming time.
        on_expire: Coroutine called once with ``(intent, generation)`` at zero.
        on_tick: Optional coroutine receiving the remaining seconds after each tick.
        seconds: Countdown length (default 5).
        sleep: Awaitable sleep used between ticks (injectable for tests).
    """

    def __init__(
        self,
        intent: ParsedIntent,
        generation: int,
        on_expire: Callable[[ParsedIntent, int], Awaitable[None]],
        on_tick: Callable[[int], Awaitable[None]] | None = None,
        seconds: int = 5,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.intent = intent
        self.generation = generation
        self.remaining_seconds = seconds
        self.cancelled = False
        self.fired = False
        self._on_expire = on_expire
        self._on_tick = on_tick
        self._sleep = sleep
        self._task: asyncio.Task | None = None

    @property
    def pending(self) -> bool:
        """True while the countdown can still be cancelled."""
        return not self.cancelled and not self.fired

    def arm(self) -> None:
        """Launch the countdown on the running event loop."""
        self._task = asyncio.create_task(self._run())

    def cancel(self) -> bool:
        """Invalidate the countdown.

        Returns:
            True if the commit was prevented, False if it had already fired.
        """
        if not self.pending:
            return False
        self.cancelled = True
        if self._task is not None and self._task is not asyncio.current_task():
            self._task.cancel()
        logger.info("Auto-commit cancelled with %ss remaining", self.remaining_seconds)
        return True

    async def wait(self) -> None:
        """Wait until the countdown and any triggered commit have finished."""
        if self._task is None:
            return
        with contextlib.suppress(asyncio.CancelledError):
            await self._task

    async def _run(self) -> None:
        while self.remaining_seconds > 0:
            await self._sleep(1)
            if self.cancelled:
                return
            self.remaining_seconds -= 1
            if self._on_tick is not None:
                await self._on_tick(self.remaining_seconds)
            if self.cancelled:
                return

        self.fired = True
        logger.info("Auto-commit countdown expired (generation=%s)", self.generation)
        try:
            await self._on_expire(self.intent, self.generation)
        except Exception:
            logger.exception("Auto-commit expiry handler failed")
