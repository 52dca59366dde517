"""Shared pytest fixtures for the VoiceLedger test suite.

Provides a fake speech capture engine, a manually driven clock for the
auto-commit countdown, a mocked collection service client and a
coordinator wired to all three.
"""

import asyncio
from unittest.mock import AsyncMock

import pytest

from src.core.config import Settings
from src.services.capture.base import BaseCaptureEngine
from src.services.collection.client import CollectionClient
from src.services.orchestrator import SessionCoordinator

MOCK_INVENTORY = [
    {
        "id": 1,
        "name": "牛奶",
        "quantity": 1,
        "unit": "盒",
        "category": "乳制品",
        "location": "冰箱",
        "expireDate": "2026-10-25",
    },
]

MOCK_HABITS = [
    {"name": "晨跑", "type": "运动", "frequency": "每天"},
]


# ---------------------------------------------------------------------------
# Capture engine
# ---------------------------------------------------------------------------


class FakeCaptureEngine(BaseCaptureEngine):
    """In-process engine that records commands instead of listening.

    Like a browser recognizer, ``start()`` throws while already listening.
    Tests push notifications through the coordinator's adapter.
    """

    def __init__(self) -> None:
        self.listening = False
        self.start_calls: list[str] = []
        self.stop_calls = 0

    async def start(self, language: str) -> None:
        if self.listening:
            raise RuntimeError("recognition has already started")
        self.listening = True
        self.start_calls.append(language)

    async def stop(self) -> None:
        self.stop_calls += 1


@pytest.fixture
def engine():
    return FakeCaptureEngine()


# ---------------------------------------------------------------------------
# Time
# ---------------------------------------------------------------------------


async def settle(rounds: int = 20) -> None:
    """Let every ready task on the loop run until it blocks again."""
    for _ in range(rounds):
        await asyncio.sleep(0)


class ManualClock:
    """Sleep replacement whose one-second ticks are released by the test."""

    def __init__(self) -> None:
        self._waiters: list[asyncio.Future] = []

    settle = staticmethod(settle)

    async def sleep(self, _seconds: float) -> None:
        waiter = asyncio.get_running_loop().create_future()
        self._waiters.append(waiter)
        await waiter

    async def advance(self, ticks: int = 1) -> None:
        """Release ``ticks`` rounds of pending sleeps."""
        for _ in range(ticks):
            await settle()
            waiters, self._waiters = self._waiters, []
            for waiter in waiters:
                if not waiter.done():
                    waiter.set_result(None)
            await settle()


@pytest.fixture
def clock():
    return ManualClock()


# ---------------------------------------------------------------------------
# Collection service
# ---------------------------------------------------------------------------


@pytest.fixture
def mock_client():
    """AsyncMock of CollectionClient seeded with one inventory item and one habit."""
    client = AsyncMock(spec=CollectionClient)
    client.list_inventory.return_value = [dict(row) for row in MOCK_INVENTORY]
    client.list_habits.return_value = [dict(row) for row in MOCK_HABITS]
    return client


@pytest.fixture
def make_verdict():
    """Build a classify endpoint response."""

    def _make(target: str, items: list[dict], retrieval: bool = False) -> dict:
        return {
            "success": True,
            "data": {"target": target, "retrieval": retrieval, "items": items},
            "message": "ok",
        }

    return _make


# ---------------------------------------------------------------------------
# Coordinator
# ---------------------------------------------------------------------------


@pytest.fixture
def settings():
    return Settings(
        capture_timeout_seconds=30.0,
        capture_stop_keyword="over",
        auto_commit_seconds=5,
        ui_language="zh",
    )


@pytest.fixture
async def coordinator(mock_client, settings, clock):
    """Coordinator with loaded mirrors and no engine attached."""
    coord = SessionCoordinator(mock_client, settings=settings, sleep=clock.sleep)
    await coord.refresh_collections()
    yield coord
    await coord.shutdown()
