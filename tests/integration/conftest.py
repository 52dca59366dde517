"""Integration test fixtures for VoiceLedger.

Provides an async HTTP client and a sync TestClient (for WebSocket) bound
to a real FastAPI app whose coordinator talks to a mocked collection
service.
"""

import pytest
from httpx import ASGITransport, AsyncClient
from starlette.testclient import TestClient

from src.api.app import create_app
from src.services import orchestrator
from src.services.orchestrator import SessionCoordinator


@pytest.fixture
def app():
    """Create a fresh FastAPI application instance."""
    return create_app()


@pytest.fixture
async def api_coordinator(mock_client, settings, clock):
    """Install a test coordinator as the process-wide singleton."""
    coord = SessionCoordinator(mock_client, settings=settings, sleep=clock.sleep)
    await coord.refresh_collections()
    orchestrator._coordinator = coord
    yield coord
    orchestrator._coordinator = None


@pytest.fixture
async def async_client(app, api_coordinator):
    """AsyncClient over ASGI; the lifespan is not run."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
    await api_coordinator.shutdown()


@pytest.fixture
def test_client(app, mock_client, settings, clock):
    """Synchronous TestClient for WebSocket tests.

    The lifespan adopts the pre-installed coordinator, loads nothing and
    shuts it down on exit, inside the client's own event loop.
    """
    orchestrator._coordinator = SessionCoordinator(
        mock_client, settings=settings, sleep=clock.sleep
    )
    with TestClient(app) as c:
        yield c
    orchestrator._coordinator = None
