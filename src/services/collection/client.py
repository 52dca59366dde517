"""
Asynchronous HTTP client for the remote classification and collection service.

Wraps ``httpx.AsyncClient`` with retries for transient connection failures
and converts every transport, status or ``success: false`` failure into a
``CollectionServiceError`` carrying a category for display.
"""

import logging
from typing import Any

import httpx
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from src.core.config import get_settings
from src.core.exceptions import CollectionServiceError

logger = logging.getLogger(__name__)


class CollectionClient:
    """Thin async wrapper around the classify / search / update / CRUD endpoints.

    All methods return the parsed JSON body or raise ``CollectionServiceError``.
    Endpoints that report ``success`` are checked; a false flag is raised as a
    "rejected" error using the service's own message.
    """

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the HTTP client.

        Args:
            base_url: Service root (falls back to settings if not provided).
            timeout: Per-request timeout in seconds.
            transport: Optional httpx transport (tests use ``httpx.MockTransport``).
        """
        settings = get_settings()
        self._base_url = (base_url or settings.collection_api_base_url).rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            timeout=timeout or settings.collection_api_timeout,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.5, min=0.5, max=4),
        retry=retry_if_exception_type((httpx.ConnectError, httpx.TimeoutException)),
        reraise=True,
    )
    async def _send(self, method: str, path: str, **kwargs) -> httpx.Response:
        """Issue one request; connection and timeout errors are retried."""
        resp = await self._client.request(method, path, **kwargs)
        resp.raise_for_status()
        return resp

    async def _request(self, method: str, path: str, **kwargs) -> Any:
        """Execute a request and return the decoded JSON body.

        Raises:
            CollectionServiceError: On connection, timeout, HTTP status,
                network or payload errors.
        """
        try:
            resp = await self._send(method, path, **kwargs)
        except httpx.ConnectError:
            logger.warning("Collection service unreachable at %s", self._base_url)
            raise CollectionServiceError(
                f"Collection service is not reachable at {self._base_url}",
                category="connection",
            ) from None
        except httpx.TimeoutException:
            logger.warning("Collection service timed out on %s %s", method, path)
            raise CollectionServiceError(
                "Request timed out. The service may be overloaded.",
                category="timeout",
            ) from None
        except httpx.HTTPStatusError as exc:
            try:
                body = exc.response.json()
                detail = body.get("message") or body.get("detail") or exc.response.text
            except Exception:
                detail = exc.response.text or str(exc)
            raise CollectionServiceError(str(detail), category="http") from None
        except httpx.HTTPError as exc:
            raise CollectionServiceError(f"Network error: {exc}", category="network") from None

        try:
            return resp.json()
        except ValueError:
            raise CollectionServiceError(
                f"Invalid JSON from {path}", category="payload"
            ) from None

    async def _call(self, method: str, path: str, **kwargs) -> dict:
        """Request an endpoint that answers with a ``{success, ...}`` envelope."""
        body = await self._request(method, path, **kwargs)
        if not isinstance(body, dict):
            raise CollectionServiceError(
                f"Unexpected response shape from {path}", category="payload"
            )
        if not body.get("success", False):
            raise CollectionServiceError(
                body.get("message") or f"{path} reported failure", category="rejected"
            )
        return body

    async def _list(self, path: str) -> list[dict]:
        body = await self._request("GET", path)
        if not isinstance(body, list):
            raise CollectionServiceError(
                f"Unexpected response shape from {path}", category="payload"
            )
        return body

    # -- classification --

    async def classify(self, text: str) -> dict:
        return await self._call("POST", "/api/voice/classify", json={"text": text})

    # -- search --

    async def search_inventory(self, items: list[dict]) -> dict:
        return await self._call("POST", "/api/inventory/search", json={"items": items})

    async def search_habits(self, items: list[dict]) -> dict:
        return await self._call("POST", "/api/habits/search", json={"items": items})

    # -- update --

    async def update_inventory(self, items: list[dict]) -> dict:
        return await self._call("POST", "/api/inventory/update", json={"items": items})

    async def update_habits(self, items: list[dict]) -> dict:
        return await self._call("POST", "/api/habits/update", json={"items": items})

    # -- full collections --

    async def list_inventory(self) -> list[dict]:
        return await self._list("/api/inventory")

    async def list_habits(self) -> list[dict]:
        return await self._list("/api/habits")

    # -- manual edits --

    async def delete_item(self, item_id: str) -> dict:
        return await self._call("POST", "/api/inventory/delete", json={"id": item_id})

    async def edit_item(self, item_id: str, fields: dict) -> dict:
        return await self._call(
            "POST", "/api/inventory/edit", json={**fields, "id": item_id}
        )

    async def delete_habit(self, name: str) -> dict:
        return await self._call("POST", "/api/habits/delete", json={"name": name})

    async def edit_habit(self, name: str, fields: dict) -> dict:
        return await self._call("POST", "/api/habits/edit", json={**fields, "name": name})

    # -- recommendations --

    async def recommend_meals(self, inventory: list[dict], habits: list[dict]) -> dict:
        """Ask for meal suggestions based on current stock and habits."""
        return await self._call(
            "POST",
            "/api/meal-plan",
            json={"inventory": inventory, "habits": habits},
            timeout=120.0,
        )
