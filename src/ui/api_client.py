"""
Synchronous HTTP client for the VoiceLedger service API.

Uses ``httpx.Client`` (sync) because Streamlit scripts run synchronously.
"""

import logging

import httpx
import streamlit as st

logger = logging.getLogger(__name__)


class APIError(Exception):
    """User-friendly API error with categorized message.

    Categories: "connection", "timeout", "http", "network", "unknown".
    Used by the UI to display appropriate error messages.
    """

    def __init__(self, message: str, category: str = "unknown") -> None:
        self.message = message
        self.category = category
        super().__init__(message)


class APIClient:
    """Thin synchronous wrapper around httpx for calling the FastAPI service.

    Session endpoints return the coordinator's snapshot as a dict; all
    methods raise ``APIError`` with a displayable message on failure.
    """

    def __init__(self, base_url: str = "http://localhost:8000") -> None:
        self._base_url = base_url.rstrip("/")
        self._client = httpx.Client(base_url=self._base_url, timeout=30.0)

    def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        """Execute an HTTP request with user-friendly error handling.

        Raises:
            APIError: On connection, timeout, HTTP status, or network errors.
        """
        try:
            resp = getattr(self._client, method)(path, **kwargs)
            resp.raise_for_status()
            return resp
        except httpx.ConnectError:
            raise APIError(
                "Service is not running. "
                "Start it with: `uvicorn src.api.app:app --reload --port 8000`",
                category="connection",
            ) from None
        except httpx.TimeoutException:
            raise APIError(
                "Request timed out. The service may be overloaded.",
                category="timeout",
            ) from None
        except httpx.HTTPStatusError as exc:
            try:
                detail = exc.response.json().get("detail", exc.response.text)
            except Exception:
                detail = exc.response.text or str(exc)
            raise APIError(str(detail), category="http") from None
        except httpx.HTTPError as exc:
            raise APIError(f"Network error: {exc}", category="network") from None

    # -- health --

    def health_check(self) -> dict:
        return self._request("get", "/health").json()

    def check_connection(self) -> tuple[bool, str]:
        """Check if the service is reachable. Returns (ok, message)."""
        try:
            self.health_check()
            return True, "Connected"
        except APIError as exc:
            return False, exc.message

    # -- session --

    def get_session(self) -> dict:
        return self._request("get", "/api/v1/session").json()

    def begin_capture(self, mode: str = "main") -> dict:
        return self._request("post", "/api/v1/session/capture", json={"mode": mode}).json()

    def end_capture(self, reason: str | None = None) -> dict:
        body = {"reason": reason} if reason else None
        return self._request("post", "/api/v1/session/capture/stop", json=body).json()

    def edit_text(self, text: str, mode: str = "main") -> dict:
        return self._request(
            "put", "/api/v1/session/text", json={"text": text, "mode": mode}
        ).json()

    def submit_text(self, text: str, mode: str = "main") -> dict:
        return self._request(
            "post", "/api/v1/session/text", json={"text": text, "mode": mode}
        ).json()

    def cancel_pending_commit(self) -> dict:
        return self._request("post", "/api/v1/session/cancel").json()

    def confirm_verdict(self, items: list[dict] | None = None) -> dict:
        body = {"items": items} if items is not None else None
        return self._request("post", "/api/v1/session/confirm", json=body).json()

    def return_to_default_view(self) -> dict:
        return self._request("post", "/api/v1/session/default-view").json()

    def refresh(self) -> dict:
        return self._request("post", "/api/v1/session/refresh").json()

    def set_language(self, language: str) -> dict:
        return self._request(
            "put", "/api/v1/session/language", json={"language": language}
        ).json()

    # -- collections --

    def delete_item(self, item_id: str) -> dict:
        return self._request("delete", f"/api/v1/inventory/{item_id}").json()

    def edit_item(self, item_id: str, fields: dict) -> dict:
        return self._request("patch", f"/api/v1/inventory/{item_id}", json=fields).json()

    def delete_habit(self, name: str) -> dict:
        return self._request("delete", f"/api/v1/habits/{name}").json()

    def edit_habit(self, name: str, fields: dict) -> dict:
        return self._request("patch", f"/api/v1/habits/{name}", json=fields).json()

    def recommend_meals(self) -> dict:
        return self._request("post", "/api/v1/meal-plan", timeout=120.0).json()


@st.cache_resource
def get_api_client(base_url: str = "http://localhost:8000") -> APIClient:
    """Return a cached APIClient, keyed by base_url.

    Uses Streamlit's ``cache_resource`` to persist the client across reruns.
    """
    return APIClient(base_url=base_url)
