"""
Typed async client for the REST contracts exposed by the API gateway.
"""

import logging
from typing import Any, List, Optional
from urllib.parse import quote

import httpx

from admin_dashboard.dashboard.models import (
    ArticleCount,
    Notification,
    NotificationRequest,
    NotificationStats,
    RecentNotification,
    UserPreference,
    UserStats,
    UserSummary,
)
from admin_dashboard.utils import is_json_content_type
from admin_dashboard.utils.exception_logging import format_exception_message
from admin_dashboard.vars import PROXY_TIMEOUT, UPSTREAM_BASE_URL

logger = logging.getLogger("uvicorn.error")


class GatewayError(Exception):
    """
    Raised when a gateway call fails.

    ``status_code`` is the upstream status for non-2xx answers and ``None``
    when the gateway could not be reached at all.
    """

    def __init__(self, status_code: Optional[int], message: str):
        super().__init__(message)
        self.status_code = status_code
        self.message = message


def _segment(value: str) -> str:
    return quote(str(value), safe="")


class GatewayClient:
    def __init__(
        self,
        base_url: str = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: Optional[float] = None,
    ):
        self.base_url = (base_url or UPSTREAM_BASE_URL).rstrip("/")
        timeout = PROXY_TIMEOUT if timeout is None else timeout
        kwargs = {"base_url": self.base_url, "transport": transport}
        if timeout is not None:
            kwargs["timeout"] = httpx.Timeout(timeout)
        self._client = httpx.AsyncClient(**kwargs)

    async def __aenter__(self) -> "GatewayClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        await self.aclose()
        return False

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        logger.debug(f"[Gateway] {method} {self.base_url}{path}")
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.RequestError as e:
            raise GatewayError(None, format_exception_message(e)) from e

        if response.is_error:
            raise GatewayError(response.status_code, _error_message(response))
        return response

    async def _json(self, method: str, path: str, **kwargs) -> Any:
        return _decode(await self._request(method, path, **kwargs), path)

    async def _json_list(self, method: str, path: str, **kwargs) -> list:
        response = await self._request(method, path, **kwargs)
        data = _decode(response, path)
        if data is None:
            return []
        if not isinstance(data, list):
            raise GatewayError(
                response.status_code,
                f"Expected a JSON array from gateway for {path}, got {type(data).__name__}",
            )
        return data

    # Preferences

    async def list_preferences(self) -> List[UserPreference]:
        data = await self._json_list("GET", "/api/preferences")
        return [UserPreference.model_validate(p) for p in data]

    async def get_preference(self, user_id: str) -> Optional[UserPreference]:
        try:
            data = await self._json("GET", f"/api/preferences/{_segment(user_id)}")
        except GatewayError as e:
            if e.status_code == 404:
                return None
            raise
        return UserPreference.model_validate(data)

    async def create_preference(self, preference: UserPreference) -> UserPreference:
        data = await self._json(
            "POST", "/api/preferences", json=preference.model_dump(mode="json")
        )
        return UserPreference.model_validate(data) if data else preference

    async def update_preference(
        self, user_id: str, preference: UserPreference
    ) -> UserPreference:
        data = await self._json(
            "PUT",
            f"/api/preferences/{_segment(user_id)}",
            json=preference.model_dump(mode="json"),
        )
        return UserPreference.model_validate(data) if data else preference

    async def delete_preference(self, user_id: str) -> None:
        await self._request("DELETE", f"/api/preferences/{_segment(user_id)}")

    # Notifications

    async def send_notification(self, request: NotificationRequest) -> Notification:
        data = await self._json(
            "POST", "/api/notifications", json=request.model_dump(mode="json")
        )
        return Notification.model_validate(data or {})

    async def list_notifications(self, user_id: str = None) -> List[Notification]:
        path = "/api/notifications"
        if user_id:
            path = f"{path}/user/{_segment(user_id)}"
        data = await self._json_list("GET", path)
        return [Notification.model_validate(n) for n in data]

    async def delete_notification(self, notification_id: str) -> None:
        await self._request("DELETE", f"/api/notifications/{_segment(notification_id)}")

    # Scraper

    async def scraper_health(self) -> bool:
        try:
            await self._request("GET", "/api/scraper/health")
        except GatewayError:
            return False
        return True

    async def scraper_categories(self) -> List[str]:
        data = await self._json_list("GET", "/api/scraper/categories")
        return [str(c) for c in data]

    async def article_count(self, category: str) -> int:
        data = await self._json(
            "GET", f"/api/scraper/articles/{_segment(category)}/count"
        )
        return ArticleCount.model_validate(data or {}).count

    async def trigger_scrape(self) -> dict:
        return await self._json("POST", "/api/scraper/scrape") or {}

    # Admin statistics

    async def user_stats(self) -> UserStats:
        data = await self._json("GET", "/api/admin/users/stats/users")
        return UserStats.model_validate(data or {})

    async def users_list(self) -> List[UserSummary]:
        data = await self._json_list("GET", "/api/admin/users/stats/users/list")
        return [UserSummary.model_validate(u) for u in data]

    async def notification_stats(self) -> NotificationStats:
        data = await self._json("GET", "/api/admin/notifications/stats/notifications")
        return NotificationStats.model_validate(data or {})

    async def recent_notifications(self, limit: int = 30) -> List[RecentNotification]:
        data = await self._json_list(
            "GET",
            "/api/admin/notifications/stats/notifications/recent",
            params={"limit": limit},
        )
        return [RecentNotification.model_validate(n) for n in data]


def _error_message(response: httpx.Response) -> str:
    """Pull a readable message out of an upstream error body."""
    if is_json_content_type(response.headers.get("content-type")):
        try:
            data = response.json()
        except ValueError:
            data = None
        if isinstance(data, dict):
            for key in ("message", "error", "detail"):
                if data.get(key):
                    return str(data[key])
    text = response.text.strip()
    return text or f"Gateway returned {response.status_code}"


def _decode(response: httpx.Response, path: str) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError as e:
        raise GatewayError(
            response.status_code, f"Invalid JSON from gateway for {path}"
        ) from e
