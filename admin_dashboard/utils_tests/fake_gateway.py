import json
from typing import Callable, Dict, List, Optional, Tuple

import httpx

FAKE_GATEWAY_URL = "http://gateway.test:8080"


class FakeGateway:
    """
    In-process stand-in for the API gateway, served through ``httpx.MockTransport``.

    Routes are registered per (method, path); unknown routes answer 404 with
    ``{"message": "not found"}``. Every request that reaches the gateway is
    recorded in ``requests``.
    """

    def __init__(self):
        self.requests: List[httpx.Request] = []
        self._routes: Dict[Tuple[str, str], httpx.Response] = {}
        self._error: Optional[Callable[[httpx.Request], Exception]] = None

    def add(
        self,
        method: str,
        path: str,
        status_code: int = 200,
        json_body=None,
        text: Optional[str] = None,
        content: Optional[bytes] = None,
        headers: Optional[dict] = None,
    ) -> None:
        if json_body is not None:
            response = httpx.Response(status_code, json=json_body, headers=headers)
        elif text is not None:
            response = httpx.Response(
                status_code,
                text=text,
                headers=headers or {"content-type": "text/plain; charset=utf-8"},
            )
        else:
            response = httpx.Response(status_code, content=content or b"", headers=headers)
        self._routes[(method.upper(), path)] = response

    def go_down(self, error_factory: Callable[[httpx.Request], Exception] = None) -> None:
        """Make every request fail at the transport level."""
        self._error = error_factory or (
            lambda request: httpx.ConnectError("Connection refused", request=request)
        )

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self._error is not None:
            raise self._error(request)
        canned = self._routes.get((request.method, request.url.path))
        if canned is None:
            return httpx.Response(404, json={"message": "not found"})
        return httpx.Response(
            canned.status_code,
            headers=canned.headers,
            content=canned.content,
        )

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    @property
    def last_request(self) -> httpx.Request:
        return self.requests[-1]

    def last_json(self):
        return json.loads(self.last_request.content)


def populate_dashboard(fake: FakeGateway) -> None:
    """Register the admin statistics a healthy gateway would answer with."""
    fake.add(
        "GET",
        "/api/admin/users/stats/users",
        json_body={
            "totalUsers": 3,
            "telegramUsers": 1,
            "categoryDistribution": {"SPORTS": 2, "NEWS": 1},
            "frequencyDistribution": {"Hourly": 3},
        },
    )
    fake.add(
        "GET",
        "/api/admin/notifications/stats/notifications",
        json_body={
            "totalNotifications": 10,
            "sentLast24Hours": 4,
            "byStatus": {"SENT": 8, "FAILED": 2},
            "byChannel": {"EMAIL": 6, "TELEGRAM": 4},
            "reactions": {"likes": 5, "dislikes": 1},
            "dailyBreakdown": {"Mon": 3, "Tue": 7},
        },
    )
    fake.add("GET", "/api/scraper/categories", json_body=["SPORTS", "NEWS"])
    fake.add("GET", "/api/scraper/articles/SPORTS/count", json_body={"count": 7})
    fake.add("GET", "/api/scraper/articles/NEWS/count", 500, text="boom")
    fake.add(
        "GET",
        "/api/admin/notifications/stats/notifications/recent",
        json_body=[{"id": "n1", "userId": "bob", "status": "SENT"}],
    )
    fake.add(
        "GET",
        "/api/admin/users/stats/users/list",
        json_body=[{"userId": "bob", "email": "bob@example.com", "hasTelegram": True}],
    )
    fake.add("GET", "/api/scraper/health", json_body={"status": "UP"})
