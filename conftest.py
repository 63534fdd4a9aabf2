import pytest
from fastapi.testclient import TestClient

from admin_dashboard.utils_tests.fake_gateway import FAKE_GATEWAY_URL, FakeGateway


@pytest.fixture
def gateway(monkeypatch):
    """Fake API gateway behind both the proxy and the dashboard client."""
    fake = FakeGateway()

    from admin_dashboard.app_proxy import route

    monkeypatch.setattr(route, "UPSTREAM_BASE_URL", FAKE_GATEWAY_URL)
    create_client = route.create_upstream_client
    monkeypatch.setattr(
        route,
        "create_upstream_client",
        lambda: create_client(transport=fake.transport()),
    )
    return fake


@pytest.fixture
def test_client(gateway):
    from admin_dashboard.server import app
    from admin_dashboard.dashboard.gateway_client import GatewayClient
    from admin_dashboard.dashboard.route import get_gateway_client

    async def _gateway_client():
        async with GatewayClient(
            base_url=FAKE_GATEWAY_URL, transport=gateway.transport()
        ) as client:
            yield client

    app.dependency_overrides[get_gateway_client] = _gateway_client
    with TestClient(app) as client:
        yield client
    app.dependency_overrides.pop(get_gateway_client, None)
