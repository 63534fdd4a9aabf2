import httpx
import pytest

from admin_dashboard.dashboard.gateway_client import GatewayClient, GatewayError
from admin_dashboard.dashboard.models import (
    Category,
    Channel,
    NotificationRequest,
    UserPreference,
)
from admin_dashboard.utils_tests.fake_gateway import FAKE_GATEWAY_URL, FakeGateway


@pytest.fixture
def fake():
    return FakeGateway()


def client_for(fake: FakeGateway) -> GatewayClient:
    return GatewayClient(base_url=FAKE_GATEWAY_URL, transport=fake.transport())


@pytest.mark.asyncio
async def test_get_preference_parses_typed_model(fake):
    fake.add(
        "GET",
        "/api/preferences/alice",
        json_body={
            "id": "abc",
            "userId": "alice",
            "email": "alice@example.com",
            "preferences": ["SPORTS", "NEWS"],
            "enabledChannels": ["EMAIL", "TELEGRAM"],
        },
    )

    async with client_for(fake) as client:
        preference = await client.get_preference("alice")

    assert preference.userId == "alice"
    assert preference.preferences == [Category.SPORTS, Category.NEWS]
    assert preference.enabledChannels == [Channel.EMAIL, Channel.TELEGRAM]
    # upstream-only fields survive
    assert preference.model_dump()["id"] == "abc"


@pytest.mark.asyncio
async def test_get_preference_missing_returns_none(fake):
    async with client_for(fake) as client:
        assert await client.get_preference("nobody") is None


@pytest.mark.asyncio
async def test_user_id_is_path_encoded(fake):
    async with client_for(fake) as client:
        await client.get_preference("a/b c")

    assert fake.last_request.url.raw_path == b"/api/preferences/a%2Fb%20c"


@pytest.mark.asyncio
async def test_create_preference_posts_json(fake):
    fake.add("POST", "/api/preferences", 201, json_body={"userId": "bob", "preferences": []})
    preference = UserPreference(userId="bob", enabledChannels=[Channel.SMS])

    async with client_for(fake) as client:
        created = await client.create_preference(preference)

    assert created.userId == "bob"
    sent = fake.last_json()
    assert sent["userId"] == "bob"
    assert sent["enabledChannels"] == ["SMS"]


@pytest.mark.asyncio
async def test_update_and_delete_preference(fake):
    fake.add("PUT", "/api/preferences/bob", json_body={"userId": "bob", "email": "b@x.io"})
    fake.add("DELETE", "/api/preferences/bob", 204)

    async with client_for(fake) as client:
        updated = await client.update_preference("bob", UserPreference(userId="bob"))
        await client.delete_preference("bob")

    assert updated.email == "b@x.io"
    assert [r.method for r in fake.requests] == ["PUT", "DELETE"]


@pytest.mark.asyncio
async def test_notifications(fake):
    fake.add("POST", "/api/notifications", 201, json_body={"id": "n1", "status": "PENDING"})
    fake.add("GET", "/api/notifications/user/bob", json_body=[{"id": "n1", "userId": "bob"}])
    fake.add("GET", "/api/notifications", json_body=[{"id": "n1"}, {"id": "n2"}])
    fake.add("DELETE", "/api/notifications/n1", 204)

    async with client_for(fake) as client:
        sent = await client.send_notification(
            NotificationRequest(userId="bob", subject="Hi", channels=[Channel.EMAIL])
        )
        history = await client.list_notifications("bob")
        everything = await client.list_notifications()
        await client.delete_notification("n1")

    assert sent.status == "PENDING"
    assert [n.id for n in history] == ["n1"]
    assert len(everything) == 2


@pytest.mark.asyncio
async def test_scraper_calls(fake):
    fake.add("GET", "/api/scraper/health", json_body={"status": "UP"})
    fake.add("GET", "/api/scraper/categories", json_body=["SPORTS", "NEWS"])
    fake.add("GET", "/api/scraper/articles/SPORTS/count", json_body={"category": "SPORTS", "count": 12})
    fake.add("POST", "/api/scraper/scrape", json_body={"status": "success"})

    async with client_for(fake) as client:
        assert await client.scraper_health() is True
        assert await client.scraper_categories() == ["SPORTS", "NEWS"]
        assert await client.article_count("SPORTS") == 12
        assert await client.trigger_scrape() == {"status": "success"}


@pytest.mark.asyncio
async def test_recent_notifications_sends_limit(fake):
    fake.add(
        "GET",
        "/api/admin/notifications/stats/notifications/recent",
        json_body=[{"id": "n1", "status": "SENT"}],
    )

    async with client_for(fake) as client:
        recent = await client.recent_notifications(limit=5)

    assert recent[0].status == "SENT"
    assert fake.last_request.url.params["limit"] == "5"


@pytest.mark.asyncio
async def test_non_2xx_raises_gateway_error_with_message(fake):
    fake.add("GET", "/api/admin/users/stats/users", 503, json_body={"message": "db down"})

    async with client_for(fake) as client:
        with pytest.raises(GatewayError) as exc_info:
            await client.user_stats()

    assert exc_info.value.status_code == 503
    assert exc_info.value.message == "db down"


@pytest.mark.asyncio
async def test_plain_text_error_message(fake):
    fake.add("GET", "/api/admin/users/stats/users/list", 500, text="boom")

    async with client_for(fake) as client:
        with pytest.raises(GatewayError) as exc_info:
            await client.users_list()

    assert exc_info.value.message == "boom"


@pytest.mark.asyncio
async def test_transport_failure_has_no_status(fake):
    fake.go_down()

    async with client_for(fake) as client:
        with pytest.raises(GatewayError) as exc_info:
            await client.notification_stats()
        assert await client.scraper_health() is False

    assert exc_info.value.status_code is None
    assert exc_info.value.message == "Connection refused"
    assert isinstance(exc_info.value.__cause__, httpx.ConnectError)


@pytest.mark.asyncio
async def test_article_count_rejects_non_object_payload(fake):
    fake.add("GET", "/api/scraper/articles/SPORTS/count", json_body=[7])
    fake.add("GET", "/api/scraper/articles/NEWS/count", json_body={"count": "many"})

    async with client_for(fake) as client:
        with pytest.raises(ValueError):
            await client.article_count("SPORTS")
        with pytest.raises(ValueError):
            await client.article_count("NEWS")


@pytest.mark.asyncio
async def test_list_endpoint_rejects_non_array_payload(fake):
    fake.add("GET", "/api/scraper/categories", json_body={"SPORTS": 1})

    async with client_for(fake) as client:
        with pytest.raises(GatewayError) as exc_info:
            await client.scraper_categories()

    assert exc_info.value.status_code == 200
    assert "Expected a JSON array" in exc_info.value.message
