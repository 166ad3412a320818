import json

import httpx
import pytest

from voltline.client.api import NotificationsApi
from voltline.client.errors import NotificationApiError
from voltline.schemas.notification import NotificationPreferences


def _api(handler, **kwargs) -> NotificationsApi:
    kwargs.setdefault("retries", 0)
    return NotificationsApi(
        "http://api.test/api/admin",
        token="tok",
        retry_base_delay=0,
        transport=httpx.MockTransport(handler),
        **kwargs,
    )


NOTIFICATION = {
    "id": "n1",
    "type": "form_submission",
    "title": "New form submission",
    "message": "Jane Doe submitted a panel upgrade request",
    "priority": "high",
    "isRead": False,
    "timestamp": "2026-10-17T09:00:00Z",
    "actionUrl": "/admin/forms/f1",
    "metadata": {"formId": "f1"},
}


async def test_get_notifications_sends_filters_and_parses_envelope() -> None:
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["params"] = dict(request.url.params)
        seen["auth"] = request.headers.get("authorization")
        return httpx.Response(
            200,
            json={
                "success": True,
                "data": [NOTIFICATION],
                "pagination": {"page": 1, "limit": 50, "total": 1, "totalPages": 1},
            },
        )

    async with _api(handler) as api:
        rows = await api.get_notifications(page=1, limit=50, priority="high", is_read=False)

    assert seen["path"] == "/api/admin/notifications"
    assert seen["params"] == {"page": "1", "limit": "50", "priority": "high", "isRead": "false"}
    assert seen["auth"] == "Bearer tok"
    assert rows[0].id == "n1"
    assert rows[0].action_url == "/admin/forms/f1"
    assert rows[0].timestamp.tzinfo is not None


async def test_poll_passes_cursor_verbatim() -> None:
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["since"] = request.url.params["since"]
        return httpx.Response(
            200,
            json={
                "success": True,
                "data": {
                    "hasNewNotifications": True,
                    "notifications": [NOTIFICATION],
                    "lastUpdateTime": "2026-10-17T09:00:00Z",
                },
            },
        )

    async with _api(handler) as api:
        result = await api.poll("2026-10-17T08:59:00Z")

    assert seen["since"] == "2026-10-17T08:59:00Z"
    assert result.has_new_notifications is True
    assert result.last_update_time == "2026-10-17T09:00:00Z"
    assert [n.id for n in result.notifications] == ["n1"]


async def test_update_preferences_sends_camel_case_body() -> None:
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["method"] = request.method
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"success": True, "data": seen["body"]})

    prefs = NotificationPreferences(sound_enabled=False)
    async with _api(handler) as api:
        stored = await api.update_preferences(prefs)

    assert seen["method"] == "PUT"
    assert seen["body"]["soundEnabled"] is False
    assert seen["body"]["notificationTypes"]["urgentInquiries"] is True
    assert stored == prefs


async def test_unsuccessful_envelope_raises() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"success": False, "message": "Nope"})

    async with _api(handler) as api:
        with pytest.raises(NotificationApiError) as info:
            await api.get_unread_count()

    assert info.value.message == "Nope"
    assert info.value.retryable is False


async def test_http_error_maps_detail_and_status() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404, json={"detail": "Notification not found"})

    async with _api(handler) as api:
        with pytest.raises(NotificationApiError) as info:
            await api.mark_as_read("missing")

    assert info.value.status_code == 404
    assert info.value.message == "Notification not found"
    assert info.value.retryable is False


async def test_get_is_retried_on_server_errors() -> None:
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request.url.path)
        if len(calls) < 3:
            return httpx.Response(503, text="unavailable")
        return httpx.Response(200, json={"success": True, "data": {"count": 4}})

    async with _api(handler, retries=2) as api:
        assert await api.get_unread_count() == 4

    assert len(calls) == 3


async def test_get_gives_up_after_retries() -> None:
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(1)
        return httpx.Response(500, json={"detail": "boom"})

    async with _api(handler, retries=2) as api:
        with pytest.raises(NotificationApiError) as info:
            await api.get_unread_count()

    assert len(calls) == 3
    assert info.value.retryable is True


async def test_client_errors_are_not_retried() -> None:
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(1)
        return httpx.Response(403, json={"detail": "Forbidden"})

    async with _api(handler, retries=2) as api:
        with pytest.raises(NotificationApiError):
            await api.get_preferences()

    assert len(calls) == 1


async def test_writes_are_never_retried() -> None:
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request.method)
        return httpx.Response(503, text="unavailable")

    async with _api(handler, retries=2) as api:
        with pytest.raises(NotificationApiError):
            await api.test_notification("system")

    assert calls == ["POST"]


async def test_transport_errors_are_retryable() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    async with _api(handler) as api:
        with pytest.raises(NotificationApiError) as info:
            await api.get_unread_count()

    assert info.value.retryable is True
    assert info.value.status_code is None
