from __future__ import annotations

import logging
from typing import Any

import httpx

from voltline.client.errors import NotificationApiError
from voltline.client.retry import with_retry
from voltline.core.config import settings
from voltline.schemas.notification import (
    NotificationCreateIn,
    NotificationOut,
    NotificationPreferences,
    PollOut,
)

logger = logging.getLogger(__name__)


def _error_detail(res: httpx.Response) -> str:
    try:
        body = res.json()
    except ValueError:
        return res.text[:200] or res.reason_phrase
    if isinstance(body, dict):
        detail = body.get("detail") or body.get("message")
        if detail:
            return str(detail)
    return res.reason_phrase


class NotificationsApi:
    """Async client for the admin notifications API."""

    def __init__(
        self,
        base_url: str | None = None,
        *,
        token: str | None = None,
        timeout: float | None = None,
        retries: int | None = None,
        retry_base_delay: float = 0.5,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = (base_url or settings.api_base_url).rstrip("/")
        self.token = settings.api_token if token is None else token
        self.timeout = settings.api_timeout_seconds if timeout is None else timeout
        self.retries = settings.api_retries if retries is None else retries
        self.retry_base_delay = retry_base_delay
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    def _headers(self) -> dict[str, str]:
        headers = {
            "Accept": "application/json",
            "User-Agent": "Voltline/1.0",
        }
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers=self._headers(),
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> NotificationsApi:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def _send(self, method: str, path: str, **kwargs: Any) -> dict[str, Any]:
        try:
            res = await self._get_client().request(method, path, **kwargs)
        except httpx.TransportError as exc:
            raise NotificationApiError(f"{method} {path} failed: {exc}", retryable=True) from exc

        if res.status_code >= 400:
            raise NotificationApiError(
                _error_detail(res),
                status_code=res.status_code,
                retryable=res.status_code == 429 or res.status_code >= 500,
            )

        try:
            body = res.json()
        except ValueError as exc:
            raise NotificationApiError(f"{method} {path} returned invalid JSON", status_code=res.status_code) from exc

        if not isinstance(body, dict) or not body.get("success"):
            message = body.get("message") if isinstance(body, dict) else None
            raise NotificationApiError(message or f"{method} {path} was not successful", status_code=res.status_code)
        return body

    async def _request(self, method: str, path: str, **kwargs: Any) -> dict[str, Any]:
        # Writes are not retried to avoid duplicating side effects such as test notifications.
        if method != "GET" or self.retries <= 0:
            return await self._send(method, path, **kwargs)
        return await with_retry(
            lambda: self._send(method, path, **kwargs),
            max_retries=self.retries,
            base_delay=self.retry_base_delay,
            jitter=self.retry_base_delay,
        )

    async def get_notifications(
        self,
        page: int = 1,
        limit: int = 20,
        *,
        notification_type: str | None = None,
        priority: str | None = None,
        is_read: bool | None = None,
    ) -> list[NotificationOut]:
        params: dict[str, Any] = {"page": page, "limit": limit}
        if notification_type:
            params["type"] = notification_type
        if priority:
            params["priority"] = priority
        if is_read is not None:
            params["isRead"] = "true" if is_read else "false"
        body = await self._request("GET", "/notifications", params=params)
        return [NotificationOut.model_validate(row) for row in body.get("data") or []]

    async def get_unread_count(self) -> int:
        body = await self._request("GET", "/notifications/unread-count")
        return int((body.get("data") or {}).get("count") or 0)

    async def get_preferences(self) -> NotificationPreferences:
        body = await self._request("GET", "/notifications/preferences")
        return NotificationPreferences.model_validate(body.get("data") or {})

    async def update_preferences(self, preferences: NotificationPreferences) -> NotificationPreferences:
        body = await self._request(
            "PUT",
            "/notifications/preferences",
            json=preferences.model_dump(by_alias=True),
        )
        return NotificationPreferences.model_validate(body.get("data") or {})

    async def poll(self, since: str) -> PollOut:
        body = await self._request("GET", "/notifications/poll", params={"since": since})
        return PollOut.model_validate(body.get("data") or {})

    async def mark_as_read(self, notification_id: str) -> bool:
        body = await self._request("POST", f"/notifications/{notification_id}/read")
        return bool(body.get("success"))

    async def mark_all_as_read(self) -> bool:
        body = await self._request("POST", "/notifications/read-all")
        return bool(body.get("success"))

    async def create_notification(self, payload: NotificationCreateIn) -> NotificationOut:
        body = await self._request("POST", "/notifications", json=payload.model_dump(by_alias=True))
        return NotificationOut.model_validate(body.get("data") or {})

    async def delete_notification(self, notification_id: str) -> bool:
        body = await self._request("DELETE", f"/notifications/{notification_id}")
        return bool(body.get("success"))

    async def test_notification(self, notification_type: str) -> bool:
        body = await self._request("POST", "/notifications/test", json={"type": notification_type})
        return bool(body.get("success"))

    async def send_errors(self, payload: dict[str, Any]) -> int:
        body = await self._request("POST", "/monitoring/errors", json=payload)
        return int((body.get("data") or {}).get("received") or 0)
