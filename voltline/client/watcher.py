from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable, Coroutine
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from voltline.client.api import NotificationsApi
from voltline.client.capabilities import Capabilities, ConsoleCapabilities
from voltline.client.dispatcher import SideEffectDispatcher
from voltline.client.errors import NotificationApiError
from voltline.client.merge import CACHE_LIMIT, merge_notifications
from voltline.client.preferences import PreferenceStore
from voltline.core.config import settings
from voltline.schemas.notification import NotificationOut, NotificationPreferences

logger = logging.getLogger(__name__)

NewNotificationsListener = Callable[[list[NotificationOut]], Awaitable[None] | None]

TEST_REFRESH_DELAY_SECONDS = 1.0


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def _error_message(exc: BaseException, fallback: str) -> str:
    if isinstance(exc, NotificationApiError) and exc.message:
        return exc.message
    return str(exc) or fallback


@dataclass(slots=True)
class WatcherOptions:
    poll_interval: float = 30.0
    # Accepted for parity with the dashboard hook; nothing reads it yet.
    auto_mark_as_read: bool = False
    enable_sound: bool = True
    enable_browser_notifications: bool = True

    @classmethod
    def from_settings(cls) -> WatcherOptions:
        return cls(
            poll_interval=settings.poll_interval_seconds,
            auto_mark_as_read=settings.auto_mark_as_read,
            enable_sound=settings.enable_sound,
            enable_browser_notifications=settings.enable_browser_notifications,
        )


@dataclass(slots=True)
class NotificationState:
    notifications: list[NotificationOut] = field(default_factory=list)
    unread_count: int = 0
    is_loading: bool = True
    error: str | None = None


class NotificationWatcher:
    """Keeps a local view of the admin notifications fresh by delta polling.

    One watcher belongs to one consumer. All state lives on the instance and
    is only touched from the event loop, so no locking is involved. A tick that
    fires while the previous poll is still waiting on the network is skipped,
    which keeps the cursor from being advanced out of order.
    """

    def __init__(
        self,
        api: NotificationsApi,
        *,
        options: WatcherOptions | None = None,
        capabilities: Capabilities | None = None,
        dispatcher: SideEffectDispatcher | None = None,
    ) -> None:
        self.api = api
        self.options = options or WatcherOptions()
        self.dispatcher = dispatcher or SideEffectDispatcher(
            capabilities or ConsoleCapabilities(),
            enable_sound=self.options.enable_sound,
            enable_browser_notifications=self.options.enable_browser_notifications,
        )
        self.state = NotificationState()
        self.preference_store = PreferenceStore()
        self.last_check_time = utc_now_iso()
        self._listeners: list[NewNotificationsListener] = []
        self._poll_in_flight = False
        self._loop_task: asyncio.Task | None = None
        self._tasks: set[asyncio.Task] = set()

    @property
    def preferences(self) -> NotificationPreferences:
        return self.preference_store.current

    @property
    def running(self) -> bool:
        return self._loop_task is not None and not self._loop_task.done()

    def add_listener(self, listener: NewNotificationsListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: NewNotificationsListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    async def load_initial(self) -> None:
        self.state.is_loading = True
        self.state.error = None

        notifications, preferences, unread = await asyncio.gather(
            self.api.get_notifications(page=1, limit=CACHE_LIMIT),
            self.api.get_preferences(),
            self.api.get_unread_count(),
            return_exceptions=True,
        )

        failures: list[BaseException] = []
        if isinstance(notifications, BaseException):
            failures.append(notifications)
        else:
            self.state.notifications = list(notifications)[:CACHE_LIMIT]
        if isinstance(preferences, BaseException):
            failures.append(preferences)
        else:
            self.preference_store.replace(preferences)
        if isinstance(unread, BaseException):
            failures.append(unread)
        else:
            self.state.unread_count = unread

        if failures:
            logger.warning("Initial notification load failed: %s", failures[0])
            self.state.error = _error_message(failures[0], "Failed to load notifications")
        else:
            self.last_check_time = utc_now_iso()
        self.state.is_loading = False

    async def poll_once(self) -> bool:
        """Run one poll tick. Returns True when new notifications were merged."""
        if self._poll_in_flight:
            logger.debug("Skipping poll tick, previous poll still in flight")
            return False

        self._poll_in_flight = True
        try:
            result = await self.api.poll(self.last_check_time)
        except Exception:
            logger.warning("Failed to poll for notifications since %s", self.last_check_time, exc_info=True)
            return False
        finally:
            self._poll_in_flight = False

        if not result.has_new_notifications:
            return False

        merged = merge_notifications(self.state.notifications, result.notifications)
        self.state.notifications = merged.notifications
        self.state.unread_count += merged.new_unread
        self.last_check_time = result.last_update_time

        await self.dispatcher.dispatch(merged.added, self.preferences)
        await self._emit(merged.added)
        return True

    async def _emit(self, added: list[NotificationOut]) -> None:
        if not added:
            return
        for listener in list(self._listeners):
            try:
                outcome = listener(list(added))
                if inspect.isawaitable(outcome):
                    await outcome
            except Exception:
                logger.exception("Notification listener failed")

    def _spawn(self, coro: Coroutine[Any, Any, Any]) -> asyncio.Task:
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _run_timer(self) -> None:
        loop = asyncio.get_running_loop()
        interval = max(self.options.poll_interval, 0.01)
        next_tick = loop.time() + interval
        while True:
            await asyncio.sleep(max(next_tick - loop.time(), 0))
            next_tick += interval
            self._spawn(self.poll_once())

    async def start(self) -> None:
        if self.running:
            return
        await self.dispatcher.setup()
        self._spawn(self.load_initial())
        self._loop_task = asyncio.create_task(self._run_timer())

    async def stop(self) -> None:
        pending = list(self._tasks)
        if self._loop_task is not None:
            pending.append(self._loop_task)
            self._loop_task = None
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)
        self._tasks.clear()
        self.dispatcher.teardown()

    async def __aenter__(self) -> NotificationWatcher:
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.stop()

    async def mark_as_read(self, notification_id: str) -> bool:
        try:
            confirmed = await self.api.mark_as_read(notification_id)
        except Exception as exc:
            self.state.error = _error_message(exc, "Failed to mark notification as read")
            return False
        if not confirmed:
            return False

        cached = next((n for n in self.state.notifications if n.id == notification_id), None)
        self.state.notifications = [
            n.model_copy(update={"is_read": True}) if n.id == notification_id else n
            for n in self.state.notifications
        ]
        # An id outside the cache has unknown prior state; the next load corrects the count.
        if cached is not None and not cached.is_read:
            self.state.unread_count = max(0, self.state.unread_count - 1)
        return True

    async def mark_all_as_read(self) -> bool:
        try:
            confirmed = await self.api.mark_all_as_read()
        except Exception as exc:
            self.state.error = _error_message(exc, "Failed to mark all notifications as read")
            return False
        if not confirmed:
            return False

        self.state.notifications = [
            n if n.is_read else n.model_copy(update={"is_read": True}) for n in self.state.notifications
        ]
        self.state.unread_count = 0
        return True

    async def update_preferences(self, preferences: NotificationPreferences) -> bool:
        try:
            stored = await self.api.update_preferences(preferences)
        except Exception as exc:
            self.state.error = _error_message(exc, "Failed to update preferences")
            return False
        self.preference_store.replace(stored)
        return True

    async def refresh(self) -> None:
        await self.load_initial()

    async def _refresh_later(self, delay: float) -> None:
        await asyncio.sleep(delay)
        await self.refresh()

    async def test_notification(
        self,
        notification_type: str,
        *,
        refresh_delay: float = TEST_REFRESH_DELAY_SECONDS,
    ) -> bool:
        try:
            await self.api.test_notification(notification_type)
        except Exception as exc:
            self.state.error = _error_message(exc, "Failed to send test notification")
            return False
        self._spawn(self._refresh_later(refresh_delay))
        return True
