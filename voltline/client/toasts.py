from __future__ import annotations

import asyncio
import enum
import logging
from collections.abc import Callable, Iterable, Sequence
from datetime import datetime, timedelta, timezone

from voltline.client.preferences import PreferenceStore
from voltline.schemas.notification import NotificationOut

logger = logging.getLogger(__name__)

MAX_TOASTS = 3
HIDE_DELAY_SECONDS = 5.0
EXIT_ANIMATION_SECONDS = 0.3
STACK_OFFSET_PX = 8
BASE_Z_INDEX = 50
FRESH_WINDOW = timedelta(minutes=5)
MAX_QUEUED_TOASTS = 20


def _sort_key(notification: NotificationOut) -> tuple[int, float]:
    urgent = 0 if notification.priority == "urgent" else 1
    return urgent, -notification.timestamp.timestamp()


def select_toasts(candidates: Iterable[NotificationOut], max_toasts: int = MAX_TOASTS) -> list[NotificationOut]:
    """Urgent first, newest first within each group, truncated to ``max_toasts``."""
    return sorted(candidates, key=_sort_key)[: max(max_toasts, 0)]


class ToastState(enum.Enum):
    VISIBLE = "visible"
    EXITING = "exiting"
    REMOVED = "removed"


class Toast:
    def __init__(
        self,
        notification: NotificationOut,
        *,
        on_removed: Callable[[Toast], None],
        auto_hide: bool = True,
        hide_delay: float = HIDE_DELAY_SECONDS,
        exit_delay: float = EXIT_ANIMATION_SECONDS,
    ) -> None:
        self.notification = notification
        self.state = ToastState.VISIBLE
        self.index = 0
        self.auto_hide = auto_hide and notification.priority != "urgent"
        self.hide_delay = hide_delay
        self.exit_delay = exit_delay
        self._on_removed = on_removed
        self._hide_timer: asyncio.TimerHandle | None = None
        self._exit_timer: asyncio.TimerHandle | None = None

    @property
    def id(self) -> str:
        return self.notification.id

    @property
    def offset_px(self) -> int:
        return self.index * STACK_OFFSET_PX

    @property
    def z_index(self) -> int:
        return BASE_Z_INDEX - self.index

    @property
    def has_action(self) -> bool:
        return bool(self.notification.action_url)

    def arm(self) -> None:
        if not self.auto_hide or self._hide_timer is not None or self.state is not ToastState.VISIBLE:
            return
        loop = asyncio.get_running_loop()
        self._hide_timer = loop.call_later(self.hide_delay, self.dismiss)

    def dismiss(self) -> None:
        if self.state is not ToastState.VISIBLE:
            return
        if self._hide_timer is not None:
            self._hide_timer.cancel()
            self._hide_timer = None
        self.state = ToastState.EXITING
        loop = asyncio.get_running_loop()
        self._exit_timer = loop.call_later(self.exit_delay, self._finish)

    def _finish(self) -> None:
        self._exit_timer = None
        if self.state is ToastState.REMOVED:
            return
        self.state = ToastState.REMOVED
        self._on_removed(self)

    def cancel(self) -> None:
        for timer in (self._hide_timer, self._exit_timer):
            if timer is not None:
                timer.cancel()
        self._hide_timer = None
        self._exit_timer = None


class ToastQueue:
    """Bounded, priority-ordered set of on-screen notification toasts.

    Candidates are kept newest-first and deduplicated by id; ``visible()``
    returns the ones that currently earn a slot. Only displayed toasts run
    timers, so a queued toast starts its countdown when it reaches the screen.
    At most ``max_queued`` toasts wait off screen; the oldest are dropped first,
    and queued toasts older than five minutes expire on the next ``offer``.
    """

    def __init__(
        self,
        *,
        max_toasts: int = MAX_TOASTS,
        max_queued: int = MAX_QUEUED_TOASTS,
        hide_delay: float = HIDE_DELAY_SECONDS,
        exit_delay: float = EXIT_ANIMATION_SECONDS,
        preferences: PreferenceStore | None = None,
        on_action: Callable[[NotificationOut], None] | None = None,
    ) -> None:
        self.max_toasts = max_toasts
        self.max_queued = max_queued
        self.hide_delay = hide_delay
        self.exit_delay = exit_delay
        self.preferences = preferences
        self.on_action = on_action
        self._toasts: list[Toast] = []
        self._shown_ids: set[str] = set()

    def __len__(self) -> int:
        return len(self._toasts)

    def show(self, notification: NotificationOut) -> bool:
        if any(t.id == notification.id for t in self._toasts):
            return False
        toast = Toast(
            notification,
            on_removed=self._remove,
            hide_delay=self.hide_delay,
            exit_delay=self.exit_delay,
        )
        self._toasts.insert(0, toast)
        self._shown_ids.add(notification.id)
        self._layout()
        self._trim()
        return True

    def _queued(self) -> list[Toast]:
        on_screen = {t.id for t in self.visible()}
        return [t for t in self._toasts if t.id not in on_screen and t.state is ToastState.VISIBLE]

    def _drop(self, toasts: Iterable[Toast]) -> None:
        for toast in toasts:
            toast.cancel()
            if toast in self._toasts:
                self._toasts.remove(toast)

    def _trim(self) -> None:
        queued = self._queued()
        if len(queued) > self.max_queued:
            oldest = sorted(queued, key=lambda t: t.notification.timestamp)
            self._drop(oldest[: len(queued) - self.max_queued])

    def _expire(self, cutoff: datetime) -> None:
        stale = [t for t in self._queued() if t.notification.timestamp <= cutoff]
        if stale:
            self._drop(stale)
            self._layout()

    def retain(self, notification_ids: Iterable[str]) -> None:
        """Forget toasted ids that are no longer in the notification cache."""
        keep = set(notification_ids) | {t.id for t in self._toasts}
        self._shown_ids &= keep

    def offer(self, notifications: Sequence[NotificationOut], *, now: datetime | None = None) -> list[NotificationOut]:
        """Queue unread notifications from the last five minutes that were never toasted."""
        cutoff = (now or datetime.now(timezone.utc)) - FRESH_WINDOW
        self._expire(cutoff)
        fresh = [
            n
            for n in notifications
            if not n.is_read
            and n.timestamp > cutoff
            and n.id not in self._shown_ids
            and (self.preferences is None or self.preferences.allows(n))
        ]
        # Oldest first so the newest one ends up on top of the candidate list.
        for notification in reversed(fresh):
            self.show(notification)
        return fresh

    def visible(self) -> list[Toast]:
        by_id = {t.id: t for t in self._toasts if t.state is not ToastState.REMOVED}
        selected = select_toasts((t.notification for t in by_id.values()), self.max_toasts)
        return [by_id[n.id] for n in selected]

    def _layout(self) -> None:
        for index, toast in enumerate(self.visible()):
            toast.index = index
            toast.arm()

    def hide(self, notification_id: str) -> None:
        for toast in self._toasts:
            if toast.id == notification_id:
                toast.dismiss()
                return

    def act(self, notification_id: str) -> None:
        toast = next((t for t in self._toasts if t.id == notification_id), None)
        if toast is None:
            return
        if self.on_action is not None and toast.has_action:
            try:
                self.on_action(toast.notification)
            except Exception:
                logger.exception("Toast action failed for %s", notification_id)
        toast.dismiss()

    def _remove(self, toast: Toast) -> None:
        if toast in self._toasts:
            self._toasts.remove(toast)
        self._layout()

    def clear(self) -> None:
        for toast in self._toasts:
            toast.cancel()
        self._toasts.clear()

    def close(self) -> None:
        self.clear()
        self._shown_ids.clear()
