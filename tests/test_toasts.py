import asyncio
from datetime import timedelta

from voltline.client.preferences import PreferenceStore
from voltline.client.toasts import (
    EXIT_ANIMATION_SECONDS,
    HIDE_DELAY_SECONDS,
    MAX_TOASTS,
    ToastQueue,
    ToastState,
    select_toasts,
)
from voltline.schemas.notification import NotificationPreferences, NotificationTypes

from conftest import BASE_TIME


def test_defaults_match_dashboard_behaviour() -> None:
    assert MAX_TOASTS == 3
    assert HIDE_DELAY_SECONDS == 5.0
    assert EXIT_ANIMATION_SECONDS == 0.3


def test_select_toasts_orders_urgent_first_then_newest(make_notification) -> None:
    candidates = [
        make_notification("low-new", minutes=10, priority="low"),
        make_notification("urgent-old", minutes=1, priority="urgent"),
        make_notification("high-mid", minutes=5, priority="high"),
        make_notification("urgent-new", minutes=7, priority="urgent"),
        make_notification("medium-old", minutes=0),
    ]

    selected = select_toasts(candidates, max_toasts=3)

    assert [n.id for n in selected] == ["urgent-new", "urgent-old", "low-new"]


def test_select_toasts_handles_small_candidate_sets(make_notification) -> None:
    assert select_toasts([], max_toasts=3) == []
    only = make_notification("a")
    assert select_toasts([only], max_toasts=0) == []
    assert select_toasts([only]) == [only]


async def test_stack_offsets_and_z_order(make_notification) -> None:
    queue = ToastQueue(hide_delay=10)
    for i in range(3):
        queue.show(make_notification(str(i), minutes=i))

    visible = queue.visible()

    assert [t.id for t in visible] == ["2", "1", "0"]
    assert [t.offset_px for t in visible] == [0, 8, 16]
    assert [t.z_index for t in visible] == [50, 49, 48]
    queue.close()


async def test_urgent_toast_is_never_auto_dismissed(make_notification) -> None:
    queue = ToastQueue(hide_delay=0.01, exit_delay=0.01)
    queue.show(make_notification("urgent", priority="urgent"))
    queue.show(make_notification("routine", minutes=1))

    await asyncio.sleep(0.1)

    visible = queue.visible()
    assert [t.id for t in visible] == ["urgent"]
    assert visible[0].state is ToastState.VISIBLE

    queue.hide("urgent")
    assert visible[0].state is ToastState.EXITING
    assert [t.id for t in queue.visible()] == ["urgent"]

    await asyncio.sleep(0.05)
    assert visible[0].state is ToastState.REMOVED
    assert queue.visible() == []


async def test_dismiss_waits_for_exit_window(make_notification) -> None:
    queue = ToastQueue(hide_delay=10, exit_delay=0.05)
    queue.show(make_notification("a"))
    toast = queue.visible()[0]

    queue.hide("a")
    await asyncio.sleep(0.01)
    assert toast.state is ToastState.EXITING
    assert len(queue) == 1

    await asyncio.sleep(0.1)
    assert toast.state is ToastState.REMOVED
    assert len(queue) == 0


async def test_queued_toast_takes_freed_slot(make_notification) -> None:
    queue = ToastQueue(max_toasts=2, hide_delay=10, exit_delay=0.01)
    for i in range(3):
        queue.show(make_notification(str(i), minutes=i))
    assert [t.id for t in queue.visible()] == ["2", "1"]

    queue.hide("2")
    await asyncio.sleep(0.05)

    visible = queue.visible()
    assert [t.id for t in visible] == ["1", "0"]
    assert [t.offset_px for t in visible] == [0, 8]
    queue.close()


async def test_show_ignores_duplicate_ids(make_notification) -> None:
    queue = ToastQueue(hide_delay=10)
    assert queue.show(make_notification("a")) is True
    assert queue.show(make_notification("a")) is False
    assert len(queue) == 1
    queue.close()


async def test_offer_picks_fresh_unread_notifications_once(make_notification) -> None:
    queue = ToastQueue(hide_delay=10)
    now = BASE_TIME + timedelta(minutes=10)
    notifications = [
        make_notification("fresh", minutes=9),
        make_notification("stale", minutes=1),
        make_notification("read", minutes=8, is_read=True),
    ]

    assert [n.id for n in queue.offer(notifications, now=now)] == ["fresh"]
    assert queue.offer(notifications, now=now) == []
    assert [t.id for t in queue.visible()] == ["fresh"]
    queue.close()


async def test_offer_respects_category_preferences(make_notification) -> None:
    store = PreferenceStore(
        NotificationPreferences(notification_types=NotificationTypes(form_submissions=False))
    )
    queue = ToastQueue(hide_delay=10, preferences=store)
    now = BASE_TIME + timedelta(minutes=2)
    notifications = [
        make_notification("form", minutes=1),
        make_notification("urgent-form", minutes=1, priority="urgent"),
        make_notification("system", minutes=1, notification_type="system"),
    ]

    offered = queue.offer(notifications, now=now)

    assert {n.id for n in offered} == {"urgent-form", "system"}
    queue.close()


async def test_action_runs_callback_then_dismisses(make_notification) -> None:
    opened = []
    queue = ToastQueue(hide_delay=10, exit_delay=0.01, on_action=lambda n: opened.append(n.action_url))
    queue.show(make_notification("a", action_url="/admin/forms/42"))
    toast = queue.visible()[0]

    queue.act("a")

    assert opened == ["/admin/forms/42"]
    assert toast.state is ToastState.EXITING
    await asyncio.sleep(0.05)
    assert len(queue) == 0


async def test_urgent_toasts_holding_every_slot_keep_the_queue_bounded(make_notification) -> None:
    queue = ToastQueue(hide_delay=0.01, exit_delay=0.01, max_queued=20)
    for i in range(3):
        queue.show(make_notification(f"urgent-{i}", minutes=600, priority="urgent"))
    for i in range(500):
        queue.show(make_notification(f"routine-{i}", minutes=i))

    await asyncio.sleep(0.1)

    assert [t.id for t in queue.visible()] == ["urgent-2", "urgent-1", "urgent-0"]
    assert len(queue) == 3 + 20
    assert {t.id for t in queue._queued()} == {f"routine-{i}" for i in range(480, 500)}
    queue.close()


async def test_offer_expires_stale_queued_toasts(make_notification) -> None:
    queue = ToastQueue(max_toasts=1, hide_delay=10)
    queue.show(make_notification("urgent", minutes=0, priority="urgent"))
    queue.offer([make_notification("waiting", minutes=1)], now=BASE_TIME + timedelta(minutes=2))
    assert len(queue) == 2

    queue.offer([], now=BASE_TIME + timedelta(minutes=7))

    assert [t.id for t in queue.visible()] == ["urgent"]
    assert len(queue) == 1
    queue.close()


async def test_retain_forgets_ids_that_left_the_cache(make_notification) -> None:
    queue = ToastQueue(hide_delay=10, exit_delay=0.01)
    now = BASE_TIME + timedelta(minutes=1)
    gone = make_notification("gone")
    queue.offer([gone], now=now)
    queue.hide("gone")
    await asyncio.sleep(0.05)

    queue.retain(["still-cached"])

    assert queue._shown_ids == set()
    assert [n.id for n in queue.offer([gone], now=now)] == ["gone"]
    queue.close()


async def test_close_cancels_pending_timers(make_notification) -> None:
    queue = ToastQueue(hide_delay=0.02, exit_delay=0.01)
    queue.show(make_notification("a"))
    toast = queue.visible()[0]

    queue.close()
    await asyncio.sleep(0.1)

    assert toast.state is ToastState.VISIBLE
    assert len(queue) == 0
