from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from voltline.schemas.notification import NotificationOut

CACHE_LIMIT = 50


@dataclass(frozen=True, slots=True)
class MergeResult:
    notifications: list[NotificationOut]
    added: list[NotificationOut]
    new_unread: int


def merge_notifications(
    existing: Sequence[NotificationOut],
    incoming: Sequence[NotificationOut],
    limit: int = CACHE_LIMIT,
) -> MergeResult:
    """Prepend incoming notifications whose id is not cached yet.

    Existing entries keep their position and content when an id repeats.
    ``new_unread`` counts only the unread notifications that were actually added,
    so callers can bump their unread counter without rescanning the list.
    """
    seen = {n.id for n in existing}
    added: list[NotificationOut] = []
    for notification in incoming:
        if notification.id in seen:
            continue
        seen.add(notification.id)
        added.append(notification)

    merged = [*added, *existing][:limit]
    return MergeResult(
        notifications=merged,
        added=added,
        new_unread=sum(1 for n in added if not n.is_read),
    )
