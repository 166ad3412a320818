from __future__ import annotations

import logging
import math
from datetime import datetime
from typing import Any

from sqlalchemy import and_, delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from voltline.models.common import ensure_utc
from voltline.models.notification import Notification, NotificationPreference
from voltline.schemas.common import Pagination
from voltline.schemas.notification import (
    NotificationOut,
    NotificationPreferences,
    NotificationTypes,
    PollOut,
)

logger = logging.getLogger(__name__)

POLL_BATCH_LIMIT = 50

TEST_NOTIFICATIONS: dict[str, dict[str, Any]] = {
    "form_submission": {
        "title": "Test form submission",
        "message": "A test contact form was submitted from the website.",
        "priority": "high",
        "action_url": "/admin/forms",
    },
    "content_published": {
        "title": "Test content published",
        "message": "A test blog post has been published.",
        "priority": "low",
        "action_url": "/admin/content/blog",
    },
    "reminder": {
        "title": "Test reminder",
        "message": "A test piece of content is scheduled to publish today.",
        "priority": "medium",
        "action_url": "/admin/content",
    },
    "system": {
        "title": "Test system notification",
        "message": "The notification system is working.",
        "priority": "low",
        "action_url": None,
    },
}


def as_iso(value: datetime | None) -> str:
    if value is None:
        return ""
    return ensure_utc(value).isoformat().replace("+00:00", "Z")


def to_out(row: Notification) -> NotificationOut:
    return NotificationOut(
        id=row.id,
        type=row.type,
        title=row.title,
        message=row.message,
        priority=row.priority,
        is_read=row.is_read,
        timestamp=ensure_utc(row.created_at),
        action_url=row.action_url,
        metadata=row.payload or {},
    )


async def create_notification(
    db: AsyncSession,
    *,
    type: str,
    title: str,
    message: str,
    priority: str = "medium",
    action_url: str | None = None,
    metadata: dict | None = None,
) -> Notification:
    row = Notification(
        type=type,
        title=title,
        message=message,
        priority=priority,
        action_url=action_url,
        payload=metadata or {},
    )
    db.add(row)
    await db.commit()
    await db.refresh(row)
    logger.info("Created %s notification id=%s priority=%s", row.type, row.id, row.priority)
    return row


async def create_test_notification(db: AsyncSession, notification_type: str) -> Notification:
    template = TEST_NOTIFICATIONS[notification_type]
    return await create_notification(
        db,
        type=notification_type,
        title=template["title"],
        message=template["message"],
        priority=template["priority"],
        action_url=template["action_url"],
        metadata={"test": True},
    )


async def list_notifications(
    db: AsyncSession,
    *,
    page: int = 1,
    limit: int = 20,
    notification_type: str | None = None,
    priority: str | None = None,
    is_read: bool | None = None,
    start_date: datetime | None = None,
    end_date: datetime | None = None,
) -> tuple[list[Notification], Pagination]:
    clauses = []
    if notification_type:
        clauses.append(Notification.type == notification_type)
    if priority:
        clauses.append(Notification.priority == priority)
    if is_read is not None:
        clauses.append(Notification.is_read.is_(is_read))
    if start_date is not None:
        clauses.append(Notification.created_at >= ensure_utc(start_date))
    if end_date is not None:
        clauses.append(Notification.created_at <= ensure_utc(end_date))
    where = and_(*clauses) if clauses else None

    count_stmt = select(func.count()).select_from(Notification)
    stmt = select(Notification).order_by(Notification.created_at.desc(), Notification.id.desc())
    if where is not None:
        count_stmt = count_stmt.where(where)
        stmt = stmt.where(where)

    total = int((await db.execute(count_stmt)).scalar_one())
    rows = (await db.execute(stmt.offset((page - 1) * limit).limit(limit))).scalars().all()
    pagination = Pagination(
        page=page,
        limit=limit,
        total=total,
        total_pages=math.ceil(total / limit) if total else 0,
    )
    return list(rows), pagination


async def count_unread(db: AsyncSession) -> int:
    stmt = select(func.count()).select_from(Notification).where(Notification.is_read.is_(False))
    return int((await db.execute(stmt)).scalar_one())


async def poll_since(db: AsyncSession, since: datetime, *, limit: int = POLL_BATCH_LIMIT) -> PollOut:
    """Return notifications created strictly after ``since``.

    The oldest ``limit`` rows are taken so a burst larger than one batch is
    drained across consecutive polls instead of being skipped. A batch is never
    cut inside one timestamp: rows sharing the last row's ``created_at`` are
    all included, otherwise the strict ``>`` on the next poll would lose them.
    The returned cursor is the newest row's creation time, which keeps the
    client on the server clock; an empty poll echoes ``since`` back unchanged.
    """
    since = ensure_utc(since)
    rows = list(
        (
            await db.execute(
                select(Notification)
                .where(Notification.created_at > since)
                .order_by(Notification.created_at.asc(), Notification.id.asc())
                .limit(limit)
            )
        ).scalars().all()
    )

    if len(rows) == limit:
        boundary = rows[-1]
        rows.extend(
            (
                await db.execute(
                    select(Notification)
                    .where(Notification.created_at == boundary.created_at, Notification.id > boundary.id)
                    .order_by(Notification.id.asc())
                )
            ).scalars().all()
        )

    if not rows:
        return PollOut(has_new_notifications=False, notifications=[], last_update_time=as_iso(since))

    return PollOut(
        has_new_notifications=True,
        notifications=[to_out(row) for row in reversed(rows)],
        last_update_time=as_iso(rows[-1].created_at),
    )


async def get_notification(db: AsyncSession, notification_id: str) -> Notification | None:
    return (
        await db.execute(select(Notification).where(Notification.id == notification_id))
    ).scalar_one_or_none()


async def mark_read(db: AsyncSession, notification_id: str) -> Notification | None:
    row = await get_notification(db, notification_id)
    if row is None:
        return None
    if not row.is_read:
        row.is_read = True
        await db.commit()
    return row


async def mark_all_read(db: AsyncSession) -> int:
    result = await db.execute(
        update(Notification).where(Notification.is_read.is_(False)).values(is_read=True)
    )
    await db.commit()
    return int(result.rowcount or 0)


async def delete_notification(db: AsyncSession, notification_id: str) -> bool:
    result = await db.execute(delete(Notification).where(Notification.id == notification_id))
    await db.commit()
    return bool(result.rowcount)


def _preferences_from_row(row: NotificationPreference) -> NotificationPreferences:
    return NotificationPreferences(
        email_notifications=row.email_notifications,
        browser_notifications=row.browser_notifications,
        sound_enabled=row.sound_enabled,
        notification_types=NotificationTypes.model_validate(row.notification_types or {}),
    )


async def get_preferences(db: AsyncSession, subject: str) -> NotificationPreferences:
    row = await db.get(NotificationPreference, subject)
    if row is None:
        return NotificationPreferences()
    return _preferences_from_row(row)


async def replace_preferences(
    db: AsyncSession,
    subject: str,
    preferences: NotificationPreferences,
) -> NotificationPreferences:
    row = await db.get(NotificationPreference, subject)
    if row is None:
        row = NotificationPreference(subject=subject)
        db.add(row)

    row.email_notifications = preferences.email_notifications
    row.browser_notifications = preferences.browser_notifications
    row.sound_enabled = preferences.sound_enabled
    row.notification_types = preferences.notification_types.model_dump()

    await db.commit()
    await db.refresh(row)
    return _preferences_from_row(row)
