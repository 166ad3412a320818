from __future__ import annotations

import logging
from datetime import timedelta

from arq.connections import RedisSettings
from arq.cron import cron
from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession

from voltline.core.config import settings
from voltline.db.session import SessionLocal
from voltline.models.common import utcnow
from voltline.models.notification import Notification
from voltline.services import content_events

logger = logging.getLogger(__name__)

CONTENT_EVENTS = {
    "published": content_events.notify_content_published,
    "scheduled": content_events.notify_content_scheduled,
    "needs_review": content_events.notify_content_needs_review,
}


async def prune_notifications(db: AsyncSession, *, retention_days: int) -> int:
    # Urgent notifications are never pruned on the routine schedule.
    cutoff = utcnow() - timedelta(days=max(retention_days, 1))
    result = await db.execute(
        delete(Notification).where(
            Notification.is_read.is_(True),
            Notification.priority != "urgent",
            Notification.created_at < cutoff,
        )
    )
    await db.commit()
    return int(result.rowcount or 0)


async def prune_notifications_job(ctx) -> dict:
    async with SessionLocal() as db:
        deleted = await prune_notifications(db, retention_days=settings.notification_retention_days)
    if deleted:
        logger.info("Pruned %s read notifications older than %s days", deleted, settings.notification_retention_days)
    return {"notifications_deleted": deleted}


async def form_submission_notification_job(
    ctx,
    *,
    form_id: str,
    customer_name: str,
    service_type: str,
    is_urgent: bool = False,
) -> dict:
    """Enqueued by the contact form handler after a submission is stored."""
    async with SessionLocal() as db:
        row = await content_events.notify_form_submission(
            db,
            form_id=form_id,
            customer_name=customer_name,
            service_type=service_type,
            is_urgent=is_urgent,
        )
    return {"notification_id": row.id, "priority": row.priority}


async def content_notification_job(ctx, event: str, **payload) -> dict:
    handler = CONTENT_EVENTS.get(event)
    if handler is None:
        raise ValueError(f"Unknown content event: {event}")
    async with SessionLocal() as db:
        row = await handler(db, **payload)
    return {"notification_id": row.id, "type": row.type}


class WorkerSettings:
    redis_settings = RedisSettings.from_dsn(settings.redis_url)
    functions = [prune_notifications_job, form_submission_notification_job, content_notification_job]
    cron_jobs = [cron(prune_notifications_job, hour={3}, minute={15})]
