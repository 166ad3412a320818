from __future__ import annotations

from fastapi import HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from voltline.models.notification import Notification
from voltline.services.notifications import get_notification


async def get_notification_or_404(db: AsyncSession, notification_id: str) -> Notification:
    row = await get_notification(db, notification_id)
    if row is None:
        raise HTTPException(status_code=404, detail="Notification not found")
    return row
