from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from voltline.api.v1.deps import get_notification_or_404
from voltline.db.session import get_db
from voltline.schemas.common import ApiResponse, CountOut, PaginatedResponse, UpdatedOut
from voltline.schemas.notification import (
    NotificationCreateIn,
    NotificationOut,
    NotificationPreferences,
    NotificationPriority,
    NotificationTestIn,
    NotificationType,
    PollOut,
)
from voltline.services import notifications as notification_service
from voltline.services.auth import AuthUser, get_current_admin

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("", response_model=PaginatedResponse[NotificationOut])
async def list_notifications(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=200),
    notification_type: NotificationType | None = Query(default=None, alias="type"),
    priority: NotificationPriority | None = Query(default=None),
    is_read: bool | None = Query(default=None, alias="isRead"),
    start_date: datetime | None = Query(default=None, alias="startDate"),
    end_date: datetime | None = Query(default=None, alias="endDate"),
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(get_current_admin),
) -> PaginatedResponse[NotificationOut]:
    rows, pagination = await notification_service.list_notifications(
        db,
        page=page,
        limit=limit,
        notification_type=notification_type,
        priority=priority,
        is_read=is_read,
        start_date=start_date,
        end_date=end_date,
    )
    return PaginatedResponse(
        data=[notification_service.to_out(row) for row in rows],
        pagination=pagination,
    )


@router.post("", response_model=ApiResponse[NotificationOut], status_code=status.HTTP_201_CREATED)
async def create_notification(
    payload: NotificationCreateIn,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(get_current_admin),
) -> ApiResponse[NotificationOut]:
    row = await notification_service.create_notification(
        db,
        type=payload.type,
        title=payload.title.strip(),
        message=payload.message.strip(),
        priority=payload.priority,
        action_url=(payload.action_url or "").strip() or None,
        metadata=payload.metadata,
    )
    return ApiResponse(data=notification_service.to_out(row))


@router.get("/unread-count", response_model=ApiResponse[CountOut])
async def get_unread_count(
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(get_current_admin),
) -> ApiResponse[CountOut]:
    return ApiResponse(data=CountOut(count=await notification_service.count_unread(db)))


@router.get("/preferences", response_model=ApiResponse[NotificationPreferences])
async def get_preferences(
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(get_current_admin),
) -> ApiResponse[NotificationPreferences]:
    prefs = await notification_service.get_preferences(db, current_user.subject)
    return ApiResponse(data=prefs)


@router.put("/preferences", response_model=ApiResponse[NotificationPreferences])
async def replace_preferences(
    payload: NotificationPreferences,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(get_current_admin),
) -> ApiResponse[NotificationPreferences]:
    prefs = await notification_service.replace_preferences(db, current_user.subject, payload)
    return ApiResponse(data=prefs, message="Preferences updated")


@router.get("/poll", response_model=ApiResponse[PollOut])
async def poll_notifications(
    since: datetime = Query(...),
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(get_current_admin),
) -> ApiResponse[PollOut]:
    return ApiResponse(data=await notification_service.poll_since(db, since))


@router.post("/read-all", response_model=ApiResponse[UpdatedOut])
@router.patch("/mark-all-read", response_model=ApiResponse[UpdatedOut])
async def mark_all_notifications_read(
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(get_current_admin),
) -> ApiResponse[UpdatedOut]:
    updated = await notification_service.mark_all_read(db)
    return ApiResponse(data=UpdatedOut(updated=updated), message="All notifications marked as read")


@router.post("/test", response_model=ApiResponse[NotificationOut], status_code=status.HTTP_201_CREATED)
async def send_test_notification(
    payload: NotificationTestIn,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(get_current_admin),
) -> ApiResponse[NotificationOut]:
    row = await notification_service.create_test_notification(db, payload.type)
    return ApiResponse(data=notification_service.to_out(row), message="Test notification sent")


@router.post("/{notification_id}/read", response_model=ApiResponse[NotificationOut])
@router.patch("/{notification_id}/read", response_model=ApiResponse[NotificationOut])
async def mark_notification_read(
    notification_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(get_current_admin),
) -> ApiResponse[NotificationOut]:
    row = await notification_service.mark_read(db, notification_id)
    if row is None:
        raise HTTPException(status_code=404, detail="Notification not found")
    return ApiResponse(data=notification_service.to_out(row), message="Notification marked as read")


@router.delete("/{notification_id}", response_model=ApiResponse[NotificationOut])
async def delete_notification(
    notification_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(get_current_admin),
) -> ApiResponse[NotificationOut]:
    row = await get_notification_or_404(db, notification_id)
    out = notification_service.to_out(row)
    await notification_service.delete_notification(db, notification_id)
    return ApiResponse(data=out, message="Notification deleted")
