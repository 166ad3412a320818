from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import Field

from voltline.schemas.common import CamelModel

NotificationType = Literal["form_submission", "content_published", "reminder", "system"]
NotificationPriority = Literal["low", "medium", "high", "urgent"]


class NotificationOut(CamelModel):
    id: str
    type: NotificationType
    title: str
    message: str
    priority: NotificationPriority = "medium"
    is_read: bool = False
    timestamp: datetime
    action_url: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)


class NotificationCreateIn(CamelModel):
    type: NotificationType
    title: str = Field(min_length=1, max_length=255)
    message: str = Field(min_length=1, max_length=2000)
    priority: NotificationPriority = "medium"
    action_url: str | None = Field(default=None, max_length=1000)
    metadata: dict[str, Any] = Field(default_factory=dict)


class NotificationTestIn(CamelModel):
    type: NotificationType


class NotificationTypes(CamelModel):
    form_submissions: bool = True
    urgent_inquiries: bool = True
    content_reminders: bool = True
    system_updates: bool = True


class NotificationPreferences(CamelModel):
    email_notifications: bool = True
    browser_notifications: bool = True
    sound_enabled: bool = True
    notification_types: NotificationTypes = Field(default_factory=NotificationTypes)


class PollOut(CamelModel):
    has_new_notifications: bool
    notifications: list[NotificationOut] = Field(default_factory=list)
    last_update_time: str
