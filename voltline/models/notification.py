from __future__ import annotations

import uuid

from sqlalchemy import Boolean, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from voltline.db.base import Base
from voltline.models.common import JSONType, TimestampMixin


def _new_id() -> str:
    return uuid.uuid4().hex


class Notification(TimestampMixin, Base):
    __tablename__ = "notifications"
    __table_args__ = (
        Index("ix_notifications_read_created", "is_read", "created_at"),
        Index("ix_notifications_type_created", "type", "created_at"),
    )

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=_new_id)
    type: Mapped[str] = mapped_column(String(32), nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    priority: Mapped[str] = mapped_column(String(16), default="medium", nullable=False)
    is_read: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    action_url: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    # "metadata" is reserved on declarative classes.
    payload: Mapped[dict] = mapped_column("metadata", JSONType, default=dict, nullable=False)


class NotificationPreference(TimestampMixin, Base):
    __tablename__ = "notification_preferences"

    subject: Mapped[str] = mapped_column(String(255), primary_key=True)
    email_notifications: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    browser_notifications: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    sound_enabled: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    notification_types: Mapped[dict] = mapped_column(JSONType, default=dict, nullable=False)
