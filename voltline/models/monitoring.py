from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from voltline.db.base import Base
from voltline.models.common import JSONType, TimestampMixin, utcnow


class ClientErrorLog(TimestampMixin, Base):
    __tablename__ = "client_error_logs"
    __table_args__ = (Index("ix_client_error_logs_severity_created", "severity", "created_at"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    client_error_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    severity: Mapped[str] = mapped_column(String(16), default="medium", nullable=False)
    category: Mapped[str] = mapped_column(String(16), default="system", nullable=False)
    status: Mapped[int | None] = mapped_column(Integer, nullable=True)
    session_id: Mapped[str | None] = mapped_column(String(128), nullable=True)
    environment: Mapped[str | None] = mapped_column(String(32), nullable=True)
    context: Mapped[dict] = mapped_column(JSONType, default=dict, nullable=False)
    occurred_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
