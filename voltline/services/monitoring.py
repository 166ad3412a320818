from __future__ import annotations

import logging
from datetime import datetime, timedelta

from pydantic import TypeAdapter, ValidationError
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from voltline.models.common import ensure_utc, utcnow
from voltline.models.monitoring import ClientErrorLog
from voltline.schemas.monitoring import ErrorBatchIn, ErrorStatsOut

logger = logging.getLogger(__name__)

_datetime_adapter = TypeAdapter(datetime)


def _parse_occurred_at(raw: str) -> datetime:
    try:
        return ensure_utc(_datetime_adapter.validate_python(raw))
    except ValidationError:
        return utcnow()


async def store_error_batch(db: AsyncSession, batch: ErrorBatchIn) -> int:
    environment = str(batch.metadata.get("environment") or "") or None
    default_session = str(batch.metadata.get("sessionId") or "") or None

    for entry in batch.errors:
        log = logger.error if entry.severity in ("high", "critical") else logger.warning
        log(
            "Client error [%s/%s] %s (session=%s)",
            entry.severity,
            entry.category,
            entry.message,
            entry.session_id or default_session,
        )
        db.add(
            ClientErrorLog(
                client_error_id=entry.id,
                message=entry.message,
                severity=entry.severity,
                category=entry.category,
                status=entry.status,
                session_id=entry.session_id or default_session,
                environment=environment,
                context=entry.context,
                occurred_at=_parse_occurred_at(entry.timestamp),
            )
        )

    await db.commit()
    return len(batch.errors)


async def error_stats(db: AsyncSession) -> ErrorStatsOut:
    total = int((await db.execute(select(func.count()).select_from(ClientErrorLog))).scalar_one())

    by_category = {
        str(category): int(count)
        for category, count in (
            await db.execute(select(ClientErrorLog.category, func.count()).group_by(ClientErrorLog.category))
        ).all()
    }
    by_severity = {
        str(severity): int(count)
        for severity, count in (
            await db.execute(select(ClientErrorLog.severity, func.count()).group_by(ClientErrorLog.severity))
        ).all()
    }

    cutoff = utcnow() - timedelta(hours=1)
    recent = int(
        (
            await db.execute(
                select(func.count()).select_from(ClientErrorLog).where(ClientErrorLog.created_at > cutoff)
            )
        ).scalar_one()
    )
    return ErrorStatsOut(total=total, by_category=by_category, by_severity=by_severity, recent=recent)
