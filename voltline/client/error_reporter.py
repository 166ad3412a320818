from __future__ import annotations

import asyncio
import logging
import secrets
import time
import uuid
from collections import deque
from datetime import datetime, timezone
from typing import Any

from voltline.client.api import NotificationsApi
from voltline.client.errors import NotificationApiError
from voltline.client.retry import with_retry
from voltline.core.config import settings

logger = logging.getLogger(__name__)

BATCH_SIZE = 10
FLUSH_INTERVAL_SECONDS = 30.0
MAX_QUEUE_SIZE = 100


def classify_severity(error: BaseException) -> str:
    status = getattr(error, "status_code", None)
    if isinstance(status, int):
        if status >= 500:
            return "high"
        if status == 429:
            return "medium"
        if status >= 400:
            return "low"
    if isinstance(error, (TypeError, ImportError)):
        return "high"
    return "medium"


def classify_category(error: BaseException) -> str:
    if isinstance(error, NotificationApiError) or getattr(error, "status_code", None) is not None:
        return "network"
    if isinstance(error, (ConnectionError, TimeoutError)):
        return "network"
    if isinstance(error, ValueError) and "validation" in type(error).__name__.lower():
        return "validation"
    if isinstance(error, (TypeError, NameError, AttributeError)):
        return "runtime"
    message = str(error).lower()
    if "user" in message or "permission" in message:
        return "user"
    return "system"


class ErrorReporter:
    """Batches client-side errors and ships them to the monitoring endpoint.

    Entries are flushed when the batch fills up, right away for critical
    errors, and on a periodic timer. A failed flush puts the batch back at the
    front of the queue; the queue keeps at most ``max_queue_size`` entries,
    dropping the oldest.
    """

    def __init__(
        self,
        api: NotificationsApi,
        *,
        batch_size: int = BATCH_SIZE,
        flush_interval: float = FLUSH_INTERVAL_SECONDS,
        max_queue_size: int = MAX_QUEUE_SIZE,
        max_retries: int = 3,
        retry_base_delay: float = 1.0,
        environment: str | None = None,
        session_id: str | None = None,
    ) -> None:
        self.api = api
        self.batch_size = batch_size
        self.flush_interval = flush_interval
        self.max_retries = max_retries
        self.retry_base_delay = retry_base_delay
        self.environment = environment or settings.app_env
        self.session_id = session_id or f"session_{int(time.time() * 1000)}_{secrets.token_hex(5)}"
        self._queue: deque[dict[str, Any]] = deque(maxlen=max_queue_size)
        self._flush_lock = asyncio.Lock()
        self._timer_task: asyncio.Task | None = None
        self._pending: set[asyncio.Task] = set()

    @property
    def queued(self) -> int:
        return len(self._queue)

    def start(self) -> None:
        if self._timer_task is None:
            self._timer_task = asyncio.create_task(self._periodic_flush())

    async def _periodic_flush(self) -> None:
        while True:
            await asyncio.sleep(self.flush_interval)
            if self._queue:
                await self.flush()

    def log_error(
        self,
        error: BaseException | str,
        *,
        context: dict[str, Any] | None = None,
        severity: str | None = None,
    ) -> str:
        if isinstance(error, BaseException):
            message = str(error) or type(error).__name__
            resolved_severity = severity or classify_severity(error)
            category = classify_category(error)
            status = getattr(error, "status_code", None)
        else:
            message = error or "Unknown error"
            resolved_severity = severity or "medium"
            category = "system"
            status = None

        entry = {
            "id": f"error_{uuid.uuid4().hex[:12]}",
            "message": message,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "severity": resolved_severity,
            "category": category,
            "status": status if isinstance(status, int) else None,
            "sessionId": self.session_id,
            "context": {"environment": self.environment, **(context or {})},
        }
        self._queue.append(entry)
        logger.debug("Queued client error %s (%s)", entry["id"], resolved_severity)

        if resolved_severity == "critical" or len(self._queue) >= self.batch_size:
            self._schedule_flush()
        return entry["id"]

    def _schedule_flush(self) -> None:
        try:
            task = asyncio.get_running_loop().create_task(self.flush())
        except RuntimeError:
            # No loop running; the next periodic or explicit flush picks the entries up.
            return
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def flush(self) -> int:
        async with self._flush_lock:
            if not self._queue:
                return 0
            batch = list(self._queue)
            self._queue.clear()
            payload = {
                "errors": batch,
                "metadata": {
                    "environment": self.environment,
                    "sessionId": self.session_id,
                    "timestamp": datetime.now(timezone.utc).isoformat(),
                },
            }
            try:
                await with_retry(
                    lambda: self.api.send_errors(payload),
                    max_retries=self.max_retries,
                    base_delay=self.retry_base_delay,
                    jitter=self.retry_base_delay,
                )
            except Exception:
                logger.warning("Failed to send %s errors to monitoring service", len(batch), exc_info=True)
                room = (self._queue.maxlen or len(batch)) - len(self._queue)
                self._queue.extendleft(reversed(batch[-room:] if room > 0 else []))
                return 0
            return len(batch)

    async def close(self) -> None:
        if self._timer_task is not None:
            self._timer_task.cancel()
            await asyncio.gather(self._timer_task, return_exceptions=True)
            self._timer_task = None
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)
        await self.flush()
