from __future__ import annotations

import asyncio
import logging
import random
from collections.abc import Awaitable, Callable
from typing import TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _default_retry_if(exc: BaseException) -> bool:
    return getattr(exc, "retryable", True) is not False


def backoff_delay(attempt: int, *, base_delay: float, max_delay: float, factor: float) -> float:
    return min(base_delay * (factor**attempt), max_delay)


async def with_retry(
    fn: Callable[[], Awaitable[T]],
    *,
    max_retries: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 10.0,
    factor: float = 2.0,
    jitter: float = 1.0,
    retry_if: Callable[[BaseException], bool] = _default_retry_if,
) -> T:
    """Await ``fn`` and retry failures with capped exponential backoff.

    ``jitter`` adds up to that many seconds of random delay to each wait.
    The last exception is re-raised once ``max_retries`` retries are spent or
    ``retry_if`` rejects the error.
    """
    attempt = 0
    while True:
        try:
            return await fn()
        except Exception as exc:
            if attempt >= max_retries or not retry_if(exc):
                raise
            delay = backoff_delay(attempt, base_delay=base_delay, max_delay=max_delay, factor=factor)
            delay += random.uniform(0, jitter) if jitter > 0 else 0.0
            logger.debug("Retrying after %s (attempt %s, waiting %.2fs)", exc, attempt + 1, delay)
            await asyncio.sleep(delay)
            attempt += 1
