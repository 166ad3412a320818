from __future__ import annotations

from redis import asyncio as aioredis

from voltline.core.config import settings

redis_client = aioredis.from_url(settings.redis_url, decode_responses=True)
