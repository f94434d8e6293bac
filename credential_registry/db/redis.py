"""Redis connection for shared rate-limit buckets.

Mirrors engine.py: with REDIS_URL set, a pooled asyncio client is
created at import time; without it `redis_pool` is None and the rate
limiter falls back to per-process buckets.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

import redis.asyncio as aioredis

from credential_registry.core.config import SETTINGS

logger = logging.getLogger(__name__)

if SETTINGS.redis_url:
    redis_pool: aioredis.Redis | None = aioredis.from_url(  # type: ignore[type-arg]
        SETTINGS.redis_url,
        decode_responses=True,
        max_connections=20,
    )
else:
    redis_pool = None


async def check_redis() -> bool | None:
    """Ping Redis.  None when not configured."""
    if redis_pool is None:
        return None
    try:
        await redis_pool.ping()  # type: ignore[misc]
    except Exception:
        logger.warning("Redis ping failed", exc_info=True)
        return False
    return True


@asynccontextmanager
async def lifespan_redis():
    """Verify connectivity on startup, release the pool on shutdown.

    A failed ping is logged, not raised: the API still serves, and rate
    limiting degrades to whatever the limiter can reach.
    """
    if redis_pool is None:
        logger.info("No REDIS_URL configured, rate limits are per process")
        yield
        return

    if await check_redis():
        logger.info("Redis connected: %s", SETTINGS.redis_url)
    else:
        logger.error("Redis unreachable on startup: %s", SETTINGS.redis_url)

    yield

    await redis_pool.aclose()
    logger.info("Redis connection pool closed")
