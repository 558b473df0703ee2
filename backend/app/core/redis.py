"""Shared Redis connection."""

from functools import lru_cache

import redis

from app.config import settings


@lru_cache(maxsize=1)
def get_redis() -> redis.Redis:
    """Process-wide client. Connects lazily, so this never fails at import time."""
    return redis.from_url(
        settings.REDIS_URL,
        socket_connect_timeout=1,
        socket_timeout=1,
        decode_responses=True,
    )
