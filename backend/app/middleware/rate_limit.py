"""
Fixed-window rate limiting backed by Redis.

Each policy counts requests per identifier (the authenticated user id, or the
client IP for anonymous endpoints) in a window of ``window_seconds``. When
Redis is unreachable or limiting is disabled, requests are let through with
a warning.
"""

import hashlib
import logging
from dataclasses import dataclass
from typing import Callable, Iterator, Optional, Tuple

import redis
from fastapi import Depends, Request

from app.config import settings
from app.core.exceptions import RateLimitError
from app.core.redis import get_redis
from app.middleware.auth import get_current_user

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RateLimitPolicy:
    name: str
    limit: int
    window_seconds: int
    message: str
    skip_successful: bool = False


GENERAL_POLICY = RateLimitPolicy(
    name="general",
    limit=100,
    window_seconds=15 * 60,
    message="Too many requests, please try again later",
)
AUTH_POLICY = RateLimitPolicy(
    name="auth",
    limit=5,
    window_seconds=15 * 60,
    message="Too many authentication attempts, please try again later",
    skip_successful=True,
)
ANALYSIS_POLICY = RateLimitPolicy(
    name="analysis",
    limit=10,
    window_seconds=60 * 60,
    message="Analysis rate limit exceeded, please try again later",
)
LOG_CREATE_POLICY = RateLimitPolicy(
    name="log_create",
    limit=30,
    window_seconds=60,
    message="Too many log entries, please slow down",
)


class RateLimiter:
    def __init__(self, redis_client: Optional[redis.Redis] = None, enabled: Optional[bool] = None):
        self._redis = redis_client
        self.enabled = settings.RATE_LIMIT_ENABLED if enabled is None else enabled

    @property
    def redis(self) -> redis.Redis:
        if self._redis is None:
            self._redis = get_redis()
        return self._redis

    @staticmethod
    def _key(policy: RateLimitPolicy, identifier: str) -> str:
        # Hash long identifiers to keep keys reasonable
        if len(identifier) > 64:
            identifier = hashlib.sha256(identifier.encode()).hexdigest()[:32]
        return f"rate_limit:{policy.name}:{identifier}"

    def _retry_after(self, key: str, policy: RateLimitPolicy) -> int:
        ttl = self.redis.ttl(key)
        return ttl if ttl and ttl > 0 else policy.window_seconds

    def hit(self, policy: RateLimitPolicy, identifier: str) -> Tuple[bool, int, int]:
        """
        Count one request and report whether it is within the limit.

        Returns (allowed, requests_in_window, retry_after_seconds).
        """
        if not self.enabled:
            return True, 0, 0

        key = self._key(policy, identifier)
        try:
            count = self.redis.incr(key)
            if count == 1:
                self.redis.expire(key, policy.window_seconds)
            if count > policy.limit:
                return False, count, self._retry_after(key, policy)
            return True, count, 0
        except redis.RedisError as e:
            logger.warning("Rate limiting bypassed - redis unavailable: %s", e)
            return True, 0, 0

    def peek(self, policy: RateLimitPolicy, identifier: str) -> Tuple[bool, int, int]:
        """Check the window without counting the current request."""
        if not self.enabled:
            return True, 0, 0

        key = self._key(policy, identifier)
        try:
            count = int(self.redis.get(key) or 0)
            if count >= policy.limit:
                return False, count, self._retry_after(key, policy)
            return True, count, 0
        except redis.RedisError as e:
            logger.warning("Rate limiting bypassed - redis unavailable: %s", e)
            return True, 0, 0

    def record(self, policy: RateLimitPolicy, identifier: str) -> None:
        if not self.enabled:
            return

        key = self._key(policy, identifier)
        try:
            if self.redis.incr(key) == 1:
                self.redis.expire(key, policy.window_seconds)
        except redis.RedisError as e:
            logger.warning("Failed to record rate limit hit: %s", e)


_limiter: Optional[RateLimiter] = None


def get_rate_limiter() -> RateLimiter:
    global _limiter
    if _limiter is None:
        _limiter = RateLimiter()
    return _limiter


def _client_ip(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


def _reject(policy: RateLimitPolicy, identifier: str, retry_after: int) -> None:
    logger.warning("Rate limit '%s' exceeded for %s", policy.name, identifier)
    raise RateLimitError(policy.message, retry_after=retry_after)


def limit_per_user(policy: RateLimitPolicy) -> Callable:
    """Dependency limiting an authenticated endpoint by user id."""

    def dependency(
        user: dict = Depends(get_current_user),
        limiter: RateLimiter = Depends(get_rate_limiter),
    ) -> None:
        allowed, _, retry_after = limiter.hit(policy, f"user:{user['id']}")
        if not allowed:
            _reject(policy, user["id"], retry_after)

    return dependency


def limit_per_client(policy: RateLimitPolicy) -> Callable:
    """
    Dependency limiting an anonymous endpoint by client IP.

    With ``skip_successful`` only requests that end in an error are counted,
    so repeated failed logins lock out a client but normal use does not.
    """

    def dependency(
        request: Request, limiter: RateLimiter = Depends(get_rate_limiter)
    ) -> Iterator[None]:
        identifier = f"ip:{_client_ip(request)}"

        if not policy.skip_successful:
            allowed, _, retry_after = limiter.hit(policy, identifier)
            if not allowed:
                _reject(policy, identifier, retry_after)
            yield
            return

        allowed, _, retry_after = limiter.peek(policy, identifier)
        if not allowed:
            _reject(policy, identifier, retry_after)
        try:
            yield
        except Exception:
            limiter.record(policy, identifier)
            raise

    return dependency
