"""
In-process analysis cache with per-entry expiry.

Entries are keyed by repository URL but remember the user that produced
them; a lookup from any other user is treated as a miss. The map is only
touched from the event loop; callers offload blocking work but never cache
access, so no locking is needed. Expired entries are evicted lazily on read
and by a periodic sweep started with ``start()``.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from app.config import settings

logger = logging.getLogger(__name__)


@dataclass
class CacheEntry:
    owner: Optional[str]
    value: Any
    expires_at: float


class AnalysisCache:
    def __init__(
        self,
        default_ttl: Optional[int] = None,
        sweep_interval: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.default_ttl = default_ttl or settings.ANALYSIS_CACHE_TTL_SECONDS
        self.sweep_interval = sweep_interval or settings.CACHE_SWEEP_INTERVAL_SECONDS
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self._sweep_task: Optional[asyncio.Task] = None

    @staticmethod
    def repo_key(github_url: str) -> str:
        return f"repo:{github_url}"

    def _live_entry(self, key: str) -> Optional[CacheEntry]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() > entry.expires_at:
            del self._entries[key]
            return None
        return entry

    def get(self, key: str, owner: Optional[str] = None) -> Any:
        """Return the cached value, or None when missing, expired or owned by someone else."""
        entry = self._live_entry(key)
        if entry is None:
            return None
        if owner is not None and entry.owner != owner:
            return None
        logger.debug("Cache hit: %s", key)
        return entry.value

    def set(
        self,
        key: str,
        value: Any,
        owner: Optional[str] = None,
        ttl: Optional[int] = None,
    ) -> None:
        ttl = ttl or self.default_ttl
        self._entries[key] = CacheEntry(owner=owner, value=value, expires_at=self._clock() + ttl)
        logger.debug("Cache set: %s (TTL: %ss)", key, ttl)

    def delete(self, key: str) -> bool:
        deleted = self._entries.pop(key, None) is not None
        if deleted:
            logger.debug("Cache deleted: %s", key)
        return deleted

    def has(self, key: str) -> bool:
        return self._live_entry(key) is not None

    def clear(self) -> None:
        self._entries.clear()
        logger.info("Cache cleared")

    def size(self) -> int:
        return len(self._entries)

    def cleanup(self) -> int:
        """Remove every expired entry. Returns the number removed."""
        now = self._clock()
        expired = [key for key, entry in self._entries.items() if now > entry.expires_at]
        for key in expired:
            del self._entries[key]
        if expired:
            logger.debug("Cache cleanup: removed %d expired entries", len(expired))
        return len(expired)

    def stats(self) -> Dict[str, int]:
        now = self._clock()
        expired = sum(1 for entry in self._entries.values() if now > entry.expires_at)
        return {"size": len(self._entries), "expired": expired}

    async def _sweep_loop(self) -> None:
        while True:
            await asyncio.sleep(self.sweep_interval)
            try:
                self.cleanup()
            except Exception as e:
                logger.error("Cache sweep failed: %s", e)

    def start(self) -> None:
        """Start the periodic sweep. Must be called from a running event loop."""
        if self._sweep_task is None or self._sweep_task.done():
            self._sweep_task = asyncio.get_running_loop().create_task(self._sweep_loop())
            logger.info("Cache sweep started (every %ss)", self.sweep_interval)

    async def stop(self) -> None:
        if self._sweep_task is None:
            return
        self._sweep_task.cancel()
        try:
            await self._sweep_task
        except asyncio.CancelledError:
            pass
        self._sweep_task = None
        logger.info("Cache sweep stopped")

    @property
    def running(self) -> bool:
        return self._sweep_task is not None and not self._sweep_task.done()
