"""In-memory cache backend with per-entry TTL.

Each stored entry gets an expiry timer on the running event loop; the timer
is restarted whenever the same key is stored again. Expiry is also checked
on every fetch, so an entry past its deadline is never returned even when no
loop was available to run its timer.

Values are copied on store and on fetch; callers never share a cached object.
"""

import asyncio
import copy
import logging
import threading
import time
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Dict, Optional

from seriesdb.domain.errors import ConfigurationError
from seriesdb.domain.interfaces.cache import CacheBackend
from seriesdb.domain.models.common import CacheKey

logger = logging.getLogger(__name__)

DEFAULT_TTL = timedelta(hours=1)
DEFAULT_MAX_ITEMS = 1000


@dataclass
class CacheEntry:
    """Internal representation of a cache entry with expiry."""
    key: CacheKey
    value: Any
    expires_at: float  # time.monotonic() deadline


class MemoryCache(CacheBackend):
    """Process-local cache. Best-effort: entries are lost on restart."""

    def __init__(self, ttl: timedelta = DEFAULT_TTL, max_items: Optional[int] = DEFAULT_MAX_ITEMS):
        """Initializes the memory cache.

        Args:
            ttl: Lifetime of an entry after its last store. Must be positive.
            max_items: Upper bound on stored entries; the oldest inserted are
                evicted first. None or 0 disables the bound.

        Raises:
            ConfigurationError: If ttl is not positive.
        """
        if ttl.total_seconds() <= 0:
            raise ConfigurationError(f"Cache ttl must be positive, got {ttl}")
        self.ttl_seconds = ttl.total_seconds()
        self.max_items = max_items
        self._entries: Dict[CacheKey, CacheEntry] = {}
        self._timers: Dict[CacheKey, asyncio.TimerHandle] = {}
        self._lock = threading.Lock()
        logger.debug(f"MemoryCache initialized (ttl={self.ttl_seconds}s, max={max_items})")

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def _cancel_timer(self, key: CacheKey) -> None:
        timer = self._timers.pop(key, None)
        if timer is not None:
            timer.cancel()

    def _drop(self, key: CacheKey) -> Optional[CacheEntry]:
        self._cancel_timer(key)
        return self._entries.pop(key, None)

    def _expire(self, key: CacheKey, deadline: float) -> None:
        """Timer callback. Ignores keys that were re-stored after scheduling."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is not None and entry.expires_at <= deadline:
                del self._entries[key]
                self._timers.pop(key, None)
                logger.debug(f"Cache entry expired: key={key}")

    def _prune(self) -> None:
        """Evicts the oldest inserted entries while over the size limit."""
        if not self.max_items:
            return
        while len(self._entries) > self.max_items:
            oldest_key = next(iter(self._entries))
            self._drop(oldest_key)
            logger.debug(f"Evicted cache entry over size limit: key={oldest_key}")

    # --- CacheBackend Interface Implementation ---

    async def fetch(self, key: CacheKey) -> Optional[Any]:
        now = time.monotonic()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if now >= entry.expires_at:
                self._drop(key)
                return None
            return copy.deepcopy(entry.value)

    async def store(self, key: CacheKey, value: Any) -> Any:
        expires_at = time.monotonic() + self.ttl_seconds
        with self._lock:
            self._drop(key)
            self._entries[key] = CacheEntry(key=key, value=copy.deepcopy(value), expires_at=expires_at)
            loop = asyncio.get_running_loop()
            self._timers[key] = loop.call_later(self.ttl_seconds, self._expire, key, expires_at)
            self._prune()
        logger.debug(f"Stored cache entry: key={key}")
        return value

    async def remove(self, key: CacheKey) -> Optional[Any]:
        with self._lock:
            entry = self._drop(key)
        if entry is None:
            return None
        logger.debug(f"Removed cache entry: key={key}")
        if time.monotonic() >= entry.expires_at:
            return None
        return entry.value

    async def clear(self) -> None:
        with self._lock:
            for timer in self._timers.values():
                timer.cancel()
            self._timers.clear()
            self._entries.clear()
        logger.info("Cleared in-memory cache.")

    async def close(self) -> None:
        await self.clear()
