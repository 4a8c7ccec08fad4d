"""Sliding-window statistics for cache hits, misses and requests.

Every increment is paired with a decrement that becomes due one interval
later. Pending decrements sit in a deque ordered by deadline and are applied
lazily before each read or write, which gives an approximate trailing window
without keeping per-request history beyond the window itself.
"""

import logging
import threading
import time
from collections import deque
from datetime import timedelta
from typing import Callable, Deque, Dict, List, Optional, Tuple

from seriesdb.domain.models.common import CacheKey
from seriesdb.domain.models.config import DEFAULT_INSTANCE_NAME
from seriesdb.domain.models.stats import CacheStats, KeyStat, KeyStats

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL = timedelta(minutes=1)
DEFAULT_THRESHOLD = 10

# Counter targets in the decrement queue
_HITS = "hits"
_MISSES = "misses"
_KEY_REQUEST = "request"
_KEY_HIT = "hit"
_KEY_MISS = "miss"

_PendingDecrement = Tuple[float, str, Optional[CacheKey]]


class StatsCollector:
    """Decaying hit/miss/request counters, global and per cache key."""

    def __init__(
        self,
        interval: timedelta = DEFAULT_INTERVAL,
        threshold: int = DEFAULT_THRESHOLD,
        name: str = DEFAULT_INSTANCE_NAME,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initializes the collector.

        Args:
            interval: Length of the trailing window.
            threshold: Requests a key needs within the window to be reported
                individually. A falsy value disables per-key tracking.
            name: Name of the database instance, reported as ``source``.
            clock: Monotonic time source in seconds.
        """
        self.interval_seconds = interval.total_seconds()
        self.threshold = threshold
        self.name = name
        self._clock = clock
        self._hits = 0
        self._misses = 0
        self._keys: Dict[CacheKey, KeyStat] = {}
        self._pending: Deque[_PendingDecrement] = deque()
        self._lock = threading.Lock()

    @property
    def tracks_keys(self) -> bool:
        return bool(self.threshold) and self.threshold > 0

    def _apply_due_decrements(self) -> None:
        """Reverts every increment whose window has elapsed. Caller holds the lock."""
        now = self._clock()
        while self._pending and self._pending[0][0] <= now:
            _, target, key = self._pending.popleft()
            if target == _HITS:
                self._hits -= 1
            elif target == _MISSES:
                self._misses -= 1
            else:
                stat = self._keys[key]
                setattr(stat, target, getattr(stat, target) - 1)

    def _increment(self, target: str, key: Optional[CacheKey] = None) -> None:
        if target == _HITS:
            self._hits += 1
        elif target == _MISSES:
            self._misses += 1
        else:
            stat = self._keys.setdefault(key, KeyStat())
            setattr(stat, target, getattr(stat, target) + 1)
        self._pending.append((self._clock() + self.interval_seconds, target, key))

    def _record_request(self, key: CacheKey) -> None:
        if self.tracks_keys:
            self._increment(_KEY_REQUEST, key)

    def record_request(self, key: CacheKey) -> None:
        """Records a request for a key, whether or not the cache was used."""
        with self._lock:
            self._apply_due_decrements()
            self._record_request(key)

    def record_hit(self, key: CacheKey) -> None:
        """Records a cache hit (and the request it implies)."""
        with self._lock:
            self._apply_due_decrements()
            self._record_request(key)
            self._increment(_HITS)
            if self.tracks_keys:
                self._increment(_KEY_HIT, key)

    def record_miss(self, key: CacheKey) -> None:
        """Records a cache miss (and the request it implies)."""
        with self._lock:
            self._apply_due_decrements()
            self._record_request(key)
            self._increment(_MISSES)
            if self.tracks_keys:
                self._increment(_KEY_MISS, key)

    def snapshot(self) -> Optional[CacheStats]:
        """Returns the stats of the trailing window, or None if nothing was looked up."""
        with self._lock:
            self._apply_due_decrements()
            total = self._hits + self._misses
            if total == 0:
                return None
            stats: CacheStats = {
                "source": self.name,
                "total": total,
                "hit": {"count": self._hits, "ratio": self._hits / total},
                "miss": {"count": self._misses, "ratio": self._misses / total},
            }
            if self.tracks_keys:
                keys: List[KeyStats] = [
                    {"key": key, "request": stat.request, "hit": stat.hit, "miss": stat.miss}
                    for key, stat in self._keys.items()
                    if stat.request >= self.threshold
                ]
                if keys:
                    stats["keys"] = keys
            return stats

    def clear(self) -> None:
        """Drops all pending decrements and resets every counter."""
        with self._lock:
            self._pending.clear()
            self._hits = 0
            self._misses = 0
            self._keys.clear()
        logger.debug(f"{self.name}: Cache statistics cleared")
