"""Disk-backed cache backend built on `diskcache`.

Shares entries between processes on the same host. Expiry is delegated to
diskcache's per-item ``expire``; reads never extend it.
"""

import logging
import sqlite3
from datetime import timedelta
from pathlib import Path
from typing import Any, Optional

import diskcache as dc

from seriesdb.domain.errors import CacheBackendError, ConfigurationError
from seriesdb.domain.interfaces.cache import CacheBackend
from seriesdb.domain.models.common import CacheKey

logger = logging.getLogger(__name__)

DEFAULT_CACHE_DIR = Path.home() / ".seriesdb" / "cache"

_BACKEND_ERRORS = (dc.Timeout, sqlite3.Error, OSError)


class DiskCache(CacheBackend):
    """Cache backend persisting entries in a diskcache directory."""

    def __init__(self, ttl: timedelta, directory: Optional[Path] = None):
        """Initializes the disk cache.

        Args:
            ttl: Lifetime of an entry after its last store. Must be positive.
            directory: Cache directory, created if missing.

        Raises:
            ConfigurationError: If ttl is not positive.
            CacheBackendError: If the cache directory cannot be opened.
        """
        if ttl.total_seconds() <= 0:
            raise ConfigurationError(f"Cache ttl must be positive, got {ttl}")
        self.ttl_seconds = ttl.total_seconds()
        self.directory = Path(directory) if directory else DEFAULT_CACHE_DIR
        try:
            self._cache = dc.Cache(str(self.directory), timeout=1)
        except _BACKEND_ERRORS as e:
            logger.error(f"Failed to open disk cache at {self.directory}: {e}", exc_info=True)
            raise CacheBackendError("open", None, e) from e
        logger.info(f"Initialized disk cache at: {self._cache.directory} with TTL: {self.ttl_seconds}s")

    async def fetch(self, key: CacheKey) -> Optional[Any]:
        try:
            return self._cache.get(key, default=None)
        except _BACKEND_ERRORS as e:
            raise CacheBackendError("fetch", key, e) from e

    async def store(self, key: CacheKey, value: Any) -> Any:
        # Client responses wrap a plain body; only the body is picklable
        payload = getattr(value, "body", value)
        try:
            self._cache.set(key, payload, expire=self.ttl_seconds)
        except _BACKEND_ERRORS as e:
            raise CacheBackendError("store", key, e) from e
        logger.debug(f"Stored item in disk cache: key={key}")
        return value

    async def remove(self, key: CacheKey) -> Optional[Any]:
        try:
            return self._cache.pop(key, default=None)
        except _BACKEND_ERRORS as e:
            raise CacheBackendError("remove", key, e) from e

    async def clear(self) -> None:
        try:
            self._cache.clear()
        except _BACKEND_ERRORS as e:
            raise CacheBackendError("clear", None, e) from e
        logger.info(f"Cleared disk cache at: {self.directory}")

    async def close(self) -> None:
        """Closes the handle on the cache directory. Stored entries are kept."""
        self._cache.close()
        logger.debug(f"Closed disk cache at: {self.directory}")
