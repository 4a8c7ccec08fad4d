"""Cache backends.

Provides concrete implementations of the CacheBackend interface (in-memory
and disk-backed) and selects one from configuration.
Bounded Context: Cache Management
"""

from seriesdb.domain.errors import ConfigurationError
from seriesdb.domain.interfaces.cache import CacheBackend
from seriesdb.domain.models.config import CacheConfig
from seriesdb.infrastructure.cache.disk_cache import DiskCache
from seriesdb.infrastructure.cache.memory_cache import MemoryCache

__all__ = ["create_cache", "DiskCache", "MemoryCache"]

def create_cache(config: CacheConfig) -> CacheBackend:
    """Instantiates the backend named by ``config.type``."""
    if config.type == "memory":
        return MemoryCache(ttl=config.ttl, max_items=config.max_items)
    if config.type == "disk":
        return DiskCache(ttl=config.ttl, directory=config.directory)
    raise ConfigurationError(f"Unknown cache type: {config.type!r}")
