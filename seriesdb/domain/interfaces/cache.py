"""Interface for cache backends.

Defines the contract for fetching, storing, removing and clearing cached
responses. Implementations decide where entries live (process memory, disk,
a shared cache) but all of them honor the same TTL semantics.
"""

import abc
from typing import Any, Optional

from ..models.common import CacheKey


class CacheBackend(abc.ABC):
    """Abstract Base Class for cache backends."""

    @abc.abstractmethod
    async def fetch(self, key: CacheKey) -> Optional[Any]:
        """Retrieves a live entry asynchronously.

        A hit does not extend the entry's lifetime; only ``store`` does.

        Args:
            key: The cache key to retrieve.

        Returns:
            The cached value if present and not expired, otherwise None.

        Raises:
            CacheBackendError: If the backend itself fails.
        """
        pass

    @abc.abstractmethod
    async def store(self, key: CacheKey, value: Any) -> Any:
        """Stores a value and (re)starts its expiry timer.

        Args:
            key: The cache key to store the value under.
            value: The value to store.

        Returns:
            The stored value.
        """
        pass

    @abc.abstractmethod
    async def remove(self, key: CacheKey) -> Optional[Any]:
        """Removes an entry and cancels its expiry timer.

        Removing an unknown key is a successful no-op.

        Args:
            key: The cache key to remove.

        Returns:
            The previous value, or None if there was none.
        """
        pass

    @abc.abstractmethod
    async def clear(self) -> None:
        """Cancels every pending expiry and empties the cache."""
        pass

    async def close(self) -> None:
        """Releases the backend when its owner shuts down.

        Entries that live outside the process are kept for the next owner.
        """
        pass
