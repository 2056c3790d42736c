"""
Abstract cache interface for lib.cache

This module defines the generic CacheInterface that all cache implementations
must follow. It provides a consistent API for different cache backends
while maintaining type safety through Python generics.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Generic, Optional

from .types import K, V


class CacheInterface(ABC, Generic[K, V]):
    """
    Generic cache interface for any key-value storage.

    Every entry carries its own freshness window (TTL) set on write. A lookup
    may override the window, otherwise the entry's own window applies and,
    if the entry has none, the cache default.

    Type Parameters:
        K: The key type (any hashable type)
        V: The value type (any type)

    Example:
        >>> cache = DictCache[str, dict](keyGenerator=StringKeyGenerator(), defaultTtl=3600)
        >>> await cache.set("current:london:metric:en", {"temp": 12.5}, ttl=300)
        >>> weather = await cache.get("current:london:metric:en")
        >>> cache.invalidate("current:london:")
    """

    @abstractmethod
    async def get(self, key: K, ttl: Optional[int] = None) -> Optional[V]:
        """
        Get cached value by key.

        Args:
            key: The cache key to retrieve
            ttl: Optional freshness window override in seconds.

        Returns:
            Optional[V]: The cached value if found and not expired, None otherwise
        """
        pass

    @abstractmethod
    async def set(self, key: K, value: V, ttl: Optional[int] = None) -> bool:
        """
        Store value in cache with the current timestamp.

        Args:
            key: The cache key to store the value under
            value: The value to cache
            ttl: Freshness window for this entry in seconds (None - cache default)

        Returns:
            bool: True if the value was successfully stored, False otherwise
        """
        pass

    @abstractmethod
    def invalidate(self, keyPrefix: str) -> int:
        """
        Remove all entries whose generated key starts with ``keyPrefix``.

        Args:
            keyPrefix: Key prefix, empty string matches everything

        Returns:
            int: Number of removed entries
        """
        pass

    @abstractmethod
    def clear(self) -> None:
        """
        Clear all cached data.
        """
        pass

    @abstractmethod
    def getStats(self) -> Dict[str, Any]:
        """
        Get cache statistics.

        Returns:
            Dict[str, Any]: Implementation-specific statistics
        """
        pass
