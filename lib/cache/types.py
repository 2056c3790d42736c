"""
Core type definitions and protocols for lib.cache

This module contains the fundamental type definitions and protocols
used throughout the cache library.
"""

from typing import Callable, Generic, Optional, Protocol, TypeVar

K = TypeVar("K")  # Key type - can be any hashable type
V = TypeVar("V")  # Value type - can be any type
T = TypeVar("T", contravariant=True)  # Generic object type for key generators

ClockFunc = Callable[[], float]
"""Returns current time in seconds (``time.time`` compatible)"""


class KeyGenerator(Protocol[T]):
    """
    Protocol for generating cache keys from objects.

    Generated keys are plain strings, so prefix invalidation works on the
    generated form of the key.

    Example:
        >>> class StringKeyGenerator(KeyGenerator[str]):
        ...     def generateKey(self, obj: str) -> str:
        ...         return obj
    """

    def generateKey(self, obj: T) -> str:
        """
        Generate string cache key from object.

        Args:
            obj: The object to convert to a cache key

        Returns:
            str: A string representation suitable for use as a cache key
        """
        ...


class CacheEntry(Generic[V]):
    """
    Single stored value with its fetch timestamp and freshness window.

    Attributes:
        value: Cached value
        fetchedAt: Unix timestamp (seconds) when the value was stored
        ttl: Freshness window in seconds, None means the cache default
    """

    __slots__ = ("value", "fetchedAt", "ttl")

    def __init__(self, value: V, fetchedAt: float, ttl: Optional[int] = None) -> None:
        self.value = value
        self.fetchedAt = fetchedAt
        self.ttl = ttl

    def isExpired(self, now: float, ttl: Optional[int]) -> bool:
        """Entry is expired once it is strictly older than the window"""
        if ttl is None:
            return False
        if ttl <= 0:
            return True
        return now - self.fetchedAt > ttl

    def __repr__(self) -> str:
        return f"CacheEntry(fetchedAt={self.fetchedAt}, ttl={self.ttl})"
