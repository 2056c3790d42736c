"""
Dictionary-based in-memory cache implementation for lib.cache

Entries keep their own fetch timestamp and freshness window, oldest entries
are evicted once ``maxSize`` is exceeded.
"""

import copy
import logging
import time
from collections import OrderedDict
from threading import RLock
from typing import Any, Dict, Optional

from .interface import CacheInterface
from .key_generator import StringKeyGenerator
from .types import CacheEntry, ClockFunc, K, KeyGenerator, V

logger = logging.getLogger(__name__)


class DictCache(CacheInterface[K, V]):
    """
    In-memory cache with per-entry TTL and prefix invalidation.

    Values are deep-copied on the way in and out, so callers never share
    mutable state with the cache.

    Example:
        >>> cache = DictCache[str, dict](keyGenerator=StringKeyGenerator(), defaultTtl=600)
        >>> await cache.set("forecast:51.5074,-0.1278:metric:en", series, ttl=1800)
        >>> removed = cache.invalidate("forecast:")
    """

    def __init__(
        self,
        keyGenerator: Optional[KeyGenerator[K]] = None,
        defaultTtl: Optional[int] = 3600,
        maxSize: Optional[int] = 1000,
        copyValues: bool = True,
        clock: ClockFunc = time.time,
    ):
        """
        Initialize cache.

        Args:
            keyGenerator: Converts keys to strings (default: StringKeyGenerator)
            defaultTtl: Freshness window for entries stored without one (None - never expire)
            maxSize: Max number of entries (None - unlimited)
            copyValues: Deep-copy values on set/get
            clock: Time source, seconds
        """
        self._keyGenerator: KeyGenerator[K] = keyGenerator if keyGenerator is not None else StringKeyGenerator()
        self._defaultTtl = defaultTtl
        self._maxSize = maxSize
        self._copyValues = copyValues
        self._clock = clock
        self._entries: "OrderedDict[str, CacheEntry[V]]" = OrderedDict()
        self._lock = RLock()
        self._hits = 0
        self._misses = 0

    def _copy(self, value: V) -> V:
        return copy.deepcopy(value) if self._copyValues else value

    def _effectiveTtl(self, entry: CacheEntry[V], ttl: Optional[int]) -> Optional[int]:
        if ttl is not None:
            return ttl
        if entry.ttl is not None:
            return entry.ttl
        return self._defaultTtl

    def _cleanupExpired(self) -> None:
        """Remove expired entries (by their own windows)"""
        now = self._clock()
        expiredKeys = [
            key for key, entry in self._entries.items() if entry.isExpired(now, self._effectiveTtl(entry, None))
        ]
        for key in expiredKeys:
            del self._entries[key]
        if expiredKeys:
            logger.debug(f"Cleaned up {len(expiredKeys)} expired entries")

    async def get(self, key: K, ttl: Optional[int] = None) -> Optional[V]:
        try:
            _key = self._keyGenerator.generateKey(key)
        except Exception as e:
            logger.error(f"Failed to generate cache key for {key!r}: {e}")
            return None

        with self._lock:
            entry = self._entries.get(_key)
            if entry is None:
                self._misses += 1
                logger.debug(f"Cache miss: {_key}")
                return None

            if entry.isExpired(self._clock(), self._effectiveTtl(entry, ttl)):
                # Do not drop it on lookup-time override, entry may still be fresh by its own window
                if ttl is None:
                    del self._entries[_key]
                self._misses += 1
                logger.debug(f"Cache entry expired: {_key}")
                return None

            self._hits += 1
            logger.debug(f"Cache hit: {_key}")
            return self._copy(entry.value)

    async def set(self, key: K, value: V, ttl: Optional[int] = None) -> bool:
        try:
            _key = self._keyGenerator.generateKey(key)
        except Exception as e:
            logger.error(f"Failed to generate cache key for {key!r}: {e}")
            return False

        with self._lock:
            if _key in self._entries:
                self._entries.move_to_end(_key)
            self._entries[_key] = CacheEntry(self._copy(value), self._clock(), ttl)

            if self._maxSize is not None and len(self._entries) > self._maxSize:
                self._cleanupExpired()
                while len(self._entries) > self._maxSize:
                    evictedKey, _ = self._entries.popitem(last=False)
                    logger.debug(f"Evicted oldest cache entry: {evictedKey}")
        return True

    def invalidate(self, keyPrefix: str) -> int:
        with self._lock:
            keys = [key for key in self._entries if key.startswith(keyPrefix)]
            for key in keys:
                del self._entries[key]
        logger.debug(f"Invalidated {len(keys)} entries with prefix '{keyPrefix}'")
        return len(keys)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
        logger.debug("Cleared all cache data")

    def keys(self) -> list[str]:
        """Generated keys of all currently stored entries (expired ones included)"""
        with self._lock:
            return list(self._entries.keys())

    def getStats(self) -> Dict[str, Any]:
        with self._lock:
            self._cleanupExpired()
            return {
                "entries": len(self._entries),
                "maxSize": self._maxSize,
                "defaultTtl": self._defaultTtl,
                "hits": self._hits,
                "misses": self._misses,
                "threadSafe": True,
            }
