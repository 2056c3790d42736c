"""
Request cache: keyed memoization of gateway calls with per-kind freshness
windows and in-flight request deduplication.
"""

import asyncio
import copy
import logging
from typing import Any, Awaitable, Callable, Dict, Optional, TypeVar

from lib.cache import CacheInterface, DictCache, StringKeyGenerator

from .cache_keys import CacheKind, kindOf

logger = logging.getLogger(__name__)

DEFAULT_TTLS: Dict[CacheKind, int] = {
    CacheKind.CURRENT: 300,  # 5 minutes
    CacheKind.FORECAST: 1800,  # 30 minutes
}

T = TypeVar("T")

Loader = Callable[[], Awaitable[T]]


class RequestCache:
    """
    Memoizes gateway calls by key.

    Concurrent ``fetch`` calls for the same missing key share one loader
    call and all get its value (or its error). Failed loads are not stored.
    Callers always get their own deep copy of the value.

    Example:
        >>> requestCache = RequestCache()
        >>> weather = await requestCache.fetch(
        ...     "current:london:metric:en",
        ...     lambda: client.getCurrentByCity("London", Units.METRIC, "en"),
        ... )
    """

    def __init__(
        self,
        cache: Optional[CacheInterface[str, Any]] = None,
        ttls: Optional[Dict[CacheKind, int]] = None,
    ):
        """
        Args:
            cache: Storage for values (default: DictCache)
            ttls: Freshness window per kind in seconds, merged over DEFAULT_TTLS
        """
        self.cache: CacheInterface[str, Any] = (
            cache if cache is not None else DictCache[str, Any](keyGenerator=StringKeyGenerator())
        )
        self.ttls: Dict[CacheKind, int] = {**DEFAULT_TTLS, **(ttls or {})}
        self._inFlight: Dict[str, asyncio.Task] = {}
        self.loads = 0

    def ttlFor(self, key: str) -> Optional[int]:
        """Freshness window for key by its kind, None if the kind is unknown"""
        try:
            return self.ttls[kindOf(key)]
        except ValueError:
            return None

    async def get(self, key: str) -> Optional[Any]:
        """Cached value if fresh, None otherwise"""
        return await self.cache.get(key)

    async def set(self, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        """Store value, freshness window defaults to the one of the key kind"""
        return await self.cache.set(key, value, ttl if ttl is not None else self.ttlFor(key))

    def _detachInFlight(self, keyPrefix: str) -> int:
        """Forget in-flight loads under prefix, their results are not stored"""
        keys = [key for key in self._inFlight if key.startswith(keyPrefix)]
        for key in keys:
            del self._inFlight[key]
        return len(keys)

    def invalidate(self, keyPrefix: str) -> int:
        """
        Drop entries under prefix. Loads for these keys that are still running
        finish for their current callers but are neither stored nor joinable.
        """
        detached = self._detachInFlight(keyPrefix)
        removed = self.cache.invalidate(keyPrefix)
        logger.debug(
            f"Invalidated {removed} request cache entries by prefix '{keyPrefix}', detached {detached} loads"
        )
        return removed

    def clear(self) -> None:
        self._detachInFlight("")
        self.cache.clear()

    def isInFlight(self, key: str) -> bool:
        return key in self._inFlight

    async def _load(self, key: str, loader: Loader[Any], ttl: Optional[int]) -> Any:
        self.loads += 1
        value = await loader()
        if self._inFlight.get(key) is asyncio.current_task():
            await self.set(key, value, ttl)
        else:
            logger.debug(f"Load of '{key}' was invalidated while running, not storing it")
        return value

    async def fetch(self, key: str, loader: Loader[T], ttl: Optional[int] = None, force: bool = False) -> T:
        """
        Get value for key, calling ``loader`` on a miss.

        Args:
            key: Cache key
            loader: Coroutine factory producing the value
            ttl: Freshness window for the stored value (default: by key kind)
            force: Skip the freshness check, the result is still stored

        Returns:
            Deep copy of the value

        Raises:
            Whatever ``loader`` raised
        """
        if not force:
            cached = await self.cache.get(key)
            if cached is not None:
                return cached

        task = self._inFlight.get(key)
        if task is None:
            logger.debug(f"Loading '{key}' (force={force})")
            task = asyncio.ensure_future(self._load(key, loader, ttl))
            self._inFlight[key] = task
            task.add_done_callback(lambda doneTask: self._dropInFlight(key, doneTask))
        else:
            logger.debug(f"Joining in-flight request for '{key}'")

        # Shielded, so a cancelled caller does not cancel the load for others
        value = await asyncio.shield(task)
        return copy.deepcopy(value)

    def _dropInFlight(self, key: str, task: asyncio.Task) -> None:
        if self._inFlight.get(key) is task:
            del self._inFlight[key]
        if not task.cancelled() and task.exception() is not None:
            logger.debug(f"Load of '{key}' failed: {task.exception()}")

    def getStats(self) -> Dict[str, Any]:
        return {
            **self.cache.getStats(),
            "loads": self.loads,
            "inFlight": len(self._inFlight),
        }
