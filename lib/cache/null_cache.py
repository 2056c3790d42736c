"""
Null cache implementation for lib.cache

This module provides a no-op cache implementation that implements the
CacheInterface but doesn't actually cache anything. Useful for disabling
caching or for tests where every lookup must reach the upstream service.
"""

from typing import Any, Dict, Optional

from .interface import CacheInterface
from .types import K, V


class NullCache(CacheInterface[K, V]):
    """No-op cache that never stores anything"""

    async def get(self, key: K, ttl: Optional[int] = None) -> Optional[V]:
        """Always a miss"""
        return None

    async def set(self, key: K, value: V, ttl: Optional[int] = None) -> bool:
        """Accept and drop the value"""
        return True

    def invalidate(self, keyPrefix: str) -> int:
        return 0

    def clear(self) -> None:
        pass

    def getStats(self) -> Dict[str, Any]:
        return {"enabled": False}
