"""
lib.cache - Generic cache library

Core Components:
- CacheInterface: Abstract base class for all cache implementations
- DictCache: In-memory cache with per-entry TTL and prefix invalidation
- NullCache: No-op cache for testing and debugging
- StringKeyGenerator: Pass-through key generator

Example Usage:
    >>> from lib.cache import DictCache, StringKeyGenerator
    >>>
    >>> cache = DictCache[str, dict](keyGenerator=StringKeyGenerator(), defaultTtl=300)
    >>> await cache.set("current:london:metric:en", {"temp": 12.5})
    >>> weather = await cache.get("current:london:metric:en")
"""

from .dict_cache import DictCache
from .interface import CacheInterface
from .key_generator import StringKeyGenerator
from .null_cache import NullCache
from .types import CacheEntry, ClockFunc, K, KeyGenerator, T, V

__all__ = [
    # Core types
    "CacheEntry",
    "ClockFunc",
    "KeyGenerator",
    "K",
    "V",
    "T",
    # Interfaces
    "CacheInterface",
    # Implementations
    "DictCache",
    "NullCache",
    # Key generators
    "StringKeyGenerator",
]
