"""
Tests for DictCache implementation

Covers:
- Basic cache operations (get, set, clear)
- Per-entry freshness windows and lookup overrides
- Prefix invalidation
- Size limits and eviction
- Value isolation (deep copies)
- Cache statistics
"""

import pytest

from lib.cache import DictCache, StringKeyGenerator


class FakeClock:
    """Manually advanced time source"""

    def __init__(self, now: float = 1_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return DictCache[str, dict](keyGenerator=StringKeyGenerator(), defaultTtl=3600, clock=clock)


class TestDictCacheBasic:
    """Test basic cache operations"""

    def test_cache_initialization(self):
        """Default parameters"""
        cache = DictCache[str, str]()

        assert isinstance(cache._keyGenerator, StringKeyGenerator)
        assert cache._defaultTtl == 3600
        assert cache._maxSize == 1000

    @pytest.mark.asyncio
    async def test_basic_set_and_get(self, cache):
        assert await cache.set("key1", {"temp": 10}) is True
        assert await cache.get("key1") == {"temp": 10}

    @pytest.mark.asyncio
    async def test_get_nonexistent_key(self, cache):
        assert await cache.get("nonexistent") is None

    @pytest.mark.asyncio
    async def test_clear_cache(self, cache):
        await cache.set("key1", {"a": 1})
        await cache.set("key2", {"b": 2})

        cache.clear()

        assert await cache.get("key1") is None
        assert await cache.get("key2") is None
        assert cache.getStats()["entries"] == 0

    @pytest.mark.asyncio
    async def test_non_string_key_is_rejected(self, cache):
        """StringKeyGenerator raises, cache reports a miss / failed write"""
        assert await cache.set(123, {"a": 1}) is False  # type: ignore[arg-type]
        assert await cache.get(123) is None  # type: ignore[arg-type]


class TestDictCacheFreshness:
    """Per-entry freshness windows"""

    @pytest.mark.asyncio
    async def test_entry_fresh_within_its_window(self, cache, clock):
        await cache.set("current:london", {"temp": 1}, ttl=300)

        clock.advance(299)
        assert await cache.get("current:london") == {"temp": 1}

        # Exactly at the window boundary is still fresh
        clock.advance(1)
        assert await cache.get("current:london") == {"temp": 1}

    @pytest.mark.asyncio
    async def test_entry_expires_after_its_window(self, cache, clock):
        await cache.set("current:london", {"temp": 1}, ttl=300)

        clock.advance(301)
        assert await cache.get("current:london") is None
        # Expired entry is dropped
        assert cache.keys() == []

    @pytest.mark.asyncio
    async def test_different_windows_per_entry(self, cache, clock):
        await cache.set("current:london", {"kind": "current"}, ttl=300)
        await cache.set("forecast:london", {"kind": "forecast"}, ttl=1800)

        clock.advance(600)
        assert await cache.get("current:london") is None
        assert await cache.get("forecast:london") == {"kind": "forecast"}

    @pytest.mark.asyncio
    async def test_default_ttl_applies_without_entry_window(self, clock):
        cache = DictCache[str, str](defaultTtl=10, clock=clock)
        await cache.set("key", "value")

        clock.advance(11)
        assert await cache.get("key") is None

    @pytest.mark.asyncio
    async def test_lookup_ttl_override_keeps_entry(self, cache, clock):
        """A stricter lookup window misses, but does not drop the entry"""
        await cache.set("key", {"v": 1}, ttl=600)
        clock.advance(120)

        assert await cache.get("key", ttl=60) is None
        assert await cache.get("key") == {"v": 1}

    @pytest.mark.asyncio
    async def test_ttl_zero_means_immediate_expiration(self, cache):
        await cache.set("key", {"v": 1}, ttl=0)
        assert await cache.get("key") is None


class TestDictCacheInvalidation:
    """Prefix invalidation"""

    @pytest.mark.asyncio
    async def test_invalidate_by_prefix(self, cache):
        await cache.set("current:london:metric:en", {"v": 1})
        await cache.set("current:london:imperial:en", {"v": 2})
        await cache.set("current:paris:metric:en", {"v": 3})
        await cache.set("forecast:51.5074,-0.1278:metric:en", {"v": 4})

        assert cache.invalidate("current:london:") == 2

        assert await cache.get("current:london:metric:en") is None
        assert await cache.get("current:london:imperial:en") is None
        assert await cache.get("current:paris:metric:en") == {"v": 3}
        assert await cache.get("forecast:51.5074,-0.1278:metric:en") == {"v": 4}

    @pytest.mark.asyncio
    async def test_invalidate_all_forecasts(self, cache):
        await cache.set("forecast:1.0,2.0:metric:en", {"v": 1})
        await cache.set("forecast:3.0,4.0:metric:tr", {"v": 2})
        await cache.set("current:london:metric:en", {"v": 3})

        assert cache.invalidate("forecast:") == 2
        assert cache.keys() == ["current:london:metric:en"]

    def test_invalidate_nothing(self, cache):
        assert cache.invalidate("missing:") == 0


class TestDictCacheLimits:
    """Size limits and eviction"""

    @pytest.mark.asyncio
    async def test_size_limit_evicts_oldest(self, clock):
        cache = DictCache[str, int](maxSize=3, clock=clock)
        for i in range(4):
            await cache.set(f"key{i}", i)

        assert await cache.get("key0") is None
        assert await cache.get("key3") == 3
        assert cache.getStats()["entries"] == 3

    @pytest.mark.asyncio
    async def test_rewrite_moves_entry_to_end(self, clock):
        cache = DictCache[str, int](maxSize=2, clock=clock)
        await cache.set("a", 1)
        await cache.set("b", 2)
        await cache.set("a", 10)
        await cache.set("c", 3)

        assert await cache.get("a") == 10
        assert await cache.get("b") is None


class TestDictCacheIsolation:
    """Values are never shared mutably"""

    @pytest.mark.asyncio
    async def test_stored_value_is_copied(self, cache):
        value = {"temp": 10, "nested": {"a": 1}}
        await cache.set("key", value)
        value["nested"]["a"] = 2

        assert (await cache.get("key"))["nested"]["a"] == 1

    @pytest.mark.asyncio
    async def test_returned_value_is_copied(self, cache):
        await cache.set("key", {"temp": 10})
        first = await cache.get("key")
        first["temp"] = 99

        assert (await cache.get("key"))["temp"] == 10


class TestDictCacheStats:
    @pytest.mark.asyncio
    async def test_get_stats(self, cache, clock):
        await cache.set("key", {"v": 1}, ttl=10)
        await cache.get("key")
        await cache.get("missing")

        stats = cache.getStats()
        assert stats["entries"] == 1
        assert stats["hits"] == 1
        assert stats["misses"] == 1
        assert stats["defaultTtl"] == 3600

        clock.advance(11)
        assert cache.getStats()["entries"] == 0
