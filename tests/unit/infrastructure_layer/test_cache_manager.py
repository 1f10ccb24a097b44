"""
Unit Tests for CacheManager

Tests the two-tier caching strategy (L1 + L2): tier order, promotion,
background L2 writes, invalidation, compute-if-absent and statistics.
"""

import asyncio

import orjson
import pytest

from gallery_cache.core.config.settings import Settings
from gallery_cache.core.interfaces.cache import NullDistributedStore
from gallery_cache.infrastructure.cache.cache_manager import CacheManager, build_cache_manager
from gallery_cache.infrastructure.cache.entry_store import MemoryEntryStore
from gallery_cache.infrastructure.cache.redis_store import RedisStore
from gallery_cache.infrastructure.cache.sweeper import EvictionSweeper
from tests.test_fixtures.cache_factory import CacheTestFactory

NAMESPACE = "gallery:cache"


@pytest.fixture
async def redis_store(stats, fake_redis):
    store = RedisStore(url=None, stats=stats, namespace=NAMESPACE, timeout=0.05, client=fake_redis)
    await store.connect()
    return store


@pytest.fixture
async def tiered_manager(memory_store, stats, redis_store):
    """CacheManager over a connected RedisStore backed by the in-memory stub."""
    manager = CacheManager(memory=memory_store, stats=stats, distributed=redis_store, default_ttl=300)
    yield manager
    await manager.wait_for_pending()


@pytest.mark.unit
class TestCacheManager:
    """Test suite for CacheManager basics."""

    async def test_set_then_get_hits_memory(self, cache_manager):
        """Twelve artworks cached for 60s are served from L1."""
        artworks = [{"id": i} for i in range(12)]

        await cache_manager.set("artworks:list:p1", artworks, 60)
        result = await cache_manager.get("artworks:list:p1")

        assert result == artworks
        assert cache_manager.stats()["memory_hits"] == 1

    async def test_get_returns_default_on_miss(self, cache_manager):
        assert await cache_manager.get("missing") is None
        assert await cache_manager.get("missing", default="fallback") == "fallback"
        assert cache_manager.stats()["misses"] == 2

    async def test_lookup_distinguishes_cached_none(self, cache_manager):
        await cache_manager.set("none", None)

        result = await cache_manager.lookup("none")

        assert result.hit
        assert result.value is None

    async def test_get_after_ttl_elapsed_is_miss(self, cache_manager, clock):
        await cache_manager.set("k", "v", 30)
        clock.advance(30)

        assert await cache_manager.get("k") is None

    async def test_set_uses_default_ttl(self, cache_manager, clock):
        await cache_manager.set("k", "v")

        clock.advance(299)
        assert await cache_manager.get("k") == "v"
        clock.advance(1)
        assert await cache_manager.get("k") is None

    async def test_negative_ttl_is_clamped(self, cache_manager):
        assert await cache_manager.set("k", "v", -10) is True

        assert await cache_manager.get("k") is None

    async def test_delete_removes_key(self, cache_manager):
        await cache_manager.set("k", "v")

        assert await cache_manager.delete("k") is True
        assert await cache_manager.get("k") is None
        assert cache_manager.stats()["deletes"] == 1

    async def test_clear_keeps_statistics(self, cache_manager):
        await cache_manager.set("a", 1)
        await cache_manager.get("a")

        await cache_manager.clear()

        stats = cache_manager.stats()
        assert stats["entry_count"] == 0
        assert stats["hits"] == 1
        assert stats["sets"] == 1

    async def test_build_key(self):
        assert CacheManager.build_key("artworks", 1, 12, "all") == "artworks:1:12:all"

    async def test_default_distributed_store_is_null(self, cache_manager):
        assert isinstance(cache_manager.distributed, NullDistributedStore)
        assert cache_manager.stats()["distributed_connected"] is False


@pytest.mark.unit
class TestTieredLookup:
    """L1 → L2 → miss with promotion."""

    async def test_set_writes_both_tiers(self, tiered_manager, fake_redis):
        await tiered_manager.set("categories:all", ["painting"], 1800)
        await tiered_manager.wait_for_pending()

        assert orjson.loads(fake_redis.data[f"{NAMESPACE}:categories:all"]) == ["painting"]
        assert fake_redis.expiry[f"{NAMESPACE}:categories:all"] == 1800

    async def test_l2_hit_promotes_into_l1(self, tiered_manager, fake_redis, memory_store):
        fake_redis.data[f"{NAMESPACE}:k"] = orjson.dumps({"from": "redis"})

        assert await tiered_manager.get("k") == {"from": "redis"}
        assert (await memory_store.get("k")).value == {"from": "redis"}

        await tiered_manager.get("k")
        stats = tiered_manager.stats()
        assert stats["distributed_hits"] == 1
        assert stats["memory_hits"] == 1
        assert stats["hits"] == 2

    async def test_promotion_uses_default_ttl(self, tiered_manager, fake_redis, clock):
        fake_redis.data[f"{NAMESPACE}:k"] = orjson.dumps("v")
        await tiered_manager.get("k")
        fake_redis.data.clear()

        clock.advance(299)
        assert await tiered_manager.get("k") == "v"
        clock.advance(1)
        assert await tiered_manager.get("k") is None

    async def test_delete_drains_pending_write_first(self, tiered_manager, fake_redis):
        await tiered_manager.set("k", "v")
        await tiered_manager.delete("k")
        await tiered_manager.wait_for_pending()

        assert f"{NAMESPACE}:k" not in fake_redis.data

    async def test_clear_empties_both_tiers(self, tiered_manager, fake_redis):
        fake_redis.data["unrelated:key"] = b"1"
        await tiered_manager.set("a", 1)
        await tiered_manager.set("b", 2)

        await tiered_manager.clear()

        assert tiered_manager.memory.size == 0
        assert fake_redis.data == {"unrelated:key": b"1"}

    async def test_unencodable_value_stays_in_memory_and_counts_error(self, tiered_manager, fake_redis):
        value = object()

        await tiered_manager.set("k", value)
        await tiered_manager.wait_for_pending()

        assert await tiered_manager.get("k") is value
        assert f"{NAMESPACE}:k" not in fake_redis.data
        assert tiered_manager.stats()["errors"] == 1

    async def test_shutdown_drains_and_disconnects(self, tiered_manager, fake_redis):
        await tiered_manager.set("k", "v")

        await tiered_manager.shutdown()

        assert f"{NAMESPACE}:k" in fake_redis.data
        assert fake_redis.closed
        assert not tiered_manager.distributed.connected


@pytest.mark.unit
class TestInvalidatePattern:
    async def test_counts_distinct_keys_across_tiers(self, tiered_manager, fake_redis):
        await tiered_manager.set("artworks:1:12:all:none:0:max", [1])
        await tiered_manager.set("categories:all", ["x"])
        fake_redis.data[f"{NAMESPACE}:artworks:2:12:all:none:0:max"] = orjson.dumps([2])
        await tiered_manager.wait_for_pending()

        removed = await tiered_manager.invalidate_pattern("artworks")

        assert removed == 2
        assert await tiered_manager.get("artworks:1:12:all:none:0:max") is None
        assert await tiered_manager.get("categories:all") == ["x"]

    async def test_anchored_pattern(self, cache_manager):
        await cache_manager.set("api:GET:/api/stats", {})
        await cache_manager.set("stats:api:GET", {})

        assert await cache_manager.invalidate_pattern(r"^api:") == 1

    async def test_invalid_pattern_counts_error(self, cache_manager):
        await cache_manager.set("k", "v")

        assert await cache_manager.invalidate_pattern("(") == 0
        assert cache_manager.stats()["errors"] == 1
        assert await cache_manager.get("k") == "v"


@pytest.mark.unit
class TestRemember:
    """Cache-aside helper."""

    async def test_producer_called_once_then_cached(self, cache_manager):
        calls = []

        def producer():
            calls.append(1)
            return {"total": 8}

        first = await cache_manager.remember("stats", producer, ttl=60)
        second = await cache_manager.remember("stats", producer, ttl=60)

        assert first == second == {"total": 8}
        assert len(calls) == 1

    async def test_async_producer(self, cache_manager):
        async def producer():
            return [1, 2, 3]

        assert await cache_manager.remember("k", producer) == [1, 2, 3]
        assert await cache_manager.get("k") == [1, 2, 3]

    async def test_none_result_not_cached(self, cache_manager):
        calls = []

        def producer():
            calls.append(1)
            return None

        await cache_manager.remember("k", producer)
        await cache_manager.remember("k", producer)

        assert len(calls) == 2

    async def test_producer_error_propagates_and_nothing_cached(self, cache_manager):
        def producer():
            raise ValueError("db down")

        with pytest.raises(ValueError):
            await cache_manager.remember("k", producer)

        assert (await cache_manager.lookup("k")).hit is False

    async def test_concurrent_misses_each_compute_by_default(self, cache_manager):
        calls = []

        async def producer():
            calls.append(1)
            await asyncio.sleep(0.01)
            return "v"

        await asyncio.gather(*(cache_manager.remember("k", producer) for _ in range(3)))

        assert len(calls) == 3

    async def test_single_flight_coalesces_concurrent_misses(self, cache_manager):
        calls = []

        async def producer():
            calls.append(1)
            await asyncio.sleep(0.01)
            return "v"

        results = await asyncio.gather(
            *(cache_manager.remember("k", producer, single_flight=True) for _ in range(3))
        )

        assert results == ["v", "v", "v"]
        assert len(calls) == 1

    async def test_single_flight_shares_exception(self, cache_manager):
        async def producer():
            await asyncio.sleep(0.01)
            raise RuntimeError("boom")

        results = await asyncio.gather(
            *(cache_manager.remember("k", producer, single_flight=True) for _ in range(2)),
            return_exceptions=True,
        )

        assert all(isinstance(r, RuntimeError) for r in results)

    async def test_remember_forever_uses_one_year_ttl(self, cache_manager, clock):
        await cache_manager.remember_forever("k", lambda: "v")

        clock.advance(364 * 24 * 3600)
        assert await cache_manager.get("k") == "v"


@pytest.mark.unit
class TestSweepAndHealth:
    async def test_population_bound_after_sweep(self, stats, clock):
        memory = MemoryEntryStore(max_entries=5, clock=clock)
        sweeper = EvictionSweeper(memory)
        manager = CacheManager(memory=memory, stats=stats, sweeper=sweeper)

        for i in range(6):
            await manager.set(f"key-{i}", i)
        await sweeper.run_once()

        assert manager.stats()["entry_count"] <= 5
        assert await manager.get("key-0") is None
        await manager.wait_for_pending()

    async def test_unreachable_redis_degrades_to_memory(self, memory_store, stats):
        store = RedisStore(
            url=None, stats=stats, timeout=0.05, client=CacheTestFactory.failing_redis_client()
        )
        manager = CacheManager(memory=memory_store, stats=stats, distributed=store)

        await manager.start()
        await manager.set("k", "v")
        assert await manager.get("k") == "v"

        health = await manager.health_check()
        assert health["healthy"] is True
        assert health["memory_status"] == "working"
        assert health["distributed_status"] == "disconnected"
        assert health["stats"]["errors"] == 1

        await manager.shutdown()

    async def test_undecodable_redis_reply_is_a_miss(self, memory_store, stats):
        store = RedisStore(
            url=None, stats=stats, timeout=0.05, client=CacheTestFactory.undecodable_redis_client()
        )
        manager = CacheManager(memory=memory_store, stats=stats, distributed=store)
        await manager.start()

        assert await manager.get("k", default="fallback") == "fallback"
        assert await manager.remember("k", lambda: "computed") == "computed"
        assert manager.stats()["errors"] == 2

        await manager.shutdown()

    async def test_health_probe_does_not_touch_statistics(self, cache_manager):
        health = await cache_manager.health_check()

        assert health["stats"]["hits"] == 0
        assert health["stats"]["misses"] == 0
        assert health["stats"]["sets"] == 0
        assert cache_manager.memory.size == 0

    async def test_start_and_shutdown_manage_sweeper(self, cache_manager):
        await cache_manager.start()
        assert cache_manager._sweeper.running

        await cache_manager.shutdown()
        assert not cache_manager._sweeper.running

    async def test_statistics_invariants(self, cache_manager):
        await cache_manager.set("a", 1)
        await cache_manager.get("a")
        await cache_manager.get("b")
        await cache_manager.get("a")

        stats = cache_manager.stats()
        assert stats["hits"] == stats["memory_hits"] + stats["distributed_hits"]
        assert stats["hit_rate"] == 66.67


@pytest.mark.unit
class TestBuildCacheManager:
    def test_memory_only_without_redis_url(self):
        manager = build_cache_manager(Settings(_env_file=None, REDIS_URL=None))

        assert isinstance(manager.distributed, NullDistributedStore)
        assert manager.default_ttl == 300

    def test_redis_store_when_url_configured(self):
        settings = Settings(_env_file=None, REDIS_URL="redis://localhost:6379/0")

        manager = build_cache_manager(settings)

        assert isinstance(manager.distributed, RedisStore)
        assert not manager.distributed.connected

    def test_explicit_disable_wins_over_url(self):
        settings = Settings(
            _env_file=None, REDIS_URL="redis://localhost:6379/0", CACHE_REDIS_ENABLED=False
        )

        assert isinstance(build_cache_manager(settings).distributed, NullDistributedStore)

    def test_settings_flow_into_memory_tier(self):
        settings = Settings(_env_file=None, CACHE_MAX_MEMORY_ITEMS=7, CACHE_TTL_DEFAULT=42)

        manager = build_cache_manager(settings)

        assert manager.memory.max_entries == 7
        assert manager.default_ttl == 42
