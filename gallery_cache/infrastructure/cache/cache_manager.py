#!/usr/bin/env python3
"""
Multi-Tier Cache Manager

Architecture:
    CacheManager (Public API)
        ├── MemoryEntryStore (L1, bounded in-process map with TTL)
        ├── DistributedStore (L2, RedisStore or NullDistributedStore)
        ├── CacheStatistics (counters + Prometheus mirror)
        └── EvictionSweeper (background L1 reclamation)

Algorithm:
    GET: L1 → L2 → miss (promote into L1 on an L2 hit)
    SET: L1 synchronously, L2 as a tracked background write
    DELETE / CLEAR / INVALIDATE: both tiers

Performance Targets:
    - L1 hit: < 1ms
    - L2 hit: 1-5ms, bounded by the Redis operation timeout
    - Redis down: requests see at most one timeout per lookup, never an error

Consistency:
    Last write wins on L1. There is no cross-key atomicity. A promotion
    racing a delete may reinstate a value in L1 for one default TTL.

Author: Refactored for clarity and maintainability
Date: 2025-12-13
"""

import asyncio
import inspect
import re
import time
from collections.abc import Callable, Coroutine
from typing import Any

import redis.asyncio as redis

from gallery_cache.core.config.constants import (
    DEFAULT_TTL_SECONDS,
    HEALTH_PROBE_KEY_PREFIX,
    HEALTH_PROBE_TTL,
    REMEMBER_FOREVER_TTL,
    CacheTier,
)
from gallery_cache.core.config.settings import Settings, get_settings
from gallery_cache.core.interfaces.cache import DistributedStore, LookupResult, NullDistributedStore
from gallery_cache.core.logging.logger import get_logger, log_stage
from gallery_cache.infrastructure.cache.entry_store import MemoryEntryStore
from gallery_cache.infrastructure.cache.keys import build_key
from gallery_cache.infrastructure.cache.redis_store import RedisStore
from gallery_cache.infrastructure.cache.statistics import CacheStatistics
from gallery_cache.infrastructure.cache.sweeper import EvictionSweeper

logger = get_logger(__name__)

Producer = Callable[[], Any]  # plain value or awaitable


class CacheManager:
    """
    Two-tier cache facade: the only entry point consumers use.

    Usage:
        cache = build_cache_manager(settings)
        await cache.start()

        await cache.set("categories:all", categories, ttl=1800)
        categories = await cache.get("categories:all")

        artworks = await cache.remember(
            cache.build_key("artworks", page, limit), lambda: load_page(page, limit), ttl=300
        )

        stats = cache.stats()
        await cache.shutdown()

    One instance is built per application and injected where needed; there
    is no module-level cache singleton.
    """

    def __init__(
        self,
        memory: MemoryEntryStore,
        stats: CacheStatistics,
        distributed: DistributedStore | None = None,
        sweeper: EvictionSweeper | None = None,
        default_ttl: int = DEFAULT_TTL_SECONDS,
    ):
        """
        Initialize cache manager.

        STAGE-2.0: Cache manager initialization

        Args:
            memory: L1 entry store
            stats: Statistics collector
            distributed: L2 store (a no-op store when omitted)
            sweeper: Background sweeper for ``memory`` (none when omitted)
            default_ttl: TTL for ``set`` without an explicit TTL and for promotions
        """
        self._memory = memory
        self._stats = stats
        self._distributed: DistributedStore = distributed or NullDistributedStore()
        self._sweeper = sweeper
        self._default_ttl = max(default_ttl, 0)
        self._pending: set[asyncio.Task] = set()
        self._inflight: dict[str, asyncio.Future] = {}

    @property
    def memory(self) -> MemoryEntryStore:
        return self._memory

    @property
    def distributed(self) -> DistributedStore:
        return self._distributed

    @property
    def default_ttl(self) -> int:
        return self._default_ttl

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def start(self) -> None:
        """
        Connect the distributed tier and start the sweeper.

        STAGE-2.0.1: Cache startup
        """
        await self._distributed.connect()
        if self._sweeper is not None:
            self._sweeper.start()

        logger.info(
            "Cache manager started",
            stage="2.0.1",
            max_memory_entries=self._memory.max_entries,
            default_ttl=self._default_ttl,
            distributed_connected=self._distributed.connected,
        )

    async def shutdown(self) -> None:
        """
        Stop the sweeper, drain pending L2 writes and disconnect.

        STAGE-2.0.2: Cache shutdown
        """
        if self._sweeper is not None:
            await self._sweeper.stop()
        await self.wait_for_pending()
        await self._distributed.disconnect()

        logger.info("Cache manager shutdown", stage="2.0.2")

    async def wait_for_pending(self) -> None:
        """Wait for every background L2 write issued so far."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    def _schedule_write(self, coro: Coroutine[Any, Any, Any]) -> None:
        task = asyncio.create_task(coro)
        self._pending.add(task)
        task.add_done_callback(self._on_write_done)

    def _on_write_done(self, task: asyncio.Task) -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            self._stats.record_error("set")
            logger.warning(
                "Background L2 write failed",
                stage="2.3",
                error_type=error.__class__.__name__,
                error=str(error),
            )

    # -------------------------------------------------------------------------
    # Core Cache Operations
    # -------------------------------------------------------------------------

    async def lookup(self, key: str) -> LookupResult:
        """
        Look up a key across both tiers.

        STAGE-2.1: L1 lookup
        STAGE-2.2: L2 lookup (if L1 miss)

        Unlike ``get`` this distinguishes a cached ``None`` from a miss.
        """
        result = await self._memory.get(key)
        if result.hit:
            self._stats.record_hit(CacheTier.MEMORY)
            log_stage(logger, "2.1", "L1 cache hit", level="debug", cache_key=key)
            return result

        result = await self._distributed.get(key)
        if result.hit:
            # Remaining L2 TTL is not read back; promote with the default TTL
            await self._memory.set(key, result.value, self._default_ttl)
            self._stats.record_hit(CacheTier.DISTRIBUTED)
            log_stage(logger, "2.2", "L2 cache hit", level="debug", cache_key=key)
            return result

        self._stats.record_miss()
        log_stage(logger, "2.2", "Cache miss", level="debug", cache_key=key)
        return result

    async def get(self, key: str, default: Any = None) -> Any:
        """
        Get a value, or ``default`` on a miss.

        Args:
            key: Cache key
            default: Returned when the key is absent or expired

        Returns:
            Cached value or ``default``
        """
        result = await self.lookup(key)
        return result.value if result.hit else default

    async def set(self, key: str, value: Any, ttl: int | float | None = None) -> bool:
        """
        Set a value in both tiers.

        STAGE-2.3: Cache population

        The L1 write completes before this returns. The L2 write runs in the
        background and its outcome never reaches the caller. Negative TTLs
        are clamped to zero (the entry is effectively uncached).

        Args:
            key: Cache key
            value: Value to cache (must be orjson-serializable to reach L2)
            ttl: Time-to-live in seconds (default: CACHE_TTL_DEFAULT)

        Returns:
            True
        """
        ttl = self._default_ttl if ttl is None else max(ttl, 0)

        await self._memory.set(key, value, ttl)
        self._schedule_write(self._distributed.set(key, value, ttl))
        self._stats.record_set()

        log_stage(logger, "2.3", "Cache set", level="debug", cache_key=key, ttl=ttl)
        return True

    async def delete(self, key: str) -> bool:
        """
        Delete a key from both tiers.

        STAGE-2.4: Cache invalidation

        Pending L2 writes are drained first so an earlier ``set`` cannot land
        after this delete.

        Returns:
            True if either tier held the key
        """
        removed = await self._memory.delete(key)
        await self.wait_for_pending()
        removed_distributed = await self._distributed.delete(key)
        self._stats.record_delete()

        log_stage(logger, "2.4", "Cache delete", level="debug", cache_key=key)
        return removed or removed_distributed

    async def clear(self) -> None:
        """
        Clear both tiers. Statistics are not reset.

        STAGE-2.4: Cache invalidation
        """
        await self._memory.clear()
        await self.wait_for_pending()
        await self._distributed.clear()

        log_stage(logger, "2.4", "Cache cleared")

    async def invalidate_pattern(self, pattern: str) -> int:
        """
        Remove every key matching a regular expression from both tiers.

        STAGE-2.4: Pattern invalidation

        Matching uses ``re.search`` semantics, so a plain substring such as
        ``"artworks"`` works as a pattern. This scans every L1 key and is
        meant for administrative, low-frequency use.

        Args:
            pattern: Regular expression

        Returns:
            Number of distinct keys removed across both tiers (0 for an
            invalid pattern)
        """
        try:
            compiled = re.compile(pattern)
        except re.error as e:
            self._stats.record_error("invalidate")
            logger.warning("Invalid invalidation pattern", stage="2.4", pattern=pattern, error=str(e))
            return 0

        removed = set(await self._memory.remove_matching(compiled))
        await self.wait_for_pending()
        removed.update(await self._distributed.delete_by_pattern(pattern))

        log_stage(logger, "2.4", "Cache entries invalidated", pattern=pattern, invalidated=len(removed))
        return len(removed)

    # -------------------------------------------------------------------------
    # Compute-If-Absent
    # -------------------------------------------------------------------------

    async def _produce_and_store(self, key: str, producer: Producer, ttl: int | float | None) -> Any:
        value = producer()
        if inspect.isawaitable(value):
            value = await value
        if value is not None:
            await self.set(key, value, ttl)
        return value

    async def _produce_single_flight(
        self, key: str, producer: Producer, ttl: int | float | None
    ) -> Any:
        inflight = self._inflight.get(key)
        if inflight is not None:
            return await asyncio.shield(inflight)

        future = asyncio.get_running_loop().create_future()
        self._inflight[key] = future
        try:
            value = await self._produce_and_store(key, producer, ttl)
        except asyncio.CancelledError:
            future.cancel()
            raise
        except Exception as e:
            future.set_exception(e)
            future.exception()  # mark retrieved when nobody else is waiting
            raise
        else:
            future.set_result(value)
            return value
        finally:
            self._inflight.pop(key, None)

    async def remember(
        self,
        key: str,
        producer: Producer,
        ttl: int | float | None = None,
        single_flight: bool = False,
    ) -> Any:
        """
        Get from cache or compute and cache the result (cache-aside pattern).

        STAGE-2.5: Cache-aside pattern

        ``producer`` may be a plain callable or return an awaitable. A
        ``None`` result is returned but not cached.

        By default concurrent callers that miss together each run the
        producer. With ``single_flight=True`` they share the first caller's
        computation (and its exception, if it raises).

        Args:
            key: Cache key
            producer: Computes the value on a miss
            ttl: Time-to-live in seconds (default: CACHE_TTL_DEFAULT)
            single_flight: Coalesce concurrent misses for this key

        Returns:
            Cached or computed value
        """
        result = await self.lookup(key)
        if result.hit:
            return result.value

        if single_flight:
            return await self._produce_single_flight(key, producer, ttl)
        return await self._produce_and_store(key, producer, ttl)

    async def remember_forever(self, key: str, producer: Producer, single_flight: bool = False) -> Any:
        """``remember`` with a one-year TTL."""
        return await self.remember(key, producer, ttl=REMEMBER_FOREVER_TTL, single_flight=single_flight)

    # -------------------------------------------------------------------------
    # Utilities
    # -------------------------------------------------------------------------

    @staticmethod
    def build_key(prefix: str, *parts: Any) -> str:
        """
        Compose a cache key from a prefix and parts.

        STAGE-2.1.1: Cache key generation
        """
        return build_key(prefix, *parts)

    # -------------------------------------------------------------------------
    # Monitoring
    # -------------------------------------------------------------------------

    def stats(self) -> dict[str, Any]:
        """
        Get cache performance statistics.

        Returns:
            Dict with counters, hit rate, entry count and L2 state
        """
        return self._stats.snapshot(
            entry_count=self._memory.size,
            distributed_connected=self._distributed.connected,
        )

    async def health_check(self) -> dict[str, Any]:
        """
        Check both tiers.

        A probe entry is written to, read back from and deleted from the
        memory tier directly, so the probe never shows up in the hit/miss
        statistics. The distributed tier is pinged. ``healthy`` reflects the
        memory tier only: a disconnected Redis is a degraded, healthy cache.

        Returns:
            Dict with healthy, memory_status, distributed_status, stats
        """
        probe_key = f"{HEALTH_PROBE_KEY_PREFIX}_{time.time_ns()}"
        probe_value = {"test": True, "timestamp": time.time()}

        await self._memory.set(probe_key, probe_value, HEALTH_PROBE_TTL)
        result = await self._memory.get(probe_key)
        await self._memory.delete(probe_key)
        memory_ok = result.hit and result.value == probe_value

        distributed_health = await self._distributed.health_check()

        return {
            "healthy": memory_ok,
            "memory_status": "working" if memory_ok else "failing",
            "distributed_status": "connected" if distributed_health.get("connected") else "disconnected",
            "stats": self.stats(),
        }


def build_cache_manager(
    settings: Settings | None = None,
    clock: Callable[[], float] = time.monotonic,
    redis_client: redis.Redis | None = None,
) -> CacheManager:
    """
    Build a fully wired CacheManager from configuration.

    The distributed tier is a RedisStore when CACHE_REDIS_ENABLED (or, when
    unset, REDIS_URL) says so, and a NullDistributedStore otherwise. Nothing
    connects until ``start()``.

    Args:
        settings: Application settings (default: global settings)
        clock: Time source for the memory tier
        redis_client: Pre-built Redis client (tests)

    Returns:
        CacheManager
    """
    settings = settings or get_settings()
    cache_settings = settings.cache
    redis_settings = settings.redis

    stats = CacheStatistics()
    memory = MemoryEntryStore(max_entries=cache_settings.CACHE_MAX_MEMORY_ITEMS, clock=clock)

    distributed: DistributedStore
    if cache_settings.CACHE_REDIS_ENABLED:
        distributed = RedisStore(
            url=redis_settings.REDIS_URL,
            stats=stats,
            namespace=cache_settings.CACHE_KEY_NAMESPACE,
            timeout=redis_settings.REDIS_TIMEOUT_MS / 1000,
            scan_timeout=redis_settings.REDIS_SCAN_TIMEOUT,
            max_connections=redis_settings.REDIS_MAX_CONNECTIONS,
            client=redis_client,
        )
    else:
        distributed = NullDistributedStore()

    return CacheManager(
        memory=memory,
        stats=stats,
        distributed=distributed,
        sweeper=EvictionSweeper(memory, interval=cache_settings.CACHE_CLEANUP_INTERVAL),
        default_ttl=cache_settings.CACHE_TTL_DEFAULT,
    )
