"""
Cache Module

Two-tier cache: in-process entry store (L1) and optional Redis (L2) behind
a single CacheManager facade.
"""

from gallery_cache.infrastructure.cache.cache_manager import CacheManager, build_cache_manager
from gallery_cache.infrastructure.cache.entry_store import CacheEntry, MemoryEntryStore
from gallery_cache.infrastructure.cache.invalidation import (
    invalidate_artwork_cache,
    invalidate_category_cache,
    invalidate_stats_cache,
    invalidate_user_cache,
)
from gallery_cache.infrastructure.cache.keys import build_key, principal_token
from gallery_cache.infrastructure.cache.redis_store import RedisStore
from gallery_cache.infrastructure.cache.statistics import CacheStatistics
from gallery_cache.infrastructure.cache.sweeper import EvictionSweeper, SweepResult

__all__ = [
    "CacheManager",
    "build_cache_manager",
    "CacheEntry",
    "MemoryEntryStore",
    "RedisStore",
    "CacheStatistics",
    "EvictionSweeper",
    "SweepResult",
    "build_key",
    "principal_token",
    "invalidate_artwork_cache",
    "invalidate_category_cache",
    "invalidate_stats_cache",
    "invalidate_user_cache",
]
