"""
Cache invalidation helpers.

Write paths (artwork/category changes, user profile updates) call these
after committing so stale listings, lookups and per-user responses are
dropped from both cache tiers.
"""

import re

from gallery_cache.core.config.constants import (
    ARTWORKS_PATTERN,
    CATEGORIES_PATTERN,
    STATS_PATTERN,
)
from gallery_cache.infrastructure.cache.cache_manager import CacheManager
from gallery_cache.infrastructure.cache.keys import principal_token


async def invalidate_artwork_cache(cache: CacheManager) -> int:
    """Drop every cached artwork listing and detail response."""
    return await cache.invalidate_pattern(ARTWORKS_PATTERN)


async def invalidate_category_cache(cache: CacheManager) -> int:
    """Drop cached category lookups."""
    return await cache.invalidate_pattern(CATEGORIES_PATTERN)


async def invalidate_stats_cache(cache: CacheManager) -> int:
    """Drop cached aggregate statistics responses."""
    return await cache.invalidate_pattern(STATS_PATTERN)


async def invalidate_user_cache(cache: CacheManager, user_id: str) -> int:
    """
    Drop every per-principal response cached for one user.

    Matches the hashed identity token that ``principal_cache_key`` folds
    into keys, as a whole colon-delimited key segment.
    """
    token = re.escape(principal_token(user_id))
    return await cache.invalidate_pattern(f"(^|:){token}(:|$)")
