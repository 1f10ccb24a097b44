"""
Unit Tests for the invalidation helpers

Keys follow the formats the response cache produces:
    artworks:{page}:{limit}:{category}:{search}:{minPrice}:{maxPrice}
    categories:all
    api:GET:/api/...            (default key)
    api:GET:/api/...:u-<hash>   (principal key)
"""

import pytest

from gallery_cache.infrastructure.cache.invalidation import (
    invalidate_artwork_cache,
    invalidate_category_cache,
    invalidate_stats_cache,
    invalidate_user_cache,
)
from gallery_cache.infrastructure.cache.keys import principal_token

KEYS = [
    "artworks:1:12:all:none:0:max",
    "artworks:2:12:painting:none:0:max",
    "api:GET:/api/artworks/3",
    "categories:all",
    "api:GET:/api/stats",
]


@pytest.fixture
async def populated(cache_manager):
    for key in KEYS:
        await cache_manager.set(key, {"key": key})
    return cache_manager


@pytest.mark.unit
class TestInvalidationHelpers:
    async def test_artwork_invalidation(self, populated):
        assert await invalidate_artwork_cache(populated) == 3

        remaining = await populated.memory.keys()
        assert remaining == ["categories:all", "api:GET:/api/stats"]

    async def test_category_invalidation(self, populated):
        assert await invalidate_category_cache(populated) == 1
        assert await populated.get("categories:all") is None

    async def test_stats_invalidation(self, populated):
        assert await invalidate_stats_cache(populated) == 1
        assert await populated.get("api:GET:/api/stats") is None

    async def test_user_invalidation_matches_whole_token(self, cache_manager):
        alice = principal_token("alice")
        bob = principal_token("bob")
        await cache_manager.set(f"api:GET:/api/favorites:{alice}", [1])
        await cache_manager.set(f"api:GET:/api/favorites:{bob}", [2])

        assert await invalidate_user_cache(cache_manager, "alice") == 1

        assert await cache_manager.get(f"api:GET:/api/favorites:{bob}") == [2]

    def test_principal_token(self):
        assert principal_token(None) == "anonymous"
        assert principal_token("") == "anonymous"
        token = principal_token("alice")
        assert token.startswith("u-")
        assert len(token) == 18
        assert principal_token("alice") == token
        assert "alice" not in token
