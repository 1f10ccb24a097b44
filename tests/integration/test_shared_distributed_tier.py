"""
Integration Tests for the Shared Distributed Tier
"""

import pytest

from gallery_cache.core.config.constants import ARTWORKS_PATTERN


@pytest.mark.integration
class TestSharedDistributedTier:
    """Managers with private memory tiers and one Redis between them."""

    async def test_write_on_one_manager_is_served_by_another(self, shared_tier_managers):
        writer = await shared_tier_managers()
        reader = await shared_tier_managers()

        await writer.set("categories:all", [{"slug": "painting"}], ttl=60)
        await writer.wait_for_pending()

        assert await reader.get("categories:all") == [{"slug": "painting"}]
        assert reader.stats()["distributed_hits"] == 1

        # Promoted into the reader's memory tier
        assert await reader.get("categories:all") == [{"slug": "painting"}]
        assert reader.stats()["memory_hits"] == 1

    async def test_delete_removes_key_for_every_manager(self, shared_tier_managers):
        writer = await shared_tier_managers()
        reader = await shared_tier_managers()

        await writer.set("api:GET:/api/artworks/1", {"id": 1})
        await writer.delete("api:GET:/api/artworks/1")

        assert await reader.get("api:GET:/api/artworks/1") is None

    async def test_pattern_invalidation_clears_distributed_tier(self, shared_tier_managers):
        writer = await shared_tier_managers()
        reader = await shared_tier_managers()

        await writer.set("artworks:1:12:all:none:0:max", {"page": 1})
        await writer.set("artworks:2:12:all:none:0:max", {"page": 2})
        await writer.set("categories:all", [])
        await writer.wait_for_pending()

        assert await writer.invalidate_pattern(ARTWORKS_PATTERN) == 2

        assert await reader.get("artworks:1:12:all:none:0:max") is None
        assert await reader.get("categories:all") == []

    async def test_redis_is_reported_connected(self, shared_tier_managers):
        manager = await shared_tier_managers()

        health = await manager.health_check()

        assert health["healthy"] is True
        assert health["distributed_status"] == "connected"
