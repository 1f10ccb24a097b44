"""
Pytest Configuration and Shared Test Fixtures

This module provides pytest configuration and reusable fixtures for all tests.
All fixtures defined here are automatically available to all test files.
"""

import os
import sys
import uuid
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

# Add project root to sys.path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from gallery_cache.core.config.settings import Settings  # noqa: E402
from gallery_cache.infrastructure.cache.cache_manager import CacheManager, build_cache_manager  # noqa: E402
from gallery_cache.infrastructure.cache.entry_store import MemoryEntryStore  # noqa: E402
from gallery_cache.infrastructure.cache.statistics import CacheStatistics  # noqa: E402
from gallery_cache.infrastructure.cache.sweeper import EvictionSweeper  # noqa: E402
from gallery_cache.infrastructure.monitoring.metrics_collector import MetricsCollector  # noqa: E402
from tests.test_fixtures.cache_factory import CacheTestFactory, FakeClock  # noqa: E402

# ============================================================================
# Pytest Configuration
# ============================================================================

# pytest-asyncio runs in auto mode (see pyproject.toml)


# ============================================================================
# Configuration Fixtures
# ============================================================================


@pytest.fixture
def test_settings():
    """
    Isolated settings for testing.

    Built directly (no .env file) so the developer's environment never leaks
    into tests. Redis is disabled; tests that need the distributed tier wire
    a RedisStore with a fake client explicitly.
    """
    return Settings(
        _env_file=None,
        ENVIRONMENT="test",
        APP_VERSION="1.0.0-test",
        LOG_LEVEL="WARNING",
        LOG_FORMAT="console",
        REDIS_URL=None,
        CACHE_REDIS_ENABLED=False,
    )


# ============================================================================
# Cache Fixtures
# ============================================================================


@pytest.fixture
def clock():
    """Deterministic clock starting at t=1000s."""
    return FakeClock()


@pytest.fixture
def mock_metrics():
    """Metrics collector stand-in so unit tests never touch Prometheus globals."""
    return MagicMock(spec=MetricsCollector)


@pytest.fixture
def stats(mock_metrics):
    return CacheStatistics(metrics=mock_metrics)


@pytest.fixture
def memory_store(clock):
    return MemoryEntryStore(max_entries=100, clock=clock)


@pytest.fixture
async def cache_manager(memory_store, stats):
    """
    Memory-only CacheManager with a fake clock.

    The distributed tier is the no-op store; tests exercising Redis build
    their own manager around a RedisStore.
    """
    manager = CacheManager(
        memory=memory_store,
        stats=stats,
        sweeper=EvictionSweeper(memory_store, interval=60),
        default_ttl=300,
    )
    yield manager
    await manager.wait_for_pending()


@pytest.fixture
def fake_redis():
    """In-memory Redis client stub."""
    return CacheTestFactory.in_memory_redis_client()


# ============================================================================
# Application Fixtures
# ============================================================================


@pytest.fixture
def app_cache_manager(test_settings) -> CacheManager:
    return build_cache_manager(test_settings)


@pytest.fixture
def app(test_settings, app_cache_manager):
    """Isolated application with its own cache manager."""
    from gallery_cache.application.app import create_app

    return create_app(settings=test_settings, cache_manager=app_cache_manager)


@pytest.fixture
def client(app):
    """TestClient that runs the lifespan (cache start/shutdown)."""
    with TestClient(app) as test_client:
        yield test_client


# ============================================================================
# Integration Fixtures
# ============================================================================


@pytest.fixture(scope="session")
def use_real_redis():
    """
    Run the distributed tier against a real Redis (USE_REAL_REDIS=1).
    """
    return os.getenv("USE_REAL_REDIS", "0").lower() in ("1", "true", "yes")


@pytest.fixture
async def shared_tier_managers(use_real_redis, test_settings):
    """
    Factory for CacheManagers that share one distributed tier.

    Each manager has its own memory tier, like separate worker processes.
    Backed by a real Redis (isolated namespace) when ``use_real_redis``,
    otherwise by one InMemoryRedis client shared between the managers.
    """
    fake = CacheTestFactory.in_memory_redis_client()
    namespace = f"gallery:test:{uuid.uuid4().hex[:8]}"
    managers: list[CacheManager] = []

    async def make_manager() -> CacheManager:
        if use_real_redis:
            settings = test_settings.model_copy(update={
                "REDIS_URL": os.getenv("REDIS_URL", "redis://localhost:6379/15"),
                "CACHE_REDIS_ENABLED": True,
                "CACHE_KEY_NAMESPACE": namespace,
                "REDIS_TIMEOUT_MS": 1000,
            })
            manager = build_cache_manager(settings)
        else:
            settings = test_settings.model_copy(update={
                "REDIS_URL": "redis://fake",
                "CACHE_REDIS_ENABLED": True,
            })
            manager = build_cache_manager(settings, redis_client=fake)
        await manager.start()
        managers.append(manager)
        return manager

    yield make_manager

    if managers:
        await managers[0].clear()
    for manager in managers:
        await manager.shutdown()
