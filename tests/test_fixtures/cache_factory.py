"""
Cache Test Factory

Creates clocks and Redis clients with various behaviours for testing.
"""

import asyncio
import fnmatch
from typing import Any
from unittest.mock import AsyncMock

from redis.exceptions import ConnectionError as RedisConnectionError


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class InMemoryRedis:
    """
    Minimal asyncio Redis stand-in.

    Implements only the commands RedisStore issues: ping, get, set (with
    ``ex``), delete, scan_iter and aclose. Expiry is recorded but not
    enforced; TTL behaviour belongs to Redis and is asserted via ``expiry``.
    """

    def __init__(self, initial_data: dict[str, Any] | None = None):
        self.data: dict[str, Any] = dict(initial_data or {})
        self.expiry: dict[str, int] = {}
        self.closed = False

    async def ping(self):
        return True

    async def get(self, key):
        return self.data.get(key)

    async def set(self, key, value, ex=None):
        self.data[key] = value
        if ex is not None:
            self.expiry[key] = ex
        return True

    async def delete(self, *keys):
        removed = 0
        for key in keys:
            if self.data.pop(key, None) is not None:
                removed += 1
            self.expiry.pop(key, None)
        return removed

    async def scan_iter(self, match=None, count=None):
        for key in list(self.data):
            if match is None or fnmatch.fnmatchcase(key, match):
                yield key

    async def aclose(self):
        self.closed = True


class CacheTestFactory:
    """Factory for creating cache test objects."""

    @staticmethod
    def in_memory_redis_client(initial_data: dict[str, Any] | None = None) -> InMemoryRedis:
        """Create a working Redis client stub with optional initial data."""
        return InMemoryRedis(initial_data)

    @staticmethod
    def failing_redis_client(error: Exception | None = None, fail_ping: bool = True) -> AsyncMock:
        """
        Create a Redis client whose commands always fail.

        With ``fail_ping=False`` the client connects fine and fails afterwards
        (Redis going away mid-flight).
        """
        if error is None:
            error = RedisConnectionError("Redis connection failed")

        client = AsyncMock()
        client.ping = AsyncMock(return_value=True) if not fail_ping else AsyncMock(side_effect=error)
        client.get = AsyncMock(side_effect=error)
        client.set = AsyncMock(side_effect=error)
        client.delete = AsyncMock(side_effect=error)
        client.aclose = AsyncMock()

        return client

    @staticmethod
    def slow_redis_client(delay: float = 1.0) -> AsyncMock:
        """Create a Redis client that connects fine but answers GET/SET slowly."""
        client = AsyncMock()
        client.ping = AsyncMock(return_value=True)

        async def delayed_get(key):
            await asyncio.sleep(delay)
            return b'"slow"'

        async def delayed_set(key, value, ex=None):
            await asyncio.sleep(delay)
            return True

        client.get = delayed_get
        client.set = delayed_set
        client.delete = AsyncMock(return_value=1)
        client.aclose = AsyncMock()

        return client

    @staticmethod
    def undecodable_redis_client() -> AsyncMock:
        """
        Create a Redis client whose replies are not valid UTF-8.

        A client built with ``decode_responses=True`` raises UnicodeDecodeError
        from inside the command call.
        """
        error = UnicodeDecodeError("utf-8", b"\xff\xfe", 0, 1, "invalid start byte")

        client = AsyncMock()
        client.ping = AsyncMock(return_value=True)
        client.get = AsyncMock(side_effect=error)
        client.set = AsyncMock(return_value=True)
        client.delete = AsyncMock(return_value=1)
        client.aclose = AsyncMock()

        return client
