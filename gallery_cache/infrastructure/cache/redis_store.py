"""
Redis Distributed Store (L2)

Architecture:
    RedisStore (DistributedStore implementation)
        ├── Connection lifecycle (pool from REDIS_URL, ping on connect)
        ├── Bounded execution (every round trip under asyncio.wait_for)
        ├── Value codec (orjson)
        └── Health check (ping latency)

Availability Contract:
    The store never makes the cache less available than memory-only
    operation. A failed connect leaves ``connected`` False and every
    operation becomes a no-op miss. Transport, timeout and codec failures
    are logged, counted in the cache statistics and reported as a miss or
    ``False``; they are never raised to the caller.

Key Layout:
    Every key is stored as ``<namespace>:<key>``. ``clear()`` and pattern
    invalidation only ever touch keys inside the namespace.

Author: Refactored for clarity and maintainability
Date: 2025-12-13
"""

import asyncio
import math
import re
import time
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

import orjson
import redis.asyncio as redis
from redis.asyncio.connection import ConnectionPool
from redis.exceptions import RedisError

from gallery_cache.core.exceptions import (
    CacheConnectionError,
    CacheError,
    CacheKeyError,
    CacheSerializationError,
)
from gallery_cache.core.interfaces.cache import MISS, LookupResult
from gallery_cache.core.logging.logger import get_logger
from gallery_cache.infrastructure.cache.statistics import CacheStatistics

logger = get_logger(__name__)

T = TypeVar("T")

SCAN_BATCH_SIZE = 500


# =============================================================================
# CODEC
# =============================================================================


def encode_value(key: str, value: Any) -> bytes:
    """
    Serialize a value for Redis.

    Raises:
        CacheSerializationError: If orjson cannot encode the value
    """
    try:
        return orjson.dumps(value)
    except TypeError as e:
        raise CacheSerializationError.from_exception(
            e, message=f"Cannot encode cache value for {key}", key=key
        )


def decode_value(key: str, payload: str | bytes) -> Any:
    """
    Deserialize a value read from Redis.

    Raises:
        CacheSerializationError: If the payload is not valid JSON
    """
    try:
        return orjson.loads(payload)
    except orjson.JSONDecodeError as e:
        raise CacheSerializationError.from_exception(
            e, message=f"Cannot decode cache value for {key}", key=key
        )


# =============================================================================
# STORE
# =============================================================================


class RedisStore:
    """
    Redis-backed distributed cache tier.

    STAGE-2.2: L2 Redis cache

    Usage:
        store = RedisStore("redis://localhost:6379/0", stats=stats)
        await store.connect()

        await store.set("categories:all", [...], ttl=1800)
        result = await store.get("categories:all")
        if result.hit:
            ...

    Tests inject a client directly (``client=AsyncMock()``) instead of a URL.
    """

    def __init__(
        self,
        url: str | None,
        stats: CacheStatistics,
        namespace: str = "gallery:cache",
        timeout: float = 0.1,
        scan_timeout: float = 5.0,
        max_connections: int = 50,
        client: redis.Redis | None = None,
    ):
        """
        Initialize the store (no network I/O happens here).

        Args:
            url: Redis connection URL
            stats: Statistics collector that receives swallowed errors
            namespace: Prefix for every stored key
            timeout: Per-operation timeout in seconds
            scan_timeout: Timeout for scan-based operations in seconds
            max_connections: Connection pool size
            client: Pre-built client (skips pool creation)
        """
        self._url = url
        self._stats = stats
        self._namespace = namespace
        self._timeout = timeout
        self._scan_timeout = scan_timeout
        self._max_connections = max_connections
        self._client = client
        self._pool: ConnectionPool | None = None
        self._connected = False

    @property
    def connected(self) -> bool:
        return self._connected

    # -------------------------------------------------------------------------
    # Connection Lifecycle
    # -------------------------------------------------------------------------

    async def connect(self) -> None:
        """
        Establish the connection and verify it with a ping.

        STAGE-REDIS.CONNECT: Connection establishment

        A failure is logged and leaves the store disconnected; it is not raised.
        """
        if self._connected:
            return

        try:
            if self._client is None:
                if not self._url:
                    raise CacheConnectionError("No Redis URL configured")
                self._pool = ConnectionPool.from_url(
                    self._url,
                    max_connections=self._max_connections,
                    socket_connect_timeout=self._timeout,
                    socket_timeout=self._timeout,
                    decode_responses=True,
                )
                self._client = redis.Redis(connection_pool=self._pool)

            await asyncio.wait_for(self._client.ping(), timeout=self._timeout)
            self._connected = True

            logger.info(
                "Redis connected successfully",
                stage="REDIS.CONNECT",
                namespace=self._namespace,
                max_connections=self._max_connections,
            )

        except (RedisError, OSError, asyncio.TimeoutError, CacheConnectionError) as e:
            self._connected = False
            self._stats.record_error("connect")
            logger.warning(
                "Redis connection failed, using memory cache only",
                stage="REDIS.CONNECT",
                error=str(e) or e.__class__.__name__,
            )

    async def disconnect(self) -> None:
        """
        Close the client and its pool.

        STAGE-REDIS.DISCONNECT: Connection cleanup
        """
        if self._client is not None:
            try:
                await self._client.aclose()
            except (RedisError, OSError) as e:
                logger.warning("Redis close failed", stage="REDIS.DISCONNECT", error=str(e))

        if self._pool is not None:
            await self._pool.disconnect()

        self._connected = False
        logger.info("Redis disconnected", stage="REDIS.DISCONNECT")

    # -------------------------------------------------------------------------
    # Bounded Execution
    # -------------------------------------------------------------------------

    def _namespaced(self, key: str) -> str:
        return f"{self._namespace}:{key}"

    def _strip_namespace(self, full_key: str) -> str:
        return full_key[len(self._namespace) + 1:]

    async def _execute(
        self,
        operation: str,
        call: Callable[[], Awaitable[T]],
        key: str | None = None,
        timeout: float | None = None,
    ) -> T:
        """
        Run one Redis call under a hard timeout.

        Raises:
            CacheKeyError: On timeout or any Redis/transport failure
            CacheSerializationError: When the client cannot decode a reply
                (replies are decoded as UTF-8 inside the client)
        """
        try:
            return await asyncio.wait_for(call(), timeout=timeout or self._timeout)
        except asyncio.TimeoutError:
            raise CacheKeyError(
                f"Redis {operation} timed out",
                details={"key": key, "timeout": timeout or self._timeout},
            )
        except UnicodeDecodeError as e:
            raise CacheSerializationError.from_exception(
                e, message=f"Redis {operation} reply is not valid UTF-8", key=key
            )
        except (RedisError, OSError) as e:
            raise CacheKeyError.from_exception(e, message=f"Redis {operation} failed", key=key)

    def _record_failure(self, operation: str, error: CacheError, key: str | None = None) -> None:
        self._stats.record_error(operation)
        logger.warning(
            "Redis operation failed",
            stage=f"REDIS.{operation.upper()}",
            key=key,
            error_type=error.__class__.__name__,
            error=error.message,
        )

    # -------------------------------------------------------------------------
    # Key Operations
    # -------------------------------------------------------------------------

    async def get(self, key: str) -> LookupResult:
        """
        Get a value.

        STAGE-REDIS.GET: Redis GET operation
        """
        if not self._connected:
            return MISS

        try:
            payload = await self._execute("get", lambda: self._client.get(self._namespaced(key)), key)
            if payload is None:
                return MISS
            return LookupResult.found(decode_value(key, payload))
        except CacheError as e:
            self._record_failure("get", e, key)
            return MISS

    async def set(self, key: str, value: Any, ttl: int | float) -> bool:
        """
        Set a value with a TTL in seconds.

        STAGE-REDIS.SET: Redis SET operation

        Redis rejects non-positive expiry, so a TTL of zero deletes the key
        instead of writing it. Fractional TTLs round up to whole seconds.
        """
        if not self._connected:
            return False

        try:
            if ttl <= 0:
                await self._execute("set", lambda: self._client.delete(self._namespaced(key)), key)
                return True

            payload = encode_value(key, value)
            seconds = math.ceil(ttl)
            await self._execute(
                "set", lambda: self._client.set(self._namespaced(key), payload, ex=seconds), key
            )
            return True
        except CacheError as e:
            self._record_failure("set", e, key)
            return False

    async def delete(self, key: str) -> bool:
        """
        Delete a key.

        STAGE-REDIS.DELETE: Redis DEL operation
        """
        if not self._connected:
            return False

        try:
            removed = await self._execute(
                "delete", lambda: self._client.delete(self._namespaced(key)), key
            )
            return bool(removed)
        except CacheError as e:
            self._record_failure("delete", e, key)
            return False

    # -------------------------------------------------------------------------
    # Scan Operations
    # -------------------------------------------------------------------------

    async def _scan_namespace(self) -> list[str]:
        return [
            key
            async for key in self._client.scan_iter(
                match=f"{self._namespace}:*", count=SCAN_BATCH_SIZE
            )
        ]

    async def _delete_full_keys(self, full_keys: list[str]) -> None:
        for start in range(0, len(full_keys), SCAN_BATCH_SIZE):
            await self._client.delete(*full_keys[start:start + SCAN_BATCH_SIZE])

    async def clear(self) -> bool:
        """
        Remove every key in the namespace (never FLUSHDB).

        STAGE-REDIS.CLEAR: Namespace scan and delete
        """
        if not self._connected:
            return False

        async def _clear() -> int:
            full_keys = await self._scan_namespace()
            await self._delete_full_keys(full_keys)
            return len(full_keys)

        try:
            removed = await self._execute("clear", _clear, timeout=self._scan_timeout)
            logger.info("Redis namespace cleared", stage="REDIS.CLEAR", removed=removed)
            return True
        except CacheError as e:
            self._record_failure("clear", e)
            return False

    async def delete_by_pattern(self, pattern: str) -> list[str]:
        """
        Delete every namespaced key whose name matches a regular expression.

        STAGE-REDIS.PATTERN: Pattern invalidation

        The pattern is matched with ``re.search`` against the un-namespaced
        key, the same semantics the memory tier uses.

        Returns:
            Deleted keys (un-namespaced)
        """
        if not self._connected:
            return []

        try:
            compiled = re.compile(pattern)
        except re.error as e:
            self._record_failure(
                "pattern", CacheKeyError.from_exception(e, message="Invalid pattern", pattern=pattern)
            )
            return []

        async def _delete_matching() -> list[str]:
            matched = [
                full_key for full_key in await self._scan_namespace()
                if compiled.search(self._strip_namespace(full_key))
            ]
            await self._delete_full_keys(matched)
            return [self._strip_namespace(full_key) for full_key in matched]

        try:
            return await self._execute("pattern", _delete_matching, timeout=self._scan_timeout)
        except CacheError as e:
            self._record_failure("pattern", e)
            return []

    # -------------------------------------------------------------------------
    # Health
    # -------------------------------------------------------------------------

    async def health_check(self) -> dict[str, Any]:
        """
        Ping Redis and report latency.

        STAGE-REDIS.HEALTH: Redis health check

        A successful ping marks the store connected again, so a Redis that
        was down at startup is picked up once it becomes reachable.

        Returns:
            Dict with status, connected and latency_ms
        """
        health: dict[str, Any] = {
            "status": "healthy",
            "connected": False,
            "latency_ms": None,
        }

        if self._client is None:
            health["status"] = "unhealthy"
            health["error"] = "Client not initialized"
            return health

        start = time.perf_counter()
        try:
            await self._execute("ping", self._client.ping)
        except CacheError as e:
            self._connected = False
            health["status"] = "unhealthy"
            health["error"] = e.message
            return health

        self._connected = True
        health["connected"] = True
        health["latency_ms"] = round((time.perf_counter() - start) * 1000, 2)
        return health
