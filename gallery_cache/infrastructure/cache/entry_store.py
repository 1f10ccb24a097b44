"""
L1 Entry Store

Bounded, process-local key/value table with per-key expiry.

STAGE-2.1: L1 in-memory cache

This is a per-process cache, not shared across workers. For distributed
caching, see RedisStore (L2).

Implementation Details:
- Uses OrderedDict for O(1) access and insertion ordering
- Coroutine-safe via asyncio.Lock (shared by request handlers and the sweeper)
- Values are stored natively, never serialized
- The store never evicts on write; the population bound is enforced by
  the EvictionSweeper, which removes the oldest-inserted entries first.
  This is insertion order, not LRU: reads do not reorder entries.

Author: System Architect
Date: 2025-12-13
"""

import asyncio
import re
import time
from collections import OrderedDict
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from gallery_cache.core.config.constants import DEFAULT_MAX_MEMORY_ITEMS
from gallery_cache.core.interfaces.cache import MISS, LookupResult


@dataclass
class CacheEntry:
    """A cached value and its absolute expiry timestamp (clock seconds)."""

    key: str
    value: Any
    expires_at: float

    def is_expired(self, now: float) -> bool:
        """
        Whether the entry is past its lifetime at ``now``.

        The boundary is exclusive: at exactly ``expires_at`` the entry is
        already gone (a lookup at that instant is a miss, not a hit). This
        keeps a TTL of 0, including a clamped negative TTL, from ever being
        served, even when the clock has not moved between set and get.
        """
        return now >= self.expires_at


class MemoryEntryStore:
    """
    In-memory entry store with TTL expiry.

    The clock is injectable so expiry can be tested without sleeping.
    """

    def __init__(
        self,
        max_entries: int = DEFAULT_MAX_MEMORY_ITEMS,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize the store.

        Args:
            max_entries: Population bound enforced by the sweeper
            clock: Monotonic time source in seconds
        """
        self._max_entries = max_entries
        self._clock = clock
        self._entries: OrderedDict[str, CacheEntry] = OrderedDict()
        self._lock = asyncio.Lock()

    @property
    def max_entries(self) -> int:
        return self._max_entries

    @property
    def size(self) -> int:
        """Current number of entries, expired ones included until swept."""
        return len(self._entries)

    async def set(self, key: str, value: Any, ttl: int | float) -> None:
        """
        Store a value for ``ttl`` seconds (negative TTLs are clamped to 0).

        Overwriting a key counts as a fresh insertion: it moves to the back
        of the eviction order.
        """
        expires_at = self._clock() + max(ttl, 0)
        async with self._lock:
            self._entries.pop(key, None)
            self._entries[key] = CacheEntry(key=key, value=value, expires_at=expires_at)

    async def get(self, key: str) -> LookupResult:
        """
        Look up a key.

        Returns a hit iff the key exists and has not expired. An expired
        entry found here is removed on the spot.
        """
        async with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return MISS
            if entry.is_expired(self._clock()):
                del self._entries[key]
                return MISS
            return LookupResult.found(entry.value)

    async def delete(self, key: str) -> bool:
        """Remove a key. Returns True if something was removed."""
        async with self._lock:
            return self._entries.pop(key, None) is not None

    async def clear(self) -> None:
        async with self._lock:
            self._entries.clear()

    async def keys(self) -> list[str]:
        """All keys, oldest insertion first."""
        async with self._lock:
            return list(self._entries.keys())

    async def remove_matching(self, pattern: re.Pattern[str]) -> list[str]:
        """
        Remove every key the compiled pattern matches (``re.search`` semantics).

        Returns:
            The removed keys
        """
        async with self._lock:
            matched = [key for key in self._entries if pattern.search(key)]
            for key in matched:
                del self._entries[key]
            return matched

    async def purge_expired(self) -> int:
        """Remove every expired entry. Returns the number removed."""
        now = self._clock()
        async with self._lock:
            expired = [key for key, entry in self._entries.items() if entry.is_expired(now)]
            for key in expired:
                del self._entries[key]
            return len(expired)

    async def evict_overflow(self) -> int:
        """
        Remove the oldest-inserted entries until the population is within bounds.

        Returns:
            The number of entries evicted
        """
        async with self._lock:
            excess = len(self._entries) - self._max_entries
            for _ in range(max(excess, 0)):
                self._entries.popitem(last=False)
            return max(excess, 0)
