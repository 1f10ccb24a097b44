"""
Cache Store Protocol

This module defines the lookup result type shared by both cache tiers and
the protocol the distributed (L2) tier implements, enabling dependency
injection and testability.

Architectural Decision: Protocol-based abstraction
- The facade talks to "a distributed store", never to Redis directly
- A no-op implementation stands in when L2 is disabled, so the facade
  carries no "is Redis connected?" branching
- Facilitates testing with fake implementations

Author: System Architect
Date: 2025-12-08
"""

from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable


@dataclass(frozen=True)
class LookupResult:
    """
    Tagged outcome of a tier lookup: a hit carrying a value, or a miss.

    A hit may legitimately carry ``None`` as its value, so callers must test
    ``result.hit`` rather than the value.
    """

    hit: bool
    value: Any = None

    @classmethod
    def found(cls, value: Any) -> "LookupResult":
        return cls(hit=True, value=value)


MISS = LookupResult(hit=False)


@runtime_checkable
class DistributedStore(Protocol):
    """
    Protocol defining the L2 (distributed) cache tier.

    Every operation is best-effort: implementations catch their own transport
    and serialization failures and report them as a miss / ``False`` instead
    of raising.

    Implementations:
    - RedisStore: Production Redis-backed tier
    - NullDistributedStore: Permanently disconnected no-op tier
    """

    @property
    def connected(self) -> bool:
        """Whether the tier is currently usable."""
        ...

    async def connect(self) -> None:
        """Establish the connection. Failure leaves ``connected`` False."""
        ...

    async def disconnect(self) -> None:
        """Close the connection."""
        ...

    async def get(self, key: str) -> LookupResult:
        """Look up a key."""
        ...

    async def set(self, key: str, value: Any, ttl: int) -> bool:
        """Store a value with a TTL in seconds."""
        ...

    async def delete(self, key: str) -> bool:
        """Delete a key; True if it existed."""
        ...

    async def clear(self) -> bool:
        """Remove every key owned by this store."""
        ...

    async def delete_by_pattern(self, pattern: str) -> list[str]:
        """Delete keys matching a regular expression; return the deleted keys."""
        ...

    async def health_check(self) -> dict[str, Any]:
        """Return ``{status, connected, latency_ms}``."""
        ...


class NullDistributedStore:
    """
    Distributed tier used when L2 is disabled.

    Implements the DistributedStore protocol as permanent no-ops.
    """

    @property
    def connected(self) -> bool:
        return False

    async def connect(self) -> None:
        return None

    async def disconnect(self) -> None:
        return None

    async def get(self, key: str) -> LookupResult:
        return MISS

    async def set(self, key: str, value: Any, ttl: int) -> bool:
        return False

    async def delete(self, key: str) -> bool:
        return False

    async def clear(self) -> bool:
        return False

    async def delete_by_pattern(self, pattern: str) -> list[str]:
        return []

    async def health_check(self) -> dict[str, Any]:
        return {"status": "disabled", "connected": False, "latency_ms": None}
