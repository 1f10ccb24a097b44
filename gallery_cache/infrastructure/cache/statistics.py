"""
Cache Statistics Collector

Per-instance counters for the cache facade, mirrored into Prometheus.

Invariants:
- hits + misses == number of facade ``get`` calls
- memory_hits + distributed_hits == hits
- Counters only grow; ``clear()`` on the cache does not reset them

Author: Refactored for clarity and maintainability
Date: 2025-12-13
"""

from typing import Any

from gallery_cache.core.config.constants import CacheTier
from gallery_cache.infrastructure.monitoring.metrics_collector import (
    MetricsCollector,
    get_metrics_collector,
)


class CacheStatistics:
    """
    Tracks cache performance counters.

    Why a separate collector?
    - The facade stays free of bookkeeping code
    - The Redis adapter records its own swallowed errors here
    - Each CacheManager owns one, so test instances never share counts
    """

    def __init__(self, metrics: MetricsCollector | None = None):
        self._metrics = metrics or get_metrics_collector()
        self.memory_hits = 0
        self.distributed_hits = 0
        self.misses = 0
        self.sets = 0
        self.deletes = 0
        self.errors = 0

    @property
    def hits(self) -> int:
        return self.memory_hits + self.distributed_hits

    @property
    def hit_rate(self) -> float:
        """Hit rate as a percentage rounded to two decimals (0.0 with no lookups)."""
        total = self.hits + self.misses
        if total == 0:
            return 0.0
        return round(self.hits / total * 100, 2)

    def record_hit(self, tier: CacheTier) -> None:
        if tier is CacheTier.MEMORY:
            self.memory_hits += 1
        else:
            self.distributed_hits += 1
        self._metrics.record_cache_hit(tier.value)

    def record_miss(self) -> None:
        self.misses += 1
        self._metrics.record_cache_miss()

    def record_set(self) -> None:
        self.sets += 1
        self._metrics.record_cache_set()

    def record_delete(self) -> None:
        self.deletes += 1
        self._metrics.record_cache_delete()

    def record_error(self, operation: str) -> None:
        self.errors += 1
        self._metrics.record_cache_error(operation)

    def snapshot(self, entry_count: int, distributed_connected: bool) -> dict[str, Any]:
        """
        Get cache performance statistics.

        Args:
            entry_count: Current memory-tier population
            distributed_connected: Whether the Redis tier is usable

        Returns:
            Dict with counters, derived hit rate and tier state
        """
        self._metrics.set_cache_entries(entry_count)
        return {
            "hits": self.hits,
            "misses": self.misses,
            "sets": self.sets,
            "deletes": self.deletes,
            "errors": self.errors,
            "memory_hits": self.memory_hits,
            "distributed_hits": self.distributed_hits,
            "hit_rate": self.hit_rate,
            "entry_count": entry_count,
            "distributed_connected": distributed_connected,
        }
