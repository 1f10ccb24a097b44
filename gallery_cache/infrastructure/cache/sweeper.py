"""
Eviction Sweeper

Periodic background task that reclaims memory from the L1 entry store.

Each pass:
    1. Removes every entry whose expiry has passed
    2. If the population still exceeds the bound, removes the
       oldest-inserted entries until it fits

The sweeper never runs on the request path. Skipped or delayed passes only
delay memory reclamation: expired entries are still caught lazily by reads.

Author: System Architect
Date: 2025-12-13
"""

import asyncio
from dataclasses import dataclass

from gallery_cache.core.config.constants import DEFAULT_CLEANUP_INTERVAL
from gallery_cache.core.logging.logger import get_logger, log_stage
from gallery_cache.infrastructure.cache.entry_store import MemoryEntryStore

logger = get_logger(__name__)


@dataclass(frozen=True)
class SweepResult:
    """Outcome of one sweep pass."""

    expired: int
    evicted: int

    @property
    def removed(self) -> int:
        return self.expired + self.evicted


class EvictionSweeper:
    """
    Owns the background sweep task for one entry store.

    Lifecycle:
        sweeper = EvictionSweeper(store, interval=60)
        sweeper.start()          # schedules the loop on the running event loop
        ...
        await sweeper.stop()     # cancels and awaits the loop

    ``run_once()`` performs a single pass and is what tests call directly.
    """

    def __init__(self, store: MemoryEntryStore, interval: float = DEFAULT_CLEANUP_INTERVAL):
        self._store = store
        self._interval = interval
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def run_once(self) -> SweepResult:
        """
        Perform one sweep pass.

        STAGE-S.1: Expiry purge
        STAGE-S.2: Overflow eviction
        """
        expired = await self._store.purge_expired()
        evicted = await self._store.evict_overflow()
        result = SweepResult(expired=expired, evicted=evicted)

        if result.removed > 0:
            log_stage(
                logger,
                "S.1",
                "Cache cleanup removed expired/excess entries",
                expired=expired,
                evicted=evicted,
                remaining=self._store.size,
            )

        return result

    async def _loop(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            try:
                await self.run_once()
            except Exception:
                # A failed pass must not kill the schedule; the next one retries
                logger.exception("Cache cleanup pass failed", stage="S.1")

    def start(self) -> None:
        """Start the background loop (no-op if already running)."""
        if self.running:
            return
        self._task = asyncio.create_task(self._loop())
        log_stage(logger, "S.0", "Eviction sweeper started", interval_seconds=self._interval)

    async def stop(self) -> None:
        """Cancel the background loop and wait for it to finish."""
        if self._task is None:
            return

        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None

        log_stage(logger, "S.2", "Eviction sweeper stopped")
