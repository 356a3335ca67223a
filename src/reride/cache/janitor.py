from __future__ import annotations

import asyncio
from typing import Optional

import structlog

from reride.cache.ttl_cache import TTLCache

DEFAULT_CLEANUP_INTERVAL_S = 300.0  # every 5 minutes

log = structlog.get_logger("cache_janitor")


class CacheJanitor:
    """
    Background task that purges expired cache entries on a fixed interval,
    independent of access patterns. Owned by the host lifecycle:
      await janitor.start()  # on startup
      await janitor.stop()   # on shutdown
    """
    def __init__(self, cache: TTLCache, interval_s: float = DEFAULT_CLEANUP_INTERVAL_S):
        if interval_s <= 0:
            raise ValueError("interval_s must be > 0")
        self.cache = cache
        self.interval_s = float(interval_s)
        self._task: Optional[asyncio.Task] = None
        self._stop = asyncio.Event()
        self.sweeps: int = 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._task = asyncio.create_task(self._loop(), name="cache-janitor")
        log.info("janitor_started", interval_s=self.interval_s)

    async def stop(self) -> None:
        self._stop.set()
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        log.info("janitor_stopped", sweeps=self.sweeps)

    def sweep(self) -> int:
        """One cleanup pass; returns the number of purged entries."""
        removed = self.cache.cleanup()
        self.sweeps += 1
        if removed:
            log.debug("janitor_sweep", removed=removed, remaining=len(self.cache))
        return removed

    async def _loop(self) -> None:
        while not self._stop.is_set():
            try:
                await asyncio.wait_for(self._stop.wait(), timeout=self.interval_s)
                break
            except asyncio.TimeoutError:
                pass
            try:
                self.sweep()
            except Exception as e:
                # keep the loop alive; next tick retries
                log.warning("janitor_sweep_failed", err=str(e))
