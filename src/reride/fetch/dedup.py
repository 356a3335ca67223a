from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, Optional

import structlog

from reride.fetch.cached_fetch import CachedFetcher, key_for
from reride.fetch.transport import RequestOptions

log = structlog.get_logger("dedup")


class SingleFlight:
    """
    At most one in-flight call per key.

    - First caller for a key starts factory() as a task and registers it.
    - Callers arriving while it runs await the same task and see the same
      result or the same exception.
    - The registration is dropped as soon as the task settles, success or
      failure, so the next caller starts fresh instead of replaying a failure.

    No lock: check-and-register has no await in between, and everything runs on
    one event loop. A cancelled waiter does not cancel the shared task.
    """
    def __init__(self):
        self._pending: dict[str, asyncio.Task] = {}

    def is_pending(self, key: str) -> bool:
        return key in self._pending

    def pending_count(self) -> int:
        return len(self._pending)

    async def run(self, key: str, factory: Callable[[], Awaitable[Any]]) -> Any:
        task = self._pending.get(key)
        if task is not None and task.done():
            # settled but its done-callback hasn't run yet; start fresh
            del self._pending[key]
            task = None
        if task is not None:
            log.debug("dedup_join", key=key)
        else:
            task = asyncio.ensure_future(factory())
            self._pending[key] = task
            task.add_done_callback(lambda t, k=key: self._settled(k, t))
        return await asyncio.shield(task)

    def _settled(self, key: str, task: asyncio.Task) -> None:
        if self._pending.get(key) is task:
            del self._pending[key]
        # mark the outcome as observed even if every waiter went away
        if not task.cancelled():
            task.exception()


class DedupFetcher:
    """Cached fetch behind a SingleFlight, keyed like CachedFetcher."""
    def __init__(self, fetcher: CachedFetcher, single_flight: Optional[SingleFlight] = None):
        self.fetcher = fetcher
        self.single_flight = single_flight or SingleFlight()

    async def fetch(
        self,
        url: str,
        options: Optional[RequestOptions] = None,
        *,
        cache_key: Optional[str] = None,
        ttl_s: Optional[float] = None,
    ) -> Any:
        key = key_for(url, options, cache_key)
        return await self.single_flight.run(
            key,
            lambda: self.fetcher.fetch(url, options, cache_key=key, ttl_s=ttl_s),
        )
