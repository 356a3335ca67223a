from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, Optional

import structlog

from reride.cache.ttl_cache import TTLCache
from reride.errors import FetchError
from reride.fetch.keys import request_key
from reride.fetch.transport import RequestOptions, Transport
from reride.utils.backoff import RetryPolicy

log = structlog.get_logger("cached_fetch")


def key_for(url: str, options: Optional[RequestOptions], cache_key: Optional[str] = None) -> str:
    """Explicit cache_key wins; otherwise derive from target + options."""
    if cache_key is not None:
        return cache_key
    return request_key(url, options.to_dict() if options else None)


class CachedFetcher:
    """
    Performs a request through `transport`, transparently caching successful
    JSON bodies in `cache`.

    Usage:
        fetcher = CachedFetcher(cache, transport)
        vehicles = await fetcher.fetch("/api/vehicles", cache_key="vehicles", ttl_s=120)

    Only successes are cached; a failure leaves the cache untouched so the next
    call goes back to the network.
    """
    def __init__(
        self,
        cache: TTLCache,
        transport: Transport,
        *,
        retry: Optional[RetryPolicy] = None,
    ):
        self.cache = cache
        self.transport = transport
        self.retry = retry or RetryPolicy()
        self.network_calls: int = 0

    async def fetch(
        self,
        url: str,
        options: Optional[RequestOptions] = None,
        *,
        cache_key: Optional[str] = None,
        ttl_s: Optional[float] = None,
        use_cache: bool = True,
    ) -> Any:
        key = key_for(url, options, cache_key)

        if use_cache:
            cached = self.cache.get(key)
            if cached is not None:
                log.debug("cache_hit", key=key)
                return cached
            log.debug("cache_miss", key=key)

        data = await self._request_with_retry(url, options or RequestOptions())

        if use_cache:
            self.cache.set(key, data, ttl_s)
        return data

    async def _request_with_retry(self, url: str, options: RequestOptions) -> Any:
        delays = self.retry.delays()
        attempt = 0
        while True:
            attempt += 1
            try:
                return await self._request_once(url, options)
            except FetchError as e:
                delay = next(delays, None)
                if delay is None:
                    log.warning("fetch_failed", url=url, status=e.status, attempts=attempt, err=str(e))
                    raise
                log.info("fetch_retry", url=url, status=e.status, attempt=attempt, backoff_s=delay)
                await self.retry.pause(delay)

    async def _request_once(self, url: str, options: RequestOptions) -> Any:
        self.network_calls += 1
        try:
            resp = await self.transport.request(url, options)
        except FetchError:
            raise
        except (asyncio.TimeoutError, OSError) as e:
            raise FetchError(f"request to {url} failed: {e!r}", url=url) from e
        if not resp.ok:
            raise FetchError.for_status(url, resp.status)
        return await resp.json()


async def batch_requests(*factories: Callable[[], Awaitable[Any]]) -> list[Any]:
    """Run zero-arg coroutine factories concurrently; results keep input order."""
    return list(await asyncio.gather(*(f() for f in factories)))
