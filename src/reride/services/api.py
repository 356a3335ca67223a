from __future__ import annotations

from typing import Any, Optional

import structlog

from reride.cache.janitor import CacheJanitor
from reride.cache.ttl_cache import TTLCache
from reride.config import Settings
from reride.fetch.cached_fetch import CachedFetcher
from reride.fetch.dedup import DedupFetcher
from reride.fetch.transport import AiohttpTransport, RequestOptions, Transport
from reride.utils.backoff import RetryPolicy

log = structlog.get_logger("api_client")


class ApiClient:
    """
    One shared cache for the process, built at startup and handed to services.

    Lifecycle:
        api = ApiClient(settings)
        await api.start()      # opens HTTP session, starts janitor
        ...
        await api.stop()

    or `async with ApiClient(settings) as api: ...`
    """
    def __init__(
        self,
        settings: Settings,
        transport: Optional[Transport] = None,
        cache: Optional[TTLCache] = None,
    ):
        self.settings = settings
        self.cache = cache or TTLCache(max_size=settings.cache_max_size, default_ttl_s=settings.cache_ttl_s)
        self.transport = transport or AiohttpTransport(settings.api_base_url, timeout_s=settings.http_timeout_s)
        self.janitor = CacheJanitor(self.cache, interval_s=settings.cache_cleanup_s)
        self.fetcher = CachedFetcher(self.cache, self.transport, retry=RetryPolicy(retries=settings.http_retries))
        self.deduper = DedupFetcher(self.fetcher)

    async def start(self) -> None:
        starter = getattr(self.transport, "start", None)
        if starter is not None:
            await starter()
        await self.janitor.start()
        log.info("api_client_started", base_url=self.settings.api_base_url)

    async def stop(self) -> None:
        await self.janitor.stop()
        stopper = getattr(self.transport, "stop", None)
        if stopper is not None:
            await stopper()
        log.info("api_client_stopped")

    async def __aenter__(self) -> "ApiClient":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.stop()

    async def get(
        self,
        path: str,
        *,
        params: Optional[dict[str, Any]] = None,
        cache_key: Optional[str] = None,
        ttl_s: Optional[float] = None,
    ) -> Any:
        """Deduplicated, cached GET. Without cache_key the key derives from path + params."""
        opts = RequestOptions(method="GET", params=dict(params or {}))
        return await self.deduper.fetch(path, opts, cache_key=cache_key, ttl_s=ttl_s)

    async def send(self, method: str, path: str, payload: Any = None) -> Any:
        """Uncached request for mutations (POST/PUT/DELETE)."""
        return await self.fetcher.fetch(path, RequestOptions(method=method, json=payload), use_cache=False)

    def invalidate(self) -> None:
        self.cache.clear()
        log.info("cache_invalidated")
