from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any, Optional, Protocol

import aiohttp
import structlog

from reride.errors import FetchError

DEFAULT_HEADERS = {"Content-Type": "application/json"}

log = structlog.get_logger("transport")


@dataclass(slots=True)
class RequestOptions:
    """Everything about a request except its target URL."""
    method: str = "GET"
    headers: dict[str, str] = field(default_factory=dict)
    params: dict[str, Any] = field(default_factory=dict)
    json: Any = None
    data: Any = None

    def to_dict(self) -> dict[str, Any]:
        """Only non-default fields; a bare GET serializes as {}."""
        out: dict[str, Any] = {}
        if self.method.upper() != "GET":
            out["method"] = self.method.upper()
        if self.headers:
            out["headers"] = dict(self.headers)
        if self.params:
            out["params"] = dict(self.params)
        if self.json is not None:
            out["json"] = self.json
        if self.data is not None:
            out["data"] = self.data
        return out


class Response(Protocol):
    status: int

    @property
    def ok(self) -> bool: ...

    async def json(self) -> Any: ...


class Transport(Protocol):
    async def request(self, url: str, options: RequestOptions) -> Response: ...


@dataclass(slots=True)
class BufferedResponse:
    """Response whose body was read before the connection was released."""
    status: int
    body: Any = None

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    async def json(self) -> Any:
        return self.body


class AiohttpTransport:
    """
    HTTP transport on a shared aiohttp.ClientSession.
    - Session is opened by start() (or lazily on first request) and closed by stop().
    - Relative URLs are joined onto base_url.
    - Every request sends Content-Type: application/json unless overridden.
    - Timeouts are aiohttp's; the cache layer adds none.
    """
    def __init__(self, base_url: str = "", timeout_s: float = 10.0):
        self.base_url = base_url.rstrip("/")
        self.timeout_s = timeout_s
        self._session: Optional[aiohttp.ClientSession] = None

    async def start(self) -> aiohttp.ClientSession:
        if self._session is None:
            timeout = aiohttp.ClientTimeout(total=self.timeout_s)
            self._session = aiohttp.ClientSession(timeout=timeout)
        return self._session

    async def stop(self) -> None:
        if self._session:
            await self._session.close()
            self._session = None

    def resolve(self, url: str) -> str:
        if url.startswith(("http://", "https://")) or not self.base_url:
            return url
        return f"{self.base_url}/{url.lstrip('/')}"

    async def request(self, url: str, options: RequestOptions) -> BufferedResponse:
        session = await self.start()
        target = self.resolve(url)
        headers = {**DEFAULT_HEADERS, **options.headers}
        try:
            async with session.request(
                options.method.upper(),
                target,
                headers=headers,
                params=options.params or None,
                json=options.json,
                data=options.data,
            ) as resp:
                if not 200 <= resp.status < 300:
                    return BufferedResponse(status=resp.status)
                try:
                    body = await resp.json(content_type=None)
                except ValueError as e:
                    log.warning("http_bad_json", url=target, status=resp.status)
                    raise FetchError(f"invalid JSON body from {target}: {e}", url=target, status=resp.status) from e
                return BufferedResponse(status=resp.status, body=body)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            log.warning("http_request_failed", url=target, err=str(e) or type(e).__name__)
            raise FetchError(f"request to {target} failed: {e!r}", url=target) from e
