import asyncio
import json

from reride.fetch.transport import BufferedResponse


class FakeTransport:
    """
    Scripted stand-in for AiohttpTransport.
    Map url -> payload (or status int / Exception) in `routes`.
    Records every request in `calls`; `delay` simulates network latency.
    """
    def __init__(self, routes=None, delay=0.0):
        self.routes = dict(routes or {})
        self.delay = delay
        self.calls = []
        self.started = False
        self.stopped = False

    async def start(self):
        self.started = True

    async def stop(self):
        self.stopped = True

    async def request(self, url, options):
        self.calls.append((url, options.method.upper(), options.json))
        if self.delay:
            await asyncio.sleep(self.delay)
        route = self.routes.get(url, 404)
        if isinstance(route, Exception):
            raise route
        if callable(route):
            route = route(url, options)
        if isinstance(route, int):
            return BufferedResponse(status=route)
        # round-trip through JSON so callers never share our objects
        return BufferedResponse(status=200, body=json.loads(json.dumps(route)))

    def count(self, url=None):
        if url is None:
            return len(self.calls)
        return sum(1 for u, _, _ in self.calls if u == url)


class FakeClock:
    """Manually advanced monotonic clock for TTL tests."""
    def __init__(self, start=1000.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds
