from __future__ import annotations

import asyncio
import functools
import inspect
from typing import Any, Callable, Optional

import structlog

from reride.utils.time import monotonic_s

DEFAULT_DEBOUNCE_S = 0.3

log = structlog.get_logger("debounce")


class Debounced:
    """
    Collapse a burst of calls into one execution after `delay_s` of quiet.

    - Every call restarts the timer; when it fires, fn runs once with the
      arguments of the LAST call in the burst.
    - All callers from that window get the same result (or exception).
    - Executions never overlap: a window that fires while the previous run is
      still in flight waits for that run to deliver first.

    fn may be a coroutine function or a plain callable.
    """
    def __init__(self, fn: Callable[..., Any], delay_s: float = DEFAULT_DEBOUNCE_S):
        if delay_s < 0:
            raise ValueError("delay_s must be >= 0")
        self.fn = fn
        self.delay_s = float(delay_s)
        self.executions: int = 0
        self._timer: Optional[asyncio.TimerHandle] = None
        self._waiters: list[asyncio.Future] = []
        self._call: tuple[tuple, dict] = ((), {})
        self._running: Optional[asyncio.Task] = None

    @property
    def pending(self) -> bool:
        """True while a window is open (timer armed, fn not started)."""
        return self._timer is not None

    async def __call__(self, *args: Any, **kwargs: Any) -> Any:
        loop = asyncio.get_running_loop()
        if self._timer is not None:
            self._timer.cancel()
        self._call = (args, kwargs)
        fut = loop.create_future()
        self._waiters.append(fut)
        self._timer = loop.call_later(self.delay_s, self._fire)
        return await fut

    def cancel(self) -> None:
        """Drop the open window; its callers get CancelledError. A running fn is left alone."""
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        waiters, self._waiters = self._waiters, []
        for w in waiters:
            w.cancel()

    def _fire(self) -> None:
        self._timer = None
        waiters, self._waiters = self._waiters, []
        args, kwargs = self._call
        prev = self._running
        self._running = asyncio.ensure_future(self._execute(prev, waiters, args, kwargs))

    async def _execute(self, prev: Optional[asyncio.Task], waiters: list[asyncio.Future], args: tuple, kwargs: dict) -> None:
        if prev is not None and not prev.done():
            await asyncio.wait([prev])
        self.executions += 1
        try:
            result = self.fn(*args, **kwargs)
            if inspect.isawaitable(result):
                result = await result
        except asyncio.CancelledError:
            for w in waiters:
                w.cancel()
            raise
        except Exception as e:
            log.debug("debounced_call_failed", fn=getattr(self.fn, "__name__", "?"), err=str(e))
            for w in waiters:
                if not w.done():
                    w.set_exception(e)
        else:
            for w in waiters:
                if not w.done():
                    w.set_result(result)


def debounce(fn: Callable[..., Any], delay_s: float = DEFAULT_DEBOUNCE_S) -> Debounced:
    return Debounced(fn, delay_s)


def throttle(
    fn: Callable[..., Any],
    interval_s: float,
    clock: Callable[[], float] = monotonic_s,
) -> Callable[..., Any]:
    """
    Leading-edge throttle: the first call runs, further calls within
    interval_s are dropped (return None).
    """
    last: list[Optional[float]] = [None]

    @functools.wraps(fn)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        now = clock()
        if last[0] is not None and now - last[0] < interval_s:
            return None
        last[0] = now
        return fn(*args, **kwargs)

    return wrapper
