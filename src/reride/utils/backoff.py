from __future__ import annotations

import asyncio
import random
from dataclasses import dataclass
from typing import Iterator

def next_backoff(prev: float, cap: float) -> float:
    """Doubling step, never above cap."""
    return min(prev * 2.0, cap)

def with_jitter(v: float, *, ratio: float = 0.2) -> float:
    """Scale v by a random factor in [1-ratio, 1+ratio]."""
    return v * (1.0 - ratio + 2.0 * ratio * random.random())


@dataclass(slots=True)
class RetryPolicy:
    """
    How many times a failed request is re-attempted and how long to wait between.
    retries=0 means a single attempt (the default for cached fetches).
    Delays follow 1s, 2s, 4s, ... capped at max_backoff_s.
    """
    retries: int = 0
    initial_backoff_s: float = 1.0
    max_backoff_s: float = 30.0
    jitter_ratio: float = 0.0

    @property
    def attempts(self) -> int:
        return max(0, self.retries) + 1

    def delays(self) -> Iterator[float]:
        """Delay before each re-attempt; yields exactly `retries` values."""
        v = self.initial_backoff_s
        for _ in range(max(0, self.retries)):
            yield with_jitter(v, ratio=self.jitter_ratio) if self.jitter_ratio else v
            v = next_backoff(v, self.max_backoff_s)

    async def pause(self, delay_s: float) -> None:
        await asyncio.sleep(delay_s)
