from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Optional

import structlog

from reride.utils.time import age_s, monotonic_s

DEFAULT_TTL_S = 300.0     # 5 minutes
DEFAULT_MAX_SIZE = 100

log = structlog.get_logger("ttl_cache")


@dataclass(slots=True)
class CacheEntry:
    key: str
    value: Any
    created_at: float  # monotonic seconds
    ttl_s: float

    def is_valid(self, now: float) -> bool:
        return age_s(self.created_at, now) <= self.ttl_s


@dataclass(slots=True)
class CacheStats:
    total: int
    valid: int
    expired: int
    max_size: int


class TTLCache:
    """
    Bounded key -> value store with per-entry expiry.

    - Expired entries are dropped lazily on get() and in bulk by cleanup().
    - When full, inserting a NEW key evicts the oldest-written entry (FIFO).
      Overwriting a key moves it to the newest position and never evicts.
    - A miss is a normal outcome: get() returns None, nothing raises.

    Stored values of None are indistinguishable from a miss; don't cache None.
    """
    __slots__ = ("max_size", "default_ttl_s", "_clock", "_store")

    def __init__(
        self,
        max_size: int = DEFAULT_MAX_SIZE,
        default_ttl_s: float = DEFAULT_TTL_S,
        clock: Optional[Callable[[], float]] = None,
    ):
        if max_size < 1:
            raise ValueError("max_size must be >= 1")
        self.max_size = int(max_size)
        self.default_ttl_s = float(default_ttl_s)
        self._clock = clock or monotonic_s
        # dicts keep insertion order; the first key is the oldest write
        self._store: dict[str, CacheEntry] = {}

    def _now(self) -> float:
        return self._clock()

    # ---------------------------- public API ---------------------------- #

    def get(self, key: str) -> Any | None:
        entry = self._store.get(key)
        if entry is None:
            return None
        if not entry.is_valid(self._now()):
            # expired; cleanup
            del self._store[key]
            log.debug("cache_expired", key=key)
            return None
        return entry.value

    def set(self, key: str, value: Any, ttl_s: Optional[float] = None) -> None:
        ttl = self.default_ttl_s if ttl_s is None else float(ttl_s)
        if key in self._store:
            # re-insert so the key becomes the newest write
            del self._store[key]
        elif len(self._store) >= self.max_size:
            oldest = next(iter(self._store))
            del self._store[oldest]
            log.debug("cache_evict", key=oldest, max_size=self.max_size)
        self._store[key] = CacheEntry(key=key, value=value, created_at=self._now(), ttl_s=ttl)

    def delete(self, key: str) -> bool:
        return self._store.pop(key, None) is not None

    def clear(self) -> None:
        self._store.clear()

    def cleanup(self) -> int:
        """Drop every expired entry. Returns how many were removed."""
        now = self._now()
        expired = [k for k, e in self._store.items() if not e.is_valid(now)]
        for k in expired:
            del self._store[k]
        return len(expired)

    def stats(self) -> CacheStats:
        now = self._now()
        valid = sum(1 for e in self._store.values() if e.is_valid(now))
        return CacheStats(
            total=len(self._store),
            valid=valid,
            expired=len(self._store) - valid,
            max_size=self.max_size,
        )

    def keys(self) -> list[str]:
        """Stored keys, oldest write first (expired ones included until purged)."""
        return list(self._store)

    def __len__(self) -> int:
        return len(self._store)

    def __contains__(self, key: object) -> bool:
        entry = self._store.get(key)  # type: ignore[arg-type]
        return entry is not None and entry.is_valid(self._now())
