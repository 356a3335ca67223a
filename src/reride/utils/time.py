from __future__ import annotations

import time

def monotonic_s() -> float:
    """Monotonic seconds; immune to wall-clock jumps. Used for cache ages."""
    return time.monotonic()

def age_s(created_at: float, now: float) -> float:
    """Non-negative age of a timestamp relative to `now` (clamped at 0)."""
    return max(0.0, now - created_at)
