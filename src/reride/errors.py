from __future__ import annotations

from typing import Optional


class FetchError(Exception):
    """
    The underlying network call could not complete: connectivity failure,
    timeout, or a non-success HTTP status. Never cached; shared unchanged with
    every waiter of a deduplicated or debounced call.
    """
    def __init__(self, message: str, *, url: str = "", status: Optional[int] = None):
        super().__init__(message)
        self.url = url
        self.status = status

    @classmethod
    def for_status(cls, url: str, status: int) -> "FetchError":
        return cls(f"HTTP error! status: {status}", url=url, status=status)


class ConfigError(ValueError):
    """Invalid value in the environment-driven settings."""
