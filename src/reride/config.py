from __future__ import annotations

import os
from dataclasses import dataclass

from reride.errors import ConfigError


@dataclass(slots=True)
class Settings:
    api_base_url: str = "http://localhost:3000"
    cache_ttl_s: float = 300.0          # 5 minutes
    cache_max_size: int = 100
    cache_cleanup_s: float = 300.0      # janitor tick
    http_timeout_s: float = 10.0
    http_retries: int = 0               # opt-in; failures propagate unretried by default
    debounce_s: float = 0.3


def _num(name: str, default: float, cast=float, minimum: float = 0.0, strict: bool = True):
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        v = cast(raw.strip())
    except ValueError as e:
        raise ConfigError(f"{name} must be a number, got {raw!r}") from e
    if (strict and v <= minimum) or (not strict and v < minimum):
        op = ">" if strict else ">="
        raise ConfigError(f"{name} must be {op} {minimum}, got {v}")
    return v


def config_from_env() -> Settings:
    """Build Settings from RERIDE_* env vars (call load_dotenv() first if you use .env)."""
    d = Settings()
    return Settings(
        api_base_url=os.getenv("RERIDE_API_BASE_URL", d.api_base_url).rstrip("/"),
        cache_ttl_s=_num("RERIDE_CACHE_TTL_S", d.cache_ttl_s),
        cache_max_size=_num("RERIDE_CACHE_MAX_SIZE", d.cache_max_size, cast=int),
        cache_cleanup_s=_num("RERIDE_CACHE_CLEANUP_S", d.cache_cleanup_s),
        http_timeout_s=_num("RERIDE_HTTP_TIMEOUT_S", d.http_timeout_s),
        http_retries=_num("RERIDE_HTTP_RETRIES", d.http_retries, cast=int, strict=False),
        debounce_s=_num("RERIDE_DEBOUNCE_S", d.debounce_s, strict=False),
    )
