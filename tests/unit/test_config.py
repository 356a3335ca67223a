import pytest

from reride.config import config_from_env
from reride.errors import ConfigError

ENV_VARS = [
    "RERIDE_API_BASE_URL", "RERIDE_CACHE_TTL_S", "RERIDE_CACHE_MAX_SIZE",
    "RERIDE_CACHE_CLEANUP_S", "RERIDE_HTTP_TIMEOUT_S", "RERIDE_HTTP_RETRIES", "RERIDE_DEBOUNCE_S",
]

@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for v in ENV_VARS:
        monkeypatch.delenv(v, raising=False)

def test_defaults():
    s = config_from_env()
    assert s.api_base_url == "http://localhost:3000"
    assert s.cache_ttl_s == 300.0
    assert s.cache_max_size == 100
    assert s.cache_cleanup_s == 300.0
    assert s.http_retries == 0
    assert s.debounce_s == 0.3

def test_overrides(monkeypatch):
    monkeypatch.setenv("RERIDE_API_BASE_URL", "https://reride.example/")
    monkeypatch.setenv("RERIDE_CACHE_MAX_SIZE", "250")
    monkeypatch.setenv("RERIDE_CACHE_TTL_S", "120")
    monkeypatch.setenv("RERIDE_HTTP_RETRIES", "3")
    s = config_from_env()
    assert s.api_base_url == "https://reride.example"
    assert s.cache_max_size == 250
    assert s.cache_ttl_s == 120.0
    assert s.http_retries == 3

@pytest.mark.parametrize("name,value", [
    ("RERIDE_CACHE_MAX_SIZE", "0"),
    ("RERIDE_CACHE_MAX_SIZE", "lots"),
    ("RERIDE_CACHE_TTL_S", "-1"),
    ("RERIDE_HTTP_RETRIES", "-2"),
])
def test_invalid_values_raise(monkeypatch, name, value):
    monkeypatch.setenv(name, value)
    with pytest.raises(ConfigError):
        config_from_env()
