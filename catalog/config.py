"""Application configuration and constants."""
from __future__ import annotations

import os
from dataclasses import dataclass


def _get_env(name: str, default: str) -> str:
    value = os.getenv(name)
    return value if value is not None else default


@dataclass(frozen=True)
class Settings:
    """Simple settings container with environment variable overrides."""

    api_url: str = _get_env("CATALOG_API_URL", "https://dummyjson.com")
    request_timeout: float = float(_get_env("CATALOG_REQUEST_TIMEOUT", "10"))
    page_size: int = int(_get_env("CATALOG_PAGE_SIZE", "20"))
    page_window: int = int(_get_env("CATALOG_PAGE_WINDOW", "5"))
    search_debounce_ms: int = int(_get_env("CATALOG_SEARCH_DEBOUNCE_MS", "400"))
    prefs_backend: str = _get_env("CATALOG_PREFS_BACKEND", "file")
    prefs_path: str = _get_env("CATALOG_PREFS_PATH", ".catalog_prefs.json")
    prefs_prefix: str = _get_env("CATALOG_PREFS_PREFIX", "catalog:")
    redis_host: str = _get_env("REDIS_HOST", "localhost")
    redis_port: int = int(_get_env("REDIS_PORT", "6379"))
    log_level: str = _get_env("LOG_LEVEL", "INFO")


settings = Settings()
