"""Durable client-side preferences with file, Redis and in-memory backends."""
from __future__ import annotations

import json
import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional, Protocol

import redis
from pydantic import ValidationError

from .config import settings
from .models import SortSpec

logger = logging.getLogger(__name__)

SORT_KEY = "products_sort"
TOKEN_KEY = "token"


class PreferenceBackend(Protocol):
    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> None: ...


@dataclass
class RedisPreferences:
    client: redis.Redis
    prefix: str = "catalog:"

    def get(self, key: str) -> Optional[str]:
        try:
            data = self.client.get(self.prefix + key)
        except redis.RedisError as exc:  # pragma: no cover - protective
            logger.warning("Redis get failed: %s", exc)
            return None
        if data is None:
            return None
        return data.decode("utf-8") if isinstance(data, bytes) else str(data)

    def set(self, key: str, value: str) -> None:
        try:
            self.client.set(self.prefix + key, value)
        except redis.RedisError as exc:  # pragma: no cover - protective
            logger.warning("Redis set failed: %s", exc)

    def delete(self, key: str) -> None:
        try:
            self.client.delete(self.prefix + key)
        except redis.RedisError as exc:  # pragma: no cover - protective
            logger.warning("Redis delete failed: %s", exc)


class FilePreferences:
    """Key/value strings kept in a single JSON file."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self._lock = threading.Lock()

    def _read(self) -> Dict[str, str]:
        try:
            with self.path.open("r", encoding="utf-8") as fh:
                data = json.load(fh)
        except FileNotFoundError:
            return {}
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("Preferences file %s is unreadable, starting empty: %s", self.path, exc)
            return {}
        if not isinstance(data, dict):
            return {}
        return {str(k): v for k, v in data.items() if isinstance(v, str)}

    def _write(self, data: Dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        with tmp_path.open("w", encoding="utf-8") as fh:
            json.dump(data, fh, ensure_ascii=False, indent=2)
        tmp_path.replace(self.path)

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._read().get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            data = self._read()
            data[key] = value
            self._write(data)

    def delete(self, key: str) -> None:
        with self._lock:
            data = self._read()
            if data.pop(key, None) is not None:
                self._write(data)


class InMemoryPreferences:
    def __init__(self) -> None:
        self._store: Dict[str, str] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._store.get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._store[key] = value

    def delete(self, key: str) -> None:
        with self._lock:
            self._store.pop(key, None)


_preferences: PreferenceBackend | None = None


def get_preferences() -> PreferenceBackend:
    global _preferences
    if _preferences is not None:
        return _preferences
    backend = settings.prefs_backend.lower()
    if backend == "memory":
        _preferences = InMemoryPreferences()
    elif backend == "redis":
        try:
            client = redis.Redis(host=settings.redis_host, port=settings.redis_port, decode_responses=False)
            client.ping()
            logger.info("Using Redis preferences at %s:%s", settings.redis_host, settings.redis_port)
            _preferences = RedisPreferences(client, prefix=settings.prefs_prefix)
        except redis.RedisError:
            logger.warning("Redis not available, storing preferences in %s", settings.prefs_path)
            _preferences = FilePreferences(settings.prefs_path)
    else:
        _preferences = FilePreferences(settings.prefs_path)
    return _preferences


def load_sort(backend: PreferenceBackend) -> SortSpec | None:
    """Read the stored sort preference, treating malformed data as absent."""
    raw = backend.get(SORT_KEY)
    if not raw:
        return None
    try:
        return SortSpec.model_validate_json(raw)
    except ValidationError as exc:
        logger.debug("Discarding malformed sort preference %r: %s", raw, exc)
        return None


def save_sort(backend: PreferenceBackend, sort: SortSpec | None) -> None:
    if sort is None:
        backend.delete(SORT_KEY)
    else:
        backend.set(SORT_KEY, sort.model_dump_json())
