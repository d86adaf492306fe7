from __future__ import annotations

import json
import logging
import threading
from pathlib import Path
from typing import Any, Dict, Optional, Protocol

import redis

from .config import Settings

logger = logging.getLogger(__name__)

FIRST_RUN_KEY = "firstRun"
REDIS_NAMESPACE = "trackgate:flags"


class FlagStore(Protocol):
    def get_boolean(self, key: str, default: bool) -> bool:
        ...

    def set_boolean(self, key: str, value: bool) -> None:
        ...


class MemoryFlagStore:
    def __init__(self, initial: Optional[Dict[str, bool]] = None) -> None:
        self._values: Dict[str, bool] = dict(initial or {})

    def get_boolean(self, key: str, default: bool) -> bool:
        return self._values.get(key, default)

    def set_boolean(self, key: str, value: bool) -> None:
        self._values[key] = bool(value)


class FileFlagStore:
    """Flags persisted as a JSON object, rewritten in full on every change."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self._lock = threading.Lock()

    def get_boolean(self, key: str, default: bool) -> bool:
        value = self._load().get(key)
        if isinstance(value, bool):
            return value
        return default

    def set_boolean(self, key: str, value: bool) -> None:
        with self._lock:
            data = self._load()
            data[key] = bool(value)
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
            tmp_path.write_text(json.dumps(data, indent=2), encoding="utf-8")
            tmp_path.replace(self.path)

    def _load(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError):
            logger.debug("Failed to parse flag store %s", self.path, exc_info=True)
            return {}
        if not isinstance(data, dict):
            logger.debug("Ignoring non-object flag store %s", self.path)
            return {}
        return data


class RedisFlagStore:
    def __init__(self, client: redis.Redis, namespace: str = REDIS_NAMESPACE) -> None:
        self._redis = client
        self.namespace = namespace

    @classmethod
    def from_url(cls, redis_url: str, namespace: str = REDIS_NAMESPACE) -> "RedisFlagStore":
        client = redis.Redis.from_url(redis_url, encoding="utf-8", decode_responses=True)
        return cls(client, namespace)

    def get_boolean(self, key: str, default: bool) -> bool:
        raw = self._redis.hget(self.namespace, key)
        if raw is None:
            return default
        if isinstance(raw, bytes):
            raw = raw.decode("utf-8")
        return raw == "1"

    def set_boolean(self, key: str, value: bool) -> None:
        self._redis.hset(self.namespace, key, "1" if value else "0")


def build_store(settings: Settings) -> FlagStore:
    if settings.redis_url:
        logger.info("Using redis flag store")
        return RedisFlagStore.from_url(settings.redis_url)
    logger.info("Using file flag store at %s", settings.state_path)
    return FileFlagStore(settings.state_path)
