from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)
ENV_PREFIX = "TRACKGATE_"

NETWORK_TIMEOUT = 300
DEFAULT_COLLECT_URL = "https://www.google-analytics.com/collect"


def _env(name: str, default: Optional[str] = None) -> Optional[str]:
    return os.environ.get(f"{ENV_PREFIX}{name}", default)


def _as_float(name: str, default: float) -> float:
    raw = _env(name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning("Invalid float for %s: %s. Using default %s.", name, raw, default)
        return default


def _as_int(name: str, default: int) -> int:
    raw = _env(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("Invalid int for %s: %s. Using default %s.", name, raw, default)
        return default


def _as_optional_int(name: str) -> Optional[int]:
    raw = _env(name)
    if not raw:
        return None
    try:
        return int(raw)
    except ValueError:
        logger.warning("Invalid int for %s: %s. Ignoring.", name, raw)
        return None


def _as_bool(name: str, default: bool) -> bool:
    raw = _env(name)
    if not raw:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _path(name: str, default: str) -> Path:
    raw = _env(name, default)
    return Path(raw).expanduser().resolve()


@dataclass(slots=True)
class Settings:
    tracking_key: str = ""
    network_timeout: int = NETWORK_TIMEOUT
    collect_url: str = DEFAULT_COLLECT_URL
    enable_analytics: bool = True
    queue_size: int = 1000
    workers: int = 2
    drain_timeout: float = 5.0
    redis_url: Optional[str] = None
    state_path: Path = Path("~/.trackgate/state.json")
    prometheus_port: Optional[int] = None
    prometheus_addr: str = "0.0.0.0"
    log_level: str = "INFO"
    dry_run: bool = False


@lru_cache(maxsize=1)
def load_settings() -> Settings:
    workers = _as_int("WORKERS", 2)
    if workers < 1:
        logger.warning("TRACKGATE_WORKERS must be positive, got %s. Using 1.", workers)
        workers = 1

    queue_size = _as_int("QUEUE_SIZE", 1000)
    if queue_size < 1:
        logger.warning("TRACKGATE_QUEUE_SIZE must be positive, got %s. Using 1.", queue_size)
        queue_size = 1

    return Settings(
        tracking_key=_env("TRACKING_KEY", "") or "",
        network_timeout=_as_int("NETWORK_TIMEOUT", NETWORK_TIMEOUT),
        collect_url=_env("COLLECT_URL", DEFAULT_COLLECT_URL) or DEFAULT_COLLECT_URL,
        enable_analytics=_as_bool("ENABLE_ANALYTICS", True),
        queue_size=queue_size,
        workers=workers,
        drain_timeout=_as_float("DRAIN_TIMEOUT", 5.0),
        redis_url=_env("REDIS_URL"),
        state_path=_path("STATE_PATH", "~/.trackgate/state.json"),
        prometheus_port=_as_optional_int("PROMETHEUS_PORT"),
        prometheus_addr=_env("PROMETHEUS_ADDR", "0.0.0.0") or "0.0.0.0",
        log_level=(_env("LOG_LEVEL", "INFO") or "INFO").upper(),
        dry_run=_as_bool("DRY_RUN", False),
    )
