from __future__ import annotations

from logging.config import dictConfig
from typing import Optional

from .config import Settings, load_settings

# httpx logs every request at INFO; one line per analytics hit is noise.
QUIET_LOGGERS = ("httpx", "httpcore")


def setup_logging(settings: Optional[Settings] = None, level: Optional[str] = None) -> None:
    settings = settings or load_settings()
    level = (level or settings.log_level).upper()
    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "default": {
                    "format": "%(asctime)s %(levelname)s [%(threadName)s] %(name)s %(message)s",
                }
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "default",
                    "level": level,
                }
            },
            "loggers": {
                name: {"level": "WARNING"} for name in QUIET_LOGGERS
            },
            "root": {
                "handlers": ["console"],
                "level": level,
            },
        }
    )
