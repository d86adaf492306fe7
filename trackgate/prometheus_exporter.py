from __future__ import annotations

import logging
from typing import Optional

from prometheus_client import start_http_server

from .config import Settings

logger = logging.getLogger(__name__)


class PrometheusExporter:
    """Serves the report counters from :mod:`trackgate.metrics` over HTTP."""

    def __init__(self, port: int, addr: str = "0.0.0.0") -> None:
        self.port = port
        self.addr = addr
        self._started = False

    @classmethod
    def from_settings(cls, settings: Settings) -> Optional["PrometheusExporter"]:
        if not settings.prometheus_port:
            return None
        return cls(settings.prometheus_port, settings.prometheus_addr)

    @property
    def started(self) -> bool:
        return self._started

    def ensure_started(self) -> bool:
        if self._started:
            return False
        start_http_server(self.port, addr=self.addr)
        logger.info("Report metrics exposed on %s:%s", self.addr, self.port)
        self._started = True
        return True
