from __future__ import annotations

import logging
import threading
import uuid
from typing import Any, Dict, Optional, Protocol

import httpx

from .config import Settings
from .models import DeviceInfo, VariableScope

logger = logging.getLogger(__name__)

CONNECT_TIMEOUT = 10.0
PROTOCOL_VERSION = "1"


class TrackerHandle(Protocol):
    def initialize(self, key: str, timeout_seconds: int, context: DeviceInfo) -> None:
        ...

    def set_custom_variable(self, index: int, name: str, value: str, scope: int) -> None:
        ...

    def record_event(self, category: str, action: str, label: str, value: int) -> None:
        ...

    def record_page_view(self, path: str) -> None:
        ...


class HttpTracker:
    """Measurement Protocol client.

    Hits are posted synchronously on the calling thread, so callers are
    expected to run it from a background worker. Custom variables set via
    ``set_custom_variable`` are attached to every later hit as ``cd<index>``.
    """

    def __init__(
        self,
        collect_url: str,
        client_id: Optional[str] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.collect_url = collect_url
        self.client_id = client_id or uuid.uuid4().hex
        self._transport = transport
        self._client: Optional[httpx.Client] = None
        self._key: Optional[str] = None
        self._custom_vars: Dict[int, Dict[str, Any]] = {}
        self._lock = threading.Lock()

    def initialize(self, key: str, timeout_seconds: int, context: DeviceInfo) -> None:
        timeout = httpx.Timeout(float(timeout_seconds), connect=CONNECT_TIMEOUT)
        headers = {"User-Agent": f"trackgate ({context.platform_version}; {context.model})"}
        if self._client is not None:
            logger.debug("Tracker restarted; closing previous client")
            self._client.close()
        self._client = httpx.Client(timeout=timeout, headers=headers, transport=self._transport)
        self._key = key
        logger.info("Tracker started for %s (timeout=%ss)", key, timeout_seconds)

    def set_custom_variable(self, index: int, name: str, value: str, scope: int) -> None:
        with self._lock:
            self._custom_vars[index] = {
                "name": name,
                "value": value,
                "scope": VariableScope(scope),
            }

    def record_event(self, category: str, action: str, label: str, value: int) -> None:
        self._send({"t": "event", "ec": category, "ea": action, "el": label, "ev": value})

    def record_page_view(self, path: str) -> None:
        self._send({"t": "pageview", "dp": path})

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None

    def _send(self, hit: Dict[str, Any]) -> None:
        if self._client is None or self._key is None:
            raise RuntimeError("Tracker is not initialized")
        params: Dict[str, Any] = {"v": PROTOCOL_VERSION, "tid": self._key, "cid": self.client_id}
        with self._lock:
            for index, variable in self._custom_vars.items():
                params[f"cd{index}"] = variable["value"]
        params.update(hit)
        response = self._client.post(self.collect_url, data=params)
        response.raise_for_status()


class LoggingTracker:
    def initialize(self, key: str, timeout_seconds: int, context: DeviceInfo) -> None:
        logger.info("analytics start key=%s timeout=%s device=%s", key, timeout_seconds, context)

    def set_custom_variable(self, index: int, name: str, value: str, scope: int) -> None:
        logger.info("analytics custom_var index=%s %s=%s scope=%s", index, name, value, scope)

    def record_event(self, category: str, action: str, label: str, value: int) -> None:
        logger.info("analytics event=%s/%s label=%s value=%s", category, action, label, value)

    def record_page_view(self, path: str) -> None:
        logger.info("analytics page_view path=%s", path)


def build_tracker(settings: Settings) -> TrackerHandle:
    if settings.dry_run:
        return LoggingTracker()
    return HttpTracker(settings.collect_url)
