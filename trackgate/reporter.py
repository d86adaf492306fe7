from __future__ import annotations

import functools
import logging
import threading
from typing import Optional, Protocol

from .config import NETWORK_TIMEOUT, Settings, load_settings
from .jobs import DEFAULT_QUEUE_SIZE, DEFAULT_WORKERS, ReportQueue
from .models import Configuration, DeviceInfo, ReportTask, VariableScope
from .prometheus_exporter import PrometheusExporter
from .store import FIRST_RUN_KEY, FlagStore, build_store
from .tracker import TrackerHandle, build_tracker
from .worker import process_report

logger = logging.getLogger(__name__)

PLATFORM_VERSION_SLOT = 1
MODEL_SLOT = 2


class ConfigurationError(RuntimeError):
    """Raised when reports are requested from an unconfigured dispatcher."""


class ReportSink(Protocol):
    def start(self) -> None:
        ...

    def submit(self, task: ReportTask) -> bool:
        ...

    def shutdown(self, drain: bool = True, timeout: Optional[float] = None) -> None:
        ...


class Reporter(Protocol):
    """Records events and page views without ever failing the caller."""

    def track_event(self, category: str, action: str, label: str, value: int) -> None:
        ...

    def track_page_view(self, path: str) -> None:
        ...


class NullReporter:
    def track_event(self, category: str, action: str, label: str, value: int) -> None:
        return None

    def track_page_view(self, path: str) -> None:
        return None


class ActiveReporter:
    def __init__(self, sink: ReportSink) -> None:
        self._sink = sink

    def track_event(self, category: str, action: str, label: str, value: int) -> None:
        self._submit(ReportTask.event(category, action, label, value))

    def track_page_view(self, path: str) -> None:
        self._submit(ReportTask.page_view(path))

    def _submit(self, task: ReportTask) -> None:
        try:
            self._sink.submit(task)
        except Exception:  # pylint: disable=broad-except
            logger.exception("Failed to queue %s: %s", task.kind.value, task.describe())


class Dispatcher:
    """Owns the tracker, the first-run latch and the enable switch.

    ``configure`` starts the tracker once. Later calls only update
    ``tracking_key``; the running tracker keeps the key it was started
    with. ``get_active`` hands out an :class:`ActiveReporter` while
    enabled and a :class:`NullReporter` otherwise.
    """

    def __init__(
        self,
        tracker: TrackerHandle,
        store: FlagStore,
        sink: Optional[ReportSink] = None,
        *,
        device: Optional[DeviceInfo] = None,
        network_timeout: int = NETWORK_TIMEOUT,
        enabled: bool = True,
        queue_size: int = DEFAULT_QUEUE_SIZE,
        workers: int = DEFAULT_WORKERS,
        drain_timeout: Optional[float] = None,
    ) -> None:
        self._tracker = tracker
        self._store = store
        self._sink = sink
        self._device = device or DeviceInfo.detect()
        self._network_timeout = network_timeout
        self._enabled = enabled
        self._queue_size = queue_size
        self._workers = workers
        self._drain_timeout = drain_timeout
        self._tracking_key: Optional[str] = None
        self._configuration: Optional[Configuration] = None
        self._active: Optional[ActiveReporter] = None
        self._null = NullReporter()
        self._closed = False
        self._lock = threading.Lock()

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        *,
        tracker: Optional[TrackerHandle] = None,
        store: Optional[FlagStore] = None,
        sink: Optional[ReportSink] = None,
        device: Optional[DeviceInfo] = None,
    ) -> "Dispatcher":
        return cls(
            tracker or build_tracker(settings),
            store or build_store(settings),
            sink,
            device=device,
            network_timeout=settings.network_timeout,
            enabled=settings.enable_analytics,
            queue_size=settings.queue_size,
            workers=settings.workers,
            drain_timeout=settings.drain_timeout,
        )

    @property
    def tracking_key(self) -> Optional[str]:
        return self._tracking_key

    @property
    def configuration(self) -> Optional[Configuration]:
        return self._configuration

    @property
    def enabled(self) -> bool:
        return self._enabled

    def configure(self, tracking_key: str) -> None:
        logger.debug("configure()")
        with self._lock:
            if self._closed:
                raise ConfigurationError("Dispatcher has been shut down")
            self._tracking_key = tracking_key
            if self._configuration is not None:
                if tracking_key != self._configuration.tracking_key:
                    logger.warning(
                        "Tracker already started with %s; %s takes effect on next start",
                        self._configuration.tracking_key,
                        tracking_key,
                    )
                return

            configuration = Configuration(
                tracking_key=tracking_key,
                network_timeout=self._network_timeout,
                scope=VariableScope.VISITOR,
            )
            # Synchronous: runs once, before any report is queued.
            self._tracker.initialize(tracking_key, configuration.network_timeout, self._device)
            self._report_first_run(configuration.scope)

            if self._sink is None:
                handler = functools.partial(process_report, self._tracker)
                self._sink = ReportQueue(handler, maxsize=self._queue_size, workers=self._workers)
            self._sink.start()
            self._active = ActiveReporter(self._sink)
            self._configuration = configuration

    def set_enabled(self, enabled: bool) -> None:
        with self._lock:
            self._enabled = bool(enabled)
        logger.info("Analytics %s", "enabled" if enabled else "disabled")

    def get_active(self) -> Reporter:
        logger.debug("get_active()")
        active = self._active
        if active is None:
            raise ConfigurationError("You must call configure() first.")
        if not self._enabled:
            return self._null
        return active

    def shutdown(self, drain: bool = True, timeout: Optional[float] = None) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
            sink = self._sink
        if sink is not None:
            sink.shutdown(drain=drain, timeout=timeout if timeout is not None else self._drain_timeout)
        close = getattr(self._tracker, "close", None)
        if callable(close):
            close()

    def _report_first_run(self, scope: VariableScope) -> None:
        if not self._store.get_boolean(FIRST_RUN_KEY, True):
            return
        self._tracker.set_custom_variable(
            PLATFORM_VERSION_SLOT, "apiLevel", self._device.platform_version, int(scope)
        )
        self._tracker.set_custom_variable(MODEL_SLOT, "model", self._device.model, int(scope))
        self._store.set_boolean(FIRST_RUN_KEY, False)
        logger.info("Reported first run device %s", self._device)


_dispatcher: Optional[Dispatcher] = None
_enabled: Optional[bool] = None
_exporter: Optional[PrometheusExporter] = None
_lock = threading.Lock()


def configure(
    tracking_key: Optional[str] = None,
    *,
    settings: Optional[Settings] = None,
    tracker: Optional[TrackerHandle] = None,
    store: Optional[FlagStore] = None,
    sink: Optional[ReportSink] = None,
    device: Optional[DeviceInfo] = None,
) -> Dispatcher:
    """Configure the process-wide dispatcher, creating it on first use.

    Collaborators passed here are only used when the dispatcher is created.
    """
    global _dispatcher, _exporter
    settings = settings or load_settings()
    key = tracking_key or settings.tracking_key
    if not key:
        raise ConfigurationError("TRACKGATE_TRACKING_KEY is not configured")

    with _lock:
        if _dispatcher is None:
            _dispatcher = Dispatcher.from_settings(
                settings, tracker=tracker, store=store, sink=sink, device=device
            )
            if _enabled is not None:
                _dispatcher.set_enabled(_enabled)
            if _exporter is None:
                _exporter = PrometheusExporter.from_settings(settings)
                if _exporter is not None:
                    _exporter.ensure_started()
        dispatcher = _dispatcher

    dispatcher.configure(key)
    return dispatcher


def set_enabled(enabled: bool) -> None:
    global _enabled
    with _lock:
        _enabled = bool(enabled)
        dispatcher = _dispatcher
    if dispatcher is not None:
        dispatcher.set_enabled(enabled)


def get_active() -> Reporter:
    dispatcher = _dispatcher
    if dispatcher is None:
        raise ConfigurationError("You must call configure() first.")
    return dispatcher.get_active()


def shutdown(drain: bool = True, timeout: Optional[float] = None) -> None:
    dispatcher = _dispatcher
    if dispatcher is not None:
        dispatcher.shutdown(drain=drain, timeout=timeout)
