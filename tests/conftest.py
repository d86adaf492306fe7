from __future__ import annotations

import threading
from typing import List, Optional

import pytest

from trackgate import reporter
from trackgate.config import load_settings
from trackgate.models import DeviceInfo, ReportTask


class FakeTracker:
    def __init__(self, fail: bool = False, gate: Optional[threading.Event] = None) -> None:
        self.fail = fail
        self.gate = gate
        self.started = threading.Event()
        self.initialized: List[tuple] = []
        self.custom_vars: List[tuple] = []
        self.events: List[tuple] = []
        self.page_views: List[str] = []
        self.closed = False

    def initialize(self, key, timeout_seconds, context):
        self.initialized.append((key, timeout_seconds, context))

    def set_custom_variable(self, index, name, value, scope):
        self.custom_vars.append((index, name, value, scope))

    def record_event(self, category, action, label, value):
        self._enter()
        self.events.append((category, action, label, value))

    def record_page_view(self, path):
        self._enter()
        self.page_views.append(path)

    def close(self):
        self.closed = True

    def _enter(self):
        self.started.set()
        if self.gate is not None:
            self.gate.wait(5)
        if self.fail:
            raise RuntimeError("tracker exploded")


class RecordingSink:
    def __init__(self) -> None:
        self.tasks: List[ReportTask] = []
        self.started = False
        self.stopped = False

    def start(self):
        self.started = True

    def submit(self, task):
        self.tasks.append(task)
        return True

    def shutdown(self, drain=True, timeout=None):
        self.stopped = True


@pytest.fixture(autouse=True)
def reset_state(monkeypatch, tmp_path):
    monkeypatch.setenv("TRACKGATE_STATE_PATH", str(tmp_path / "state.json"))
    monkeypatch.delenv("TRACKGATE_PROMETHEUS_PORT", raising=False)
    monkeypatch.delenv("TRACKGATE_REDIS_URL", raising=False)
    load_settings.cache_clear()
    monkeypatch.setattr(reporter, "_dispatcher", None)
    monkeypatch.setattr(reporter, "_enabled", None)
    monkeypatch.setattr(reporter, "_exporter", None)
    yield
    load_settings.cache_clear()


@pytest.fixture
def tracker():
    return FakeTracker()


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def device():
    return DeviceInfo(platform_version="Linux 6.1", model="x86_64")


@pytest.fixture
def make_tracker():
    return FakeTracker
