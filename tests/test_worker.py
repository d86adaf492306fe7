from __future__ import annotations

import logging

from trackgate.models import ReportTask
from trackgate.worker import execute, process_report


def test_execute_event_success(tracker):
    result = execute(tracker, ReportTask.event("ui", "click", "button_x", 1))

    assert result.ok is True
    assert result.error is None
    assert "duration" in result.meta
    assert tracker.events == [("ui", "click", "button_x", 1)]


def test_execute_captures_tracker_failure(make_tracker):
    result = execute(make_tracker(fail=True), ReportTask.page_view("/home"))

    assert result.ok is False
    assert isinstance(result.error, RuntimeError)


def test_process_report_logs_operation_and_params(caplog, make_tracker):
    caplog.set_level(logging.ERROR, logger="trackgate.worker")

    result = process_report(make_tracker(fail=True), ReportTask.event("shop", "buy", "sku-1", 3))

    assert result.ok is False
    record = caplog.records[-1]
    assert record.getMessage() == "Analytics track_event error: shop / buy / sku-1 / 3"
    assert record.exc_info is not None
