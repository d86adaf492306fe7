from __future__ import annotations

import logging
import queue
import time
from typing import Callable

from .metrics import track_done
from .models import ReportKind, ReportResult, ReportTask
from .tracker import TrackerHandle

logger = logging.getLogger(__name__)

STOP = object()

OPERATIONS = {
    ReportKind.EVENT: "track_event",
    ReportKind.PAGE_VIEW: "track_page_view",
}


def execute(tracker: TrackerHandle, task: ReportTask) -> ReportResult:
    started = time.monotonic()
    try:
        if task.kind is ReportKind.EVENT:
            tracker.record_event(*task.payload)
        else:
            tracker.record_page_view(*task.payload)
    except Exception as exc:  # pylint: disable=broad-except
        result = ReportResult(task=task, ok=False, error=exc)
    else:
        result = ReportResult(task=task, ok=True)
    result.meta["duration"] = time.monotonic() - started
    return result


def process_report(tracker: TrackerHandle, task: ReportTask) -> ReportResult:
    result = execute(tracker, task)
    track_done(task.kind.value, result.ok)
    if result.ok:
        logger.debug(
            "Delivered %s %s in %.3fs",
            task.kind.value,
            task.describe(),
            result.meta["duration"],
        )
    else:
        # Tracker failures stop here; callers never see them.
        logger.error(
            "Analytics %s error: %s",
            OPERATIONS[task.kind],
            task.describe(),
            exc_info=result.error,
        )
    return result


def worker_loop(channel: queue.Queue, handler: Callable[[ReportTask], ReportResult]) -> None:
    while True:
        task = channel.get()
        try:
            if task is STOP:
                return
            handler(task)
        except Exception:  # pylint: disable=broad-except
            logger.exception("Report handler crashed on %s", task)
        finally:
            channel.task_done()
