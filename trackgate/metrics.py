from __future__ import annotations

import logging

from prometheus_client import Counter, Gauge

logger = logging.getLogger(__name__)

REPORTS_SUBMITTED = Counter("trackgate_reports_submitted", "Reports accepted by the queue", ["kind"])
REPORTS_COMPLETED = Counter("trackgate_reports_completed", "Reports delivered to the tracker", ["kind"])
REPORTS_FAILED = Counter("trackgate_reports_failed", "Reports the tracker raised on", ["kind"])
REPORTS_DROPPED = Counter("trackgate_reports_dropped", "Reports discarded before delivery", ["kind"])
QUEUE_DEPTH = Gauge("trackgate_queue_depth", "Reports waiting for a worker")


def track_submitted(kind: str) -> None:
    REPORTS_SUBMITTED.labels(kind).inc()
    QUEUE_DEPTH.inc()


def track_done(kind: str, ok: bool) -> None:
    logger.debug("prometheus track_done %s ok=%s", kind, ok)
    QUEUE_DEPTH.dec()
    if ok:
        REPORTS_COMPLETED.labels(kind).inc()
    else:
        REPORTS_FAILED.labels(kind).inc()


def track_dropped(kind: str, queued: bool = False) -> None:
    REPORTS_DROPPED.labels(kind).inc()
    if queued:
        QUEUE_DEPTH.dec()
