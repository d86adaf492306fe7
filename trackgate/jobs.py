from __future__ import annotations

import logging
import queue
import threading
import time
from typing import Callable, List, Optional

from .metrics import track_dropped, track_submitted
from .models import ReportResult, ReportTask
from .worker import STOP, worker_loop

logger = logging.getLogger(__name__)

DEFAULT_QUEUE_SIZE = 1000
DEFAULT_WORKERS = 2


class ReportQueue:
    """Bounded channel drained by a fixed pool of worker threads.

    ``submit`` never blocks: once the channel is full or the queue has been
    shut down, new reports are dropped and logged.
    """

    def __init__(
        self,
        handler: Callable[[ReportTask], ReportResult],
        maxsize: int = DEFAULT_QUEUE_SIZE,
        workers: int = DEFAULT_WORKERS,
    ) -> None:
        # maxsize <= 0 would make queue.Queue unbounded.
        self._channel: queue.Queue = queue.Queue(maxsize=max(1, maxsize))
        self._handler = handler
        self._worker_count = max(1, workers)
        self._threads: List[threading.Thread] = []
        self._closed = False
        self._lock = threading.Lock()

    @property
    def closed(self) -> bool:
        return self._closed

    def start(self) -> None:
        with self._lock:
            if self._threads or self._closed:
                return
            for index in range(self._worker_count):
                thread = threading.Thread(
                    target=worker_loop,
                    args=(self._channel, self._handler),
                    name=f"trackgate-worker-{index}",
                    daemon=True,
                )
                thread.start()
                self._threads.append(thread)
        logger.info("Started %s report workers", self._worker_count)

    def submit(self, task: ReportTask) -> bool:
        if self._closed:
            logger.warning("Report queue is shut down, dropping %s: %s", task.kind.value, task.describe())
            track_dropped(task.kind.value)
            return False
        try:
            self._channel.put_nowait(task)
        except queue.Full:
            logger.warning("Report queue is full, dropping %s: %s", task.kind.value, task.describe())
            track_dropped(task.kind.value)
            return False
        track_submitted(task.kind.value)
        return True

    def pending(self) -> int:
        return self._channel.qsize()

    def shutdown(self, drain: bool = True, timeout: Optional[float] = None) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
            threads = list(self._threads)

        if not drain:
            self._discard_pending()
        if not threads:
            return

        deadline = None if timeout is None else time.monotonic() + timeout
        for _ in threads:
            try:
                self._channel.put(STOP, timeout=_remaining(deadline))
            except queue.Full:
                logger.warning("Timed out signalling report workers to stop")
                break
        for thread in threads:
            thread.join(_remaining(deadline))
            if thread.is_alive():
                logger.warning("Report worker %s did not stop in time", thread.name)
        logger.info("Report workers stopped (%s reports left)", self.pending())

    def _discard_pending(self) -> None:
        while True:
            try:
                task = self._channel.get_nowait()
            except queue.Empty:
                return
            self._channel.task_done()
            logger.debug("Discarding %s: %s", task.kind.value, task.describe())
            track_dropped(task.kind.value, queued=True)


def _remaining(deadline: Optional[float]) -> Optional[float]:
    if deadline is None:
        return None
    return max(0.0, deadline - time.monotonic())
