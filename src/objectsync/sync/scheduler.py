"""
Bounded transfer worker pool.

A fixed number of worker threads drain a shared task queue. A worker that
hits an error stops pulling work; its peers carry on. ``run`` returns only
after every worker has exited, then reports all collected errors at once.
"""

from __future__ import annotations

import queue
import threading

from objectsync.core.errors import TransferAggregateError, TransferError
from objectsync.core.logging import get_logger
from objectsync.core.models import TransferTask
from objectsync.core.progress import ProgressTracker
from objectsync.sync.sinks import Sink

logger = get_logger(__name__)


class TransferScheduler:
    """Runs transfer tasks on a pool of worker threads."""

    def __init__(
        self,
        sink: Sink,
        tracker: ProgressTracker,
        job_name: str = "",
        verbose: bool = False,
    ) -> None:
        self.sink = sink
        self.tracker = tracker
        self.job_name = job_name
        self.verbose = verbose
        self._run_lock = threading.Lock()
        self._errors: list[TransferError] = []
        self._errors_lock = threading.Lock()

    def run(self, tasks: list[TransferTask], worker_count: int) -> None:
        """Transfer every task, raising TransferAggregateError on any failure."""
        if worker_count < 1:
            raise ValueError(f"worker_count must be at least 1, got {worker_count}")

        # One run per job at a time
        with self._run_lock:
            self._errors = []
            if not tasks:
                return

            work: queue.Queue[TransferTask] = queue.Queue()
            for task in tasks:
                work.put(task)

            pool_size = min(worker_count, len(tasks))
            workers = [
                threading.Thread(
                    target=self._worker,
                    args=(work,),
                    name=f"transfer-{self.job_name or 'job'}-{index}",
                    daemon=True,
                )
                for index in range(pool_size)
            ]
            for worker in workers:
                worker.start()
            for worker in workers:
                worker.join()

            if self._errors:
                logger.error(
                    "Transfers failed",
                    job=self.job_name,
                    failed=len(self._errors),
                    unprocessed=work.qsize(),
                )
                raise TransferAggregateError(self._errors)

    def _worker(self, work: queue.Queue[TransferTask]) -> None:
        log = logger.info if self.verbose else logger.debug
        while True:
            try:
                task = work.get_nowait()
            except queue.Empty:
                return

            try:
                moved = self.sink.write(task)
            except TransferError as exc:
                self._record(exc)
                return
            except Exception as exc:
                error = TransferError(task.key, str(exc))
                error.__cause__ = exc
                self._record(error)
                return

            log("Transferred", job=self.job_name, key=task.key, bytes=moved)
            self.tracker.add_completed(moved)

    def _record(self, error: TransferError) -> None:
        logger.warning("Transfer failed", job=self.job_name, key=error.key, error=str(error))
        with self._errors_lock:
            self._errors.append(error)
