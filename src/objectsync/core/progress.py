"""
ObjectSync progress tracking.

Thread-safe running totals shared by all transfer workers of one job.
Purely observational: nothing here feeds back into scheduling or diffing.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from dataclasses import dataclass

from objectsync.core.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class ProgressSnapshot:
    """Point-in-time copy of the tracker counters."""

    files_done: int = 0
    files_total: int = 0
    bytes_done: int = 0
    bytes_total: int = 0
    elapsed_seconds: float = 0.0

    @property
    def percentage(self) -> float:
        if self.bytes_total <= 0:
            return 0.0
        return min(100.0, (self.bytes_done / self.bytes_total) * 100)

    @property
    def throughput_bytes_per_sec(self) -> float:
        if self.elapsed_seconds <= 0:
            return 0.0
        return self.bytes_done / self.elapsed_seconds

    @property
    def eta_seconds(self) -> float | None:
        rate = self.throughput_bytes_per_sec
        if rate <= 0:
            return None
        return max(0, self.bytes_total - self.bytes_done) / rate


class ProgressTracker:
    """Mutex-protected counters updated by every worker."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._lock = threading.Lock()
        self._started = clock()
        self._files_total = 0
        self._bytes_total = 0
        self._files_done = 0
        self._bytes_done = 0
        self._callbacks: list[Callable[[ProgressSnapshot], None]] = []

    def add_callback(self, callback: Callable[[ProgressSnapshot], None]) -> None:
        """Register an observer notified after every update."""
        self._callbacks.append(callback)

    def set_total(self, count: int, size_bytes: int) -> None:
        with self._lock:
            self._files_total = count
            self._bytes_total = size_bytes
            self._started = self._clock()
            snapshot = self._snapshot_locked()
        self._notify(snapshot)

    def add_completed(self, size_bytes: int) -> None:
        with self._lock:
            self._files_done += 1
            self._bytes_done += size_bytes
            snapshot = self._snapshot_locked()
        self._notify(snapshot)

    def snapshot(self) -> ProgressSnapshot:
        with self._lock:
            return self._snapshot_locked()

    def final_summary(self) -> ProgressSnapshot:
        """Final totals for the job, logged once."""
        summary = self.snapshot()
        logger.info(
            "Transfer summary",
            files=summary.files_done,
            bytes=summary.bytes_done,
            elapsed_seconds=round(summary.elapsed_seconds, 3),
            throughput_bytes_per_sec=round(summary.throughput_bytes_per_sec, 1),
        )
        return summary

    def _snapshot_locked(self) -> ProgressSnapshot:
        return ProgressSnapshot(
            files_done=self._files_done,
            files_total=self._files_total,
            bytes_done=self._bytes_done,
            bytes_total=self._bytes_total,
            elapsed_seconds=self._clock() - self._started,
        )

    def _notify(self, snapshot: ProgressSnapshot) -> None:
        # Observers run outside the lock
        for callback in self._callbacks:
            try:
                callback(snapshot)
            except Exception as e:
                logger.warning("Progress callback error", error=str(e))
