"""
ObjectSync Job Runner.

A job is one unit of work (one bucket in one direction). The runner drives a
job through its lifecycle in the calling thread and never lets an exception
escape: failures come back as a ``JobResult`` so the next job still runs.
"""

from __future__ import annotations

import threading
import traceback
import uuid
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, auto
from typing import Any, Generic, TypeVar

from objectsync.core.logging import get_logger
from objectsync.core.progress import ProgressTracker

T = TypeVar("T")
logger = get_logger(__name__)

StatusCallback = Callable[["Job[Any]", "JobStatus"], None]


class JobStatus(Enum):
    """Lifecycle of a job."""

    PENDING = auto()
    RUNNING = auto()
    COMPLETED = auto()
    FAILED = auto()


@dataclass
class JobResult(Generic[T]):
    """Outcome of a job: its data on success, error details otherwise."""

    success: bool
    data: T | None = None
    error: str | None = None
    error_type: str | None = None
    error_traceback: str | None = None
    warnings: list[str] = field(default_factory=list)
    start_time: datetime | None = None
    end_time: datetime | None = None

    @property
    def duration_seconds(self) -> float | None:
        if self.start_time is None or self.end_time is None:
            return None
        return (self.end_time - self.start_time).total_seconds()

    @classmethod
    def failure(
        cls,
        exc: BaseException | None = None,
        message: str | None = None,
        error_type: str | None = None,
        **kwargs: Any,
    ) -> JobResult[T]:
        """Build a failed result from an exception or an explicit message."""
        return cls(
            success=False,
            error=message if message is not None else str(exc),
            error_type=error_type or (type(exc).__name__ if exc is not None else None),
            **kwargs,
        )


class JobContext:
    """Per-job progress tracker plus non-fatal warnings collected on the way."""

    def __init__(self, tracker: ProgressTracker | None = None) -> None:
        self.tracker = tracker or ProgressTracker()
        self._warnings: list[str] = []
        self._lock = threading.Lock()

    def add_warning(self, warning: str) -> None:
        with self._lock:
            self._warnings.append(warning)

    def get_warnings(self) -> list[str]:
        with self._lock:
            return list(self._warnings)


class Job(ABC, Generic[T]):
    """Base class for ObjectSync jobs."""

    def __init__(self, name: str, description: str) -> None:
        self.id = uuid.uuid4().hex
        self.name = name
        self.description = description
        self.status = JobStatus.PENDING
        self.context = JobContext()
        self.result: JobResult[T] | None = None
        self.created_at = datetime.now()
        self.started_at: datetime | None = None
        self.completed_at: datetime | None = None

    @abstractmethod
    def execute(self, context: JobContext) -> T:
        """Do the work and return the job's data. Raise on failure."""

    def validate(self) -> list[str]:
        """Problems that make the job impossible to start (empty if none)."""
        return []


class JobRunner:
    """Runs jobs one at a time and keeps a history of them."""

    def __init__(self) -> None:
        self._history: dict[str, Job[Any]] = {}
        self._lock = threading.Lock()
        self._status_callbacks: list[StatusCallback] = []

    def run_sync(self, job: Job[T]) -> JobResult[T]:
        """Run a job in the calling thread and return its result."""
        with self._lock:
            self._history[job.id] = job

        problems = job.validate()
        if problems:
            now = datetime.now()
            logger.error("Job rejected", job_name=job.name, problems=problems)
            return self._finish(
                job,
                JobResult.failure(
                    message="Validation failed: " + "; ".join(problems),
                    error_type="ValidationError",
                    start_time=now,
                    end_time=now,
                ),
            )

        job.started_at = datetime.now()
        self._set_status(job, JobStatus.RUNNING)
        logger.info("Job started", job_id=job.id, job_name=job.name)

        try:
            data = job.execute(job.context)
        except Exception as exc:
            logger.error(
                "Job failed",
                job_id=job.id,
                job_name=job.name,
                error_type=type(exc).__name__,
                error=str(exc),
            )
            result: JobResult[T] = JobResult.failure(
                exc,
                error_traceback=traceback.format_exc(),
                warnings=job.context.get_warnings(),
                start_time=job.started_at,
                end_time=datetime.now(),
            )
            return self._finish(job, result)

        result = JobResult(
            success=True,
            data=data,
            warnings=job.context.get_warnings(),
            start_time=job.started_at,
            end_time=datetime.now(),
        )
        logger.info(
            "Job completed",
            job_id=job.id,
            job_name=job.name,
            duration_seconds=result.duration_seconds,
        )
        return self._finish(job, result)

    def list_jobs(self, status: JobStatus | None = None) -> list[Job[Any]]:
        """Jobs run so far in creation order, optionally filtered by status."""
        with self._lock:
            jobs = sorted(self._history.values(), key=lambda j: j.created_at)
        if status is None:
            return jobs
        return [job for job in jobs if job.status == status]

    def add_status_callback(self, callback: StatusCallback) -> None:
        """Observe every status transition."""
        self._status_callbacks.append(callback)

    def _finish(self, job: Job[T], result: JobResult[T]) -> JobResult[T]:
        job.result = result
        job.completed_at = datetime.now()
        self._set_status(job, JobStatus.COMPLETED if result.success else JobStatus.FAILED)
        return result

    def _set_status(self, job: Job[Any], status: JobStatus) -> None:
        job.status = status
        for callback in self._status_callbacks:
            try:
                callback(job, status)
            except Exception as e:
                logger.warning("Status callback error", job_name=job.name, error=str(e))
