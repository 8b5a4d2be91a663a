"""
Multi-job orchestration.

Jobs run strictly one after another. Each has its own state file, worker
count and directory; a failing job is recorded and the next one still runs.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from objectsync.core.errors import OrchestrationError
from objectsync.core.job import JobResult, JobRunner
from objectsync.core.logging import get_logger
from objectsync.core.models import JobSpec
from objectsync.store.base import ObjectStore
from objectsync.sync.engine import SyncJob, SyncReport

logger = get_logger(__name__)

StoreFactory = Callable[[JobSpec], ObjectStore]
JobHook = Callable[[int, int, SyncJob], None]


@dataclass
class JobOutcome:
    """Result of one job within a run."""

    spec: JobSpec
    result: JobResult[SyncReport]

    @property
    def name(self) -> str:
        return self.spec.remote_name

    @property
    def success(self) -> bool:
        return self.result.success


@dataclass
class RunSummary:
    """Aggregate of a multi-job run."""

    outcomes: list[JobOutcome] = field(default_factory=list)

    @property
    def succeeded(self) -> int:
        return sum(1 for outcome in self.outcomes if outcome.success)

    @property
    def failed(self) -> int:
        return sum(1 for outcome in self.outcomes if not outcome.success)

    @property
    def failures(self) -> dict[str, str]:
        return {
            outcome.name: outcome.result.error or "unknown error"
            for outcome in self.outcomes
            if not outcome.success
        }

    def raise_for_failures(self) -> None:
        if self.failed:
            raise OrchestrationError(self.failures)

    def to_dict(self) -> dict[str, Any]:
        return {
            "succeeded": self.succeeded,
            "failed": self.failed,
            "jobs": [
                {
                    "name": outcome.name,
                    "success": outcome.success,
                    "error": outcome.result.error,
                    "report": outcome.result.data.to_dict() if outcome.result.data else None,
                }
                for outcome in self.outcomes
            ],
        }


class JobOrchestrator:
    """Drives a list of jobs sequentially with isolated failures."""

    def __init__(
        self,
        store_factory: StoreFactory,
        runner: JobRunner | None = None,
        on_job_start: JobHook | None = None,
    ) -> None:
        self.store_factory = store_factory
        self.runner = runner or JobRunner()
        self.on_job_start = on_job_start

    def run_all(self, jobs: list[JobSpec]) -> RunSummary:
        summary = RunSummary()
        total = len(jobs)

        for index, spec in enumerate(jobs, start=1):
            logger.info(
                "Processing job",
                job=spec.remote_name,
                position=f"{index}/{total}",
                direction=spec.direction.value,
            )
            result = self._run_one(index, total, spec)
            summary.outcomes.append(JobOutcome(spec=spec, result=result))

            if result.success:
                logger.info("Job succeeded", job=spec.remote_name)
            else:
                logger.error("Job failed, continuing", job=spec.remote_name, error=result.error)

        logger.info("Run finished", succeeded=summary.succeeded, failed=summary.failed)
        return summary

    def _run_one(self, index: int, total: int, spec: JobSpec) -> JobResult[SyncReport]:
        # Client construction failures belong to this job alone
        try:
            store = self.store_factory(spec)
            job = SyncJob(spec, store)
        except Exception as exc:
            logger.error("Job setup failed", job=spec.remote_name, error=str(exc))
            return JobResult.failure(exc)

        if self.on_job_start is not None:
            self.on_job_start(index, total, job)
        return self.runner.run_sync(job)
