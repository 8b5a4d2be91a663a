"""
Per-job sync pipeline.

One engine serves both directions. The direction only decides which side is
enumerated and which side is written: downloads list the bucket and write
local files, uploads walk the local tree and put objects.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from objectsync.core.errors import ObjectSyncError, StoreConnectionError
from objectsync.core.job import Job, JobContext
from objectsync.core.logging import OperationLogger, get_logger
from objectsync.core.models import Direction, JobSpec, SyncState
from objectsync.core.progress import ProgressTracker
from objectsync.store.base import ObjectStore
from objectsync.sync.diff import DiffEngine
from objectsync.sync.enumerators import Enumerator, LocalEnumerator, RemoteEnumerator
from objectsync.sync.scheduler import TransferScheduler
from objectsync.sync.sinks import LocalSink, RemoteSink, Sink
from objectsync.sync.state import StateStore

logger = get_logger(__name__)


@dataclass
class SyncReport:
    """Outcome of one successful job run."""

    job_name: str
    direction: Direction
    catalog_size: int = 0
    selected: int = 0
    skipped: int = 0
    files_transferred: int = 0
    bytes_transferred: int = 0
    elapsed_seconds: float = 0.0
    state_entries: int = 0
    bucket_created: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "job_name": self.job_name,
            "direction": self.direction.value,
            "catalog_size": self.catalog_size,
            "selected": self.selected,
            "skipped": self.skipped,
            "files_transferred": self.files_transferred,
            "bytes_transferred": self.bytes_transferred,
            "elapsed_seconds": self.elapsed_seconds,
            "state_entries": self.state_entries,
            "bucket_created": self.bucket_created,
        }


def build_pipeline(spec: JobSpec, store: ObjectStore) -> tuple[Enumerator, Sink]:
    """Pick the source enumerator and destination sink for a direction."""
    if spec.direction is Direction.DOWNLOAD:
        return RemoteEnumerator(store, spec.remote_name), LocalSink(store, spec.remote_name)
    return LocalEnumerator(spec.local_dir), RemoteSink(store, spec.remote_name)


class SyncEngine:
    """Runs load → enumerate → diff → transfer → save for one job."""

    def __init__(
        self,
        spec: JobSpec,
        store: ObjectStore,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ) -> None:
        self.spec = spec
        self.store = store
        self.clock = clock
        self.state_store = StateStore(spec.state_path, enabled=spec.incremental, direction=spec.direction)
        self.enumerator, self.sink = build_pipeline(spec, store)
        self.diff = DiffEngine(incremental=spec.incremental)

    def run(self, tracker: ProgressTracker | None = None) -> SyncReport:
        spec = self.spec
        tracker = tracker or ProgressTracker()
        report = SyncReport(job_name=spec.remote_name, direction=spec.direction)

        report.bucket_created = self._connect()
        state = self.state_store.load()

        if spec.direction is Direction.DOWNLOAD:
            try:
                spec.local_dir.mkdir(parents=True, exist_ok=True)
            except OSError as exc:
                raise ObjectSyncError(f"create output directory {spec.local_dir}: {exc}") from exc

        catalog = self.enumerator.list()
        report.catalog_size = len(catalog)

        diff = self.diff.select(catalog, state, self.sink.exists, spec.local_path_for)
        report.selected = len(diff.selected)
        report.skipped = len(diff.skipped)
        logger.info(
            "Objects selected",
            job=spec.remote_name,
            direction=spec.direction.value,
            found=report.catalog_size,
            selected=report.selected,
            bytes=diff.selected_bytes,
        )

        tracker.set_total(len(diff.selected), diff.selected_bytes)
        if diff.selected:
            scheduler = TransferScheduler(
                self.sink, tracker, job_name=spec.remote_name, verbose=spec.verbose
            )
            scheduler.run(diff.selected, spec.worker_count)
        else:
            logger.info("Nothing to transfer", job=spec.remote_name)

        summary = tracker.final_summary()
        report.files_transferred = summary.files_done
        report.bytes_transferred = summary.bytes_done
        report.elapsed_seconds = summary.elapsed_seconds

        # State mirrors the freshly enumerated source, skipped entries included
        new_state = SyncState.from_catalog(catalog, self.clock())
        self.state_store.save(new_state)
        report.state_entries = len(new_state.entries) if spec.incremental else 0
        return report

    def _connect(self) -> bool:
        bucket = self.spec.remote_name
        try:
            if self.spec.direction is Direction.UPLOAD:
                created = self.store.ensure_bucket(bucket)
                if created:
                    logger.info("Bucket did not exist and was created", bucket=bucket)
                return created
            self.store.check_connection(bucket)
            return False
        except StoreConnectionError:
            raise
        except Exception as exc:
            raise StoreConnectionError(f"connect to bucket {bucket!r}: {exc}") from exc


class SyncJob(Job[SyncReport]):
    """Job wrapper that runs a sync engine under the job runner."""

    def __init__(self, spec: JobSpec, store: ObjectStore) -> None:
        super().__init__(
            name=spec.remote_name,
            description=f"{spec.direction.value} {spec.remote_name} <-> {spec.local_dir}",
        )
        self.spec = spec
        self.engine = SyncEngine(spec, store)

    def validate(self) -> list[str]:
        errors = []
        if not self.spec.remote_name:
            errors.append("bucket name is empty")
        if self.spec.worker_count < 1:
            errors.append(f"worker count must be at least 1, got {self.spec.worker_count}")
        return errors

    def execute(self, context: JobContext) -> SyncReport:
        with OperationLogger(
            f"{self.spec.direction.value} job",
            logger,
            job=self.spec.remote_name,
            local_dir=str(self.spec.local_dir),
            incremental=self.spec.incremental,
            workers=self.spec.worker_count,
        ) as operation:
            report = self.engine.run(context.tracker)
            operation.update(
                files=report.files_transferred,
                bytes=report.bytes_transferred,
            )
        return report
