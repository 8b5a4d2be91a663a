"""
Live transfer progress rendering for verbose jobs.
"""

from __future__ import annotations

from typing import Any

import humanize
from rich.console import Console
from rich.progress import (
    BarColumn,
    DownloadColumn,
    Progress,
    TextColumn,
    TimeRemainingColumn,
    TransferSpeedColumn,
)

from objectsync.core.progress import ProgressSnapshot
from objectsync.sync.engine import SyncJob, SyncReport


class ProgressReporter:
    """Feeds tracker snapshots into a rich progress display."""

    def __init__(self, console: Console) -> None:
        self.console = console
        self.progress = Progress(
            TextColumn("[bold cyan]{task.description}"),
            BarColumn(),
            TextColumn("{task.fields[files]}"),
            DownloadColumn(binary_units=True),
            TransferSpeedColumn(),
            TimeRemainingColumn(),
            console=console,
            transient=False,
        )

    def __enter__(self) -> ProgressReporter:
        self.progress.start()
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.progress.stop()

    def on_job_start(self, index: int, total: int, job: SyncJob) -> None:
        spec = job.spec
        self.console.print(
            f"\n[bold][{index}/{total}][/bold] {spec.direction.value} "
            f"[cyan]{spec.remote_name}[/cyan] ↔ {spec.local_dir}"
        )
        if not spec.verbose:
            return

        self.console.print(
            f"  incremental: {spec.incremental}  workers: {spec.worker_count}  "
            f"state: {spec.state_path}"
        )
        task_id = self.progress.add_task(spec.remote_name, total=None, files="0/0")

        def update(snapshot: ProgressSnapshot) -> None:
            self.progress.update(
                task_id,
                total=snapshot.bytes_total or None,
                completed=snapshot.bytes_done,
                files=f"{snapshot.files_done}/{snapshot.files_total}",
            )

        job.context.tracker.add_callback(update)


def describe_report(report: SyncReport) -> str:
    """One-line human summary of a finished job."""
    text = (
        f"{report.files_transferred}/{report.catalog_size} objects transferred, "
        f"{humanize.naturalsize(report.bytes_transferred, binary=True)} in "
        f"{humanize.precisedelta(report.elapsed_seconds, minimum_unit='seconds', format='%0.0f')}"
    )
    if report.elapsed_seconds > 0 and report.bytes_transferred:
        rate = report.bytes_transferred / report.elapsed_seconds
        text += f" ({humanize.naturalsize(rate, binary=True)}/s)"
    return text
