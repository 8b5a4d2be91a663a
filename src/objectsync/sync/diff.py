"""
Incremental diff.

Decides which catalog entries must be transferred, using the persisted
fingerprints of the previous run and a probe of the destination side.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

from objectsync.core.logging import get_logger
from objectsync.core.models import CatalogEntry, SyncState, TransferTask

logger = get_logger(__name__)

DestinationProbe = Callable[[TransferTask], bool]
PathResolver = Callable[[str], Path]


@dataclass
class DiffResult:
    """Partition of a catalog into transfer and skip."""

    selected: list[TransferTask] = field(default_factory=list)
    skipped: list[CatalogEntry] = field(default_factory=list)

    @property
    def selected_bytes(self) -> int:
        return sum(task.entry.size_bytes for task in self.selected)


class DiffEngine:
    """Selects the objects a job has to move."""

    def __init__(self, incremental: bool = True) -> None:
        self.incremental = incremental

    def select(
        self,
        catalog: list[CatalogEntry],
        state: SyncState,
        probe: DestinationProbe,
        resolve_path: PathResolver,
    ) -> DiffResult:
        result = DiffResult()

        for entry in catalog:
            if not entry.key:
                result.skipped.append(entry)
                continue

            task = TransferTask(entry=entry, local_path=entry.local_path or resolve_path(entry.key))
            if self.needs_transfer(task, state, probe):
                result.selected.append(task)
            else:
                result.skipped.append(entry)

        logger.debug(
            "Diff complete",
            catalog=len(catalog),
            selected=len(result.selected),
            skipped=len(result.skipped),
            incremental=self.incremental,
        )
        return result

    def needs_transfer(
        self,
        task: TransferTask,
        state: SyncState,
        probe: DestinationProbe,
    ) -> bool:
        if not self.incremental:
            return True

        entry = task.entry
        if entry.is_container_marker:
            return not probe(task)

        if not probe(task):
            return True

        previous = state.get(entry.key)
        if previous is None:
            return True

        current = entry.fingerprint
        return (
            previous.content_tag != current.content_tag
            or previous.modified_at != current.modified_at
            or previous.size_bytes != current.size_bytes
        )
