"""
Per-job sync state persistence.

The state file maps each key of the source side to the fingerprint observed
on the last successful run. It is written in place once, at the end of a job.
"""

from __future__ import annotations

import json
from pathlib import Path

from objectsync.core.errors import StateError
from objectsync.core.logging import get_logger
from objectsync.core.models import Direction, SyncState

logger = get_logger(__name__)


class StateStore:
    """Loads and saves the sync state of one job."""

    def __init__(
        self,
        path: Path,
        enabled: bool = True,
        direction: Direction = Direction.DOWNLOAD,
    ) -> None:
        self.path = path
        self.enabled = enabled
        self.direction = direction

    def load(self) -> SyncState:
        """Load the state, treating a missing file as an empty state."""
        if not self.enabled:
            return SyncState()

        if not self.path.exists():
            logger.debug("No state file, starting empty", path=str(self.path))
            return SyncState()

        try:
            with open(self.path, encoding="utf-8") as handle:
                data = json.load(handle)
            state = SyncState.from_dict(data)
        except (OSError, ValueError, StateError) as exc:
            raise StateError(f"load state {self.path}: {exc}") from exc

        logger.debug("State loaded", path=str(self.path), entries=len(state.entries))
        return state

    def save(self, state: SyncState) -> None:
        """Overwrite the state file with the given state."""
        if not self.enabled:
            return

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "w", encoding="utf-8") as handle:
                json.dump(state.to_dict(self.direction), handle, indent=2)
                handle.write("\n")
        except OSError as exc:
            raise StateError(f"save state {self.path}: {exc}") from exc

        logger.debug("State saved", path=str(self.path), entries=len(state.entries))


def read_state(path: Path) -> SyncState | None:
    """Read a state file for reporting; None if it does not exist."""
    if not path.exists():
        return None
    return StateStore(path).load()
