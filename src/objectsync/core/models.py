"""
ObjectSync data models.

Defines the core data structures for catalogs, fingerprints, sync state
and job specifications.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any

from objectsync.core.errors import StateError

CONTAINER_SUFFIX = "/"


class Direction(Enum):
    """Transfer direction of a job."""

    DOWNLOAD = "download"
    UPLOAD = "upload"

    @property
    def state_timestamp_key(self) -> str:
        """Top-level timestamp field used in the state file."""
        return "last_backup" if self is Direction.DOWNLOAD else "last_upload"


def canonical_key(relative_path: str) -> str:
    """Normalize a relative path into an object key."""
    return relative_path.replace("\\", "/")


def is_container_key(key: str, size_bytes: int) -> bool:
    return key.endswith(CONTAINER_SUFFIX) and size_bytes == 0


def escapes_directory(key: str) -> bool:
    """Whether the key has "." or ".." segments, which cannot map under a local directory."""
    return any(part in (".", "..") for part in key.split(CONTAINER_SUFFIX))


def format_timestamp(value: datetime) -> str:
    """Render a timestamp as RFC 3339 UTC with a trailing Z."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def parse_timestamp(value: str) -> datetime:
    """Parse an RFC 3339 timestamp into an aware UTC datetime."""
    parsed = datetime.fromisoformat(value.strip())
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


@dataclass(frozen=True)
class ObjectFingerprint:
    """Content identity of an object as reported by its source side."""

    content_tag: str
    modified_at: datetime
    size_bytes: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "etag": self.content_tag,
            "last_modified": format_timestamp(self.modified_at),
            "size": self.size_bytes,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ObjectFingerprint:
        modified = data.get("last_modified")
        if not isinstance(modified, str):
            raise StateError("last_modified must be a timestamp string")
        size = data.get("size", 0)
        if isinstance(size, bool) or not isinstance(size, int):
            raise StateError(f"size must be an integer, got {size!r}")
        return cls(
            content_tag=str(data.get("etag") or ""),
            modified_at=parse_timestamp(modified),
            size_bytes=size,
        )


@dataclass(frozen=True)
class CatalogEntry:
    """One object on the source side of a job."""

    key: str
    fingerprint: ObjectFingerprint
    local_path: Path | None = None

    @property
    def is_container_marker(self) -> bool:
        return is_container_key(self.key, self.fingerprint.size_bytes)

    @property
    def size_bytes(self) -> int:
        return self.fingerprint.size_bytes


@dataclass
class SyncState:
    """Persisted per-job snapshot of the source side."""

    last_run_at: datetime | None = None
    entries: dict[str, ObjectFingerprint] = field(default_factory=dict)

    def get(self, key: str) -> ObjectFingerprint | None:
        return self.entries.get(key)

    @property
    def total_size_bytes(self) -> int:
        return sum(fp.size_bytes for fp in self.entries.values())

    def to_dict(self, direction: Direction = Direction.DOWNLOAD) -> dict[str, Any]:
        return {
            direction.state_timestamp_key: (
                format_timestamp(self.last_run_at) if self.last_run_at else None
            ),
            "files": {key: fp.to_dict() for key, fp in self.entries.items()},
        }

    @classmethod
    def from_dict(cls, data: Any) -> SyncState:
        """Build a state from parsed JSON, rejecting anything not shaped like a state file."""
        if not isinstance(data, dict):
            raise StateError(f"state must be a JSON object, got {type(data).__name__}")

        raw_time = data.get("last_backup") or data.get("last_upload")
        if raw_time is not None and not isinstance(raw_time, str):
            raise StateError("last run timestamp must be a string")

        files = data.get("files")
        if files is None:
            files = {}
        if not isinstance(files, dict):
            raise StateError(f'"files" must be a JSON object, got {type(files).__name__}')

        entries: dict[str, ObjectFingerprint] = {}
        for key, value in files.items():
            if not isinstance(value, dict):
                raise StateError(f"entry {key!r} must be a JSON object")
            try:
                entries[key] = ObjectFingerprint.from_dict(value)
            except (StateError, ValueError) as exc:
                raise StateError(f"entry {key!r}: {exc}") from exc

        return cls(
            last_run_at=parse_timestamp(raw_time) if raw_time else None,
            entries=entries,
        )

    @classmethod
    def from_catalog(cls, catalog: list[CatalogEntry], run_at: datetime) -> SyncState:
        """Build the state a successful run leaves behind."""
        return cls(
            last_run_at=run_at,
            entries={entry.key: entry.fingerprint for entry in catalog if entry.key},
        )


@dataclass(frozen=True)
class TransferTask:
    """A single object selected for transfer."""

    entry: CatalogEntry
    local_path: Path

    @property
    def key(self) -> str:
        return self.entry.key


@dataclass(frozen=True)
class JobSpec:
    """Immutable description of one synchronization job."""

    remote_name: str
    local_dir: Path
    state_path: Path
    worker_count: int = 5
    incremental: bool = True
    verbose: bool = False
    direction: Direction = Direction.DOWNLOAD

    def local_path_for(self, key: str) -> Path:
        return self.local_dir.joinpath(*[part for part in key.split("/") if part])

    def to_dict(self) -> dict[str, Any]:
        return {
            "remote_name": self.remote_name,
            "local_dir": str(self.local_dir),
            "state_path": str(self.state_path),
            "worker_count": self.worker_count,
            "incremental": self.incremental,
            "verbose": self.verbose,
            "direction": self.direction.value,
        }
