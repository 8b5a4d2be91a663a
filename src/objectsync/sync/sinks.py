"""
Destination-side writers.

A sink answers whether an object already exists on the destination side and
moves one object there. Downloads write into the local filesystem, uploads
put into a bucket.
"""

from __future__ import annotations

import os
import shutil
from abc import ABC, abstractmethod

from objectsync.core.errors import EnumerationError, TransferError
from objectsync.core.logging import get_logger
from objectsync.core.models import TransferTask, escapes_directory
from objectsync.store.base import ObjectStore

logger = get_logger(__name__)

COPY_CHUNK_BYTES = 1024 * 1024


class Sink(ABC):
    """Writes transfer tasks to the destination side of a job."""

    @abstractmethod
    def exists(self, task: TransferTask) -> bool:
        """Whether the destination already holds something for this task."""

    @abstractmethod
    def write(self, task: TransferTask) -> int:
        """Transfer one object and return the number of bytes moved.

        Raises TransferError carrying the task key on failure.
        """


class LocalSink(Sink):
    """Downloads objects from a bucket into a local directory."""

    def __init__(self, store: ObjectStore, bucket: str) -> None:
        self.store = store
        self.bucket = bucket

    def exists(self, task: TransferTask) -> bool:
        if task.entry.is_container_marker:
            return task.local_path.is_dir()
        return task.local_path.exists()

    def write(self, task: TransferTask) -> int:
        entry = task.entry
        if escapes_directory(entry.key):
            raise TransferError(entry.key, "key escapes output directory")

        if entry.is_container_marker:
            try:
                task.local_path.mkdir(parents=True, exist_ok=True)
            except OSError as exc:
                raise TransferError(entry.key, f"create directory: {exc}") from exc
            set_mtime(task)
            return 0

        try:
            task.local_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise TransferError(entry.key, f"create parent directory: {exc}") from exc

        try:
            body = self.store.open_object(self.bucket, entry.key)
        except Exception as exc:
            raise TransferError(entry.key, f"get object: {exc}") from exc

        try:
            try:
                handle = open(task.local_path, "wb")
            except OSError as exc:
                raise TransferError(entry.key, f"write {task.local_path}: {exc}") from exc

            try:
                with handle:
                    shutil.copyfileobj(body, handle, COPY_CHUNK_BYTES)
            except Exception as exc:
                # No truncated file may survive a failed download
                task.local_path.unlink(missing_ok=True)
                if isinstance(exc, OSError):
                    raise TransferError(entry.key, f"write {task.local_path}: {exc}") from exc
                raise TransferError(entry.key, f"read object body: {exc}") from exc
        finally:
            body.close()

        set_mtime(task)
        return entry.size_bytes


class RemoteSink(Sink):
    """Uploads local files into a bucket."""

    def __init__(self, store: ObjectStore, bucket: str) -> None:
        self.store = store
        self.bucket = bucket
        self._remote_keys: set[str] | None = None

    def exists(self, task: TransferTask) -> bool:
        if self._remote_keys is None:
            self._remote_keys = self._list_remote_keys()
        return task.key in self._remote_keys

    def write(self, task: TransferTask) -> int:
        entry = task.entry
        if entry.is_container_marker:
            try:
                self.store.put_object(self.bucket, entry.key, b"")
            except Exception as exc:
                raise TransferError(entry.key, f"create directory marker: {exc}") from exc
            return 0

        try:
            handle = open(task.local_path, "rb")
        except OSError as exc:
            raise TransferError(entry.key, f"open {task.local_path}: {exc}") from exc

        with handle:
            try:
                self.store.put_object(self.bucket, entry.key, handle)
            except Exception as exc:
                raise TransferError(entry.key, f"put object: {exc}") from exc
        return entry.size_bytes

    def _list_remote_keys(self) -> set[str]:
        keys: set[str] = set()
        token: str | None = None
        while True:
            try:
                page = self.store.list_page(self.bucket, token)
            except Exception as exc:
                raise EnumerationError(f"list bucket {self.bucket!r}: {exc}") from exc
            keys.update(obj.key for obj in page.objects)
            if not page.is_truncated or not page.next_token:
                return keys
            token = page.next_token


def set_mtime(task: TransferTask) -> None:
    """Apply the source modification time; failures are only logged."""
    timestamp = task.entry.fingerprint.modified_at.timestamp()
    try:
        os.utime(task.local_path, (timestamp, timestamp))
    except OSError as exc:
        logger.warning(
            "Failed to set modification time",
            key=task.key,
            path=str(task.local_path),
            error=str(exc),
        )

