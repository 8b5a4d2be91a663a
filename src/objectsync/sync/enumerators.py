"""
Source-side enumerators.

Produce the authoritative catalog of one side of a job: a paginated bucket
listing for downloads, a recursive directory walk for uploads.
"""

from __future__ import annotations

import os
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path

from objectsync.core.errors import EnumerationError
from objectsync.core.logging import get_logger
from objectsync.core.models import (
    CONTAINER_SUFFIX,
    CatalogEntry,
    ObjectFingerprint,
    canonical_key,
)
from objectsync.store.base import ObjectStore

logger = get_logger(__name__)


class Enumerator(ABC):
    """Lists the source side of a job."""

    @abstractmethod
    def list(self) -> list[CatalogEntry]:
        """Return the complete catalog or raise EnumerationError."""


class RemoteEnumerator(Enumerator):
    """Lists every object in a bucket, following continuation tokens."""

    def __init__(self, store: ObjectStore, bucket: str, page_size: int = 1000) -> None:
        self.store = store
        self.bucket = bucket
        self.page_size = page_size

    def list(self) -> list[CatalogEntry]:
        catalog: list[CatalogEntry] = []
        token: str | None = None
        pages = 0

        while True:
            try:
                page = self.store.list_page(self.bucket, token, self.page_size)
            except Exception as exc:
                raise EnumerationError(
                    f"list bucket {self.bucket!r} (page {pages + 1}): {exc}"
                ) from exc
            pages += 1

            for obj in page.objects:
                catalog.append(
                    CatalogEntry(
                        key=obj.key,
                        fingerprint=ObjectFingerprint(
                            content_tag=obj.etag,
                            modified_at=obj.last_modified,
                            size_bytes=obj.size,
                        ),
                    )
                )

            if not page.is_truncated:
                break
            if not page.next_token:
                raise EnumerationError(
                    f"list bucket {self.bucket!r}: truncated page without continuation token"
                )
            token = page.next_token

        logger.debug("Bucket listed", bucket=self.bucket, objects=len(catalog), pages=pages)
        return catalog


class LocalEnumerator(Enumerator):
    """Walks a local directory tree into a catalog.

    Directories become container markers (key with a trailing slash, size 0).
    Local entries carry no content tag.
    """

    def __init__(self, root: Path) -> None:
        self.root = root

    def list(self) -> list[CatalogEntry]:
        if not self.root.is_dir():
            raise EnumerationError(f"input directory does not exist: {self.root}")

        catalog: list[CatalogEntry] = []

        def on_error(exc: OSError) -> None:
            raise exc

        try:
            for dirpath, dirnames, filenames in os.walk(self.root, onerror=on_error):
                dirnames.sort()
                current = Path(dirpath)
                for name in dirnames:
                    catalog.append(self._entry(current / name, is_dir=True))
                for name in sorted(filenames):
                    catalog.append(self._entry(current / name, is_dir=False))
        except OSError as exc:
            raise EnumerationError(f"walk {self.root}: {exc}") from exc

        logger.debug("Directory walked", root=str(self.root), entries=len(catalog))
        return catalog

    def _entry(self, path: Path, is_dir: bool) -> CatalogEntry:
        stat = path.stat()
        key = canonical_key(path.relative_to(self.root).as_posix())
        size = stat.st_size
        if is_dir:
            key += CONTAINER_SUFFIX
            size = 0
        return CatalogEntry(
            key=key,
            fingerprint=ObjectFingerprint(
                content_tag="",
                modified_at=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
                size_bytes=size,
            ),
            local_path=path,
        )
