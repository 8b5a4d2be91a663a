"""
ObjectSync Object Store Base.

Defines the abstract interface the sync core needs from an object store.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import BinaryIO


@dataclass(frozen=True)
class StoredObject:
    """One row of a bucket listing."""

    key: str
    etag: str
    last_modified: datetime
    size: int


@dataclass
class ListPage:
    """A single page of a paginated bucket listing."""

    objects: list[StoredObject] = field(default_factory=list)
    is_truncated: bool = False
    next_token: str | None = None


class ObjectStore(ABC):
    """Abstract base class for object store clients."""

    @property
    @abstractmethod
    def endpoint(self) -> str:
        """Endpoint URL, for reporting."""

    @abstractmethod
    def check_connection(self, bucket: str) -> None:
        """Verify connectivity and credentials against a bucket.

        Raises StoreConnectionError on failure.
        """

    @abstractmethod
    def list_page(
        self,
        bucket: str,
        continuation_token: str | None = None,
        max_keys: int = 1000,
    ) -> ListPage:
        """List one page of objects in a bucket."""

    @abstractmethod
    def open_object(self, bucket: str, key: str) -> BinaryIO:
        """Return a readable byte stream for an object body.

        The caller is responsible for closing the stream.
        """

    @abstractmethod
    def put_object(self, bucket: str, key: str, body: BinaryIO | bytes) -> None:
        """Store an object body under a key."""

    @abstractmethod
    def bucket_exists(self, bucket: str) -> bool:
        """Whether the bucket exists."""

    @abstractmethod
    def create_bucket(self, bucket: str) -> None:
        """Create a bucket."""

    def ensure_bucket(self, bucket: str) -> bool:
        """Create the bucket if it is missing. Returns True if created."""
        if self.bucket_exists(bucket):
            return False
        self.create_bucket(bucket)
        return True
