"""
Pytest configuration and fixtures for ObjectSync tests.
"""

import io
import sys
import tempfile
import threading
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import BinaryIO, Generator

import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from objectsync.core.errors import StoreConnectionError  # noqa: E402
from objectsync.core.models import Direction, JobSpec  # noqa: E402
from objectsync.store.base import ListPage, ObjectStore, StoredObject  # noqa: E402

BASE_TIME = datetime(2024, 6, 20, 8, 0, 0, tzinfo=timezone.utc)


class InMemoryObjectStore(ObjectStore):
    """Object store test double keeping buckets in dictionaries."""

    def __init__(self, page_size: int = 1000) -> None:
        self.buckets: dict[str, dict[str, tuple[bytes, str, datetime]]] = {}
        self.page_size = page_size
        self.fail_connection = False
        self.fail_listing = False
        self.fail_keys: set[str] = set()
        self.get_calls: list[str] = []
        self.put_calls: list[str] = []
        self.list_calls = 0
        self._lock = threading.Lock()
        self._clock = BASE_TIME

    @property
    def endpoint(self) -> str:
        return "memory://test"

    def add(
        self,
        bucket: str,
        key: str,
        data: bytes = b"",
        etag: str | None = None,
        modified: datetime | None = None,
    ) -> None:
        self.buckets.setdefault(bucket, {})[key] = (
            data,
            etag if etag is not None else f"tag-{len(data)}-{hash(data) & 0xFFFF:x}",
            modified or BASE_TIME,
        )

    def check_connection(self, bucket: str) -> None:
        if self.fail_connection:
            raise StoreConnectionError(f"connect to {self.endpoint}: refused")
        if bucket not in self.buckets:
            raise StoreConnectionError(f"bucket {bucket!r}: NoSuchBucket")

    def list_page(self, bucket: str, continuation_token: str | None = None, max_keys: int = 1000) -> ListPage:
        with self._lock:
            self.list_calls += 1
        if self.fail_listing:
            raise RuntimeError("listing exploded")
        keys = sorted(self.buckets.get(bucket, {}))
        start = int(continuation_token) if continuation_token else 0
        size = min(max_keys, self.page_size)
        chunk = keys[start : start + size]
        objects = []
        for key in chunk:
            data, etag, modified = self.buckets[bucket][key]
            objects.append(StoredObject(key=key, etag=etag, last_modified=modified, size=len(data)))
        end = start + len(chunk)
        truncated = end < len(keys)
        return ListPage(objects=objects, is_truncated=truncated, next_token=str(end) if truncated else None)

    def open_object(self, bucket: str, key: str) -> BinaryIO:
        with self._lock:
            self.get_calls.append(key)
        if key in self.fail_keys:
            raise RuntimeError(f"get {key} refused")
        return io.BytesIO(self.buckets[bucket][key][0])

    def put_object(self, bucket: str, key: str, body: BinaryIO | bytes) -> None:
        with self._lock:
            self.put_calls.append(key)
        if key in self.fail_keys:
            raise RuntimeError(f"put {key} refused")
        data = body if isinstance(body, bytes) else body.read()
        with self._lock:
            self._clock += timedelta(seconds=1)
            self.buckets.setdefault(bucket, {})[key] = (data, f"put-{len(data)}", self._clock)

    def bucket_exists(self, bucket: str) -> bool:
        if self.fail_connection:
            raise StoreConnectionError(f"connect to {self.endpoint}: refused")
        return bucket in self.buckets

    def create_bucket(self, bucket: str) -> None:
        self.buckets[bucket] = {}


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def store() -> InMemoryObjectStore:
    """An empty in-memory object store."""
    return InMemoryObjectStore()


@pytest.fixture
def download_spec(temp_dir: Path) -> JobSpec:
    """Incremental download job for the 'docs' bucket."""
    return JobSpec(
        remote_name="docs",
        local_dir=temp_dir / "out",
        state_path=temp_dir / "state_docs.json",
        worker_count=3,
        incremental=True,
        direction=Direction.DOWNLOAD,
    )


def pytest_configure(config: pytest.Config) -> None:
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests")
    config.addinivalue_line("markers", "slow: Slow running tests")


@pytest.fixture
def make_store() -> type[InMemoryObjectStore]:
    """Factory for stores with custom paging."""
    return InMemoryObjectStore
