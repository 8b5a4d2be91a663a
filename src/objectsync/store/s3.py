"""
ObjectSync S3 backend.

boto3 implementation of the object store interface, tuned for S3-compatible
gateways (path-style addressing, s3v4 signatures).
"""

from __future__ import annotations

from datetime import timezone
from typing import Any, BinaryIO

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

from objectsync.core.config import StoreConfig
from objectsync.core.errors import StoreConnectionError
from objectsync.core.logging import get_logger
from objectsync.store.base import ListPage, ObjectStore, StoredObject

logger = get_logger(__name__)

NOT_FOUND_CODES = {"404", "NoSuchBucket", "NotFound"}


def error_code(exc: ClientError) -> str:
    return str(exc.response.get("Error", {}).get("Code", "Unknown"))


class S3ObjectStore(ObjectStore):
    """Object store client backed by boto3."""

    def __init__(self, config: StoreConfig, max_pool_connections: int = 10, client: Any = None) -> None:
        self._config = config
        if client is None:
            client = boto3.client(
                "s3",
                endpoint_url=config.endpoint or None,
                aws_access_key_id=config.access_key or None,
                aws_secret_access_key=config.secret_key or None,
                region_name=config.region,
                config=BotoConfig(
                    signature_version="s3v4",
                    s3={"addressing_style": "path" if config.force_path_style else "auto"},
                    max_pool_connections=max_pool_connections,
                    retries={"max_attempts": 3, "mode": "standard"},
                ),
            )
        self._client = client

    @property
    def endpoint(self) -> str:
        return self._config.endpoint

    def check_connection(self, bucket: str) -> None:
        try:
            self._client.list_objects_v2(Bucket=bucket, MaxKeys=1)
        except ClientError as exc:
            raise StoreConnectionError(
                f"connect to {self.endpoint} bucket {bucket!r}: {error_code(exc)}"
            ) from exc
        except BotoCoreError as exc:
            raise StoreConnectionError(f"connect to {self.endpoint}: {exc}") from exc

    def list_page(
        self,
        bucket: str,
        continuation_token: str | None = None,
        max_keys: int = 1000,
    ) -> ListPage:
        kwargs: dict[str, Any] = {"Bucket": bucket, "MaxKeys": max_keys}
        if continuation_token:
            kwargs["ContinuationToken"] = continuation_token
        response = self._client.list_objects_v2(**kwargs)

        objects = []
        for item in response.get("Contents", []):
            last_modified = item["LastModified"]
            if last_modified.tzinfo is None:
                last_modified = last_modified.replace(tzinfo=timezone.utc)
            objects.append(
                StoredObject(
                    key=item.get("Key", ""),
                    etag=item.get("ETag", "").strip('"'),
                    last_modified=last_modified.astimezone(timezone.utc),
                    size=int(item.get("Size", 0)),
                )
            )
        return ListPage(
            objects=objects,
            is_truncated=bool(response.get("IsTruncated", False)),
            next_token=response.get("NextContinuationToken"),
        )

    def open_object(self, bucket: str, key: str) -> BinaryIO:
        response = self._client.get_object(Bucket=bucket, Key=key)
        return response["Body"]

    def put_object(self, bucket: str, key: str, body: BinaryIO | bytes) -> None:
        self._client.put_object(Bucket=bucket, Key=key, Body=body)

    def bucket_exists(self, bucket: str) -> bool:
        try:
            self._client.head_bucket(Bucket=bucket)
        except ClientError as exc:
            if error_code(exc) in NOT_FOUND_CODES:
                return False
            raise StoreConnectionError(f"check bucket {bucket!r}: {error_code(exc)}") from exc
        except BotoCoreError as exc:
            raise StoreConnectionError(f"connect to {self.endpoint}: {exc}") from exc
        return True

    def create_bucket(self, bucket: str) -> None:
        try:
            self._client.create_bucket(Bucket=bucket)
        except (ClientError, BotoCoreError) as exc:
            raise StoreConnectionError(f"create bucket {bucket!r}: {exc}") from exc
        logger.info("Bucket created", bucket=bucket, endpoint=self.endpoint)
