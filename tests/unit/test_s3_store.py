"""
Tests for objectsync.store.s3 module.
"""

from datetime import datetime, timedelta, timezone

import pytest
from botocore.exceptions import ClientError, EndpointConnectionError

from objectsync.core.config import StoreConfig
from objectsync.core.errors import StoreConnectionError
from objectsync.store.s3 import S3ObjectStore


def client_error(code: str, operation: str = "HeadBucket") -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": code}}, operation)


@pytest.fixture
def client(mocker):
    return mocker.Mock()


@pytest.fixture
def s3(client) -> S3ObjectStore:
    config = StoreConfig(endpoint="http://ceph.local:7480", access_key="AK", secret_key="SK")
    return S3ObjectStore(config, client=client)


class TestClientConstruction:
    """Tests for boto3 client setup."""

    def test_path_style_client(self, mocker) -> None:
        factory = mocker.patch("objectsync.store.s3.boto3.client")
        config = StoreConfig(endpoint="http://ceph.local:7480", access_key="AK", secret_key="SK")

        S3ObjectStore(config, max_pool_connections=8)

        _, kwargs = factory.call_args
        assert factory.call_args.args == ("s3",)
        assert kwargs["endpoint_url"] == "http://ceph.local:7480"
        assert kwargs["aws_access_key_id"] == "AK"
        assert kwargs["region_name"] == "us-east-1"
        boto_config = kwargs["config"]
        assert boto_config.signature_version == "s3v4"
        assert boto_config.s3 == {"addressing_style": "path"}
        assert boto_config.max_pool_connections == 8


class TestListing:
    """Tests for list_page."""

    def test_normalizes_entries(self, s3: S3ObjectStore, client) -> None:
        local = datetime(2024, 6, 20, 16, 0, 0, tzinfo=timezone(timedelta(hours=8)))
        client.list_objects_v2.return_value = {
            "Contents": [
                {"Key": "a.txt", "ETag": '"abc123"', "LastModified": local, "Size": 10},
                {"Key": "dir/", "ETag": '""', "LastModified": datetime(2024, 1, 1), "Size": 0},
            ],
            "IsTruncated": True,
            "NextContinuationToken": "next-1",
        }

        page = s3.list_page("docs")

        first, marker = page.objects
        assert first.etag == "abc123"
        assert first.last_modified == datetime(2024, 6, 20, 8, 0, 0, tzinfo=timezone.utc)
        assert first.last_modified.tzinfo == timezone.utc
        assert marker.etag == ""
        assert marker.last_modified.tzinfo == timezone.utc
        assert page.is_truncated is True
        assert page.next_token == "next-1"
        client.list_objects_v2.assert_called_once_with(Bucket="docs", MaxKeys=1000)

    def test_passes_continuation_token(self, s3: S3ObjectStore, client) -> None:
        client.list_objects_v2.return_value = {"IsTruncated": False}

        page = s3.list_page("docs", "token-2", max_keys=50)

        assert page.objects == []
        assert page.next_token is None
        client.list_objects_v2.assert_called_once_with(
            Bucket="docs", MaxKeys=50, ContinuationToken="token-2"
        )


class TestConnectivity:
    """Tests for connection and bucket checks."""

    def test_check_connection(self, s3: S3ObjectStore, client) -> None:
        s3.check_connection("docs")
        client.list_objects_v2.assert_called_once_with(Bucket="docs", MaxKeys=1)

    def test_check_connection_access_denied(self, s3: S3ObjectStore, client) -> None:
        client.list_objects_v2.side_effect = client_error("AccessDenied", "ListObjectsV2")
        with pytest.raises(StoreConnectionError, match="AccessDenied"):
            s3.check_connection("docs")

    def test_check_connection_unreachable(self, s3: S3ObjectStore, client) -> None:
        client.list_objects_v2.side_effect = EndpointConnectionError(endpoint_url="http://ceph.local:7480")
        with pytest.raises(StoreConnectionError):
            s3.check_connection("docs")

    @pytest.mark.parametrize("code", ["404", "NoSuchBucket", "NotFound"])
    def test_bucket_missing(self, s3: S3ObjectStore, client, code: str) -> None:
        client.head_bucket.side_effect = client_error(code)
        assert s3.bucket_exists("docs") is False

    def test_bucket_exists(self, s3: S3ObjectStore, client) -> None:
        assert s3.bucket_exists("docs") is True

    def test_bucket_forbidden(self, s3: S3ObjectStore, client) -> None:
        client.head_bucket.side_effect = client_error("403")
        with pytest.raises(StoreConnectionError):
            s3.bucket_exists("docs")

    def test_ensure_bucket_creates(self, s3: S3ObjectStore, client) -> None:
        client.head_bucket.side_effect = client_error("404")
        assert s3.ensure_bucket("docs") is True
        client.create_bucket.assert_called_once_with(Bucket="docs")

    def test_ensure_bucket_existing(self, s3: S3ObjectStore, client) -> None:
        assert s3.ensure_bucket("docs") is False
        client.create_bucket.assert_not_called()

    def test_create_bucket_failure(self, s3: S3ObjectStore, client) -> None:
        client.create_bucket.side_effect = client_error("BucketAlreadyOwnedByYou", "CreateBucket")
        with pytest.raises(StoreConnectionError):
            s3.create_bucket("docs")


class TestObjects:
    """Tests for object transfer calls."""

    def test_open_object(self, s3: S3ObjectStore, client, mocker) -> None:
        body = mocker.Mock()
        client.get_object.return_value = {"Body": body}

        assert s3.open_object("docs", "a.txt") is body
        client.get_object.assert_called_once_with(Bucket="docs", Key="a.txt")

    def test_put_object(self, s3: S3ObjectStore, client) -> None:
        s3.put_object("docs", "dir/", b"")
        client.put_object.assert_called_once_with(Bucket="docs", Key="dir/", Body=b"")
