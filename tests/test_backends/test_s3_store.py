"""Tests for the S3-compatible object storage backend."""

import io
from datetime import datetime, timezone

import boto3
import pytest
from botocore.exceptions import ClientError
from botocore.response import StreamingBody
from botocore.stub import Stubber

from bucketfs.backends.objects.s3 import S3ObjectStore
from bucketfs.classifier import ErrorKind, classify_error

MODIFIED = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def client():
    """Create an S3 client that never leaves the process."""
    return boto3.client(
        "s3",
        region_name="us-east-1",
        endpoint_url="https://acct.r2.cloudflarestorage.com",
        aws_access_key_id="test-access-key",
        aws_secret_access_key="test-secret-key",
    )


@pytest.fixture
def stubber(client):
    with Stubber(client) as stub:
        yield stub
        stub.assert_no_pending_responses()


@pytest.fixture
def object_store(client):
    return S3ObjectStore(client=client)


class TestConstruction:
    """Tests for S3ObjectStore construction."""

    def test_requires_credentials(self):
        """Endpoint and credentials are required without a client."""
        with pytest.raises(ValueError, match="requires endpoint"):
            S3ObjectStore(endpoint="https://acct.r2.cloudflarestorage.com")

    def test_client_configuration(self):
        """The client uses path-style addressing and bounded retries."""
        store = S3ObjectStore(
            endpoint="https://acct.r2.cloudflarestorage.com",
            access_key_id="k",
            secret_access_key="s",
            max_attempts=5,
            request_timeout_seconds=10,
        )

        config = store.client.meta.config
        assert store.client.meta.endpoint_url == "https://acct.r2.cloudflarestorage.com"
        assert config.s3["addressing_style"] == "path"
        assert config.retries["total_max_attempts"] == 5
        assert config.read_timeout == 10
        store.close()


class TestS3ObjectStore:
    """Tests for S3ObjectStore operations."""

    @pytest.mark.asyncio
    async def test_get(self, object_store, stubber):
        """Get reads the body and maps response headers."""
        stubber.add_response(
            "get_object",
            {
                "Body": StreamingBody(io.BytesIO(b"hello"), 5),
                "ContentLength": 5,
                "ETag": '"abc"',
                "LastModified": MODIFIED,
                "ContentType": "text/plain",
            },
        )

        content, metadata = await object_store.get("bucket", "docs/a.txt")

        assert content == b"hello"
        assert metadata.key == "docs/a.txt"
        assert metadata.size == 5
        assert metadata.etag == '"abc"'
        assert metadata.last_modified == MODIFIED

    @pytest.mark.asyncio
    async def test_get_missing(self, object_store, stubber):
        """A NoSuchKey error propagates and classifies as not-found."""
        stubber.add_client_error(
            "get_object",
            service_error_code="NoSuchKey",
            service_message="The specified key does not exist.",
            http_status_code=404,
        )

        with pytest.raises(ClientError) as exc_info:
            await object_store.get("bucket", "missing.txt")

        assert classify_error(exc_info.value) is ErrorKind.NOT_FOUND

    @pytest.mark.asyncio
    async def test_put(self, object_store, stubber):
        """Put returns the store's ETag."""
        stubber.add_response("put_object", {"ETag": '"etag-1"'})

        metadata = await object_store.put("bucket", "a.json", b"{}", "application/json")

        assert metadata.etag == '"etag-1"'
        assert metadata.size == 2
        assert metadata.content_type == "application/json"

    @pytest.mark.asyncio
    async def test_head(self, object_store, stubber):
        """Head maps size, time and ETag."""
        stubber.add_response(
            "head_object",
            {"ContentLength": 42, "ETag": '"e"', "LastModified": MODIFIED},
        )

        metadata = await object_store.head("bucket", "a.txt")

        assert metadata.size == 42
        assert metadata.last_modified == MODIFIED

    @pytest.mark.asyncio
    async def test_head_missing(self, object_store, stubber):
        """HeadObject reports a bare 404."""
        stubber.add_client_error(
            "head_object",
            service_error_code="404",
            service_message="Not Found",
            http_status_code=404,
        )

        with pytest.raises(ClientError) as exc_info:
            await object_store.head("bucket", "missing.txt")

        assert classify_error(exc_info.value) is ErrorKind.NOT_FOUND

    @pytest.mark.asyncio
    async def test_delete(self, object_store, stubber):
        """Delete issues a single DeleteObject."""
        stubber.add_response("delete_object", {})
        await object_store.delete("bucket", "a.txt")

    @pytest.mark.asyncio
    async def test_list_follows_pages(self, object_store, stubber):
        """Listing merges every page of results."""
        stubber.add_response(
            "list_objects_v2",
            {
                "IsTruncated": True,
                "NextContinuationToken": "page-2",
                "Contents": [
                    {"Key": "d/a.txt", "Size": 1, "ETag": '"a"', "LastModified": MODIFIED},
                ],
                "CommonPrefixes": [{"Prefix": "d/sub/"}],
            },
        )
        stubber.add_response(
            "list_objects_v2",
            {
                "IsTruncated": False,
                "Contents": [
                    {"Key": "d/b.txt", "Size": 2, "ETag": '"b"', "LastModified": MODIFIED},
                ],
            },
        )

        result = await object_store.list("bucket", "d/", delimiter="/")

        assert [m.key for m in result.objects] == ["d/a.txt", "d/b.txt"]
        assert [m.size for m in result.objects] == [1, 2]
        assert result.common_prefixes == ["d/sub/"]

    @pytest.mark.asyncio
    async def test_list_empty(self, object_store, stubber):
        """An empty listing has no objects or prefixes."""
        stubber.add_response("list_objects_v2", {"IsTruncated": False, "KeyCount": 0})

        result = await object_store.list("bucket", "nothing/")

        assert result.objects == []
        assert result.common_prefixes == []

    @pytest.mark.asyncio
    async def test_batch_delete_reports_per_key_errors(self, object_store, stubber):
        """Per-key failures in DeleteObjects are returned, not hidden."""
        stubber.add_response(
            "delete_objects",
            {
                "Deleted": [{"Key": "d/a.txt"}],
                "Errors": [
                    {"Key": "d/b.txt", "Code": "AccessDenied", "Message": "Access Denied"},
                ],
            },
        )

        result = await object_store.batch_delete("bucket", ["d/a.txt", "d/b.txt"])

        assert result.deleted == ["d/a.txt"]
        assert not result.ok
        assert result.errors[0].key == "d/b.txt"
        assert result.errors[0].code == "AccessDenied"
