"""S3-compatible object storage backend (Cloudflare R2, AWS S3, MinIO)."""

import atexit
import asyncio
import functools
import os
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor
from typing import Any

import boto3
from botocore.config import Config as BotoConfig

from bucketfs.protocols.object_store import (
    BatchDeleteResult,
    KeyDeleteError,
    ListResult,
    ObjectMetadata,
)

# boto3 clients are blocking; calls run in this pool
_max_workers = int(os.environ.get("BUCKETFS_STORE_WORKERS", "16"))
_executor = ThreadPoolExecutor(max_workers=_max_workers)

atexit.register(_executor.shutdown, wait=False)


def _metadata_from_response(key: str, response: dict[str, Any]) -> ObjectMetadata:
    """Build metadata from a GetObject/HeadObject/PutObject response."""
    return ObjectMetadata(
        key=key,
        size=response.get("ContentLength"),
        etag=response.get("ETag") or "",
        last_modified=response.get("LastModified"),
        content_type=response.get("ContentType"),
    )


class S3ObjectStore:
    """Object storage over the S3 API.

    Uses path-style addressing and SigV4, which Cloudflare R2 requires.
    Timeouts and bounded retries of transient failures are handled by
    botocore; callers see a single exception once retries are exhausted.
    """

    def __init__(
        self,
        endpoint: str | None = None,
        access_key_id: str | None = None,
        secret_access_key: str | None = None,
        region: str = "auto",
        request_timeout_seconds: float = 30.0,
        max_attempts: int = 3,
        client: Any = None,
        **kwargs: Any,
    ) -> None:
        """Initialize S3 object store.

        Args:
            endpoint: S3 API endpoint URL
            access_key_id: Access key ID
            secret_access_key: Secret access key
            region: Signing region ("auto" for R2)
            request_timeout_seconds: Connect and read timeout
            max_attempts: Total attempts per request, including retries
            client: Pre-built boto3 S3 client (overrides the settings above)
            **kwargs: Ignored
        """
        if client is not None:
            self.client = client
            return

        if not endpoint or not access_key_id or not secret_access_key:
            raise ValueError(
                "S3ObjectStore requires endpoint, access_key_id, and secret_access_key. "
                "Use the 'memory' or 'local' backend for development."
            )

        self.client = boto3.client(
            "s3",
            endpoint_url=endpoint,
            aws_access_key_id=access_key_id,
            aws_secret_access_key=secret_access_key,
            region_name=region,
            config=BotoConfig(
                signature_version="s3v4",
                s3={"addressing_style": "path"},
                connect_timeout=request_timeout_seconds,
                read_timeout=request_timeout_seconds,
                retries={"max_attempts": max_attempts, "mode": "standard"},
            ),
        )

    async def _call(self, func: Any, *args: Any, **kwargs: Any) -> Any:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(_executor, functools.partial(func, *args, **kwargs))

    async def get(self, bucket: str, key: str) -> tuple[bytes, ObjectMetadata]:
        """Retrieve an object and its metadata."""

        def _get() -> tuple[bytes, ObjectMetadata]:
            response = self.client.get_object(Bucket=bucket, Key=key)
            body = response["Body"]
            try:
                content = body.read()
            finally:
                body.close()
            return content, _metadata_from_response(key, response)

        return await self._call(_get)

    async def put(
        self,
        bucket: str,
        key: str,
        content: bytes,
        content_type: str | None = None,
    ) -> ObjectMetadata:
        """Store an object."""
        params: dict[str, Any] = {"Bucket": bucket, "Key": key, "Body": content}
        if content_type:
            params["ContentType"] = content_type

        response = await self._call(self.client.put_object, **params)
        return ObjectMetadata(
            key=key,
            size=len(content),
            etag=response.get("ETag") or "",
            last_modified=None,
            content_type=content_type,
        )

    async def head(self, bucket: str, key: str) -> ObjectMetadata:
        """Get object metadata without content."""
        response = await self._call(self.client.head_object, Bucket=bucket, Key=key)
        return _metadata_from_response(key, response)

    async def delete(self, bucket: str, key: str) -> None:
        """Delete an object. S3 does not report missing keys here."""
        await self._call(self.client.delete_object, Bucket=bucket, Key=key)

    async def list(
        self,
        bucket: str,
        prefix: str,
        delimiter: str | None = None,
    ) -> ListResult:
        """List objects under a prefix, following continuation tokens."""
        params: dict[str, Any] = {"Bucket": bucket, "Prefix": prefix}
        if delimiter:
            params["Delimiter"] = delimiter

        def _list() -> ListResult:
            result = ListResult()
            paginator = self.client.get_paginator("list_objects_v2")
            for page in paginator.paginate(**params):
                for obj in page.get("Contents", []):
                    result.objects.append(ObjectMetadata(
                        key=obj["Key"],
                        size=obj.get("Size"),
                        etag=obj.get("ETag") or "",
                        last_modified=obj.get("LastModified"),
                    ))
                for common in page.get("CommonPrefixes", []):
                    if common.get("Prefix"):
                        result.common_prefixes.append(common["Prefix"])
            return result

        return await self._call(_list)

    async def batch_delete(self, bucket: str, keys: Sequence[str]) -> BatchDeleteResult:
        """Delete up to 1000 objects in one DeleteObjects call."""
        response = await self._call(
            self.client.delete_objects,
            Bucket=bucket,
            Delete={"Objects": [{"Key": key} for key in keys], "Quiet": False},
        )
        return BatchDeleteResult(
            deleted=[item["Key"] for item in response.get("Deleted", []) if "Key" in item],
            errors=[
                KeyDeleteError(
                    key=item.get("Key", ""),
                    code=item.get("Code", ""),
                    message=item.get("Message", ""),
                )
                for item in response.get("Errors", [])
            ],
        )

    def close(self) -> None:
        """Close the underlying HTTP connection pool."""
        self.client.close()
