"""Local filesystem-based object storage."""

import atexit
import asyncio
import hashlib
import os
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from bucketfs.backends.objects.listing import group_listing
from bucketfs.protocols.object_store import (
    BatchDeleteResult,
    ListResult,
    ObjectMetadata,
    ObjectNotFoundError,
)

# Thread pool for async file I/O - configurable via environment
_max_workers = int(os.environ.get("BUCKETFS_FILE_WORKERS", "16"))
_executor = ThreadPoolExecutor(max_workers=_max_workers)

# Ensure executor is cleaned up on process exit
atexit.register(_executor.shutdown, wait=False)


class LocalObjectStore:
    """Object storage using the local filesystem.

    Each bucket is a directory under the base path and each key a file
    inside it. Suitable for development and single-server deployments.
    """

    def __init__(self, path: str | None = None, **kwargs: Any) -> None:
        """Initialize local object store.

        Args:
            path: Base directory for buckets. Defaults to ./data/buckets
            **kwargs: Ignored (for compatibility with other backends)
        """
        self.base_path = Path(path) if path else Path("./data/buckets")
        self.base_path.mkdir(parents=True, exist_ok=True)

    def _bucket_path(self, bucket: str) -> Path:
        if not bucket or "/" in bucket or "\\" in bucket or bucket in (".", ".."):
            raise ValueError(f"Invalid bucket: {bucket}")
        return self.base_path / bucket

    def _get_path(self, bucket: str, key: str) -> Path:
        """Get the filesystem path for a key.

        Keys are used verbatim. Segments that would move out of or
        collapse within the bucket directory are rejected.
        """
        if not key or key.endswith("/") or key.startswith("/"):
            raise ValueError(f"Invalid key: {key}")

        if any(segment in (".", "..") for segment in key.split("/")):
            raise ValueError(f"Invalid key: {key}")

        # Check for null bytes and other dangerous characters
        if "\x00" in key or "\\" in key:
            raise ValueError(f"Invalid key: {key}")

        bucket_path = self._bucket_path(bucket)
        target_path = (bucket_path / key).resolve()

        try:
            target_path.relative_to(bucket_path.resolve())
        except ValueError:
            raise ValueError("Invalid key: path traversal detected")

        return target_path

    def _get_metadata(self, path: Path, key: str) -> ObjectMetadata:
        """Get metadata for a file.

        Uses stat-based ETag (inode, size, mtime) to avoid reading file content.
        """
        stat = path.stat()
        etag = f"{stat.st_ino}-{stat.st_size}-{int(stat.st_mtime * 1000)}"
        return ObjectMetadata(
            key=key,
            size=stat.st_size,
            etag=hashlib.md5(etag.encode()).hexdigest(),
            last_modified=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
        )

    async def _run(self, func: Any) -> Any:
        # Run blocking I/O in thread pool
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(_executor, func)

    async def get(self, bucket: str, key: str) -> tuple[bytes, ObjectMetadata]:
        """Retrieve an object and its metadata."""
        path = self._get_path(bucket, key)

        def _read() -> tuple[bytes, ObjectMetadata]:
            if not path.is_file():
                raise ObjectNotFoundError(key)
            content = path.read_bytes()
            return content, self._get_metadata(path, key)

        return await self._run(_read)

    async def put(
        self,
        bucket: str,
        key: str,
        content: bytes,
        content_type: str | None = None,
    ) -> ObjectMetadata:
        """Store an object."""
        path = self._get_path(bucket, key)

        def _write() -> ObjectMetadata:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(content)
            return self._get_metadata(path, key)

        return await self._run(_write)

    async def head(self, bucket: str, key: str) -> ObjectMetadata:
        """Get object metadata without content."""
        path = self._get_path(bucket, key)

        def _head() -> ObjectMetadata:
            if not path.is_file():
                raise ObjectNotFoundError(key)
            return self._get_metadata(path, key)

        return await self._run(_head)

    async def delete(self, bucket: str, key: str) -> None:
        """Delete an object."""
        path = self._get_path(bucket, key)

        def _delete() -> None:
            if path.is_file():
                path.unlink()

        await self._run(_delete)

    async def list(
        self,
        bucket: str,
        prefix: str,
        delimiter: str | None = None,
    ) -> ListResult:
        """List objects under a prefix."""
        bucket_path = self._bucket_path(bucket)

        def _list_files() -> list[ObjectMetadata]:
            if not bucket_path.exists():
                return []
            results = []
            # Resolve to handle symlinks consistently (e.g., /var -> /private/var on macOS)
            resolved_base = bucket_path.resolve()
            for path in bucket_path.rglob("*"):
                if path.is_file():
                    key = path.resolve().relative_to(resolved_base).as_posix()
                    if key.startswith(prefix):
                        results.append(self._get_metadata(path, key))
            return results

        files = await self._run(_list_files)
        return group_listing(files, prefix, delimiter)

    async def batch_delete(self, bucket: str, keys: Sequence[str]) -> BatchDeleteResult:
        """Delete several objects."""
        paths = [(key, self._get_path(bucket, key)) for key in keys]

        def _delete_all() -> BatchDeleteResult:
            result = BatchDeleteResult()
            for key, path in paths:
                if path.is_file():
                    path.unlink()
                result.deleted.append(key)
            return result

        return await self._run(_delete_all)
