"""In-memory object storage."""

import asyncio
import hashlib
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from bucketfs.backends.objects.listing import group_listing
from bucketfs.protocols.object_store import (
    BatchDeleteResult,
    ListResult,
    ObjectMetadata,
    ObjectNotFoundError,
)


@dataclass
class StoredObject:
    """An object body with its metadata."""

    content: bytes
    metadata: ObjectMetadata


class MemoryObjectStore:
    """In-memory object store.

    Suitable for development and testing. Data is lost on restart.
    Buckets are created on first write.
    """

    def __init__(self, **kwargs: Any) -> None:
        """Initialize memory object store.

        Args:
            **kwargs: Ignored (for compatibility with other backends)
        """
        self._buckets: dict[str, dict[str, StoredObject]] = {}
        self._lock = asyncio.Lock()

    def _objects(self, bucket: str) -> dict[str, StoredObject]:
        return self._buckets.setdefault(bucket, {})

    async def get(self, bucket: str, key: str) -> tuple[bytes, ObjectMetadata]:
        """Retrieve an object and its metadata."""
        async with self._lock:
            stored = self._objects(bucket).get(key)
            if stored is None:
                raise ObjectNotFoundError(key)
            return stored.content, stored.metadata

    async def put(
        self,
        bucket: str,
        key: str,
        content: bytes,
        content_type: str | None = None,
    ) -> ObjectMetadata:
        """Store an object."""
        metadata = ObjectMetadata(
            key=key,
            size=len(content),
            etag=hashlib.md5(content).hexdigest(),
            last_modified=datetime.now(timezone.utc),
            content_type=content_type,
        )
        async with self._lock:
            self._objects(bucket)[key] = StoredObject(content=bytes(content), metadata=metadata)
        return metadata

    async def head(self, bucket: str, key: str) -> ObjectMetadata:
        """Get object metadata without content."""
        async with self._lock:
            stored = self._objects(bucket).get(key)
            if stored is None:
                raise ObjectNotFoundError(key)
            return stored.metadata

    async def delete(self, bucket: str, key: str) -> None:
        """Delete an object."""
        async with self._lock:
            self._objects(bucket).pop(key, None)

    async def list(
        self,
        bucket: str,
        prefix: str,
        delimiter: str | None = None,
    ) -> ListResult:
        """List objects under a prefix."""
        async with self._lock:
            metadata = [stored.metadata for stored in self._objects(bucket).values()]
        return group_listing(metadata, prefix, delimiter)

    async def batch_delete(self, bucket: str, keys: Sequence[str]) -> BatchDeleteResult:
        """Delete several objects."""
        async with self._lock:
            objects = self._objects(bucket)
            for key in keys:
                objects.pop(key, None)
        return BatchDeleteResult(deleted=list(keys))

    async def clear(self) -> None:
        """Clear all buckets. Useful for testing."""
        async with self._lock:
            self._buckets.clear()
