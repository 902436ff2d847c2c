"""ObjectStore protocol for object storage backends."""

from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime
from typing import Protocol


class ObjectNotFoundError(Exception):
    """Raised by a backend when the requested key does not exist."""

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"No such key: {key}")


@dataclass(frozen=True)
class ObjectMetadata:
    """Metadata returned from object operations."""

    key: str
    size: int | None
    etag: str
    last_modified: datetime | None
    content_type: str | None = None


@dataclass
class ListResult:
    """Result of a prefix listing.

    With a delimiter, ``common_prefixes`` holds the grouped next-level
    prefixes (each ending with the delimiter) and ``objects`` only the
    direct children. Without one, ``objects`` holds every key under the
    prefix.
    """

    objects: list[ObjectMetadata] = field(default_factory=list)
    common_prefixes: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class KeyDeleteError:
    """A single key the store refused to delete in a batch."""

    key: str
    code: str
    message: str


@dataclass
class BatchDeleteResult:
    """Per-key outcome of a batch delete."""

    deleted: list[str] = field(default_factory=list)
    errors: list[KeyDeleteError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        """True when no key failed."""
        return not self.errors


class ObjectStore(Protocol):
    """Protocol for object storage backends (S3, R2, memory, filesystem)."""

    async def get(self, bucket: str, key: str) -> tuple[bytes, ObjectMetadata]:
        """Retrieve an object and its metadata. Raises if the key is missing."""
        ...

    async def put(
        self,
        bucket: str,
        key: str,
        content: bytes,
        content_type: str | None = None,
    ) -> ObjectMetadata:
        """Store an object and return its metadata."""
        ...

    async def head(self, bucket: str, key: str) -> ObjectMetadata:
        """Get object metadata without content. Raises if the key is missing."""
        ...

    async def delete(self, bucket: str, key: str) -> None:
        """Delete an object. No-op if it doesn't exist."""
        ...

    async def list(
        self,
        bucket: str,
        prefix: str,
        delimiter: str | None = None,
    ) -> ListResult:
        """List every object under a prefix, optionally grouped by delimiter."""
        ...

    async def batch_delete(self, bucket: str, keys: Sequence[str]) -> BatchDeleteResult:
        """Delete several objects in one call, reporting per-key failures."""
        ...
