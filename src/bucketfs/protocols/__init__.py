"""Protocol interfaces for pluggable backends."""

from bucketfs.protocols.object_store import (
    BatchDeleteResult,
    KeyDeleteError,
    ListResult,
    ObjectMetadata,
    ObjectNotFoundError,
    ObjectStore,
)

__all__ = [
    "BatchDeleteResult",
    "KeyDeleteError",
    "ListResult",
    "ObjectMetadata",
    "ObjectNotFoundError",
    "ObjectStore",
]
