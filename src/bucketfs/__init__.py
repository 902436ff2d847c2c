"""bucketfs - A filesystem interface over S3-compatible object storage."""

from bucketfs.caching import CacheEntry, MetadataCache
from bucketfs.classifier import ErrorKind, classify_error
from bucketfs.config import CacheConfig, Config, FileSystemOptions
from bucketfs.exceptions import (
    BucketFSError,
    ConfigError,
    DeleteError,
    DirectoryDeleteError,
    ExistenceCheckError,
    FileSystemOperationError,
    ListError,
    NotFoundError,
    ReadError,
    StatError,
    WriteError,
)
from bucketfs.filesystem import (
    BucketFileSystem,
    BucketInfo,
    FileStats,
    create_bucket_filesystem,
)
from bucketfs.keys import KeyCodec
from bucketfs.observability import (
    StructuredLogger,
    Timer,
    configure_logging,
    get_logger,
    operation_scope,
    register_metric_callback,
)

__version__ = "0.1.0"
__all__ = [
    # Core
    "BucketFileSystem",
    "BucketInfo",
    "FileStats",
    "KeyCodec",
    "create_bucket_filesystem",
    # Configuration
    "CacheConfig",
    "Config",
    "FileSystemOptions",
    # Caching
    "CacheEntry",
    "MetadataCache",
    # Errors
    "BucketFSError",
    "ConfigError",
    "DeleteError",
    "DirectoryDeleteError",
    "ErrorKind",
    "ExistenceCheckError",
    "FileSystemOperationError",
    "ListError",
    "NotFoundError",
    "ReadError",
    "StatError",
    "WriteError",
    "classify_error",
    # Observability
    "StructuredLogger",
    "Timer",
    "configure_logging",
    "get_logger",
    "operation_scope",
    "register_metric_callback",
]
