"""Filesystem interface over an object storage bucket.

Directories do not exist in the store: they are simulated with key
prefixes, listed one level at a time with a ``/`` delimiter and deleted
by enumerating every key under the prefix. A per-instance metadata cache
answers ``exists`` and ``stat`` without a round trip when the key has
been observed before.
"""

import inspect
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from bucketfs.caching import CacheEntry, MetadataCache
from bucketfs.classifier import ErrorKind, classify_error
from bucketfs.config import Config, FileSystemOptions
from bucketfs.content_types import content_type_for
from bucketfs.exceptions import (
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
from bucketfs.keys import KeyCodec
from bucketfs.observability import (
    Timer,
    configure_logging,
    emit_counter,
    emit_timer,
    get_logger,
    operation_scope,
    operation_var,
)
from bucketfs.plugins import create_object_store
from bucketfs.protocols import KeyDeleteError, ObjectMetadata, ObjectStore

logger = get_logger(__name__)

# S3 DeleteObjects accepts at most this many keys per request
BATCH_DELETE_LIMIT = 1000

DEFAULT_FILE_MODE = 0o644


@dataclass(frozen=True)
class FileStats:
    """Statistics for a stored object. Only objects have statistics."""

    size: int
    modified_time: datetime
    created_time: datetime
    access_time: datetime
    mode: int = DEFAULT_FILE_MODE
    etag: str = ""
    is_file: bool = True
    is_directory: bool = False
    is_symlink: bool = False

    @classmethod
    def from_entry(cls, entry: CacheEntry) -> "FileStats":
        """Synthesize stats from cached metadata.

        The store keeps a single timestamp, used for all three times.
        """
        return cls(
            size=entry.size,
            modified_time=entry.last_modified,
            created_time=entry.last_modified,
            access_time=entry.last_modified,
            etag=entry.etag,
        )


@dataclass(frozen=True)
class BucketInfo:
    """Bucket and namespace configuration of a filesystem instance."""

    bucket: str
    prefix: str
    region: str
    account_id: str
    endpoint: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return asdict(self)


class BucketFileSystem:
    """Async filesystem operations against an S3-compatible bucket.

    Example:
        fs = BucketFileSystem(FileSystemOptions(
            account_id="your-account-id",
            access_key_id="your-access-key",
            secret_access_key="your-secret-key",
            bucket="my-bucket",
            prefix="app",
        ))

        await fs.write_file("config.json", json.dumps(config))
        data = await fs.read_file("config.json")
        entries = await fs.read_dir("/")  # ["config.json"]
    """

    def __init__(
        self,
        options: FileSystemOptions,
        store: ObjectStore | None = None,
    ) -> None:
        """Initialize the filesystem.

        Args:
            options: Connection and namespace settings
            store: Object store to use. Created from ``options.backend`` if None.

        Raises:
            ConfigError: If identity, credentials or bucket are missing
        """
        options.validate_required()

        self.options = options
        self.codec = KeyCodec(options.prefix)
        self.cache = MetadataCache(max_entries=options.cache.max_entries)
        self.store = store if store is not None else self._create_store()

    @classmethod
    def from_config(cls, path: str | Path) -> "BucketFileSystem":
        """Create a filesystem from a YAML or JSON configuration file.

        Also applies the file's logging settings.
        """
        config = Config.from_file(path)
        configure_logging(config.logging.level, config.logging.format)
        return cls(config.filesystem)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "BucketFileSystem":
        """Create a filesystem from a configuration dictionary."""
        config = Config.from_dict(data)
        return cls(config.filesystem)

    def _create_store(self) -> ObjectStore:
        options = self.options
        kwargs: dict[str, Any] = {
            "endpoint": options.resolved_endpoint(),
            "access_key_id": options.access_key_id,
            "secret_access_key": options.secret_access_key,
            "region": options.region,
            "request_timeout_seconds": options.request_timeout_seconds,
            "max_attempts": options.max_attempts,
        }
        kwargs.update(options.backend_options)
        return create_object_store(options.backend, **kwargs)

    @property
    def bucket(self) -> str:
        """Bucket name."""
        return self.options.bucket

    @property
    def prefix(self) -> str:
        """Namespace prefix, without surrounding slashes."""
        return self.codec.prefix

    @contextmanager
    def _operation(self, name: str) -> Iterator[Timer]:
        with operation_scope(bucket=self.bucket, prefix=self.prefix, operation=name):
            with Timer() as timer:
                yield timer
            emit_timer(f"bucketfs.{name}.duration", timer.duration_ms)

    def _failure(
        self,
        error_cls: type[FileSystemOperationError],
        path: str,
        error: BaseException,
        **kwargs: Any,
    ) -> FileSystemOperationError:
        """Classify a store error and wrap it in an operation failure."""
        kind = classify_error(error)
        failure = error_cls(path, error, kind, **kwargs)
        logger.warning(
            str(failure),
            context={"path": path, "kind": kind.value},
            error=error,
        )
        emit_counter(f"bucketfs.{operation_var.get()}.failed", {"kind": kind.value})
        return failure

    def _remember(self, key: str, metadata: ObjectMetadata) -> None:
        """Cache observed metadata when the store reported size and time."""
        if metadata.size is None or metadata.last_modified is None:
            return
        self.cache.put(key, CacheEntry(
            size=metadata.size,
            last_modified=metadata.last_modified,
            etag=metadata.etag,
        ))

    def _cached(self, key: str) -> CacheEntry | None:
        """Look up a key unless the cache is configured to be revalidated."""
        if self.options.cache.revalidate:
            return None
        entry = self.cache.get(key)
        emit_counter("bucketfs.cache.hit" if entry else "bucketfs.cache.miss")
        return entry

    async def read_bytes(self, path: str) -> bytes:
        """Read the raw content of a file.

        Always fetches from the store; the cache is only refreshed.

        Raises:
            NotFoundError: If no object exists at the path
            ReadError: On any other store failure
        """
        key = self.codec.encode(path)
        with self._operation("read") as timer:
            try:
                content, metadata = await self.store.get(self.bucket, key)
            except Exception as e:
                if classify_error(e) is ErrorKind.NOT_FOUND:
                    raise NotFoundError(path, e, ErrorKind.NOT_FOUND) from e
                raise self._failure(ReadError, path, e) from e

            self._remember(key, metadata)
            logger.debug(
                "File read",
                context={"path": path, "size": len(content)},
                duration_ms=timer.duration_ms,
            )
            return content

    async def read_file(self, path: str) -> str:
        """Read a file as UTF-8 text.

        Invalid byte sequences are replaced with U+FFFD.
        """
        content = await self.read_bytes(path)
        return content.decode("utf-8", errors="replace")

    async def write_file(self, path: str, content: str | bytes) -> None:
        """Write a file, replacing any existing object at the path.

        Text is stored as UTF-8. The content type is inferred from the
        file extension.

        Raises:
            WriteError: On any store failure
        """
        key = self.codec.encode(path)
        data = content.encode("utf-8") if isinstance(content, str) else bytes(content)

        with self._operation("write") as timer:
            try:
                metadata = await self.store.put(
                    self.bucket, key, data, content_type_for(path)
                )
            except Exception as e:
                raise self._failure(WriteError, path, e) from e

            self.cache.put(key, CacheEntry(
                size=len(data),
                last_modified=datetime.now(timezone.utc),
                etag=metadata.etag,
            ))
            logger.debug(
                "File written",
                context={"path": path, "size": len(data)},
                duration_ms=timer.duration_ms,
            )

    async def exists(self, path: str) -> bool:
        """Check if a file exists.

        A cached key answers True without asking the store, even if the
        object was since removed by another client. Set
        ``cache.revalidate`` to always ask.

        Raises:
            ExistenceCheckError: On a store failure other than not-found
        """
        key = self.codec.encode(path)
        with self._operation("exists"):
            if self._cached(key) is not None:
                return True

            try:
                metadata = await self.store.head(self.bucket, key)
            except Exception as e:
                if classify_error(e) is ErrorKind.NOT_FOUND:
                    self.cache.remove(key)
                    return False
                raise self._failure(ExistenceCheckError, path, e) from e

            self._remember(key, metadata)
            return True

    async def delete_file(self, path: str) -> None:
        """Delete a file. Deleting a missing file succeeds.

        Raises:
            DeleteError: On a store failure other than not-found
        """
        key = self.codec.encode(path)
        with self._operation("delete"):
            try:
                await self.store.delete(self.bucket, key)
            except Exception as e:
                if classify_error(e) is not ErrorKind.NOT_FOUND:
                    raise self._failure(DeleteError, path, e) from e
            finally:
                self.cache.remove(key)

            logger.debug("File deleted", context={"path": path})

    async def read_dir(self, path: str) -> list[str]:
        """List the direct children of a directory.

        Files are returned by name, subdirectories with a trailing ``/``.
        A missing directory and an empty one both list as ``[]``. An
        object whose key is exactly the directory prefix is not listed.

        Raises:
            ListError: On any store failure
        """
        prefix = self.codec.directory_prefix(path)
        with self._operation("read_dir") as timer:
            try:
                listing = await self.store.list(self.bucket, prefix, delimiter="/")
            except Exception as e:
                raise self._failure(ListError, path, e) from e

            entries: list[str] = []

            for obj in listing.objects:
                if obj.key == prefix or not obj.key.startswith(prefix):
                    continue
                name = obj.key[len(prefix):]
                # The delimiter should already keep deeper keys out
                if name and "/" not in name:
                    entries.append(name)
                    self._remember(obj.key, obj)

            for common_prefix in listing.common_prefixes:
                if not common_prefix.startswith(prefix):
                    continue
                name = common_prefix[len(prefix):]
                if name.endswith("/"):
                    name = name[:-1]
                if name:
                    entries.append(f"{name}/")

            entries.sort()
            logger.debug(
                "Directory listed",
                context={"path": path, "entries": len(entries)},
                duration_ms=timer.duration_ms,
            )
            return entries

    async def delete_dir(self, path: str) -> None:
        """Delete every object under a directory, at any depth.

        Deleting a missing or empty directory succeeds. Keys are deleted
        in batches; every key the store reports as not deleted is
        collected and raised together.

        Raises:
            DirectoryDeleteError: If listing or a batch call fails, or
                the store refused to delete some keys
        """
        prefix = self.codec.directory_prefix(path)
        with self._operation("delete_dir") as timer:
            try:
                listing = await self.store.list(self.bucket, prefix)
            except Exception as e:
                raise self._failure(DirectoryDeleteError, path, e) from e

            keys = [obj.key for obj in listing.objects if obj.key]
            if not keys:
                return

            failed: list[KeyDeleteError] = []
            for start in range(0, len(keys), BATCH_DELETE_LIMIT):
                batch = keys[start:start + BATCH_DELETE_LIMIT]
                try:
                    result = await self.store.batch_delete(self.bucket, batch)
                except Exception as e:
                    raise self._failure(DirectoryDeleteError, path, e) from e
                finally:
                    for key in batch:
                        self.cache.remove(key)
                failed.extend(result.errors)

            if failed:
                failure = DirectoryDeleteError(
                    path,
                    kind=ErrorKind.OTHER,
                    failed_keys=[self.codec.decode(error.key) for error in failed],
                )
                logger.warning(
                    str(failure),
                    context={
                        "path": path,
                        "failed": [f"{error.key}: {error.code}" for error in failed[:10]],
                    },
                )
                emit_counter("bucketfs.delete_dir.failed", {"kind": ErrorKind.OTHER.value})
                raise failure

            logger.info(
                "Directory deleted",
                context={"path": path, "objects": len(keys)},
                duration_ms=timer.duration_ms,
            )

    async def stat(self, path: str) -> FileStats:
        """Get file statistics, from the cache when possible.

        Raises:
            NotFoundError: If no object exists at the path
            StatError: On any other store failure
        """
        key = self.codec.encode(path)
        with self._operation("stat"):
            cached = self._cached(key)
            if cached is not None:
                return FileStats.from_entry(cached)

            try:
                metadata = await self.store.head(self.bucket, key)
            except Exception as e:
                if classify_error(e) is ErrorKind.NOT_FOUND:
                    self.cache.remove(key)
                    raise NotFoundError(path, e, ErrorKind.NOT_FOUND) from e
                raise self._failure(StatError, path, e) from e

            entry = CacheEntry(
                size=metadata.size or 0,
                last_modified=metadata.last_modified or datetime.now(timezone.utc),
                etag=metadata.etag,
            )
            self.cache.put(key, entry)
            return FileStats.from_entry(entry)

    async def ensure_dir(self, path: str) -> None:
        """Ensure a directory exists.

        No-op: directories are implied by the keys under them.
        """
        return None

    async def set_permissions(self, path: str, mode: int) -> None:
        """Change file permissions.

        No-op: object stores have no POSIX permission model, so this
        never enforces access control.
        """
        return None

    chmod = set_permissions

    def get_bucket_info(self) -> BucketInfo:
        """Get bucket and namespace configuration. No network call."""
        return BucketInfo(
            bucket=self.options.bucket,
            prefix=self.prefix,
            region=self.options.region,
            account_id=self.options.account_id,
            endpoint=self.options.endpoint,
        )

    async def close(self) -> None:
        """Drop cached metadata and close the store, if it can be closed."""
        self.cache.clear()
        close = getattr(self.store, "close", None)
        if callable(close):
            result = close()
            if inspect.isawaitable(result):
                await result

    async def __aenter__(self) -> "BucketFileSystem":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()


def create_bucket_filesystem(
    options: FileSystemOptions | dict[str, Any],
    store: ObjectStore | None = None,
) -> BucketFileSystem:
    """Create a BucketFileSystem from options or a plain options dict."""
    if isinstance(options, dict):
        options = FileSystemOptions.model_validate(options)
    return BucketFileSystem(options, store=store)
