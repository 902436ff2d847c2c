"""bucketfs exceptions."""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from bucketfs.classifier import ErrorKind


class BucketFSError(Exception):
    """Base exception for bucketfs."""

    pass


class ConfigError(BucketFSError):
    """Configuration error."""

    pass


class FileSystemOperationError(BucketFSError):
    """A filesystem operation failed against the object store.

    Carries the logical path the caller asked about, the underlying
    store exception and its classification.
    """

    action = "access"

    def __init__(
        self,
        path: str,
        cause: BaseException | None = None,
        kind: "ErrorKind | None" = None,
    ) -> None:
        self.path = path
        self.cause = cause
        self.kind = kind
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        if self.cause is None:
            return f"Failed to {self.action} {self.path}"
        return f"Failed to {self.action} {self.path}: {self.cause}"


class NotFoundError(FileSystemOperationError):
    """File not found."""

    def _format_message(self) -> str:
        return f"File not found: {self.path}"


class ReadError(FileSystemOperationError):
    """Failed to read a file."""

    action = "read file"


class WriteError(FileSystemOperationError):
    """Failed to write a file."""

    action = "write file"


class ExistenceCheckError(FileSystemOperationError):
    """Failed to check whether a file exists."""

    action = "check file existence for"


class DeleteError(FileSystemOperationError):
    """Failed to delete a file."""

    action = "delete file"


class ListError(FileSystemOperationError):
    """Failed to list a directory."""

    action = "read directory"


class DirectoryDeleteError(FileSystemOperationError):
    """Failed to delete a directory, or some of its objects."""

    action = "delete directory"

    def __init__(
        self,
        path: str,
        cause: BaseException | None = None,
        kind: "ErrorKind | None" = None,
        failed_keys: list[str] | None = None,
    ) -> None:
        self.failed_keys = failed_keys or []
        super().__init__(path, cause, kind)

    def _format_message(self) -> str:
        message = super()._format_message()
        if self.failed_keys:
            message += f" ({len(self.failed_keys)} objects not deleted)"
        return message


class StatError(FileSystemOperationError):
    """Failed to get file statistics."""

    action = "get file stats for"
