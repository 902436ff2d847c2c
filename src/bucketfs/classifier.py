"""Classification of object store failures.

Backends surface failures in their own vocabulary: the in-process
backends raise ``ObjectNotFoundError``, boto3 raises ``ClientError``
with an S3 error code and HTTP status, and the transport layer raises
connection and timeout errors. ``classify_error`` folds all of these
into the three kinds the filesystem layer acts on.
"""

from enum import Enum
from typing import Any

from botocore.exceptions import (
    ConnectionClosedError,
    ConnectTimeoutError,
    EndpointConnectionError,
    ReadTimeoutError,
)

from bucketfs.protocols.object_store import ObjectNotFoundError

NOT_FOUND_CODES = frozenset({"NoSuchKey", "NotFound", "404"})

TRANSIENT_CODES = frozenset({
    "InternalError",
    "RequestTimeout",
    "ServiceUnavailable",
    "SlowDown",
    "Throttling",
    "ThrottlingException",
})

TRANSIENT_STATUSES = frozenset({429, 500, 502, 503, 504})

TRANSIENT_EXCEPTIONS: tuple[type[BaseException], ...] = (
    ConnectionClosedError,
    ConnectTimeoutError,
    EndpointConnectionError,
    ReadTimeoutError,
    ConnectionError,
    TimeoutError,
)


class ErrorKind(str, Enum):
    """How the filesystem layer treats a store failure."""

    NOT_FOUND = "not_found"
    TRANSIENT = "transient"
    OTHER = "other"


def _error_response(error: BaseException) -> tuple[str | None, int | None]:
    """Extract (error code, HTTP status) from a botocore-style error."""
    response: Any = getattr(error, "response", None)
    if not isinstance(response, dict):
        return None, getattr(error, "status_code", None)

    code = response.get("Error", {}).get("Code")
    status = response.get("ResponseMetadata", {}).get("HTTPStatusCode")
    return (str(code) if code is not None else None), status


def classify_error(error: BaseException) -> ErrorKind:
    """Map a raw store failure to an ErrorKind."""
    if isinstance(error, ObjectNotFoundError):
        return ErrorKind.NOT_FOUND

    code, status = _error_response(error)
    if code in NOT_FOUND_CODES or status == 404:
        return ErrorKind.NOT_FOUND
    if code in TRANSIENT_CODES or status in TRANSIENT_STATUSES:
        return ErrorKind.TRANSIENT

    if isinstance(error, TRANSIENT_EXCEPTIONS):
        return ErrorKind.TRANSIENT

    return ErrorKind.OTHER


def is_not_found(error: BaseException) -> bool:
    """Check if an error means the key does not exist."""
    return classify_error(error) is ErrorKind.NOT_FOUND
