"""Structured logging and observability utilities.

Every filesystem operation runs inside an operation scope that tags log
records and metrics with the bucket, namespace prefix, operation name and
a correlation id. Records are rendered as one JSON object per line.
"""

import json
import logging
import sys
import time
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Callable

PACKAGE_LOGGER = "bucketfs"

# Context variables for operation-scoped data
request_id_var: ContextVar[str | None] = ContextVar("request_id", default=None)
bucket_var: ContextVar[str | None] = ContextVar("bucket", default=None)
prefix_var: ContextVar[str | None] = ContextVar("prefix", default=None)
operation_var: ContextVar[str | None] = ContextVar("operation", default=None)

_SCOPE_VARS = {
    "request_id": request_id_var,
    "bucket": bucket_var,
    "prefix": prefix_var,
    "operation": operation_var,
}


def current_context() -> dict[str, str]:
    """Get the non-empty scope values of the running operation."""
    return {name: value for name, var in _SCOPE_VARS.items() if (value := var.get())}


class StructuredFormatter(logging.Formatter):
    """Formats log records as single-line JSON."""

    def format(self, record: logging.LogRecord) -> str:
        data: dict[str, Any] = {
            "level": record.levelname,
            "message": record.getMessage(),
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "logger": record.name,
        }

        context = current_context()
        if isinstance(getattr(record, "context", None), dict):
            context.update(record.context)
        if context:
            data["context"] = context

        if record.exc_info and record.exc_info[1] is not None:
            data["error"] = {
                "type": type(record.exc_info[1]).__name__,
                "message": str(record.exc_info[1]),
            }

        duration_ms = getattr(record, "duration_ms", None)
        if duration_ms is not None:
            data["duration_ms"] = round(duration_ms, 3)

        return json.dumps(data, default=str)


class StructuredLogger:
    """Thin wrapper around a stdlib logger that attaches context and timings.

    Example:
        logger = StructuredLogger("bucketfs.filesystem")
        logger.debug("Directory listed", context={"entries": 3}, duration_ms=4.2)
        logger.warning("Failed to read file docs/a.txt", error=exc)
    """

    def __init__(self, name: str, level: str | None = None) -> None:
        self.logger = logging.getLogger(name)
        if level is not None:
            self.logger.setLevel(level.upper())

    def _log(
        self,
        level: int,
        message: str,
        context: dict[str, Any] | None = None,
        error: BaseException | None = None,
        duration_ms: float | None = None,
    ) -> None:
        if not self.logger.isEnabledFor(level):
            return

        extra: dict[str, Any] = {}
        if context:
            extra["context"] = context
        if duration_ms is not None:
            extra["duration_ms"] = duration_ms

        exc_info = (type(error), error, error.__traceback__) if error else None
        self.logger.log(level, message, exc_info=exc_info, extra=extra)

    def debug(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        duration_ms: float | None = None,
    ) -> None:
        self._log(logging.DEBUG, message, context, duration_ms=duration_ms)

    def info(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        duration_ms: float | None = None,
    ) -> None:
        self._log(logging.INFO, message, context, duration_ms=duration_ms)

    def warning(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        error: BaseException | None = None,
    ) -> None:
        self._log(logging.WARNING, message, context, error)


@contextmanager
def operation_scope(
    bucket: str | None = None,
    prefix: str | None = None,
    operation: str | None = None,
    request_id: str | None = None,
) -> Iterator[str]:
    """Tag everything logged or emitted in the block with operation data.

    Nested scopes keep the outer correlation id unless one is given.

    Yields:
        The correlation id of the scope
    """
    request_id = request_id or request_id_var.get() or uuid.uuid4().hex
    values = {"request_id": request_id, "bucket": bucket, "prefix": prefix, "operation": operation}
    tokens = [(_SCOPE_VARS[name], _SCOPE_VARS[name].set(value)) for name, value in values.items() if value]
    try:
        yield request_id
    finally:
        for var, token in reversed(tokens):
            var.reset(token)


class Timer:
    """Context manager measuring wall time in milliseconds.

    ``duration_ms`` can be read inside the block to get the time so far.
    """

    def __init__(self) -> None:
        self.start_time: float = 0
        self.end_time: float = 0

    @property
    def duration_ms(self) -> float:
        end = self.end_time or time.perf_counter()
        return (end - self.start_time) * 1000

    def __enter__(self) -> "Timer":
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, *args: Any) -> None:
        self.end_time = time.perf_counter()


# Metric collection hook: (name, value, labels)
MetricCallback = Callable[[str, float, dict[str, Any]], None]

_metric_callbacks: list[MetricCallback] = []


def register_metric_callback(callback: MetricCallback) -> None:
    """Register a callback to receive metric events.

    Metric names are ``bucketfs.<operation>.duration``,
    ``bucketfs.<operation>.failed`` and ``bucketfs.cache.hit``/``miss``.
    """
    _metric_callbacks.append(callback)


def clear_metric_callbacks() -> None:
    """Remove all registered metric callbacks."""
    _metric_callbacks.clear()


def emit_metric(name: str, value: float, labels: dict[str, Any] | None = None) -> None:
    """Emit a metric to all registered callbacks.

    The current bucket is added as a label. A failing callback is logged
    and does not stop the others.
    """
    labels = dict(labels or {})
    bucket = bucket_var.get()
    if bucket:
        labels.setdefault("bucket", bucket)

    for callback in _metric_callbacks:
        try:
            callback(name, value, labels)
        except Exception:
            logging.getLogger(__name__).debug("Metric callback failed for %s", name, exc_info=True)


def emit_counter(name: str, labels: dict[str, Any] | None = None) -> None:
    """Emit a counter metric (increment by 1)."""
    emit_metric(name, 1.0, labels)


def emit_timer(name: str, duration_ms: float, labels: dict[str, Any] | None = None) -> None:
    """Emit a timer metric."""
    emit_metric(name, duration_ms, labels)


def configure_logging(level: str = "INFO", format: str = "json") -> None:
    """Attach a stdout handler to the package logger.

    Args:
        level: Minimum log level name
        format: "json" for structured records, anything else for plain text
    """
    package_logger = logging.getLogger(PACKAGE_LOGGER)
    package_logger.setLevel(level.upper())
    package_logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    if format == "json":
        handler.setFormatter(StructuredFormatter())
    else:
        handler.setFormatter(logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        ))
    package_logger.addHandler(handler)


def get_logger(name: str) -> StructuredLogger:
    """Get a structured logger for a module."""
    return StructuredLogger(name)
