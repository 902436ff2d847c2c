"""Object store backend discovery via Python entry points."""

from importlib import import_module
from importlib.metadata import entry_points
from typing import Any

from bucketfs.protocols import ObjectStore

BACKEND_GROUP = "bucketfs.backends.objects"

# Shipped backends, available even when the package metadata is not installed
BUILTIN_BACKENDS = {
    "local": "bucketfs.backends.objects.local:LocalObjectStore",
    "memory": "bucketfs.backends.objects.memory:MemoryObjectStore",
    "s3": "bucketfs.backends.objects.s3:S3ObjectStore",
}


def _load(target: str) -> Any:
    module_name, _, attr = target.partition(":")
    return getattr(import_module(module_name), attr)


def discover_backends() -> dict[str, Any]:
    """Discover all registered object store backends.

    Returns:
        Dictionary mapping backend names to loaders. Entry points override
        builtin backends of the same name.
    """
    backends: dict[str, Any] = {
        name: (lambda target=target: _load(target))
        for name, target in BUILTIN_BACKENDS.items()
    }
    for ep in entry_points(group=BACKEND_GROUP):
        backends[ep.name] = ep.load
    return backends


def get_backend(name: str) -> Any:
    """Get a specific backend class by name.

    Args:
        name: The backend name (e.g., "s3", "memory", "local")

    Returns:
        The backend class

    Raises:
        ValueError: If the backend is not found
    """
    backends = discover_backends()
    if name not in backends:
        available = ", ".join(sorted(backends.keys())) or "(none)"
        raise ValueError(f"Backend '{name}' not found. Available: {available}")
    return backends[name]()


def create_object_store(backend: str, **kwargs: Any) -> ObjectStore:
    """Create an ObjectStore instance.

    Args:
        backend: The backend name (e.g., "s3", "memory", "local")
        **kwargs: Backend-specific configuration

    Returns:
        An ObjectStore implementation
    """
    cls = get_backend(backend)
    return cls(**kwargs)
