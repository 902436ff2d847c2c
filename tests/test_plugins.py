"""Tests for object store backend discovery."""

import pytest

from bucketfs.backends.objects.local import LocalObjectStore
from bucketfs.backends.objects.memory import MemoryObjectStore
from bucketfs.backends.objects.s3 import S3ObjectStore
from bucketfs.plugins import create_object_store, discover_backends, get_backend


class TestPlugins:
    """Tests for backend discovery."""

    def test_builtin_backends_available(self):
        """The shipped backends are always discoverable."""
        backends = discover_backends()
        assert {"local", "memory", "s3"} <= set(backends)

    def test_get_backend(self):
        """Backends resolve to their classes."""
        assert get_backend("memory") is MemoryObjectStore
        assert get_backend("local") is LocalObjectStore
        assert get_backend("s3") is S3ObjectStore

    def test_unknown_backend(self):
        """Unknown names list the available backends."""
        with pytest.raises(ValueError, match="Available: .*memory"):
            get_backend("gcs")

    def test_create_object_store_passes_kwargs(self, tmp_path):
        """Backend settings are passed through; unknown ones are ignored."""
        store = create_object_store("local", path=str(tmp_path), endpoint="ignored")
        assert isinstance(store, LocalObjectStore)
        assert store.base_path == tmp_path
