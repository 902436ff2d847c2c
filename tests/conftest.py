"""Pytest configuration and fixtures."""

import pytest

from bucketfs.backends.objects.memory import MemoryObjectStore
from bucketfs.config import FileSystemOptions
from bucketfs.filesystem import BucketFileSystem
from bucketfs.observability import clear_metric_callbacks


@pytest.fixture(autouse=True)
def reset_metric_callbacks():
    """Keep metric callbacks from leaking between tests."""
    yield
    clear_metric_callbacks()


@pytest.fixture
def sample_options_dict():
    """Sample filesystem options for testing."""
    return {
        "account_id": "test-account",
        "access_key_id": "test-access-key",
        "secret_access_key": "test-secret-key",
        "bucket": "test-bucket",
        "prefix": "test-prefix",
    }


@pytest.fixture
def sample_options(sample_options_dict):
    """Validated filesystem options."""
    return FileSystemOptions.model_validate(sample_options_dict)


@pytest.fixture
def memory_store():
    """Create a memory object store."""
    return MemoryObjectStore()


@pytest.fixture
def fs(sample_options, memory_store):
    """Create a filesystem backed by the memory store."""
    return BucketFileSystem(sample_options, store=memory_store)
