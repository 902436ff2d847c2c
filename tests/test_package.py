"""Tests for package imports and public annotations."""

import importlib
import sys
import typing

import pytest

MODULES = [
    "bucketfs",
    "bucketfs.caching",
    "bucketfs.classifier",
    "bucketfs.config",
    "bucketfs.content_types",
    "bucketfs.exceptions",
    "bucketfs.filesystem",
    "bucketfs.keys",
    "bucketfs.observability",
    "bucketfs.plugins",
    "bucketfs.protocols",
    "bucketfs.protocols.object_store",
    "bucketfs.backends.objects.listing",
    "bucketfs.backends.objects.local",
    "bucketfs.backends.objects.memory",
    "bucketfs.backends.objects.s3",
]

STORE_CLASSES = [
    ("bucketfs.protocols.object_store", "ObjectStore"),
    ("bucketfs.backends.objects.local", "LocalObjectStore"),
    ("bucketfs.backends.objects.memory", "MemoryObjectStore"),
    ("bucketfs.backends.objects.s3", "S3ObjectStore"),
]


@pytest.mark.parametrize("name", MODULES)
def test_module_imports_from_scratch(name, monkeypatch):
    """Every module defines its classes cleanly on a fresh import."""
    for loaded in [m for m in sys.modules if m == "bucketfs" or m.startswith("bucketfs.")]:
        monkeypatch.delitem(sys.modules, loaded)

    importlib.import_module(name)


@pytest.mark.parametrize("module_name,class_name", STORE_CLASSES)
def test_store_annotations_resolve(module_name, class_name):
    """Store method annotations refer to real types, not sibling methods."""
    cls = getattr(importlib.import_module(module_name), class_name)

    hints = typing.get_type_hints(cls.batch_delete)

    assert typing.get_origin(hints["keys"]) is not None
    assert typing.get_args(hints["keys"]) == (str,)

