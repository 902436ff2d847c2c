"""Tests for content type lookup."""

from bucketfs.content_types import DEFAULT_CONTENT_TYPE, content_type_for


def test_known_extensions():
    """Known extensions map to their MIME types, case-insensitively."""
    assert content_type_for("config.json") == "application/json"
    assert content_type_for("docs/README.MD") == "text/markdown"
    assert content_type_for("img/photo.JPEG") == "image/jpeg"


def test_unknown_extension_defaults():
    """Unknown extensions fall back to octet-stream."""
    assert content_type_for("archive.xyz") == DEFAULT_CONTENT_TYPE


def test_no_extension_defaults():
    """Names without a dot, even under dotted directories, fall back."""
    assert content_type_for("Makefile") == DEFAULT_CONTENT_TYPE
    assert content_type_for("v1.2/LICENSE") == DEFAULT_CONTENT_TYPE
