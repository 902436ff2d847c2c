"""Tests for path/key translation."""

import pytest

from bucketfs.keys import KeyCodec


class TestEncode:
    """Tests for KeyCodec.encode."""

    def test_without_prefix(self) -> None:
        """Paths map to keys unchanged without a prefix."""
        codec = KeyCodec()
        assert codec.encode("docs/readme.md") == "docs/readme.md"

    def test_strips_one_leading_slash(self) -> None:
        """A single leading slash is removed."""
        codec = KeyCodec()
        assert codec.encode("/docs/readme.md") == "docs/readme.md"
        assert codec.encode("//docs") == "/docs"

    def test_with_prefix(self) -> None:
        """The prefix and a slash are prepended."""
        codec = KeyCodec("tenant-a")
        assert codec.encode("/docs/readme.md") == "tenant-a/docs/readme.md"
        assert codec.encode("readme.md") == "tenant-a/readme.md"

    def test_prefix_slashes_ignored(self) -> None:
        """Surrounding slashes in the prefix do not double up."""
        codec = KeyCodec("/tenant-a/")
        assert codec.prefix == "tenant-a"
        assert codec.encode("a.txt") == "tenant-a/a.txt"


class TestDecode:
    """Tests for KeyCodec.decode."""

    def test_removes_prefix(self) -> None:
        """The namespace is removed from keys inside it."""
        codec = KeyCodec("tenant-a")
        assert codec.decode("tenant-a/docs/readme.md") == "docs/readme.md"

    def test_keys_outside_namespace_unchanged(self) -> None:
        """Keys outside the namespace are returned as-is."""
        codec = KeyCodec("tenant-a")
        assert codec.decode("tenant-b/docs/readme.md") == "tenant-b/docs/readme.md"
        assert codec.decode("tenant-abc/file") == "tenant-abc/file"

    def test_without_prefix(self) -> None:
        """Decoding is the identity without a prefix."""
        assert KeyCodec().decode("a/b/c") == "a/b/c"

    @pytest.mark.parametrize("prefix", ["", "ns", "deep/ns"])
    @pytest.mark.parametrize("path", ["a.txt", "dir/sub/file.json", "dir/", "with space/ü.md"])
    def test_decode_inverts_encode(self, prefix: str, path: str) -> None:
        """decode(encode(p)) == p for paths without a leading slash."""
        codec = KeyCodec(prefix)
        assert codec.decode(codec.encode(path)) == path

    def test_leading_slash_normalized(self) -> None:
        """A leading slash does not survive the round trip."""
        codec = KeyCodec("ns")
        assert codec.decode(codec.encode("/a/b.txt")) == "a/b.txt"


class TestDirectoryPrefix:
    """Tests for KeyCodec.directory_prefix."""

    def test_appends_slash(self) -> None:
        """Directory paths get a trailing slash."""
        codec = KeyCodec("ns")
        assert codec.directory_prefix("docs") == "ns/docs/"
        assert codec.directory_prefix("/docs/") == "ns/docs/"

    def test_root_is_namespace(self) -> None:
        """The root maps to the bare namespace."""
        assert KeyCodec("ns").directory_prefix("") == "ns/"
        assert KeyCodec("ns").directory_prefix("/") == "ns/"
        assert KeyCodec().directory_prefix("") == ""
        assert KeyCodec().directory_prefix("/") == ""
