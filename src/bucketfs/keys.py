"""Translation between filesystem paths and object store keys."""


class KeyCodec:
    """Maps logical paths to store keys under an optional namespace prefix.

    Segment boundaries are exactly ``/`` characters. There is no escaping,
    so a segment containing ``/`` is indistinguishable from a nested path.

    Example:
        codec = KeyCodec("tenant-a")
        codec.encode("/docs/readme.md")    # "tenant-a/docs/readme.md"
        codec.decode("tenant-a/docs/readme.md")  # "docs/readme.md"
    """

    def __init__(self, prefix: str = "") -> None:
        """Initialize the codec.

        Args:
            prefix: Namespace prefix. Surrounding slashes are ignored.
        """
        self.prefix = prefix.strip("/")

    @property
    def namespace(self) -> str:
        """The prefix as it appears at the start of every key."""
        return f"{self.prefix}/" if self.prefix else ""

    def encode(self, path: str) -> str:
        """Get the store key for a path, with the prefix applied."""
        normalized = path[1:] if path.startswith("/") else path
        return f"{self.namespace}{normalized}"

    def decode(self, key: str) -> str:
        """Remove the prefix from a store key to get the logical path.

        Keys outside the namespace are returned unchanged.
        """
        namespace = self.namespace
        if namespace and key.startswith(namespace):
            return key[len(namespace):]
        return key

    def directory_prefix(self, path: str) -> str:
        """Get the key prefix that lists the contents of a directory path.

        The root ("" or "/") maps to the bare namespace.
        """
        normalized = path if path.endswith("/") else f"{path}/"
        return self.encode(normalized)
