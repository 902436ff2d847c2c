"""Object metadata cache.

Remembers the last observed size, modification time and ETag of each
key so that existence checks and stats can be answered without a round
trip to the store. Entries never expire by time: the cache lives as long
as the filesystem instance that owns it, and entries are refreshed on
every observation and dropped on delete.
"""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class CacheEntry:
    """Last known metadata for a store key."""

    size: int
    last_modified: datetime
    etag: str = ""


class MetadataCache:
    """In-memory mapping from store key to CacheEntry.

    Unbounded by default. With ``max_entries`` set, inserting a new key
    at capacity evicts the oldest tenth of the entries.

    Example:
        cache = MetadataCache()
        cache.put("docs/a.txt", CacheEntry(size=3, last_modified=now))
        entry = cache.get("docs/a.txt")
    """

    def __init__(self, max_entries: int | None = None) -> None:
        """Initialize cache.

        Args:
            max_entries: Optional bound on the number of entries
        """
        if max_entries is not None and max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self.max_entries = max_entries
        # dicts keep insertion order, so the first keys are the oldest
        self._entries: dict[str, CacheEntry] = {}

    def get(self, key: str) -> CacheEntry | None:
        """Get the entry for a key, or None."""
        return self._entries.get(key)

    def put(self, key: str, entry: CacheEntry) -> None:
        """Insert or overwrite the entry for a key."""
        if key in self._entries:
            # Re-insert so a refreshed key counts as newest
            del self._entries[key]
        elif self.max_entries is not None and len(self._entries) >= self.max_entries:
            self._evict_oldest()
        self._entries[key] = entry

    def remove(self, key: str) -> None:
        """Drop the entry for a key, if any."""
        self._entries.pop(key, None)

    def clear(self) -> None:
        """Clear all entries."""
        self._entries.clear()

    def _evict_oldest(self) -> None:
        evict_count = max(1, len(self._entries) // 10)
        for key in list(self._entries)[:evict_count]:
            del self._entries[key]

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def size(self) -> int:
        """Get current cache size."""
        return len(self._entries)
