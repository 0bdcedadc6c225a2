"""Data models for cache storage."""

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class CacheEntry:
    """A resident cache file as seen by eviction.

    Attributes:
        key: Hex digest the file is named after
        path: Path to the cached audio file
        size: File size in bytes
        touched_ns: Last-touched time (mtime, nanoseconds); reads refresh it
    """

    key: str
    path: Path
    size: int
    touched_ns: int

    @property
    def sort_key(self) -> tuple[int, str]:
        """Oldest first; ties broken by key so eviction order is stable."""
        return (self.touched_ns, self.key)
