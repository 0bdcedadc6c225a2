"""Filesystem audio cache keyed by a digest of its inputs.

One file per entry, named ``<hex digest>.wav``, stored flat in the cache
directory. Recency is the file's mtime: writes set it and reads refresh it,
so eviction is least-recently-touched first.
"""

import hashlib
import logging
import os
import tempfile
from pathlib import Path

from ..errors import CacheWriteFailure
from .models import CacheEntry

logger = logging.getLogger(__name__)

AUDIO_SUFFIX = ".wav"


class AudioCache:
    """Size- and count-bounded store of synthesized audio.

    After every successful ``put`` the resident set satisfies
    ``total size <= max_size_bytes`` and ``entry count <= max_entries``.

    Example:
        cache = AudioCache(Path("~/.cache/agent-chime/audio"), 100 * 1024 * 1024, 1000)
        key = AudioCache.key("pocket-tts", "Ready.", params_json)
        audio = cache.get(key)
        if audio is None:
            audio = synthesize(...)
            cache.put(key, audio)
    """

    def __init__(self, cache_dir: Path, max_size_bytes: int, max_entries: int) -> None:
        self.cache_dir = cache_dir
        self.max_size_bytes = max_size_bytes
        self.max_entries = max_entries

    @staticmethod
    def key(backend: str, text: str, params_json: str) -> str:
        """Compute the content digest for a synthesis request.

        Each field is length-prefixed before hashing, so no choice of field
        contents can make two different triples produce the same byte stream.

        Returns:
            64-character SHA-256 hex digest
        """
        hasher = hashlib.sha256()
        for part in (backend, text, params_json):
            data = part.encode("utf-8")
            hasher.update(len(data).to_bytes(8, "big"))
            hasher.update(data)
        return hasher.hexdigest()

    def path_for_key(self, key: str) -> Path:
        return self.cache_dir / f"{key}{AUDIO_SUFFIX}"

    def get(self, key: str) -> bytes | None:
        """Return cached audio for key, or None on a miss.

        A hit refreshes the entry's mtime so it survives eviction longer.
        Never raises: any read failure is a miss.
        """
        path = self.path_for_key(key)
        try:
            data = path.read_bytes()
        except OSError:
            return None

        try:
            os.utime(path, None)
        except OSError as e:
            logger.debug(f"Failed to refresh cache entry {key}: {e}")

        logger.debug(f"Cache hit: {key}")
        return data

    def put(self, key: str, audio: bytes) -> bool:
        """Store audio under key, then evict down to both bounds.

        Empty payloads and payloads larger than the size budget are skipped.
        The file is written to a temporary name in the cache directory and
        renamed into place, so readers never see a partial entry.

        Returns:
            True if the entry was written, False if it was skipped

        Raises:
            CacheWriteFailure: If the directory or file cannot be written
        """
        if not audio:
            return False
        if len(audio) > self.max_size_bytes:
            logger.debug(
                f"Not caching {key}: {len(audio)} bytes exceeds budget {self.max_size_bytes}"
            )
            return False

        tmp_path: str | None = None
        try:
            self.cache_dir.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(
                dir=self.cache_dir, prefix=f".{key}.", suffix=".tmp"
            )
            with os.fdopen(fd, "wb") as f:
                f.write(audio)
            os.replace(tmp_path, self.path_for_key(key))
        except OSError as e:
            if tmp_path is not None:
                Path(tmp_path).unlink(missing_ok=True)
            raise CacheWriteFailure(f"Failed to write cache entry {key}: {e}", e) from e

        self.evict()
        return True

    def entries(self) -> list[CacheEntry]:
        """List resident entries, oldest first."""
        entries = []
        try:
            paths = list(self.cache_dir.iterdir())
        except OSError:
            return []

        for path in paths:
            if path.suffix != AUDIO_SUFFIX:
                continue
            try:
                stat = path.stat()
            except OSError:
                continue
            entries.append(
                CacheEntry(
                    key=path.stem,
                    path=path,
                    size=stat.st_size,
                    touched_ns=stat.st_mtime_ns,
                )
            )

        entries.sort(key=lambda entry: entry.sort_key)
        return entries

    def evict(self) -> int:
        """Remove least-recently-touched entries until both bounds hold.

        Removal failures are ignored; eviction is best-effort cleanup.

        Returns:
            Number of entries removed
        """
        entries = self.entries()
        current_size = sum(entry.size for entry in entries)
        current_count = len(entries)
        removed = 0

        for entry in entries:
            if current_size <= self.max_size_bytes and current_count <= self.max_entries:
                break
            try:
                entry.path.unlink()
                removed += 1
            except OSError as e:
                logger.debug(f"Failed to evict {entry.path}: {e}")
            current_size -= entry.size
            current_count -= 1

        if removed:
            logger.debug(f"Evicted {removed} cache entries")
        return removed
