"""Content-addressed audio cache for agent-chime."""

from .models import CacheEntry
from .store import AudioCache

__all__ = ["AudioCache", "CacheEntry"]
