"""Process-lifetime caches for loaded TTS models.

Loading a model is the expensive part of synthesis, so backends keep loaded
models keyed by a model identity string (e.g. "variant:device"). Two
disciplines exist because the engines differ in thread safety:

- SharedModelCache: one map for the whole process, guarded by a lock. Use for
  models that may be called from any thread.
- ThreadConfinedModelCache: one map per thread. Use for runtimes that must
  never be touched from a thread other than the one that created them.
"""

import logging
import threading
from collections.abc import Callable
from typing import Any

logger = logging.getLogger(__name__)


class SharedModelCache:
    """Lock-guarded model map shared by all threads."""

    def __init__(self) -> None:
        self._models: dict[str, Any] = {}
        self._lock = threading.Lock()

    def get_or_load(self, key: str, loader: Callable[[], Any]) -> Any:
        """Return the cached model for key, loading it under the lock on a miss.

        Holding the lock while loading means concurrent callers wait for a
        single load instead of loading the same model twice.
        """
        with self._lock:
            if key not in self._models:
                logger.debug(f"Loading model '{key}' into shared cache")
                self._models[key] = loader()
            return self._models[key]

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._models

    def clear(self) -> None:
        with self._lock:
            self._models.clear()


class ThreadConfinedModelCache:
    """Model map private to each thread; models never cross threads."""

    def __init__(self) -> None:
        self._local = threading.local()

    def _models(self) -> dict[str, Any]:
        models = getattr(self._local, "models", None)
        if models is None:
            models = self._local.models = {}
        return models

    def get_or_load(self, key: str, loader: Callable[[], Any]) -> Any:
        """Return this thread's model for key, loading it on a miss."""
        models = self._models()
        if key not in models:
            logger.debug(
                f"Loading model '{key}' for thread {threading.current_thread().name}"
            )
            models[key] = loader()
        return models[key]

    def __contains__(self, key: str) -> bool:
        return key in self._models()

    def clear(self) -> None:
        """Clear the calling thread's models."""
        self._models().clear()
