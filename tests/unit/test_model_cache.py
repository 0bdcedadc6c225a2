"""Unit tests for process-lifetime model caches."""

import sys
import threading
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent / "src"))

from agent_chime.backends.model_cache import SharedModelCache, ThreadConfinedModelCache


def _in_thread(fn) -> object:
    result: list[object] = []
    thread = threading.Thread(target=lambda: result.append(fn()))
    thread.start()
    thread.join()
    return result[0]


class TestSharedModelCache:
    """Test the lock-guarded shared cache."""

    def test_loads_once(self) -> None:
        """Test that a key is loaded once and then reused."""
        cache = SharedModelCache()
        loads = []

        def loader() -> object:
            loads.append(1)
            return object()

        first = cache.get_or_load("m", loader)
        second = cache.get_or_load("m", loader)
        assert first is second
        assert len(loads) == 1
        assert "m" in cache

    def test_shared_across_threads(self) -> None:
        """Test that a model loaded on one thread is reused on another."""
        cache = SharedModelCache()
        model = cache.get_or_load("m", object)
        assert _in_thread(lambda: cache.get_or_load("m", object)) is model

    def test_concurrent_callers_load_once(self) -> None:
        """Test that racing threads trigger a single load."""
        cache = SharedModelCache()
        loads = []
        barrier = threading.Barrier(4)

        def loader() -> object:
            loads.append(1)
            return object()

        def worker() -> None:
            barrier.wait()
            cache.get_or_load("m", loader)

        threads = [threading.Thread(target=worker) for _ in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        assert len(loads) == 1

    def test_clear(self) -> None:
        """Test that clear forgets loaded models."""
        cache = SharedModelCache()
        cache.get_or_load("m", object)
        cache.clear()
        assert "m" not in cache


class TestThreadConfinedModelCache:
    """Test the per-thread cache."""

    def test_reused_on_same_thread(self) -> None:
        """Test that the owning thread gets its model back."""
        cache = ThreadConfinedModelCache()
        model = cache.get_or_load("m", object)
        assert cache.get_or_load("m", object) is model

    def test_not_shared_across_threads(self) -> None:
        """Test that another thread loads its own model."""
        cache = ThreadConfinedModelCache()
        model = cache.get_or_load("m", object)

        other = _in_thread(lambda: cache.get_or_load("m", object))
        assert other is not model
        assert _in_thread(lambda: "m" in cache) is False
        assert cache.get_or_load("m", object) is model
