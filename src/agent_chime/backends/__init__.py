"""Backend abstraction for text-to-speech engines.

This module provides a registry pattern for managing TTS backends,
allowing runtime selection of different synthesis engines by name.
"""

from typing import ClassVar

from ..errors import BackendDisabled, UnknownBackend
from .base import TTSBackend
from .kokoro import KokoroBackend
from .pocket import PocketTTSBackend
from .qwen3 import Qwen3TTSBackend
from .system import SystemTTSBackend

__all__ = ["BackendRegistry", "TTSBackend"]


class BackendRegistry:
    """Registry for managing TTS backends.

    Each registered backend class advertises its own availability. The
    result of that check is resolved once per process and reused, so
    selection is a dictionary lookup rather than a per-call probe.
    """

    _backends: ClassVar[dict[str, type[TTSBackend]]] = {}
    _availability: ClassVar[dict[str, bool]] = {}

    @classmethod
    def register(cls, backend_class: type[TTSBackend]) -> None:
        """Register a TTS backend under its ``name``.

        Args:
            backend_class: Backend class that implements TTSBackend
        """
        cls._backends[backend_class.name] = backend_class
        cls._availability.pop(backend_class.name, None)

    @classmethod
    def get(cls, name: str) -> type[TTSBackend]:
        """Get a backend class by name.

        Raises:
            UnknownBackend: If backend name not found
        """
        if name not in cls._backends:
            available = ", ".join(cls._backends) if cls._backends else "none"
            raise UnknownBackend(
                f"Unknown backend '{name}'. Registered backends: {available}", name
            )
        return cls._backends[name]

    @classmethod
    def is_available(cls, name: str) -> bool:
        """Return whether a registered backend can run here (cached)."""
        backend_class = cls.get(name)
        if name not in cls._availability:
            cls._availability[name] = backend_class.is_available()
        return cls._availability[name]

    @classmethod
    def select(cls, name: str) -> TTSBackend:
        """Construct the backend registered under name.

        Raises:
            UnknownBackend: If no backend is registered under name
            BackendDisabled: If the backend's engine is not installed
        """
        backend_class = cls.get(name)
        if not cls.is_available(name):
            raise BackendDisabled(
                f"{name} backend not enabled; its engine is not installed",
                name,
            )
        return backend_class()

    @classmethod
    def names(cls) -> list[str]:
        return list(cls._backends)


# Register backends
BackendRegistry.register(PocketTTSBackend)
BackendRegistry.register(Qwen3TTSBackend)
BackendRegistry.register(KokoroBackend)
BackendRegistry.register(SystemTTSBackend)
