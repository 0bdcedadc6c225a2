"""Unit tests for backend registry functionality."""

import sys
from pathlib import Path
from unittest.mock import patch

import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent / "src"))

from agent_chime.backends import BackendRegistry, TTSBackend
from agent_chime.config import TTSConfig
from agent_chime.errors import BackendDisabled, BackendUnavailable, UnknownBackend


class MissingEngineBackend(TTSBackend):
    """Backend whose engine is never installed."""

    name = "missing-engine"
    probes = 0

    @classmethod
    def is_available(cls) -> bool:
        cls.probes += 1
        return False

    async def synthesize(self, text: str, params: TTSConfig) -> bytes:
        raise AssertionError("should never be constructed")


class TestBackendRegistry:
    """Test BackendRegistry functionality."""

    def test_builtin_backends_registered(self) -> None:
        """Test that every built-in backend is registered by name."""
        assert set(BackendRegistry.names()) >= {"pocket-tts", "qwen3-tts", "kokoro", "system"}

    def test_instruct_support_advertised(self) -> None:
        """Test that only qwen3-tts supports instruct text."""
        assert BackendRegistry.get("qwen3-tts").supports_instruct is True
        assert BackendRegistry.get("pocket-tts").supports_instruct is False

    def test_unknown_backend(self) -> None:
        """Test that unknown names list the registered backends."""
        with pytest.raises(UnknownBackend, match="Registered backends: .*pocket-tts") as exc:
            BackendRegistry.select("festival")
        assert exc.value.backend == "festival"
        assert isinstance(exc.value, BackendUnavailable)

    def test_select_constructs_available_backend(self, fake_backend) -> None:
        """Test that selecting an available backend returns an instance."""
        backend = BackendRegistry.select("fake")
        assert isinstance(backend, fake_backend)

    def test_disabled_backend(self, fake_backend) -> None:
        """Test that a registered but uninstalled backend is refused."""
        BackendRegistry.register(MissingEngineBackend)
        with pytest.raises(BackendDisabled, match="not enabled") as exc:
            BackendRegistry.select("missing-engine")
        assert exc.value.backend == "missing-engine"

    def test_availability_probed_once(self, fake_backend) -> None:
        """Test that availability is resolved once and then reused."""
        MissingEngineBackend.probes = 0
        BackendRegistry.register(MissingEngineBackend)

        assert BackendRegistry.is_available("missing-engine") is False
        assert BackendRegistry.is_available("missing-engine") is False
        assert MissingEngineBackend.probes == 1

    def test_register_resets_availability(self, fake_backend) -> None:
        """Test that re-registering a name drops its cached availability."""
        BackendRegistry.register(MissingEngineBackend)
        assert BackendRegistry.is_available("missing-engine") is False

        with patch.object(MissingEngineBackend, "is_available", return_value=True):
            BackendRegistry.register(MissingEngineBackend)
            assert BackendRegistry.is_available("missing-engine") is True
