"""Unit tests for TTS backends with their engines mocked out."""

import re
import sys
from dataclasses import replace
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import numpy as np
import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent / "src"))

from agent_chime.backends.base import resolve_device, to_wav_bytes
from agent_chime.backends.kokoro import KokoroBackend
from agent_chime.backends.model_cache import SharedModelCache, ThreadConfinedModelCache
from agent_chime.backends.pocket import PocketTTSBackend
from agent_chime.backends.qwen3 import Qwen3TTSBackend
from agent_chime.backends.system import SystemTTSBackend
from agent_chime.config import KokoroConfig, Qwen3TTSConfig, TTSConfig
from agent_chime.errors import ModelLoadFailure, SynthesisFailure


class TestBackendHelpers:
    """Test shared backend helpers."""

    def test_to_wav_bytes(self) -> None:
        """Test that a float array is encoded as a WAV container."""
        audio = to_wav_bytes(np.zeros(2400, dtype=np.float32), 24000)
        assert audio[:4] == b"RIFF"
        assert audio[8:12] == b"WAVE"

    def test_explicit_device_passthrough(self) -> None:
        """Test that explicit devices are not probed."""
        assert resolve_device("cpu") == "cpu"
        assert resolve_device("mps") == "mps"


class TestPocketTTSBackend:
    """Test the pocket-tts backend."""

    def _backend_with_model(self, model: MagicMock) -> PocketTTSBackend:
        cache = SharedModelCache()
        cache.get_or_load(PocketTTSBackend.model_key("b6369a24"), lambda: model)
        return PocketTTSBackend(model_cache=cache)

    @pytest.mark.asyncio
    async def test_synthesize_uses_cached_model(self) -> None:
        """Test synthesis with a preloaded model and a stock voice."""
        model = MagicMock()
        model.sample_rate = 24000
        model.generate_audio.return_value.numpy.return_value = np.zeros(
            240, dtype=np.float32
        )
        backend = self._backend_with_model(model)

        audio = await backend.synthesize("Ready.", TTSConfig())

        assert audio[:4] == b"RIFF"
        model.get_state_for_audio_prompt.assert_called_once_with(
            "hf://kyutai/pocket-tts-without-voice-cloning/embeddings/alba.safetensors"
        )
        model.generate_audio.assert_called_once_with(
            model.get_state_for_audio_prompt.return_value, "Ready."
        )

    @pytest.mark.asyncio
    async def test_empty_text_rejected(self) -> None:
        """Test that empty text fails before loading anything."""
        with pytest.raises(SynthesisFailure, match="Text cannot be empty"):
            await PocketTTSBackend(SharedModelCache()).synthesize("  ", TTSConfig())

    @pytest.mark.asyncio
    async def test_engine_error_wrapped(self) -> None:
        """Test that engine exceptions become SynthesisFailure."""
        model = MagicMock()
        model.generate_audio.side_effect = RuntimeError("boom")
        backend = self._backend_with_model(model)

        with pytest.raises(SynthesisFailure, match="pocket-tts synthesis failed: boom"):
            await backend.synthesize("Ready.", TTSConfig())

    def test_voice_prompt_local_file(self, tmp_path: Path) -> None:
        """Test that an existing local voice file is used as-is."""
        voice = tmp_path / "me.wav"
        voice.write_bytes(b"RIFF")
        assert PocketTTSBackend._voice_prompt(str(voice), False) == str(voice)

    def test_voice_prompt_offline(self) -> None:
        """Test that remote voices are refused when downloads are off."""
        with pytest.raises(SynthesisFailure, match="requires download"):
            PocketTTSBackend._voice_prompt("alba", False)
        with pytest.raises(SynthesisFailure, match="requires downloads"):
            PocketTTSBackend._voice_prompt("hf://x/y.safetensors", False)


class TestQwen3TTSBackend:
    """Test the qwen3-tts backend."""

    def _params(self, **overrides: object) -> TTSConfig:
        qwen = Qwen3TTSConfig(model="Qwen/Qwen3-TTS", device="cpu")
        return replace(TTSConfig(backend="qwen3-tts", qwen3_tts=qwen), **overrides)

    def _backend_with_model(self, model: MagicMock) -> Qwen3TTSBackend:
        cache = ThreadConfinedModelCache()
        cache.get_or_load(
            Qwen3TTSBackend.model_key("Qwen/Qwen3-TTS", None, "cpu"), lambda: model
        )
        return Qwen3TTSBackend(model_cache=cache)

    @pytest.mark.asyncio
    async def test_custom_voice_by_default(self) -> None:
        """Test that a stock speaker is used without instruct or ref audio."""
        model = MagicMock()
        model.generate_custom_voice.return_value = ([np.zeros(10, dtype=np.float32)], 24000)
        backend = self._backend_with_model(model)

        audio = await backend.synthesize("Ready.", self._params())

        assert audio[:4] == b"RIFF"
        model.generate_custom_voice.assert_called_once_with(
            text="Ready.", language="English", speaker="Ryan"
        )

    @pytest.mark.asyncio
    async def test_instruct_uses_voice_design(self) -> None:
        """Test that instruct text selects voice design mode."""
        model = MagicMock()
        model.generate_voice_design.return_value = ([np.zeros(10, dtype=np.float32)], 24000)
        backend = self._backend_with_model(model)

        await backend.synthesize("Ready.", self._params(instruct="Speak softly"))

        model.generate_voice_design.assert_called_once_with(
            text="Ready.", language="English", instruct="Speak softly"
        )
        model.generate_custom_voice.assert_not_called()

    @pytest.mark.asyncio
    async def test_model_required(self) -> None:
        """Test that a missing model setting fails to load."""
        with pytest.raises(ModelLoadFailure, match="requires tts.qwen3_tts.model"):
            await Qwen3TTSBackend(ThreadConfinedModelCache()).synthesize(
                "Ready.", TTSConfig(backend="qwen3-tts")
            )

    @pytest.mark.asyncio
    async def test_remote_model_refused_offline(self) -> None:
        """Test that hub models need downloads enabled."""
        with pytest.raises(ModelLoadFailure, match="must be a local path"):
            await Qwen3TTSBackend(ThreadConfinedModelCache()).synthesize(
                "Ready.", self._params(allow_downloads=False)
            )


class TestSystemTTSBackend:
    """Test the OS speech backend."""

    @pytest.mark.asyncio
    async def test_linux_uses_espeak(self) -> None:
        """Test that Linux synthesis shells out to espeak with a wav target."""

        async def fake_run(cmd: list[str]) -> None:
            Path(cmd[2]).write_bytes(b"RIFFespeak")

        with patch("agent_chime.backends.system.platform.system", return_value="Linux"):
            backend = SystemTTSBackend()
        with patch(
            "agent_chime.backends.system._run", new=AsyncMock(side_effect=fake_run)
        ) as mock_run:
            audio = await backend.synthesize("Ready.", TTSConfig(voice="en"))

        assert audio == b"RIFFespeak"
        cmd = mock_run.call_args.args[0]
        assert cmd[0] == "espeak"
        assert cmd[-3:] == ["-v", "en", "Ready."]

    @pytest.mark.asyncio
    async def test_windows_quotes_voice_and_text(self) -> None:
        """Test that quotes in the voice and text are escaped for PowerShell."""

        async def fake_run(cmd: list[str]) -> None:
            target = re.search(r"SetOutputToWaveFile\('(.+?)'\)", cmd[2]).group(1)
            Path(target).write_bytes(b"RIFFsapi")

        with patch("agent_chime.backends.system.platform.system", return_value="Windows"):
            backend = SystemTTSBackend()
        with patch(
            "agent_chime.backends.system._run", new=AsyncMock(side_effect=fake_run)
        ) as mock_run:
            audio = await backend.synthesize(
                "It's done.", TTSConfig(voice="Zira'); Remove-Item x; ('")
            )

        assert audio == b"RIFFsapi"
        cmd = mock_run.call_args.args[0]
        assert cmd[:2] == ["powershell", "-Command"]
        assert "SelectVoice('Zira''); Remove-Item x; (''')" in cmd[2]
        assert "Speak('It''s done.')" in cmd[2]

    @pytest.mark.asyncio
    async def test_unsupported_platform(self) -> None:
        """Test that unknown platforms are reported."""
        with patch("agent_chime.backends.system.platform.system", return_value="Plan9"):
            backend = SystemTTSBackend()
        with pytest.raises(SynthesisFailure, match="Unsupported platform"):
            await backend.synthesize("Ready.", TTSConfig())

    def test_unavailable_without_command(self) -> None:
        """Test availability when the speech command is missing."""
        with patch("agent_chime.backends.system.shutil.which", return_value=None):
            assert SystemTTSBackend.is_available() is False


class TestKokoroBackend:
    """Test the kokoro backend."""

    def _backend_with_pipeline(self, pipeline: MagicMock) -> KokoroBackend:
        cache = SharedModelCache()
        cache.get_or_load("kokoro:a:cpu", lambda: pipeline)
        return KokoroBackend(model_cache=cache)

    @pytest.mark.asyncio
    async def test_chunks_concatenated(self) -> None:
        """Test that generated chunks are joined into one WAV."""
        pipeline = MagicMock(
            return_value=[
                ("g", "p", np.zeros(100, dtype=np.float32)),
                ("g", "p", None),
                ("g", "p", np.zeros(50, dtype=np.float32)),
            ]
        )
        backend = self._backend_with_pipeline(pipeline)

        audio = await backend.synthesize("Ready.", TTSConfig(kokoro=KokoroConfig(device="cpu")))

        assert audio[:4] == b"RIFF"
        pipeline.assert_called_once_with("Ready.", voice="af_heart")

    @pytest.mark.asyncio
    async def test_no_audio(self) -> None:
        """Test that an empty generation is a synthesis failure."""
        backend = self._backend_with_pipeline(MagicMock(return_value=[]))

        with pytest.raises(SynthesisFailure, match="Kokoro produced no audio"):
            await backend.synthesize("Ready.", TTSConfig(kokoro=KokoroConfig(device="cpu")))
