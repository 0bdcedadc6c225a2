"""Unit tests for stock voicepack generation."""

import json
import sys
from pathlib import Path

import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent / "src"))

from agent_chime.config import Config
from agent_chime.events import Event, EventType, Source
from agent_chime.voicepack import VoicePack, load_manifest
from agent_chime.voicepack.builder import STOCK_PHRASES, generate_voicepack


class RecordingSynthesizer:
    """Stand-in for synthesize_in_process that records its calls."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, Config, str | None]] = []

    async def __call__(self, text: str, config: Config, backend: str | None) -> bytes:
        self.calls.append((text, config, backend))
        return b"RIFF" + text.encode("utf-8")


class TestGenerateVoicepack:
    """Test generate_voicepack."""

    @pytest.mark.asyncio
    async def test_writes_audio_and_manifest(self, tmp_path: Path) -> None:
        """Test that every stock phrase is rendered and listed."""
        synth = RecordingSynthesizer()
        manifest_path = await generate_voicepack(
            tmp_path / "pack", Config(), "kokoro", synthesize=synth
        )

        assert manifest_path == tmp_path / "pack" / "manifest.json"
        assert len(synth.calls) == len(STOCK_PHRASES)
        assert all(backend == "kokoro" for _, _, backend in synth.calls)
        assert all(config.tts.timeout_seconds == 0 for _, config, _ in synth.calls)

        manifest = load_manifest(manifest_path)
        assert set(manifest.phrases) == set(STOCK_PHRASES)
        assert "agent_ready" in manifest.events[EventType.AGENT_YIELD]
        assert "tests_failed" not in manifest.events[EventType.AGENT_YIELD]
        assert (tmp_path / "pack" / "audio" / "agent_ready.wav").read_bytes() == b"RIFFReady."

    @pytest.mark.asyncio
    async def test_existing_files_kept(self, tmp_path: Path) -> None:
        """Test that a rerun resumes without re-rendering existing audio."""
        audio_dir = tmp_path / "pack" / "audio"
        audio_dir.mkdir(parents=True)
        (audio_dir / "agent_ready.wav").write_bytes(b"RIFFmine")

        synth = RecordingSynthesizer()
        await generate_voicepack(tmp_path / "pack", Config(), synthesize=synth)

        assert "Ready." not in [text for text, _, _ in synth.calls]
        assert (audio_dir / "agent_ready.wav").read_bytes() == b"RIFFmine"

    @pytest.mark.asyncio
    async def test_generated_pack_is_routable(self, tmp_path: Path) -> None:
        """Test that the written manifest loads and serves audio."""
        manifest_path = await generate_voicepack(
            tmp_path / "pack", Config(), synthesize=RecordingSynthesizer()
        )

        pack = VoicePack.load(manifest_path)
        audio = pack.select_audio(Event(EventType.ERROR_RETRY, Source.CLAUDE))
        assert audio is not None
        assert audio.startswith(b"RIFF")

        data = json.loads(manifest_path.read_text())
        assert data["events"]["decision_required"] == [
            "decision_input",
            "decision_question",
            "decision_call",
            "decision_choose",
        ]
