"""pocket-tts backend: Kyutai's lightweight CPU text-to-speech model."""

import asyncio
import importlib.util
import logging
import os
from pathlib import Path
from typing import Any

from ..config import TTSConfig
from ..errors import ModelLoadFailure, SynthesisFailure
from .base import TTSBackend, to_wav_bytes
from .model_cache import SharedModelCache

logger = logging.getLogger(__name__)

VOICE_EMBEDDINGS_URL = "hf://kyutai/pocket-tts-without-voice-cloning/embeddings/{voice}.safetensors"

# pocket-tts models are safe to call from any thread once loaded
_MODEL_CACHE = SharedModelCache()


class PocketTTSBackend(TTSBackend):
    """pocket-tts backend using the ``pocket_tts`` package.

    Loaded models are kept in a process-wide, lock-guarded cache keyed by
    model variant, so repeated calls in one process skip the load.
    """

    name = "pocket-tts"
    supports_instruct = False

    def __init__(self, model_cache: SharedModelCache | None = None) -> None:
        self._models = model_cache if model_cache is not None else _MODEL_CACHE

    @classmethod
    def is_available(cls) -> bool:
        return importlib.util.find_spec("pocket_tts") is not None

    @staticmethod
    def model_key(variant: str) -> str:
        return f"pocket-tts:{variant}"

    def _load_model(self, variant: str, allow_downloads: bool) -> Any:
        def _load() -> Any:
            from pocket_tts import TTSModel

            if not allow_downloads:
                os.environ["HF_HUB_OFFLINE"] = "1"
            try:
                return TTSModel.load_model(variant)
            except Exception as e:
                raise ModelLoadFailure(
                    f"Failed to load pocket-tts variant {variant}: {e}", e
                ) from e

        return self._models.get_or_load(self.model_key(variant), _load)

    @staticmethod
    def _voice_prompt(voice: str, allow_downloads: bool) -> str:
        """Turn a voice spec into something the model can load a state from.

        Accepts a local .wav/.safetensors path, an hf:// URL, or a stock voice
        name which is fetched from the hub.
        """
        spec = voice.strip()
        if not spec:
            raise SynthesisFailure("voice spec is empty")

        if spec.startswith("hf://"):
            if not allow_downloads:
                raise SynthesisFailure(
                    "hf:// voice spec requires downloads; set tts.allow_downloads=true "
                    "or use a local file"
                )
            return spec

        if Path(spec).exists():
            return spec

        if not allow_downloads:
            raise SynthesisFailure(
                f"voice '{spec}' requires download; set tts.allow_downloads=true "
                "or provide a local file path"
            )
        return VOICE_EMBEDDINGS_URL.format(voice=spec)

    async def synthesize(self, text: str, params: TTSConfig) -> bytes:
        """Convert text to speech with pocket-tts.

        Args:
            text: Text to convert to speech
            params: TTS parameters; uses tts.voice or tts.pocket_tts.voice

        Returns:
            Audio data as WAV bytes
        """
        if not text or not text.strip():
            raise SynthesisFailure("Text cannot be empty")

        pocket = params.pocket_tts
        voice = params.voice or pocket.voice

        def _generate() -> bytes:
            model = self._load_model(pocket.variant, params.allow_downloads)
            prompt = self._voice_prompt(voice, params.allow_downloads)
            try:
                voice_state = model.get_state_for_audio_prompt(prompt)
                audio = model.generate_audio(voice_state, text)
            except Exception as e:
                raise SynthesisFailure(f"pocket-tts synthesis failed: {e}", e) from e
            return to_wav_bytes(audio.numpy(), model.sample_rate)

        return await asyncio.to_thread(_generate)
