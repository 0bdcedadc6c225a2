"""Kokoro text-to-speech backend implementation."""

import asyncio
import importlib.util
import logging
from typing import Any

import numpy as np

from ..config import TTSConfig
from ..errors import ModelLoadFailure, SynthesisFailure
from .base import TTSBackend, resolve_device, to_wav_bytes
from .model_cache import SharedModelCache

logger = logging.getLogger(__name__)

SAMPLE_RATE = 24000

# Voice prefix -> lang_code mapping
LANG_CODES = {"a": "a", "b": "b"}

_PIPELINE_CACHE = SharedModelCache()


class KokoroBackend(TTSBackend):
    """Kokoro TTS backend using local neural speech synthesis.

    Uses the Kokoro-82M model for GPU-accelerated (MPS/CUDA) or CPU-based
    text-to-speech generation. No API key required, runs entirely locally.

    Automatically selects American or British phonemizer based on voice prefix.
    Pipelines are cached by (lang_code, device) so switching between American
    and British voices doesn't reload the model unnecessarily.
    """

    name = "kokoro"
    supports_instruct = False

    def __init__(self, model_cache: SharedModelCache | None = None) -> None:
        self._pipelines = model_cache if model_cache is not None else _PIPELINE_CACHE

    @classmethod
    def is_available(cls) -> bool:
        return importlib.util.find_spec("kokoro") is not None

    def _get_pipeline(self, voice: str, device: str) -> Any:
        lang_code = LANG_CODES.get(voice[0], "a") if voice else "a"

        def _load() -> Any:
            from kokoro import KPipeline

            logger.info(f"Creating Kokoro pipeline for lang_code='{lang_code}' on {device}")
            try:
                return KPipeline(lang_code=lang_code, device=device)
            except Exception as e:
                raise ModelLoadFailure(f"Failed to load Kokoro pipeline: {e}", e) from e

        return self._pipelines.get_or_load(f"kokoro:{lang_code}:{device}", _load)

    async def synthesize(self, text: str, params: TTSConfig) -> bytes:
        """Convert text to speech using Kokoro neural TTS.

        Args:
            text: Text to convert to speech
            params: TTS parameters; uses tts.voice or tts.kokoro.voice

        Returns:
            Audio data as bytes (WAV format, 24kHz)
        """
        if not text or not text.strip():
            raise SynthesisFailure("Text cannot be empty")

        voice = params.voice or params.kokoro.voice
        device = resolve_device(params.kokoro.device)

        def _generate() -> bytes:
            pipeline = self._get_pipeline(voice, device)
            try:
                chunks = [
                    np.asarray(audio)
                    for _, _, audio in pipeline(text, voice=voice)
                    if audio is not None
                ]
            except Exception as e:
                raise SynthesisFailure(f"Kokoro synthesis failed: {e}", e) from e
            if not chunks:
                raise SynthesisFailure("Kokoro produced no audio")
            return to_wav_bytes(np.concatenate(chunks), SAMPLE_RATE)

        return await asyncio.to_thread(_generate)
