"""qwen3-tts backend: Qwen3-TTS with speaker, instruct and voice-clone modes."""

import importlib.util
import logging
import os
from pathlib import Path
from typing import Any

from ..config import Qwen3TTSConfig, TTSConfig
from ..errors import ModelLoadFailure, SynthesisFailure
from .base import TTSBackend, resolve_device, to_wav_bytes
from .model_cache import ThreadConfinedModelCache

logger = logging.getLogger(__name__)

# The Qwen3-TTS runtime is not thread-safe: a model is only ever used by the
# thread that loaded it.
_MODEL_CACHE = ThreadConfinedModelCache()


class Qwen3TTSBackend(TTSBackend):
    """Qwen3-TTS backend using the ``qwen_tts`` package.

    Synthesis runs on the calling thread rather than a worker pool, so the
    thread-confined model cache is reused across calls.
    """

    name = "qwen3-tts"
    supports_instruct = True

    def __init__(self, model_cache: ThreadConfinedModelCache | None = None) -> None:
        self._models = model_cache if model_cache is not None else _MODEL_CACHE

    @classmethod
    def is_available(cls) -> bool:
        return importlib.util.find_spec("qwen_tts") is not None

    @staticmethod
    def model_key(model: str, tokenizer: str | None, device: str) -> str:
        return f"qwen3-tts:{model}:{tokenizer or 'default'}:{device}"

    def _load_model(self, cfg: Qwen3TTSConfig, allow_downloads: bool) -> Any:
        if cfg.model is None:
            raise ModelLoadFailure("qwen3-tts requires tts.qwen3_tts.model")

        is_local = Path(cfg.model).exists()
        if not allow_downloads and not is_local:
            raise ModelLoadFailure(
                "qwen3-tts model must be a local path when downloads are disabled"
            )
        if cfg.tokenizer and not allow_downloads and not Path(cfg.tokenizer).exists():
            raise ModelLoadFailure(
                "qwen3-tts tokenizer must be local when downloads are disabled"
            )

        device = resolve_device(cfg.device)

        def _load() -> Any:
            from qwen_tts import Qwen3TTSModel

            if not allow_downloads:
                os.environ["HF_HUB_OFFLINE"] = "1"
            if device == "cpu":
                logger.warning(
                    "qwen3-tts is running on CPU; expect high latency. "
                    "Consider setting tts.qwen3_tts.device to cuda or mps."
                )
            kwargs: dict[str, Any] = {"device_map": device}
            if cfg.tokenizer:
                kwargs["tokenizer"] = cfg.tokenizer
            try:
                return Qwen3TTSModel.from_pretrained(cfg.model, **kwargs)
            except Exception as e:
                raise ModelLoadFailure(
                    f"Failed to load Qwen3-TTS model {cfg.model}: {e}", e
                ) from e

        return self._models.get_or_load(
            self.model_key(cfg.model, cfg.tokenizer, device), _load
        )

    async def synthesize(self, text: str, params: TTSConfig) -> bytes:
        """Convert text to speech with Qwen3-TTS.

        Mode is chosen in order: instruct (voice design) if tts.instruct is
        set, voice clone if tts.qwen3_tts.ref_audio is set, otherwise a stock
        speaker from tts.voice or tts.qwen3_tts.speaker.
        """
        if not text or not text.strip():
            raise SynthesisFailure("Text cannot be empty")

        cfg = params.qwen3_tts
        model = self._load_model(cfg, params.allow_downloads)

        try:
            if params.instruct:
                wavs, sample_rate = model.generate_voice_design(
                    text=text, language=cfg.language, instruct=params.instruct
                )
            elif cfg.ref_audio:
                wavs, sample_rate = model.generate_voice_clone(
                    text=text,
                    language=cfg.language,
                    ref_audio=cfg.ref_audio,
                    ref_text=cfg.ref_text,
                )
            else:
                wavs, sample_rate = model.generate_custom_voice(
                    text=text,
                    language=cfg.language,
                    speaker=params.voice or cfg.speaker,
                )
        except Exception as e:
            raise SynthesisFailure(f"qwen3-tts synthesis failed: {e}", e) from e

        return to_wav_bytes(wavs[0], sample_rate)
