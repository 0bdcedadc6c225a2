"""Abstract base class for text-to-speech backends.

This module defines the interface that all TTS backends must implement,
ensuring consistent behavior across different synthesis engines.
"""

import io
from abc import ABC, abstractmethod
from typing import Any, ClassVar

import soundfile as sf

from ..config import TTSConfig


class TTSBackend(ABC):
    """Abstract base class for text-to-speech backends.

    All backends must inherit from this class, set ``name`` and implement
    ``synthesize``. A backend advertises whether its engine can run in this
    environment through ``is_available``; the registry refuses to construct
    backends that report False.
    """

    name: ClassVar[str]
    supports_instruct: ClassVar[bool] = False

    @classmethod
    def is_available(cls) -> bool:
        """Return True if this backend's engine is installed and usable."""
        return True

    @abstractmethod
    async def synthesize(self, text: str, params: TTSConfig) -> bytes:
        """Convert text to audio bytes.

        Args:
            text: The text to convert to speech
            params: Full TTS parameter bundle; each backend reads its own section

        Returns:
            Audio data as bytes (WAV format)

        Raises:
            ModelLoadFailure: If the backend cannot load its model
            SynthesisFailure: If synthesis fails
        """
        pass


def to_wav_bytes(audio: Any, sample_rate: int) -> bytes:
    """Encode a float sample array as 16-bit PCM WAV bytes."""
    buf = io.BytesIO()
    sf.write(buf, audio, sample_rate, format="WAV", subtype="PCM_16")
    return buf.getvalue()


def resolve_device(device: str) -> str:
    """Resolve a configured compute device.

    'auto' selects the best available device. Explicit values ('mps',
    'cuda', 'cpu', ...) are passed through.
    """
    if device != "auto":
        return device

    import torch

    if torch.cuda.is_available():
        return "cuda"
    if torch.backends.mps.is_available():
        return "mps"
    return "cpu"
