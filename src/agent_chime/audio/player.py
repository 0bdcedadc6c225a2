"""Playback of notification audio through pygame's mixer."""

# ruff: noqa: E402
import os

# Must be set before pygame is imported or it prints a banner on stdout
os.environ["PYGAME_HIDE_SUPPORT_PROMPT"] = "1"

import warnings

warnings.filterwarnings("ignore", category=UserWarning, module="pygame.pkgdata")

import asyncio
import io
from pathlib import Path

import pygame


class AudioPlayer:
    """Plays WAV audio from memory or disk at a fixed volume.

    Example:
        player = AudioPlayer(volume=0.8)
        await player.play_bytes_async(audio)
        player.play_file(Path("earcons/yield.wav"))

    Args:
        volume: Playback volume from 0.0 to 1.0
    """

    def __init__(self, volume: float = 1.0) -> None:
        """Start the mixer.

        Raises:
            ValueError: If volume is outside 0.0-1.0.
            RuntimeError: If the mixer cannot be opened (no audio device).
        """
        if not 0.0 <= volume <= 1.0:
            raise ValueError("volume must be between 0.0 and 1.0")
        self.volume = volume

        try:
            pygame.mixer.init()
        except pygame.error as e:
            raise RuntimeError(f"Failed to initialize pygame audio mixer: {e}") from e

    def _play(self, source: io.BytesIO | str) -> None:
        """Load a source into the music channel and block until it finishes."""
        try:
            music = pygame.mixer.music
            music.load(source)
            music.set_volume(self.volume)
            music.play()

            clock = pygame.time.Clock()
            while music.get_busy():
                clock.tick(10)
        except pygame.error as e:
            raise RuntimeError(f"Failed to play audio: {e}") from e

    def play_bytes(self, audio_data: bytes) -> None:
        """Play in-memory audio and return when playback ends.

        Raises:
            ValueError: If audio_data is empty.
            RuntimeError: If playback fails.
        """
        if not audio_data:
            raise ValueError("No audio data provided")
        self._play(io.BytesIO(audio_data))

    async def play_bytes_async(self, audio_data: bytes) -> None:
        """Like play_bytes, but waits on a worker thread."""
        if not audio_data:
            raise ValueError("No audio data provided")
        await asyncio.to_thread(self.play_bytes, audio_data)

    def play_file(self, filepath: str | Path) -> None:
        """Play an audio file (earcons, voicepack assets).

        Raises:
            FileNotFoundError: If the file does not exist.
            RuntimeError: If playback fails.
        """
        filepath = Path(filepath)
        if not filepath.exists():
            raise FileNotFoundError(f"Audio file not found: {filepath}")
        self._play(str(filepath))

    def save_to_file(self, audio_data: bytes, filepath: str | Path) -> None:
        """Write audio to disk, creating parent directories.

        Raises:
            ValueError: If audio_data is empty.
            OSError: If the file cannot be written.
        """
        if not audio_data:
            raise ValueError("No audio data provided")

        filepath = Path(filepath)
        try:
            filepath.parent.mkdir(parents=True, exist_ok=True)
            filepath.write_bytes(audio_data)
        except OSError as e:
            raise OSError(f"Failed to save audio to {filepath}: {e}") from e
