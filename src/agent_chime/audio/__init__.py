"""Audio playback package for agent-chime.

This package provides cross-platform audio playback using pygame, plus
per-event earcons.
"""

from .player import AudioPlayer

__all__ = ["AudioPlayer"]
