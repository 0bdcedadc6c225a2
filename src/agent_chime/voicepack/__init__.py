"""Voicepacks: pre-recorded phrases routed by event kind and summary text."""

from .manifest import Manifest, Phrase, load_manifest, parse_manifest
from .router import VoicePack, select_audio

__all__ = [
    "Manifest",
    "Phrase",
    "VoicePack",
    "load_manifest",
    "parse_manifest",
    "select_audio",
]
