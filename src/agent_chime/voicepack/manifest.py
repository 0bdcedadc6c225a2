"""Voicepack manifest model and parsing.

A manifest is a JSON object:

    {
      "phrases": {
        "ready": {"text": "Ready.", "variants": [{"file": "audio/ready.wav"}]}
      },
      "events": {"agent_yield": ["ready"]}
    }

Variant file references are relative to the manifest's directory, or absolute.
A variant may also be given as a bare string.
"""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from ..errors import ManifestError
from ..events import EventType


@dataclass(frozen=True)
class Phrase:
    """Named group of interchangeable pre-recorded variants."""

    variants: tuple[str, ...]
    text: str | None = None


@dataclass(frozen=True)
class Manifest:
    phrases: dict[str, Phrase] = field(default_factory=dict)
    events: dict[EventType, tuple[str, ...]] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "phrases": {
                key: {
                    **({"text": phrase.text} if phrase.text else {}),
                    "variants": [{"file": f} for f in phrase.variants],
                }
                for key, phrase in self.phrases.items()
            },
            "events": {
                event_type.value: list(keys) for event_type, keys in self.events.items()
            },
        }


def _parse_variant(raw: Any, phrase_key: str) -> str:
    if isinstance(raw, str) and raw:
        return raw
    if isinstance(raw, dict) and isinstance(raw.get("file"), str) and raw["file"]:
        return raw["file"]
    raise ManifestError(f"phrase '{phrase_key}' has a variant without a file reference")


def _parse_phrase(key: str, raw: Any) -> Phrase:
    if isinstance(raw, list):
        raw = {"variants": raw}
    if not isinstance(raw, dict):
        raise ManifestError(f"phrase '{key}' must be an object")
    variants = raw.get("variants")
    if not isinstance(variants, list) or not variants:
        raise ManifestError(f"phrase '{key}' must have a non-empty 'variants' list")
    text = raw.get("text")
    return Phrase(
        variants=tuple(_parse_variant(v, key) for v in variants),
        text=text if isinstance(text, str) else None,
    )


def parse_manifest(data: Any) -> Manifest:
    """Validate a decoded manifest object.

    Unknown event names in the events table are ignored so newer manifests
    keep working.

    Raises:
        ManifestError: If the structure is invalid
    """
    if not isinstance(data, dict):
        raise ManifestError("manifest must be a JSON object")

    phrases_raw = data.get("phrases") or {}
    events_raw = data.get("events") or {}
    if not isinstance(phrases_raw, dict) or not isinstance(events_raw, dict):
        raise ManifestError("manifest 'phrases' and 'events' must be objects")

    phrases = {key: _parse_phrase(key, raw) for key, raw in phrases_raw.items()}

    events: dict[EventType, tuple[str, ...]] = {}
    for name, keys in events_raw.items():
        try:
            event_type = EventType.parse(name)
        except ValueError:
            continue
        if not isinstance(keys, list) or not all(isinstance(k, str) for k in keys):
            raise ManifestError(f"events.{name} must be a list of phrase keys")
        events[event_type] = tuple(keys)

    return Manifest(phrases=phrases, events=events)


def load_manifest(path: Path) -> Manifest:
    """Read and parse a manifest file.

    Raises:
        ManifestError: If the file is unreadable or invalid
    """
    try:
        raw = path.read_text(encoding="utf-8")
    except (OSError, ValueError) as e:
        # ValueError covers undecodable bytes and NUL bytes in the path
        raise ManifestError(f"Failed to read manifest {path}: {e}", e) from e
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ManifestError(f"Failed to parse manifest {path}: {e}", e) from e
    return parse_manifest(data)
