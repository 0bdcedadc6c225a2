"""Phrase routing: pick pre-recorded audio for an event.

Routes are tried against the event summary in configured order; the first
match supplies the candidate phrase keys. Without a match (or a summary) the
manifest's per-event defaults are used. One phrase and then one of its
variants are chosen at random, and the variant file is read only if it
resolves inside the manifest's directory.
"""

import logging
import random
import re
from dataclasses import dataclass
from pathlib import Path

from ..config import Config, VoicePackRoute
from ..errors import ChimeError, ManifestError, PathTraversalRejected
from ..events import Event, EventType
from .manifest import Manifest, load_manifest

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RouteRule:
    """A compiled route."""

    pattern: re.Pattern[str]
    phrases: tuple[str, ...]
    events: tuple[EventType, ...] = ()

    def matches(self, event: Event) -> bool:
        if self.events and event.event_type not in self.events:
            return False
        return event.summary is not None and self.pattern.search(event.summary) is not None


def compile_routes(routes: tuple[VoicePackRoute, ...]) -> list[RouteRule]:
    """Compile configured routes; routes without phrases are dropped.

    Raises:
        ManifestError: If a pattern is not a valid regex
    """
    compiled = []
    for route in routes:
        if not route.phrases:
            continue
        flags = 0 if route.case_sensitive else re.IGNORECASE
        try:
            pattern = re.compile(route.pattern, flags)
        except re.error as e:
            raise ManifestError(
                f"Failed to compile voicepack route regex '{route.pattern}': {e}", e
            ) from e
        compiled.append(RouteRule(pattern=pattern, phrases=route.phrases, events=route.events))
    return compiled


class VoicePack:
    """A loaded manifest plus compiled routes, rooted at the manifest directory."""

    def __init__(
        self,
        root: Path,
        manifest: Manifest,
        routes: list[RouteRule],
        rng: random.Random | None = None,
    ) -> None:
        self.root = root
        self.manifest = manifest
        self.routes = routes
        self._rng = rng or random.Random()

    @classmethod
    def load(
        cls,
        manifest_path: Path,
        routes: tuple[VoicePackRoute, ...] = (),
        rng: random.Random | None = None,
    ) -> "VoicePack":
        """Load a manifest and compile routes.

        Raises:
            ManifestError: If the manifest or a route pattern is invalid
        """
        manifest = load_manifest(manifest_path)
        root = manifest_path.parent
        return cls(root, manifest, compile_routes(routes), rng)

    def phrase_keys_for(self, event: Event) -> tuple[str, ...]:
        """Route phrases for the first matching rule, else manifest defaults."""
        if event.summary is not None:
            for route in self.routes:
                if route.matches(event):
                    logger.debug(f"Voicepack route '{route.pattern.pattern}' matched")
                    return route.phrases
        return self.manifest.events.get(event.event_type, ())

    def resolve_audio_path(self, file: str) -> Path:
        """Resolve a variant file reference inside the voicepack root.

        Raises:
            PathTraversalRejected: If the reference resolves outside the root
            OSError: If the root or file does not exist
        """
        candidate = Path(file)
        if not candidate.is_absolute():
            candidate = self.root / candidate

        root = self.root.resolve(strict=True)
        try:
            resolved = candidate.resolve(strict=True)
        except ValueError as e:
            # embedded NUL bytes
            raise PathTraversalRejected(
                f"Voicepack file reference is not a valid path: {e}", file
            ) from e
        if not resolved.is_relative_to(root):
            raise PathTraversalRejected(
                f"Voicepack file '{file}' resolves outside {root}", file
            )
        return resolved

    def select_audio(self, event: Event) -> bytes | None:
        """Pick and read one variant for the event, or None.

        Raises:
            PathTraversalRejected: If the chosen variant escapes the root
            OSError: If the chosen file cannot be read
        """
        phrase_keys = self.phrase_keys_for(event)
        if not phrase_keys:
            return None

        phrase_key = self._rng.choice(phrase_keys)
        phrase = self.manifest.phrases.get(phrase_key)
        if phrase is None:
            logger.warning(f"Voicepack phrase '{phrase_key}' not in manifest")
            return None

        variant = self._rng.choice(phrase.variants)
        path = self.resolve_audio_path(variant)
        logger.debug(f"Voicepack selected {path} for phrase '{phrase_key}'")
        return path.read_bytes()


def select_audio(
    event: Event, config: Config, rng: random.Random | None = None
) -> bytes | None:
    """Return canned audio for an event, or None to fall back to speech.

    Never raises: manifest, route, traversal and read failures are logged
    and degrade to None.
    """
    if not config.voicepack.enabled:
        return None

    manifest_path = config.voicepack_manifest_path()
    if manifest_path is None:
        return None

    try:
        pack = VoicePack.load(manifest_path, config.voicepack.routes, rng)
        return pack.select_audio(event)
    except PathTraversalRejected as e:
        logger.warning(f"Voicepack path rejected: {e}")
    except ChimeError as e:
        logger.warning(f"Voicepack unavailable: {e}")
    except OSError as e:
        logger.warning(f"Voicepack audio unreadable: {e}")
    return None
