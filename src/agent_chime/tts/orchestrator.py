"""Synthesis orchestration: cache lookup, backend execution, write-through.

Coordinates BackendRegistry, AudioCache and SynthesisWorker. A cache hit
returns immediately without touching any backend. On a miss, synthesis runs
in an isolated worker process under the configured deadline, unless the
deadline is zero or this process already is that worker.
"""

import json
import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import BinaryIO

from ..audio.player import AudioPlayer
from ..backends import BackendRegistry
from ..cache import AudioCache
from ..config import DEFAULT_BACKEND, Config, config_from_dict, config_to_dict
from ..errors import BackendDisabled, ChimeError, CacheWriteFailure, SynthesisFailure
from .worker import SynthesisRequest, SynthesisWorker, in_worker_mode

logger = logging.getLogger(__name__)


def resolve_backend_name(config: Config, backend_override: str | None = None) -> str:
    """Override, then configured backend, then the built-in default."""
    return backend_override or config.tts.backend or DEFAULT_BACKEND


def params_json(config: Config) -> str:
    """Serialized TTS parameters, as they participate in the cache key."""
    return json.dumps(config_to_dict(config)["tts"], sort_keys=True)


def cache_for(config: Config) -> AudioCache:
    return AudioCache(
        config.cache.resolved_dir(),
        config.cache.max_size_bytes,
        config.cache.max_entries,
    )


async def synthesize_in_process(
    text: str, config: Config, backend_override: str | None = None
) -> bytes:
    """Synthesize on this process with no deadline and no cache.

    Raises:
        BackendUnavailable: If the backend is unknown or not installed
        ModelLoadFailure: If the backend cannot load its model
        SynthesisFailure: If the backend fails
    """
    backend_name = resolve_backend_name(config, backend_override)
    backend = BackendRegistry.select(backend_name)
    logger.debug(f"Synthesizing in-process with {backend_name}")
    try:
        return await backend.synthesize(text, config.tts)
    except ChimeError:
        raise
    except Exception as e:
        raise SynthesisFailure(f"Synthesis with {backend_name} failed: {e}", e) from e


async def synthesize(
    text: str,
    config: Config,
    backend_override: str | None = None,
    cache: AudioCache | None = None,
) -> bytes:
    """Return audio for text, from the cache or a fresh synthesis.

    Args:
        text: Text to speak
        config: Full configuration; its TTS section is part of the cache key
        backend_override: Backend name taking precedence over config
        cache: Cache to use (defaults to one built from config.cache)

    Returns:
        Audio bytes

    Raises:
        BackendUnavailable: If the backend is unknown or not installed
        SynthesisTimeout: If the isolated worker exceeded its deadline
        WorkerFailed: If the isolated worker exited with an error
        WorkerCrashed: If the isolation mechanism itself failed
        ChimeError: Any other synthesis error from an in-process backend
    """
    backend_name = resolve_backend_name(config, backend_override)
    cache = cache if cache is not None else cache_for(config)

    key = AudioCache.key(backend_name, text, params_json(config))
    cached = cache.get(key)
    if cached is not None:
        logger.debug(f"Cache hit for '{text[:50]}' ({backend_name})")
        return cached

    if config.tts.timeout_seconds == 0 or in_worker_mode():
        audio = await synthesize_in_process(text, config, backend_name)
    else:
        # Fail fast in the parent rather than spawning a doomed worker
        if not BackendRegistry.is_available(backend_name):
            raise BackendDisabled(
                f"{backend_name} backend not enabled; its engine is not installed",
                backend_name,
            )
        worker = SynthesisWorker(
            SynthesisRequest(text, backend_name, config), config.tts.timeout_seconds
        )
        audio = await worker.run()

    try:
        cache.put(key, audio)
    except CacheWriteFailure as e:
        logger.warning(f"Cache write failed: {e}")

    return audio


async def synthesize_and_play(
    text: str,
    config: Config,
    backend_override: str | None = None,
    player: AudioPlayer | None = None,
) -> None:
    """Synthesize text (cached) and play it at the configured volume."""
    audio = await synthesize(text, config, backend_override)
    player = player or AudioPlayer(volume=config.volume)
    await player.play_bytes_async(audio)


async def serve_worker_request(
    text: str,
    backend_override: str | None,
    stdin: BinaryIO | None = None,
    stdout: BinaryIO | None = None,
) -> int:
    """Child side of isolated synthesis.

    Reads the JSON configuration from stdin, synthesizes in-process and
    writes the raw audio to stdout.

    Returns:
        Number of audio bytes written

    Raises:
        ChimeError: If the config blob is missing or invalid, or synthesis fails
    """
    stdin = stdin or sys.stdin.buffer
    stdout = stdout or sys.stdout.buffer

    raw = stdin.read()
    if not raw.strip():
        raise ChimeError("internal synthesis expects config JSON on stdin")
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ChimeError(f"Failed to parse config JSON: {e}", e) from e
    config = config_from_dict(data)

    audio = await synthesize_in_process(text, config, backend_override)
    stdout.write(audio)
    stdout.flush()
    return len(audio)


@dataclass(frozen=True)
class BackendInfo:
    name: str
    available: bool
    supports_instruct: bool


@dataclass(frozen=True)
class ModelsInfo:
    backends: list[BackendInfo] = field(default_factory=list)
    cache_dir: Path | None = None


def models_info(config: Config) -> ModelsInfo:
    """Describe every registered backend and where audio is cached."""
    backends = [
        BackendInfo(
            name=name,
            available=BackendRegistry.is_available(name),
            supports_instruct=BackendRegistry.get(name).supports_instruct,
        )
        for name in BackendRegistry.names()
    ]
    return ModelsInfo(backends=backends, cache_dir=config.cache.resolved_dir())
