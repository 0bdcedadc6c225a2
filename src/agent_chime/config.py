"""Configuration management for agent-chime.

Loads configuration from ./agent-chime.toml or ~/.config/agent-chime/config.toml.
Priority chain: CLI flags > env vars > config file > built-in defaults.
"""

import os
import tomllib
from dataclasses import asdict, dataclass, field, replace
from enum import Enum
from pathlib import Path
from typing import Any

from .errors import ConfigError
from .events import EventType
from .paths import get_cache_dir, get_config_path, get_project_config_path

KNOWN_BACKENDS = ("pocket-tts", "qwen3-tts", "kokoro", "system")
DEFAULT_BACKEND = "pocket-tts"

DEFAULT_CONFIG = """\
# agent-chime configuration

# Playback volume (0.0-1.0)
volume = 0.8

# Directory holding yield.wav, decision.wav and error.wav
# earcons_dir = "~/.local/share/agent-chime/earcons"

[tts]
# Backend: "pocket-tts" (local, default), "qwen3-tts" (local, supports instruct),
#          "kokoro" (local), "system" (OS built-in)
backend = "pocket-tts"

# Hard deadline for one synthesis call, in seconds (0 = no isolation)
timeout_seconds = 10

# Allow model and voice downloads from the Hugging Face hub
allow_downloads = true

# voice = "alba"
# instruct = "Speak calmly"

[tts.pocket_tts]
variant = "b6369a24"
voice = "alba"

[tts.qwen3_tts]
# model = "Qwen/Qwen3-TTS-12Hz-1.7B-CustomVoice"
speaker = "Ryan"
language = "English"
device = "auto"

[tts.kokoro]
voice = "af_heart"
device = "auto"

[cache]
max_mb = 100
max_entries = 1000

[events.agent_yield]
enabled = true
mode = "tts"
template = "Ready."

[events.decision_required]
enabled = true
mode = "tts"
template = "I need your input."

[events.error_retry]
enabled = true
mode = "earcon"
template = "I hit an error. Please review."

[voicepack]
enabled = false
# manifest_path = "voicepack/manifest.json"

# [[voicepack.routes]]
# pattern = "tests? fail"
# phrases = ["tests_failed"]
# events = ["agent_yield"]
# case_sensitive = false
"""


class Mode(str, Enum):
    """How an event is announced."""

    TTS = "tts"
    EARCON = "earcon"
    SILENT = "silent"


@dataclass(frozen=True)
class PocketTTSConfig:
    """pocket-tts backend parameters."""

    variant: str = "b6369a24"
    voice: str = "alba"


@dataclass(frozen=True)
class Qwen3TTSConfig:
    """qwen3-tts backend parameters."""

    model: str | None = None
    tokenizer: str | None = None
    speaker: str = "Ryan"
    language: str = "English"
    ref_audio: str | None = None
    ref_text: str | None = None
    device: str = "auto"


@dataclass(frozen=True)
class KokoroConfig:
    """kokoro backend parameters."""

    voice: str = "af_heart"
    device: str = "auto"


@dataclass(frozen=True)
class TTSConfig:
    """Backend selection plus every backend's parameter bundle.

    The serialized form of this object is part of the audio cache key, so
    changing any field invalidates cache reuse.
    """

    backend: str = DEFAULT_BACKEND
    voice: str | None = None
    instruct: str | None = None
    timeout_seconds: float = 10
    allow_downloads: bool = True
    pocket_tts: PocketTTSConfig = field(default_factory=PocketTTSConfig)
    qwen3_tts: Qwen3TTSConfig = field(default_factory=Qwen3TTSConfig)
    kokoro: KokoroConfig = field(default_factory=KokoroConfig)


@dataclass(frozen=True)
class CacheConfig:
    """Audio cache location and bounds."""

    dir: Path | None = None
    max_mb: int = 100
    max_entries: int = 1000

    @property
    def max_size_bytes(self) -> int:
        return self.max_mb * 1024 * 1024

    def resolved_dir(self) -> Path:
        return self.dir if self.dir is not None else get_cache_dir()


@dataclass(frozen=True)
class EventConfig:
    enabled: bool = True
    mode: Mode = Mode.TTS
    template: str | None = None

    @classmethod
    def default_for(cls, event_type: EventType) -> "EventConfig":
        mode = Mode.EARCON if event_type is EventType.ERROR_RETRY else Mode.TTS
        return cls(enabled=True, mode=mode, template=event_type.default_template)


@dataclass(frozen=True)
class VoicePackRoute:
    """Pattern-based override selecting phrases from event summary text."""

    pattern: str
    phrases: tuple[str, ...]
    events: tuple[EventType, ...] = ()
    case_sensitive: bool = False


@dataclass(frozen=True)
class VoicePackConfig:
    enabled: bool = False
    manifest_path: Path | None = None
    routes: tuple[VoicePackRoute, ...] = ()


def _default_events() -> dict[EventType, EventConfig]:
    return {event_type: EventConfig.default_for(event_type) for event_type in EventType}


@dataclass(frozen=True)
class Config:
    """Top-level agent-chime configuration."""

    tts: TTSConfig = field(default_factory=TTSConfig)
    volume: float = 0.8
    events: dict[EventType, EventConfig] = field(default_factory=_default_events)
    cache: CacheConfig = field(default_factory=CacheConfig)
    earcons_dir: Path | None = None
    voicepack: VoicePackConfig = field(default_factory=VoicePackConfig)

    def earcons_path(self) -> Path | None:
        """Configured earcons directory, else ./earcons if it exists."""
        if self.earcons_dir is not None:
            return self.earcons_dir
        local = Path("earcons")
        if local.exists():
            return local
        return None

    def voicepack_manifest_path(self) -> Path | None:
        """Configured manifest, else ./voicepack/manifest.json if it exists."""
        if self.voicepack.manifest_path is not None:
            return self.voicepack.manifest_path
        local = Path("voicepack") / "manifest.json"
        if local.exists():
            return local
        return None

    def validate(self) -> None:
        """Check cross-field constraints.

        Raises:
            ConfigError: On the first violated constraint.
        """
        if not 0.0 <= self.volume <= 1.0:
            raise ConfigError("volume must be between 0.0 and 1.0")
        if self.tts.backend not in KNOWN_BACKENDS:
            raise ConfigError(f"unsupported backend: {self.tts.backend}")
        if self.tts.backend == "qwen3-tts" and self.tts.qwen3_tts.model is None:
            raise ConfigError("qwen3-tts backend requires tts.qwen3_tts.model to be set")
        if self.tts.timeout_seconds < 0:
            raise ConfigError("tts.timeout_seconds must not be negative")
        if self.cache.max_mb <= 0:
            raise ConfigError("cache.max_mb must be greater than 0")
        if self.cache.max_entries <= 0:
            raise ConfigError("cache.max_entries must be greater than 0")
        if self.voicepack.enabled:
            path = self.voicepack_manifest_path()
            if path is None:
                raise ConfigError("voicepack enabled but no manifest_path configured")
            if not path.exists():
                raise ConfigError(f"voicepack manifest not found: {path}")


def _optional_path(value: Any) -> Path | None:
    if value is None or value == "":
        return None
    if not isinstance(value, (str, Path)):
        raise ConfigError(f"Expected a path, got {value!r}")
    return Path(value).expanduser()


def _section(data: dict[str, Any], key: str) -> dict[str, Any]:
    value = data.get(key) or {}
    if not isinstance(value, dict):
        raise ConfigError(f"'{key}' must be a table")
    return value


def _build(cls: type, data: dict[str, Any], name: str) -> Any:
    """Instantiate a flat dataclass, rejecting unknown keys."""
    known = set(cls.__dataclass_fields__)
    unknown = set(data) - known
    if unknown:
        raise ConfigError(f"Unknown keys in [{name}]: {', '.join(sorted(unknown))}")
    try:
        return cls(**{k: v for k, v in data.items() if v is not None})
    except TypeError as e:
        raise ConfigError(f"Invalid [{name}] section: {e}") from e


def _parse_route(raw: Any) -> VoicePackRoute:
    if not isinstance(raw, dict) or "pattern" not in raw:
        raise ConfigError("voicepack route requires a 'pattern'")
    try:
        events = tuple(EventType.parse(e) for e in raw.get("events") or [])
    except ValueError as e:
        raise ConfigError(f"Invalid voicepack route events: {e}") from e
    return VoicePackRoute(
        pattern=str(raw["pattern"]),
        phrases=tuple(str(p) for p in raw.get("phrases") or []),
        events=events,
        case_sensitive=bool(raw.get("case_sensitive", False)),
    )


def config_from_dict(data: dict[str, Any]) -> Config:
    """Build a Config from parsed TOML or from the worker's JSON blob.

    Missing sections and keys fall back to defaults. Per-event sections that
    omit a template get the event's default template.

    Raises:
        ConfigError: If a section has the wrong shape or unknown keys.
    """
    tts = dict(_section(data, "tts"))
    pocket = _build(PocketTTSConfig, _section(tts, "pocket_tts"), "tts.pocket_tts")
    qwen3 = _build(Qwen3TTSConfig, _section(tts, "qwen3_tts"), "tts.qwen3_tts")
    kokoro = _build(KokoroConfig, _section(tts, "kokoro"), "tts.kokoro")
    for key in ("pocket_tts", "qwen3_tts", "kokoro"):
        tts.pop(key, None)
    tts_config = replace(
        _build(TTSConfig, tts, "tts"), pocket_tts=pocket, qwen3_tts=qwen3, kokoro=kokoro
    )

    cache = dict(_section(data, "cache"))
    cache["dir"] = _optional_path(cache.get("dir"))
    cache_config = _build(CacheConfig, cache, "cache")

    events = _default_events()
    for name, raw in _section(data, "events").items():
        try:
            event_type = EventType.parse(name)
        except ValueError as e:
            raise ConfigError(str(e)) from e
        if not isinstance(raw, dict):
            raise ConfigError(f"events.{name} must be a table")
        raw = dict(raw)
        try:
            mode = Mode(raw.pop("mode", Mode.TTS.value))
        except ValueError:
            raise ConfigError(f"Invalid mode for events.{name}") from None
        event_config = _build(EventConfig, raw, f"events.{name}")
        events[event_type] = replace(
            event_config,
            mode=mode,
            template=event_config.template or event_type.default_template,
        )

    voicepack = _section(data, "voicepack")
    voicepack_config = VoicePackConfig(
        enabled=bool(voicepack.get("enabled", False)),
        manifest_path=_optional_path(voicepack.get("manifest_path")),
        routes=tuple(_parse_route(r) for r in voicepack.get("routes") or []),
    )

    volume = data.get("volume", 0.8)
    if isinstance(volume, bool) or not isinstance(volume, (int, float)):
        raise ConfigError(f"volume must be a number, got {volume!r}")
    return Config(
        tts=tts_config,
        volume=float(volume),
        events=events,
        cache=cache_config,
        earcons_dir=_optional_path(data.get("earcons_dir")),
        voicepack=voicepack_config,
    )


def _jsonable(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, Path):
        return str(value)
    if isinstance(value, dict):
        return {_jsonable(k): _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    return value


def config_to_dict(config: Config) -> dict[str, Any]:
    """Serialize a Config into a JSON-safe dict accepted by config_from_dict."""
    return _jsonable(asdict(config))


def load_config_from_path(path: Path) -> Config:
    """Load a TOML config file without applying env overrides.

    Raises:
        ConfigError: If the file cannot be read or parsed.
    """
    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except OSError as e:
        raise ConfigError(f"Failed to read config at {path}: {e}", e) from e
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Failed to parse config at {path}: {e}", e) from e
    return config_from_dict(data)


def apply_env_overrides(config: Config) -> Config:
    """Apply AGENT_CHIME_* environment variables on top of a loaded config."""
    tts = config.tts
    if backend := os.getenv("AGENT_CHIME_BACKEND"):
        tts = replace(tts, backend=backend)
    if voice := os.getenv("AGENT_CHIME_VOICE"):
        tts = replace(tts, voice=voice)
    if timeout := os.getenv("AGENT_CHIME_TIMEOUT"):
        try:
            tts = replace(tts, timeout_seconds=float(timeout))
        except ValueError:
            raise ConfigError(f"AGENT_CHIME_TIMEOUT is not a number: {timeout}") from None

    cache = config.cache
    if cache_dir := os.getenv("AGENT_CHIME_CACHE_DIR"):
        cache = replace(cache, dir=Path(cache_dir).expanduser())

    volume = config.volume
    if volume_str := os.getenv("AGENT_CHIME_VOLUME"):
        try:
            volume = float(volume_str)
        except ValueError:
            raise ConfigError(f"AGENT_CHIME_VOLUME is not a number: {volume_str}") from None

    return replace(config, tts=tts, cache=cache, volume=volume)


def find_config_path() -> Path | None:
    """Return the first existing config file in lookup order."""
    for path in (get_project_config_path(), get_config_path()):
        if path.exists():
            return path
    return None


def load_config() -> Config:
    """Load configuration from the first config file found, with env overrides.

    Unlike an interactive tool, a missing config file is not an error: hooks
    run unattended, so built-in defaults are used instead.

    Returns:
        Loaded Config.

    Raises:
        ConfigError: If a config file exists but is invalid.
    """
    path = find_config_path()
    config = load_config_from_path(path) if path is not None else Config()
    return apply_env_overrides(config)


def generate_config() -> Path:
    """Generate default config file at ~/.config/agent-chime/config.toml."""
    path = get_config_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(DEFAULT_CONFIG)
    return path
