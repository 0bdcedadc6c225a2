"""Core functionality for agent-chime - turns one hook invocation into sound."""

import logging
from enum import Enum
from typing import Any

from .adapters import classify, extract_summary, load_payload
from .audio import earcon
from .audio.player import AudioPlayer
from .config import Config, Mode
from .errors import ChimeError, PayloadError
from .events import Event, EventType, Source
from .tts import get_text_for_event, synthesize_and_play
from .voicepack import select_audio

logger = logging.getLogger(__name__)


class Outcome(str, Enum):
    """What a notification ended up doing."""

    SKIPPED = "skipped"
    SILENT = "silent"
    VOICEPACK = "voicepack"
    SPEECH = "speech"
    EARCON = "earcon"


def build_event(
    source: Source,
    payload: str | bytes | dict[str, Any] | None,
    event_type: EventType | None = None,
) -> Event | None:
    """Classify a payload (unless event_type is given) and attach its summary.

    Returns:
        The event, or None if the payload is missing or not recognized

    Raises:
        ChimeError: If source is OpenCode and no event_type is given
        PayloadError: If the payload is not valid JSON
    """
    data = load_payload(payload) if payload is not None else None

    if event_type is None:
        if source is Source.OPENCODE:
            raise ChimeError("--event is required when --source opencode is used")
        if payload is None:
            logger.warning("no payload provided; skipping")
            return None
        event_type = classify(source, data) if data is not None else None
        if event_type is None:
            logger.warning("event not recognized; skipping")
            return None

    summary = extract_summary(source, data) if data is not None else None
    return Event(event_type=event_type, source=source, summary=summary, context=data)


async def play_event(
    event: Event,
    config: Config,
    backend: str | None = None,
    player: AudioPlayer | None = None,
) -> Outcome:
    """Announce an event: voicepack, then speech, then earcon.

    Speech failures fall back to the event's earcon rather than failing the
    notification.

    Raises:
        RuntimeError: If audio playback fails
    """
    event_config = config.events.get(event.event_type)
    if event_config is None or not event_config.enabled or event_config.mode is Mode.SILENT:
        return Outcome.SILENT

    if event_config.mode is Mode.TTS:
        audio = select_audio(event, config)
        if audio is not None:
            player = player or AudioPlayer(volume=config.volume)
            await player.play_bytes_async(audio)
            return Outcome.VOICEPACK

    text = get_text_for_event(event, config)
    if text is not None:
        try:
            await synthesize_and_play(text, config, backend, player)
            return Outcome.SPEECH
        except ChimeError as e:
            logger.warning(f"tts failed; trying earcon: {e}")
            if earcon.play_for_event(event.event_type, config, player, force=True):
                return Outcome.EARCON
            return Outcome.SKIPPED

    if earcon.play_for_event(event.event_type, config, player):
        return Outcome.EARCON
    return Outcome.SKIPPED


async def notify(
    source: Source,
    payload: str | bytes | dict[str, Any] | None,
    config: Config,
    event_type: EventType | None = None,
    backend: str | None = None,
    player: AudioPlayer | None = None,
) -> Outcome:
    """Handle one notification from an agent hook.

    Unrecognized or malformed payloads are logged and skipped so a hook is
    never blocked by agent-chime.

    Raises:
        ChimeError: If source is OpenCode and no event_type is given
        RuntimeError: If audio playback fails
    """
    try:
        event = build_event(source, payload, event_type)
    except PayloadError as e:
        logger.warning(f"payload is not valid JSON; skipping: {e}")
        return Outcome.SKIPPED

    if event is None:
        return Outcome.SKIPPED

    logger.debug(
        f"{event.source.value} event {event.event_type.value} "
        f"(priority {event.priority.value}, summary={event.summary!r})"
    )
    return await play_event(event, config, backend, player)
