"""Short non-speech cues played instead of, or as a fallback for, speech."""

import logging

from ..config import Config, Mode
from ..events import EventType
from .player import AudioPlayer

logger = logging.getLogger(__name__)

EARCON_FILES = {
    EventType.AGENT_YIELD: "yield.wav",
    EventType.DECISION_REQUIRED: "decision.wav",
    EventType.ERROR_RETRY: "error.wav",
}


def should_play(event_type: EventType, config: Config) -> bool:
    """True if the event is enabled and configured for earcon mode."""
    event_config = config.events.get(event_type)
    return (
        event_config is not None
        and event_config.enabled
        and event_config.mode is Mode.EARCON
    )


def play_for_event(
    event_type: EventType,
    config: Config,
    player: AudioPlayer | None = None,
    force: bool = False,
) -> bool:
    """Play the earcon for an event.

    A missing earcons directory or file is logged and skipped, never raised.

    Args:
        event_type: Event whose earcon to play
        config: Configuration (earcons_dir, volume, event modes)
        player: Player to use (defaults to one at config.volume)
        force: Play even if the event is not in earcon mode (speech fallback)

    Returns:
        True if an earcon was played

    Raises:
        RuntimeError: If playback itself fails
    """
    if not force and not should_play(event_type, config):
        return False

    earcons_dir = config.earcons_path()
    if earcons_dir is None:
        logger.warning("earcons directory not found; skipping earcon")
        return False

    path = earcons_dir / EARCON_FILES[event_type]
    if not path.exists():
        logger.warning(f"earcon file missing; skipping: {path}")
        return False

    player = player or AudioPlayer(volume=config.volume)
    player.play_file(path)
    return True
