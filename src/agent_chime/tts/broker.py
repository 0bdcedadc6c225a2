"""Resolve an event to the text that should be spoken for it."""

from ..config import Config, Mode
from ..events import Event


def get_text_for_event(event: Event, config: Config) -> str | None:
    """Return the text to speak, or None if this event is not spoken.

    Disabled events and events in earcon or silent mode yield None.
    """
    event_config = config.events.get(event.event_type)
    if event_config is None or not event_config.enabled:
        return None
    if event_config.mode is not Mode.TTS:
        return None
    return event_config.template or event.event_type.default_template
