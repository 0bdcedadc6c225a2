"""Unit tests for event-to-text resolution."""

import sys
from dataclasses import replace
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent / "src"))

from agent_chime.config import Config, EventConfig, Mode
from agent_chime.events import Event, EventType, Source
from agent_chime.tts import get_text_for_event


def _with_event(event_type: EventType, event_config: EventConfig) -> Config:
    config = Config()
    return replace(config, events={**config.events, event_type: event_config})


class TestGetTextForEvent:
    """Test get_text_for_event."""

    def test_default_template(self) -> None:
        """Test that a yield speaks the default phrase."""
        event = Event(EventType.AGENT_YIELD, Source.CLAUDE)
        assert get_text_for_event(event, Config()) == "Ready."

    def test_custom_template(self) -> None:
        """Test that a configured template is used."""
        config = _with_event(
            EventType.DECISION_REQUIRED, EventConfig(template="Over to you.")
        )
        event = Event(EventType.DECISION_REQUIRED, Source.CLAUDE)
        assert get_text_for_event(event, config) == "Over to you."

    def test_summary_not_spoken(self) -> None:
        """Test that the summary never replaces the template."""
        event = Event(EventType.AGENT_YIELD, Source.CODEX, summary="Refactored 12 files")
        assert get_text_for_event(event, Config()) == "Ready."

    def test_earcon_mode_not_spoken(self) -> None:
        """Test that earcon-mode events have no text."""
        event = Event(EventType.ERROR_RETRY, Source.CLAUDE)
        assert get_text_for_event(event, Config()) is None

    def test_disabled_event(self) -> None:
        """Test that disabled events have no text."""
        config = _with_event(EventType.AGENT_YIELD, EventConfig(enabled=False))
        event = Event(EventType.AGENT_YIELD, Source.CLAUDE)
        assert get_text_for_event(event, config) is None

    def test_silent_mode(self) -> None:
        """Test that silent events have no text."""
        config = _with_event(EventType.AGENT_YIELD, EventConfig(mode=Mode.SILENT))
        event = Event(EventType.AGENT_YIELD, Source.CLAUDE)
        assert get_text_for_event(event, config) is None
