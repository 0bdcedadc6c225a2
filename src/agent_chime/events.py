"""Normalized notification events."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class EventType(str, Enum):
    """Normalized notification category."""

    AGENT_YIELD = "agent_yield"
    DECISION_REQUIRED = "decision_required"
    ERROR_RETRY = "error_retry"

    @classmethod
    def parse(cls, value: str) -> "EventType":
        """Parse an event type, accepting SCREAMING_SNAKE and kebab spellings."""
        normalized = value.strip().lower().replace("-", "_")
        try:
            return cls(normalized)
        except ValueError:
            valid = ", ".join(e.value for e in cls)
            raise ValueError(f"Unknown event type '{value}'. Valid: {valid}") from None

    @property
    def default_template(self) -> str:
        return _DEFAULT_TEMPLATES[self]


_DEFAULT_TEMPLATES = {
    EventType.AGENT_YIELD: "Ready.",
    EventType.DECISION_REQUIRED: "I need your input.",
    EventType.ERROR_RETRY: "I hit an error. Please review.",
}


class Source(str, Enum):
    """Coding-agent CLI that emitted the hook payload."""

    CLAUDE = "claude"
    CODEX = "codex"
    OPENCODE = "opencode"


class Priority(str, Enum):
    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"


def priority_for(event_type: EventType) -> Priority:
    """Decision and error events are urgent; yields are not."""
    if event_type in (EventType.DECISION_REQUIRED, EventType.ERROR_RETRY):
        return Priority.HIGH
    return Priority.NORMAL


@dataclass(frozen=True)
class Event:
    """A single notification, created once per hook invocation.

    Attributes:
        event_type: Normalized event kind
        source: Agent CLI that produced the event
        summary: Optional free text extracted from the payload
        context: Optional opaque payload data
        timestamp: When the event was created (UTC)
        priority: Derived from event_type, never set by callers
    """

    event_type: EventType
    source: Source
    summary: str | None = None
    context: Any = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    priority: Priority = field(init=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "priority", priority_for(self.event_type))
