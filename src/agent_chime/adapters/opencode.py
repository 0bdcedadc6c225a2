"""OpenCode payloads.

OpenCode has no hook payload format to classify; callers must pass the event
kind explicitly. Summary text is still read from a plugin-provided payload.
"""

from typing import Any

from ..events import EventType


def parse_event(payload: dict[str, Any]) -> EventType | None:
    return None


def summary_candidates(payload: dict[str, Any]) -> list[Any]:
    properties = payload.get("properties")
    if isinstance(properties, dict):
        return [properties.get("summary"), properties.get("message")]
    return []
