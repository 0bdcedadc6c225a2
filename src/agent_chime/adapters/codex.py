"""Codex CLI notify payloads."""

from typing import Any

from ..events import EventType


def parse_event(payload: dict[str, Any]) -> EventType | None:
    if payload.get("type") == "agent-turn-complete":
        return EventType.AGENT_YIELD
    return None


def summary_candidates(payload: dict[str, Any]) -> list[Any]:
    return [
        payload.get("last-assistant-message"),
        payload.get("last_assistant_message"),
    ]
