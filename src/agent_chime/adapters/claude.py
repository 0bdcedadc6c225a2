"""Claude Code hook payloads."""

from typing import Any

from ..events import EventType

QUESTION_TOOL = "AskUserQuestion"


def tool_name(payload: dict[str, Any]) -> str:
    """Tool name from ``tool_name``, a string ``tool``, or ``tool.name``."""
    name = payload.get("tool_name")
    if isinstance(name, str):
        return name
    tool = payload.get("tool")
    if isinstance(tool, str):
        return tool
    if isinstance(tool, dict) and isinstance(tool.get("name"), str):
        return tool["name"]
    return ""


def parse_event(payload: dict[str, Any]) -> EventType | None:
    """Map a hook payload to an event kind.

    Stop and Notification hooks mean the agent handed control back; a
    PreToolUse hook for the question tool means it is waiting on a decision.
    """
    hook = payload.get("hook_event_name")
    if hook in ("Stop", "Notification"):
        return EventType.AGENT_YIELD
    if hook == "PreToolUse" and tool_name(payload) == QUESTION_TOOL:
        return EventType.DECISION_REQUIRED
    return None


def summary_candidates(payload: dict[str, Any]) -> list[Any]:
    """Source-specific text fields, in preference order."""
    candidates: list[Any] = [payload.get("last_assistant_message")]
    tool_input = payload.get("tool_input")
    if isinstance(tool_input, dict):
        candidates.append(tool_input.get("question"))
        questions = tool_input.get("questions")
        if isinstance(questions, list):
            for question in questions:
                if isinstance(question, dict):
                    candidates.append(question.get("question"))
    return candidates
