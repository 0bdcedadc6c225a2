"""Event classification and summary extraction for agent hook payloads.

Each source has its own small decision table mapping a discriminant field
to an event kind. Unrecognized payloads classify to None, which callers
treat as "no notification", not as an error.
"""

import json
from types import ModuleType
from typing import Any

from ..errors import PayloadError
from ..events import EventType, Source
from . import claude, codex, opencode

__all__ = ["GENERIC_SUMMARY_FIELDS", "classify", "extract_summary", "load_payload"]

_ADAPTERS: dict[Source, ModuleType] = {
    Source.CLAUDE: claude,
    Source.CODEX: codex,
    Source.OPENCODE: opencode,
}

# Tried before any source-specific field
GENERIC_SUMMARY_FIELDS = ("summary", "message", "title", "description")


def load_payload(raw: str | bytes | dict[str, Any]) -> dict[str, Any] | None:
    """Decode a raw payload into a JSON object.

    Returns:
        The decoded object, or None if the JSON is valid but not an object

    Raises:
        PayloadError: If raw is not valid JSON
    """
    if isinstance(raw, dict):
        return raw
    try:
        value = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise PayloadError(f"Failed to parse payload JSON: {e}", e) from e
    return value if isinstance(value, dict) else None


def classify(source: Source, raw: str | bytes | dict[str, Any]) -> EventType | None:
    """Map a source-specific payload to a normalized event kind.

    Raises:
        PayloadError: If raw is not valid JSON
    """
    payload = load_payload(raw)
    if payload is None:
        return None
    return _ADAPTERS[source].parse_event(payload)


def extract_summary(source: Source, raw: str | bytes | dict[str, Any]) -> str | None:
    """Return the first non-empty, trimmed text field of a payload.

    Generic fields are tried first, then the source's own fields.

    Raises:
        PayloadError: If raw is not valid JSON
    """
    payload = load_payload(raw)
    if payload is None:
        return None

    candidates = [payload.get(name) for name in GENERIC_SUMMARY_FIELDS]
    candidates.extend(_ADAPTERS[source].summary_candidates(payload))
    for candidate in candidates:
        if isinstance(candidate, str) and candidate.strip():
            return candidate.strip()
    return None
