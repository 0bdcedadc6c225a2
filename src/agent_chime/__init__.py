"""agent-chime - audible notifications for coding-agent CLIs."""

__version__ = "0.1.0"
__all__ = ["notify", "synthesize"]


def __getattr__(name: str):  # type: ignore[no-untyped-def]
    if name == "notify":
        from .core import notify

        return notify
    if name == "synthesize":
        from .tts import synthesize

        return synthesize
    raise AttributeError(f"module 'agent_chime' has no attribute {name!r}")
