"""Pre-render a stock voicepack with a local backend."""

import json
import logging
from collections.abc import Awaitable, Callable
from dataclasses import replace
from pathlib import Path

from ..config import Config
from ..events import EventType
from ..tts.orchestrator import synthesize_in_process
from .manifest import Manifest, Phrase

logger = logging.getLogger(__name__)

# phrase key -> (spoken text, event it answers or None for route-only phrases)
STOCK_PHRASES: dict[str, tuple[str, EventType | None]] = {
    "agent_ready": ("Ready.", EventType.AGENT_YIELD),
    "agent_all_set": ("All set.", EventType.AGENT_YIELD),
    "agent_your_turn": ("Your turn.", EventType.AGENT_YIELD),
    "agent_next_step": ("Next step?", EventType.AGENT_YIELD),
    "agent_done": ("I'm done.", EventType.AGENT_YIELD),
    "decision_input": ("I need your input.", EventType.DECISION_REQUIRED),
    "decision_question": ("Question for you.", EventType.DECISION_REQUIRED),
    "decision_call": ("Your call.", EventType.DECISION_REQUIRED),
    "decision_choose": ("Please choose.", EventType.DECISION_REQUIRED),
    "error_failed": ("Something failed.", EventType.ERROR_RETRY),
    "error_hit": ("I hit an error.", EventType.ERROR_RETRY),
    "error_retry": ("Retry needed.", EventType.ERROR_RETRY),
    "error_timeout": ("That timed out.", EventType.ERROR_RETRY),
    "build_complete": ("Build complete.", None),
    "tests_failed": ("Tests failed.", None),
    "deploy_complete": ("Deploy complete.", None),
}

Synthesizer = Callable[[str, Config, str | None], Awaitable[bytes]]


async def generate_voicepack(
    out_dir: Path,
    config: Config,
    backend: str | None = None,
    synthesize: Synthesizer = synthesize_in_process,
) -> Path:
    """Render every stock phrase into out_dir/audio and write out_dir/manifest.json.

    Existing audio files are kept, so an interrupted run can be resumed.
    Synthesis runs in-process with no deadline.

    Returns:
        Path to the written manifest
    """
    config = replace(config, tts=replace(config.tts, timeout_seconds=0))
    audio_dir = out_dir / "audio"
    audio_dir.mkdir(parents=True, exist_ok=True)

    phrases: dict[str, Phrase] = {}
    events: dict[EventType, list[str]] = {}
    for key, (text, event_type) in STOCK_PHRASES.items():
        relative = f"audio/{key}.wav"
        path = out_dir / relative
        if path.exists():
            logger.info(f"Skipping {path}")
        else:
            logger.info(f"Generating {path}")
            path.write_bytes(await synthesize(text, config, backend))

        phrases[key] = Phrase(variants=(relative,), text=text)
        if event_type is not None:
            events.setdefault(event_type, []).append(key)

    manifest = Manifest(
        phrases=phrases, events={k: tuple(v) for k, v in events.items()}
    )
    manifest_path = out_dir / "manifest.json"
    manifest_path.write_text(json.dumps(manifest.to_dict(), indent=2) + "\n")
    return manifest_path
