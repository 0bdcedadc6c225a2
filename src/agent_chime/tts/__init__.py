"""Speech synthesis pipeline for agent-chime.

This package resolves events to text and turns text into audio, through the
audio cache and an isolated worker process.
"""

from .broker import get_text_for_event
from .orchestrator import (
    models_info,
    synthesize,
    synthesize_and_play,
    synthesize_in_process,
)
from .worker import SynthesisRequest, SynthesisWorker, WorkerState

__all__ = [
    "SynthesisRequest",
    "SynthesisWorker",
    "WorkerState",
    "get_text_for_event",
    "models_info",
    "synthesize",
    "synthesize_and_play",
    "synthesize_in_process",
]
