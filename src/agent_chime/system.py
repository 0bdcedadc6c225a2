"""Host capability detection used to recommend a backend."""

import os
import platform
from dataclasses import dataclass


@dataclass(frozen=True)
class SystemInfo:
    os: str
    arch: str
    cpu_cores: int | None
    recommended_backends: list[str] | None


def detect() -> SystemInfo:
    """Describe the host and recommend backends for it.

    pocket-tts is always recommended; qwen3-tts is added on machines with
    at least 8 cores.
    """
    cpu_cores = os.cpu_count()
    recommended = None
    if cpu_cores is not None:
        recommended = ["pocket-tts", "qwen3-tts"] if cpu_cores >= 8 else ["pocket-tts"]

    return SystemInfo(
        os=platform.system().lower(),
        arch=platform.machine().lower(),
        cpu_cores=cpu_cores,
        recommended_backends=recommended,
    )
