"""System TTS backend using native OS text-to-speech commands.

This module provides text-to-speech functionality using the built-in
TTS capabilities of the operating system (say on macOS, espeak on Linux,
SAPI on Windows).
"""

import asyncio
import logging
import platform
import shutil
import tempfile
from pathlib import Path

from ..config import TTSConfig
from ..errors import SynthesisFailure
from .base import TTSBackend

logger = logging.getLogger(__name__)

# Command that must be on PATH for each supported platform
REQUIRED_COMMANDS = {"Darwin": "say", "Linux": "espeak", "Windows": "powershell"}


async def _run(cmd: list[str]) -> None:
    """Run a command without blocking the event loop."""
    proc = await asyncio.create_subprocess_exec(
        *cmd, stdout=asyncio.subprocess.PIPE, stderr=asyncio.subprocess.PIPE
    )
    _, stderr = await proc.communicate()
    if proc.returncode != 0:
        raise SynthesisFailure(
            f"{cmd[0]} failed with code {proc.returncode}: {stderr.decode(errors='replace')}"
        )


def _ps_quote(value: str) -> str:
    """Escape a value for a single-quoted PowerShell string."""
    return value.replace("'", "''")


class SystemTTSBackend(TTSBackend):
    """System TTS backend using native OS commands.

    Provides text-to-speech without model downloads. There is no model
    state to cache.

    Note: Audio quality will be robotic compared to neural voices.
    """

    name = "system"
    supports_instruct = False

    def __init__(self) -> None:
        self.platform = platform.system()

    @classmethod
    def is_available(cls) -> bool:
        command = REQUIRED_COMMANDS.get(platform.system())
        return command is not None and shutil.which(command) is not None

    async def synthesize(self, text: str, params: TTSConfig) -> bytes:
        """Convert text to speech using native OS commands.

        Args:
            text: Text to convert to speech
            params: TTS parameters; only tts.voice is used (platform-specific)

        Returns:
            Audio data as WAV bytes
        """
        if not text or not text.strip():
            raise SynthesisFailure("Text cannot be empty")

        voice = params.voice
        with tempfile.TemporaryDirectory(prefix="agent-chime-") as tmp:
            output_path = Path(tmp) / "speech.wav"

            if self.platform == "Darwin":
                # say writes AIFF; convert to WAV for a uniform cache format
                aiff_path = Path(tmp) / "speech.aiff"
                cmd = ["say", "-o", str(aiff_path)]
                if voice:
                    cmd.extend(["-v", voice])
                cmd.append(text)
                await _run(cmd)
                await _run(
                    ["afconvert", "-f", "WAVE", "-d", "LEI16", str(aiff_path), str(output_path)]
                )

            elif self.platform == "Linux":
                cmd = ["espeak", "-w", str(output_path)]
                if voice:
                    cmd.extend(["-v", voice])
                cmd.append(text)
                await _run(cmd)

            elif self.platform == "Windows":
                ps_script = (
                    "Add-Type -AssemblyName System.Speech; "
                    "$speak = New-Object System.Speech.Synthesis.SpeechSynthesizer; "
                    f"$speak.SetOutputToWaveFile('{_ps_quote(str(output_path))}'); "
                )
                if voice:
                    ps_script += f"$speak.SelectVoice('{_ps_quote(voice)}'); "
                ps_script += f"$speak.Speak('{_ps_quote(text)}'); $speak.Dispose()"
                await _run(["powershell", "-Command", ps_script])

            else:
                raise SynthesisFailure(f"Unsupported platform: {self.platform}")

            try:
                return output_path.read_bytes()
            except OSError as e:
                raise SynthesisFailure(f"System TTS produced no audio: {e}", e) from e
