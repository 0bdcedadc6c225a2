"""Timeout-isolated synthesis in a child process.

The parent re-invokes this program in its hidden ``__synthesize`` mode. The
request text and backend travel as arguments, the full configuration as JSON
on the child's stdin, and the child writes nothing but raw audio bytes to its
stdout. A reader thread drains stdout while the parent polls the child's exit
status on a short interval, so a hung backend can be killed at the deadline
without relying on cancellable reads.

States: SPAWNED -> RUNNING -> COMPLETED | TIMED_OUT | FAILED | CRASHED
"""

import asyncio
import contextlib
import json
import logging
import os
import subprocess
import sys
import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import IO

from ..config import Config, config_to_dict
from ..errors import SynthesisTimeout, WorkerCrashed, WorkerFailed

logger = logging.getLogger(__name__)

# Set in the child's environment so it never spawns a worker of its own
INTERNAL_ENV = "AGENT_CHIME_INTERNAL_TTS"
WORKER_COMMAND = "__synthesize"
POLL_INTERVAL = 0.025


def in_worker_mode() -> bool:
    """Return True when running inside an isolated synthesis worker."""
    return os.environ.get(INTERNAL_ENV) is not None


@dataclass(frozen=True)
class SynthesisRequest:
    """What the parent sends to a worker."""

    text: str
    backend: str
    config: Config

    def command(self) -> list[str]:
        return [
            sys.executable,
            "-m",
            "agent_chime",
            WORKER_COMMAND,
            "--text",
            self.text,
            "--backend",
            self.backend,
        ]

    def payload(self) -> bytes:
        return json.dumps(config_to_dict(self.config)).encode("utf-8")


class WorkerState(str, Enum):
    PENDING = "pending"
    SPAWNED = "spawned"
    RUNNING = "running"
    COMPLETED = "completed"
    TIMED_OUT = "timed_out"
    FAILED = "failed"
    CRASHED = "crashed"


class _OutputReader(threading.Thread):
    """Drains a child's stdout into memory until EOF."""

    def __init__(self, stream: IO[bytes]) -> None:
        super().__init__(name="synthesis-output-reader", daemon=True)
        self._stream = stream
        self.chunks: list[bytes] = []
        self.error: BaseException | None = None

    def run(self) -> None:
        try:
            while chunk := self._stream.read(65536):
                self.chunks.append(chunk)
        except BaseException as e:  # reported to the parent as WorkerCrashed
            self.error = e

    def output(self) -> bytes:
        return b"".join(self.chunks)


class SynthesisWorker:
    """Runs one synthesis request in a child process under a deadline.

    Example:
        worker = SynthesisWorker(SynthesisRequest("Ready.", "pocket-tts", config), 10)
        audio = await worker.run()

    Args:
        request: Text, backend name and configuration for the child
        timeout_seconds: Wall-clock deadline measured from spawn
        command: Override for the child command line (defaults to
            ``request.command()``)
        poll_interval: Seconds between exit-status polls
    """

    def __init__(
        self,
        request: SynthesisRequest,
        timeout_seconds: float,
        command: list[str] | None = None,
        poll_interval: float = POLL_INTERVAL,
    ) -> None:
        self.request = request
        self.timeout_seconds = timeout_seconds
        self.command = command if command is not None else request.command()
        self.poll_interval = poll_interval
        self.state = WorkerState.PENDING
        self.process: subprocess.Popen[bytes] | None = None
        self.returncode: int | None = None

    def _spawn(self) -> subprocess.Popen[bytes]:
        env = dict(os.environ)
        env[INTERNAL_ENV] = "1"
        logger.debug(f"Spawning synthesis worker for backend {self.request.backend}")
        try:
            process = subprocess.Popen(
                self.command,
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                env=env,
            )
        except OSError as e:
            self.state = WorkerState.CRASHED
            raise WorkerCrashed(f"Failed to spawn synthesis worker: {e}", e) from e
        self.state = WorkerState.SPAWNED
        return process

    def _send_request(self, process: subprocess.Popen[bytes]) -> None:
        assert process.stdin is not None
        try:
            process.stdin.write(self.request.payload())
        except BrokenPipeError as e:
            # The child exited early; its exit status is reported by run()
            logger.debug(f"Worker closed stdin before reading config: {e}")
        finally:
            with contextlib.suppress(OSError):
                process.stdin.close()

    async def run(self) -> bytes:
        """Spawn the worker and wait for it under the deadline.

        Returns:
            Raw audio bytes the worker wrote to stdout

        Raises:
            SynthesisTimeout: Deadline exceeded; the child was killed
            WorkerFailed: Child exited with a non-zero status
            WorkerCrashed: Spawning or draining the child failed
        """
        process = self.process = self._spawn()
        assert process.stdout is not None
        reader = _OutputReader(process.stdout)
        reader.start()
        start = time.monotonic()

        try:
            self._send_request(process)
            self.state = WorkerState.RUNNING

            while True:
                returncode = process.poll()
                if returncode is not None:
                    break

                if time.monotonic() - start >= self.timeout_seconds:
                    process.kill()
                    process.wait()
                    reader.join()
                    self.returncode = process.returncode
                    self.state = WorkerState.TIMED_OUT
                    raise SynthesisTimeout(
                        f"TTS timed out after {self.timeout_seconds}s",
                        self.timeout_seconds,
                    )

                await asyncio.sleep(self.poll_interval)

            reader.join()
            self.returncode = returncode
        finally:
            if process.poll() is None:
                # Cancelled or failed mid-wait: never leave the child behind
                process.kill()
                process.wait()
                reader.join()
            process.stdout.close()

        if returncode != 0:
            self.state = WorkerState.FAILED
            raise WorkerFailed(
                f"TTS worker exited with status {returncode}", returncode
            )

        if reader.error is not None:
            self.state = WorkerState.CRASHED
            raise WorkerCrashed(
                f"TTS worker output reader failed: {reader.error}",
                reader.error if isinstance(reader.error, Exception) else None,
            )

        self.state = WorkerState.COMPLETED
        audio = reader.output()
        logger.debug(f"Synthesis worker returned {len(audio)} bytes")
        return audio
