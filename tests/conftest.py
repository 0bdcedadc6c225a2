"""Pytest configuration and fixtures for agent-chime tests."""

import sys
from collections.abc import Generator
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from agent_chime.backends import BackendRegistry, TTSBackend
from agent_chime.config import TTSConfig


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch, tmp_path) -> None:
    """Point XDG dirs at a temp location and run from an empty cwd.

    Config lookup reads ./agent-chime.toml and the earcon/voicepack
    defaults read ./earcons and ./voicepack, so every test starts from a
    directory that has none of them.
    """
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "cache"))
    for name in (
        "AGENT_CHIME_BACKEND",
        "AGENT_CHIME_VOICE",
        "AGENT_CHIME_VOLUME",
        "AGENT_CHIME_CACHE_DIR",
        "AGENT_CHIME_TIMEOUT",
        "AGENT_CHIME_INTERNAL_TTS",
    ):
        monkeypatch.delenv(name, raising=False)

    workdir = tmp_path / "work"
    workdir.mkdir()
    monkeypatch.chdir(workdir)


class FakeBackend(TTSBackend):
    """In-memory backend that records what it was asked to say."""

    name = "fake"
    calls: list[tuple[str, TTSConfig]] = []

    async def synthesize(self, text: str, params: TTSConfig) -> bytes:
        FakeBackend.calls.append((text, params))
        return b"RIFF" + text.encode("utf-8")


@pytest.fixture
def fake_backend() -> Generator[type[FakeBackend]]:
    """Register FakeBackend for the duration of a test."""
    saved_backends = dict(BackendRegistry._backends)
    saved_availability = dict(BackendRegistry._availability)
    FakeBackend.calls = []
    BackendRegistry.register(FakeBackend)

    yield FakeBackend

    BackendRegistry._backends.clear()
    BackendRegistry._backends.update(saved_backends)
    BackendRegistry._availability.clear()
    BackendRegistry._availability.update(saved_availability)
