"""Typer CLI definition for agent-chime."""

import asyncio
import json
import logging
import sys
from dataclasses import asdict, replace
from pathlib import Path
from typing import NoReturn

import typer

from .config import Config, config_to_dict, generate_config, load_config
from .errors import ChimeError
from .events import EventType, Source
from .paths import get_config_path

app = typer.Typer(
    help="Audible notifications for agentic CLI workflows",
    no_args_is_help=True,
)

logger = logging.getLogger(__name__)


def _fail(message: str, error: Exception | None, verbose: bool) -> NoReturn:
    if verbose and error is not None:
        typer.echo(f"Debug - {message}: {error!r}", err=True)
    else:
        typer.echo(f"Error: {message}", err=True)
    raise typer.Exit(1)


def _load_config_or_exit(verbose: bool) -> Config:
    try:
        return load_config()
    except ChimeError as e:
        _fail(str(e), e, verbose)


def read_stdin_payload() -> str | None:
    """Read a hook payload from stdin, if one is being piped in."""
    if sys.stdin is None or sys.stdin.isatty():
        return None
    text = sys.stdin.read().strip()
    return text or None


@app.callback()
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(
        False, "-v", "--verbose", help="Enable verbose logging"
    ),
) -> None:
    """Audible notifications for agentic CLI workflows."""
    # stdout carries worker audio, so logs always go to stderr
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            stream=sys.stderr,
        )
    ctx.obj = {"verbose": verbose}


@app.command()
def notify(
    ctx: typer.Context,
    payload: str | None = typer.Argument(
        None, metavar="JSON", help="Event payload JSON (for claude/codex); read from stdin if omitted"
    ),
    source: Source = typer.Option(..., "--source", help="Source CLI", case_sensitive=False),
    event: str | None = typer.Option(
        None, "--event", help="Explicit event type (agent_yield, decision_required, error_retry)"
    ),
    backend: str | None = typer.Option(None, "--backend", help="Override TTS backend"),
) -> None:
    """Announce an agent event from a hook payload."""
    from .core import notify as run_notify

    verbose = ctx.obj["verbose"]

    event_type = None
    if event is not None:
        try:
            event_type = EventType.parse(event)
        except ValueError as e:
            _fail(str(e), e, verbose)

    config = _load_config_or_exit(verbose)
    if payload is None:
        payload = read_stdin_payload()

    try:
        outcome = asyncio.run(
            run_notify(source, payload, config, event_type=event_type, backend=backend)
        )
    except ChimeError as e:
        _fail(str(e), e, verbose)
    except RuntimeError as e:
        _fail(f"Failed to play audio: {e}", e, verbose)

    logger.debug(f"notify outcome: {outcome.value}")


@app.command("system-info")
def system_info(
    as_json: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Show host details and recommended backends."""
    from .system import detect

    info = detect()
    if as_json:
        typer.echo(json.dumps(asdict(info), indent=2))
        return

    typer.echo(f"OS: {info.os}")
    typer.echo(f"Arch: {info.arch}")
    if info.cpu_cores is not None:
        typer.echo(f"CPU cores: {info.cpu_cores}")
    if info.recommended_backends:
        typer.echo(f"Recommended backends: {', '.join(info.recommended_backends)}")


@app.command()
def models(
    ctx: typer.Context,
    as_json: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """List TTS backends and whether they are installed."""
    from .tts import models_info

    info = models_info(_load_config_or_exit(ctx.obj["verbose"]))
    if as_json:
        typer.echo(json.dumps(asdict(info), indent=2, default=str))
        return

    typer.echo("Available backends:")
    for backend in info.backends:
        status = "available" if backend.available else "unavailable"
        instruct = ", instruct" if backend.supports_instruct else ""
        typer.echo(f"- {backend.name} ({status}{instruct})")
    if info.cache_dir is not None:
        typer.echo(f"Cache dir: {info.cache_dir}")


@app.command("test-tts")
def test_tts(
    ctx: typer.Context,
    text: str = typer.Option("Hello world", "--text", help="Text to synthesize"),
    backend: str | None = typer.Option(None, "--backend", help="TTS backend"),
    voice: str | None = typer.Option(None, "--voice", help="Voice name"),
    instruct: str | None = typer.Option(
        None, "--instruct", help="Emotion/style instruction (qwen3-tts)"
    ),
    output: Path | None = typer.Option(None, "--output", help="Save audio to file"),
) -> None:
    """Synthesize and play a test phrase."""
    from .audio.player import AudioPlayer
    from .tts import synthesize

    verbose = ctx.obj["verbose"]
    config = _load_config_or_exit(verbose)
    tts = config.tts
    if voice is not None:
        tts = replace(tts, voice=voice)
    if instruct is not None:
        tts = replace(tts, instruct=instruct)
    config = replace(config, tts=tts)

    try:
        audio = asyncio.run(synthesize(text, config, backend))
        player = AudioPlayer(volume=config.volume)
        if output is not None:
            player.save_to_file(audio, output)
            typer.echo(f"Audio saved to {output}")
        player.play_bytes(audio)
    except ChimeError as e:
        _fail(f"TTS synthesis failed: {e}", e, verbose)
    except OSError as e:
        _fail(f"Failed to save audio file: {e}", e, verbose)
    except RuntimeError as e:
        _fail(f"Failed to play audio: {e}", e, verbose)


@app.command("config")
def config_cmd(
    ctx: typer.Context,
    show: bool = typer.Option(False, "--show", help="Show current config as JSON"),
    init: bool = typer.Option(False, "--init", help="Create default config file"),
    validate: bool = typer.Option(False, "--validate", help="Validate configuration"),
) -> None:
    """Show, create or validate the configuration."""
    verbose = ctx.obj["verbose"]

    if init:
        path = generate_config()
        typer.echo(f"Initialized config at {path}")
        return

    if show:
        config = _load_config_or_exit(verbose)
        typer.echo(json.dumps(config_to_dict(config), indent=2))
        return

    if validate:
        config = _load_config_or_exit(verbose)
        try:
            config.validate()
        except ChimeError as e:
            _fail(str(e), e, verbose)
        typer.echo("Config OK")
        return

    typer.echo(str(get_config_path()))


@app.command("voicepack-gen")
def voicepack_gen(
    ctx: typer.Context,
    out: Path = typer.Option(Path("voicepack"), "--out", help="Voicepack directory"),
    backend: str | None = typer.Option(None, "--backend", help="TTS backend"),
) -> None:
    """Pre-render the stock phrase set and write a manifest."""
    from .voicepack.builder import generate_voicepack

    verbose = ctx.obj["verbose"]
    config = _load_config_or_exit(verbose)
    try:
        manifest_path = asyncio.run(generate_voicepack(out, config, backend))
    except ChimeError as e:
        _fail(f"Voicepack generation failed: {e}", e, verbose)
    except OSError as e:
        _fail(f"Failed to write voicepack: {e}", e, verbose)
    typer.echo(f"Wrote {manifest_path}")


@app.command("__synthesize", hidden=True)
def internal_synthesize(
    ctx: typer.Context,
    text: str = typer.Option(..., "--text", help="Text to synthesize"),
    backend: str | None = typer.Option(None, "--backend", help="TTS backend"),
) -> None:
    """Worker mode: config JSON on stdin, raw audio on stdout."""
    from .tts.orchestrator import serve_worker_request

    try:
        asyncio.run(serve_worker_request(text, backend))
    except ChimeError as e:
        logger.error(f"internal synthesis failed: {e}")
        raise typer.Exit(1) from None
