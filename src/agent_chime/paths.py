"""XDG-compliant directory paths for agent-chime."""

import os
from pathlib import Path

APP_NAME = "agent-chime"


def get_config_dir() -> Path:
    """Get XDG-compliant configuration directory.

    Priority:
    1. $XDG_CONFIG_HOME/agent-chime/
    2. ~/.config/agent-chime/

    Returns:
        Path to configuration directory (not created)
    """
    config_home = os.environ.get("XDG_CONFIG_HOME")
    if config_home:
        return Path(config_home) / APP_NAME
    return Path.home() / ".config" / APP_NAME


def get_cache_dir() -> Path:
    """Get XDG-compliant directory for cached audio.

    Priority:
    1. $XDG_CACHE_HOME/agent-chime/audio/
    2. ~/.cache/agent-chime/audio/

    Returns:
        Path to audio cache directory (not created)
    """
    cache_home = os.environ.get("XDG_CACHE_HOME")
    base = Path(cache_home) if cache_home else Path.home() / ".cache"
    return base / APP_NAME / "audio"


def get_config_path() -> Path:
    """Get the user-level config file path."""
    return get_config_dir() / "config.toml"


def get_project_config_path() -> Path:
    """Get the project-local config file path (relative to cwd)."""
    return Path(f"{APP_NAME}.toml")
