"""Configuration utilities for the watchdesk CLI.

This module provides shared configuration functions used across CLI commands.
"""

from __future__ import annotations

import json
import os
from pathlib import Path

from watchdesk.client.credentials import CREDENTIALS_FILE_NAME

SERVER_URL_ENV = "WATCHDESK_SERVER_URL"


def get_config_dir() -> Path:
    """Get the configuration directory for watchdesk.

    Returns:
        Path to ~/.watchdesk or equivalent.
    """
    return Path.home() / ".watchdesk"


def get_config_file() -> Path:
    """Get the path to the config file."""
    return get_config_dir() / "config.json"


def get_credentials_file() -> Path:
    """Get the path to the stored access and refresh tokens."""
    return get_config_dir() / CREDENTIALS_FILE_NAME


def load_config() -> dict[str, str]:
    """Load configuration from config file."""
    config_file = get_config_file()
    if config_file.exists():
        return dict(json.loads(config_file.read_text()))
    return {}


def save_config(config: dict[str, str]) -> None:
    """Save configuration to config file."""
    config_file = get_config_file()
    config_file.parent.mkdir(parents=True, exist_ok=True)
    config_file.write_text(json.dumps(config, indent=2))


def resolve_server_url(option: str | None) -> str | None:
    """Pick the server URL from the command line, environment or config file.

    Args:
        option: Value of --server, if given.

    Returns:
        Server URL without trailing slash, or None if not configured.
    """
    url = option or os.environ.get(SERVER_URL_ENV) or load_config().get("server_url")
    return url.rstrip("/") if url else None
