"""Configuration utilities for rangesync CLI.

This module provides shared configuration functions used across CLI commands.
Values come from the SyncConfig defaults, overlaid by ~/.rangesync/config.json
if present, overlaid by command-line options.
"""

from __future__ import annotations

import json
import logging
from dataclasses import fields
from pathlib import Path
from typing import Any

import click

from rangesync.core.config import SyncConfig

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def get_config_dir() -> Path:
    """Get the configuration directory for rangesync.

    Returns:
        Path to ~/.rangesync or equivalent.
    """
    return Path.home() / ".rangesync"


def get_config_file() -> Path:
    """Get the path to the config file."""
    return get_config_dir() / "config.json"


def load_config() -> dict[str, Any]:
    """Load configuration from config file."""
    config_file = get_config_file()
    if config_file.exists():
        return dict(json.loads(config_file.read_text()))
    return {}


def load_sync_config(**overrides: Any) -> SyncConfig:
    """Build a SyncConfig from the config file and explicit overrides.

    Unknown keys in the config file are ignored. Overrides set to None
    are treated as not given.

    Args:
        **overrides: SyncConfig fields set on the command line.

    Returns:
        Validated configuration.

    Raises:
        TypeError: If a value has the wrong type.
        ValueError: If a value is invalid.
    """
    known = {f.name for f in fields(SyncConfig)}
    values = {k: v for k, v in load_config().items() if k in known}
    values.update({k: v for k, v in overrides.items() if v is not None})
    return SyncConfig(**values)


class ClickEchoHandler(logging.Handler):
    """Logging handler that writes through click.echo to stderr.

    Resolves the stream on every record, so it follows stream swaps
    such as the ones made by CliRunner.
    """

    def emit(self, record: logging.LogRecord) -> None:
        try:
            click.echo(self.format(record), err=True)
        except Exception:
            self.handleError(record)


def setup_logging(verbose: bool = False) -> None:
    """Configure logging for the rangesync logger hierarchy.

    Args:
        verbose: Log debug messages instead of warnings and errors only.
    """
    logger = logging.getLogger("rangesync")
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)

    if not any(isinstance(h, ClickEchoHandler) for h in logger.handlers):
        handler = ClickEchoHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
