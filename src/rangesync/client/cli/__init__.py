"""Command-line interface for rangesync.

This module provides the main CLI entry point and assembles all commands.

Commands:
- make-manifest: Hash a file and write its chunk manifest
- sync: Update a local file from a remote one, fetching only changed chunks
"""

from __future__ import annotations

import click

from rangesync.client.cli.config import (
    get_config_dir,
    get_config_file,
    load_config,
    load_sync_config,
    setup_logging,
)
from rangesync.client.cli.manifest import make_manifest
from rangesync.client.cli.sync import sync


@click.group()
@click.version_option(package_name="rangesync")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
def cli(verbose: bool) -> None:
    """rangesync - Delta file sync over plain HTTP Range requests."""
    setup_logging(verbose)


cli.add_command(make_manifest)
cli.add_command(sync)


def main() -> None:
    """Entry point for the CLI."""
    cli()


__all__ = [
    # Main entry points
    "cli",
    "main",
    # Config utilities
    "get_config_dir",
    "get_config_file",
    "load_config",
    "load_sync_config",
    "setup_logging",
]
