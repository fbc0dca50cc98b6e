"""Sync command for rangesync CLI.

Commands:
- sync: Bring a local file up to date with a remote one
"""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path

import click

from rangesync.client.cli.config import load_sync_config
from rangesync.client.sync.retry import DEFAULT_MAX_RETRIES
from rangesync.client.sync.types import SyncResult
from rangesync.core.config import SyncConfig


async def _consume_progress(channel, bar) -> None:  # type: ignore[no-untyped-def]
    """Advance a click progress bar from progress values."""
    async for value in channel:
        bar.update(value - bar.pos)


async def run_sync(
    manifest_url: str,
    file_url: str,
    destination: Path,
    config: SyncConfig,
    retries: int,
    show_progress: bool,
) -> SyncResult:
    """Fetch the remote manifest and update the destination, with retry.

    Each attempt re-fetches the manifest and re-diffs the destination, so
    a retried attempt only downloads chunks that are still missing.
    """
    from rangesync.client.api import HTTPClient
    from rangesync.client.sync import DeltaSync, ProgressChannel, retry_with_backoff

    async with HTTPClient(config) as client:
        engine = DeltaSync(client, hash_workers=config.hash_workers)

        async def attempt() -> SyncResult:
            remote = await client.fetch_manifest(manifest_url)
            if not show_progress:
                return await engine.update(remote, file_url, destination)

            channel = ProgressChannel(maxsize=1)
            with click.progressbar(
                length=remote.file_size_bytes,
                label=destination.name,
                file=sys.stderr,
            ) as bar:
                reader = asyncio.create_task(_consume_progress(channel, bar))
                try:
                    return await engine.update(
                        remote, file_url, destination, progress=channel
                    )
                finally:
                    channel.close()
                    await reader

        return await retry_with_backoff(attempt, max_retries=retries)


@click.command()
@click.argument("manifest_url")
@click.argument("file_url")
@click.argument("destination", type=click.Path(dir_okay=False, path_type=Path))
@click.option(
    "--retries",
    type=click.IntRange(min=0),
    default=DEFAULT_MAX_RETRIES,
    show_default=True,
    help="Retry attempts on network or server errors.",
)
@click.option("--timeout", type=float, default=None, help="HTTP timeout in seconds.")
@click.option("--no-progress", is_flag=True, help="Disable the progress bar.")
def sync(
    manifest_url: str,
    file_url: str,
    destination: Path,
    retries: int,
    timeout: float | None,
    no_progress: bool,
) -> None:
    """Update DESTINATION to match the file at FILE_URL.

    Fetches the manifest at MANIFEST_URL, compares it with DESTINATION
    chunk by chunk, and downloads only the chunks that differ.
    """
    from rangesync.client.api import APIError
    from rangesync.core.codec import DecodeError

    try:
        config = load_sync_config(timeout=timeout)
    except (TypeError, ValueError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    try:
        result = asyncio.run(
            run_sync(
                manifest_url,
                file_url,
                destination,
                config,
                retries,
                show_progress=not no_progress,
            )
        )
    except (APIError, DecodeError, OSError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    if result.up_to_date:
        click.echo(f"{destination} is already up to date ({result.size} bytes).")
    else:
        click.echo(
            f"Updated {destination}: fetched {result.chunks_fetched}/"
            f"{result.chunks_total} chunks ({result.bytes_fetched} bytes)."
        )
