"""Manifest command for rangesync CLI.

Commands:
- make-manifest: Hash a file and write its encoded manifest
"""

from __future__ import annotations

import sys
from pathlib import Path

import click

from rangesync.client.cli.config import load_sync_config

MANIFEST_SUFFIX = ".hashes.bin"


def default_manifest_path(input_file: Path) -> Path:
    """Get the default manifest path for a file (name + .hashes.bin)."""
    return input_file.with_name(input_file.name + MANIFEST_SUFFIX)


@click.command("make-manifest")
@click.argument(
    "input_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help=f"Output manifest file (default: INPUT_FILE{MANIFEST_SUFFIX}).",
)
@click.option("--chunk-size", type=int, default=None, help="Bytes per chunk.")
@click.option("--digest-size", type=int, default=None, help="Digest width in bytes.")
def make_manifest(
    input_file: Path,
    output: Path | None,
    chunk_size: int | None,
    digest_size: int | None,
) -> None:
    """Generate the chunk manifest of INPUT_FILE.

    Publish the manifest next to the file on the HTTP server so clients
    can sync against it.
    """
    from rangesync.core.codec import encode_manifest
    from rangesync.core.manifest import build_manifest

    try:
        config = load_sync_config(chunk_size=chunk_size, digest_size=digest_size)
    except (TypeError, ValueError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    output_path = output or default_manifest_path(input_file)

    try:
        manifest = build_manifest(
            input_file,
            config.chunk_size,
            config.digest_size,
            config.hash_workers,
        )
        output_path.write_bytes(encode_manifest(manifest))
    except OSError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    click.echo(
        f"Wrote {output_path}: {manifest.chunk_count} chunks, "
        f"{manifest.file_size_bytes} bytes"
    )
