"""Delta sync of a local file against a remote manifest.

This module provides:
- DeltaSync: Brings a local file up to date by fetching only the chunks
  whose digests differ from the remote manifest
- mismatched_chunks: The chunk-wise diff between two manifests

The engine keeps no checkpoint. Every chunk write is positioned and
durable, so an interrupted call leaves a file that a later update() call
finishes by re-diffing.
"""

from __future__ import annotations

import asyncio
import logging
import os
from pathlib import Path
from typing import TYPE_CHECKING, BinaryIO

from rangesync.client.api import ProtocolError
from rangesync.client.sync.types import (
    ChannelClosedError,
    ProgressChannel,
    SyncPhase,
    SyncResult,
)
from rangesync.core.manifest import Manifest, build_manifest, noise_manifest

if TYPE_CHECKING:
    from rangesync.client.api import HTTPClient

logger = logging.getLogger(__name__)


def mismatched_chunks(local: Manifest, remote: Manifest) -> list[int]:
    """List the chunk indices the local file needs from the remote one.

    Iterates by the remote chunk count; a local manifest with fewer chunks
    mismatches on every missing index.

    Args:
        local: Manifest of the local file (or noise).
        remote: Manifest of the remote file.

    Returns:
        Indices of chunks to fetch, ascending.

    Raises:
        ValueError: If the manifests use different chunk sizes.
    """
    if local.chunk_size != remote.chunk_size:
        raise ValueError(
            f"Cannot compare manifests with chunk sizes "
            f"{local.chunk_size} and {remote.chunk_size}"
        )
    return [
        index
        for index, digest in enumerate(remote.digests)
        if index >= len(local.digests) or local.digests[index] != digest
    ]


def _write_chunk(f: BinaryIO, offset: int, data: bytes) -> None:
    """Write data at an absolute offset and flush it to disk."""
    f.seek(offset)
    f.write(data)
    f.flush()
    os.fsync(f.fileno())


class DeltaSync:
    """Syncs a local file with a remote one using chunk manifests.

    Chunks are fetched one at a time, so memory is bounded by one chunk.

    Usage:
        async with HTTPClient(config) as client:
            remote = await client.fetch_manifest(manifest_url)
            result = await DeltaSync(client).update(remote, file_url, path)
    """

    def __init__(self, client: HTTPClient, hash_workers: int | None = None) -> None:
        """Initialize the engine.

        Args:
            client: HTTP client for chunk retrieval.
            hash_workers: Threads used to hash the local file. None means
                CPU count.
        """
        self._client = client
        self._hash_workers = hash_workers

    async def update(
        self,
        remote: Manifest,
        source_url: str,
        destination: Path,
        progress: ProgressChannel | None = None,
    ) -> SyncResult:
        """Bring `destination` up to date with the file at `source_url`.

        Progress values are the number of destination bytes settled so
        far: matching chunks count when the diff passes them, fetched
        chunks once written. Values never decrease and the last one is
        the final file size. A closed channel stops reporting only.

        Args:
            remote: Manifest of the remote file.
            source_url: URL of the remote file (must honor Range requests).
            destination: Local file to update. Created if absent.
            progress: Optional channel receiving progress values.

        Returns:
            SyncResult describing what was done.

        Raises:
            OSError: If the destination cannot be read or written.
            NetworkError: On connection failure.
            ProtocolError: On an unexpected status or a short chunk.
        """
        destination = Path(destination)
        reporter = _ProgressReporter(progress)
        phase = SyncPhase.IDLE
        try:
            local, trusted = await self._resolve_local_manifest(remote, destination)
            phase = self._enter(SyncPhase.LOCAL_MANIFEST_RESOLVED, destination)

            if trusted and local == remote:
                phase = self._enter(SyncPhase.SHORT_CIRCUIT_DONE, destination)
                await reporter.report(remote.file_size_bytes)
                logger.info(f"{destination} is up to date")
                return SyncResult(
                    path=destination,
                    size=remote.file_size_bytes,
                    chunks_total=remote.chunk_count,
                    chunks_fetched=0,
                    bytes_fetched=0,
                    phase=phase,
                )

            phase = self._enter(SyncPhase.DIFFING, destination)
            chunks_fetched, bytes_fetched = await self._fetch_mismatched(
                local, remote, source_url, destination, reporter
            )
            phase = self._enter(SyncPhase.DONE, destination)
        except BaseException:
            logger.debug(f"{destination}: {phase.name} -> {SyncPhase.FAILED.name}")
            raise

        logger.info(
            f"Updated {destination}: fetched {chunks_fetched}/{remote.chunk_count} "
            f"chunks ({bytes_fetched} bytes)"
        )
        return SyncResult(
            path=destination,
            size=remote.file_size_bytes,
            chunks_total=remote.chunk_count,
            chunks_fetched=chunks_fetched,
            bytes_fetched=bytes_fetched,
            phase=phase,
        )

    def _enter(self, phase: SyncPhase, destination: Path) -> SyncPhase:
        logger.debug(f"{destination}: -> {phase.name}")
        return phase

    async def _resolve_local_manifest(
        self, remote: Manifest, destination: Path
    ) -> tuple[Manifest, bool]:
        """Get the manifest to diff against.

        Returns:
            Tuple of (manifest, trusted). Untrusted manifests are noise and
            never count as a match.
        """
        if destination.exists():
            local_size = destination.stat().st_size
            if local_size == remote.file_size_bytes:
                local = await asyncio.to_thread(
                    build_manifest,
                    destination,
                    remote.chunk_size,
                    remote.digest_size,
                    self._hash_workers,
                )
                return local, True
            # Kept on disk: resized on open, then every chunk is rewritten.
            logger.info(
                f"{destination} is {local_size} bytes, remote is "
                f"{remote.file_size_bytes}; fetching every chunk"
            )
        noise = noise_manifest(
            remote.chunk_size, remote.file_size_bytes, remote.digest_size
        )
        return noise, False

    async def _fetch_mismatched(
        self,
        local: Manifest,
        remote: Manifest,
        source_url: str,
        destination: Path,
        reporter: _ProgressReporter,
    ) -> tuple[int, int]:
        """Fetch and write every mismatched chunk.

        Returns:
            Tuple of (chunks fetched, bytes fetched).
        """
        to_fetch = set(mismatched_chunks(local, remote))
        logger.debug(f"{destination}: {len(to_fetch)}/{remote.chunk_count} chunks differ")

        chunks_fetched = 0
        bytes_fetched = 0
        settled = 0

        # Create without truncating; matching chunks stay in place.
        destination.touch(exist_ok=True)
        with open(destination, "r+b") as f:
            # Grown up front so an interrupted call leaves a file whose
            # manifest is comparable on the next call. Shrinking drops
            # stale bytes, so it waits for the first successful write.
            local_size = os.fstat(f.fileno()).st_size
            if local_size < remote.file_size_bytes:
                f.truncate(remote.file_size_bytes)
            shrink_pending = local_size > remote.file_size_bytes

            for index in range(remote.chunk_count):
                length = remote.chunk_length(index)
                if index not in to_fetch:
                    settled += length
                    continue

                start, end = remote.chunk_range(index)
                data = await self._client.fetch_range(source_url, start, end)
                if len(data) != length:
                    raise ProtocolError(
                        f"Chunk {index} of {source_url}: expected {length} bytes, "
                        f"got {len(data)}"
                    )
                await asyncio.to_thread(_write_chunk, f, start, data)
                if shrink_pending:
                    f.truncate(remote.file_size_bytes)
                    shrink_pending = False

                chunks_fetched += 1
                bytes_fetched += length
                settled += length
                logger.debug(
                    f"Fetched chunk {index + 1}/{remote.chunk_count} of {destination}"
                )
                await reporter.report(settled)

            if shrink_pending:
                f.truncate(remote.file_size_bytes)

        await reporter.report(settled)
        return chunks_fetched, bytes_fetched


class _ProgressReporter:
    """Forwards progress to a channel until the channel closes."""

    def __init__(self, channel: ProgressChannel | None) -> None:
        self._channel = channel
        self._last: int | None = None

    async def report(self, value: int) -> None:
        if self._channel is None or value == self._last:
            return
        if self._channel.closed:
            self._channel = None
            return
        try:
            await self._channel.send(value)
        except ChannelClosedError:
            logger.debug("Progress channel closed, no longer reporting")
            self._channel = None
            return
        self._last = value
