"""Shared types for sync operations.

This module provides:
- SyncError, ChannelClosedError: Exception classes
- SyncPhase: Phases of a single update() call
- SyncResult: Result of an update() call
- ProgressChannel: Async channel carrying progress values
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from dataclasses import dataclass
from enum import Enum, auto
from pathlib import Path


class SyncError(Exception):
    """Base exception for sync errors."""


class ChannelClosedError(SyncError):
    """The progress channel was closed by its consumer."""


class SyncPhase(Enum):
    """Phase of a single update() call."""

    IDLE = auto()
    LOCAL_MANIFEST_RESOLVED = auto()
    SHORT_CIRCUIT_DONE = auto()
    DIFFING = auto()
    DONE = auto()
    FAILED = auto()


@dataclass
class SyncResult:
    """Result of an update() call.

    Attributes:
        path: Destination file.
        size: Final size of the destination in bytes.
        chunks_total: Number of chunks in the remote manifest.
        chunks_fetched: Number of chunks downloaded.
        bytes_fetched: Number of bytes downloaded and written.
        phase: Final phase (SHORT_CIRCUIT_DONE or DONE).
    """

    path: Path
    size: int
    chunks_total: int
    chunks_fetched: int
    bytes_fetched: int
    phase: SyncPhase

    @property
    def up_to_date(self) -> bool:
        """True if the destination already matched the remote file."""
        return self.phase is SyncPhase.SHORT_CIRCUIT_DONE


class ProgressChannel:
    """Async channel of progress values (settled byte counts).

    The consumer reads with recv() or `async for` and calls close() when it
    stops listening. After close(), send() raises ChannelClosedError, even
    for a send already waiting on a full channel. Values buffered before
    close() can still be read.

    Usage:
        channel = ProgressChannel(maxsize=1)
        reader = asyncio.create_task(show(channel))
        await engine.update(manifest, url, path, progress=channel)
        channel.close()
    """

    def __init__(self, maxsize: int = 0) -> None:
        """Initialize the channel.

        Args:
            maxsize: Buffer size. 0 means unbounded.
        """
        self._queue: asyncio.Queue[int] = asyncio.Queue(maxsize)
        self._closed = asyncio.Event()

    @property
    def closed(self) -> bool:
        """True once close() has been called."""
        return self._closed.is_set()

    def close(self) -> None:
        """Close the channel. Idempotent."""
        self._closed.set()

    async def send(self, value: int) -> None:
        """Send a value, waiting for room if the channel is full.

        Raises:
            ChannelClosedError: If the channel is or becomes closed.
        """
        if self.closed:
            raise ChannelClosedError("Progress channel is closed")
        if await self._race(self._queue.put(value)) is _CLOSED:
            raise ChannelClosedError("Progress channel closed while sending")

    async def recv(self) -> int | None:
        """Receive the next value, or None once closed and drained."""
        if not self._queue.empty():
            return self._queue.get_nowait()
        if self.closed:
            return None
        result = await self._race(self._queue.get())
        return None if result is _CLOSED else result

    async def _race(self, operation):  # type: ignore[no-untyped-def]
        """Await a queue operation unless the channel closes first."""
        op_task = asyncio.ensure_future(operation)
        closed_task = asyncio.ensure_future(self._closed.wait())
        try:
            done, _ = await asyncio.wait(
                {op_task, closed_task}, return_when=asyncio.FIRST_COMPLETED
            )
        finally:
            closed_task.cancel()
            if not op_task.done():
                op_task.cancel()
        if op_task in done:
            return op_task.result()
        return _CLOSED

    def __aiter__(self) -> AsyncIterator[int]:
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[int]:
        while (value := await self.recv()) is not None:
            yield value


_CLOSED = object()
