"""Fixed-size chunk manifests for rangesync.

This module provides:
- Manifest: ordered chunk digests plus the geometry of the file they describe
- build_manifest: hash a file into a manifest, chunks in parallel
- noise_manifest: random-digest manifest meaning "no trustworthy local data"
"""

from __future__ import annotations

import hashlib
import logging
import os
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path

logger = logging.getLogger(__name__)

# Chunk/digest configuration
DEFAULT_CHUNK_SIZE = 1024 * 1024  # 1 MiB
DEFAULT_DIGEST_SIZE = 8  # bytes


@dataclass(frozen=True)
class Manifest:
    """Describes a file's expected content, one digest per chunk.

    Equality is structural over chunk_size, tail and the digest sequence.
    Two manifests are only comparable when they share the same chunk_size.

    Attributes:
        digests: Ordered chunk digests, each digest_size bytes long.
        chunk_size: Bytes per chunk, except possibly the last one.
        tail: Size of the final chunk (0 only for the empty file).
        digest_size: Width of every digest in bytes.
    """

    digests: tuple[bytes, ...]
    chunk_size: int
    tail: int
    digest_size: int = field(default=DEFAULT_DIGEST_SIZE, compare=False)

    def __post_init__(self) -> None:
        """Validate geometry and digest widths."""
        if self.chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {self.chunk_size}")
        if self.digest_size <= 0:
            raise ValueError(f"digest_size must be positive, got {self.digest_size}")
        if self.digests:
            if not 1 <= self.tail <= self.chunk_size:
                raise ValueError(
                    f"tail must be in [1, {self.chunk_size}], got {self.tail}"
                )
        elif self.tail != 0:
            raise ValueError(f"empty manifest must have tail 0, got {self.tail}")
        for index, digest in enumerate(self.digests):
            if len(digest) != self.digest_size:
                raise ValueError(
                    f"digest {index} is {len(digest)} bytes, expected {self.digest_size}"
                )

    @property
    def chunk_count(self) -> int:
        """Number of chunks in the described file."""
        return len(self.digests)

    @property
    def file_size_bytes(self) -> int:
        """Size in bytes of the described file."""
        if not self.digests:
            return 0
        return self.chunk_size * (len(self.digests) - 1) + self.tail

    def chunk_offset(self, index: int) -> int:
        """Absolute byte offset of chunk `index`."""
        return index * self.chunk_size

    def chunk_length(self, index: int) -> int:
        """Actual number of bytes in chunk `index`."""
        if not 0 <= index < len(self.digests):
            raise IndexError(f"chunk index {index} out of range")
        if index == len(self.digests) - 1:
            return self.tail
        return self.chunk_size

    def chunk_range(self, index: int) -> tuple[int, int]:
        """Inclusive byte range to request for chunk `index`.

        The end is always a full chunk past the start, so it overshoots the
        real end of the file for a short last chunk. Servers clamp it.
        """
        start = self.chunk_offset(index)
        return start, start + self.chunk_size - 1


def chunk_geometry(file_size: int, chunk_size: int) -> tuple[int, int]:
    """Compute chunk count and tail size for a file.

    Args:
        file_size: File size in bytes.
        chunk_size: Bytes per chunk.

    Returns:
        Tuple of (chunk count, size of the last chunk).
    """
    if chunk_size <= 0:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}")
    if file_size < 0:
        raise ValueError(f"file_size must not be negative, got {file_size}")
    if file_size == 0:
        return 0, 0
    count = (file_size + chunk_size - 1) // chunk_size
    return count, file_size - (count - 1) * chunk_size


def get_chunk_digest(data: bytes, digest_size: int = DEFAULT_DIGEST_SIZE) -> bytes:
    """Compute the digest of one chunk.

    Uses SHAKE-256, an extendable-output function, so any digest width
    can be emitted directly.

    Args:
        data: Raw chunk bytes.
        digest_size: Number of digest bytes to emit.

    Returns:
        Digest of exactly digest_size bytes.
    """
    return hashlib.shake_256(data).digest(digest_size)


def _hash_chunk(path: Path, offset: int, length: int, digest_size: int) -> bytes:
    # Own handle per task: ranges never overlap, so no lock is needed.
    with open(path, "rb") as f:
        f.seek(offset)
        data = f.read(length)
    return get_chunk_digest(data, digest_size)


def build_manifest(
    path: Path,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    digest_size: int = DEFAULT_DIGEST_SIZE,
    max_workers: int | None = None,
) -> Manifest:
    """Hash a file into a manifest.

    Chunks are hashed independently on a thread pool and assembled back
    in file order.

    Args:
        path: File to hash.
        chunk_size: Bytes per chunk.
        digest_size: Digest width in bytes.
        max_workers: Hashing threads. Defaults to the CPU count.

    Returns:
        Manifest describing the file.

    Raises:
        FileNotFoundError: If the file does not exist.
        OSError: If the file cannot be read.
    """
    path = Path(path)
    file_size = path.stat().st_size
    count, tail = chunk_geometry(file_size, chunk_size)
    workers = max_workers or os.cpu_count() or 1

    with ThreadPoolExecutor(max_workers=workers) as executor:
        futures = [
            executor.submit(
                _hash_chunk,
                path,
                index * chunk_size,
                tail if index == count - 1 else chunk_size,
                digest_size,
            )
            for index in range(count)
        ]
        digests = tuple(future.result() for future in futures)

    logger.debug(f"Hashed {path}: {file_size} bytes, {count} chunks")
    return Manifest(
        digests=digests,
        chunk_size=chunk_size,
        tail=tail,
        digest_size=digest_size,
    )


def noise_manifest(
    chunk_size: int,
    file_size: int,
    digest_size: int = DEFAULT_DIGEST_SIZE,
) -> Manifest:
    """Build a manifest of random digests for a file of the given size.

    It has the geometry build_manifest would produce, but every digest is
    random, so it mismatches every chunk of a real manifest with
    overwhelming probability.

    Args:
        chunk_size: Bytes per chunk.
        file_size: Size of the file being described.
        digest_size: Digest width in bytes.

    Returns:
        Noise manifest.
    """
    count, tail = chunk_geometry(file_size, chunk_size)
    return Manifest(
        digests=tuple(os.urandom(digest_size) for _ in range(count)),
        chunk_size=chunk_size,
        tail=tail,
        digest_size=digest_size,
    )
