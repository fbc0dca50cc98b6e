"""Shared configuration for rangesync.

This module defines the configuration used by the manifest tooling,
the HTTP client and the sync engine.
"""

from __future__ import annotations

from dataclasses import dataclass

from rangesync.core.codec import MAX_DIGEST_SIZE
from rangesync.core.manifest import DEFAULT_CHUNK_SIZE, DEFAULT_DIGEST_SIZE


@dataclass
class SyncConfig:
    """Configuration for building manifests and syncing files.

    Attributes:
        chunk_size: Bytes per chunk when building manifests.
        digest_size: Digest width in bytes when building manifests.
        timeout: HTTP request timeout in seconds.
        verify_ssl: Whether to verify SSL certificates (default True).
        hash_workers: Threads used to hash chunks. None means CPU count.
    """

    chunk_size: int = DEFAULT_CHUNK_SIZE
    digest_size: int = DEFAULT_DIGEST_SIZE
    timeout: float = 30.0
    verify_ssl: bool = True
    hash_workers: int | None = None

    def __post_init__(self) -> None:
        """Validate values.

        Raises:
            TypeError: If a value has the wrong type (e.g. a string read
                from a config file).
            ValueError: If a value is out of range.
        """
        for name in ("chunk_size", "digest_size", "hash_workers"):
            value = getattr(self, name)
            if value is None and name == "hash_workers":
                continue
            if isinstance(value, bool) or not isinstance(value, int):
                raise TypeError(f"{name} must be an integer, got {value!r}")
        if isinstance(self.timeout, bool) or not isinstance(self.timeout, (int, float)):
            raise TypeError(f"timeout must be a number, got {self.timeout!r}")

        if self.chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {self.chunk_size}")
        if not 1 <= self.digest_size <= MAX_DIGEST_SIZE:
            raise ValueError(
                f"digest_size must be in [1, {MAX_DIGEST_SIZE}], got {self.digest_size}"
            )
        if self.timeout <= 0:
            raise ValueError(f"timeout must be positive, got {self.timeout}")
        if self.hash_workers is not None and self.hash_workers <= 0:
            raise ValueError(
                f"hash_workers must be positive, got {self.hash_workers}"
            )
