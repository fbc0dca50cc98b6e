"""Delta sync - Chunk diffing, range fetching and progress reporting."""

from rangesync.client.sync.engine import DeltaSync, mismatched_chunks
from rangesync.client.sync.retry import (
    DEFAULT_MAX_RETRIES,
    RETRYABLE_EXCEPTIONS,
    retry_with_backoff,
)
from rangesync.client.sync.types import (
    ChannelClosedError,
    ProgressChannel,
    SyncError,
    SyncPhase,
    SyncResult,
)

__all__ = [
    # Engine
    "DeltaSync",
    "mismatched_chunks",
    # Retry
    "DEFAULT_MAX_RETRIES",
    "RETRYABLE_EXCEPTIONS",
    "retry_with_backoff",
    # Types
    "ChannelClosedError",
    "ProgressChannel",
    "SyncError",
    "SyncPhase",
    "SyncResult",
]
