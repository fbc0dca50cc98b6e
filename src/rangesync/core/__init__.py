"""Core module - Manifests, codec and configuration."""

from rangesync.core.codec import (
    FORMAT_VERSION,
    DecodeError,
    decode_manifest,
    encode_manifest,
)
from rangesync.core.config import SyncConfig
from rangesync.core.manifest import (
    DEFAULT_CHUNK_SIZE,
    DEFAULT_DIGEST_SIZE,
    Manifest,
    build_manifest,
    chunk_geometry,
    get_chunk_digest,
    noise_manifest,
)

__all__ = [
    # Codec
    "FORMAT_VERSION",
    "DecodeError",
    "decode_manifest",
    "encode_manifest",
    # Config
    "SyncConfig",
    # Manifest
    "DEFAULT_CHUNK_SIZE",
    "DEFAULT_DIGEST_SIZE",
    "Manifest",
    "build_manifest",
    "chunk_geometry",
    "get_chunk_digest",
    "noise_manifest",
]
