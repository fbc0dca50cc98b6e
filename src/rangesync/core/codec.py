"""Binary encoding of manifests.

Layout (big-endian):

    +-------+---------+-------+------------+------+-------+---------+
    | magic | version | width | chunk_size | tail | count | digests |
    |  4B   |   1B    |  1B   |    8B      |  8B  |  8B   | count*w |
    +-------+---------+-------+------------+------+-------+---------+

Producer and consumer must agree on the format version; the digest width
travels in the header.
"""

from __future__ import annotations

import struct

from rangesync.core.manifest import Manifest

MAGIC = b"RSMF"
FORMAT_VERSION = 1

_HEADER = struct.Struct(">4sBBQQQ")
MAX_DIGEST_SIZE = 255


class DecodeError(ValueError):
    """Manifest bytes are malformed."""


def encode_manifest(manifest: Manifest) -> bytes:
    """Encode a manifest to bytes.

    Args:
        manifest: Manifest to encode.

    Returns:
        Encoded manifest.

    Raises:
        ValueError: If the digest width does not fit the header.
    """
    if manifest.digest_size > MAX_DIGEST_SIZE:
        raise ValueError(
            f"digest_size {manifest.digest_size} exceeds {MAX_DIGEST_SIZE}"
        )
    header = _HEADER.pack(
        MAGIC,
        FORMAT_VERSION,
        manifest.digest_size,
        manifest.chunk_size,
        manifest.tail,
        len(manifest.digests),
    )
    return header + b"".join(manifest.digests)


def decode_manifest(data: bytes) -> Manifest:
    """Decode bytes produced by encode_manifest.

    Args:
        data: Encoded manifest.

    Returns:
        Decoded manifest.

    Raises:
        DecodeError: If the data is truncated, has trailing bytes, an
            unknown magic or version, or describes an invalid manifest.
    """
    if len(data) < _HEADER.size:
        raise DecodeError(
            f"Manifest too short: {len(data)} bytes, header needs {_HEADER.size}"
        )
    magic, version, width, chunk_size, tail, count = _HEADER.unpack_from(data)
    if magic != MAGIC:
        raise DecodeError(f"Bad magic {magic!r}")
    if version != FORMAT_VERSION:
        raise DecodeError(f"Unsupported manifest version {version}")
    if width == 0:
        raise DecodeError("Digest width is zero")

    body = memoryview(data)[_HEADER.size :]
    expected = count * width
    if len(body) != expected:
        raise DecodeError(
            f"Expected {expected} digest bytes for {count} chunks, got {len(body)}"
        )

    digests = tuple(
        bytes(body[offset : offset + width]) for offset in range(0, expected, width)
    )
    try:
        return Manifest(
            digests=digests,
            chunk_size=chunk_size,
            tail=tail,
            digest_size=width,
        )
    except ValueError as e:
        raise DecodeError(f"Invalid manifest: {e}") from e
