"""HTTP client for plain file servers.

This module provides:
- HTTPClient: async HTTP client used to sync against a file server
- Manifest retrieval (plain GET, decoded with the manifest codec)
- Chunk retrieval (GET with a Range header)
"""

from __future__ import annotations

import logging

import httpx

from rangesync.core.codec import decode_manifest
from rangesync.core.config import SyncConfig
from rangesync.core.manifest import Manifest

logger = logging.getLogger(__name__)

# Success statuses that carry the whole resource.
_FULL_BODY_STATUSES = tuple(s for s in range(200, 300) if s != 206)


class APIError(Exception):
    """Base exception for HTTP errors."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class NetworkError(APIError):
    """Connection or transport failure."""


class ProtocolError(APIError):
    """Server answered with an unexpected status or body."""


class NotFoundError(ProtocolError):
    """Resource not found."""


class HTTPClient:
    """Async HTTP client for manifest and chunk retrieval.

    No request is retried; retry policy belongs to the caller.
    """

    def __init__(self, config: SyncConfig | None = None) -> None:
        """Initialize the client.

        Args:
            config: Sync configuration (timeout, SSL verification).
        """
        self._config = config or SyncConfig()
        self._client = httpx.AsyncClient(
            timeout=self._config.timeout,
            verify=self._config.verify_ssl,
            follow_redirects=True,
        )

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()

    async def __aenter__(self) -> HTTPClient:
        """Context manager entry."""
        return self

    async def __aexit__(self, *args: object) -> None:
        """Context manager exit."""
        await self.close()

    async def _get(self, url: str, headers: dict[str, str] | None = None) -> httpx.Response:
        """Issue a GET, mapping transport failures to NetworkError."""
        try:
            return await self._client.get(url, headers=headers)
        except httpx.TransportError as e:
            raise NetworkError(f"GET {url} failed: {e}") from e

    def _raise_for_status(self, response: httpx.Response, expected: tuple[int, ...]) -> None:
        """Raise ProtocolError unless the status is one of `expected`."""
        status = response.status_code
        if status in expected:
            return
        if status == 404:
            raise NotFoundError(f"Not found: {response.url}", 404)
        raise ProtocolError(f"HTTP {status} for {response.url}", status)

    # === Manifest operations ===

    async def fetch_manifest(self, url: str) -> Manifest:
        """Fetch and decode a remote manifest.

        Args:
            url: Manifest URL.

        Returns:
            Decoded manifest.

        Raises:
            NetworkError: On connection failure.
            ProtocolError: If the server does not answer a success status
                with a full body (any 2xx except 206 Partial Content).
            DecodeError: If the body is not a valid manifest.
        """
        response = await self._get(url)
        self._raise_for_status(response, _FULL_BODY_STATUSES)
        manifest = decode_manifest(response.content)
        logger.debug(
            f"Fetched manifest {url}: {manifest.chunk_count} chunks, "
            f"{manifest.file_size_bytes} bytes"
        )
        return manifest

    # === Chunk operations ===

    async def fetch_range(self, url: str, start: int, end: int) -> bytes:
        """Fetch an inclusive byte range of a remote file.

        The end may overshoot the file; the server is expected to clamp it
        and return only the valid bytes.

        Args:
            url: File URL.
            start: First byte offset.
            end: Last byte offset (inclusive).

        Returns:
            The bytes returned by the server.

        Raises:
            NetworkError: On connection failure.
            ProtocolError: If the server answers anything but partial
                content (or a full 200 body for a range starting at 0).
        """
        response = await self._get(url, headers={"Range": f"bytes={start}-{end}"})
        if response.status_code == 200 and start != 0:
            # Server ignored the Range header; the body starts at byte 0.
            raise ProtocolError(
                f"Server ignored Range bytes={start}-{end} for {url}", 200
            )
        self._raise_for_status(response, (200, 206))
        return response.content
