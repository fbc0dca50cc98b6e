"""Tests for the rangesync HTTP client."""

import httpx
import pytest

from rangesync.client.api import (
    APIError,
    HTTPClient,
    NetworkError,
    NotFoundError,
    ProtocolError,
)
from rangesync.core.codec import DecodeError, encode_manifest
from rangesync.core.config import SyncConfig
from rangesync.core.manifest import Manifest

MANIFEST_URL = "http://test/file.bin.hashes.bin"
FILE_URL = "http://test/file.bin"


def make_config() -> SyncConfig:
    """Create a SyncConfig for testing."""
    return SyncConfig(timeout=5.0)


class TestErrors:
    """Tests for the exception hierarchy."""

    def test_status_code_carried(self) -> None:
        """Errors carry the HTTP status code."""
        error = ProtocolError("HTTP 500", 500)
        assert error.status_code == 500
        assert str(error) == "HTTP 500"

    def test_hierarchy(self) -> None:
        """All HTTP errors derive from APIError."""
        assert issubclass(NetworkError, APIError)
        assert issubclass(ProtocolError, APIError)
        assert issubclass(NotFoundError, ProtocolError)


class TestFetchManifest:
    """Tests for manifest retrieval."""

    @pytest.mark.asyncio
    async def test_fetch_and_decode(self, httpx_mock) -> None:  # type: ignore[no-untyped-def]
        """Should GET the manifest and decode it."""
        manifest = Manifest(digests=(b"a" * 8, b"b" * 8), chunk_size=16, tail=4)
        httpx_mock.add_response(url=MANIFEST_URL, content=encode_manifest(manifest))

        async with HTTPClient(make_config()) as client:
            fetched = await client.fetch_manifest(MANIFEST_URL)

        assert fetched == manifest

    @pytest.mark.asyncio
    async def test_not_found(self, httpx_mock) -> None:  # type: ignore[no-untyped-def]
        """Should raise NotFoundError on 404."""
        httpx_mock.add_response(url=MANIFEST_URL, status_code=404)

        async with HTTPClient(make_config()) as client:
            with pytest.raises(NotFoundError) as exc_info:
                await client.fetch_manifest(MANIFEST_URL)

        assert exc_info.value.status_code == 404

    @pytest.mark.asyncio
    async def test_server_error(self, httpx_mock) -> None:  # type: ignore[no-untyped-def]
        """Should raise ProtocolError carrying the status on 5xx."""
        httpx_mock.add_response(url=MANIFEST_URL, status_code=503)

        async with HTTPClient(make_config()) as client:
            with pytest.raises(ProtocolError) as exc_info:
                await client.fetch_manifest(MANIFEST_URL)

        assert exc_info.value.status_code == 503

    @pytest.mark.asyncio
    async def test_partial_content_rejected(self, httpx_mock) -> None:  # type: ignore[no-untyped-def]
        """A partial response is not a full manifest."""
        httpx_mock.add_response(url=MANIFEST_URL, status_code=206, content=b"RSMF")

        async with HTTPClient(make_config()) as client:
            with pytest.raises(ProtocolError) as exc_info:
                await client.fetch_manifest(MANIFEST_URL)

        assert exc_info.value.status_code == 206

    @pytest.mark.asyncio
    async def test_other_full_body_success_accepted(self, httpx_mock) -> None:  # type: ignore[no-untyped-def]
        """Any 2xx carrying the whole body, such as 203, is decoded."""
        manifest = Manifest(digests=(b"a" * 8,), chunk_size=16, tail=16)
        httpx_mock.add_response(
            url=MANIFEST_URL, status_code=203, content=encode_manifest(manifest)
        )

        async with HTTPClient(make_config()) as client:
            fetched = await client.fetch_manifest(MANIFEST_URL)

        assert fetched == manifest

    @pytest.mark.asyncio
    async def test_malformed_body(self, httpx_mock) -> None:  # type: ignore[no-untyped-def]
        """Should raise DecodeError on a malformed body."""
        httpx_mock.add_response(url=MANIFEST_URL, content=b"not a manifest")

        async with HTTPClient(make_config()) as client:
            with pytest.raises(DecodeError):
                await client.fetch_manifest(MANIFEST_URL)

    @pytest.mark.asyncio
    async def test_connection_error(self, httpx_mock) -> None:  # type: ignore[no-untyped-def]
        """Should map transport failures to NetworkError."""
        httpx_mock.add_exception(httpx.ConnectError("connection refused"))

        async with HTTPClient(make_config()) as client:
            with pytest.raises(NetworkError) as exc_info:
                await client.fetch_manifest(MANIFEST_URL)

        assert exc_info.value.status_code is None


class TestFetchRange:
    """Tests for Range requests."""

    @pytest.mark.asyncio
    async def test_sends_range_header(self, httpx_mock) -> None:  # type: ignore[no-untyped-def]
        """Should send an inclusive bytes range and return the body."""
        httpx_mock.add_response(
            url=FILE_URL,
            match_headers={"Range": "bytes=16-31"},
            status_code=206,
            content=b"x" * 16,
        )

        async with HTTPClient(make_config()) as client:
            data = await client.fetch_range(FILE_URL, 16, 31)

        assert data == b"x" * 16

    @pytest.mark.asyncio
    async def test_full_body_accepted_at_start(self, httpx_mock) -> None:  # type: ignore[no-untyped-def]
        """A 200 for a range starting at 0 is the start of the resource."""
        httpx_mock.add_response(url=FILE_URL, status_code=200, content=b"abc")

        async with HTTPClient(make_config()) as client:
            data = await client.fetch_range(FILE_URL, 0, 15)

        assert data == b"abc"

    @pytest.mark.asyncio
    async def test_ignored_range_rejected(self, httpx_mock) -> None:  # type: ignore[no-untyped-def]
        """A 200 for a range past 0 means the server ignored Range."""
        httpx_mock.add_response(url=FILE_URL, status_code=200, content=b"abc")

        async with HTTPClient(make_config()) as client:
            with pytest.raises(ProtocolError) as exc_info:
                await client.fetch_range(FILE_URL, 16, 31)

        assert exc_info.value.status_code == 200

    @pytest.mark.asyncio
    async def test_range_not_satisfiable(self, httpx_mock) -> None:  # type: ignore[no-untyped-def]
        """Should raise ProtocolError on 416."""
        httpx_mock.add_response(url=FILE_URL, status_code=416)

        async with HTTPClient(make_config()) as client:
            with pytest.raises(ProtocolError) as exc_info:
                await client.fetch_range(FILE_URL, 100, 115)

        assert exc_info.value.status_code == 416

    @pytest.mark.asyncio
    async def test_timeout(self, httpx_mock) -> None:  # type: ignore[no-untyped-def]
        """Should map timeouts to NetworkError."""
        httpx_mock.add_exception(httpx.ReadTimeout("timed out"))

        async with HTTPClient(make_config()) as client:
            with pytest.raises(NetworkError):
                await client.fetch_range(FILE_URL, 0, 15)
