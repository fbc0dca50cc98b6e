"""Shared pytest fixtures.

Provides an in-process file server, mounted on pytest-httpx, that serves
published files with standard Range semantics: a single `bytes=a-b` range
is answered 206 with the end clamped to the file length.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

import httpx
import pytest

BASE_URL = "http://files.test"

_RANGE_RE = re.compile(r"bytes=(\d+)-(\d+)")


@dataclass
class FakeFileServer:
    """Serves in-memory files over mocked HTTP."""

    files: dict[str, bytes] = field(default_factory=dict)
    requests: list[httpx.Request] = field(default_factory=list)
    fail_after_ranges: int | None = None

    def publish(self, name: str, data: bytes) -> str:
        """Publish a file and return its URL."""
        self.files[name] = data
        return f"{BASE_URL}/{name}"

    @property
    def range_headers(self) -> list[str]:
        """Range headers of every request received, in order."""
        return [r.headers["Range"] for r in self.requests if "Range" in r.headers]

    def handle(self, request: httpx.Request) -> httpx.Response:
        """pytest-httpx callback."""
        self.requests.append(request)
        name = request.url.path.lstrip("/")
        if name not in self.files:
            return httpx.Response(404, text="not found")
        data = self.files[name]

        range_header = request.headers.get("Range")
        if range_header is None:
            return httpx.Response(200, content=data)

        if self.fail_after_ranges is not None:
            if len(self.range_headers) > self.fail_after_ranges:
                raise httpx.ConnectError("connection reset", request=request)

        match = _RANGE_RE.fullmatch(range_header)
        if match is None:
            return httpx.Response(416)
        start, end = int(match.group(1)), int(match.group(2))
        if start >= len(data) or end < start:
            return httpx.Response(
                416, headers={"Content-Range": f"bytes */{len(data)}"}
            )
        end = min(end, len(data) - 1)
        return httpx.Response(
            206,
            content=data[start : end + 1],
            headers={"Content-Range": f"bytes {start}-{end}/{len(data)}"},
        )


@pytest.fixture
def file_server(httpx_mock) -> FakeFileServer:  # type: ignore[no-untyped-def]
    """Mount a fake range-capable file server on httpx."""
    server = FakeFileServer()
    httpx_mock.add_callback(server.handle, is_reusable=True)
    return server
