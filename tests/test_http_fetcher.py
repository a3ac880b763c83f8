from __future__ import annotations

import asyncio
from typing import Optional

import aiohttp
import pytest

from adapters.http_fetcher import AiohttpFetcher, build_timeout
from core.errors import ProbeFailed, TransferFailed


class FakeContent:
    def __init__(self, chunks: list[bytes], error: Optional[Exception] = None) -> None:
        self._chunks = chunks
        self._error = error
        self.chunk_sizes: list[int] = []

    async def iter_chunked(self, size: int):
        self.chunk_sizes.append(size)
        for chunk in self._chunks:
            yield chunk
        if self._error is not None:
            raise self._error


class FakeResponse:
    def __init__(
        self,
        status: int = 200,
        content_length: Optional[int] = None,
        chunks: Optional[list[bytes]] = None,
        error: Optional[Exception] = None,
    ) -> None:
        self.status = status
        self.content_length = content_length
        self.content = FakeContent(chunks or [], error)
        self.released = False

    def release(self) -> None:
        self.released = True

    async def __aenter__(self) -> "FakeResponse":
        return self

    async def __aexit__(self, *exc_info) -> None:
        self.released = True


class _Failing:
    def __init__(self, error: Exception) -> None:
        self._error = error

    async def __aenter__(self):
        raise self._error

    async def __aexit__(self, *exc_info) -> None:
        return None


class FakeSession:
    def __init__(self, response: Optional[FakeResponse] = None, error: Optional[Exception] = None) -> None:
        self._response = response
        self._error = error
        self.calls: list[tuple[str, str, bool]] = []

    def head(self, url: str, allow_redirects: bool = False):
        self.calls.append(("HEAD", url, allow_redirects))
        if self._error is not None:
            return _Failing(self._error)
        return self._response

    async def get(self, url: str, allow_redirects: bool = True):
        self.calls.append(("GET", url, allow_redirects))
        if self._error is not None:
            raise self._error
        return self._response


async def _read_all(fetcher: AiohttpFetcher, url: str) -> tuple[Optional[int], list[bytes]]:
    async with fetcher.open(url) as body:
        return body.content_length, [chunk async for chunk in body.chunks]


def test_probe_returns_content_length_following_redirects() -> None:
    session = FakeSession(FakeResponse(content_length=1234))
    fetcher = AiohttpFetcher(session)

    assert asyncio.run(fetcher.probe("https://example.com/f")) == 1234
    assert session.calls == [("HEAD", "https://example.com/f", True)]


def test_probe_returns_none_without_content_length() -> None:
    fetcher = AiohttpFetcher(FakeSession(FakeResponse(content_length=None)))
    assert asyncio.run(fetcher.probe("https://example.com/f")) is None


def test_probe_http_error_raises_probe_failed() -> None:
    fetcher = AiohttpFetcher(FakeSession(FakeResponse(status=404)))
    with pytest.raises(ProbeFailed, match="404"):
        asyncio.run(fetcher.probe("https://example.com/missing"))


def test_probe_connection_error_raises_probe_failed() -> None:
    fetcher = AiohttpFetcher(FakeSession(error=aiohttp.ClientConnectionError("dns")))
    with pytest.raises(ProbeFailed):
        asyncio.run(fetcher.probe("https://nowhere.invalid/f"))


def test_open_streams_chunks_and_releases_response() -> None:
    response = FakeResponse(content_length=6, chunks=[b"abc", b"def"])
    fetcher = AiohttpFetcher(FakeSession(response), chunk_size=3)

    length, chunks = asyncio.run(_read_all(fetcher, "https://example.com/f"))

    assert length == 6
    assert chunks == [b"abc", b"def"]
    assert response.content.chunk_sizes == [3]
    assert response.released


def test_open_http_error_raises_transfer_failed() -> None:
    response = FakeResponse(status=500)
    fetcher = AiohttpFetcher(FakeSession(response))

    with pytest.raises(TransferFailed) as excinfo:
        asyncio.run(_read_all(fetcher, "https://example.com/f"))

    assert excinfo.value.during == "download"
    assert response.released


def test_open_connection_error_raises_transfer_failed() -> None:
    fetcher = AiohttpFetcher(FakeSession(error=aiohttp.ClientConnectionError("refused")))
    with pytest.raises(TransferFailed):
        asyncio.run(_read_all(fetcher, "https://example.com/f"))


def test_mid_stream_error_is_translated() -> None:
    response = FakeResponse(content_length=10, chunks=[b"abc"], error=aiohttp.ClientPayloadError("cut"))
    fetcher = AiohttpFetcher(FakeSession(response))

    with pytest.raises(TransferFailed, match="cut"):
        asyncio.run(_read_all(fetcher, "https://example.com/f"))

    assert response.released


def test_build_timeout_has_no_total_cap() -> None:
    timeout = build_timeout(connect=5, read=7)
    assert timeout.total is None
    assert timeout.sock_connect == 5
    assert timeout.sock_read == 7
