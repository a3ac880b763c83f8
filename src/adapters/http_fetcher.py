"""aiohttp fetcher adapter.

Implements the fetcher port with a shared aiohttp ClientSession. Library
exceptions are translated into the core error taxonomy here so the pipeline
never sees aiohttp types.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import aiohttp

from core.config import DEFAULT_CHUNK_SIZE
from core.errors import ProbeFailed, TransferFailed
from core.models import FetchedBody

LOGGER = logging.getLogger(__name__)


def build_timeout(connect: float = 30, read: float = 60) -> aiohttp.ClientTimeout:
    """Return a timeout that only cuts off stalled connects and socket reads."""

    return aiohttp.ClientTimeout(total=None, sock_connect=connect, sock_read=read)


class AiohttpFetcher:
    """Fetcher adapter backed by aiohttp (caller manages the session lifecycle)."""

    def __init__(self, session: aiohttp.ClientSession, chunk_size: int = DEFAULT_CHUNK_SIZE) -> None:
        self._session = session
        self._chunk_size = chunk_size

    async def probe(self, url: str) -> Optional[int]:
        """HEAD the URL and return its declared Content-Length, if any."""

        try:
            async with self._session.head(url, allow_redirects=True) as response:
                if response.status >= 400:
                    raise ProbeFailed(f"HEAD {url} returned HTTP {response.status}")
                LOGGER.debug("HEAD %s declared %s bytes", url, response.content_length)
                return response.content_length
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            raise ProbeFailed(f"HEAD {url} failed: {exc}") from exc

    @asynccontextmanager
    async def open(self, url: str) -> AsyncIterator[FetchedBody]:
        """GET the URL and yield its body as a chunk iterator.

        The chunk iterator must be consumed inside the ``async with`` block;
        the response is closed when the block exits.
        """

        try:
            response = await self._session.get(url, allow_redirects=True)
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            raise TransferFailed(f"GET {url} failed: {exc}", during="download") from exc

        try:
            if response.status >= 400:
                raise TransferFailed(f"GET {url} returned HTTP {response.status}", during="download")
            yield FetchedBody(
                content_length=response.content_length,
                chunks=self._iter_chunks(response),
            )
        finally:
            response.release()

    async def _iter_chunks(self, response: aiohttp.ClientResponse) -> AsyncIterator[bytes]:
        try:
            async for chunk in response.content.iter_chunked(self._chunk_size):
                yield chunk
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            raise TransferFailed(f"Reading body failed: {exc}", during="download") from exc
