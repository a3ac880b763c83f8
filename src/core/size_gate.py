"""Pre-transfer size check (core domain)."""

from __future__ import annotations

import logging
from typing import Optional

from core.errors import TooLarge
from core.ports import FetcherPort

LOGGER = logging.getLogger(__name__)


class SizeGate:
    """Reject resources whose declared length exceeds the ceiling.

    An absent length is let through: the transfer proceeds with progress
    reporting disabled rather than being refused up front.
    """

    def __init__(self, fetcher: FetcherPort, max_file_size: int) -> None:
        self._fetcher = fetcher
        self._max_file_size = max_file_size

    async def check(self, url: str) -> Optional[int]:
        """Return the declared size (or None), raising ProbeFailed/TooLarge."""

        size = await self._fetcher.probe(url)
        if size is None or size < 0:
            LOGGER.info("No declared size for %s, allowing transfer", url)
            return None
        if size > self._max_file_size:
            raise TooLarge(size, self._max_file_size)
        return size
