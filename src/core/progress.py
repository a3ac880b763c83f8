"""Progress plumbing (core domain).

ProgressTap counts bytes flowing through an async chunk source and Throttle
rate-limits how often those progress values reach the chat.
"""

from __future__ import annotations

import time
from typing import AsyncIterator, Callable, Optional

from core.models import ProgressEvent
from core.ports import ProgressListener


class ProgressTap:
    """Byte-counting pass-through over an async chunk source.

    Chunks, errors and end-of-stream are forwarded untouched. The listener is
    only called when the declared total is known and positive.
    """

    def __init__(
        self,
        source: AsyncIterator[bytes],
        total: Optional[int],
        listener: ProgressListener,
    ) -> None:
        self._source = source
        self._total = total if total and total > 0 else None
        self._listener = listener
        self.bytes_read = 0

    def __aiter__(self) -> "ProgressTap":
        return self

    async def __anext__(self) -> bytes:
        chunk = await self._source.__anext__()
        self.bytes_read += len(chunk)
        if self._total is not None:
            percent = min(100.0, 100.0 * self.bytes_read / self._total)
            await self._listener.on_progress(
                ProgressEvent(percent=percent, bytes_read=self.bytes_read, total=self._total)
            )
        return chunk

    def current(self) -> ProgressEvent:
        """Snapshot of the progress so far."""

        if self._total is None:
            return ProgressEvent(percent=None, bytes_read=self.bytes_read)
        percent = min(100.0, 100.0 * self.bytes_read / self._total)
        return ProgressEvent(percent=percent, bytes_read=self.bytes_read, total=self._total)


class Throttle:
    """Forward progress to a sink at most once per interval."""

    def __init__(
        self,
        interval: float,
        sink: ProgressListener,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._interval = interval
        self._sink = sink
        self._clock = clock
        self.last_fired: Optional[float] = None

    async def on_progress(self, event: ProgressEvent) -> None:
        now = self._clock()
        if self.last_fired is not None and now - self.last_fired < self._interval:
            return
        self.last_fired = now
        await self._sink.on_progress(event)

    async def flush(self, event: ProgressEvent) -> None:
        """Forward unconditionally and restart the interval."""

        self.last_fired = self._clock()
        await self._sink.on_progress(event)
