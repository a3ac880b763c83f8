"""Ports (interfaces) used by the core pipeline.

Ports define the minimal contracts for the chat gateway and the network
fetcher so that the core can be reused with different backends.
"""

from __future__ import annotations

from typing import AsyncContextManager, BinaryIO, Optional, Protocol

from core.models import FetchedBody, ProgressEvent


class ChatGatewayPort(Protocol):
    """Chat operations required by the core pipeline."""

    async def send_message(self, chat_id: int, text: str) -> int:
        ...

    async def edit_message(self, chat_id: int, message_id: int, text: str) -> None:
        ...

    async def send_document(
        self,
        chat_id: int,
        handle: BinaryIO,
        file_name: str,
        reply_to: int,
    ) -> None:
        ...


class FetcherPort(Protocol):
    """Network operations required by the core pipeline."""

    async def probe(self, url: str) -> Optional[int]:
        ...

    def open(self, url: str) -> AsyncContextManager[FetchedBody]:
        ...


class ProgressListener(Protocol):
    """Receives progress values from a ProgressTap or Throttle."""

    async def on_progress(self, event: ProgressEvent) -> None:
        ...
