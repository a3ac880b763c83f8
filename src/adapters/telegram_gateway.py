"""Telethon chat gateway adapter.

Implements the chat gateway port on a bot-authorized TelegramClient.
"""

from __future__ import annotations

import logging
from typing import BinaryIO

from telethon import TelegramClient, errors
from telethon.tl.types import DocumentAttributeFilename

from core.errors import GatewayUnavailable, UploadFailed

LOGGER = logging.getLogger(__name__)

# RPC error messages Telegram uses when an upload exceeds what it accepts.
_TOO_LARGE_ERRORS = {
    "FILE_PART_TOO_BIG",
    "FILE_PART_SIZE_INVALID",
    "FILE_TOO_LARGE",
    "ENTITY_TOO_LARGE",
}


def _is_too_large(exc: errors.RPCError) -> bool:
    message = str(getattr(exc, "message", "") or "").upper()
    return any(message.startswith(code) for code in _TOO_LARGE_ERRORS)


class TelethonChatGateway:
    """Gateway adapter that talks to Telegram through Telethon."""

    def __init__(self, client: TelegramClient) -> None:
        self._client = client

    async def send_message(self, chat_id: int, text: str) -> int:
        try:
            message = await self._client.send_message(chat_id, text)
        except (errors.RPCError, OSError) as exc:
            raise GatewayUnavailable(f"send_message to {chat_id} failed: {exc}") from exc
        return message.id

    async def edit_message(self, chat_id: int, message_id: int, text: str) -> None:
        try:
            await self._client.edit_message(chat_id, message_id, text)
        except errors.MessageNotModifiedError:
            LOGGER.debug("Status message %s unchanged", message_id)

    async def send_document(
        self,
        chat_id: int,
        handle: BinaryIO,
        file_name: str,
        reply_to: int,
    ) -> None:
        try:
            await self._client.send_file(
                chat_id,
                handle,
                reply_to=reply_to,
                force_document=True,
                attributes=[DocumentAttributeFilename(file_name)],
            )
        except errors.RPCError as exc:
            raise UploadFailed(f"Telegram rejected {file_name}: {exc}", too_large=_is_too_large(exc)) from exc
        except OSError as exc:
            raise UploadFailed(f"Uploading {file_name} failed: {exc}") from exc
