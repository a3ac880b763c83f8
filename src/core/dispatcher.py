"""Command dispatch for relay requests.

Each accepted command runs as its own asyncio task. Tasks share no state;
the dispatcher only keeps references so they are not garbage collected and
can be cancelled on shutdown.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from core.commands import INVALID_URL_TEXT, USAGE_TEXT, is_supported_url, parse_relay_command
from core.config import CommandConfig
from core.errors import GatewayUnavailable
from core.models import CommandMessage, RelayRequest
from core.ports import ChatGatewayPort
from core.relay import RelayPipeline

LOGGER = logging.getLogger(__name__)


class RelayDispatcher:
    """Turns inbound command messages into concurrent relay tasks."""

    def __init__(
        self,
        pipeline: RelayPipeline,
        gateway: ChatGatewayPort,
        command_config: CommandConfig,
        max_file_size: int,
    ) -> None:
        self._pipeline = pipeline
        self._gateway = gateway
        self._commands = command_config
        self._max_file_size = max_file_size
        self._tasks: set[asyncio.Task] = set()

    @property
    def active(self) -> int:
        return len(self._tasks)

    async def handle(self, message: CommandMessage) -> Optional[asyncio.Task]:
        """Start a relay for a valid command and return its task."""

        if self._commands.allowed_chats and message.chat_id not in self._commands.allowed_chats:
            return None

        url = parse_relay_command(message.text, self._commands.prefix)
        if url is None:
            return None
        if not url:
            await self._reply(message.chat_id, USAGE_TEXT.format(prefix=self._commands.prefix))
            return None
        if not is_supported_url(url):
            await self._reply(message.chat_id, INVALID_URL_TEXT)
            return None

        request = RelayRequest(
            url=url,
            chat_id=message.chat_id,
            message_id=message.message_id,
            max_file_size=self._max_file_size,
        )
        LOGGER.info("Relay requested in chat %s by %s: %s", message.chat_id, message.sender_id, url)
        task = asyncio.create_task(
            self._pipeline.run(request),
            name=f"relay-{message.chat_id}-{message.message_id}",
        )
        self._tasks.add(task)
        task.add_done_callback(self._on_done)
        return task

    def _on_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            LOGGER.info("Relay task %s cancelled", task.get_name())
            return
        error = task.exception()
        if error is not None:
            LOGGER.error("Relay task %s crashed", task.get_name(), exc_info=error)

    async def _reply(self, chat_id: int, text: str) -> None:
        try:
            await self._gateway.send_message(chat_id, text)
        except GatewayUnavailable:
            LOGGER.warning("Could not reply in chat %s", chat_id, exc_info=True)

    async def aclose(self) -> None:
        """Cancel running relays and wait for their cleanup."""

        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
