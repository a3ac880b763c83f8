"""Status message handling and texts.

A relay owns exactly one status message. It is sent once and edited for
every later update so the chat log is not flooded.
"""

from __future__ import annotations

import logging
from typing import Optional

from core.errors import ProbeFailed, RelayError, TooLarge, TransferFailed, UploadFailed
from core.models import ProgressEvent
from core.ports import ChatGatewayPort

LOGGER = logging.getLogger(__name__)

STARTING = "⏳ Starting download..."
UPLOADING = "📤 Uploading to Telegram..."
SUCCESS = "✅ File sent successfully!"
PROBE_FAILED = "❌ Failed to get file info"
INDETERMINATE = "⏬ Downloading... (size unknown)"

_TRANSFER_FAILURES = {
    "staging": "❌ Failed to create temporary file",
    "download": "❌ Failed to download the file",
    "save": "❌ Failed to save the file",
    "empty": "❌ The link returned an empty file",
}
UPLOAD_FAILED = "❌ Failed to send the file"
UPLOAD_TOO_LARGE = "❌ Telegram rejected the file because it is too large"
UNKNOWN_FAILURE = "❌ Something went wrong"

_MB = 1024 * 1024


def format_size(num_bytes: int) -> str:
    """Human-readable size in MB with one decimal."""

    return f"{num_bytes / _MB:.1f} MB"


def format_progress(event: ProgressEvent) -> str:
    if event.indeterminate:
        if event.bytes_read:
            return f"⏬ Downloading: {format_size(event.bytes_read)} (size unknown)"
        return INDETERMINATE
    line = f"⏬ Downloading: {event.percent:.1f}%"
    if event.total:
        line += f" ({format_size(event.bytes_read)} / {format_size(event.total)})"
    return line


def format_too_large(size: int, limit: int) -> str:
    return (
        f"❌ File is too large ({format_size(size)}). "
        f"The upload limit is {format_size(limit)}.\n\n"
        "Please use a direct download link instead."
    )


def describe_failure(error: RelayError) -> str:
    """Return the user-facing text for a terminal relay error."""

    if isinstance(error, ProbeFailed):
        return PROBE_FAILED
    if isinstance(error, TooLarge):
        return format_too_large(error.size, error.limit)
    if isinstance(error, TransferFailed):
        return _TRANSFER_FAILURES.get(error.during, _TRANSFER_FAILURES["download"])
    if isinstance(error, UploadFailed):
        return UPLOAD_TOO_LARGE if error.too_large else UPLOAD_FAILED
    return UNKNOWN_FAILURE


class StatusChannel:
    """Send-once, edit-many wrapper around the chat gateway."""

    def __init__(self, gateway: ChatGatewayPort, chat_id: int) -> None:
        self._gateway = gateway
        self._chat_id = chat_id
        self.message_id: Optional[int] = None

    async def open(self, text: str) -> int:
        """Send the status message. Raises GatewayUnavailable."""

        if self.message_id is not None:
            raise RuntimeError("Status message already sent")
        self.message_id = await self._gateway.send_message(self._chat_id, text)
        return self.message_id

    async def update(self, text: str) -> None:
        """Edit the status message; failures are logged, never raised."""

        if self.message_id is None:
            LOGGER.warning("Status update before status message was sent: %s", text)
            return
        try:
            await self._gateway.edit_message(self._chat_id, self.message_id, text)
        except Exception:
            # A missed status edit must not abort the transfer.
            LOGGER.warning(
                "Failed to edit status message %s in chat %s",
                self.message_id,
                self._chat_id,
                exc_info=True,
            )

    async def on_progress(self, event: ProgressEvent) -> None:
        await self.update(format_progress(event))
