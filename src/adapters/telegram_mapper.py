"""Telethon-to-core mapping helpers."""

from __future__ import annotations

from telethon.tl.custom import Message

from core.models import CommandMessage


def build_command(message: Message) -> CommandMessage:
    """Build a CommandMessage from Telethon's Message object."""

    return CommandMessage(
        chat_id=message.chat_id,
        message_id=message.id,
        text=message.raw_text or "",
        sender_id=getattr(message, "sender_id", None),
    )
