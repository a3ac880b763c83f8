from __future__ import annotations

from adapters.telegram_mapper import build_command


class DummyMessage:
    def __init__(self, *, chat_id: int, message_id: int, text: "str | None", sender_id: "int | None") -> None:
        self.chat_id = chat_id
        self.id = message_id
        self.raw_text = text
        self.sender_id = sender_id


def test_build_command_copies_ids_and_text() -> None:
    command = build_command(DummyMessage(chat_id=-100123, message_id=10, text="/url https://x.org", sender_id=7))
    assert command.chat_id == -100123
    assert command.message_id == 10
    assert command.text == "/url https://x.org"
    assert command.sender_id == 7


def test_build_command_handles_media_without_caption() -> None:
    command = build_command(DummyMessage(chat_id=1, message_id=2, text=None, sender_id=None))
    assert command.text == ""
