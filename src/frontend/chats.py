"""Allow-list editor for the chats that may trigger relays."""

from __future__ import annotations

from typing import Any, Optional

from textual import on
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.message import Message
from textual.widgets import Button, DataTable, Input, Static

from .document import ConfigDocument, ConfigError
from .validators import parse_chat_id


class ChatList(Vertical):
    """Table of allowed chats with add, toggle and remove actions."""

    class Changed(Message):
        """The allow-list was edited."""

    def __init__(self, document: ConfigDocument, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._document = document

    def compose(self) -> ComposeResult:
        yield Static("An empty list lets every chat use the relay command.", classes="note")
        yield DataTable(id="chat-table", cursor_type="row", zebra_stripes=True)
        with Horizontal(classes="row"):
            yield Button("Enable / disable", id="chat-toggle")
            yield Button("Remove", id="chat-remove", variant="error")
        with Horizontal(classes="row"):
            yield Input(placeholder="chat_id, e.g. -1001234567890", id="chat-id")
            yield Input(placeholder="alias (optional)", id="chat-alias")
            yield Button("Allow", id="chat-allow", variant="success")
        yield Static("", id="chat-error", classes="error")

    def on_mount(self) -> None:
        self.query_one(DataTable).add_columns("enabled", "chat_id", "alias", "type")
        self.refresh_rows()

    def refresh_rows(self) -> None:
        table = self.query_one(DataTable)
        if not table.columns:
            return
        table.clear()
        for index, entry in enumerate(self._document.chats()):
            chat_id = str(entry.get("chat_id", ""))
            table.add_row(
                "yes" if entry.get("enabled", True) else "no",
                chat_id,
                entry.get("alias", ""),
                parse_chat_id(chat_id).kind,
                key=str(index),
            )

    def _selected_index(self) -> Optional[int]:
        table = self.query_one(DataTable)
        if table.row_count == 0:
            return None
        return table.cursor_row

    def _show_error(self, text: str) -> None:
        self.query_one("#chat-error", Static).update(text)

    def _edited(self) -> None:
        self._show_error("")
        self.refresh_rows()
        self.post_message(self.Changed())

    @on(Button.Pressed, "#chat-allow")
    @on(Input.Submitted, "#chat-id, #chat-alias")
    def _allow(self) -> None:
        chat_input = self.query_one("#chat-id", Input)
        alias_input = self.query_one("#chat-alias", Input)
        try:
            self._document.add_chat(chat_input.value, alias_input.value)
        except ConfigError as exc:
            self._show_error(str(exc))
            return
        chat_input.value = ""
        alias_input.value = ""
        self._edited()

    @on(Button.Pressed, "#chat-toggle")
    def _toggle(self) -> None:
        index = self._selected_index()
        if index is not None:
            self._document.toggle_chat(index)
            self._edited()

    @on(Button.Pressed, "#chat-remove")
    def _remove(self) -> None:
        index = self._selected_index()
        if index is not None:
            self._document.remove_chat(index)
            self._edited()
