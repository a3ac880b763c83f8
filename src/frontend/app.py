"""Textual config panel for telerelay."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional

from rich.text import Text
from textual import on
from textual.app import App, ComposeResult
from textual.containers import VerticalScroll
from textual.widgets import Footer, Input, Label, Static, Switch, TabbedContent, TabPane

import settings

from .chats import ChatList
from .document import FIELDS, FIELDS_BY_ID, ConfigDocument, ConfigError, Field

TELEGRAM_BLUE = "#2AABEE"


class ConfigPanelApp(App):
    """Settings form and chat allow-list over a single config.json."""

    CSS_PATH = "app.tcss"

    BINDINGS = [
        ("ctrl+s", "save", "Save"),
        ("ctrl+r", "reload", "Reload"),
        ("q", "leave", "Quit"),
    ]

    def __init__(self, path: Optional[Path] = None, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.document = ConfigDocument(path or Path(settings.CONFIG_PATH))
        self._leave_armed = False

    def compose(self) -> ComposeResult:
        yield Static(
            Text.assemble(("TELE", TELEGRAM_BLUE), ("RELAY ", "bold"), (str(self.document.path), "dim")),
            id="title",
        )
        yield Static("", id="status")
        with TabbedContent(initial="settings"):
            with TabPane("Settings", id="settings"):
                with VerticalScroll():
                    for field in FIELDS:
                        yield Label(f"{field.section}.{field.key}", classes="form-label")
                        if field.kind == "bool":
                            yield Switch(id=field.id)
                        else:
                            yield Input(placeholder=str(field.default), id=field.id)
                        yield Static(field.hint, id=f"{field.id}-note", classes="note")
            with TabPane("Chats", id="chats"):
                yield ChatList(self.document, id="chat-list")
        yield Footer()

    def on_mount(self) -> None:
        self.action_reload()

    def action_reload(self) -> None:
        self.document.load()
        for field in FIELDS:
            value = self.document.stored(field)
            if field.kind == "bool":
                self.query_one(f"#{field.id}", Switch).value = bool(field.default if value is None else value)
            else:
                self.query_one(f"#{field.id}", Input).value = "" if value is None else str(value)
            self._note(field, field.hint)
        self.query_one(ChatList).refresh_rows()
        self._refresh_status()

    def action_save(self) -> None:
        try:
            self.document.save()
        except (ConfigError, OSError) as exc:
            self._refresh_status(f"save failed: {exc}")
            return
        self._refresh_status()

    def action_leave(self) -> None:
        if self.document.dirty and not self._leave_armed:
            self._leave_armed = True
            self.notify("Unsaved changes. Press ctrl+s to save or q again to discard.", severity="warning")
            return
        self.exit()

    @on(Input.Changed)
    def _on_input(self, event: Input.Changed) -> None:
        field = FIELDS_BY_ID.get(event.input.id or "")
        if field is not None:
            self._apply(field, event.value)

    @on(Switch.Changed)
    def _on_switch(self, event: Switch.Changed) -> None:
        field = FIELDS_BY_ID.get(event.switch.id or "")
        if field is not None:
            self._apply(field, event.value)

    def on_chat_list_changed(self, _: ChatList.Changed) -> None:
        self._leave_armed = False
        self._refresh_status()

    def _apply(self, field: Field, raw: Any) -> None:
        try:
            changed = self.document.update(field, raw)
        except ConfigError as exc:
            self._note(field, str(exc), error=True)
            return
        self._note(field, field.hint)
        if changed:
            self._leave_armed = False
            self._refresh_status()

    def _note(self, field: Field, text: str, error: bool = False) -> None:
        note = self.query_one(f"#{field.id}-note", Static)
        note.update(text)
        note.set_class(error, "error")

    def _refresh_status(self, error: Optional[str] = None) -> None:
        status = self.query_one("#status", Static)
        status.remove_class("error", "modified")
        error = error or self.document.error
        if error:
            status.update(error)
            status.add_class("error")
        elif self.document.dirty:
            status.update("modified, ctrl+s to save")
            status.add_class("modified")
        elif not self.document.exists:
            status.update("no config file yet, defaults shown; saving creates it")
        else:
            status.update("saved")
