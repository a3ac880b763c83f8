"""In-memory config.json document edited by the config panel.

Kept free of Textual so the editing rules can be exercised directly.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .validators import parse_chat_id, parse_positive_number

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


class ConfigError(ValueError):
    """A form value or the file on disk could not be accepted."""


@dataclass(frozen=True)
class Field:
    """One editable `section.key` entry of the settings form."""

    section: str
    key: str
    kind: str
    default: Any
    hint: str = ""

    @property
    def id(self) -> str:
        return f"{self.section}-{self.key}".replace("_", "-")


FIELDS = (
    Field("relay", "max_file_size_mb", "float", 2000, "Larger files are refused before downloading."),
    Field("relay", "status_interval_seconds", "float", 2, "Minimum gap between progress edits."),
    Field("relay", "chunk_size_kb", "int", 64),
    Field("relay", "staging_dir", "text", "", "Empty uses the system temp directory."),
    Field("http", "connect_timeout_seconds", "float", 30),
    Field("http", "read_timeout_seconds", "float", 60, "Longest stall between two body chunks."),
    Field("commands", "prefix", "prefix", "/url"),
    Field("logging", "enabled", "bool", False),
    Field("logging", "level", "level", "INFO", ", ".join(LOG_LEVELS)),
    Field("logging", "console", "bool", True),
)

FIELDS_BY_ID = {field.id: field for field in FIELDS}


def parse_field(field: Field, raw: Any) -> Any:
    """Convert a form value; None means the key should be unset."""

    if field.kind == "bool":
        return bool(raw)
    text = str(raw).strip()
    if field.kind in ("int", "float"):
        value, error = parse_positive_number(text, allow_fraction=field.kind == "float")
        if error:
            raise ConfigError(error)
        return value
    if not text:
        return None
    if field.kind == "prefix":
        if len(text) < 2 or not text.startswith("/") or " " in text:
            raise ConfigError("Prefix must look like /command")
        return text
    if field.kind == "level":
        if text.upper() not in LOG_LEVELS:
            raise ConfigError(f"Level must be one of {', '.join(LOG_LEVELS)}")
        return text.upper()
    return text


class ConfigDocument:
    """config.json contents plus dirty tracking.

    A missing file loads as an empty document; saving creates it. An
    unreadable file is reported through ``error`` and is never overwritten.
    """

    def __init__(self, path: Path) -> None:
        self.path = path
        self.data: dict[str, Any] = {}
        self.dirty = False
        self.exists = False
        self.error: str | None = None

    def load(self) -> None:
        self.data = {}
        self.dirty = False
        self.error = None
        try:
            text = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            self.exists = False
            return
        self.exists = True
        try:
            loaded = json.loads(text)
        except json.JSONDecodeError as exc:
            self.error = f"{self.path.name}: {exc.msg} (line {exc.lineno})"
            return
        if not isinstance(loaded, dict):
            self.error = f"{self.path.name}: top level must be an object"
            return
        self.data = loaded

    def save(self) -> None:
        if self.error:
            raise ConfigError(f"Not overwriting unreadable {self.path.name}")
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(self.data, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")
        self.dirty = False
        self.exists = True

    def _section(self, name: str) -> dict[str, Any]:
        value = self.data.get(name)
        return dict(value) if isinstance(value, dict) else {}

    def stored(self, field: Field) -> Any:
        """The value written in the file, or None when the default applies."""

        return self._section(field.section).get(field.key)

    def update(self, field: Field, raw: Any) -> bool:
        """Apply a form value and return whether the document changed."""

        value = parse_field(field, raw)
        section = self._section(field.section)
        current = section.get(field.key)
        if value == current or (current is None and value in (None, field.default)):
            return False
        if value is None:
            section.pop(field.key, None)
        else:
            section[field.key] = value
        self.data[field.section] = section
        self.dirty = True
        return True

    def chats(self) -> list[dict[str, Any]]:
        value = self.data.get("chats")
        if not isinstance(value, list):
            return []
        return [dict(entry) for entry in value if isinstance(entry, dict)]

    def _set_chats(self, chats: list[dict[str, Any]]) -> None:
        self.data["chats"] = chats
        self.dirty = True

    def add_chat(self, raw_chat_id: str, alias: str = "") -> dict[str, Any]:
        info = parse_chat_id(raw_chat_id)
        if info.error:
            raise ConfigError(info.error)
        chats = self.chats()
        if any(entry.get("chat_id") == info.chat_id for entry in chats):
            raise ConfigError(f"chat_id {info.chat_id} is already listed")
        entry: dict[str, Any] = {"chat_id": info.chat_id, "enabled": True}
        if alias.strip():
            entry["alias"] = alias.strip()
        chats.append(entry)
        self._set_chats(chats)
        return entry

    def toggle_chat(self, index: int) -> bool:
        chats = self.chats()
        entry = chats[index]
        entry["enabled"] = not entry.get("enabled", True)
        self._set_chats(chats)
        return entry["enabled"]

    def remove_chat(self, index: int) -> dict[str, Any]:
        chats = self.chats()
        entry = chats.pop(index)
        self._set_chats(chats)
        return entry
