"""Validation helpers for config editing."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class ChatIdInfo:
    chat_id: int | None
    kind: str
    error: str | None = None


def parse_chat_id(raw_value: str) -> ChatIdInfo:
    raw_value = raw_value.strip()
    if raw_value.startswith("chat_id:"):
        raw_value = raw_value[len("chat_id:") :].strip()
    if not raw_value:
        return ChatIdInfo(None, "invalid", "chat_id is required")
    if not _is_int(raw_value):
        return ChatIdInfo(None, "invalid", "chat_id must be numeric")

    chat_id = int(raw_value)
    if chat_id > 0:
        kind = "user"
    elif str(chat_id).startswith("-100"):
        kind = "channel"
    else:
        kind = "group"
    return ChatIdInfo(chat_id, kind)


def parse_positive_number(raw_value: str, allow_fraction: bool = False) -> tuple[float | int | None, str | None]:
    """Parse a strictly positive int (or float) from a form field."""

    stripped = raw_value.strip()
    if not stripped:
        return None, None
    try:
        value: float | int = float(stripped) if allow_fraction else int(stripped)
    except ValueError:
        kind = "number" if allow_fraction else "integer"
        return None, f"Enter a positive {kind}"
    if value <= 0:
        return None, "Value must be greater than zero"
    return value, None


def _is_int(value: str) -> bool:
    try:
        int(value)
    except ValueError:
        return False
    return True
