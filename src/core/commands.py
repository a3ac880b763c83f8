"""Relay command parsing (core domain)."""

from __future__ import annotations

from typing import Optional
from urllib.parse import urlsplit

USAGE_TEXT = "❌ Please provide a URL after the {prefix} command"
INVALID_URL_TEXT = "❌ Only http:// and https:// links can be relayed"

_SUPPORTED_SCHEMES = {"http", "https"}


def parse_relay_command(text: str, prefix: str) -> Optional[str]:
    """Return the command argument, or None when text is not the command.

    The prefix also matches the ``/url@botname`` form Telegram uses in groups.
    An empty string means the command was given without an argument.
    """

    stripped = text.strip()
    if not stripped:
        return None
    command, _, argument = stripped.partition(" ")
    name, _, _ = command.partition("@")
    if name.lower() != prefix.lower():
        return None
    return argument.strip()


def is_supported_url(url: str) -> bool:
    try:
        parts = urlsplit(url)
    except ValueError:
        return False
    return parts.scheme.lower() in _SUPPORTED_SCHEMES and bool(parts.netloc)
