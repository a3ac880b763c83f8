"""Static configuration for telerelay.

All user-editable settings (relay limits, command prefix, allowed chats,
logging) live in a single JSON file for quick edits without touching Python.
Secrets stay in the environment (.env).
"""

import json
import os

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))

# The config path can be overridden to run several bots from one checkout.
CONFIG_PATH = os.getenv("TELERELAY_CONFIG") or os.path.join(PROJECT_ROOT, "config.json")

_MB = 1024 * 1024


def _load_json_config() -> dict:
    """Load config.json with a flat, user-friendly schema.

    A missing file yields an empty config so every setting falls back to its
    default and `telerelay config` can create the file.
    """

    if not os.path.exists(CONFIG_PATH):
        return {}

    with open(CONFIG_PATH, "r", encoding="utf-8") as handle:
        return json.load(handle)


def _normalize_chats(raw_chats: list[dict]) -> tuple[frozenset[int], dict[int, str]]:
    """Collect enabled chat ids and build an alias map keyed by chat id."""

    chats: set[int] = set()
    aliases: dict[int, str] = {}
    for entry in raw_chats:
        chat_id = entry.get("chat_id")
        if chat_id is None:
            continue
        if not entry.get("enabled", True):
            continue
        chat_id = int(chat_id)
        chats.add(chat_id)
        alias = entry.get("alias")
        if alias:
            aliases[chat_id] = alias
    return frozenset(chats), aliases


CONFIG_FOUND = os.path.exists(CONFIG_PATH)
_CONFIG = _load_json_config()

# Expose the raw config for modules that need structured access.
CONFIG = _CONFIG

# Relay limits. Telegram accepts documents up to 2000 MB from bots on MTProto.
_relay = _CONFIG.get("relay", {})
MAX_FILE_SIZE = int(float(_relay.get("max_file_size_mb", 2000)) * _MB)
STATUS_INTERVAL_SECONDS = float(_relay.get("status_interval_seconds", 2))
STAGING_DIR = _relay.get("staging_dir") or None
CHUNK_SIZE = int(_relay.get("chunk_size_kb", 64)) * 1024

# HTTP socket timeouts; downloads have no total time cap.
_http = _CONFIG.get("http", {})
HTTP_CONNECT_TIMEOUT = float(_http.get("connect_timeout_seconds", 30))
HTTP_READ_TIMEOUT = float(_http.get("read_timeout_seconds", 60))

# Command trigger and the optional allow-list of chats (empty = everyone).
_commands = _CONFIG.get("commands", {})
COMMAND_PREFIX = _commands.get("prefix", "/url")
ALLOWED_CHATS, CHAT_ALIASES = _normalize_chats(_CONFIG.get("chats", []))

# Logging configuration (optional).
LOGGING = _CONFIG.get("logging", {})
