"""Bot credentials and the Telethon client.

Credentials come from the environment (or a .env file); nothing secret is
read from config.json.
"""

from __future__ import annotations

import logging
import os

from dotenv import load_dotenv
from telethon import TelegramClient

LOGGER = logging.getLogger(__name__)


def build_client() -> TelegramClient:
    """Telethon client for API_ID/API_HASH, stored in the SESSION_NAME session file."""

    load_dotenv()
    api_id = os.getenv("API_ID")
    api_hash = os.getenv("API_HASH")
    if not api_id or not api_hash:
        raise RuntimeError("API_ID and API_HASH must be set (see .env.example)")

    session_name = os.getenv("SESSION_NAME") or "telerelay"
    LOGGER.info("Using session %s", session_name)
    return TelegramClient(session_name, int(api_id), api_hash)


def bot_token() -> str:
    load_dotenv()
    token = os.getenv("BOT_TOKEN")
    if not token:
        raise RuntimeError("BOT_TOKEN must be set to run the bot")
    return token
