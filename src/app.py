"""Application entry point for the telerelay bot."""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

import aiohttp
from art import tprint
from dotenv import load_dotenv
from telethon import TelegramClient, events

import settings
from adapters.http_fetcher import AiohttpFetcher, build_timeout
from adapters.telegram_gateway import TelethonChatGateway
from adapters.telegram_mapper import build_command
from client import bot_token, build_client
from core.config import CommandConfig, RelayConfig
from core.dispatcher import RelayDispatcher
from core.relay import RelayPipeline

NAME = "TELERELAY"
FONT = "tarty-1"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"


def _print_banner() -> None:
    tprint(NAME, FONT, space=1)


class _RedactingFormatter(logging.Formatter):
    """Masks the values of the named environment variables in every record."""

    def __init__(self, env_names: list[str]) -> None:
        super().__init__(fmt=LOG_FORMAT, datefmt=LOG_DATEFMT)
        values = {os.getenv(name) for name in env_names}
        # Longest first so a secret containing another is masked whole.
        self._secrets = sorted((value for value in values if value), key=len, reverse=True)

    def format(self, record: logging.LogRecord) -> str:
        text = super().format(record)
        for secret in self._secrets:
            text = text.replace(secret, "***")
        return text


def _log_file_handler(file_cfg: dict) -> RotatingFileHandler:
    path = Path(file_cfg.get("path") or "logs/telerelay.log")
    if not path.is_absolute():
        path = Path(settings.PROJECT_ROOT) / path
    path.parent.mkdir(parents=True, exist_ok=True)
    return RotatingFileHandler(
        path,
        maxBytes=int(file_cfg.get("max_bytes", 5 * 1024 * 1024)),
        backupCount=int(file_cfg.get("backup_count", 5)),
        encoding="utf-8",
    )


def _configure_logging() -> None:
    config = settings.LOGGING or {}
    if not config.get("enabled", False):
        return

    load_dotenv()
    level = getattr(logging, str(config.get("level", "INFO")).upper(), logging.INFO)
    redact = config.get("redact") or {}
    formatter = _RedactingFormatter(redact.get("patterns", []) if redact.get("enabled") else [])

    handlers: list[logging.Handler] = []
    if config.get("console", True):
        handlers.append(logging.StreamHandler())
    file_cfg = config.get("file") or {}
    if file_cfg.get("enabled", False):
        handlers.append(_log_file_handler(file_cfg))
    if not handlers:
        return

    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
    logging.basicConfig(level=level, handlers=handlers)


def _chat_label(chat_id: int) -> str:
    alias = settings.CHAT_ALIASES.get(chat_id)
    if not alias:
        return f"chat_id:{chat_id}"
    return f"{alias} (chat_id:{chat_id})"


async def _serve(client: TelegramClient, token: str) -> None:
    logger = logging.getLogger(__name__)

    await client.start(bot_token=token)
    me = await client.get_me()
    logger.info("Authorized as @%s", getattr(me, "username", None))

    relay_config = RelayConfig(
        max_file_size=settings.MAX_FILE_SIZE,
        status_interval=settings.STATUS_INTERVAL_SECONDS,
        staging_dir=settings.STAGING_DIR,
        chunk_size=settings.CHUNK_SIZE,
    )
    command_config = CommandConfig(
        prefix=settings.COMMAND_PREFIX,
        allowed_chats=settings.ALLOWED_CHATS,
    )
    if command_config.allowed_chats:
        logger.info(
            "Relays restricted to %s",
            ", ".join(_chat_label(chat_id) for chat_id in sorted(command_config.allowed_chats)),
        )
    else:
        logger.info("Relays allowed in every chat")

    gateway = TelethonChatGateway(client)
    timeout = build_timeout(settings.HTTP_CONNECT_TIMEOUT, settings.HTTP_READ_TIMEOUT)
    async with aiohttp.ClientSession(timeout=timeout) as session:
        fetcher = AiohttpFetcher(session, chunk_size=relay_config.chunk_size)
        pipeline = RelayPipeline(gateway, fetcher, relay_config)
        dispatcher = RelayDispatcher(pipeline, gateway, command_config, relay_config.max_file_size)

        # All command handling lives in the dispatcher.
        @client.on(events.NewMessage(incoming=True))
        async def handler(event) -> None:
            try:
                await dispatcher.handle(build_command(event.message))
            except Exception:
                logger.exception("Error while handling message in %s", _chat_label(event.chat_id))

        logger.info("Bot connected. Listening for %s commands...", command_config.prefix)
        try:
            await client.run_until_disconnected()
        finally:
            logger.info("Shutting down, cancelling %s active relays", dispatcher.active)
            await dispatcher.aclose()


def _drive(loop: asyncio.AbstractEventLoop, main) -> None:
    """Run `main` on `loop`; Ctrl+C cancels it and waits for its cleanup."""

    task = loop.create_task(main)
    try:
        loop.run_until_complete(task)
    except KeyboardInterrupt:
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            loop.run_until_complete(task)
        raise


def _run() -> None:
    _print_banner()
    _configure_logging()
    logger = logging.getLogger(__name__)

    logger.info("Starting telerelay")
    if not settings.CONFIG_FOUND:
        logger.warning("%s not found, running with defaults", settings.CONFIG_PATH)
    client = build_client()
    token = bot_token()

    try:
        _drive(client.loop, _serve(client, token))
    except KeyboardInterrupt:
        logger.info("Interrupted, exiting")


def _setup() -> None:
    _print_banner()
    from frontend.app import ConfigPanelApp

    ConfigPanelApp().run()


def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(prog="telerelay")
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("run", help="Start the relay bot")
    subparsers.add_parser("config", help="Launch the config TUI")

    args = parser.parse_args(argv)
    if args.command == "config":
        _setup()
        return
    _run()


if __name__ == "__main__":
    main()
