from __future__ import annotations

import asyncio
import importlib
import logging
import sys

import pytest

import frontend.app as frontend_app
import settings
from core.config import CommandConfig
from core.dispatcher import RelayDispatcher
from core.models import CommandMessage, RelayPhase, RelayRequest, RelaySession
from core.staging import StagingStore


@pytest.fixture
def missing_config(tmp_path, monkeypatch):
    path = tmp_path / "fresh" / "config.json"
    monkeypatch.setenv("TELERELAY_CONFIG", str(path))
    importlib.reload(settings)
    yield path
    monkeypatch.undo()
    importlib.reload(settings)


def test_settings_fall_back_to_defaults_without_config_file(missing_config) -> None:
    assert settings.CONFIG_FOUND is False
    assert settings.CONFIG == {}
    assert settings.MAX_FILE_SIZE == 2000 * 1024 * 1024
    assert settings.STATUS_INTERVAL_SECONDS == 2.0
    assert settings.COMMAND_PREFIX == "/url"
    assert settings.ALLOWED_CHATS == frozenset()


def test_config_command_launches_panel_without_config_file(missing_config, monkeypatch) -> None:
    monkeypatch.delitem(sys.modules, "app", raising=False)
    app = importlib.import_module("app")
    launched = []

    class FakePanel:
        def run(self) -> None:
            launched.append(True)

    monkeypatch.setattr(frontend_app, "ConfigPanelApp", FakePanel)

    app.main(["config"])

    assert launched == [True]
    assert not missing_config.exists()


class StallingPipeline:
    """Holds a staged file open until cancelled."""

    def __init__(self, store: StagingStore) -> None:
        self._store = store
        self.started = asyncio.Event()

    async def run(self, request: RelayRequest) -> RelaySession:
        with self._store.acquire("stalled.bin") as staged:
            await staged.write(b"partial")
            self.started.set()
            await asyncio.Event().wait()
        return RelaySession(phase=RelayPhase.DONE)


class SilentGateway:
    async def send_message(self, chat_id: int, text: str) -> int:
        return 1


def _interrupt() -> None:
    raise KeyboardInterrupt


def test_interrupt_cancels_running_relays_before_loop_closes(tmp_path) -> None:
    app = importlib.import_module("app")
    store = StagingStore(str(tmp_path))
    loop = asyncio.new_event_loop()
    closed = []

    async def serve() -> None:
        pipeline = StallingPipeline(store)
        dispatcher = RelayDispatcher(pipeline, SilentGateway(), CommandConfig(prefix="/url"), 1000)
        await dispatcher.handle(CommandMessage(chat_id=1, message_id=2, text="/url https://example.com/a.bin"))
        await pipeline.started.wait()
        assert len(list(tmp_path.iterdir())) == 1
        loop.call_soon(_interrupt)
        try:
            await asyncio.Event().wait()
        finally:
            await dispatcher.aclose()
            closed.append(dispatcher.active)

    try:
        with pytest.raises(KeyboardInterrupt):
            app._drive(loop, serve())
    finally:
        loop.close()

    assert closed == [0]
    assert list(tmp_path.iterdir()) == []


def test_log_formatter_masks_secret_values(monkeypatch) -> None:
    app = importlib.import_module("app")
    monkeypatch.setenv("BOT_TOKEN", "123:secret")
    monkeypatch.setenv("API_HASH", "123")
    monkeypatch.delenv("UNSET_SECRET", raising=False)
    formatter = app._RedactingFormatter(["BOT_TOKEN", "API_HASH", "UNSET_SECRET"])
    record = logging.LogRecord("telerelay", logging.INFO, __file__, 1, "token %s hash %s", ("123:secret", "123"), None)

    text = formatter.format(record)

    assert text.endswith("token *** hash ***")
    assert "secret" not in text
