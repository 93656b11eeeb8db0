import os
import sys
from unittest.mock import AsyncMock, MagicMock

import pytest

from helpdesk import main


@pytest.fixture(autouse=True)
def _restore_env(monkeypatch):
    original_env = os.environ.copy()
    yield
    os.environ.clear()
    os.environ.update(original_env)


def test_resolve_base_dir_env_overrides(tmp_path, monkeypatch):
    monkeypatch.setenv("HELPDESK_HOME", str(tmp_path))

    assert main.resolve_base_dir() == tmp_path.resolve()


def test_resolve_base_dir_compiled(tmp_path, monkeypatch):
    monkeypatch.delenv("HELPDESK_HOME", raising=False)
    monkeypatch.setattr(sys, "frozen", True, raising=False)
    monkeypatch.setattr(sys, "argv", [str(tmp_path / "helpdesk.exe")])

    assert main.resolve_base_dir() == tmp_path.resolve()


def test_resolve_base_dir_source(monkeypatch):
    monkeypatch.delenv("HELPDESK_HOME", raising=False)
    monkeypatch.setattr(sys, "frozen", False, raising=False)
    monkeypatch.setattr(sys, "compiled", False, raising=False)

    assert main.resolve_base_dir() == main.Path(main.__file__).resolve().parents[2]


def test_load_environment_returns_token(monkeypatch):
    monkeypatch.setattr(main, "load_dotenv", lambda **kwargs: None)
    monkeypatch.setenv("DISCORD_BOT_TOKEN", "abc123")

    assert main.load_environment() == "abc123"


def test_load_environment_without_token_exits(monkeypatch):
    monkeypatch.setattr(main, "load_dotenv", lambda **kwargs: None)
    monkeypatch.delenv("DISCORD_BOT_TOKEN", raising=False)

    with pytest.raises(SystemExit) as exc_info:
        main.load_environment()
    assert exc_info.value.code == 1


def test_build_intents_enables_guilds_and_messages():
    intents = main.build_intents()
    assert intents.guilds is True
    assert intents.messages is True


@pytest.mark.asyncio
async def test_async_main_stops_when_database_fails(monkeypatch):
    monkeypatch.setattr(main, "load_environment", lambda: "token")
    monkeypatch.setattr(main.database, "initialize", AsyncMock(return_value=False))
    create_bot = MagicMock()
    monkeypatch.setattr(main, "create_bot", create_bot)

    assert await main.async_main() == 1
    create_bot.assert_not_called()


@pytest.mark.asyncio
async def test_async_main_loads_cache_then_runs_bot(monkeypatch):
    calls = []
    bot = MagicMock()
    monkeypatch.setattr(main, "load_environment", lambda: "token")
    monkeypatch.setattr(main.database, "initialize", AsyncMock(return_value=True))
    monkeypatch.setattr(
        main.cached_message_service, "load", AsyncMock(side_effect=lambda: calls.append("load"))
    )
    monkeypatch.setattr(main, "create_bot", lambda: calls.append("create") or bot)
    start_bot = AsyncMock(side_effect=lambda b, t: calls.append("start"))
    monkeypatch.setattr(main, "start_bot", start_bot)
    shutdown = AsyncMock()
    monkeypatch.setattr(main, "shutdown_runtime", shutdown)

    assert await main.async_main() == 0
    assert calls == ["load", "create", "start"]
    start_bot.assert_awaited_once_with(bot, "token")
    shutdown.assert_awaited_once_with(bot)


@pytest.mark.asyncio
async def test_async_main_reports_runtime_error(monkeypatch):
    bot = MagicMock()
    monkeypatch.setattr(main, "load_environment", lambda: "token")
    monkeypatch.setattr(main.database, "initialize", AsyncMock(return_value=True))
    monkeypatch.setattr(main.cached_message_service, "load", AsyncMock(return_value=0))
    monkeypatch.setattr(main, "create_bot", lambda: bot)
    monkeypatch.setattr(main, "start_bot", AsyncMock(side_effect=RuntimeError("gateway")))
    shutdown = AsyncMock()
    monkeypatch.setattr(main, "shutdown_runtime", shutdown)

    assert await main.async_main() == 1
    shutdown.assert_awaited_once_with(bot)


@pytest.mark.asyncio
async def test_shutdown_runtime_closes_bot_and_database(monkeypatch):
    bot = MagicMock()
    bot.is_closed.return_value = False
    bot.close = AsyncMock()
    db_shutdown = AsyncMock()
    monkeypatch.setattr(main.database, "shutdown", db_shutdown)

    await main.shutdown_runtime(bot)

    bot.close.assert_awaited_once()
    db_shutdown.assert_awaited_once()


@pytest.mark.asyncio
async def test_shutdown_runtime_survives_close_errors(monkeypatch):
    bot = MagicMock()
    bot.is_closed.return_value = False
    bot.close = AsyncMock(side_effect=RuntimeError("already gone"))
    db_shutdown = AsyncMock()
    monkeypatch.setattr(main.database, "shutdown", db_shutdown)

    await main.shutdown_runtime(bot)

    db_shutdown.assert_awaited_once()


def test_main_returns_exit_code(monkeypatch):
    monkeypatch.setattr(main, "async_main", AsyncMock(return_value=3))
    assert main.main() == 3


def test_main_translates_system_exit(monkeypatch):
    monkeypatch.setattr(main, "async_main", AsyncMock(side_effect=SystemExit(1)))
    assert main.main() == 1
