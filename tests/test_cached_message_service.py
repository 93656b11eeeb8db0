import sqlite3
from types import SimpleNamespace
from unittest.mock import AsyncMock

import discord
import pytest

from conftest import FakeTextChannel, make_guild
from helpdesk.datatypes.discord_datatypes import GuildID
from helpdesk.repositories.cached_message_repo import CachedMessageRepository
from helpdesk.services.cached_message_service import CachedMessageService


@pytest.fixture
def guild():
    return make_guild(1)


@pytest.fixture
def channel(guild):
    return FakeTextChannel(200, guild)


@pytest.fixture
def service(db, guild):
    svc = CachedMessageService(connection=db)
    svc.set_bot(SimpleNamespace(get_guild=lambda gid: guild if gid == guild.id else None))
    return svc


@pytest.mark.asyncio
async def test_cache_then_get_returns_same_message(service, channel):
    message = await channel.send(content="prompt")

    await service.cache_message("ask_here_message", message)
    fetched = await service.get_message("ask_here_message", 1)

    assert fetched.id == message.id
    assert fetched.channel.id == channel.id


@pytest.mark.asyncio
async def test_cache_message_overwrites_slot(service, db, channel):
    first = await channel.send(content="first")
    second = await channel.send(content="second")

    await service.cache_message("slot", first)
    await service.cache_message("slot", second)

    assert (await service.get_message("slot", GuildID(1))).id == second.id
    async with db.read() as conn:
        rows = await CachedMessageRepository.get_all(conn)
    assert len(rows) == 1
    assert rows[0].message_id == second.id


@pytest.mark.asyncio
async def test_cache_message_validates_arguments(service, channel):
    message = await channel.send(content="x")

    with pytest.raises(ValueError):
        await service.cache_message("  ", message)
    with pytest.raises(ValueError):
        await service.cache_message("slot", None)

    dm = SimpleNamespace(id=1, guild=None, channel=SimpleNamespace(id=2, guild=None))
    with pytest.raises(ValueError):
        await service.cache_message("slot", dm)


@pytest.mark.asyncio
async def test_get_message_unknown_slot_or_blank_key_is_absent(service):
    assert await service.get_message("nothing", 1) is None
    assert await service.get_message("", 1) is None


@pytest.mark.asyncio
async def test_deleted_message_is_absent_and_evicted(service, db, channel):
    message = await channel.send(content="prompt")
    await service.cache_message("slot", message)
    del channel.messages[message.id]

    assert await service.get_message("slot", 1) is None
    assert service.get_cached_message(1, "slot") is None
    async with db.read() as conn:
        assert await CachedMessageRepository.get_all(conn) == []


@pytest.mark.asyncio
async def test_other_fetch_failures_keep_the_slot(service, channel):
    message = await channel.send(content="prompt")
    await service.cache_message("slot", message)
    channel.fetch_message = AsyncMock(
        side_effect=discord.Forbidden(SimpleNamespace(status=403, reason="Forbidden"), "Missing Access")
    )

    assert await service.get_message("slot", 1) is None
    assert service.get_cached_message(1, "slot") is not None


@pytest.mark.asyncio
async def test_eviction_skips_a_slot_recached_meanwhile(service, channel):
    old = await channel.send(content="old")
    new = await channel.send(content="new")
    stale = await service.cache_message("slot", old)
    await service.cache_message("slot", new)

    assert await service.invalidate(1, "slot", expected=stale) is False
    assert service.get_cached_message(1, "slot").message_id == new.id


@pytest.mark.asyncio
async def test_missing_channel_is_absent(service, guild, channel):
    message = await channel.send(content="prompt")
    await service.cache_message("slot", message)
    del guild.channels_by_id[channel.id]

    assert await service.get_message("slot", 1) is None


@pytest.mark.asyncio
async def test_load_restores_slots_after_restart(db, guild, channel):
    first = CachedMessageService(connection=db)
    message = await channel.send(content="prompt")
    await first.cache_message("slot", message)

    restarted = CachedMessageService(connection=db)
    assert restarted.loaded is False
    assert await restarted.load() == 1
    assert restarted.loaded is True
    cached = restarted.get_cached_message(guild, "slot")
    assert cached.channel_id == channel.id
    assert cached.message_id == message.id


def test_get_cached_message_rejects_blank_key(service):
    with pytest.raises(ValueError):
        service.get_cached_message(1, " ")


@pytest.mark.asyncio
async def test_failed_store_write_leaves_slot_unchanged(service, db, channel, monkeypatch):
    kept = await channel.send(content="kept")
    await service.cache_message("slot", kept)
    replacement = await channel.send(content="replacement")
    monkeypatch.setattr(service._repo, "upsert", AsyncMock(side_effect=sqlite3.OperationalError("disk I/O error")))

    with pytest.raises(sqlite3.OperationalError):
        await service.cache_message("slot", replacement)
    with pytest.raises(sqlite3.OperationalError):
        await service.cache_message("fresh", replacement)

    assert service.get_cached_message(1, "slot").message_id == kept.id
    assert service.get_cached_message(1, "fresh") is None
    async with db.read() as conn:
        rows = await CachedMessageRepository.get_all(conn)
    assert [row.message_id for row in rows] == [kept.id]


@pytest.mark.asyncio
async def test_failed_store_delete_keeps_slot(service, channel, monkeypatch):
    message = await channel.send(content="prompt")
    await service.cache_message("slot", message)
    monkeypatch.setattr(service._repo, "delete", AsyncMock(side_effect=sqlite3.OperationalError("locked")))

    with pytest.raises(sqlite3.OperationalError):
        await service.invalidate(1, "slot")

    assert service.get_cached_message(1, "slot").message_id == message.id
