"""
Pytest configuration and fixtures for Helpdesk tests.
"""

import sys
from pathlib import Path
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio

# Add src directory to path so imports work
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

import discord  # noqa: E402

from helpdesk.configuration.app_configuration import GuildChannelConfig  # noqa: E402
from helpdesk.database.database import Database  # noqa: E402
from helpdesk.database.db_connection import ConnectionManager  # noqa: E402


@pytest_asyncio.fixture
async def db(tmp_path):
    """A fresh database with the schema applied, closed after the test."""
    manager = ConnectionManager()
    database = Database(tmp_path / "helpdesk.db", manager)
    assert await database.initialize()
    yield manager
    await database.shutdown()


class FakeAudit:
    """Collects audit embeds instead of sending them."""

    def __init__(self):
        self.entries = []

    async def log(self, guild, embed):
        self.entries.append((guild, embed))


@pytest.fixture
def fake_audit():
    return FakeAudit()


class FakeConfig:
    """Stands in for AppConfig with fixed values."""

    def __init__(self, channels=None, ttl=900.0):
        self._channels = channels or GuildChannelConfig()
        self.primary_color = discord.Colour(0x9B59B6)
        self.secondary_color = discord.Colour(0xF1C40F)
        self.ask_here_text = "Pick a category to ask a question."
        self.pending_selection_ttl = ttl
        self.auto_archive_minutes = 4320

    def guild_channels(self, guild_id):
        return self._channels


@pytest.fixture
def fake_config():
    return FakeConfig()


def make_guild(guild_id=1, channels=None):
    """A guild whose channels and threads are looked up in ``channels`` by id."""
    channels = channels if channels is not None else {}
    return SimpleNamespace(
        id=guild_id,
        name=f"guild-{guild_id}",
        icon=None,
        channels_by_id=channels,
        get_channel=lambda cid: channels.get(cid),
        get_channel_or_thread=lambda cid: channels.get(cid),
        fetch_channel=AsyncMock(side_effect=discord.NotFound(SimpleNamespace(status=404, reason="Not Found"), "Unknown Channel")),
    )


def make_member(member_id=100, guild=None, manage_messages=False, manage_guild=False):
    return SimpleNamespace(
        id=member_id,
        guild=guild,
        mention=f"<@{member_id}>",
        display_avatar=None,
        guild_permissions=SimpleNamespace(manage_messages=manage_messages, manage_guild=manage_guild),
    )


def make_thread(thread_id, guild):
    """A thread mock that passes isinstance(..., discord.Thread)."""
    thread = MagicMock(spec=discord.Thread)
    thread.id = thread_id
    thread.guild = guild
    thread.mention = f"<#{thread_id}>"
    thread.add_user = AsyncMock()
    thread.edit = AsyncMock()
    thread.send = AsyncMock()
    return thread


class FakeForumChannel:
    """Hands out thread mocks and registers them in the guild."""

    def __init__(self, guild, first_thread_id=5000):
        self.guild = guild
        self.id = 400
        self._next_id = first_thread_id
        self.created = []

    async def create_thread(self, name, auto_archive_duration=None, type=None):
        thread = make_thread(self._next_id, self.guild)
        thread.name = name
        self._next_id += 1
        self.created.append(thread)
        self.guild.channels_by_id[thread.id] = thread
        return thread


class FakeMessage:
    _next_id = 9000

    def __init__(self, channel, embed=None, view=None, content=None):
        FakeMessage._next_id += 1
        self.id = FakeMessage._next_id
        self.channel = channel
        self.guild = channel.guild
        self.embed = embed
        self.view = view
        self.content = content
        self.jump_url = f"https://discord.com/channels/{channel.guild.id}/{channel.id}/{self.id}"
        self.edits = []

    async def edit(self, **kwargs):
        self.edits.append(kwargs)
        self.embed = kwargs.get("embed", self.embed)
        self.view = kwargs.get("view", self.view)
        self.content = kwargs.get("content", self.content)


class FakeTextChannel:
    """A channel that keeps the messages sent to it and can fetch them back."""

    def __init__(self, channel_id, guild):
        self.id = channel_id
        self.guild = guild
        self.messages = {}
        self.sent = []
        guild.channels_by_id[channel_id] = self

    async def send(self, content=None, embed=None, view=None):
        message = FakeMessage(self, embed=embed, view=view, content=content)
        self.messages[message.id] = message
        self.sent.append(message)
        return message

    async def fetch_message(self, message_id):
        try:
            return self.messages[message_id]
        except KeyError:
            raise discord.NotFound(SimpleNamespace(status=404, reason="Not Found"), "Unknown Message") from None
