"""
Named, per-guild message slots that survive restarts.

A slot (for example the "Ask Here" prompt) remembers which channel and message
currently serve a UI purpose, so the owner can edit that message in place
instead of posting a duplicate. Slots live in memory, keyed by guild and then
by key, and are mirrored to the ``cached_messages`` table.

``load()`` must run once at startup, before any slot is read.
"""

from __future__ import annotations

import asyncio
from collections import defaultdict
from typing import Dict, Optional, Union

import discord

from helpdesk.database.db_connection import ConnectionManager, db_connection
from helpdesk.datatypes.discord_datatypes import ChannelID, GuildID, MessageID
from helpdesk.datatypes.question_datatypes import CachedMessage
from helpdesk.repositories.cached_message_repo import CachedMessageRepository
from helpdesk.util.discord_utils import resolve_guild_id
from helpdesk.util.logger import get_logger

logger = get_logger("cached_message_service")


class CachedMessageService:
    """In-memory slot table backed by the ``cached_messages`` table."""

    def __init__(self, connection: ConnectionManager = db_connection) -> None:
        self._db = connection
        self._repo = CachedMessageRepository()
        self._bot: Optional[discord.Client] = None
        self._slots: Dict[GuildID, Dict[str, CachedMessage]] = {}
        self._locks: Dict[GuildID, asyncio.Lock] = defaultdict(asyncio.Lock)
        self._loaded = False

    def set_bot(self, bot: discord.Client) -> None:
        """Attach the client used to fetch messages from Discord."""
        self._bot = bot

    @property
    def loaded(self) -> bool:
        return self._loaded

    async def load(self) -> int:
        """Load every persisted slot into memory. Returns the number of slots loaded."""
        async with self._db.read() as conn:
            rows = await self._repo.get_all(conn)

        self._slots.clear()
        for cached in rows:
            self._slots.setdefault(cached.guild_id, {})[cached.key] = cached

        self._loaded = True
        logger.info("[CACHED MESSAGES] Loaded %d cached message slot(s)", len(rows))
        return len(rows)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def cache_message(self, key: str, message: discord.Message) -> CachedMessage:
        """
        Remember ``message`` as the current holder of slot ``key`` in its guild.

        Any previous message recorded for the same slot is overwritten.

        Raises:
            ValueError: If ``key`` is blank, ``message`` is None, or the message
                does not belong to a guild.
        """
        if key is None or not key.strip():
            raise ValueError("key cannot be empty")
        if message is None:
            raise ValueError("message cannot be None")

        guild = getattr(message, "guild", None) or getattr(message.channel, "guild", None)
        if guild is None:
            raise ValueError("message must belong to a guild channel")

        guild_id = GuildID(guild.id)
        cached = CachedMessage(
            guild_id=guild_id,
            key=key,
            channel_id=ChannelID(message.channel.id),
            message_id=MessageID(message.id),
        )

        async with self._locks[guild_id]:
            async with self._db.transaction() as conn:
                await self._repo.upsert(conn, cached)
            self._slots.setdefault(guild_id, {})[key] = cached

        logger.debug(
            "[CACHED MESSAGES] Cached slot '%s' in guild %s -> message %s in channel %s",
            key, guild_id, cached.message_id, cached.channel_id,
        )
        return cached

    async def invalidate(
        self,
        guild: Union[discord.Guild, GuildID, int],
        key: str,
        expected: Optional[CachedMessage] = None,
    ) -> bool:
        """
        Forget slot ``key``. Returns True when a slot was removed.

        When ``expected`` is given the slot is only removed while it still
        points at that message, so a slot re-cached in the meantime survives.
        """
        guild_id = resolve_guild_id(guild)
        async with self._locks[guild_id]:
            current = self._slots.get(guild_id, {}).get(key)
            if expected is not None and current is not None and current != expected:
                return False
            async with self._db.transaction() as conn:
                await self._repo.delete(conn, guild_id, key)
            removed = self._slots.get(guild_id, {}).pop(key, None)

        if removed is not None:
            logger.info("[CACHED MESSAGES] Evicted slot '%s' in guild %s", key, guild_id)
        return removed is not None

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_cached_message(self, guild: Union[discord.Guild, GuildID, int], key: str) -> Optional[CachedMessage]:
        """
        Return the recorded location of slot ``key``, without contacting Discord.

        Raises:
            ValueError: If ``key`` is blank.
        """
        if key is None or not key.strip():
            raise ValueError("key cannot be empty")
        return self._slots.get(resolve_guild_id(guild), {}).get(key)

    async def get_message(
        self,
        key: str,
        guild: Union[discord.Guild, GuildID, int],
    ) -> Optional[discord.Message]:
        """
        Fetch the live message currently held by slot ``key``.

        Returns None when the key is blank, the slot is unknown, the guild or
        channel is not reachable, or Discord refuses the fetch. A message that
        Discord reports as deleted also evicts the slot, so it is not retried.
        """
        if key is None or not key.strip():
            return None

        cached = self.get_cached_message(guild, key)
        if cached is None:
            return None

        return await self.fetch_cached(cached)

    async def fetch_cached(self, cached: CachedMessage) -> Optional[discord.Message]:
        if self._bot is None:
            logger.warning("[CACHED MESSAGES] No client attached; cannot fetch slot '%s'", cached.key)
            return None

        guild = self._bot.get_guild(cached.guild_id.to_int())
        if guild is None:
            return None

        channel = guild.get_channel_or_thread(cached.channel_id.to_int())
        if channel is None:
            return None

        try:
            return await channel.fetch_message(cached.message_id.to_int())
        except discord.NotFound:
            logger.info(
                "[CACHED MESSAGES] Message %s for slot '%s' no longer exists",
                cached.message_id, cached.key,
            )
            await self.invalidate(cached.guild_id, cached.key, expected=cached)
            return None
        except discord.HTTPException as exc:
            logger.warning(
                "[CACHED MESSAGES] Could not fetch message %s for slot '%s': %s",
                cached.message_id, cached.key, exc,
            )
            return None


cached_message_service = CachedMessageService()
