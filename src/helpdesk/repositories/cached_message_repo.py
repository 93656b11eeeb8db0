"""
Repository for the cached_messages table.

One row per ``(guild_id, key)`` slot; writing a slot again overwrites it.
"""

from __future__ import annotations

from typing import List

import aiosqlite

from helpdesk.datatypes.discord_datatypes import ChannelID, GuildID, MessageID
from helpdesk.datatypes.question_datatypes import CachedMessage


class CachedMessageRepository:
    """Low-level CRUD for the ``cached_messages`` table."""

    @staticmethod
    async def get_all(conn: aiosqlite.Connection) -> List[CachedMessage]:
        async with conn.execute(
            "SELECT guild_id, key, channel_id, message_id FROM cached_messages"
        ) as cursor:
            rows = await cursor.fetchall()
        return [
            CachedMessage(
                guild_id=GuildID(row[0]),
                key=row[1],
                channel_id=ChannelID(row[2]),
                message_id=MessageID(row[3]),
            )
            for row in rows
        ]

    @staticmethod
    async def upsert(conn: aiosqlite.Connection, cached: CachedMessage) -> None:
        """Insert the slot, or update it when a row for the same guild and key exists."""
        await conn.execute(
            """
            INSERT INTO cached_messages (guild_id, key, channel_id, message_id)
            VALUES (?, ?, ?, ?)
            ON CONFLICT(guild_id, key) DO UPDATE SET
                channel_id = excluded.channel_id,
                message_id = excluded.message_id,
                updated_at = CURRENT_TIMESTAMP
            """,
            (cached.guild_id.to_int(), cached.key, cached.channel_id.to_int(), cached.message_id.to_int()),
        )

    @staticmethod
    async def delete(conn: aiosqlite.Connection, guild_id: GuildID, key: str) -> None:
        await conn.execute(
            "DELETE FROM cached_messages WHERE guild_id = ? AND key = ?",
            (guild_id.to_int(), key),
        )
