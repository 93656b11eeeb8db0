"""
Repository for the questions table.

Timestamps are stored as ISO-8601 text so they round-trip exactly, and tags
use the binary codec in :mod:`helpdesk.database.tag_serialization`.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import List

import aiosqlite

from helpdesk.database.tag_serialization import decode_tags, encode_tags
from helpdesk.datatypes.discord_datatypes import ChannelID, GuildID, UserID
from helpdesk.datatypes.question_datatypes import CloseReason, Question

_COLUMNS = (
    "id, guild_id, category_id, author_id, title, tags, thread_id, "
    "created_at, is_closed, close_reason, closer_id, closed_at"
)


def _to_question(row: aiosqlite.Row) -> Question:
    return Question(
        id=uuid.UUID(row["id"]),
        guild_id=GuildID(row["guild_id"]),
        category_id=uuid.UUID(row["category_id"]),
        author_id=UserID(row["author_id"]),
        title=row["title"],
        tags=decode_tags(row["tags"]),
        thread_id=ChannelID(row["thread_id"]),
        created_at=datetime.fromisoformat(row["created_at"]),
        is_closed=bool(row["is_closed"]),
        close_reason=CloseReason(row["close_reason"]) if row["close_reason"] else None,
        closer_id=UserID(row["closer_id"]) if row["closer_id"] is not None else None,
        closed_at=datetime.fromisoformat(row["closed_at"]) if row["closed_at"] else None,
    )


class QuestionRepository:
    """CRUD and simple predicate queries for the questions table."""

    async def get(self, conn: aiosqlite.Connection, question_id: uuid.UUID) -> Question | None:
        async with conn.execute(
            f"SELECT {_COLUMNS} FROM questions WHERE id = ?",
            (question_id.hex,),
        ) as cursor:
            row = await cursor.fetchone()
        return _to_question(row) if row is not None else None

    async def get_by_thread(self, conn: aiosqlite.Connection, thread_id: ChannelID) -> Question | None:
        async with conn.execute(
            f"SELECT {_COLUMNS} FROM questions WHERE thread_id = ?",
            (thread_id.to_int(),),
        ) as cursor:
            row = await cursor.fetchone()
        return _to_question(row) if row is not None else None

    async def exists_for_thread(self, conn: aiosqlite.Connection, thread_id: ChannelID) -> bool:
        async with conn.execute(
            "SELECT 1 FROM questions WHERE thread_id = ? LIMIT 1",
            (thread_id.to_int(),),
        ) as cursor:
            return await cursor.fetchone() is not None

    async def get_open_for_guild(self, conn: aiosqlite.Connection, guild_id: GuildID) -> List[Question]:
        async with conn.execute(
            f"SELECT {_COLUMNS} FROM questions WHERE guild_id = ? AND is_closed = 0 ORDER BY created_at",
            (guild_id.to_int(),),
        ) as cursor:
            rows = await cursor.fetchall()
        return [_to_question(row) for row in rows]

    async def count_open_in_category(self, conn: aiosqlite.Connection, category_id: uuid.UUID) -> int:
        async with conn.execute(
            "SELECT COUNT(*) FROM questions WHERE category_id = ? AND is_closed = 0",
            (category_id.hex,),
        ) as cursor:
            row = await cursor.fetchone()
        return int(row[0]) if row is not None else 0

    async def insert(self, conn: aiosqlite.Connection, question: Question) -> None:
        await conn.execute(
            f"INSERT INTO questions ({_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
            (
                question.id.hex,
                question.guild_id.to_int(),
                question.category_id.hex,
                question.author_id.to_int(),
                question.title,
                encode_tags(question.tags),
                question.thread_id.to_int(),
                question.created_at.isoformat(),
                1 if question.is_closed else 0,
                question.close_reason.value if question.close_reason else None,
                question.closer_id.to_int() if question.closer_id is not None else None,
                question.closed_at.isoformat() if question.closed_at else None,
            ),
        )

    async def update(self, conn: aiosqlite.Connection, question: Question) -> None:
        """Write back the mutable fields. ``thread_id`` and ``created_at`` never change."""
        await conn.execute(
            """
            UPDATE questions SET
                title        = ?,
                tags         = ?,
                is_closed    = ?,
                close_reason = ?,
                closer_id    = ?,
                closed_at    = ?
            WHERE id = ?
            """,
            (
                question.title,
                encode_tags(question.tags),
                1 if question.is_closed else 0,
                question.close_reason.value if question.close_reason else None,
                question.closer_id.to_int() if question.closer_id is not None else None,
                question.closed_at.isoformat() if question.closed_at else None,
                question.id.hex,
            ),
        )
