"""
Repository for the question_categories table.

Rows are returned in insertion order (rowid).
"""

from __future__ import annotations

import uuid
from typing import List

import aiosqlite

from helpdesk.datatypes.discord_datatypes import GuildID
from helpdesk.datatypes.question_datatypes import Category

_COLUMNS = "id, guild_id, name, description"


def _to_category(row: aiosqlite.Row) -> Category:
    return Category(
        id=uuid.UUID(row["id"]),
        guild_id=GuildID(row["guild_id"]),
        name=row["name"],
        description=row["description"],
    )


class CategoryRepository:
    """CRUD for the question_categories table only."""

    async def get(self, conn: aiosqlite.Connection, category_id: uuid.UUID) -> Category | None:
        async with conn.execute(
            f"SELECT {_COLUMNS} FROM question_categories WHERE id = ?",
            (category_id.hex,),
        ) as cursor:
            row = await cursor.fetchone()
        return _to_category(row) if row is not None else None

    async def get_for_guild(self, conn: aiosqlite.Connection, guild_id: GuildID) -> List[Category]:
        async with conn.execute(
            f"SELECT {_COLUMNS} FROM question_categories WHERE guild_id = ? ORDER BY rowid",
            (guild_id.to_int(),),
        ) as cursor:
            rows = await cursor.fetchall()
        return [_to_category(row) for row in rows]

    async def insert(self, conn: aiosqlite.Connection, category: Category) -> None:
        """Insert a new category. Raises sqlite3.IntegrityError on a duplicate name."""
        await conn.execute(
            "INSERT INTO question_categories (id, guild_id, name, description) VALUES (?, ?, ?, ?)",
            (category.id.hex, category.guild_id.to_int(), category.name, category.description),
        )

    async def update(self, conn: aiosqlite.Connection, category: Category) -> None:
        await conn.execute(
            "UPDATE question_categories SET name = ?, description = ? WHERE id = ?",
            (category.name, category.description, category.id.hex),
        )

    async def delete(self, conn: aiosqlite.Connection, category_id: uuid.UUID) -> None:
        await conn.execute(
            "DELETE FROM question_categories WHERE id = ?",
            (category_id.hex,),
        )
