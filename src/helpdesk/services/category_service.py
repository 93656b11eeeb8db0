"""
Guild-scoped registry of question categories.

Categories live in memory, one insertion-ordered list per guild, mirrored to
the ``question_categories`` table. Every mutation runs under the guild's lock,
re-reads the stored row first and emits an audit record.
"""

from __future__ import annotations

import asyncio
import sqlite3
import uuid
from collections import defaultdict
from typing import Callable, Dict, List, Optional, Union

import discord

from helpdesk.database.db_connection import ConnectionManager, db_connection
from helpdesk.datatypes.discord_datatypes import GuildID
from helpdesk.datatypes.question_datatypes import Category
from helpdesk.errors import CategoryInUseError, CategoryNameError, DuplicateCategoryError
from helpdesk.repositories.category_repo import CategoryRepository
from helpdesk.repositories.question_repo import QuestionRepository
from helpdesk.services.audit_log import AuditLog, audit_log
from helpdesk.ui import embeds
from helpdesk.util.discord_utils import resolve_guild_id, user_tag
from helpdesk.util.format_utils import none_if_blank, titleize
from helpdesk.util.logger import get_logger

logger = get_logger("category_service")

GuildLike = Union[discord.Guild, GuildID, int]


class CategoryService:
    """
    Owns the categories of every guild.

    - load_guild(guild): replace the cached list from the store
    - create_category / modify_category / delete_category: audited mutations
    - get_categories / get_category: in-memory lookups
    """

    def __init__(self, connection: ConnectionManager = db_connection, audit: AuditLog = audit_log) -> None:
        self._db = connection
        self._audit = audit
        self._repo = CategoryRepository()
        self._questions = QuestionRepository()
        self._categories: Dict[GuildID, List[Category]] = {}
        self._locks: Dict[GuildID, asyncio.Lock] = defaultdict(asyncio.Lock)

    async def load_guild(self, guild: GuildLike) -> int:
        """Replace the cached categories of ``guild`` with the stored ones."""
        guild_id = resolve_guild_id(guild)
        async with self._locks[guild_id]:
            async with self._db.read() as conn:
                categories = await self._repo.get_for_guild(conn, guild_id)
            self._categories[guild_id] = categories

        logger.info("[CATEGORY SERVICE] Loaded %d categories for guild %s", len(categories), guild_id)
        return len(categories)

    # ========== Lookups ==========

    def get_categories(self, guild: GuildLike) -> List[Category]:
        """Categories of the guild in insertion order. Unknown guilds yield an empty list."""
        return list(self._categories.get(resolve_guild_id(guild), []))

    def get_category(
        self,
        guild: GuildLike,
        key: Union[uuid.UUID, str, None],
    ) -> Optional[Category]:
        """
        Find a category by id or by name.

        A ``str`` is matched case-insensitively against names first and then
        tried as a hex id, which is what the command autocomplete submits.
        None or a blank string returns None.
        """
        if key is None:
            return None

        categories = self._categories.get(resolve_guild_id(guild), [])

        if isinstance(key, uuid.UUID):
            return next((c for c in categories if c.id == key), None)

        if not key.strip():
            return None

        wanted = key.strip().casefold()
        match = next((c for c in categories if c.name.casefold() == wanted), None)
        if match is not None:
            return match

        try:
            category_id = uuid.UUID(key.strip())
        except ValueError:
            return None
        return next((c for c in categories if c.id == category_id), None)

    def _name_taken(self, guild_id: GuildID, name: str, exclude: Optional[uuid.UUID] = None) -> bool:
        wanted = name.casefold()
        return any(
            c.name.casefold() == wanted and c.id != exclude
            for c in self._categories.get(guild_id, [])
        )

    # ========== Mutations ==========

    async def create_category(
        self,
        guild: discord.Guild,
        staff: discord.Member,
        name: str,
        description: Optional[str] = None,
    ) -> Category:
        """
        Create a category in ``guild``.

        The name is normalized to title case and a blank description is stored
        as None.

        Raises:
            CategoryNameError: If ``name`` is empty or whitespace.
            DuplicateCategoryError: If the guild already has a category with
                the same name, ignoring case.
        """
        if name is None or not name.strip():
            raise CategoryNameError("Category name cannot be empty.")

        guild_id = resolve_guild_id(guild)
        category = Category(
            guild_id=guild_id,
            name=titleize(name),
            description=none_if_blank(description),
        )

        async with self._locks[guild_id]:
            if self._name_taken(guild_id, category.name):
                raise DuplicateCategoryError(category.name)

            try:
                async with self._db.transaction() as conn:
                    await self._repo.insert(conn, category)
            except sqlite3.IntegrityError as exc:
                raise DuplicateCategoryError(category.name) from exc

            self._categories.setdefault(guild_id, []).append(category)

        logger.info(
            "[CATEGORY SERVICE] Created category %s in guild %s by %s",
            category, guild_id, user_tag(staff),
        )
        await self._audit.log(guild, embeds.build_category_created_embed(category, staff))
        return category

    async def modify_category(
        self,
        category: Category,
        mutation: Callable[[Category], None],
        staff: discord.Member,
    ) -> Category:
        """
        Apply ``mutation`` to the stored version of ``category`` and persist it.

        The mutation receives a fresh copy read from the store, never the
        caller's object. Afterwards the name is normalized again and must still
        be unique, and a blank description becomes None. The caller's object is
        updated to match and the updated category is returned.

        Raises:
            CategoryNameError: If the mutation leaves the name blank.
            DuplicateCategoryError: If the new name clashes with another category.
            LookupError: If the category no longer exists.
        """
        guild_id = category.guild_id

        async with self._locks[guild_id]:
            async with self._db.read() as conn:
                current = await self._repo.get(conn, category.id)
            if current is None:
                raise LookupError(f"Category {category.id.hex} no longer exists")

            old_name, old_description = current.name, current.description
            mutation(current)

            if current.name is None or not current.name.strip():
                raise CategoryNameError("Category name cannot be empty.")
            current.name = titleize(current.name)
            current.description = none_if_blank(current.description)

            if self._name_taken(guild_id, current.name, exclude=current.id):
                raise DuplicateCategoryError(current.name)

            try:
                async with self._db.transaction() as conn:
                    await self._repo.update(conn, current)
            except sqlite3.IntegrityError as exc:
                raise DuplicateCategoryError(current.name) from exc

            cached = self._categories.setdefault(guild_id, [])
            for index, existing in enumerate(cached):
                if existing.id == current.id:
                    cached[index] = current
                    break
            else:
                cached.append(current)

        category.name = current.name
        category.description = current.description

        logger.info(
            "[CATEGORY SERVICE] Modified category %s in guild %s by %s (name %r -> %r)",
            current.id.hex, guild_id, user_tag(staff), old_name, current.name,
        )
        await self._audit.log(
            staff.guild,
            embeds.build_category_modified_embed(current, staff, old_name, old_description),
        )
        return current

    async def delete_category(self, category: Category, staff: discord.Member) -> None:
        """
        Remove ``category`` from the cache and the store.

        Raises:
            CategoryInUseError: If open questions still belong to the category.
        """
        guild_id = category.guild_id

        async with self._locks[guild_id]:
            async with self._db.read() as conn:
                open_questions = await self._questions.count_open_in_category(conn, category.id)
            if open_questions:
                raise CategoryInUseError(category.name, open_questions)

            cached = self._categories.get(guild_id, [])
            self._categories[guild_id] = [c for c in cached if c.id != category.id]

            async with self._db.transaction() as conn:
                await self._repo.delete(conn, category.id)

        logger.info(
            "[CATEGORY SERVICE] Deleted category %s in guild %s by %s",
            category, guild_id, user_tag(staff),
        )
        await self._audit.log(staff.guild, embeds.build_category_deleted_embed(category, staff))


category_service = CategoryService()
