"""
Question lifecycle: creation, lookup, rename and closure.

Each question is backed by one thread under the guild's forum channel. Open
questions are indexed in memory by thread id; the ``questions`` table remains
the source of truth, so lookups that must also see closed questions go to the
store.

Creation talks to Discord several times and is not transactional. When a
later step fails, the earlier ones (the thread, the stored row) stay in place
and the error is raised to the caller.
"""

from __future__ import annotations

import asyncio
from collections import defaultdict
from typing import Any, Dict, List, Optional, Union

import discord

from helpdesk.configuration.app_configuration import AppConfig, app_config
from helpdesk.database.db_connection import ConnectionManager, db_connection
from helpdesk.datatypes.discord_datatypes import ChannelID, GuildID, UserID
from helpdesk.datatypes.question_datatypes import Category, CloseReason, Question
from helpdesk.errors import (
    ForumChannelNotConfiguredError,
    InvalidCloseReasonError,
    QuestionTitleError,
)
from helpdesk.repositories.question_repo import QuestionRepository
from helpdesk.services.cached_message_service import CachedMessageService, cached_message_service
from helpdesk.services.category_service import CategoryService, category_service
from helpdesk.ui import embeds
from helpdesk.util.discord_utils import is_thread, resolve_guild_id, user_tag
from helpdesk.util.format_utils import truncate
from helpdesk.util.logger import get_logger

logger = get_logger("question_service")

MIN_TITLE_LENGTH = 5
THREAD_NAME_LIMIT = 100
MESSAGE_CONTENT_LIMIT = 2000
ACTIVE_QUESTIONS_MESSAGE_KEY = "active_questions_message"

GuildLike = Union[discord.Guild, GuildID, int]


def validate_title(title: Optional[str]) -> str:
    """
    Return ``title`` unchanged, or raise QuestionTitleError.

    Surrounding whitespace does not count towards the minimum length.
    """
    if title is None or not title.strip():
        raise QuestionTitleError("The question title cannot be empty.")
    if len(title.strip()) < MIN_TITLE_LENGTH:
        raise QuestionTitleError(
            f"The question title must be at least {MIN_TITLE_LENGTH} characters long."
        )
    return title


def coerce_close_reason(reason: Any) -> CloseReason:
    """Accept a CloseReason, its value ("Resolved") or its name ("RESOLVED")."""
    if isinstance(reason, CloseReason):
        return reason
    if isinstance(reason, str):
        for candidate in CloseReason:
            if reason.strip().casefold() in (candidate.value.casefold(), candidate.name.casefold()):
                return candidate
    raise InvalidCloseReasonError(f"'{reason}' is not a valid close reason.")


class QuestionService:
    """
    Owns questions and their threads.

    Per guild it keeps the registered forum, ask-here and active-questions
    channels, and an index of open questions keyed by thread id.
    """

    def __init__(
        self,
        connection: ConnectionManager = db_connection,
        categories: CategoryService = category_service,
        message_cache: CachedMessageService = cached_message_service,
        config: AppConfig = app_config,
    ) -> None:
        self._db = connection
        self._categories = categories
        self._message_cache = message_cache
        self._config = config
        self._repo = QuestionRepository()
        self._forum_channels: Dict[GuildID, Any] = {}
        self._ask_here_channels: Dict[GuildID, Any] = {}
        self._active_questions_channels: Dict[GuildID, Any] = {}
        self._active: Dict[GuildID, Dict[ChannelID, Question]] = {}
        self._locks: Dict[GuildID, asyncio.Lock] = defaultdict(asyncio.Lock)

    # ========== Guild setup ==========

    def register_forum_channel(self, guild: GuildLike, channel: Any) -> None:
        """Register the channel that hosts question threads for ``guild``."""
        self._forum_channels[resolve_guild_id(guild)] = channel

    def register_ask_here_channel(self, guild: GuildLike, channel: Any) -> None:
        self._ask_here_channels[resolve_guild_id(guild)] = channel

    def register_active_questions_channel(self, guild: GuildLike, channel: Any) -> None:
        self._active_questions_channels[resolve_guild_id(guild)] = channel

    def get_ask_here_channel(self, guild: GuildLike) -> Optional[Any]:
        return self._ask_here_channels.get(resolve_guild_id(guild))

    async def on_guild_available(self, guild: discord.Guild) -> int:
        """
        Resolve the configured channels of ``guild`` and load its open questions.

        Returns the number of open questions loaded. The index is replaced, so
        reconnect events never duplicate entries.
        """
        guild_id = resolve_guild_id(guild)
        configured = self._config.guild_channels(guild_id)

        for channel_id, register, label in (
            (configured.forum_channel, self.register_forum_channel, "forum"),
            (configured.ask_here_channel, self.register_ask_here_channel, "ask-here"),
            (configured.active_questions_channel, self.register_active_questions_channel, "active questions"),
        ):
            if channel_id is None:
                continue
            channel = guild.get_channel(channel_id.to_int())
            if channel is None:
                logger.warning(
                    "[QUESTION SERVICE] Configured %s channel %s not found in guild %s",
                    label, channel_id, guild_id,
                )
                continue
            register(guild_id, channel)

        if guild_id not in self._forum_channels:
            logger.warning("[QUESTION SERVICE] No forum channel configured for guild %s", guild_id)

        async with self._locks[guild_id]:
            async with self._db.read() as conn:
                open_questions = await self._repo.get_open_for_guild(conn, guild_id)
            self._active[guild_id] = {q.thread_id: q for q in open_questions}

        logger.info("[QUESTION SERVICE] Loaded %d open questions for guild %s", len(open_questions), guild_id)
        return len(open_questions)

    # ========== Lifecycle ==========

    async def create_question(self, member: discord.Member, category: Category, title: str) -> Question:
        """
        Open a question for ``member`` in ``category``.

        Creates the thread, stores the question, indexes it, adds the member to
        the thread, locks it and posts the intro and guidance messages.

        Raises:
            QuestionTitleError: If the title is blank or too short.
            ForumChannelNotConfiguredError: If no forum channel is registered.
            discord.HTTPException: If a Discord call fails. Steps already taken
                are not undone.
        """
        title = validate_title(title)
        guild_id = resolve_guild_id(member.guild)

        forum = self._forum_channels.get(guild_id)
        if forum is None:
            raise ForumChannelNotConfiguredError(guild_id.to_int())

        thread = await forum.create_thread(
            name=embeds.format_thread_name(category.name, title.strip(), THREAD_NAME_LIMIT),
            auto_archive_duration=self._config.auto_archive_minutes,
            type=discord.ChannelType.public_thread,
        )

        question = Question(
            guild_id=guild_id,
            category_id=category.id,
            author_id=UserID(member.id),
            title=title,
            thread_id=ChannelID(thread.id),
        )

        async with self._locks[guild_id]:
            try:
                async with self._db.transaction() as conn:
                    await self._repo.insert(conn, question)
            except Exception:
                logger.error(
                    "[QUESTION SERVICE] Failed to store question; thread %s in guild %s is orphaned",
                    thread.id, guild_id,
                )
                raise
            self._active.setdefault(guild_id, {})[question.thread_id] = question

        logger.info(
            "[QUESTION SERVICE] Created question %s in thread %s for %s",
            question.id.hex, thread.id, user_tag(member),
        )

        await thread.add_user(member)
        await thread.edit(locked=True)
        await thread.send(
            embed=embeds.build_question_intro_embed(member, question, category, self._config.primary_color)
        )
        await thread.send(
            content=embeds.build_guidance_content(member.id),
            embeds=embeds.build_guidance_embeds(self._config.secondary_color),
        )

        await self.update_active_questions_message(member.guild)
        return question

    async def close(self, question: Question, reason: Any, closer: discord.Member) -> None:
        """
        Close ``question`` for ``reason``. Closing twice changes nothing.

        The stored row is re-read first, so a question closed concurrently is
        not closed again; ``question`` is updated in place to the stored state.

        Raises:
            InvalidCloseReasonError: If ``reason`` is not a known close reason.
        """
        reason = coerce_close_reason(reason)
        if question.is_closed:
            return

        guild_id = question.guild_id
        async with self._locks[guild_id]:
            async with self._db.read() as conn:
                stored = await self._repo.get(conn, question.id)
            if stored is None:
                raise LookupError(f"Question {question.id.hex} no longer exists")

            if stored.is_closed:
                question.copy_state_from(stored)
                self._active.get(guild_id, {}).pop(stored.thread_id, None)
                return

            stored.mark_closed(reason, UserID(closer.id))

            thread = await self._resolve_thread(closer.guild, stored.thread_id)
            if thread is not None:
                icon = closer.guild.icon.url if getattr(closer.guild, "icon", None) else None
                await thread.send(embed=embeds.build_question_closed_embed(stored, reason, closer, icon))
                await thread.edit(archived=True, locked=True)

            async with self._db.transaction() as conn:
                await self._repo.update(conn, stored)

            self._active.get(guild_id, {}).pop(stored.thread_id, None)
            question.copy_state_from(stored)

        logger.info(
            "[QUESTION SERVICE] Closed question %s (%s) by %s",
            question.id.hex, reason.value, user_tag(closer),
        )
        await self.update_active_questions_message(closer.guild)

    async def rename_question(self, question: Question, title: str, actor: discord.Member) -> Question:
        """
        Change the title of ``question`` and rename its thread to match.

        Raises:
            QuestionTitleError: If the title is blank or too short.
        """
        title = validate_title(title)
        guild_id = question.guild_id

        async with self._locks[guild_id]:
            async with self._db.read() as conn:
                stored = await self._repo.get(conn, question.id)
            if stored is None:
                raise LookupError(f"Question {question.id.hex} no longer exists")

            old_title = stored.title
            stored.title = title
            async with self._db.transaction() as conn:
                await self._repo.update(conn, stored)

            if not stored.is_closed:
                self._active.setdefault(guild_id, {})[stored.thread_id] = stored
            question.copy_state_from(stored)

        category = self._categories.get_category(guild_id, stored.category_id)
        category_name = category.name if category is not None else "Question"
        thread = await self._resolve_thread(actor.guild, stored.thread_id)
        if thread is not None:
            await thread.edit(name=embeds.format_thread_name(category_name, title.strip(), THREAD_NAME_LIMIT))

        logger.info(
            "[QUESTION SERVICE] Renamed question %s from %r to %r by %s",
            question.id.hex, old_title, title, user_tag(actor),
        )
        await self.update_active_questions_message(actor.guild)
        return question

    # ========== Lookups ==========

    async def get_question_from_thread(self, channel: Any) -> Optional[Question]:
        """
        Return the question behind ``channel``, open or closed.

        Raises:
            ValueError: If ``channel`` is not a thread.
        """
        if not is_thread(channel):
            raise ValueError("channel must be a thread")
        async with self._db.read() as conn:
            return await self._repo.get_by_thread(conn, ChannelID(channel.id))

    def is_question_channel(self, channel: Any) -> bool:
        """True when ``channel`` is the thread of an open question. Does not consult the store."""
        if not is_thread(channel):
            return False
        return ChannelID(channel.id) in self._active.get(GuildID(channel.guild.id), {})

    async def is_archived_question_channel(self, channel: Any) -> bool:
        """True when ``channel`` is or ever was the thread of a question."""
        if self.is_question_channel(channel):
            return True
        if not is_thread(channel):
            return False
        async with self._db.read() as conn:
            return await self._repo.exists_for_thread(conn, ChannelID(channel.id))

    def get_active_questions(self, guild: GuildLike) -> List[Question]:
        return list(self._active.get(resolve_guild_id(guild), {}).values())

    async def _resolve_thread(self, guild: discord.Guild, thread_id: ChannelID) -> Optional[Any]:
        thread = guild.get_channel_or_thread(thread_id.to_int())
        if thread is not None:
            return thread
        try:
            return await guild.fetch_channel(thread_id.to_int())
        except (discord.NotFound, discord.Forbidden):
            logger.info("[QUESTION SERVICE] Thread %s is no longer reachable", thread_id)
            return None

    # ========== Active questions board ==========

    async def update_active_questions_message(self, guild: discord.Guild) -> None:
        """
        Render the open questions into the guild's active-questions message.

        Does nothing when no active-questions channel is registered. Discord
        failures are logged and not raised.
        """
        guild_id = resolve_guild_id(guild)
        channel = self._active_questions_channels.get(guild_id)
        if channel is None:
            return

        categories = {c.id: c for c in self._categories.get_categories(guild_id)}
        content = truncate(
            embeds.build_active_questions_board(self.get_active_questions(guild_id), categories),
            MESSAGE_CONTENT_LIMIT,
        )

        try:
            message = await self._message_cache.get_message(ACTIVE_QUESTIONS_MESSAGE_KEY, guild_id)
            if message is not None:
                await message.edit(content=content)
                return
            message = await channel.send(content=content)
            await self._message_cache.cache_message(ACTIVE_QUESTIONS_MESSAGE_KEY, message)
        except discord.HTTPException as exc:
            logger.warning(
                "[QUESTION SERVICE] Could not update the active questions message in guild %s: %s",
                guild_id, exc,
            )


question_service = QuestionService()
