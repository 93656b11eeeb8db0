"""
The two-step question submission flow.

1. A member picks a category in the "Ask Here" prompt. The choice is kept in
   memory as a pending selection and a title form is opened.
2. When the form comes back, the pending selection is consumed and the
   question is created.

Pending selections are kept per guild and member. They expire after
``submission.pending_selection_ttl_seconds`` and a new selection by the same
member in the same guild replaces the previous one. They are not
persisted, so a restart clears them.

The prompt itself is a cached message slot: posting it again edits the
existing message instead of sending a duplicate.
"""

from __future__ import annotations

import asyncio
import time
from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple, Union

import discord

from helpdesk.configuration.app_configuration import AppConfig, app_config
from helpdesk.datatypes.discord_datatypes import GuildID, UserID
from helpdesk.datatypes.question_datatypes import Category
from helpdesk.errors import ConfigurationError, HelpdeskError, ValidationError
from helpdesk.services.cached_message_service import CachedMessageService, cached_message_service
from helpdesk.services.category_service import CategoryService, category_service
from helpdesk.services.question_service import QuestionService, question_service
from helpdesk.ui import embeds
from helpdesk.ui.submission_ui import (
    CATEGORY_SELECT_ID,
    QuestionTitleModal,
    build_category_select_view,
    modal_custom_id,
)
from helpdesk.util.discord_utils import resolve_guild_id, user_tag
from helpdesk.util.logger import get_logger

logger = get_logger("submission_service")

ASK_HERE_MESSAGE_KEY = "ask_here_message"


@dataclass(slots=True)
class PendingSelection:
    category: Category
    selected_at: float


class SubmissionService:
    """Drives the category select menu, the title form and the prompt message."""

    def __init__(
        self,
        categories: CategoryService = category_service,
        questions: QuestionService = question_service,
        message_cache: CachedMessageService = cached_message_service,
        config: AppConfig = app_config,
        clock=time.monotonic,
    ) -> None:
        self._categories = categories
        self._questions = questions
        self._message_cache = message_cache
        self._config = config
        self._clock = clock
        self._pending: Dict[Tuple[GuildID, UserID], PendingSelection] = {}
        self._locks: Dict[GuildID, asyncio.Lock] = defaultdict(asyncio.Lock)

    # ========== Pending selections ==========

    def _purge_expired(self) -> None:
        cutoff = self._clock() - self._config.pending_selection_ttl
        for slot in [s for s, p in self._pending.items() if p.selected_at < cutoff]:
            del self._pending[slot]

    @staticmethod
    def _pending_slot(user: Union[discord.abc.User, int], guild: Any) -> Tuple[GuildID, UserID]:
        if guild is None:
            guild = getattr(user, "guild", None)
        return resolve_guild_id(guild), UserID(getattr(user, "id", user))

    def select_category(self, user: Union[discord.abc.User, int], category: Category) -> None:
        """Record ``category`` as the pending choice of ``user`` in the category's guild."""
        self._purge_expired()
        slot = self._pending_slot(user, category.guild_id)
        self._pending[slot] = PendingSelection(category, self._clock())

    def take_pending(self, user: Union[discord.abc.User, int], guild: Any = None) -> Optional[Category]:
        """
        Remove and return the unexpired pending choice of ``user`` in ``guild``.

        ``guild`` defaults to the member's own guild.
        """
        self._purge_expired()
        pending = self._pending.pop(self._pending_slot(user, guild), None)
        return pending.category if pending is not None else None

    def has_pending(self, user: Union[discord.abc.User, int], guild: Any = None) -> bool:
        self._purge_expired()
        return self._pending_slot(user, guild) in self._pending

    # ========== Prompt ==========

    def build_prompt(self, guild: Any) -> Tuple[discord.Embed, Optional[discord.ui.View]]:
        """The prompt embed and select menu, or the "no categories" notice without a view."""
        categories = self._categories.get_categories(guild)
        if not categories:
            return embeds.build_no_categories_embed(), None
        embed = embeds.build_ask_here_embed(self._config.ask_here_text, self._config.primary_color)
        return embed, build_category_select_view(categories)

    async def post_question_submission_embed(
        self,
        channel: discord.abc.Messageable,
        message: Optional[discord.Message] = None,
    ) -> discord.Message:
        """
        Make sure the prompt of the channel's guild exists and is current.

        The target message is ``message`` when given, otherwise the message
        held by the prompt slot. If neither exists a new message is sent to
        ``channel`` and registered in the slot. Existing messages are edited in
        place.
        """
        guild = channel.guild
        guild_id = resolve_guild_id(guild)

        async with self._locks[guild_id]:
            embed, view = self.build_prompt(guild_id)

            if message is None:
                message = await self._message_cache.get_message(ASK_HERE_MESSAGE_KEY, guild_id)

            if message is not None:
                await message.edit(embed=embed, view=view)
                cached = self._message_cache.get_cached_message(guild_id, ASK_HERE_MESSAGE_KEY)
                if cached is None or cached.message_id != message.id:
                    await self._message_cache.cache_message(ASK_HERE_MESSAGE_KEY, message)
                logger.info("[SUBMISSION SERVICE] Refreshed prompt %s in guild %s", message.id, guild_id)
                return message

            message = await channel.send(embed=embed, view=view)
            await self._message_cache.cache_message(ASK_HERE_MESSAGE_KEY, message)

        logger.info("[SUBMISSION SERVICE] Posted prompt %s in guild %s", message.id, guild_id)
        return message

    async def refresh_prompt(self, guild: Any) -> Optional[discord.Message]:
        """Re-render the guild's prompt if one is registered. Failures are logged, not raised."""
        guild_id = resolve_guild_id(guild)
        if self._message_cache.get_cached_message(guild_id, ASK_HERE_MESSAGE_KEY) is None:
            return None

        try:
            message = await self._message_cache.get_message(ASK_HERE_MESSAGE_KEY, guild_id)
            if message is None:
                return None
            return await self.post_question_submission_embed(message.channel, message)
        except discord.HTTPException as exc:
            logger.warning("[SUBMISSION SERVICE] Could not refresh the prompt in guild %s: %s", guild_id, exc)
            return None

    # ========== Interactions ==========

    async def handle_interaction(self, interaction: discord.Interaction) -> bool:
        """Route a raw component interaction. Returns True when it belonged to the prompt."""
        if interaction.type is not discord.InteractionType.component:
            return False
        if interaction.custom_id != CATEGORY_SELECT_ID:
            return False
        await self.handle_category_selected(interaction)
        return True

    async def handle_category_selected(self, interaction: discord.Interaction) -> None:
        values = (interaction.data or {}).get("values") or []
        category = self._categories.get_category(interaction.guild_id, values[0]) if values else None

        if category is None:
            await interaction.response.send_message(
                embed=embeds.build_result_embed(
                    "Category not found",
                    discord.Color.red(),
                    "That category no longer exists. Please pick another one.",
                ),
                ephemeral=True,
            )
            return

        self.select_category(interaction.user, category)
        logger.debug(
            "[SUBMISSION SERVICE] %s selected category %s",
            user_tag(interaction.user), category,
        )
        await interaction.response.send_modal(
            QuestionTitleModal(interaction.user.id, category, self.handle_modal_submitted)
        )

    async def handle_modal_submitted(self, interaction: discord.Interaction, title: str) -> None:
        """
        Create the question for a submitted title form.

        The pending selection is consumed even when the title turns out to be
        blank, so a second attempt needs a new selection.
        """
        user = interaction.user
        if interaction.custom_id != modal_custom_id(user.id):
            logger.warning(
                "[SUBMISSION SERVICE] Ignoring form %s submitted by %s",
                interaction.custom_id, user_tag(user),
            )
            await self._reply(
                interaction,
                "Form not recognized",
                "This form does not belong to you. Please pick a category from the prompt again.",
            )
            return

        category = self.take_pending(user, interaction.guild_id)
        if category is None:
            await self._reply(
                interaction,
                "Selection expired",
                "Your category selection has expired. Please pick a category again.",
            )
            return

        if title is None or not title.strip():
            await self._reply(interaction, "Empty title", "Your question needs a title. Please try again.")
            return

        await interaction.response.defer(ephemeral=True)
        try:
            question = await self._questions.create_question(user, category, title)
        except ValidationError as exc:
            await self._followup(interaction, "Invalid question", str(exc))
            return
        except ConfigurationError as exc:
            logger.error("[SUBMISSION SERVICE] %s", exc)
            await self._followup(
                interaction,
                "Questions are not set up",
                "This server has not configured a channel for questions yet. Please contact the staff.",
            )
            return
        except HelpdeskError as exc:
            await self._followup(interaction, "Could not create question", str(exc))
            return
        except discord.HTTPException as exc:
            logger.exception("[SUBMISSION SERVICE] Discord failed while creating a question for %s", user_tag(user))
            await self._followup(
                interaction,
                "Could not create question",
                f"Discord rejected part of the request ({exc.status}). Your thread may be incomplete.",
            )
            return

        await interaction.followup.send(
            embed=embeds.build_result_embed(
                "Question created",
                discord.Color.green(),
                f"Your question has been opened in <#{question.thread_id}>.",
            ),
            ephemeral=True,
        )

    @staticmethod
    async def _reply(interaction: discord.Interaction, title: str, description: str) -> None:
        await interaction.response.send_message(
            embed=embeds.build_result_embed(title, discord.Color.red(), description),
            ephemeral=True,
        )

    @staticmethod
    async def _followup(interaction: discord.Interaction, title: str, description: str) -> None:
        await interaction.followup.send(
            embed=embeds.build_result_embed(title, discord.Color.red(), description),
            ephemeral=True,
        )


submission_service = SubmissionService()
