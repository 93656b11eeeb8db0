"""Event listener Cog for Helpdesk.

Handles bot lifecycle events. When a guild becomes available its categories
and open questions are (re)loaded from the database, and the "Ask Here"
prompt of the configured ask-here channel is brought up to date.
"""

import discord
from discord.ext import commands

from helpdesk.services.category_service import category_service
from helpdesk.services.question_service import question_service
from helpdesk.services.submission_service import submission_service
from helpdesk.util.logger import get_logger

logger = get_logger("events_listener")


class EventsListenerCog(commands.Cog):
    """Handles Discord bot lifecycle events."""

    def __init__(self, bot: discord.Bot) -> None:
        self.bot = bot
        logger.info("[EVENTS LISTENER] Events listener cog loaded")

    @commands.Cog.listener(name="on_ready")
    async def on_ready(self) -> None:
        if not self.bot.user:
            logger.warning("[EVENTS LISTENER] Bot partially connected, user info not yet available.")
            return

        await self.bot.change_presence(
            status=discord.Status.online,
            activity=discord.Activity(type=discord.ActivityType.listening, name="your questions"),
        )
        logger.info("Bot connected as %s (ID: %s)", self.bot.user, self.bot.user.id)

    @commands.Cog.listener(name="on_guild_available")
    async def on_guild_available(self, guild: discord.Guild) -> None:
        """Warm the per-guild caches. Safe to run again on every reconnect."""
        logger.debug("[EVENTS LISTENER] Guild available: %s (ID: %s)", guild.name, guild.id)

        await category_service.load_guild(guild)
        await question_service.on_guild_available(guild)

        channel = question_service.get_ask_here_channel(guild)
        if channel is not None:
            try:
                await submission_service.post_question_submission_embed(channel)
            except discord.HTTPException as exc:
                logger.warning(
                    "[EVENTS LISTENER] Could not post the prompt in guild %s: %s", guild.id, exc
                )

        await question_service.update_active_questions_message(guild)


def setup(bot: discord.Bot) -> None:
    """Register the EventsListenerCog with the bot."""
    bot.add_cog(EventsListenerCog(bot))
