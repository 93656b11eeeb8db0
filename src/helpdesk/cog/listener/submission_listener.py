"""Routes "Ask Here" select-menu interactions to the submission service.

The prompt may have been posted by an earlier process, so its components are
matched by ``custom_id`` here rather than through a live view object.
"""

import discord
from discord.ext import commands

from helpdesk.services.submission_service import submission_service
from helpdesk.util.logger import get_logger

logger = get_logger("submission_listener")


class SubmissionListenerCog(commands.Cog):

    def __init__(self, bot: discord.Bot) -> None:
        self.bot = bot
        logger.info("[SUBMISSION LISTENER] Submission listener cog loaded")

    @commands.Cog.listener(name="on_interaction")
    async def on_interaction(self, interaction: discord.Interaction) -> None:
        try:
            await submission_service.handle_interaction(interaction)
        except discord.HTTPException:
            logger.exception("[SUBMISSION LISTENER] Failed to answer interaction %s", interaction.id)


def setup(bot: discord.Bot) -> None:
    bot.add_cog(SubmissionListenerCog(bot))
