"""
Ask-here cog: /askhere posts or refreshes the question submission prompt.

If the guild already has a prompt it is edited in place, wherever it lives;
otherwise a new prompt is sent to the current channel.
"""

import discord
from discord.ext import commands

from helpdesk.services.submission_service import submission_service
from helpdesk.ui import embeds
from helpdesk.util.discord_utils import has_manage_guild
from helpdesk.util.logger import get_logger

logger = get_logger("askhere_commands")


class AskHereCog(commands.Cog):

    def __init__(self, bot: discord.Bot) -> None:
        self.bot = bot
        logger.info("[ASKHERE CMDS] Ask-here cog loaded")

    @commands.slash_command(name="askhere", description="Post or refresh the question prompt.")
    async def askhere(self, ctx: discord.ApplicationContext):
        if not ctx.guild_id:
            await ctx.respond("This command can only be used in a server.", ephemeral=True)
            return
        if not has_manage_guild(ctx.user):
            await ctx.respond("You need Manage Server permission.", ephemeral=True)
            return

        await ctx.defer(ephemeral=True)
        try:
            message = await submission_service.post_question_submission_embed(ctx.channel)
        except discord.HTTPException as exc:
            logger.warning("[ASKHERE CMDS] Failed to post the prompt in guild %s: %s", ctx.guild_id, exc)
            await ctx.send_followup(embed=embeds.build_error_embed(exc), ephemeral=True)
            return

        await ctx.send_followup(
            embed=embeds.build_result_embed(
                "Prompt ready",
                discord.Color.green(),
                f"The question prompt is at {message.jump_url}.",
            ),
            ephemeral=True,
        )


def setup(bot: discord.Bot) -> None:
    bot.add_cog(AskHereCog(bot))
