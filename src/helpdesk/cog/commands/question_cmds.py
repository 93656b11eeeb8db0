"""
Question cog: commands used inside a question thread.

/question close reason   close the question and archive its thread
/question rename title   change the title of the question

Both are available to the asker and to members with Manage Messages.
"""

import discord
from discord.ext import commands

from helpdesk.datatypes.question_datatypes import CloseReason
from helpdesk.errors import HelpdeskError
from helpdesk.services.question_service import question_service
from helpdesk.ui import embeds
from helpdesk.util.discord_utils import is_staff
from helpdesk.util.logger import get_logger

logger = get_logger("question_commands")

CLOSE_REASON_CHOICES = [
    discord.OptionChoice(name=f"{reason.value}: {reason.description}"[:100], value=reason.value)
    for reason in CloseReason
]


class QuestionCog(commands.Cog):
    """Commands for managing a single question from within its thread."""

    question = discord.SlashCommandGroup("question", "Manage the question of this thread.")

    def __init__(self, bot: discord.Bot) -> None:
        self.bot = bot
        logger.info("[QUESTION CMDS] Question cog loaded")

    async def _load_question(self, ctx: discord.ApplicationContext):
        """Return the question of the current thread if the user may manage it, else answer and return None."""
        channel = ctx.channel
        if not (question_service.is_question_channel(channel)
                or await question_service.is_archived_question_channel(channel)):
            await ctx.respond("This command can only be used in a question thread.", ephemeral=True)
            return None

        question = await question_service.get_question_from_thread(channel)
        if question is None:
            await ctx.respond("This thread has no question attached.", ephemeral=True)
            return None

        if ctx.user.id != question.author_id and not is_staff(ctx.user):
            await ctx.respond("Only the asker or staff can manage this question.", ephemeral=True)
            return None
        return question

    @question.command(name="close", description="Close this question.")
    async def close(
        self,
        ctx: discord.ApplicationContext,
        reason: discord.Option(str, "Why the question is closed", choices=CLOSE_REASON_CHOICES),
    ):
        question = await self._load_question(ctx)
        if question is None:
            return
        if question.is_closed:
            await ctx.respond("This question is already closed.", ephemeral=True)
            return

        # Responses fail once the thread is archived.
        await ctx.respond(
            embed=embeds.build_result_embed("Closing question", discord.Color.green()),
            ephemeral=True,
        )
        try:
            await question_service.close(question, reason, ctx.user)
        except HelpdeskError as exc:
            await ctx.send_followup(embed=embeds.build_error_embed(exc), ephemeral=True)

    @question.command(name="rename", description="Change the title of this question.")
    async def rename(
        self,
        ctx: discord.ApplicationContext,
        title: discord.Option(str, "New title", min_length=5, max_length=100),
    ):
        question = await self._load_question(ctx)
        if question is None:
            return

        old_title = question.title
        try:
            await question_service.rename_question(question, title, ctx.user)
        except (HelpdeskError, LookupError) as exc:
            await ctx.respond(embed=embeds.build_error_embed(exc), ephemeral=True)
            return

        await ctx.respond(
            embed=embeds.build_result_embed(
                "Question renamed",
                discord.Color.green(),
                fields=(("Old Title", old_title, False), ("New Title", question.title, False)),
            ),
            ephemeral=True,
        )


def setup(bot: discord.Bot) -> None:
    bot.add_cog(QuestionCog(bot))
