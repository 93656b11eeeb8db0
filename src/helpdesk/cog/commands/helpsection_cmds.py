"""
Help section cog: staff commands that manage question categories.

/helpsection addcategory | removecategory | renamecategory | setdescription | cleardescription

All commands require the Manage Server permission and answer ephemerally.
After every change the guild's "Ask Here" prompt is refreshed in place.
"""

from typing import List

import discord
from discord.ext import commands

from helpdesk.configuration.app_configuration import app_config
from helpdesk.errors import HelpdeskError
from helpdesk.services.category_service import category_service
from helpdesk.services.submission_service import submission_service
from helpdesk.ui import embeds
from helpdesk.util.discord_utils import has_manage_guild
from helpdesk.util.format_utils import with_placeholder
from helpdesk.util.logger import get_logger

logger = get_logger("helpsection_commands")

MAX_AUTOCOMPLETE_CHOICES = 25


async def autocomplete_categories(ctx: discord.AutocompleteContext) -> List[discord.OptionChoice]:
    """Categories of the guild whose name contains the typed text. Values are category ids."""
    guild_id = ctx.interaction.guild_id
    if guild_id is None:
        return []

    typed = (ctx.value or "").casefold()
    return [
        discord.OptionChoice(name=category.name, value=category.id.hex)
        for category in category_service.get_categories(guild_id)
        if typed in category.name.casefold()
    ][:MAX_AUTOCOMPLETE_CHOICES]


class HelpSectionCog(commands.Cog):
    """Category administration for staff."""

    helpsection = discord.SlashCommandGroup(
        "helpsection",
        "Manage the categories of the help section.",
    )

    def __init__(self, bot: discord.Bot) -> None:
        self.bot = bot
        logger.info("[HELPSECTION CMDS] Help section cog loaded")

    async def _check_permissions(self, ctx: discord.ApplicationContext) -> bool:
        if not ctx.guild_id:
            await ctx.respond("This command can only be used in a server.", ephemeral=True)
            return False
        if not has_manage_guild(ctx.user):
            await ctx.respond("You need Manage Server permission.", ephemeral=True)
            return False
        return True

    async def _resolve(self, ctx: discord.ApplicationContext, value: str):
        category = category_service.get_category(ctx.guild_id, value)
        if category is None:
            await ctx.respond(
                embed=embeds.build_result_embed(
                    "Not found", discord.Color.red(), f"No category matches `{value}`."
                ),
                ephemeral=True,
            )
        return category

    async def _after_change(self, ctx: discord.ApplicationContext, embed: discord.Embed) -> None:
        await ctx.respond(embed=embed, ephemeral=True)
        await submission_service.refresh_prompt(ctx.guild)

    @helpsection.command(name="addcategory", description="Add a question category.")
    async def add_category(
        self,
        ctx: discord.ApplicationContext,
        name: discord.Option(str, "Name of the category"),
        description: discord.Option(str, "What the category is for", required=False, default=None),
    ):
        if not await self._check_permissions(ctx):
            return
        try:
            category = await category_service.create_category(ctx.guild, ctx.user, name, description)
        except HelpdeskError as exc:
            await ctx.respond(embed=embeds.build_error_embed(exc), ephemeral=True)
            return

        await self._after_change(
            ctx,
            embeds.build_result_embed(
                "Category created",
                app_config.primary_color,
                fields=(
                    ("Name", category.name, True),
                    ("Description", with_placeholder(category.description), False),
                ),
            ),
        )

    @helpsection.command(name="removecategory", description="Remove a question category.")
    async def remove_category(
        self,
        ctx: discord.ApplicationContext,
        category: discord.Option(str, "Category to remove", autocomplete=autocomplete_categories),
    ):
        if not await self._check_permissions(ctx):
            return
        target = await self._resolve(ctx, category)
        if target is None:
            return
        try:
            await category_service.delete_category(target, ctx.user)
        except HelpdeskError as exc:
            await ctx.respond(embed=embeds.build_error_embed(exc), ephemeral=True)
            return

        await self._after_change(
            ctx,
            embeds.build_result_embed(
                "Category removed", discord.Color.red(), f"`{target.name}` has been removed."
            ),
        )

    @helpsection.command(name="renamecategory", description="Rename a question category.")
    async def rename_category(
        self,
        ctx: discord.ApplicationContext,
        category: discord.Option(str, "Category to rename", autocomplete=autocomplete_categories),
        name: discord.Option(str, "New name"),
    ):
        if not await self._check_permissions(ctx):
            return
        target = await self._resolve(ctx, category)
        if target is None:
            return

        old_name = target.name

        def _rename(current):
            current.name = name

        try:
            updated = await category_service.modify_category(target, _rename, ctx.user)
        except (HelpdeskError, LookupError) as exc:
            await ctx.respond(embed=embeds.build_error_embed(exc), ephemeral=True)
            return

        await self._after_change(
            ctx,
            embeds.build_result_embed(
                "Category renamed",
                app_config.primary_color,
                fields=(("Old Name", old_name, True), ("New Name", updated.name, True)),
            ),
        )

    @helpsection.command(name="setdescription", description="Set the description of a question category.")
    async def set_description(
        self,
        ctx: discord.ApplicationContext,
        category: discord.Option(str, "Category to describe", autocomplete=autocomplete_categories),
        description: discord.Option(str, "New description"),
    ):
        await self._update_description(ctx, category, description)

    @helpsection.command(name="cleardescription", description="Clear the description of a question category.")
    async def clear_description(
        self,
        ctx: discord.ApplicationContext,
        category: discord.Option(str, "Category to clear", autocomplete=autocomplete_categories),
    ):
        await self._update_description(ctx, category, None)

    async def _update_description(self, ctx: discord.ApplicationContext, category: str, description) -> None:
        if not await self._check_permissions(ctx):
            return
        target = await self._resolve(ctx, category)
        if target is None:
            return

        def _describe(current):
            current.description = description

        try:
            updated = await category_service.modify_category(target, _describe, ctx.user)
        except (HelpdeskError, LookupError) as exc:
            await ctx.respond(embed=embeds.build_error_embed(exc), ephemeral=True)
            return

        await self._after_change(
            ctx,
            embeds.build_result_embed(
                "Category updated",
                app_config.primary_color,
                fields=(
                    ("Name", updated.name, True),
                    ("Description", with_placeholder(updated.description), False),
                ),
            ),
        )


def setup(bot: discord.Bot) -> None:
    bot.add_cog(HelpSectionCog(bot))
