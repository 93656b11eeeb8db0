"""
Components of the "Ask Here" prompt: the category select menu and the title form.

The select menu carries no callback of its own. Its interactions are routed by
``custom_id`` through the submission listener, so a prompt posted before a
restart keeps working afterwards.
"""

from __future__ import annotations

from typing import Awaitable, Callable, Sequence

import discord

from helpdesk.datatypes.question_datatypes import Category
from helpdesk.util.format_utils import truncate

CATEGORY_SELECT_ID = "askhere-category"
TITLE_INPUT_ID = "title"
MAX_SELECT_OPTIONS = 25
OPTION_TEXT_LIMIT = 100

TITLE_MIN_LENGTH = 15
TITLE_MAX_LENGTH = 100


def modal_custom_id(user_id: int) -> str:
    """Correlation id of the title form opened for ``user_id``."""
    return f"ask-{user_id}"


def build_category_options(categories: Sequence[Category]) -> list[discord.SelectOption]:
    """One option per category, alphabetical by name, at most 25."""
    ordered = sorted(categories, key=lambda c: c.name.casefold())[:MAX_SELECT_OPTIONS]
    return [
        discord.SelectOption(
            label=truncate(category.name, OPTION_TEXT_LIMIT),
            value=category.id.hex,
            description=truncate(category.description, OPTION_TEXT_LIMIT) if category.description else None,
        )
        for category in ordered
    ]


def build_category_select_view(categories: Sequence[Category]) -> discord.ui.View:
    view = discord.ui.View(timeout=None)
    view.add_item(
        discord.ui.Select(
            custom_id=CATEGORY_SELECT_ID,
            placeholder="Select a category...",
            min_values=1,
            max_values=1,
            options=build_category_options(categories),
        )
    )
    return view


class QuestionTitleModal(discord.ui.Modal):
    """Form asking for the title of a new question."""

    def __init__(
        self,
        user_id: int,
        category: Category,
        on_submit: Callable[[discord.Interaction, str], Awaitable[None]],
    ):
        super().__init__(
            discord.ui.InputText(
                label="Question title",
                custom_id=TITLE_INPUT_ID,
                style=discord.InputTextStyle.short,
                placeholder="Describe your problem in a sentence",
                min_length=TITLE_MIN_LENGTH,
                max_length=TITLE_MAX_LENGTH,
                required=True,
            ),
            title=truncate(f"Ask a question: {category.name}", 45),
            custom_id=modal_custom_id(user_id),
        )
        self.category = category
        self._on_submit = on_submit

    async def callback(self, interaction: discord.Interaction) -> None:
        await self._on_submit(interaction, self.children[0].value or "")
