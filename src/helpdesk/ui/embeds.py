"""
Embed builders for Helpdesk.

Standalone functions with no state and no database access: services gather
the data, these functions turn it into ``discord.Embed`` objects.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Sequence

import discord

from helpdesk.datatypes.question_datatypes import Category, CloseReason, Question
from helpdesk.errors import CategoryInUseError, ConfigurationError, ValidationError
from helpdesk.util.format_utils import with_placeholder

ASK_HERE_TITLE = "❓ Open a new question"
NO_CATEGORIES_TITLE = "❌ No categories found"
NO_CATEGORIES_TEXT = "There are no categories available for questions."

GUIDANCE_CODE_SAMPLE = 'print("Hello World")'
PASTE_SERVICE_NAME = "PasteMyst"
PASTE_SERVICE_URL = "https://paste.myst.rs/"


# ---------------------------------------------------------------------------
# Ask-here prompt
# ---------------------------------------------------------------------------

def build_ask_here_embed(description: str, color: discord.Colour) -> discord.Embed:
    return discord.Embed(title=ASK_HERE_TITLE, description=description, color=color)


def build_no_categories_embed() -> discord.Embed:
    return discord.Embed(
        title=NO_CATEGORIES_TITLE,
        description=NO_CATEGORIES_TEXT,
        color=discord.Color.red(),
    )


# ---------------------------------------------------------------------------
# Question threads
# ---------------------------------------------------------------------------

def build_question_intro_embed(
    member: discord.Member,
    question: Question,
    category: Category,
    color: discord.Colour,
) -> discord.Embed:
    """First message of a question thread: who asked, what, and in which category."""
    embed = discord.Embed(
        title=f"Question from {member}",
        description=question.title,
        color=color,
        timestamp=question.created_at,
    )
    avatar = getattr(member, "display_avatar", None)
    if avatar is not None:
        embed.set_thumbnail(url=avatar.url)
    embed.set_footer(text=category.name)
    return embed


def build_guidance_content(member_id: int) -> str:
    return f"<@{member_id}>, to improve your chances of getting help, please keep these tips in mind."


def build_guidance_embeds(color: discord.Colour) -> List[discord.Embed]:
    """The "how to ask well" tips posted under every new question."""
    code_block = f"```py\n{GUIDANCE_CODE_SAMPLE}\n```"
    format_code = discord.Embed(
        title="Format code!",
        description=(
            "Send short snippets of code in codeblocks, and use syntax highlighting "
            "to make it easier to read.\n\n"
            "For example:\n"
            f"{discord.utils.escape_markdown(code_block)}\n"
            "will produce:\n"
            f"{code_block}"
        ),
        color=color,
    )
    paste_service = discord.Embed(
        title="Use a paste service!",
        description=(
            "To send lengthy code, consider uploading it to "
            f"[{PASTE_SERVICE_NAME}]({PASTE_SERVICE_URL}) and then sending the link to this thread."
        ),
        color=color,
    )
    be_patient = discord.Embed(
        title="Be patient!",
        description=(
            "If you don't receive immediate help, it may mean that your question is poorly written, "
            "and so answerers may not feel confident in being able to help you. Use this time to "
            "provide as much detail as possible, so that you have the best chances of solving the "
            "problem.\n\n"
            "Keep in mind that the ratio of those that need help, to those that do help, is very "
            "small - and those that do help are volunteers, so please be respectful!"
        ),
        color=color,
    )
    return [format_code, paste_service, be_patient]


def build_question_closed_embed(
    question: Question,
    reason: CloseReason,
    closer: discord.Member,
    guild_icon_url: Optional[str] = None,
) -> discord.Embed:
    if closer.id == question.author_id:
        description = "This question was closed by the asker."
    else:
        description = f"This question was closed by {closer.mention}."

    embed = discord.Embed(
        title="Question closed",
        description=description,
        color=discord.Color.green() if reason is CloseReason.RESOLVED else discord.Color.red(),
        timestamp=question.closed_at,
    )
    if guild_icon_url:
        embed.set_thumbnail(url=guild_icon_url)
    embed.add_field(name="Reason", value=f"{reason.value}: {reason.description}", inline=False)
    return embed


def format_thread_name(category_name: str, title: str, limit: int = 100) -> str:
    """Build ``"[Category] title"``, shortening the title so the whole name fits ``limit``."""
    prefix = f"[{category_name}] "
    budget = limit - len(prefix)
    if budget <= 3:
        return prefix[:limit]
    if len(title) > budget:
        title = title[: budget - 3] + "..."
    return prefix + title


# ---------------------------------------------------------------------------
# Active questions board
# ---------------------------------------------------------------------------

def build_active_questions_board(
    questions: Iterable[Question],
    categories: Dict[object, Category],
    per_category: int = 10,
) -> str:
    """Render open questions grouped by category, newest first, as message content."""
    grouped: Dict[object, List[Question]] = {}
    for question in questions:
        grouped.setdefault(question.category_id, []).append(question)

    total = sum(len(items) for items in grouped.values())
    lines = [f"__**{total} Active Question{'' if total == 1 else 's'}**__"]
    lines.append(f"*Only the {per_category} most recent questions are shown for each category.*")
    lines.append("")

    def _category_name(category_id: object) -> str:
        category = categories.get(category_id)
        return category.name if category is not None else "Uncategorized"

    for category_id in sorted(grouped, key=_category_name):
        recent = sorted(grouped[category_id], key=lambda q: q.created_at, reverse=True)[:per_category]
        lines.append(f"**{_category_name(category_id)}**")
        for question in recent:
            asked = discord.utils.format_dt(question.created_at, "R")
            lines.append(f"<#{question.thread_id}> (asked {asked} by <@{question.author_id}>)")
        lines.append("")

    return "\n".join(lines).rstrip()


# ---------------------------------------------------------------------------
# Audit embeds
# ---------------------------------------------------------------------------

def build_category_created_embed(category: Category, staff: discord.Member) -> discord.Embed:
    return discord.Embed(
        title="Help Category Created",
        description=f"A category `{category.name}` ({category.id.hex}) has been created by {staff.mention}.",
        color=discord.Color.green(),
        timestamp=datetime.now(timezone.utc),
    )


def build_category_deleted_embed(category: Category, staff: discord.Member) -> discord.Embed:
    return discord.Embed(
        title="Help Category Deleted",
        description=f"The category `{category.name}` ({category.id.hex}) has been deleted by {staff.mention}.",
        color=discord.Color.red(),
        timestamp=datetime.now(timezone.utc),
    )


def build_category_modified_embed(
    category: Category,
    staff: discord.Member,
    old_name: str,
    old_description: Optional[str],
) -> discord.Embed:
    embed = discord.Embed(
        title="Help Category Modified",
        description=f"The category `{category.name}` ({category.id.hex}) has been modified by {staff.mention}.",
        color=discord.Color.orange(),
        timestamp=datetime.now(timezone.utc),
    )
    embed.add_field(name="Old Name", value=old_name, inline=True)
    embed.add_field(name="New Name", value=category.name, inline=True)
    embed.add_field(name="Old Description", value=with_placeholder(old_description), inline=False)
    embed.add_field(name="New Description", value=with_placeholder(category.description), inline=False)
    return embed


# ---------------------------------------------------------------------------
# Command responses
# ---------------------------------------------------------------------------

def build_result_embed(
    title: str,
    color: discord.Colour,
    description: Optional[str] = None,
    fields: Sequence[tuple[str, str, bool]] = (),
) -> discord.Embed:
    embed = discord.Embed(title=title, description=description, color=color)
    for name, value, inline in fields:
        embed.add_field(name=name, value=value, inline=inline)
    return embed


def build_error_embed(error: Exception) -> discord.Embed:
    """Explain a failed command, naming the kind of failure in the title."""
    if isinstance(error, ValidationError):
        title = "Invalid input"
    elif isinstance(error, CategoryInUseError):
        title = "Category in use"
    elif isinstance(error, ConfigurationError):
        title = "Not configured"
    elif isinstance(error, LookupError):
        title = "Not found"
    else:
        title = "Something went wrong"
    return build_result_embed(title, discord.Color.red(), str(error))
