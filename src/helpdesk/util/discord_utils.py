"""
Stateless helpers for Discord objects.

Kept free of service state so cogs, services and tests can share them.
"""

from __future__ import annotations

from typing import Any, Optional, Union

import discord

from helpdesk.datatypes.discord_datatypes import GuildID


def is_thread(channel: Any) -> bool:
    """Return True when ``channel`` is a thread channel."""
    return isinstance(channel, discord.Thread)


def resolve_guild_id(guild: Union[discord.Guild, GuildID, int, str]) -> GuildID:
    """Normalize a guild object or raw snowflake into a :class:`GuildID`."""
    if isinstance(guild, (GuildID, int, str)):
        return GuildID(guild)
    if guild is None:
        raise ValueError("guild must not be None")
    return GuildID(guild.id)


def is_staff(member: Any) -> bool:
    """Return True when the member may manage questions of other users."""
    permissions = getattr(member, "guild_permissions", None)
    if permissions is None:
        return False
    return bool(
        getattr(permissions, "manage_messages", False)
        or getattr(permissions, "manage_guild", False)
    )


def has_manage_guild(member: Any) -> bool:
    """Return True when the member has the Manage Server permission."""
    permissions = getattr(member, "guild_permissions", None)
    return bool(getattr(permissions, "manage_guild", False))


def user_tag(user: Optional[Union[discord.User, discord.Member]]) -> str:
    """Return a readable ``name (id)`` string for logs."""
    if user is None:
        return "<unknown>"
    return f"{user} ({user.id})"
