"""
Audit trail for staff actions.

Every audit record is written to the application log. When the guild has a
``log_channel`` configured, the embed is also posted there; delivery is best
effort and never fails the action being audited.
"""

from __future__ import annotations

import discord

from helpdesk.configuration.app_configuration import AppConfig, app_config
from helpdesk.util.logger import get_logger

logger = get_logger("audit_log")


class AuditLog:
    """Sends audit embeds to the configured log channel of a guild."""

    def __init__(self, config: AppConfig = app_config) -> None:
        self._config = config

    async def log(self, guild: discord.Guild, embed: discord.Embed) -> None:
        logger.info(
            "[AUDIT LOG] guild=%s %s: %s",
            guild.id,
            embed.title,
            embed.description,
        )

        channel_id = self._config.guild_channels(guild.id).log_channel
        if channel_id is None:
            return

        channel = guild.get_channel(channel_id.to_int())
        if channel is None:
            logger.warning("[AUDIT LOG] Log channel %s not found in guild %s", channel_id, guild.id)
            return

        try:
            await channel.send(embed=embed)
        except discord.HTTPException as exc:
            logger.warning("[AUDIT LOG] Failed to deliver audit embed to %s: %s", channel_id, exc)


audit_log = AuditLog()
