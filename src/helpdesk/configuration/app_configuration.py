from __future__ import annotations

import fcntl
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Union

import discord
import yaml

from helpdesk.datatypes.discord_datatypes import ChannelID, GuildID
from helpdesk.util.logger import get_logger

logger = get_logger("app_configuration")


CONFIG_PATH = Path("./config/app_config.yml").resolve()

DEFAULT_ASK_HERE_TEXT = (
    "Need help with something? Pick the category that best fits your problem "
    "from the menu below, then describe it in a sentence or two. A thread will "
    "be opened for your question where others can help you."
)
DEFAULT_PRIMARY_COLOR = 0x9B59B6  # purple
DEFAULT_SECONDARY_COLOR = 0xF1C40F  # yellow
DEFAULT_PENDING_SELECTION_TTL = 900.0
DEFAULT_AUTO_ARCHIVE_MINUTES = 4320
VALID_AUTO_ARCHIVE_MINUTES = (60, 1440, 4320, 10080)


@dataclass(frozen=True, slots=True)
class GuildChannelConfig:
    """Channel ids configured for one guild. ``None`` means not configured."""

    forum_channel: ChannelID | None = None
    ask_here_channel: ChannelID | None = None
    active_questions_channel: ChannelID | None = None
    log_channel: ChannelID | None = None


def _parse_channel_id(value: Any) -> ChannelID | None:
    if value in (None, "", 0, "0"):
        return None
    try:
        return ChannelID(value)
    except ValueError:
        logger.warning("[APP CONFIGURATION] Ignoring invalid channel id %r", value)
        return None


def _parse_color(value: Any, default: int) -> int:
    if value is None:
        return default
    if isinstance(value, int):
        return value
    try:
        return int(str(value).lstrip("#"), 16)
    except ValueError:
        logger.warning("[APP CONFIGURATION] Ignoring invalid colour %r", value)
        return default


class AppConfig:
    """File-lock based accessor around the YAML-based application configuration.

    The class caches contents of ``./config/app_config.yml`` and exposes
    typed helpers for the values the services need. Uses fcntl file locks for
    safe concurrent access across processes.
    """

    def __init__(self, config_path: Path) -> None:
        self.config_path = config_path
        self._data: Dict[str, Any] = {}
        self.reload()

    # --------------------------
    # Private helpers
    # --------------------------
    def load_from_disk(self) -> Dict[str, Any]:
        try:
            with self.config_path.open("r", encoding="utf-8") as f:
                fcntl.flock(f.fileno(), fcntl.LOCK_SH)
                try:
                    data = yaml.safe_load(f)
                finally:
                    fcntl.flock(f.fileno(), fcntl.LOCK_UN)
        except FileNotFoundError:
            logger.error("[APP CONFIGURATION] Config file %s not found.", self.config_path)
            return {}
        except Exception as exc:
            logger.error("[APP CONFIGURATION] Failed to load config %s: %s", self.config_path, exc)
            return {}

        if not isinstance(data, dict):
            logger.error("[APP CONFIGURATION] Config %s is not a mapping; using defaults.", self.config_path)
            return {}
        return data

    def _section(self, name: str) -> Dict[str, Any]:
        section = self._data.get(name, {})
        return section if isinstance(section, dict) else {}

    # --------------------------
    # Public API
    # --------------------------
    def reload(self) -> Dict[str, Any]:
        """Reload configuration from disk and return the loaded mapping.

        Returns the raw mapping that was loaded (an empty dict on error).
        """
        self._data = self.load_from_disk()
        return self._data

    @property
    def data(self) -> Dict[str, Any]:
        """Return the current cached configuration mapping. Callers should not mutate it."""
        return self._data

    def get(self, key: str, default: Any = None) -> Any:
        """Safe lookup for top-level configuration keys."""
        return self._data.get(key, default)

    # --------------------------
    # High-level shortcuts
    # --------------------------
    def guild_channels(self, guild_id: Union[GuildID, int]) -> GuildChannelConfig:
        """Return the channel ids configured for ``guild_id``.

        Guild sections are keyed by the guild id; YAML may load those keys as
        ints or strings, so both are accepted.
        """
        guilds = self._section("guilds")
        raw_id = GuildID(guild_id).to_int()
        entry = guilds.get(raw_id, guilds.get(str(raw_id), {}))
        if not isinstance(entry, dict):
            return GuildChannelConfig()

        return GuildChannelConfig(
            forum_channel=_parse_channel_id(entry.get("forum_channel")),
            ask_here_channel=_parse_channel_id(entry.get("ask_here_channel")),
            active_questions_channel=_parse_channel_id(entry.get("active_questions_channel")),
            log_channel=_parse_channel_id(entry.get("log_channel")),
        )

    @property
    def primary_color(self) -> discord.Colour:
        """Colour of the main embeds (ask-here prompt, question intro)."""
        return discord.Colour(_parse_color(self._section("colors").get("primary"), DEFAULT_PRIMARY_COLOR))

    @property
    def secondary_color(self) -> discord.Colour:
        """Colour of the guidance embeds posted in new question threads."""
        return discord.Colour(_parse_color(self._section("colors").get("secondary"), DEFAULT_SECONDARY_COLOR))

    @property
    def ask_here_text(self) -> str:
        """Description of the "Ask Here" prompt."""
        value = self._section("messages").get("ask_here_embed")
        return str(value) if value else DEFAULT_ASK_HERE_TEXT

    @property
    def pending_selection_ttl(self) -> float:
        """Seconds a category selection waits for the matching form submission."""
        value = self._section("submission").get("pending_selection_ttl_seconds", DEFAULT_PENDING_SELECTION_TTL)
        try:
            ttl = float(value)
        except (TypeError, ValueError):
            return DEFAULT_PENDING_SELECTION_TTL
        return ttl if ttl > 0 else DEFAULT_PENDING_SELECTION_TTL

    @property
    def auto_archive_minutes(self) -> int:
        """Auto-archive duration for new question threads, in minutes."""
        value = self._section("questions").get("auto_archive_minutes", DEFAULT_AUTO_ARCHIVE_MINUTES)
        try:
            minutes = int(value)
        except (TypeError, ValueError):
            return DEFAULT_AUTO_ARCHIVE_MINUTES
        if minutes not in VALID_AUTO_ARCHIVE_MINUTES:
            logger.warning(
                "[APP CONFIGURATION] auto_archive_minutes=%s is not one of %s; using %s",
                minutes, VALID_AUTO_ARCHIVE_MINUTES, DEFAULT_AUTO_ARCHIVE_MINUTES,
            )
            return DEFAULT_AUTO_ARCHIVE_MINUTES
        return minutes


# Shared application-wide configuration instance
app_config = AppConfig(CONFIG_PATH)
