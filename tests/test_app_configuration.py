from pathlib import Path

import discord

from helpdesk.configuration.app_configuration import (
    DEFAULT_ASK_HERE_TEXT,
    DEFAULT_AUTO_ARCHIVE_MINUTES,
    DEFAULT_PENDING_SELECTION_TTL,
    AppConfig,
)
from helpdesk.datatypes.discord_datatypes import ChannelID


def write_config(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "app_config.yml"
    path.write_text(text, encoding="utf-8")
    return path


def test_missing_file_uses_defaults(tmp_path):
    config = AppConfig(tmp_path / "missing.yml")

    assert config.data == {}
    assert config.ask_here_text == DEFAULT_ASK_HERE_TEXT
    assert config.pending_selection_ttl == DEFAULT_PENDING_SELECTION_TTL
    assert config.auto_archive_minutes == DEFAULT_AUTO_ARCHIVE_MINUTES
    assert config.guild_channels(1).forum_channel is None


def test_non_mapping_file_uses_defaults(tmp_path):
    config = AppConfig(write_config(tmp_path, "- just\n- a list\n"))
    assert config.data == {}


def test_guild_channels_accepts_int_and_str_keys(tmp_path):
    config = AppConfig(write_config(tmp_path, """
guilds:
  111:
    forum_channel: 10
    ask_here_channel: 0
  "222":
    forum_channel: "20"
    log_channel: 30
"""))

    first = config.guild_channels(111)
    assert first.forum_channel == ChannelID(10)
    assert first.ask_here_channel is None

    second = config.guild_channels(222)
    assert second.forum_channel == ChannelID(20)
    assert second.log_channel == ChannelID(30)
    assert second.active_questions_channel is None

    assert config.guild_channels(333).forum_channel is None


def test_colors_and_messages(tmp_path):
    config = AppConfig(write_config(tmp_path, """
colors:
  primary: "#112233"
  secondary: 255
messages:
  ask_here_embed: "Ask away"
"""))

    assert config.primary_color == discord.Colour(0x112233)
    assert config.secondary_color == discord.Colour(255)
    assert config.ask_here_text == "Ask away"


def test_invalid_values_fall_back(tmp_path):
    config = AppConfig(write_config(tmp_path, """
colors:
  primary: "not a colour"
submission:
  pending_selection_ttl_seconds: -5
questions:
  auto_archive_minutes: 61
"""))

    assert config.primary_color == discord.Colour(0x9B59B6)
    assert config.pending_selection_ttl == DEFAULT_PENDING_SELECTION_TTL
    assert config.auto_archive_minutes == DEFAULT_AUTO_ARCHIVE_MINUTES


def test_reload_picks_up_changes(tmp_path):
    path = write_config(tmp_path, "questions:\n  auto_archive_minutes: 60\n")
    config = AppConfig(path)
    assert config.auto_archive_minutes == 60

    path.write_text("questions:\n  auto_archive_minutes: 1440\n", encoding="utf-8")
    config.reload()
    assert config.auto_archive_minutes == 1440
