"""
Exception types raised by the Helpdesk services.

Three families matter to callers, and each is rendered differently to users:

- ``ValidationError``: the caller supplied bad input (blank name, short title,
  unknown close reason). Raised before any side effect.
- ``CategoryInUseError``: the request is well formed but conflicts with the
  current state of the guild.
- ``ConfigurationError``: the guild is missing configuration the operation
  requires (for example the forum channel).

Lookups that find nothing return ``None`` rather than raising.
"""

from __future__ import annotations


class HelpdeskError(Exception):
    """Base class for every error raised deliberately by Helpdesk."""


class ValidationError(HelpdeskError, ValueError):
    """Input was rejected before anything was written or sent."""


class CategoryNameError(ValidationError):
    """A category name was empty or consisted only of whitespace."""


class DuplicateCategoryError(ValidationError):
    """A category with the same name (ignoring case) already exists in the guild."""

    def __init__(self, name: str) -> None:
        super().__init__(f"A category named '{name}' already exists.")
        self.name = name


class QuestionTitleError(ValidationError):
    """A question title was empty or shorter than the minimum length."""


class InvalidCloseReasonError(ValidationError):
    """A close reason outside the known set was supplied."""


class CategoryInUseError(HelpdeskError, RuntimeError):
    """A category cannot be deleted while open questions still reference it."""

    def __init__(self, category_name: str, open_questions: int) -> None:
        super().__init__(
            f"Category '{category_name}' still has {open_questions} open question(s)."
        )
        self.category_name = category_name
        self.open_questions = open_questions


class ConfigurationError(HelpdeskError, RuntimeError):
    """The guild lacks configuration required by the operation."""


class ForumChannelNotConfiguredError(ConfigurationError):
    """No forum channel is registered for the guild, so threads cannot be created."""

    def __init__(self, guild_id: int) -> None:
        super().__init__(f"No forum channel is configured for guild {guild_id}.")
        self.guild_id = guild_id
