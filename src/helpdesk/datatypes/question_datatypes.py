"""
Domain records for categories, questions and cached message slots.

These are plain dataclasses. Repositories map them to and from SQLite rows and
services own the in-memory copies; nothing here talks to Discord.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from helpdesk.datatypes.discord_datatypes import ChannelID, GuildID, MessageID, UserID


class CloseReason(Enum):
    """Why a question was closed."""

    RESOLVED = "Resolved"
    DUPLICATE = "Duplicate"
    INVALID = "Invalid"

    @property
    def description(self) -> str:
        return CLOSE_REASON_DESCRIPTIONS[self]


CLOSE_REASON_DESCRIPTIONS = {
    CloseReason.RESOLVED: "The question was answered and resolved.",
    CloseReason.DUPLICATE: "Another identical (or similar) question has been asked and answered already.",
    CloseReason.INVALID: "The thread does not constitute a valid question (spam, or otherwise).",
}


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(slots=True)
class Category:
    """A staff-defined classification for questions in one guild."""

    guild_id: GuildID
    name: str
    description: Optional[str] = None
    id: uuid.UUID = field(default_factory=uuid.uuid4)

    def __str__(self) -> str:
        return f"{self.name} ({self.id.hex})"


@dataclass(slots=True)
class Question:
    """
    A question asked in a guild, backed by one thread.

    A question is open until closed, and closing is terminal. The close fields
    (``close_reason``, ``closer_id``, ``closed_at``) are either all unset
    (open) or all set (closed).
    """

    guild_id: GuildID
    category_id: uuid.UUID
    author_id: UserID
    title: str
    thread_id: ChannelID
    created_at: datetime = field(default_factory=utcnow)
    tags: List[str] = field(default_factory=list)
    is_closed: bool = False
    close_reason: Optional[CloseReason] = None
    closer_id: Optional[UserID] = None
    closed_at: Optional[datetime] = None
    id: uuid.UUID = field(default_factory=uuid.uuid4)

    def mark_closed(self, reason: CloseReason, closer_id: UserID, closed_at: Optional[datetime] = None) -> None:
        """Set every close field at once."""
        self.is_closed = True
        self.close_reason = reason
        self.closer_id = closer_id
        self.closed_at = closed_at or utcnow()

    def copy_state_from(self, other: "Question") -> None:
        """Overwrite the mutable fields with those of a fresher copy of the same question."""
        self.title = other.title
        self.tags = list(other.tags)
        self.is_closed = other.is_closed
        self.close_reason = other.close_reason
        self.closer_id = other.closer_id
        self.closed_at = other.closed_at


@dataclass(slots=True)
class CachedMessage:
    """The last known location of a named, per-guild UI message."""

    guild_id: GuildID
    key: str
    channel_id: ChannelID
    message_id: MessageID
