"""
Type-safe wrapper classes for Discord identifiers.

Discord snowflakes are 64-bit integers. Wrapping them keeps guild, channel,
user and message ids from being mixed up when they travel through caches and
repositories, while still comparing equal to the raw ``int``/``str`` forms
that Discord objects and database rows carry.
"""

from __future__ import annotations

from typing import Any, Union


class Snowflake:
    """
    Base wrapper for a Discord snowflake id.

    The value is stored as an ``int``. Instances are hashable and compare equal
    to other instances of the same class, and to ints or numeric strings with
    the same value, so they can be used as dictionary keys next to raw ids.

    Example:
        >>> gid = GuildID(123456789012345678)
        >>> gid.to_int()
        123456789012345678
        >>> gid == "123456789012345678"
        True
    """

    __slots__ = ("_value",)

    def __init__(self, value: Union[str, int, "Snowflake"]) -> None:
        """
        Args:
            value: The snowflake as an int, a numeric string, or another wrapper.

        Raises:
            ValueError: If the value cannot be converted to a non-negative integer.
        """
        if isinstance(value, Snowflake):
            self._value = value._value
        elif isinstance(value, bool):
            raise ValueError(f"Cannot create {type(self).__name__} from bool")
        elif isinstance(value, int):
            self._value = value
        elif isinstance(value, str):
            self._value = int(value.strip())
        else:
            raise ValueError(f"Cannot create {type(self).__name__} from {type(value).__name__}: {value}")

        if self._value < 0:
            raise ValueError(f"{type(self).__name__} must be non-negative, got {self._value}")

    @classmethod
    def from_int(cls, value: int):
        return cls(value)

    @classmethod
    def from_object(cls, obj: Any):
        """Create the wrapper from any Discord object exposing an ``id``."""
        return cls(obj.id)

    def to_int(self) -> int:
        """Return the raw integer for Discord API calls and database rows."""
        return self._value

    def __int__(self) -> int:
        return self._value

    def __str__(self) -> str:
        return str(self._value)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._value!r})"

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Snowflake):
            return type(self) is type(other) and self._value == other._value
        if isinstance(other, bool):
            return NotImplemented
        if isinstance(other, int):
            return self._value == other
        if isinstance(other, str):
            return str(self._value) == other.strip()
        return NotImplemented

    def __hash__(self) -> int:
        # Same hash as the raw int so lookups by either form agree
        return hash(self._value)


class GuildID(Snowflake):
    """Snowflake of a Discord guild."""

    __slots__ = ()


class ChannelID(Snowflake):
    """Snowflake of a Discord channel or thread."""

    __slots__ = ()


class UserID(Snowflake):
    """Snowflake of a Discord user or member."""

    __slots__ = ()


class MessageID(Snowflake):
    """Snowflake of a Discord message."""

    __slots__ = ()
