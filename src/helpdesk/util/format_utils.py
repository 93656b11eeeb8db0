from __future__ import annotations

import re
from typing import Optional

_SEPARATORS = re.compile(r"[\s_\-]+")


def titleize(value: str) -> str:
    """Normalize a human-entered name to title case.

    Underscores, dashes and runs of whitespace collapse to single spaces. Each
    word gets an upper-case first letter and lower-case remainder, except words
    that are already fully upper-case (acronyms such as ``UI`` or ``C#``),
    which are kept as typed.

    Examples:
        >>> titleize("homework help")
        'Homework Help'
        >>> titleize("UI_design")
        'UI Design'
    """
    words = [word for word in _SEPARATORS.split(value.strip()) if word]
    result = []
    for word in words:
        if len(word) > 1 and word.isupper():
            result.append(word)
        else:
            result.append(word[:1].upper() + word[1:].lower())
    return " ".join(result)


def none_if_blank(value: Optional[str]) -> Optional[str]:
    """Return None for None, empty or whitespace-only strings; otherwise the stripped value."""
    if value is None or not value.strip():
        return None
    return value.strip()


def truncate(value: str, limit: int, suffix: str = "...") -> str:
    """Cut ``value`` so that the result, suffix included, is at most ``limit`` characters."""
    if len(value) <= limit:
        return value
    if limit <= len(suffix):
        return value[:limit]
    return value[: limit - len(suffix)] + suffix


def with_placeholder(value: Optional[str], placeholder: str = "<none>") -> str:
    """Return ``placeholder`` for blank values, so embeds never carry empty fields."""
    return value if value and value.strip() else placeholder
