"""
Binary codec for question tags.

Layout: a little-endian signed 32-bit item count, then for every tag its
UTF-8 byte length as a 7-bit variable-length integer (low groups first, high
bit set on every byte except the last) followed by the bytes themselves.
"""

from __future__ import annotations

import struct
from typing import Iterable, List

_COUNT = struct.Struct("<i")


def _write_varint(value: int, out: bytearray) -> None:
    while value >= 0x80:
        out.append((value & 0x7F) | 0x80)
        value >>= 7
    out.append(value)


def _read_varint(data: bytes, offset: int) -> tuple[int, int]:
    result = 0
    shift = 0
    while True:
        if offset >= len(data):
            raise ValueError("Truncated tag data: length prefix runs past the end")
        byte = data[offset]
        offset += 1
        result |= (byte & 0x7F) << shift
        if not byte & 0x80:
            return result, offset
        shift += 7
        if shift > 28:
            raise ValueError("Malformed tag data: length prefix is too long")


def encode_tags(tags: Iterable[str]) -> bytes:
    """Serialize ``tags`` into the length-prefixed binary layout."""
    items = list(tags)
    out = bytearray(_COUNT.pack(len(items)))
    for tag in items:
        encoded = tag.encode("utf-8")
        _write_varint(len(encoded), out)
        out += encoded
    return bytes(out)


def decode_tags(data: bytes | None) -> List[str]:
    """
    Deserialize tags produced by :func:`encode_tags`.

    ``None`` or empty input decodes to an empty list.

    Raises:
        ValueError: If the data is truncated or malformed.
    """
    if not data:
        return []
    if len(data) < _COUNT.size:
        raise ValueError("Truncated tag data: missing item count")

    (count,) = _COUNT.unpack_from(data, 0)
    if count < 0:
        raise ValueError(f"Malformed tag data: negative item count {count}")

    offset = _COUNT.size
    tags: List[str] = []
    for _ in range(count):
        length, offset = _read_varint(data, offset)
        end = offset + length
        if end > len(data):
            raise ValueError("Truncated tag data: string runs past the end")
        tags.append(bytes(data[offset:end]).decode("utf-8"))
        offset = end
    return tags
