# VarcForge - Variable Composite Glyph Engine
# Copyright (c) 2025-2026 Scott Bowman
# SPDX-License-Identifier: AGPL-3.0-or-later
from __future__ import annotations

"""
VarInt32 codec.

Unsigned 32-bit integers in 1-5 bytes. The lead byte's high bits select the
length, as in UTF-8, but continuation bytes carry a full 8 bits:

    0xxxxxxx                      7 bits
    10xxxxxx +1 byte             14 bits
    110xxxxx +2 bytes            21 bits
    1110xxxx +3 bytes            28 bits
    1111---- +4 bytes            32 bits (lead nibble reserved)
"""

from .error import TruncatedInput

VARINT32_MAX = 0xFFFFFFFF

# (lead byte lower bound, payload mask of the lead byte, total length)
_LEADS = (
    (0xF0, 0x00, 5),
    (0xE0, 0x0F, 4),
    (0xC0, 0x1F, 3),
    (0x80, 0x3F, 2),
)


def read_varint32(data, offset: int, end: int | None = None) -> tuple[int, int]:
    """Decode one VarInt32. Returns (value, offset_after)."""
    limit = len(data) if end is None else min(end, len(data))
    if offset >= limit:
        raise TruncatedInput("VarInt32 lead byte missing", offset=offset)
    b0 = data[offset]
    if b0 < 0x80:
        return b0, offset + 1

    for lead, mask, length in _LEADS:
        if b0 >= lead:
            break
    if offset + length > limit:
        raise TruncatedInput(
            f"VarInt32 needs {length} bytes, {limit - offset} available",
            offset=offset)
    value = b0 & mask
    for i in range(1, length):
        value = (value << 8) | data[offset + i]
    return value, offset + length


def encode_varint32(value: int) -> bytes:
    """Encode value in the shortest VarInt32 form."""
    if value < 0 or value > VARINT32_MAX:
        raise ValueError(f"VarInt32 out of range: {value}")
    if value < 0x80:
        return bytes((value,))
    if value < 0x4000:
        return bytes((0x80 | (value >> 8), value & 0xFF))
    if value < 0x200000:
        return bytes((0xC0 | (value >> 16),)) + (value & 0xFFFF).to_bytes(2, 'big')
    if value < 0x10000000:
        return bytes((0xE0 | (value >> 24),)) + (value & 0xFFFFFF).to_bytes(3, 'big')
    return b'\xF0' + value.to_bytes(4, 'big')
