# VarcForge - Variable Composite Glyph Engine
# Copyright (c) 2025-2026 Scott Bowman
# SPDX-License-Identifier: AGPL-3.0-or-later
from __future__ import annotations

"""
Low-level big-endian readers.

Every reader takes ``(data, offset)`` plus an optional exclusive ``end`` bound
and returns ``(value, new_offset)``. Reading past ``end`` (or past the buffer)
raises TruncatedInput.
"""

import struct

from fontTools.misc.fixedTools import fixedToFloat

from .error import TruncatedInput

_UINT16 = struct.Struct('>H')
_INT16 = struct.Struct('>h')
_UINT32 = struct.Struct('>I')


def _check(data, offset: int, size: int, end: int | None) -> None:
    limit = len(data) if end is None else min(end, len(data))
    if offset < 0 or offset + size > limit:
        raise TruncatedInput(
            f"need {size} byte(s), {max(limit - offset, 0)} available",
            offset=offset)


def read_uint8(data, offset: int, end: int | None = None) -> tuple[int, int]:
    _check(data, offset, 1, end)
    return data[offset], offset + 1


def read_uint16(data, offset: int, end: int | None = None) -> tuple[int, int]:
    _check(data, offset, 2, end)
    return _UINT16.unpack_from(data, offset)[0], offset + 2


def read_int16(data, offset: int, end: int | None = None) -> tuple[int, int]:
    _check(data, offset, 2, end)
    return _INT16.unpack_from(data, offset)[0], offset + 2


def read_uint24(data, offset: int, end: int | None = None) -> tuple[int, int]:
    _check(data, offset, 3, end)
    b1, b2, b3 = data[offset], data[offset + 1], data[offset + 2]
    return (b1 << 16) | (b2 << 8) | b3, offset + 3


def read_uint32(data, offset: int, end: int | None = None) -> tuple[int, int]:
    _check(data, offset, 4, end)
    return _UINT32.unpack_from(data, offset)[0], offset + 4


def read_offset(data, offset: int, off_size: int, end: int | None = None) -> tuple[int, int]:
    """Read an unsigned offset of off_size bytes (1-4)."""
    _check(data, offset, off_size, end)
    value = 0
    for i in range(off_size):
        value = (value << 8) | data[offset + i]
    return value, offset + off_size


def pack_offset(value: int, off_size: int) -> bytes:
    return value.to_bytes(off_size, 'big')


# ---------------------------------------------------------------------------
# Fixed-point conversion
# ---------------------------------------------------------------------------

def f2dot14_to_float(value: float) -> float:
    return fixedToFloat(value, 14)


def f4dot12_to_float(value: float) -> float:
    return fixedToFloat(value, 12)


def f6dot10_to_float(value: float) -> float:
    return fixedToFloat(value, 10)
