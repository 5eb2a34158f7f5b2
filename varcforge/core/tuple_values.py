# VarcForge - Variable Composite Glyph Engine
# Copyright (c) 2025-2026 Scott Bowman
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
Packed tuple codec (TupleValues).

A run starts with a control byte: bit 7 ZERO, bit 6 WORD, bits 0-5 the run
length minus one. The legacy packed-delta format never sets both flags, so
ZERO|WORD is free to mean "32-bit values":

    ZERO        count zeros, no payload
    WORD        count int16 values
    ZERO|WORD   count int32 values
    (neither)   count int8 values

Decoding either stops after a requested number of values (bounded mode) or
consumes runs until the cursor reaches an end offset (unbounded mode).
"""

from __future__ import annotations

import struct

from .error import MalformedTuple

DELTAS_ARE_ZERO = 0x80
DELTAS_ARE_WORDS = 0x40
DELTAS_ARE_LONGS = DELTAS_ARE_ZERO | DELTAS_ARE_WORDS
DELTA_RUN_COUNT_MASK = 0x3F
MAX_RUN_LENGTH = 64

_RUN_FORMATS = {
    0: (1, 'b'),
    DELTAS_ARE_WORDS: (2, 'h'),
    DELTAS_ARE_LONGS: (4, 'i'),
}


def decode_tuple_values(data, offset: int = 0, count: int | None = None,
                        end: int | None = None) -> tuple[list[int], int]:
    """Decode packed tuple values starting at offset.

    Args:
        data: bytes-like buffer
        offset: position of the first control byte
        count: number of values wanted (bounded mode), or None to decode
               until ``end`` is reached (unbounded mode)
        end: exclusive bound for reads; defaults to the buffer length

    Returns:
        (values, offset_after_last_consumed_byte)
    """
    limit = len(data) if end is None else end
    if limit > len(data):
        raise MalformedTuple(f"end offset {limit} beyond buffer of {len(data)}", offset=offset)

    values: list[int] = []
    pos = offset
    while True:
        if count is not None:
            if len(values) >= count:
                break
        elif pos >= limit:
            break
        if pos >= limit:
            raise MalformedTuple(
                f"ran out of data after {len(values)} of {count} values", offset=pos)

        control = data[pos]
        pos += 1
        run = (control & DELTA_RUN_COUNT_MASK) + 1
        if count is not None:
            run = min(run, count - len(values))
        kind = control & DELTAS_ARE_LONGS

        if kind == DELTAS_ARE_ZERO:
            values.extend([0] * run)
            continue

        width, code = _RUN_FORMATS[kind]
        size = width * run
        if pos + size > limit:
            raise MalformedTuple(
                f"run of {run} x {width}-byte values overruns end {limit}", offset=pos - 1)
        values.extend(struct.unpack_from(f'>{run}{code}', data, pos))
        pos += size

    return values, pos


def _value_kind(value: int) -> int:
    if value == 0:
        return DELTAS_ARE_ZERO
    if -0x80 <= value <= 0x7F:
        return 0
    if -0x8000 <= value <= 0x7FFF:
        return DELTAS_ARE_WORDS
    if -0x80000000 <= value <= 0x7FFFFFFF:
        return DELTAS_ARE_LONGS
    raise ValueError(f"value does not fit in int32: {value}")


def encode_tuple_values(values) -> bytes:
    """Encode integers as packed tuple runs of at most 64 values."""
    out = bytearray()
    values = [int(v) for v in values]
    i = 0
    n = len(values)
    while i < n:
        kind = _value_kind(values[i])
        j = i + 1
        while j < n and j - i < MAX_RUN_LENGTH and _value_kind(values[j]) == kind:
            j += 1
        run = values[i:j]
        out.append(kind | (len(run) - 1))
        if kind != DELTAS_ARE_ZERO:
            _, code = _RUN_FORMATS[kind]
            out += struct.pack(f'>{len(run)}{code}', *run)
        i = j
    return bytes(out)
