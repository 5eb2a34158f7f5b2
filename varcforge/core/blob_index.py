# VarcForge - Variable Composite Glyph Engine
# Copyright (c) 2025-2026 Scott Bowman
# SPDX-License-Identifier: AGPL-3.0-or-later
from __future__ import annotations

"""
Indexed blob store (CFF2-style INDEX with a 32-bit count).

Layout:
    uint32  count
    uint8   offSize            (absent when count == 0)
    Offset  offsets[count+1]   offSize bytes each, 1-based
    uint8   data[]

Item i is data[offsets[i]-1 : offsets[i+1]-1]. The store only slices; typed
parsing of the slices is left to IndexOf.
"""

from typing import Callable, Generic, Iterator, TypeVar

from .binary import pack_offset, read_offset, read_uint8, read_uint32
from .error import CorruptOffsets, IndexOutOfRange, TruncatedInput

T = TypeVar('T')


class BlobIndex:
    """Random access to the variable-size items of an indexed blob store."""
    __slots__ = ('data', 'offset', 'count', 'off_size', 'offsets', 'data_start', 'end_offset')

    def __init__(self, data, offset: int = 0) -> None:
        self.data = data
        self.offset = offset
        self.count, pos = read_uint32(data, offset)
        if self.count == 0:
            self.off_size = 0
            self.offsets = [1]
            self.data_start = pos
            self.end_offset = pos
            return

        self.off_size, pos = read_uint8(data, pos)
        if not 1 <= self.off_size <= 4:
            raise CorruptOffsets(f"invalid offSize {self.off_size}", offset=pos - 1)

        table_size = (self.count + 1) * self.off_size
        if pos + table_size > len(data):
            raise TruncatedInput(
                f"offset array of {self.count + 1} entries truncated", offset=pos)
        offsets = []
        for _ in range(self.count + 1):
            val, pos = read_offset(data, pos, self.off_size)
            offsets.append(val)

        self.data_start = pos
        if offsets[0] != 1:
            raise CorruptOffsets(f"first offset is {offsets[0]}, expected 1", offset=self.offset)
        for i in range(self.count):
            if offsets[i + 1] < offsets[i]:
                raise CorruptOffsets(
                    f"offset {i + 1} ({offsets[i + 1]}) precedes offset {i} ({offsets[i]})",
                    offset=self.offset)
        self.end_offset = self.data_start + offsets[-1] - 1
        if self.end_offset > len(data):
            raise CorruptOffsets(
                f"last offset points {self.end_offset - len(data)} byte(s) past the data",
                offset=self.offset)
        self.offsets = offsets

    def bounds(self, i: int) -> tuple[int, int]:
        """Absolute (start, end) of item i within the underlying buffer."""
        if not 0 <= i < self.count:
            raise IndexOutOfRange(f"index item {i} out of range [0, {self.count})",
                                  offset=self.offset)
        base = self.data_start - 1
        return base + self.offsets[i], base + self.offsets[i + 1]

    def get(self, i: int) -> bytes:
        start, end = self.bounds(i)
        return bytes(self.data[start:end])

    __getitem__ = get

    def __len__(self) -> int:
        return self.count

    def __iter__(self) -> Iterator[bytes]:
        for i in range(self.count):
            yield self.get(i)


class IndexOf(Generic[T]):
    """Typed view over a BlobIndex; items are parsed on access."""

    def __init__(self, index: BlobIndex, parse: Callable[[bytes], T]) -> None:
        self.index = index
        self.parse = parse

    def get(self, i: int) -> T:
        return self.parse(self.index.get(i))

    __getitem__ = get

    def __len__(self) -> int:
        return len(self.index)

    def __iter__(self) -> Iterator[T]:
        for i in range(len(self.index)):
            yield self.get(i)


def build_blob_index(items) -> bytes:
    """Serialize byte strings into an indexed blob store, smallest offSize first."""
    items = [bytes(item) for item in items]
    if not items:
        return (0).to_bytes(4, 'big')
    offsets = [1]
    for item in items:
        offsets.append(offsets[-1] + len(item))
    last = offsets[-1]
    off_size = 1 if last < 0x100 else 2 if last < 0x10000 else 3 if last < 0x1000000 else 4
    out = bytearray(len(items).to_bytes(4, 'big'))
    out.append(off_size)
    for value in offsets:
        out += pack_offset(value, off_size)
    for item in items:
        out += item
    return bytes(out)
