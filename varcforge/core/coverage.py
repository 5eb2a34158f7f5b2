# VarcForge - Variable Composite Glyph Engine
# Copyright (c) 2025-2026 Scott Bowman
# SPDX-License-Identifier: AGPL-3.0-or-later
from __future__ import annotations

"""
OpenType Coverage table: glyph id -> coverage index.

Format 1 lists glyph ids; format 2 lists (start, end, startCoverageIndex)
ranges. Both are flattened into a dict at load time.
"""

from .binary import read_uint16
from .error import UnsupportedFormat


class Coverage:
    """Read-only ordered set of glyph ids."""
    __slots__ = ('glyphs', '_index')

    def __init__(self, glyphs=(), mapping: dict[int, int] | None = None) -> None:
        if mapping is None:
            mapping = {gid: i for i, gid in enumerate(glyphs)}
        self._index = dict(mapping)
        self.glyphs = tuple(sorted(self._index, key=self._index.__getitem__))

    @classmethod
    def parse(cls, data, offset: int = 0) -> Coverage:
        fmt, pos = read_uint16(data, offset)
        if fmt == 1:
            count, pos = read_uint16(data, pos)
            glyphs = []
            for _ in range(count):
                gid, pos = read_uint16(data, pos)
                glyphs.append(gid)
            return cls(glyphs)
        if fmt == 2:
            range_count, pos = read_uint16(data, pos)
            mapping = {}
            for _ in range(range_count):
                start, pos = read_uint16(data, pos)
                end, pos = read_uint16(data, pos)
                start_index, pos = read_uint16(data, pos)
                for gid in range(start, end + 1):
                    mapping[gid] = start_index + gid - start
            return cls(mapping=mapping)
        raise UnsupportedFormat(f"unknown Coverage format {fmt}", offset=offset)

    def index(self, glyph_id: int) -> int | None:
        """Coverage index of glyph_id, or None if not covered."""
        return self._index.get(glyph_id)

    def __contains__(self, glyph_id: int) -> bool:
        return glyph_id in self._index

    def __len__(self) -> int:
        return len(self.glyphs)

    def __iter__(self):
        return iter(self.glyphs)

    def compile(self) -> bytes:
        """Serialize as Coverage format 1."""
        out = bytearray((1).to_bytes(2, 'big'))
        out += len(self.glyphs).to_bytes(2, 'big')
        for gid in self.glyphs:
            out += gid.to_bytes(2, 'big')
        return bytes(out)
