# VarcForge - Variable Composite Glyph Engine
# Copyright (c) 2025-2026 Scott Bowman
# SPDX-License-Identifier: AGPL-3.0-or-later
from __future__ import annotations

"""
VARC table loader.

    uint16    majorVersion      = 1
    uint16    minorVersion      = 0
    Offset32  coverage
    Offset32  variationStore
    Offset32  glyphRecords      BlobIndex of composite glyph records

Coverage, the variation store and the record index are built once when the
table is loaded and are read-only afterwards. Composite glyph records are
parsed on first use and kept in a RecordCache.
"""

import logging
from typing import Hashable, Sequence

from .core.binary import read_uint16, read_uint32
from .core.blob_index import BlobIndex, IndexOf
from .core.component import CompositeGlyph
from .core.coverage import Coverage
from .core.error import IndexOutOfRange, UnsupportedFormat, VarcError
from .core.record_cache import RecordCache
from .core.tuple_values import decode_tuple_values
from .core.var_store import MultiItemVariationStore

logger = logging.getLogger(__name__)

MAJOR_VERSION = 1
MINOR_VERSION = 0
HEADER_SIZE = 16


def _parse_axis_indices(data: bytes) -> tuple[int, ...]:
    values, _ = decode_tuple_values(data, 0, end=len(data))
    return tuple(values)


class AxisIndicesList:
    """Shared axis-index lists, one packed tuple of axis ids per entry.

    Wraps the font-wide list that components reference through their
    axisIndicesIndex field. When ``axis_order`` is given, the stored axis
    indices are mapped to those identifiers (e.g. fvar axis tags).
    """

    def __init__(self, entries: IndexOf, axis_order: Sequence[Hashable] | None = None) -> None:
        self.entries = entries
        self.axis_order = tuple(axis_order) if axis_order is not None else None

    @classmethod
    def parse(cls, data, offset: int = 0,
              axis_order: Sequence[Hashable] | None = None) -> AxisIndicesList:
        return cls(IndexOf(BlobIndex(data, offset), _parse_axis_indices), axis_order)

    def __getitem__(self, i: int) -> tuple:
        indices = self.entries[i]
        if self.axis_order is None:
            return indices
        try:
            return tuple(self.axis_order[a] for a in indices)
        except IndexError:
            raise IndexOutOfRange(
                f"axis index list {i} names an axis beyond the {len(self.axis_order)} known axes"
            ) from None

    def __len__(self) -> int:
        return len(self.entries)


class VarcTable:
    """Loaded VARC table.

    Args:
        coverage: root glyph ids that have composite records
        var_store: variation store, or None when the table has none
        records: index of raw composite glyph records, in coverage order
        axis_indices: lookup from axisIndicesIndex to axis ids
        strict: reject components with the reserved flag bit set
        cache_size: number of parsed records to keep; 0 disables caching
    """

    def __init__(self, coverage: Coverage, var_store: MultiItemVariationStore | None,
                 records: BlobIndex, axis_indices=None, strict: bool = True,
                 cache_size: int | None = None) -> None:
        self.coverage = coverage
        self.var_store = var_store
        self.records = records
        self.axis_indices = axis_indices
        self.strict = strict
        self.cache = RecordCache(cache_size) if cache_size != 0 else None

    @classmethod
    def parse(cls, data, axis_indices=None, axis_order: Sequence[Hashable] | None = None,
              strict: bool = True, cache_size: int | None = None) -> VarcTable:
        """Parse a VARC table from bytes.

        Args:
            data: raw table bytes
            axis_indices: lookup from axisIndicesIndex to axis ids
            axis_order: identifiers of the variation-region axes, used to key
                        axis contexts (defaults to axis indices)
        """
        data = bytes(data)
        major, pos = read_uint16(data, 0)
        minor, pos = read_uint16(data, pos)
        if major != MAJOR_VERSION:
            raise UnsupportedFormat(f"unsupported VARC version {major}.{minor}", offset=0)
        coverage_offset, pos = read_uint32(data, pos)
        var_store_offset, pos = read_uint32(data, pos)
        records_offset, pos = read_uint32(data, pos)

        coverage = Coverage.parse(data, coverage_offset) if coverage_offset else Coverage()
        var_store = None
        if var_store_offset:
            var_store = MultiItemVariationStore.parse(data, var_store_offset, axis_order)
        if records_offset:
            records = BlobIndex(data, records_offset)
        else:
            records = BlobIndex((0).to_bytes(4, 'big'))

        logger.debug("VARC %d.%d: %d composite glyphs, %d records, %s",
                     major, minor, len(coverage), len(records),
                     "variation store" if var_store is not None else "no variation store")
        return cls(coverage, var_store, records, axis_indices, strict, cache_size)

    def is_composite(self, glyph_id: int) -> bool:
        return glyph_id in self.coverage

    def composite_glyph(self, glyph_id: int) -> CompositeGlyph | None:
        """Parsed composite record for glyph_id, or None for a leaf glyph."""
        index = self.coverage.index(glyph_id)
        if index is None:
            return None
        if self.cache is None:
            return self._parse_record(glyph_id, index)
        return self.cache.get_or_parse(glyph_id, lambda: self._parse_record(glyph_id, index))

    def _parse_record(self, glyph_id: int, index: int) -> CompositeGlyph:
        try:
            start, end = self.records.bounds(index)
            glyph = CompositeGlyph.parse(self.records.data[start:end], self.axis_indices,
                                         strict=self.strict)
        except VarcError as exc:
            if exc.glyph_id is None:
                exc.glyph_id = glyph_id
            raise
        logger.debug("Parsed composite glyph %d: %d components", glyph_id, len(glyph))
        return glyph

    def __len__(self) -> int:
        return len(self.coverage)

    def __contains__(self, glyph_id: int) -> bool:
        return glyph_id in self.coverage
