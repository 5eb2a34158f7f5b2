# VarcForge - Variable Composite Glyph Engine
# Copyright (c) 2025-2026 Scott Bowman
# SPDX-License-Identifier: AGPL-3.0-or-later
from __future__ import annotations

"""
Multi-item variation store.

Maps a VarIdx (outer:16, inner:16) plus a set of normalized axis coordinates
to a tuple of interpolated deltas. The store is decoded once and is read-only
afterwards, so one instance can serve concurrent evaluations.

Binary layout (offsets relative to the start of the store):

    VariationStore:
        uint16    format                  = 1
        Offset32  variationRegionList
        uint16    itemVariationDataCount
        Offset32  itemVariationDataOffsets[itemVariationDataCount]

    VariationRegionList:
        uint16    axisCount
        uint16    regionCount
        F2DOT14   (start, peak, end)[regionCount][axisCount]

    ItemVariationData:
        uint16    format                  = 1
        uint16    regionIndexCount
        uint16    regionIndices[regionIndexCount]
        BlobIndex deltaSets               one packed tuple per inner index

A delta set is region-major: regionIndexCount consecutive chunks, each chunk
holding one value per tuple element.
"""

import logging
from dataclasses import dataclass
from typing import Hashable, Mapping, Sequence

import numpy as np

from .binary import f2dot14_to_float, read_int16, read_uint16, read_uint32
from .blob_index import BlobIndex
from .error import IndexOutOfRange, InvalidVarIdx, MalformedTuple, UnsupportedFormat
from .tuple_values import decode_tuple_values

logger = logging.getLogger(__name__)

NO_VARIATION_INDEX = 0xFFFFFFFF


def split_var_idx(var_idx: int) -> tuple[int, int]:
    """Split a VarIdx into (outer, inner)."""
    return var_idx >> 16, var_idx & 0xFFFF


# ---------------------------------------------------------------------------
# Regions
# ---------------------------------------------------------------------------

def tent_scalar(coord: float, start: float, peak: float, end: float) -> float:
    """Piecewise-linear support of one axis: 0 outside [start, end], 1 at peak."""
    if coord == peak:
        return 1.0
    if coord <= start or coord >= end:
        return 0.0
    if coord < peak:
        return (coord - start) / (peak - start)
    return (end - coord) / (end - peak)


@dataclass(frozen=True)
class RegionAxis:
    start: float
    peak: float
    end: float

    def is_active(self) -> bool:
        if self.start == self.peak == self.end:
            return False
        if self.start > self.peak or self.peak > self.end:
            return False
        # Non-zero peaks must not have a span crossing zero.
        if self.peak != 0 and self.start < 0 < self.end:
            return False
        return True


@dataclass(frozen=True)
class Region:
    """Per-axis (start, peak, end) triples; axes[i] belongs to region axis i."""
    axes: tuple[RegionAxis, ...]

    def scalar(self, coords: Mapping[Hashable, float], axis_order: Sequence[Hashable] | None = None) -> float:
        """Product of the tent factors of all active axes.

        Axes missing from ``coords`` are taken at their default, 0.
        """
        scalar = 1.0
        for i, axis in enumerate(self.axes):
            if not axis.is_active():
                continue
            key = axis_order[i] if axis_order is not None else i
            factor = tent_scalar(coords.get(key, 0.0), axis.start, axis.peak, axis.end)
            if factor == 0.0:
                return 0.0
            scalar *= factor
        return scalar


def parse_region_list(data, offset: int) -> tuple[int, list[Region]]:
    """Parse a VariationRegionList. Returns (axis_count, regions)."""
    axis_count, pos = read_uint16(data, offset)
    region_count, pos = read_uint16(data, pos)
    regions = []
    for _ in range(region_count):
        axes = []
        for _ in range(axis_count):
            start, pos = read_int16(data, pos)
            peak, pos = read_int16(data, pos)
            end, pos = read_int16(data, pos)
            axes.append(RegionAxis(f2dot14_to_float(start), f2dot14_to_float(peak),
                                   f2dot14_to_float(end)))
        regions.append(Region(tuple(axes)))
    return axis_count, regions


# ---------------------------------------------------------------------------
# ItemVariationData
# ---------------------------------------------------------------------------

class ItemVariationData:
    """One block of delta rows sharing a list of region references."""
    __slots__ = ('region_indices', 'rows')

    def __init__(self, region_indices: Sequence[int], rows: Sequence[np.ndarray]) -> None:
        self.region_indices = tuple(region_indices)
        # Each row has shape (len(region_indices), tuple_width).
        self.rows = tuple(rows)

    @classmethod
    def parse(cls, data, offset: int, region_count: int) -> ItemVariationData:
        fmt, pos = read_uint16(data, offset)
        if fmt != 1:
            raise UnsupportedFormat(f"unknown ItemVariationData format {fmt}", offset=offset)
        n_regions, pos = read_uint16(data, pos)
        region_indices = []
        for _ in range(n_regions):
            idx, pos = read_uint16(data, pos)
            if idx >= region_count:
                raise IndexOutOfRange(
                    f"region index {idx} out of range [0, {region_count})", offset=pos - 2)
            region_indices.append(idx)

        delta_sets = BlobIndex(data, pos)
        rows = []
        for inner in range(len(delta_sets)):
            start, end = delta_sets.bounds(inner)
            values, _ = decode_tuple_values(data, start, end=end)
            rows.append(_shape_row(values, n_regions, start))
        return cls(region_indices, rows)

    def __len__(self) -> int:
        return len(self.rows)


def _shape_row(values: list[int], n_regions: int, offset: int) -> np.ndarray:
    if n_regions == 0:
        if values:
            raise MalformedTuple(f"{len(values)} deltas for a block without regions", offset=offset)
        return np.zeros((0, 0), dtype=np.int32)
    if len(values) % n_regions:
        raise MalformedTuple(
            f"{len(values)} deltas do not split evenly over {n_regions} regions", offset=offset)
    return np.asarray(values, dtype=np.int32).reshape(n_regions, len(values) // n_regions)


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------

class MultiItemVariationStore:
    """Evaluates VarIdx addresses against normalized axis coordinates.

    Args:
        regions: shared region list
        blocks: ItemVariationData blocks, addressed by the outer index
        axis_order: identifiers of the region axes, in region-axis order;
                    when None, axis contexts are keyed by the axis index
    """

    def __init__(self, regions: Sequence[Region], blocks: Sequence[ItemVariationData],
                 axis_order: Sequence[Hashable] | None = None) -> None:
        self.regions = tuple(regions)
        self.blocks = tuple(blocks)
        self.axis_order = tuple(axis_order) if axis_order is not None else None

    @classmethod
    def parse(cls, data, offset: int = 0,
              axis_order: Sequence[Hashable] | None = None) -> MultiItemVariationStore:
        fmt, pos = read_uint16(data, offset)
        if fmt != 1:
            raise UnsupportedFormat(f"unknown VariationStore format {fmt}", offset=offset)
        region_list_offset, pos = read_uint32(data, pos)
        block_count, pos = read_uint16(data, pos)
        block_offsets = []
        for _ in range(block_count):
            block_offset, pos = read_uint32(data, pos)
            block_offsets.append(block_offset)

        if region_list_offset:
            axis_count, regions = parse_region_list(data, offset + region_list_offset)
        else:
            axis_count, regions = 0, []
        if axis_order is not None and len(axis_order) < axis_count:
            raise IndexOutOfRange(
                f"axis order names {len(axis_order)} axes, regions use {axis_count}",
                offset=offset + region_list_offset)

        blocks = [ItemVariationData.parse(data, offset + block_offset, len(regions))
                  for block_offset in block_offsets]
        logger.debug("Variation store: %d regions over %d axes, %d blocks",
                     len(regions), axis_count, len(blocks))
        return cls(regions, blocks, axis_order)

    def region_scalars(self, block: ItemVariationData, coords: Mapping[Hashable, float]) -> np.ndarray:
        return np.array([self.regions[i].scalar(coords, self.axis_order)
                         for i in block.region_indices], dtype=np.float64)

    def evaluate(self, var_idx: int, coords: Mapping[Hashable, float],
                 expected: int | None = None) -> tuple[float, ...]:
        """Interpolated delta tuple for var_idx at coords.

        Args:
            var_idx: 32-bit (outer << 16 | inner) address
            coords: normalized axis coordinates
            expected: tuple width the caller needs; a differing width is an error

        Raises:
            InvalidVarIdx: outer/inner out of range, or width mismatch
        """
        outer, inner = split_var_idx(var_idx)
        if outer >= len(self.blocks):
            raise InvalidVarIdx(f"outer index {outer} out of range [0, {len(self.blocks)})",
                                var_idx=var_idx)
        block = self.blocks[outer]
        if inner >= len(block.rows):
            raise InvalidVarIdx(f"inner index {inner} out of range [0, {len(block.rows)})",
                                var_idx=var_idx)
        row = block.rows[inner]

        if not block.region_indices:
            return (0.0,) * (expected or 0)
        width = row.shape[1]
        if expected is not None and width != expected:
            raise InvalidVarIdx(f"delta tuple has {width} values, {expected} expected",
                                var_idx=var_idx)
        deltas = self.region_scalars(block, coords) @ row
        return tuple(float(d) for d in deltas)

