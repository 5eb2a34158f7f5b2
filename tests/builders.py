"""Helpers that assemble synthetic VARC tables for the tests."""

from fontTools.misc.fixedTools import floatToFixed

from varcforge.core.blob_index import build_blob_index
from varcforge.core.component import (
    AXIS_VALUES_HAVE_VARIATION,
    GID_IS_24BIT,
    HAVE_AXES,
    TRANSFORM_FIELDS,
    TRANSFORM_HAS_VARIATION,
    VarComponent,
    encode_component,
)
from varcforge.core.coverage import Coverage
from varcforge.core.tuple_values import encode_tuple_values


def u16(v):
    return int(v).to_bytes(2, "big")


def u32(v):
    return int(v).to_bytes(4, "big")


def f2dot14(v):
    return floatToFixed(v, 14).to_bytes(2, "big", signed=True)


def component(glyph_id, axis_indices_index=None, axis_values=(), axis_var=None,
              transform_var=None, flags=0, **transform):
    """Build a VarComponent, deriving presence flags from the given fields."""
    if glyph_id > 0xFFFF:
        flags |= GID_IS_24BIT
    if axis_indices_index is not None:
        flags |= HAVE_AXES
    if axis_var is not None:
        flags |= AXIS_VALUES_HAVE_VARIATION
    if transform_var is not None:
        flags |= TRANSFORM_HAS_VARIATION
    for tf in TRANSFORM_FIELDS:
        if tf.name in transform:
            flags |= tf.flag
    return VarComponent(
        flags=flags,
        glyph_id=glyph_id,
        axis_indices_index=axis_indices_index,
        axis_values=tuple(axis_values),
        axis_values_var_index=axis_var,
        transform_var_index=transform_var,
        transform=dict(transform),
    )


def build_var_store(regions, blocks):
    """regions: list of [(start, peak, end), ...] per region, all with the same axis count.
    blocks: list of (region_indices, rows); each row a flat list of ints.
    """
    axis_count = len(regions[0]) if regions else 0
    region_list = bytearray(u16(axis_count) + u16(len(regions)))
    for region in regions:
        for start, peak, end in region:
            region_list += f2dot14(start) + f2dot14(peak) + f2dot14(end)

    block_data = []
    for region_indices, rows in blocks:
        data = bytearray(u16(1) + u16(len(region_indices)))
        for idx in region_indices:
            data += u16(idx)
        data += build_blob_index(encode_tuple_values(row) for row in rows)
        block_data.append(bytes(data))

    header_size = 2 + 4 + 2 + 4 * len(blocks)
    out = bytearray(u16(1) + u32(header_size) + u16(len(blocks)))
    pos = header_size + len(region_list)
    for data in block_data:
        out += u32(pos)
        pos += len(data)
    out += region_list
    for data in block_data:
        out += data
    return bytes(out)


def build_varc(records, var_store=None):
    """records: {glyph_id: [VarComponent, ...]}, in coverage order by glyph id."""
    glyph_ids = sorted(records)
    coverage = Coverage(glyph_ids).compile()
    record_index = build_blob_index(
        b"".join(encode_component(c) for c in records[gid]) for gid in glyph_ids
    )
    store = var_store or b""

    coverage_offset = 16
    store_offset = coverage_offset + len(coverage) if store else 0
    records_offset = coverage_offset + len(coverage) + len(store)
    header = u16(1) + u16(0) + u32(coverage_offset) + u32(store_offset) + u32(records_offset)
    return header + coverage + store + record_index
