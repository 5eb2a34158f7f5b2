# VarcForge - Variable Composite Glyph Engine
# Copyright (c) 2025-2026 Scott Bowman
# SPDX-License-Identifier: AGPL-3.0-or-later
from __future__ import annotations

"""
VarComponent records.

A composite glyph record is a run of back-to-back VarComponents. Each one
starts with 16 flag bits that decide which of the following fields exist:

    uint16      flags
    GlyphID16 | GlyphID24            (bit 2 selects 24-bit)
    VarInt32    axisIndicesIndex     (bit 3)
    TupleValues axisValues           F2DOT14, one per named axis
    VarInt32    axisValuesVarIndex   (bit 4)
    VarInt32    transformVarIndex    (bit 5)
    int16       transform fields     (bits 6-14, TRANSFORM_FIELDS order)

Bit 15 is reserved. Values are kept in their raw integer units here;
conversion happens in the resolver after variation deltas are applied.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Hashable, Mapping, Sequence

from .binary import read_int16, read_uint16, read_uint24
from .error import IndexOutOfRange, MalformedComponent, TruncatedInput
from .tuple_values import decode_tuple_values, encode_tuple_values
from .varint import encode_varint32, read_varint32

# ---------------------------------------------------------------------------
# Flags
# ---------------------------------------------------------------------------

USE_MY_METRICS = 1 << 0
RESET_UNSPECIFIED_AXES = 1 << 1
GID_IS_24BIT = 1 << 2
HAVE_AXES = 1 << 3
AXIS_VALUES_HAVE_VARIATION = 1 << 4
TRANSFORM_HAS_VARIATION = 1 << 5
RESERVED_MASK = 1 << 15


@dataclass(frozen=True)
class TransformField:
    name: str
    flag: int
    frac_bits: int      # 0 for FWORD, 12 for F4DOT12, 10 for F6DOT10
    default: float


TRANSFORM_FIELDS = (
    TransformField('TranslateX', 1 << 6, 0, 0.0),
    TransformField('TranslateY', 1 << 7, 0, 0.0),
    TransformField('Rotation', 1 << 8, 12, 0.0),
    TransformField('ScaleX', 1 << 9, 10, 1.0),
    TransformField('ScaleY', 1 << 10, 10, 1.0),   # falls back to ScaleX
    TransformField('SkewX', 1 << 11, 12, 0.0),
    TransformField('SkewY', 1 << 12, 12, 0.0),
    TransformField('TCenterX', 1 << 13, 0, 0.0),
    TransformField('TCenterY', 1 << 14, 0, 0.0),
)

TRANSFORM_FIELD_NAMES = tuple(f.name for f in TRANSFORM_FIELDS)


@dataclass(frozen=True)
class VarComponent:
    flags: int
    glyph_id: int
    axis_indices_index: int | None = None
    # Axis identifiers the axis values apply to, in order.
    axis_ids: tuple[Hashable, ...] = ()
    axis_values: tuple[int, ...] = ()
    axis_values_var_index: int | None = None
    transform_var_index: int | None = None
    # Raw values of the present transform fields; read-only, left out of the hash.
    transform: Mapping[str, int] = field(default_factory=dict, hash=False)

    def __post_init__(self):
        object.__setattr__(self, 'transform', MappingProxyType(dict(self.transform)))

    @property
    def use_my_metrics(self) -> bool:
        return bool(self.flags & USE_MY_METRICS)

    @property
    def reset_unspecified_axes(self) -> bool:
        return bool(self.flags & RESET_UNSPECIFIED_AXES)

    def present_transform_fields(self) -> list[TransformField]:
        """Transform fields whose presence bit is set, in encoding order."""
        return [f for f in TRANSFORM_FIELDS if self.flags & f.flag]


def parse_component(data, offset: int = 0, end: int | None = None, axis_indices=None,
                    axis_values_end: int | None = None,
                    strict: bool = True) -> tuple[VarComponent, int]:
    """Parse one VarComponent.

    Args:
        data: buffer holding the record
        offset: start of the component
        end: exclusive bound of the enclosing record
        axis_indices: lookup from axisIndicesIndex to a sequence of axis ids,
                      required when bit 3 is set
        axis_values_end: when bit 3 is clear, decode axis values up to this
                         offset and apply them to axes 0..n-1 in order;
                         when None, such a component carries no axis values
        strict: reject the reserved flag bit

    Returns:
        (component, bytes_consumed)
    """
    limit = len(data) if end is None else end
    try:
        return _parse_component(data, offset, limit, axis_indices, axis_values_end, strict)
    except TruncatedInput as exc:
        raise MalformedComponent(f"component overruns its record: {exc.message}",
                                 offset=exc.offset) from exc


def _parse_component(data, offset, limit, axis_indices, axis_values_end, strict):
    flags, pos = read_uint16(data, offset, limit)
    if strict and flags & RESERVED_MASK:
        raise MalformedComponent(f"reserved flag bit set (flags=0x{flags:04X})", offset=offset)

    if flags & GID_IS_24BIT:
        glyph_id, pos = read_uint24(data, pos, limit)
    else:
        glyph_id, pos = read_uint16(data, pos, limit)

    axis_indices_index = None
    axis_ids: tuple = ()
    axis_values: tuple = ()
    if flags & HAVE_AXES:
        axis_indices_index, pos = read_varint32(data, pos, limit)
        if axis_indices is None:
            raise MalformedComponent("component names axes but no axis-indices list is available",
                                     offset=offset)
        try:
            axis_ids = tuple(axis_indices[axis_indices_index])
        except IndexOutOfRange:
            raise
        except IndexError:
            raise IndexOutOfRange(f"axis indices index {axis_indices_index} out of range",
                                  offset=offset) from None
        values, pos = decode_tuple_values(data, pos, count=len(axis_ids), end=limit)
        axis_values = tuple(values)
    elif axis_values_end is not None:
        if axis_values_end > limit:
            raise MalformedComponent(f"axis values end {axis_values_end} beyond record end {limit}",
                                     offset=offset)
        values, pos = decode_tuple_values(data, pos, end=axis_values_end)
        axis_values = tuple(values)
        axis_ids = tuple(range(len(values)))

    axis_values_var_index = None
    if flags & AXIS_VALUES_HAVE_VARIATION:
        axis_values_var_index, pos = read_varint32(data, pos, limit)

    transform_var_index = None
    if flags & TRANSFORM_HAS_VARIATION:
        transform_var_index, pos = read_varint32(data, pos, limit)

    transform = {}
    for tf in TRANSFORM_FIELDS:
        if flags & tf.flag:
            transform[tf.name], pos = read_int16(data, pos, limit)

    component = VarComponent(
        flags=flags,
        glyph_id=glyph_id,
        axis_indices_index=axis_indices_index,
        axis_ids=axis_ids,
        axis_values=axis_values,
        axis_values_var_index=axis_values_var_index,
        transform_var_index=transform_var_index,
        transform=transform,
    )
    return component, pos - offset


def encode_component(component: VarComponent) -> bytes:
    """Serialize a VarComponent; the flags must agree with the present fields."""
    flags = component.flags
    out = bytearray(flags.to_bytes(2, 'big'))
    out += component.glyph_id.to_bytes(3 if flags & GID_IS_24BIT else 2, 'big')
    if flags & HAVE_AXES:
        out += encode_varint32(component.axis_indices_index)
        out += encode_tuple_values(component.axis_values)
    if flags & AXIS_VALUES_HAVE_VARIATION:
        out += encode_varint32(component.axis_values_var_index)
    if flags & TRANSFORM_HAS_VARIATION:
        out += encode_varint32(component.transform_var_index)
    for tf in TRANSFORM_FIELDS:
        if flags & tf.flag:
            out += int(component.transform[tf.name]).to_bytes(2, 'big', signed=True)
    return bytes(out)


# ---------------------------------------------------------------------------
# Composite glyph record
# ---------------------------------------------------------------------------

class CompositeGlyph:
    """Ordered VarComponents making up one composite glyph."""
    __slots__ = ('components',)

    def __init__(self, components: Sequence[VarComponent]) -> None:
        self.components = tuple(components)

    @classmethod
    def parse(cls, data, axis_indices=None, strict: bool = True) -> CompositeGlyph:
        components = []
        pos = 0
        end = len(data)
        while pos < end:
            component, consumed = parse_component(data, pos, end, axis_indices, strict=strict)
            components.append(component)
            pos += consumed
        return cls(components)

    def metrics_component(self) -> VarComponent | None:
        """First component flagged USE_MY_METRICS, if any."""
        for component in self.components:
            if component.use_my_metrics:
                return component
        return None

    def compile(self) -> bytes:
        return b''.join(encode_component(c) for c in self.components)

    def __len__(self) -> int:
        return len(self.components)

    def __iter__(self):
        return iter(self.components)
