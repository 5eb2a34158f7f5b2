# VarcForge - Variable Composite Glyph Engine
# Copyright (c) 2025-2026 Scott Bowman
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
VarcForge - decoder and resolver for VARC variable composite glyph tables.
"""

from .core.blob_index import BlobIndex, IndexOf, build_blob_index
from .core.component import CompositeGlyph, VarComponent, encode_component, parse_component
from .core.coverage import Coverage
from .core.error import (
    CorruptOffsets,
    IndexOutOfRange,
    InvalidVarIdx,
    MalformedComponent,
    MalformedTuple,
    RecursionLimitExceeded,
    TruncatedInput,
    UnsupportedFormat,
    VarcError,
)
from .core.tuple_values import decode_tuple_values, encode_tuple_values
from .core.var_store import MultiItemVariationStore, Region, RegionAxis, tent_scalar
from .core.varint import encode_varint32, read_varint32
from .resolver import DEFAULT_MAX_DEPTH, CompositeResolver, Placement, ResolveResult, draw_glyph
from .table import AxisIndicesList, VarcTable

__version__ = "0.1.0"

__all__ = [
    "AxisIndicesList",
    "BlobIndex",
    "CompositeGlyph",
    "CompositeResolver",
    "CorruptOffsets",
    "Coverage",
    "DEFAULT_MAX_DEPTH",
    "IndexOf",
    "IndexOutOfRange",
    "InvalidVarIdx",
    "MalformedComponent",
    "MalformedTuple",
    "MultiItemVariationStore",
    "Placement",
    "RecursionLimitExceeded",
    "Region",
    "RegionAxis",
    "ResolveResult",
    "TruncatedInput",
    "UnsupportedFormat",
    "VarComponent",
    "VarcError",
    "VarcTable",
    "build_blob_index",
    "decode_tuple_values",
    "draw_glyph",
    "encode_component",
    "encode_tuple_values",
    "encode_varint32",
    "parse_component",
    "read_varint32",
    "tent_scalar",
]
