# VarcForge - Variable Composite Glyph Engine
# Copyright (c) 2025-2026 Scott Bowman
# SPDX-License-Identifier: AGPL-3.0-or-later
from __future__ import annotations

"""
Error kinds raised while decoding and resolving VARC data.

All errors are deterministic functions of the input bytes. Each one carries
whatever context was known where it was raised (byte offset, glyph id,
VarIdx) so callers can report or skip the offending glyph.
"""


class VarcError(Exception):
    """Base class for all VARC decode/resolve errors."""

    def __init__(self, message: str, *, offset: int | None = None,
                 glyph_id: int | None = None, var_idx: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.offset = offset
        self.glyph_id = glyph_id
        self.var_idx = var_idx

    @property
    def kind(self) -> str:
        return type(self).__name__

    def context(self) -> dict:
        """Return the non-empty context fields as a dict."""
        ctx = {}
        if self.offset is not None:
            ctx['offset'] = self.offset
        if self.glyph_id is not None:
            ctx['glyph_id'] = self.glyph_id
        if self.var_idx is not None:
            ctx['var_idx'] = self.var_idx
        return ctx

    def __str__(self) -> str:
        parts = [self.message]
        if self.glyph_id is not None:
            parts.append(f"glyph={self.glyph_id}")
        if self.offset is not None:
            parts.append(f"offset={self.offset}")
        if self.var_idx is not None:
            parts.append(f"varIdx=0x{self.var_idx:08X}")
        return " ".join(parts)


class TruncatedInput(VarcError):
    """Buffer is shorter than a field demands."""


class MalformedTuple(VarcError):
    """Packed tuple run reads past its bounds or has an inconsistent length."""


class MalformedComponent(VarcError):
    """VarComponent record is structurally invalid."""


class CorruptOffsets(VarcError):
    """Indexed blob store offsets are non-monotonic or out of bounds."""


class IndexOutOfRange(VarcError, IndexError):
    """An index points outside its target table."""


class InvalidVarIdx(VarcError):
    """A VarIdx does not resolve to a row of the expected width."""


class RecursionLimitExceeded(VarcError):
    """Composite nesting went deeper than the configured limit."""


class UnsupportedFormat(VarcError):
    """Unknown table version or sub-table format."""
