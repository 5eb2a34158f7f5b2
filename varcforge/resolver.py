# VarcForge - Variable Composite Glyph Engine
# Copyright (c) 2025-2026 Scott Bowman
# SPDX-License-Identifier: AGPL-3.0-or-later
from __future__ import annotations

"""
Composite Resolver

Walks the component tree of a composite glyph depth-first and flattens it
into leaf placements: (leaf glyph id, accumulated affine transform, axis
coordinates the leaf is instantiated at). Outline extraction for the leaves
belongs to an external outline provider; draw_glyph() feeds each leaf through
a fontTools TransformPen.

Per component:
  1. Axis coordinates. Start from the parent's coordinates, or reset them all to
     the default 0 when RESET_UNSPECIFIED_AXES is set. Axis-value deltas (evaluated
     at the parent's coordinates) are added to the component's raw F2DOT14
     values, which then override the named axes.
  2. Transform fields. Absent fields take their defaults; transform deltas
     are added only to the fields present in the record, in encoding order.
  3. Matrix. translate(TranslateX+TCenterX, TranslateY+TCenterY),
     rotate(-Rotation*pi) (clockwise), scale(ScaleX, ScaleY),
     skew(-SkewX*pi, SkewY*pi), translate(-TCenterX, -TCenterY), then
     composed inside the parent's matrix.
  4. Recurse into composite children, or emit a placement for a leaf.

Composite references may form cycles; nesting deeper than max_depth raises
RecursionLimitExceeded for the glyph being resolved.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Hashable, Iterable, Mapping

from fontTools.misc.fixedTools import fixedToFloat
from fontTools.misc.transform import Identity, Transform
from fontTools.pens.transformPen import TransformPen

from .core.binary import f2dot14_to_float
from .core.component import TRANSFORM_FIELDS, VarComponent
from .core.error import InvalidVarIdx, RecursionLimitExceeded, VarcError
from .core.var_store import NO_VARIATION_INDEX
from .table import VarcTable

logger = logging.getLogger(__name__)

# Matches HarfBuzz's nesting limit for classic composite glyphs.
DEFAULT_MAX_DEPTH = 64


@dataclass(frozen=True)
class Placement:
    """One leaf glyph of a flattened composite."""
    glyph_id: int
    transform: Transform
    axis_context: dict = field(default_factory=dict)


@dataclass
class ResolveResult:
    """Outcome of resolving one glyph: placements on success, error otherwise."""
    glyph_id: int
    placements: list[Placement] | None = None
    error: VarcError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _has_variation(var_idx: int | None) -> bool:
    return var_idx is not None and var_idx != NO_VARIATION_INDEX


def compose_component_transform(fields: Mapping[str, float]) -> Transform:
    """Build the component matrix from converted transform fields.

    Rotation and skew are in multiples of pi; scale is a plain factor;
    translation and center are in font units.
    """
    tcx = fields['TCenterX']
    tcy = fields['TCenterY']
    t = Transform()
    t = t.translate(fields['TranslateX'] + tcx, fields['TranslateY'] + tcy)
    t = t.rotate(-fields['Rotation'] * math.pi)
    t = t.scale(fields['ScaleX'], fields['ScaleY'])
    t = t.skew(-fields['SkewX'] * math.pi, fields['SkewY'] * math.pi)
    t = t.translate(-tcx, -tcy)
    return t


class CompositeResolver:
    """Resolves composite glyphs of a VarcTable into leaf placements.

    The resolver keeps no per-call state, so one instance may be shared by
    threads resolving different glyphs.
    """

    def __init__(self, table: VarcTable, max_depth: int = DEFAULT_MAX_DEPTH) -> None:
        if max_depth < 0:
            raise ValueError(f"max_depth must be non-negative, got {max_depth}")
        self.table = table
        self.max_depth = max_depth

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def resolve(self, glyph_id: int, axis_context: Mapping[Hashable, float] | None = None,
                transform: Transform = Identity) -> list[Placement]:
        """Flatten glyph_id into leaf placements.

        A glyph with no composite record is a leaf: the result is a single
        placement of the glyph itself.

        Raises:
            VarcError: any decode or resolution error, annotated with glyph_id
        """
        coords = dict(axis_context or {})
        if not self.table.is_composite(glyph_id):
            logger.debug("Glyph %d has no composite record, treating as leaf", glyph_id)
            return [Placement(glyph_id, transform, coords)]
        placements: list[Placement] = []
        try:
            self._resolve_into(glyph_id, coords, transform, placements)
        except VarcError as exc:
            if exc.glyph_id is None:
                exc.glyph_id = glyph_id
            raise
        return placements

    def resolve_many(self, glyph_ids: Iterable[int],
                     axis_context: Mapping[Hashable, float] | None = None) -> list[ResolveResult]:
        """Resolve several glyphs; a failing glyph is reported and skipped."""
        results = []
        for glyph_id in glyph_ids:
            try:
                results.append(ResolveResult(glyph_id, placements=self.resolve(glyph_id, axis_context)))
            except VarcError as exc:
                logger.warning("Skipping glyph %d: %s: %s", glyph_id, exc.kind, exc)
                results.append(ResolveResult(glyph_id, error=exc))
        return results

    # ------------------------------------------------------------------
    # Per-component resolution
    # ------------------------------------------------------------------

    def component_axis_context(self, component: VarComponent,
                               parent: Mapping[Hashable, float]) -> dict:
        """Axis coordinates a component's child glyph is instantiated at."""
        if component.reset_unspecified_axes:
            coords = {axis_id: 0.0 for axis_id in parent}
        else:
            coords = dict(parent)
        values = list(component.axis_values)
        if _has_variation(component.axis_values_var_index):
            deltas = self._evaluate(component.axis_values_var_index, parent, len(values))
            values = [v + d for v, d in zip(values, deltas)]
        for axis_id, value in zip(component.axis_ids, values):
            coords[axis_id] = f2dot14_to_float(value)
        return coords

    def component_transform_fields(self, component: VarComponent,
                                   parent: Mapping[Hashable, float]) -> dict[str, float]:
        """The nine transform fields after defaults, deltas and unit conversion."""
        present = component.present_transform_fields()
        raw = {tf.name: float(component.transform[tf.name]) for tf in present}
        if _has_variation(component.transform_var_index):
            deltas = self._evaluate(component.transform_var_index, parent, len(present))
            for tf, delta in zip(present, deltas):
                raw[tf.name] += delta

        fields = {}
        for tf in TRANSFORM_FIELDS:
            if tf.name in raw:
                fields[tf.name] = fixedToFloat(raw[tf.name], tf.frac_bits)
            else:
                fields[tf.name] = tf.default
        if 'ScaleY' not in raw:
            fields['ScaleY'] = fields['ScaleX']
        return fields

    def component_transform(self, component: VarComponent,
                            parent: Mapping[Hashable, float]) -> Transform:
        return compose_component_transform(self.component_transform_fields(component, parent))

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _evaluate(self, var_idx: int, coords: Mapping[Hashable, float], expected: int) -> tuple:
        store = self.table.var_store
        if store is None:
            raise InvalidVarIdx("component references a variation but the table has no store",
                                var_idx=var_idx)
        return store.evaluate(var_idx, coords, expected)

    def _enter(self, glyph_id: int, depth: int):
        if depth > self.max_depth:
            raise RecursionLimitExceeded(
                f"composite nesting deeper than {self.max_depth} at glyph {glyph_id}")
        return iter(self.table.composite_glyph(glyph_id))

    def _resolve_into(self, glyph_id: int, coords: dict, matrix: Transform,
                      out: list[Placement]) -> None:
        # Frames are (component iterator, coords, matrix, depth).
        stack = [(self._enter(glyph_id, 0), coords, matrix, 0)]
        while stack:
            components, coords, matrix, depth = stack[-1]
            component = next(components, None)
            if component is None:
                stack.pop()
                continue
            child_coords = self.component_axis_context(component, coords)
            child_matrix = matrix.transform(self.component_transform(component, coords))
            if self.table.is_composite(component.glyph_id):
                stack.append((self._enter(component.glyph_id, depth + 1),
                              child_coords, child_matrix, depth + 1))
            else:
                out.append(Placement(component.glyph_id, child_matrix, child_coords))


def draw_glyph(resolver: CompositeResolver, glyph_id: int,
               axis_context: Mapping[Hashable, float] | None, outline_provider, pen) -> None:
    """Draw glyph_id into pen, delegating leaf outlines to outline_provider.

    outline_provider must implement ``draw(glyph_id, axis_context, pen)``.
    """
    for placement in resolver.resolve(glyph_id, axis_context):
        outline_provider.draw(placement.glyph_id, placement.axis_context,
                              TransformPen(pen, placement.transform))
