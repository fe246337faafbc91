"""T2.02 — Biological length, width and shape index."""

from __future__ import annotations

from leafcomplex.engine.context import AnalysisContext
from leafcomplex.engine.registry import Layer, stage
from leafcomplex.utils.shape import length_width, shape_index


@stage(
    id="T2.02",
    layer=Layer.SHAPE,
    dependencies=["T1.01", "T1.02"],
    description="Measure length, width and shape index",
)
def dimensions(ctx: AnalysisContext) -> None:
    for analysis in ctx.contours():
        length, width = length_width(analysis.contour)
        analysis.metrics["length"] = length
        analysis.metrics["width"] = width
        analysis.metrics["shape_index"] = shape_index(length, width)
