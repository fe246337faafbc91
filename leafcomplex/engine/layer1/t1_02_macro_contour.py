"""T1.02 — Macro contour. Marked pixels count as background."""

from __future__ import annotations

from leafcomplex.engine.context import AnalysisContext
from leafcomplex.engine.registry import Layer, stage
from leafcomplex.errors import NoValidPointsError
from leafcomplex.utils.contour import trace_macro


@stage(
    id="T1.02",
    layer=Layer.CONTOUR,
    dependencies=["T0.02"],
    description="Trace the macro contour (marked pixels as background)",
)
def macro_contour(ctx: AnalysisContext) -> None:
    ctx.macro.contour = trace_macro(ctx.marked, ctx.config.marked_color)
    if ctx.macro.point_count == 0:
        raise NoValidPointsError("Macro contour is empty")
