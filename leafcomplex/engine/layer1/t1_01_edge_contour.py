"""T1.01 — Edge contour. Marked pixels count as shape."""

from __future__ import annotations

from leafcomplex.engine.context import AnalysisContext
from leafcomplex.engine.registry import Layer, stage
from leafcomplex.errors import NoValidPointsError
from leafcomplex.utils.contour import trace_edge


@stage(
    id="T1.01",
    layer=Layer.CONTOUR,
    dependencies=["T0.02"],
    description="Trace the edge contour (marked pixels as foreground)",
)
def edge_contour(ctx: AnalysisContext) -> None:
    ctx.edge.contour = trace_edge(ctx.marked)
    if ctx.edge.point_count == 0:
        raise NoValidPointsError("Edge contour is empty")
