"""T1.03 — Reference points.

COM: alpha-weighted centroid of the edge (marked) and macro rasters.
EP: the emerge point, shared by both contours.
"""

from __future__ import annotations

from leafcomplex.engine.config import REFERENCE_EMERGE
from leafcomplex.engine.context import AnalysisContext
from leafcomplex.engine.registry import Layer, stage
from leafcomplex.utils.reference import centroid, emerge_point


@stage(
    id="T1.03",
    layer=Layer.CONTOUR,
    dependencies=["T0.02"],
    description="Locate the reference point for each contour",
)
def reference_points(ctx: AnalysisContext) -> None:
    cfg = ctx.config
    if cfg.reference_point == REFERENCE_EMERGE:
        point = emerge_point(ctx.marked, cfg.marked_color)
        ctx.edge.reference = point
        ctx.macro.reference = point
    else:
        ctx.edge.reference = centroid(ctx.marked)
        ctx.macro.reference = centroid(ctx.macro_image)
