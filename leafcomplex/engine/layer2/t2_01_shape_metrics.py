"""T2.01 — Area, outline count, perimeter, circularity. ★

C = 4π·area/P², P corrected once from a first-pass estimate.
"""

from __future__ import annotations

from leafcomplex.engine.context import AnalysisContext
from leafcomplex.engine.registry import Layer, stage
from leafcomplex.utils.shape import area, circularity, perimeter


@stage(
    id="T2.01",
    layer=Layer.SHAPE,
    dependencies=["T1.01", "T1.02"],
    description="Compute area, perimeter and corrected circularity",
)
def shape_metrics(ctx: AnalysisContext) -> None:
    for analysis, raster in ((ctx.edge, ctx.marked), (ctx.macro, ctx.macro_image)):
        pixels = area(raster)
        analysis.metrics["area"] = pixels
        analysis.metrics["outline_count"] = analysis.point_count
        analysis.metrics["perimeter"] = perimeter(analysis.contour)
        analysis.metrics["circularity"] = circularity(pixels, analysis.contour)
