"""T2.03 — Golden (thornfiddle) image.

The macro image is re-opened with a kernel sized from the macro shape index:
round shapes get the largest opening, elongated ones (index >= 5) the
smallest. Removed pixels are painted the golden colour.
"""

from __future__ import annotations

from leafcomplex.engine.context import AnalysisContext
from leafcomplex.engine.registry import Layer, stage
from leafcomplex.utils.morphology import (
    dynamic_kernel_size,
    dynamic_opening_percentage,
    mark_removed,
    opening,
)


@stage(
    id="T2.03",
    layer=Layer.SHAPE,
    dependencies=["T0.02", "T2.02"],
    description="Re-open the macro body and paint removed lobes golden",
)
def golden_image(ctx: AnalysisContext) -> None:
    cfg = ctx.config
    metrics = ctx.macro.metrics
    ctx.dynamic_opening_percentage = dynamic_opening_percentage(
        metrics["shape_index"], cfg.thornfiddle_min_opening_pct, cfg.thornfiddle_max_opening_pct
    )
    ctx.dynamic_kernel_size = dynamic_kernel_size(
        ctx.dynamic_opening_percentage, metrics["length"], metrics["width"]
    )
    opened = opening(ctx.macro_image, ctx.dynamic_kernel_size)
    ctx.golden_image = mark_removed(ctx.macro_image, opened, cfg.golden_color)
