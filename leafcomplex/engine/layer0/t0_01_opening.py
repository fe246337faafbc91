"""T0.01 — Opening and removed-region marking.

Kernel size is the configured fixed size or the adaptive density policy.
Removed pixels are painted the marked colour; isolated specks are restored.
"""

from __future__ import annotations

import numpy as np

from leafcomplex.engine.context import AnalysisContext
from leafcomplex.engine.registry import Layer, stage
from leafcomplex.errors import NoValidPointsError
from leafcomplex.utils.morphology import (
    adaptive_kernel_size,
    clean_sentinel_specks,
    mark_removed,
    opening,
)
from leafcomplex.utils.raster import tissue_mask


@stage(
    id="T0.01",
    layer=Layer.PREPROCESS,
    description="Open the silhouette and mark removed regions",
)
def opening_and_marking(ctx: AnalysisContext) -> None:
    cfg = ctx.config
    if not np.any(tissue_mask(ctx.image)):
        raise NoValidPointsError("Image has no non-transparent pixels")

    if cfg.opening_kernel_size is not None:
        ctx.opening_kernel_size = cfg.opening_kernel_size
        ctx.opening_percentage = cfg.opening_kernel_size / min(ctx.width, ctx.height) * 100.0
    else:
        ctx.opening_kernel_size, ctx.opening_percentage = adaptive_kernel_size(
            ctx.image,
            cfg.adaptive_opening_min_pct,
            cfg.adaptive_opening_max_pct,
            cfg.adaptive_opening_max_density,
        )

    ctx.opened = opening(ctx.image, ctx.opening_kernel_size)
    marked = mark_removed(ctx.image, ctx.opened, cfg.marked_color)
    ctx.marked = clean_sentinel_specks(marked, ctx.image, cfg.marked_color)
