"""T0.02 — Macro image.

Noise islands are dropped from the marked image, then the main body without
marked regions becomes the macro image. Anything the macro body lost is
marked so the two views stay consistent.
"""

from __future__ import annotations

from leafcomplex.engine.context import AnalysisContext
from leafcomplex.engine.registry import Layer, stage
from leafcomplex.utils.morphology import keep_largest, macro_image, sync_marked


@stage(
    id="T0.02",
    layer=Layer.PREPROCESS,
    dependencies=["T0.01"],
    description="Derive the macro body and resync the marked image",
)
def build_macro_image(ctx: AnalysisContext) -> None:
    cfg = ctx.config
    marked = keep_largest(ctx.marked)
    ctx.macro_image = macro_image(marked, ctx.image, cfg.marked_color, sever_thin=cfg.sever_thin_artifacts)
    ctx.marked = sync_marked(marked, ctx.macro_image, cfg.marked_color)
