"""T3.02 — Macro features, measured inside the macro body."""

from __future__ import annotations

from leafcomplex.engine.context import AnalysisContext
from leafcomplex.engine.features import extract_features
from leafcomplex.engine.registry import Layer, stage


@stage(
    id="T3.02",
    layer=Layer.FEATURES,
    dependencies=["T1.02", "T1.03"],
    description="Measure paths from the reference point to every macro point",
)
def macro_features(ctx: AnalysisContext) -> None:
    cfg = ctx.config
    ctx.macro.features = extract_features(
        ctx.macro_image,
        ctx.macro.contour,
        ctx.macro.reference,
        phi_exponent_factor=cfg.golden_spiral_phi_exponent_factor,
        curve_samples=cfg.golden_spiral_rotation_steps,
        progress=ctx.report_progress,
        progress_step=cfg.progress_step,
    )
