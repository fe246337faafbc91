"""T3.01 — Edge features, with the marked-pixel tally along each Diego path."""

from __future__ import annotations

from leafcomplex.engine.context import AnalysisContext
from leafcomplex.engine.features import extract_features
from leafcomplex.engine.registry import Layer, stage


@stage(
    id="T3.01",
    layer=Layer.FEATURES,
    dependencies=["T1.01", "T1.03"],
    description="Measure paths from the reference point to every edge point",
)
def edge_features(ctx: AnalysisContext) -> None:
    cfg = ctx.config
    ctx.edge.features = extract_features(
        ctx.marked,
        ctx.edge.contour,
        ctx.edge.reference,
        phi_exponent_factor=cfg.golden_spiral_phi_exponent_factor,
        curve_samples=cfg.golden_spiral_rotation_steps,
        pink_color=cfg.marked_color,
        progress=ctx.report_progress,
        progress_step=cfg.progress_step,
    )
