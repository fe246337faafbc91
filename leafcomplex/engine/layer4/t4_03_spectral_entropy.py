"""T4.03 — Spectral entropies: harmonic (edge, macro), pink, contour."""

from __future__ import annotations

from leafcomplex.engine.context import AnalysisContext
from leafcomplex.engine.registry import Layer, stage
from leafcomplex.engine.thornfiddle import harmonic_signal, pink_signal
from leafcomplex.utils.spectral import contour_spectral_entropy, spectral_entropy


@stage(
    id="T4.03",
    layer=Layer.COMPLEXITY,
    dependencies=["T4.01", "T4.02"],
    description="Spectral entropy of the harmonic, pink and contour signals",
)
def spectral_entropies(ctx: AnalysisContext) -> None:
    cfg = ctx.config
    for analysis in ctx.contours():
        analysis.metrics["spectral_entropy"] = spectral_entropy(
            harmonic_signal(analysis.features),
            smoothing_strength=cfg.smoothing_strength,
            sigmoid_k=cfg.spectral_entropy_sigmoid_k,
            sigmoid_c=cfg.spectral_entropy_sigmoid_c,
        )
    ctx.edge.metrics["pink_spectral_entropy"] = spectral_entropy(
        pink_signal(ctx.edge.filtered_features),
        sigmoid_k=cfg.spectral_entropy_sigmoid_k,
        sigmoid_c=cfg.spectral_entropy_sigmoid_c,
    )
    ctx.edge.metrics["contour_spectral_entropy"] = contour_spectral_entropy(
        ctx.edge.contour, cfg.interpolation_points
    )
