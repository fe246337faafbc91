"""T4.01 — Golden chains and harmonic thornfiddle values. ★

Golden pixels are counted on the straight chord from the reference point to
each contour point; runs above the pixel threshold form chains, and valid
chains drive the harmonic enhancement of the composite values.
"""

from __future__ import annotations

from leafcomplex.engine.context import AnalysisContext
from leafcomplex.engine.registry import Layer, stage
from leafcomplex.engine.thornfiddle import golden_pixel_counts, harmonic_thornfiddle


@stage(
    id="T4.01",
    layer=Layer.COMPLEXITY,
    dependencies=["T2.01", "T2.03", "T3.01", "T3.02"],
    description="Detect golden chains and synthesize harmonic values",
)
def harmonics(ctx: AnalysisContext) -> None:
    cfg = ctx.config
    for analysis in ctx.contours():
        analysis.golden_counts = golden_pixel_counts(
            analysis.contour, analysis.reference, ctx.golden_image, cfg.golden_color
        )
        analysis.harmonics = harmonic_thornfiddle(
            analysis.features,
            analysis.golden_counts,
            analysis.metrics["perimeter"],
            pixel_threshold=cfg.thornfiddle_pixel_threshold,
            min_chain_length=cfg.harmonic_min_chain_length,
            strength=cfg.harmonic_strength_multiplier,
            merge_wraparound=cfg.merge_wraparound_chains,
        )
