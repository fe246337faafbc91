"""T4.05 — Flat per-image summary.

Headline shape values come from the edge contour, chain counts and the
headline spectral entropy from the macro (harmonic) contour, approximate
entropy from the filtered pink signal.
"""

from __future__ import annotations

from leafcomplex.engine.context import AnalysisContext
from leafcomplex.engine.registry import Layer, stage


@stage(
    id="T4.05",
    layer=Layer.COMPLEXITY,
    dependencies=["T4.03", "T4.04"],
    description="Assemble the summary record",
)
def summary(ctx: AnalysisContext) -> None:
    edge, macro = ctx.edge.metrics, ctx.macro.metrics
    harmonics = ctx.macro.harmonics
    ctx.summary = {
        "area": edge["area"],
        "length": edge["length"],
        "width": edge["width"],
        "shape_index": edge["shape_index"],
        "circularity": edge["circularity"],
        "outline_count": edge["outline_count"],
        "spectral_entropy": macro["spectral_entropy"],
        "approximate_entropy": edge["approximate_entropy"],
        "valid_chain_count": harmonics.valid_chain_count,
        "total_chain_count": harmonics.total_chain_count,
        # Extended values
        "macro_area": macro["area"],
        "macro_outline_count": macro["outline_count"],
        "macro_circularity": macro["circularity"],
        "macro_length": macro["length"],
        "macro_width": macro["width"],
        "macro_shape_index": macro["shape_index"],
        "edge_spectral_entropy": edge["spectral_entropy"],
        "pink_spectral_entropy": edge["pink_spectral_entropy"],
        "contour_spectral_entropy": edge["contour_spectral_entropy"],
        "edge_feature_density": edge["edge_feature_density"],
        "edge_complexity": edge["edge_complexity"],
        "global_complexity": harmonics.global_complexity,
        "weighted_chain_score": harmonics.weighted_chain_score,
        "edge_valid_chain_count": ctx.edge.harmonics.valid_chain_count,
        "petiole_points": len(ctx.edge.petiole_indices),
        "opening_kernel_size": ctx.opening_kernel_size,
        "opening_percentage": ctx.opening_percentage,
        "dynamic_opening_percentage": ctx.dynamic_opening_percentage,
        "dynamic_kernel_size": ctx.dynamic_kernel_size,
    }
