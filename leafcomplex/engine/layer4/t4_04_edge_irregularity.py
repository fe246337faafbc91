"""T4.04 — Approximate entropy and edge feature density of the pink signal."""

from __future__ import annotations

from leafcomplex.engine.context import AnalysisContext
from leafcomplex.engine.registry import Layer, stage
from leafcomplex.engine.thornfiddle import edge_complexity, edge_feature_density, pink_signal
from leafcomplex.utils.spectral import approximate_entropy


@stage(
    id="T4.04",
    layer=Layer.COMPLEXITY,
    dependencies=["T4.02"],
    description="Approximate entropy and edge complexity of marked-pixel tallies",
)
def edge_irregularity(ctx: AnalysisContext) -> None:
    cfg = ctx.config
    signal = pink_signal(ctx.edge.filtered_features)
    metrics = ctx.edge.metrics
    metrics["approximate_entropy"] = approximate_entropy(
        signal, m=cfg.approximate_entropy_m, r=cfg.approximate_entropy_r
    )
    metrics["edge_feature_density"] = edge_feature_density(signal, cfg.petiole_candidate_threshold)
    metrics["edge_complexity"] = edge_complexity(
        signal, cfg.edge_complexity_scaling, cfg.petiole_candidate_threshold
    )
