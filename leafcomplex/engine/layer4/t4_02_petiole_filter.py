"""T4.02 — Petiole and flat-threshold filtering of the edge pink signal.

The petiole shows up as the longest run of high marked-pixel tallies. The
filtered copy feeds pink entropy and edge density; the full feature list is
left untouched.
"""

from __future__ import annotations

import logging

from leafcomplex.engine.context import AnalysisContext
from leafcomplex.engine.registry import Layer, stage
from leafcomplex.engine.thornfiddle import apply_pink_threshold, detect_petiole, filter_petiole, pink_signal

logger = logging.getLogger(__name__)


@stage(
    id="T4.02",
    layer=Layer.COMPLEXITY,
    dependencies=["T3.01"],
    description="Filter the petiole out of the marked-pixel signal",
)
def petiole_filter(ctx: AnalysisContext) -> None:
    cfg = ctx.config
    edge = ctx.edge
    edge.petiole_indices = []
    if cfg.enable_petiole_filter:
        edge.petiole_indices = detect_petiole(
            pink_signal(edge.features), cfg.petiole_candidate_threshold, cfg.petiole_outlier_percentile
        )
    edge.filtered_features = filter_petiole(edge.features, edge.petiole_indices, cfg.petiole_remove_completely)
    if edge.petiole_indices:
        logger.debug(
            "Petiole: %d points %s",
            len(edge.petiole_indices),
            "removed" if cfg.petiole_remove_completely else "zeroed",
        )
    if cfg.enable_pink_threshold:
        apply_pink_threshold(edge.filtered_features, cfg.pink_threshold_value)
