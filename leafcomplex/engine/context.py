"""AnalysisContext — the single mutable state object flowing through all stages.

Per-contour results -> ContourAnalysis (edge and macro)
Whole-image results -> AnalysisContext.* (derived rasters, kernel sizes, summary)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable

import numpy as np
from numpy.typing import NDArray

from leafcomplex.engine.config import AnalysisConfig

if TYPE_CHECKING:
    from leafcomplex.engine.features import MarginalPointFeature
    from leafcomplex.engine.thornfiddle import HarmonicResult

ProgressCallback = Callable[[str, float], None]


@dataclass
class ContourAnalysis:
    """One traced contour and everything measured along it."""

    kind: str
    # (N, 2) int array of (x, y)
    contour: NDArray[np.int64] = field(default_factory=lambda: np.empty((0, 2), dtype=np.int64))
    reference: tuple[int, int] | None = None
    features: list[MarginalPointFeature] = field(default_factory=list)
    # Pink-signal view after petiole/threshold filtering (edge contour only)
    filtered_features: list[MarginalPointFeature] = field(default_factory=list)
    petiole_indices: list[int] = field(default_factory=list)
    golden_counts: NDArray[np.int64] | None = None
    harmonics: HarmonicResult | None = None
    # Scalar metrics keyed by name (area, circularity, length, ...)
    metrics: dict[str, Any] = field(default_factory=dict)

    @property
    def point_count(self) -> int:
        return len(self.contour)


@dataclass
class AnalysisContext:
    """Shared state flowing through the analysis of one raster."""

    # Decoded (H, W, 4) uint8 RGBA raster; never modified
    image: NDArray[np.uint8]
    config: AnalysisConfig = field(default_factory=AnalysisConfig)
    name: str = ""

    # --- Derived rasters ---
    opened: NDArray[np.uint8] | None = None
    # Opening-removed pixels painted config.marked_color
    marked: NDArray[np.uint8] | None = None
    # Main body: marked pixels transparent, islands dropped
    macro_image: NDArray[np.uint8] | None = None
    # Macro image re-opened, removed pixels painted config.golden_color
    golden_image: NDArray[np.uint8] | None = None

    opening_kernel_size: int = 0
    opening_percentage: float = 0.0
    dynamic_opening_percentage: float = 0.0
    dynamic_kernel_size: int = 0

    edge: ContourAnalysis = field(default_factory=lambda: ContourAnalysis(kind="edge"))
    macro: ContourAnalysis = field(default_factory=lambda: ContourAnalysis(kind="macro"))

    summary: dict[str, Any] = field(default_factory=dict)

    # Observability hook: (stage_id, fraction complete)
    progress_callback: ProgressCallback | None = None
    current_stage: str = ""

    # --- Pipeline metadata ---
    completed_stages: set[str] = field(default_factory=set)
    errors: dict[str, str] = field(default_factory=dict)
    skipped: set[str] = field(default_factory=set)
    timings: dict[str, float] = field(default_factory=dict)

    @property
    def width(self) -> int:
        return int(self.image.shape[1])

    @property
    def height(self) -> int:
        return int(self.image.shape[0])

    @property
    def failed(self) -> bool:
        return bool(self.errors)

    def report_progress(self, fraction: float) -> None:
        if self.progress_callback is not None:
            self.progress_callback(self.current_stage, fraction)

    def contours(self) -> tuple[ContourAnalysis, ContourAnalysis]:
        return self.edge, self.macro
