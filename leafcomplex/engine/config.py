"""Analysis configuration — every tunable of the morphology/path/complexity stages."""

from __future__ import annotations

import math
from dataclasses import dataclass, field, fields
from typing import Any, Mapping

from leafcomplex.errors import ConfigError

REFERENCE_CENTROID = "COM"
REFERENCE_EMERGE = "EP"


@dataclass
class AnalysisConfig:
    """Parameters supplied by the front ends alongside each raster."""

    # Sentinel colours
    marked_color: tuple[int, int, int] = (255, 0, 255)  # opening-removed pixels ("pink")
    golden_color: tuple[int, int, int] = (255, 215, 0)  # thornfiddle-removed pixels

    # Reference point: "COM" (alpha-weighted centroid) or "EP" (emerge point)
    reference_point: str = REFERENCE_CENTROID

    # Opening kernel. A fixed size overrides the adaptive policy.
    opening_kernel_size: int | None = None
    adaptive_opening_max_density: float = 40.0  # % non-transparent at which max_pct saturates
    adaptive_opening_max_pct: float = 10.0  # % of min(W, H)
    adaptive_opening_min_pct: float = 4.0
    # 3×3 erode/keep-largest/dilate on the macro body (cuts one-pixel tips too)
    sever_thin_artifacts: bool = False

    # Thornfiddle (secondary) opening, sized from the macro shape index
    thornfiddle_max_opening_pct: float = 15.0  # shape_index <= 1
    thornfiddle_min_opening_pct: float = 5.0  # shape_index >= 5

    # Dual curves
    golden_spiral_phi_exponent_factor: float = 2.0 / math.pi
    golden_spiral_rotation_steps: int = 36  # minimum bezier samples

    # Contour signal
    smoothing_strength: float = 2.0  # sigma floor for periodic gaussian smoothing
    interpolation_points: int = 1000

    # Golden chains / harmonics
    thornfiddle_pixel_threshold: int = 10
    harmonic_min_chain_length: int = 5
    harmonic_strength_multiplier: float = 1.0
    merge_wraparound_chains: bool = False

    # Spectral entropy variation scaling: 1 / (1 + exp(-k·(cv - c)))
    spectral_entropy_sigmoid_k: float = 10.0
    spectral_entropy_sigmoid_c: float = 0.1

    # Petiole filtering on the pink signal
    enable_petiole_filter: bool = True
    petiole_remove_completely: bool = True
    petiole_candidate_threshold: float = 1.0
    petiole_outlier_percentile: float = 0.95
    enable_pink_threshold: bool = True
    pink_threshold_value: float = 3.0

    # Approximate entropy
    approximate_entropy_m: int = 2
    approximate_entropy_r: float = 0.2

    # Edge complexity
    edge_complexity_scaling: float = 3.0

    # Feature extractor progress granularity (fraction of points)
    progress_step: float = field(default=0.05, repr=False)

    def validate(self) -> AnalysisConfig:
        if self.opening_kernel_size is not None and self.opening_kernel_size <= 0:
            raise ConfigError("opening_kernel_size must be > 0")
        if self.golden_spiral_phi_exponent_factor <= 0.0:
            raise ConfigError("golden_spiral_phi_exponent_factor must be > 0.0")
        if self.interpolation_points < 10:
            raise ConfigError("interpolation_points must be >= 10")
        if self.reference_point not in (REFERENCE_CENTROID, REFERENCE_EMERGE):
            raise ConfigError(f"Unknown reference_point: {self.reference_point!r}")
        for name in ("marked_color", "golden_color"):
            color = getattr(self, name)
            if len(color) != 3 or any(not 0 <= c <= 255 for c in color):
                raise ConfigError(f"{name} must be three values in 0..255")
        if tuple(self.marked_color) == tuple(self.golden_color):
            raise ConfigError("marked_color and golden_color must differ")
        if self.adaptive_opening_min_pct > self.adaptive_opening_max_pct:
            raise ConfigError("adaptive_opening_min_pct exceeds adaptive_opening_max_pct")
        if self.adaptive_opening_max_density <= 0.0:
            raise ConfigError("adaptive_opening_max_density must be > 0.0")
        if not 0.0 < self.petiole_outlier_percentile <= 1.0:
            raise ConfigError("petiole_outlier_percentile must be in (0, 1]")
        if self.approximate_entropy_m < 1:
            raise ConfigError("approximate_entropy_m must be >= 1")
        return self

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> AnalysisConfig:
        """Build from a plain mapping (e.g. a parsed TOML table), ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        kwargs = {k: v for k, v in data.items() if k in known}
        for key in ("marked_color", "golden_color"):
            if key in kwargs:
                kwargs[key] = tuple(int(c) for c in kwargs[key])
        return cls(**kwargs).validate()
