"""Feature extractor — one MarginalPointFeature per contour point.

For every contour point the straight chord from the reference point is
traced; when it leaves the tissue the obstacle-avoiding (Diego) path and the
two bowed bezier curves are measured as well.
"""

from __future__ import annotations

import logging
import math
from dataclasses import asdict, dataclass
from typing import Any, Callable

import numpy as np
from numpy.typing import NDArray

from leafcomplex.errors import NoValidPointsError
from leafcomplex.utils.paths import (
    LEFT,
    RIGHT,
    bfs_parents,
    classify_region,
    control_distance,
    count_sentinel_on_path,
    crosses_background,
    curve_valid,
    dual_curves,
    path_length,
    shortest_in_mask_path,
    straight_line,
)
from leafcomplex.utils.raster import Color, tissue_mask

logger = logging.getLogger(__name__)


@dataclass
class MarginalPointFeature:
    point_index: int
    x: int
    y: int
    straight_path_length: float
    gyro_path_length: float = 0.0
    gyro_path_perc: float = 0.0
    clr_alpha: int = 0
    clr_gamma: int = 0
    left_clr_alpha: int = 0
    left_clr_gamma: int = 0
    right_clr_alpha: int = 0
    right_clr_gamma: int = 0
    diego_path_length: float = 0.0
    diego_path_perc: float = 100.0
    diego_path_pink: int = 0
    crossed: bool = False
    # Assigned by the complexity engine
    golden_pixels: int = 0
    thornfiddle_multiplier: float = 1.0
    thornfiddle_path: float = 0.0
    thornfiddle_path_harmonic: float = 0.0

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)


def _percentage(value: float, reference: float) -> float:
    if reference <= 0.0:
        return 100.0
    return value / reference * 100.0


def _curve_regions(
    feature: MarginalPointFeature,
    a: tuple[int, int],
    b: tuple[int, int],
    image: NDArray[np.uint8],
    phi_factor: float,
    min_samples: int,
) -> None:
    offset = control_distance(feature.straight_path_length, phi_factor)
    lengths: list[float] = []
    counts: list[tuple[int, int]] = []
    for side in (LEFT, RIGHT):
        curve, length = dual_curves(a, b, offset, side, min_samples=min_samples)
        if not curve_valid(curve, image):
            continue
        alpha, gamma = classify_region(a, b, curve, image)
        if side == LEFT:
            feature.left_clr_alpha, feature.left_clr_gamma = alpha, gamma
        else:
            feature.right_clr_alpha, feature.right_clr_gamma = alpha, gamma
        lengths.append(length)
        counts.append((alpha, gamma))

    if len(counts) == 2:
        feature.clr_alpha = (counts[0][0] + counts[1][0]) // 2
        feature.clr_gamma = (counts[0][1] + counts[1][1]) // 2
    elif counts:
        feature.clr_alpha, feature.clr_gamma = counts[0]
    if lengths:
        feature.gyro_path_length = sum(lengths) / len(lengths)
        feature.gyro_path_perc = _percentage(feature.gyro_path_length, feature.straight_path_length)


def extract_features(
    image: NDArray[np.uint8],
    contour: NDArray,
    reference: tuple[int, int],
    *,
    phi_exponent_factor: float,
    curve_samples: int = 36,
    pink_color: Color | None = None,
    progress: Callable[[float], None] | None = None,
    progress_step: float = 0.05,
) -> list[MarginalPointFeature]:
    """Measure every contour point against ``reference``.

    ``pink_color`` enables the sentinel tally along each Diego path (edge pass).
    Raises NoValidPointsError for an empty contour.
    """
    n = len(contour)
    if n == 0:
        raise NoValidPointsError("Contour is empty")

    a = (int(reference[0]), int(reference[1]))
    parents: NDArray[np.int64] | None = None
    features: list[MarginalPointFeature] = []
    next_report = progress_step
    crossings = 0

    for i, (x, y) in enumerate(np.asarray(contour)):
        b = (int(x), int(y))
        straight = math.hypot(b[0] - a[0], b[1] - a[1])
        feature = MarginalPointFeature(point_index=i, x=b[0], y=b[1], straight_path_length=straight)

        line = straight_line(a, b)
        if crosses_background(line, image):
            crossings += 1
            if parents is None:
                parents = bfs_parents(a, tissue_mask(image))
            path, _ = shortest_in_mask_path(a, b, image, parents=parents)
            feature.crossed = True
            feature.diego_path_length = path_length(path)
            _curve_regions(feature, a, b, image, phi_exponent_factor, curve_samples)
        else:
            path = line
            feature.diego_path_length = straight
            feature.gyro_path_length = straight
            feature.gyro_path_perc = 100.0
        feature.diego_path_perc = _percentage(feature.diego_path_length, straight)
        if pink_color is not None:
            feature.diego_path_pink = count_sentinel_on_path(path, image, pink_color)
        features.append(feature)

        if progress is not None and (i + 1) / n >= next_report:
            progress((i + 1) / n)
            next_report += progress_step

    logger.debug("Extracted %d features (%d crossing the background)", n, crossings)
    return features
