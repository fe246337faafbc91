"""Shape metrics — area, corrected perimeter, circularity, length/width/shape index."""

from __future__ import annotations

import math

import numpy as np
from numpy.typing import NDArray
from scipy.spatial import ConvexHull, QhullError
from scipy.spatial.distance import pdist, squareform

from leafcomplex.utils.contour import smooth
from leafcomplex.utils.raster import opaque_mask

# Raster stairstep overestimation tiers: (circularity estimate above, factor)
_PERIMETER_TIERS = ((0.75, 0.945), (0.5, 0.975))
_PERIMETER_FALLBACK = 0.99


def area(image: NDArray[np.uint8]) -> int:
    return int(np.count_nonzero(opaque_mask(image)))


def perimeter(contour: NDArray) -> float:
    """Closed polyline length, wrapping last -> first."""
    pts = np.asarray(contour, dtype=np.float64)
    if len(pts) < 2:
        return 0.0
    return float(np.linalg.norm(pts - np.roll(pts, -1, axis=0), axis=1).sum())


def correct_perimeter(raw: float, circularity_estimate: float) -> float:
    for cutoff, factor in _PERIMETER_TIERS:
        if circularity_estimate > cutoff:
            return raw * factor
    return raw * _PERIMETER_FALLBACK


def circularity(pixel_area: int, contour: NDArray, smoothing: int = 0) -> float:
    """4π·area / P², with P corrected from a first-pass estimate.

    Two passes only: estimate, then correct and recompute.
    """
    if len(contour) < 2:
        return 0.0
    p = perimeter(smooth(contour, smoothing))
    if p <= 0.0:
        return 0.0
    estimate = 4.0 * math.pi * pixel_area / (p * p)
    corrected = correct_perimeter(p, estimate)
    return 4.0 * math.pi * pixel_area / (corrected * corrected)


def _diameter_candidates(pts: NDArray[np.float64]) -> NDArray[np.float64]:
    # The farthest pair always lies on the convex hull
    unique = np.unique(pts, axis=0)
    if len(unique) < 4:
        return unique
    try:
        return unique[ConvexHull(unique).vertices]
    except QhullError:
        return unique  # collinear


def length_width(contour: NDArray) -> tuple[float, float]:
    """Biological length (farthest contour pair) and perpendicular width span."""
    pts = np.asarray(contour, dtype=np.float64)
    if len(pts) < 2:
        return 0.0, 0.0
    cand = _diameter_candidates(pts)
    if len(cand) < 2:
        return 0.0, 0.0
    dists = squareform(pdist(cand))
    i, j = np.unravel_index(int(np.argmax(dists)), dists.shape)
    p1, p2 = cand[i], cand[j]
    length = float(dists[i, j])

    axis = (p2 - p1) / length if length > 0 else np.array([1.0, 0.0])
    perp = np.array([-axis[1], axis[0]])
    offsets = (pts - p1) @ perp
    width = float(max(offsets.max(), 0.0) - min(offsets.min(), 0.0))
    return length, width


def shape_index(length: float, width: float) -> float:
    """Longer over shorter dimension; 1.0 when width is unusable."""
    if width <= 0.0 or length <= 0.0:
        return 1.0
    return max(length, width) / min(length, width)
