"""Reference point location — one anchor pixel per shape."""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray

from leafcomplex.errors import NoValidPointsError
from leafcomplex.utils.raster import Color, color_mask, opaque_mask, round_half_up

# Emerge-point preference band around the horizontal center (fraction of width)
_CENTER_BAND = 0.01


def centroid(image: NDArray[np.uint8]) -> tuple[int, int]:
    """Alpha-weighted centre of mass over alpha > 0, rounded to a pixel."""
    alpha = image[..., 3].astype(np.float64)
    mass = alpha.sum()
    if mass <= 0.0:
        raise NoValidPointsError("Image has zero alpha mass")
    ys, xs = np.indices(alpha.shape)
    cx = float((xs * alpha).sum() / mass)
    cy = float((ys * alpha).sum() / mass)
    return round_half_up(cx), round_half_up(cy)


def emerge_point(image: NDArray[np.uint8], sentinel: Color) -> tuple[int, int]:
    """Lowest opaque non-sentinel pixel, preferring the horizontal centre.

    Among the maximum-row candidates, those within ±1% of the centre column
    win; otherwise the candidate nearest the centre. Raises NoValidPointsError
    when nothing qualifies.
    """
    mask = opaque_mask(image) & ~color_mask(image, sentinel)
    rows = np.flatnonzero(mask.any(axis=1))
    if rows.size == 0:
        raise NoValidPointsError("No opaque non-sentinel pixels for emerge point")
    y = int(rows[-1])
    xs = np.flatnonzero(mask[y])

    width = image.shape[1]
    center = width * 0.5
    lo, hi = width * (0.5 - _CENTER_BAND), width * (0.5 + _CENTER_BAND)
    banded = xs[(xs >= lo) & (xs <= hi)]
    candidates = banded if banded.size else xs
    # squared distance truncated to whole pixels; first (leftmost) wins ties
    keys = ((candidates - center) ** 2).astype(np.int64)
    return int(candidates[int(np.argmin(keys))]), y
