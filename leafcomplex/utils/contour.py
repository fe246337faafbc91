"""Contour tracing — Moore-neighbour boundary walk, arc-length resampling, circular smoothing."""

from __future__ import annotations

from typing import Callable

import numpy as np
from numpy.typing import NDArray
from scipy import ndimage

from leafcomplex.utils.raster import Color, non_sentinel_tissue_mask, tissue_mask

# Moore neighbourhood, clockwise on screen (y grows downward), starting east
_DIRECTIONS: tuple[tuple[int, int], ...] = (
    (1, 0),
    (1, 1),
    (0, 1),
    (-1, 1),
    (-1, 0),
    (-1, -1),
    (0, -1),
    (1, -1),
)

# Pretend the start pixel was entered moving north so the sweep begins west,
# which is background for the first pixel of a column-major scan.
_INITIAL_DIRECTION = 6

ForegroundFn = Callable[[NDArray[np.uint8]], NDArray[np.bool_]]


def _find_start(mask: NDArray[np.bool_]) -> tuple[int, int] | None:
    h, w = mask.shape
    for x, y in np.argwhere(mask.T):
        if x == 0 or y == 0 or x == w - 1 or y == h - 1:
            return int(x), int(y)
        if not mask[y - 1 : y + 2, x - 1 : x + 2].all():
            return int(x), int(y)
    return None


def trace_mask(mask: NDArray[np.bool_]) -> NDArray[np.int64]:
    """Moore-neighbour trace of the first boundary found in column-major order.

    Returns an (N, 2) array of (x, y); empty when the mask has no foreground.
    Stops on return to the start pixel or after 2·W·H steps.
    """
    h, w = mask.shape
    start = _find_start(mask)
    if start is None:
        return np.empty((0, 2), dtype=np.int64)

    contour = [start]
    cx, cy = start
    direction = _INITIAL_DIRECTION
    for _ in range(2 * w * h):
        for k in range(8):
            nd = (direction + 6 + k) % 8
            nx = cx + _DIRECTIONS[nd][0]
            ny = cy + _DIRECTIONS[nd][1]
            if 0 <= nx < w and 0 <= ny < h and mask[ny, nx]:
                break
        else:
            break  # isolated pixel
        cx, cy, direction = nx, ny, nd
        if (cx, cy) == start:
            break
        contour.append((cx, cy))
    return np.asarray(contour, dtype=np.int64)


def trace(image: NDArray[np.uint8], is_foreground: ForegroundFn = tissue_mask) -> NDArray[np.int64]:
    return trace_mask(is_foreground(image))


def trace_edge(image: NDArray[np.uint8]) -> NDArray[np.int64]:
    """Sentinel-marked pixels count as shape."""
    return trace_mask(tissue_mask(image))


def trace_macro(image: NDArray[np.uint8], sentinel: Color) -> NDArray[np.int64]:
    """Sentinel-marked pixels count as background."""
    return trace_mask(non_sentinel_tissue_mask(image, sentinel))


def resample(contour: NDArray, n: int) -> NDArray[np.float64]:
    """Resample a closed contour to exactly ``n`` points spaced evenly by arc length."""
    pts = np.asarray(contour, dtype=np.float64)
    if n <= 0 or len(pts) == 0:
        return np.empty((0, 2), dtype=np.float64)
    closed = np.vstack([pts, pts[:1]])
    seg = np.linalg.norm(np.diff(closed, axis=0), axis=1)
    cum = np.concatenate([[0.0], np.cumsum(seg)])
    total = cum[-1]
    if total <= 0.0:
        return np.repeat(pts[:1], n, axis=0)
    targets = np.arange(n) * (total / n)
    xs = np.interp(targets, cum, closed[:, 0])
    ys = np.interp(targets, cum, closed[:, 1])
    return np.column_stack([xs, ys])


def smooth(contour: NDArray, strength: int) -> NDArray[np.float64]:
    """Circular moving average with window 2·strength + 1. strength 0 is the identity."""
    pts = np.asarray(contour, dtype=np.float64)
    strength = int(strength)
    if strength <= 0 or len(pts) < 3:
        return pts.copy()
    return ndimage.uniform_filter1d(pts, size=2 * strength + 1, axis=0, mode="wrap")
