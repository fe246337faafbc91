"""Path engine — straight lines, obstacle-avoiding shortest paths, dual bezier curves.

Paths are (N, 2) int arrays of (x, y) pixel coordinates. Path foreground is
alpha > 0, so opening-marked pixels still count as tissue.
"""

from __future__ import annotations

from collections import deque

import numpy as np
from numpy.typing import NDArray
from skimage.draw import line as draw_line
from skimage.draw import polygon as draw_polygon

from leafcomplex.errors import GeometryDegenerateError
from leafcomplex.utils.raster import Color, color_mask, tissue_mask

Point = tuple[int, int]

LEFT = "left"
RIGHT = "right"

# BFS expansion order: cardinal first, then diagonal
_BFS_STEPS: tuple[tuple[int, int], ...] = (
    (0, 1),
    (1, 0),
    (0, -1),
    (-1, 0),
    (1, 1),
    (1, -1),
    (-1, 1),
    (-1, -1),
)

# Padding around the polygon when classifying region pixels
_REGION_PAD = 10


def straight_line(a: Point, b: Point) -> NDArray[np.int64]:
    """Bresenham rasterisation from a to b, both endpoints included."""
    rr, cc = draw_line(int(a[1]), int(a[0]), int(b[1]), int(b[0]))
    return np.column_stack([cc, rr]).astype(np.int64)


def path_length(path: NDArray) -> float:
    if len(path) < 2:
        return 0.0
    return float(np.linalg.norm(np.diff(np.asarray(path, dtype=np.float64), axis=0), axis=1).sum())


def _inside(path: NDArray, shape: tuple[int, ...]) -> NDArray[np.bool_]:
    return (path[:, 0] >= 0) & (path[:, 0] < shape[1]) & (path[:, 1] >= 0) & (path[:, 1] < shape[0])


def crosses_background(line: NDArray, image: NDArray[np.uint8]) -> bool:
    """True if any interior point (endpoints excluded) is transparent or off-image."""
    interior = np.asarray(line)[1:-1]
    if len(interior) == 0:
        return False
    ok = _inside(interior, image.shape)
    if not ok.all():
        return True
    return bool(np.any(image[interior[:, 1], interior[:, 0], 3] == 0))


def bfs_parents(source: Point, passable: NDArray[np.bool_]) -> NDArray[np.int64]:
    """Breadth-first tree over 8-connected passable pixels.

    Returns flat back-pointers (index y·W + x); -1 for unreached pixels, the
    source points to itself. The source is expanded even if not passable.
    """
    h, w = passable.shape
    parents = [-1] * (h * w)
    sx, sy = int(source[0]), int(source[1])
    if not (0 <= sx < w and 0 <= sy < h):
        return np.asarray(parents, dtype=np.int64)
    start = sy * w + sx
    parents[start] = start
    flat = passable.ravel().tolist()
    queue = deque([start])
    while queue:
        idx = queue.popleft()
        y, x = divmod(idx, w)
        for dx, dy in _BFS_STEPS:
            nx, ny = x + dx, y + dy
            if 0 <= nx < w and 0 <= ny < h:
                nidx = ny * w + nx
                if parents[nidx] == -1 and flat[nidx]:
                    parents[nidx] = idx
                    queue.append(nidx)
    return np.asarray(parents, dtype=np.int64)


def reconstruct(parents: NDArray[np.int64], width: int, target: Point) -> NDArray[np.int64]:
    """Walk back-pointers from target to the BFS source."""
    tx, ty = int(target[0]), int(target[1])
    idx = ty * width + tx
    if idx < 0 or idx >= len(parents) or parents[idx] == -1:
        raise GeometryDegenerateError(f"No in-mask path reaches {target}")
    chain = [idx]
    # bounded by the image area: each pixel has a single parent
    for _ in range(len(parents)):
        parent = int(parents[idx])
        if parent == idx:
            break
        idx = parent
        chain.append(idx)
    else:
        raise GeometryDegenerateError("Back-pointer cycle while reconstructing path")
    chain.reverse()
    ys, xs = np.divmod(np.asarray(chain, dtype=np.int64), width)
    return np.column_stack([xs, ys])


def shortest_in_mask_path(
    a: Point,
    b: Point,
    image: NDArray[np.uint8],
    parents: NDArray[np.int64] | None = None,
) -> tuple[NDArray[np.int64], bool]:
    """Diego path from a to b. Returns (path, crossed).

    Without a background crossing the straight line itself is returned.
    Otherwise the BFS route through tissue pixels; when b is unreachable the
    straight line again. ``parents`` may carry a precomputed tree rooted at a.
    """
    line = straight_line(a, b)
    if not crosses_background(line, image):
        return line, False
    if parents is None:
        parents = bfs_parents(a, tissue_mask(image))
    try:
        return reconstruct(parents, image.shape[1], b), True
    except GeometryDegenerateError:
        return line, True


def control_distance(straight_length: float, phi_exponent_factor: float) -> float:
    """Perpendicular control-point offset: golden-ratio share of the chord."""
    phi = (1.0 + np.sqrt(5.0)) / 2.0
    return float(straight_length * phi_exponent_factor / phi)


def dual_curves(
    a: Point,
    b: Point,
    control_dist: float,
    side: str,
    min_samples: int = 36,
) -> tuple[NDArray[np.int64], float]:
    """Quadratic bezier a -> b bowed to one side. Returns (pixels, length).

    The control point sits at the chord midpoint, offset perpendicular to a->b
    by ``control_dist``: left rotates the chord -90°, right +90° (screen axes).
    Pixels are snapped samples with exact endpoints and no repeats.
    """
    pa = np.asarray(a, dtype=np.float64)
    pb = np.asarray(b, dtype=np.float64)
    chord = pb - pa
    norm = float(np.hypot(*chord))
    if norm == 0.0:
        return np.asarray([a], dtype=np.int64), 0.0
    if side == LEFT:
        perp = np.array([chord[1], -chord[0]]) / norm
    elif side == RIGHT:
        perp = np.array([-chord[1], chord[0]]) / norm
    else:
        raise ValueError(f"Unknown curve side: {side!r}")
    ctrl = (pa + pb) / 2.0 + perp * control_dist

    hull = np.linalg.norm(ctrl - pa) + np.linalg.norm(pb - ctrl)
    n = max(int(min_samples), int(np.ceil(2.0 * hull)) + 1)
    t = np.linspace(0.0, 1.0, n)[:, None]
    samples = (1 - t) ** 2 * pa + 2 * (1 - t) * t * ctrl + t**2 * pb
    length = path_length(samples)

    pixels = np.floor(samples + 0.5).astype(np.int64)
    pixels[0] = (int(a[0]), int(a[1]))
    pixels[-1] = (int(b[0]), int(b[1]))
    keep = np.ones(len(pixels), dtype=bool)
    keep[1:] = np.any(pixels[1:] != pixels[:-1], axis=1)
    return pixels[keep], length


def curve_valid(path: NDArray, image: NDArray[np.uint8]) -> bool:
    """Every pixel lies on the image and on tissue."""
    path = np.asarray(path)
    if len(path) == 0 or not _inside(path, image.shape).all():
        return False
    return bool(np.all(image[path[:, 1], path[:, 0], 3] > 0))


def classify_region(
    a: Point, b: Point, curve: NDArray, image: NDArray[np.uint8]
) -> tuple[int, int]:
    """Count pixels enclosed between chord and curve. Returns (alpha, gamma).

    alpha = enclosed transparent pixels, gamma = enclosed tissue pixels.
    """
    poly = np.vstack([straight_line(a, b), np.asarray(curve)[::-1]])
    h, w = image.shape[:2]
    x0 = max(int(poly[:, 0].min()) - _REGION_PAD, 0)
    y0 = max(int(poly[:, 1].min()) - _REGION_PAD, 0)
    x1 = min(int(poly[:, 0].max()) + _REGION_PAD + 1, w)
    y1 = min(int(poly[:, 1].max()) + _REGION_PAD + 1, h)
    if x0 >= x1 or y0 >= y1:
        return 0, 0
    rr, cc = draw_polygon(poly[:, 1] - y0, poly[:, 0] - x0, shape=(y1 - y0, x1 - x0))
    alpha = image[rr + y0, cc + x0, 3]
    gamma = int(np.count_nonzero(alpha > 0))
    return int(len(alpha)) - gamma, gamma


def count_sentinel_on_path(path: NDArray, image: NDArray[np.uint8], color: Color) -> int:
    """Number of path pixels painted ``color``."""
    path = np.asarray(path)
    if len(path) == 0:
        return 0
    path = path[_inside(path, image.shape)]
    hits = color_mask(image[path[:, 1], path[:, 0]][None, ...], color)
    return int(np.count_nonzero(hits))
