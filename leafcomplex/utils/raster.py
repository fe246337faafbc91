"""RGBA raster helpers shared by the morphology, contour and path modules.

Images are (H, W, 4) uint8 arrays. Leaf-node helpers, no engine imports.
"""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray

from leafcomplex.errors import InvalidInputError

ALPHA_THRESHOLD = 128

Color = tuple[int, int, int]


def as_rgba(image: NDArray) -> NDArray[np.uint8]:
    """Validate and return an (H, W, 4) uint8 view of ``image``."""
    arr = np.asarray(image)
    if arr.ndim != 3 or arr.shape[2] != 4:
        raise InvalidInputError(f"Expected an (H, W, 4) RGBA raster, got shape {arr.shape}")
    if arr.shape[0] == 0 or arr.shape[1] == 0:
        raise InvalidInputError("Raster has zero width or height")
    return arr.astype(np.uint8, copy=False)


def opaque_mask(image: NDArray[np.uint8]) -> NDArray[np.bool_]:
    """alpha >= 128 — the morphology foreground."""
    return image[..., 3] >= ALPHA_THRESHOLD


def tissue_mask(image: NDArray[np.uint8]) -> NDArray[np.bool_]:
    """alpha > 0 — the path/contour foreground."""
    return image[..., 3] > 0


def color_mask(image: NDArray[np.uint8], color: Color) -> NDArray[np.bool_]:
    return np.all(image[..., :3] == np.asarray(color, dtype=np.uint8), axis=-1)


def non_sentinel_tissue_mask(image: NDArray[np.uint8], sentinel: Color) -> NDArray[np.bool_]:
    return tissue_mask(image) & ~color_mask(image, sentinel)


def non_transparent_percentage(image: NDArray[np.uint8]) -> float:
    total = image.shape[0] * image.shape[1]
    if total == 0:
        return 0.0
    return float(np.count_nonzero(tissue_mask(image))) / total * 100.0


def in_bounds(image: NDArray, x: int, y: int) -> bool:
    return 0 <= x < image.shape[1] and 0 <= y < image.shape[0]


def round_half_up(value: float) -> int:
    """Round half away from zero (Python's round() is banker's)."""
    return int(np.floor(abs(value) + 0.5) * np.sign(value)) if value else 0
