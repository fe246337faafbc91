"""Morphological operations on RGBA leaf rasters.

Opening with a disk kernel, removed-region marking, component pruning and
thin-artifact cleaning. Foreground for erosion/dilation is alpha >= 128.
"""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray
from scipy import ndimage

from leafcomplex.errors import InvalidInputError
from leafcomplex.utils.raster import (
    Color,
    as_rgba,
    color_mask,
    non_transparent_percentage,
    opaque_mask,
    round_half_up,
    tissue_mask,
)

# 8-connectivity for component labelling and 3×3 thin-artifact cleaning
_SQUARE_3 = np.ones((3, 3), dtype=bool)
_NEIGHBOURS_8 = np.array([[1, 1, 1], [1, 0, 1], [1, 1, 1]], dtype=np.int32)

# Pixels restored by clean_thin_artifacts with no source colour available
_FALLBACK_GRAY = (128, 128, 128, 255)

# Sentinel pixels with this many sentinel neighbours or fewer are specks
_SPECK_MAX_NEIGHBOURS = 2


def make_disk_kernel(diameter: int) -> NDArray[np.bool_]:
    """Boolean disk of the given diameter.

    Center at (d-1)/2; radius (d-1)/2 for odd d, d/2 for even d.
    """
    if diameter <= 0:
        raise InvalidInputError("Kernel size must be > 0")
    center = (diameter - 1) / 2.0
    radius = (diameter - 1) / 2.0 if diameter % 2 == 1 else diameter / 2.0
    ys, xs = np.mgrid[0:diameter, 0:diameter]
    dist_sq = (xs - center) ** 2 + (ys - center) ** 2
    return dist_sq <= radius**2 + 1e-6


def _clamp_kernel_size(kernel_size: int, shape: tuple[int, ...]) -> int:
    # Beyond this every kernel placement reaches outside the image; the
    # opening result no longer changes with size.
    return min(kernel_size, 2 * max(shape[0], shape[1]) + 1)


def _hits(mask: NDArray[np.bool_], kernel: NDArray[np.bool_], outside: int) -> NDArray[np.bool_]:
    """True where any kernel-covered pixel of ``mask`` is set.

    Kernel offsets run from -k//2 to k-1-k//2 (correlation, no reflection).
    ``outside`` is the value assumed beyond the border.
    """
    counts = ndimage.correlate(
        mask.astype(np.int32), kernel.astype(np.int32), mode="constant", cval=outside
    )
    return counts > 0


def _reflected(kernel: NDArray[np.bool_]) -> NDArray[np.bool_]:
    """Kernel whose correlation offsets are the negation of ``kernel``'s.

    An even kernel is padded by one leading row and column so the negated
    offsets keep the same centre index k//2.
    """
    flipped = kernel[::-1, ::-1]
    k = kernel.shape[0]
    if k % 2 == 1:
        return flipped
    out = np.zeros((k + 1, k + 1), dtype=bool)
    out[1:, 1:] = flipped
    return out


def erode(image: NDArray[np.uint8], kernel: NDArray[np.bool_]) -> NDArray[np.uint8]:
    """Opaque pixels touching background (or the border) under the kernel become alpha 0."""
    fg = opaque_mask(image)
    removed = fg & _hits(~fg, kernel, outside=1)
    out = image.copy()
    out[removed, 3] = 0
    return out


def dilate(image: NDArray[np.uint8], kernel: NDArray[np.bool_]) -> NDArray[np.uint8]:
    """Pixels covered by the kernel placed on any opaque pixel get alpha = max(alpha, 1).

    The dual of ``erode``: erode-then-dilate never grows the shape, for odd
    and even kernels alike.
    """
    grown = _hits(opaque_mask(image), _reflected(kernel), outside=0)
    out = image.copy()
    out[grown, 3] = np.maximum(out[grown, 3], 1)
    return out


def opening(image: NDArray[np.uint8], kernel_size: int) -> NDArray[np.uint8]:
    """Erosion then dilation with a disk kernel. Raises InvalidInputError on size 0."""
    image = as_rgba(image)
    if kernel_size <= 0:
        raise InvalidInputError("Kernel size must be > 0")
    kernel = make_disk_kernel(_clamp_kernel_size(kernel_size, image.shape))
    return dilate(erode(image, kernel), kernel)


def mark_removed(
    original: NDArray[np.uint8], opened: NDArray[np.uint8], sentinel: Color
) -> NDArray[np.uint8]:
    """Recolour pixels present in ``original`` but transparent in ``opened``.

    The original alpha is kept so marked pixels still count as tissue.
    """
    removed = tissue_mask(original) & (opened[..., 3] == 0)
    marked = original.copy()
    marked[removed, :3] = sentinel
    return marked


def count_colored(image: NDArray[np.uint8], color: Color) -> int:
    return int(np.count_nonzero(color_mask(image, color) & tissue_mask(image)))


def adaptive_kernel_size(
    image: NDArray[np.uint8],
    min_pct: float,
    max_pct: float,
    max_density: float,
) -> tuple[int, float]:
    """Kernel size from the image's non-transparent density.

    opening_pct interpolates min_pct -> max_pct as density goes 0 -> max_density
    and saturates above it. Returns (kernel_size, opening_pct).
    """
    density = non_transparent_percentage(image)
    if density >= max_density:
        pct = max_pct
    else:
        pct = min_pct + (density / max_density) * (max_pct - min_pct)
    shorter = min(image.shape[0], image.shape[1])
    return max(1, round_half_up(pct / 100.0 * shorter)), pct


def dynamic_opening_percentage(shape_index: float, min_pct: float, max_pct: float) -> float:
    """Opening % for the thornfiddle image: max for round shapes, min for shape_index >= 5."""
    if shape_index <= 1.0:
        return max_pct
    t = min((shape_index - 1.0) / 4.0, 1.0)
    return max_pct - t * (max_pct - min_pct)


def dynamic_kernel_size(pct: float, length: float, width: float) -> int:
    shorter = min(length, width)
    return max(1, round_half_up(pct / 100.0 * shorter))


def connected_components(
    image: NDArray[np.uint8], excluded_color: Color | None = None
) -> tuple[NDArray[np.int32], NDArray[np.int64]]:
    """8-connected labelling of tissue pixels not painted ``excluded_color``.

    Returns (labels, sizes): labels is 0 for unlabelled pixels, ids start at 1;
    sizes[i] is the pixel count of component i + 1.
    """
    mask = tissue_mask(image)
    if excluded_color is not None:
        mask &= ~color_mask(image, excluded_color)
    labels, count = ndimage.label(mask, structure=_SQUARE_3)
    sizes = np.bincount(labels.ravel(), minlength=count + 1)[1:]
    return labels.astype(np.int32), sizes


def filter_small(
    image: NDArray[np.uint8], min_size: int, excluded_color: Color | None = None
) -> NDArray[np.uint8]:
    """Make components smaller than ``min_size`` transparent."""
    labels, sizes = connected_components(image, excluded_color)
    small_ids = np.flatnonzero(sizes < min_size) + 1
    out = image.copy()
    out[np.isin(labels, small_ids), 3] = 0
    return out


def keep_largest(image: NDArray[np.uint8], excluded_color: Color | None = None) -> NDArray[np.uint8]:
    """Keep only the largest component (lowest id on ties); everything else transparent."""
    labels, sizes = connected_components(image, excluded_color)
    out = image.copy()
    if sizes.size == 0:
        out[..., 3] = 0
        return out
    largest = int(np.argmax(sizes)) + 1
    out[labels != largest, 3] = 0
    return out


def clean_thin_artifacts(
    image: NDArray[np.uint8],
    original: NDArray[np.uint8] | None = None,
    excluded_color: Color | None = None,
) -> NDArray[np.uint8]:
    """Sever thin bridges: 3×3 erosion, keep the largest piece, dilate back.

    Restored pixels take their colour from ``original`` (or ``image``), gray
    where the source is transparent.
    """
    mask = tissue_mask(image)
    if excluded_color is not None:
        mask &= ~color_mask(image, excluded_color)
    eroded = ndimage.binary_erosion(mask, structure=_SQUARE_3, border_value=0)
    labels, count = ndimage.label(eroded, structure=_SQUARE_3)

    out = np.zeros_like(image)
    if count == 0:
        return out
    sizes = np.bincount(labels.ravel(), minlength=count + 1)[1:]
    core = labels == int(np.argmax(sizes)) + 1
    restored = ndimage.binary_dilation(core, structure=_SQUARE_3)

    source = image if original is None else original
    has_colour = restored & (source[..., 3] > 0)
    out[has_colour] = source[has_colour]
    out[restored & ~has_colour] = _FALLBACK_GRAY
    return out


def clean_sentinel_specks(
    marked: NDArray[np.uint8], original: NDArray[np.uint8], sentinel: Color
) -> NDArray[np.uint8]:
    """Restore sentinel pixels with at most two sentinel 8-neighbours to their original colour."""
    is_sentinel = color_mask(marked, sentinel) & tissue_mask(marked)
    neighbours = ndimage.correlate(
        is_sentinel.astype(np.int32), _NEIGHBOURS_8, mode="constant", cval=0
    )
    specks = is_sentinel & (neighbours <= _SPECK_MAX_NEIGHBOURS)
    out = marked.copy()
    out[specks] = original[specks]
    return out


def macro_image(
    marked: NDArray[np.uint8],
    original: NDArray[np.uint8],
    sentinel: Color,
    sever_thin: bool = False,
) -> NDArray[np.uint8]:
    """Main body without opening-removed regions.

    Sentinel pixels become transparent and detached islands are dropped.
    With ``sever_thin`` one-pixel bridges and tips are cut as well.
    """
    body = marked.copy()
    body[color_mask(marked, sentinel), 3] = 0
    body = keep_largest(body)
    if sever_thin:
        body = clean_thin_artifacts(body, original=original)
    return body


def sync_marked(
    marked: NDArray[np.uint8], macro: NDArray[np.uint8], sentinel: Color
) -> NDArray[np.uint8]:
    """Mark every tissue pixel of ``marked`` that the macro image no longer holds."""
    out = marked.copy()
    dropped = tissue_mask(marked) & ~tissue_mask(macro)
    out[dropped, :3] = sentinel
    return out
