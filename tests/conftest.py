"""Shared test fixtures."""

from __future__ import annotations

import numpy as np
import pytest

LEAF_GREEN = (40, 140, 60)
PINK = (255, 0, 255)
GOLD = (255, 215, 0)


def rgba_from_mask(mask: np.ndarray, color: tuple[int, int, int] = LEAF_GREEN) -> np.ndarray:
    """Opaque ``color`` where mask is set, fully transparent elsewhere."""
    image = np.zeros(mask.shape + (4,), dtype=np.uint8)
    image[mask, :3] = color
    image[mask, 3] = 255
    return image


def disk_mask(h: int, w: int, cx: float, cy: float, r: float) -> np.ndarray:
    ys, xs = np.mgrid[0:h, 0:w]
    return (xs - cx) ** 2 + (ys - cy) ** 2 <= r * r


def rect_mask(h: int, w: int, x0: int, y0: int, x1: int, y1: int) -> np.ndarray:
    """Inclusive rectangle [x0, x1] × [y0, y1]."""
    mask = np.zeros((h, w), dtype=bool)
    mask[y0 : y1 + 1, x0 : x1 + 1] = True
    return mask


# Circle r=30 in an 80×80 canvas
CIRCLE_MASK = disk_mask(80, 80, 40, 40, 30)

# Circle r=25 in 90×90 with a 3-px-wide spike rising 14 px above its top
SPIKE_MASK = disk_mask(90, 90, 45, 45, 25)
SPIKE_MASK[6:22, 44:47] = True
SPIKE_OUTSIDE = np.zeros_like(SPIKE_MASK)
SPIKE_OUTSIDE[6:19, 44:47] = True

# U shape: two 6-px arms joined by a 6-px base; the gap between arms is transparent
U_MASK = rect_mask(40, 40, 5, 5, 10, 34) | rect_mask(40, 40, 29, 5, 34, 34) | rect_mask(40, 40, 5, 29, 34, 34)


@pytest.fixture
def circle_image() -> np.ndarray:
    return rgba_from_mask(CIRCLE_MASK)


@pytest.fixture
def spike_image() -> np.ndarray:
    return rgba_from_mask(SPIKE_MASK)


@pytest.fixture
def rect_image() -> np.ndarray:
    return rgba_from_mask(rect_mask(20, 30, 5, 4, 24, 15))


@pytest.fixture
def u_image() -> np.ndarray:
    return rgba_from_mask(U_MASK)


@pytest.fixture
def blank_image() -> np.ndarray:
    return np.zeros((32, 32, 4), dtype=np.uint8)
