"""Tests for per-point feature extraction."""

import numpy as np
import pytest

from leafcomplex.engine.features import extract_features
from leafcomplex.errors import NoValidPointsError
from leafcomplex.utils.contour import trace_edge
from tests.conftest import PINK


def test_convex_shape_has_no_detours(rect_image):
    contour = trace_edge(rect_image)
    features = extract_features(rect_image, contour, (15, 10), phi_exponent_factor=2 / np.pi)
    assert len(features) == len(contour)
    assert [f.point_index for f in features] == list(range(len(contour)))
    for f in features:
        assert not f.crossed
        assert f.diego_path_perc == pytest.approx(100.0)
        assert f.gyro_path_perc == pytest.approx(100.0)
        assert f.diego_path_length == pytest.approx(f.straight_path_length)


def test_concave_shape_detours_around_gap(u_image):
    contour = trace_edge(u_image)
    features = extract_features(u_image, contour, (20, 31), phi_exponent_factor=2 / np.pi)
    crossed = [f for f in features if f.crossed]
    assert crossed
    assert all(f.diego_path_perc > 100.0 for f in crossed)
    top_left = next(f for f in features if (f.x, f.y) == (5, 5))
    assert top_left.crossed
    assert top_left.diego_path_length > top_left.straight_path_length


def test_pink_pixels_tallied_on_edge_pass(rect_image):
    image = rect_image.copy()
    image[4:16, 5:8, :3] = PINK
    contour = trace_edge(image)
    features = extract_features(image, contour, (15, 10), phi_exponent_factor=1.0, pink_color=PINK)
    left_side = [f for f in features if f.x == 5]
    assert all(f.diego_path_pink >= 3 for f in left_side)
    right_side = [f for f in features if f.x == 24]
    assert all(f.diego_path_pink == 0 for f in right_side)


def test_progress_reaches_completion(rect_image):
    seen = []
    extract_features(
        rect_image,
        trace_edge(rect_image),
        (15, 10),
        phi_exponent_factor=1.0,
        progress=seen.append,
        progress_step=0.25,
    )
    assert len(seen) == 4
    assert seen[-1] == pytest.approx(1.0)


def test_empty_contour_raises(rect_image):
    with pytest.raises(NoValidPointsError):
        extract_features(rect_image, np.empty((0, 2), dtype=int), (15, 10), phi_exponent_factor=1.0)
