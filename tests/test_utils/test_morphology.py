"""Tests for morphology helpers: kernels, opening, marking, components."""

import numpy as np
import pytest

from leafcomplex.errors import InvalidInputError
from leafcomplex.utils.morphology import (
    adaptive_kernel_size,
    clean_sentinel_specks,
    clean_thin_artifacts,
    connected_components,
    count_colored,
    dynamic_kernel_size,
    dynamic_opening_percentage,
    filter_small,
    keep_largest,
    macro_image,
    make_disk_kernel,
    mark_removed,
    opening,
    sync_marked,
)
from leafcomplex.utils.raster import tissue_mask
from tests.conftest import CIRCLE_MASK, PINK, rect_mask, rgba_from_mask


def _rect_with_spike():
    mask = rect_mask(30, 30, 5, 10, 24, 24)
    mask[2:10, 14] = True
    return rgba_from_mask(mask)


class TestDiskKernel:
    def test_size_one_is_single_pixel(self):
        assert make_disk_kernel(1).tolist() == [[True]]

    def test_size_three_is_a_cross(self):
        k = make_disk_kernel(3)
        assert k.sum() == 5
        assert not k[0, 0] and k[1, 1] and k[0, 1]

    def test_even_size_uses_half_diameter_radius(self):
        assert make_disk_kernel(2).all()

    def test_non_positive_rejected(self):
        with pytest.raises(InvalidInputError):
            make_disk_kernel(0)


class TestOpening:
    @pytest.mark.parametrize("k", [2, 3, 4, 5, 8, 9, 15])
    def test_never_adds_tissue(self, k):
        image = _rect_with_spike()
        opened = opening(image, k)
        assert not np.any(tissue_mask(opened) & ~tissue_mask(image))
        assert np.count_nonzero(tissue_mask(opened)) <= np.count_nonzero(tissue_mask(image))

    @pytest.mark.parametrize("sizes", [[3, 5, 7, 9, 11], [2, 4, 6, 8, 10]])
    def test_larger_kernel_never_keeps_more(self, sizes):
        image = _rect_with_spike()
        counts = [np.count_nonzero(tissue_mask(opening(image, k))) for k in sizes]
        assert counts == sorted(counts, reverse=True)

    @pytest.mark.parametrize("k", [2, 4, 6, 8])
    def test_even_kernel_does_not_shift_disc(self, k):
        image = rgba_from_mask(CIRCLE_MASK)
        opened = opening(image, k)
        assert not np.any(tissue_mask(opened) & ~CIRCLE_MASK)
        marked = clean_sentinel_specks(mark_removed(image, opened, PINK), image, PINK)
        assert count_colored(marked, PINK) == 0

    def test_kernel_one_is_identity(self, rect_image):
        np.testing.assert_array_equal(opening(rect_image, 1), rect_image)

    def test_zero_kernel_rejected(self, rect_image):
        with pytest.raises(InvalidInputError):
            opening(rect_image, 0)

    def test_oversized_kernel_clears_image(self, rect_image):
        opened = opening(rect_image, 500)
        assert not tissue_mask(opened).any()

    def test_thin_spike_removed(self):
        image = _rect_with_spike()
        opened = opening(image, 5)
        assert not tissue_mask(opened)[2:8, 14].any()
        # Body interior survives
        assert tissue_mask(opened)[15:20, 10:20].all()


class TestMarking:
    def test_mark_removed_paints_spike_and_keeps_alpha(self):
        image = _rect_with_spike()
        marked = mark_removed(image, opening(image, 5), PINK)
        assert tuple(marked[4, 14, :3]) == PINK
        assert marked[4, 14, 3] == 255
        assert tuple(marked[17, 15, :3]) != PINK
        assert count_colored(marked, PINK) >= 6

    def test_specks_restored_blocks_kept(self):
        original = rgba_from_mask(rect_mask(12, 12, 0, 0, 11, 11))
        marked = original.copy()
        marked[1, 1, :3] = PINK
        marked[6:9, 6:9, :3] = PINK
        cleaned = clean_sentinel_specks(marked, original, PINK)
        np.testing.assert_array_equal(cleaned[1, 1], original[1, 1])
        assert count_colored(cleaned, PINK) == 9

    def test_macro_image_drops_sentinel_and_islands(self):
        mask = rect_mask(20, 20, 2, 2, 12, 12)
        mask[16:18, 16:18] = True
        original = rgba_from_mask(mask)
        marked = original.copy()
        marked[2:4, 2:12, :3] = PINK
        body = macro_image(marked, original, PINK)
        assert not tissue_mask(body)[2:4, 2:12].any()
        assert not tissue_mask(body)[16:18, 16:18].any()
        assert tissue_mask(body)[6:12, 4:10].all()

        synced = sync_marked(marked, body, PINK)
        assert tuple(synced[16, 16, :3]) == PINK


class TestComponents:
    def test_diagonal_pixels_are_connected(self):
        mask = np.zeros((5, 5), dtype=bool)
        mask[1, 1] = mask[2, 2] = mask[3, 3] = True
        labels, sizes = connected_components(rgba_from_mask(mask))
        assert sizes.tolist() == [3]
        assert labels[1, 1] == labels[3, 3] == 1

    def test_excluded_color_splits_components(self):
        image = rgba_from_mask(rect_mask(5, 9, 0, 0, 8, 4))
        image[:, 4, :3] = PINK
        _, sizes = connected_components(image, excluded_color=PINK)
        assert sorted(sizes.tolist()) == [20, 20]

    def test_keep_largest_and_filter_small(self):
        mask = rect_mask(20, 20, 0, 0, 5, 5) | rect_mask(20, 20, 10, 10, 11, 11)
        image = rgba_from_mask(mask)
        kept = keep_largest(image)
        assert np.count_nonzero(tissue_mask(kept)) == 36
        filtered = filter_small(image, min_size=5)
        assert np.count_nonzero(tissue_mask(filtered)) == 36
        assert np.count_nonzero(tissue_mask(filter_small(image, min_size=4))) == 40

    def test_keep_largest_of_blank_is_blank(self, blank_image):
        assert not tissue_mask(keep_largest(blank_image)).any()

    def test_clean_thin_artifacts_cuts_bridge(self):
        mask = rect_mask(12, 30, 2, 2, 9, 9) | rect_mask(12, 30, 20, 2, 24, 6)
        mask[4, 10:20] = True
        cleaned = clean_thin_artifacts(rgba_from_mask(mask))
        alive = tissue_mask(cleaned)
        assert alive[2:10, 2:10].all()
        assert not alive[4, 11:20].any()
        assert not alive[2:7, 20:25].any()


class TestKernelSizing:
    def test_adaptive_saturates_at_max_density(self):
        full = rgba_from_mask(np.ones((100, 100), dtype=bool))
        assert adaptive_kernel_size(full, 4.0, 10.0, 40.0) == (10, 10.0)

    def test_adaptive_interpolates(self):
        mask = np.zeros((100, 100), dtype=bool)
        mask[:20] = True
        size, pct = adaptive_kernel_size(rgba_from_mask(mask), 4.0, 10.0, 40.0)
        assert pct == pytest.approx(7.0)
        assert size == 7

    def test_dynamic_percentage_range(self):
        assert dynamic_opening_percentage(0.8, 5.0, 15.0) == 15.0
        assert dynamic_opening_percentage(3.0, 5.0, 15.0) == pytest.approx(10.0)
        assert dynamic_opening_percentage(9.0, 5.0, 15.0) == pytest.approx(5.0)

    def test_dynamic_kernel_uses_shorter_side(self):
        assert dynamic_kernel_size(10.0, 50.0, 30.0) == 3
        assert dynamic_kernel_size(1.0, 10.0, 10.0) == 1
