"""Tests for golden chains, harmonic synthesis and petiole filtering."""

import math

import numpy as np
import pytest

from leafcomplex.engine.features import MarginalPointFeature
from leafcomplex.engine.thornfiddle import (
    GoldenChain,
    apply_pink_threshold,
    base_frequency,
    detect_chains,
    detect_petiole,
    edge_complexity,
    edge_feature_density,
    filter_petiole,
    global_complexity,
    harmonic_phases,
    harmonic_thornfiddle,
    max_harmonics,
    pink_signal,
    synthesize_harmonics,
    thornfiddle_multiplier,
    weighted_chain_score,
)


def _features(n, **kwargs):
    return [
        MarginalPointFeature(point_index=i, x=i, y=0, straight_path_length=10.0, diego_path_length=10.0, **kwargs)
        for i in range(n)
    ]


class TestChains:
    def test_runs_above_threshold(self):
        chains = detect_chains(np.array([0, 12, 15, 0, 0, 11, 11, 11, 0, 10]), 10)
        assert [(c.start, c.end, c.length) for c in chains] == [(1, 2, 2), (5, 7, 3), (9, 9, 1)]
        assert chains[0].total_pixels == 27 and chains[0].max_pixels == 15

    def test_wraparound_kept_apart_by_default(self):
        counts = np.array([12, 12, 0, 0, 15])
        assert len(detect_chains(counts, 10)) == 2

    def test_wraparound_merge(self):
        chains = detect_chains(np.array([12, 12, 0, 0, 15]), 10, merge_wraparound=True)
        assert len(chains) == 1
        chain = chains[0]
        assert (chain.start, chain.end, chain.length, chain.total_pixels) == (4, 1, 3, 39)
        assert chain.indices(5) == [4, 0, 1]

    def test_empty_signal(self):
        assert detect_chains(np.array([]), 10) == []
        assert global_complexity([]) == 0.0

    def test_many_isolated_lobes_beat_one_fused_lobe(self):
        lobes = [GoldenChain(i * 10, i * 10 + 3, 4, 20, 6) for i in range(5)]
        fused = [GoldenChain(0, 19, 20, 100, 6)]
        assert global_complexity(lobes) > global_complexity(fused)
        assert global_complexity(fused) == pytest.approx(math.sqrt(20) * 10)

    def test_weighted_score(self):
        chains = [GoldenChain(0, 1, 2, 30, 15), GoldenChain(5, 9, 5, 60, 12)]
        assert weighted_chain_score(chains) == 360.0


class TestHarmonics:
    def test_phases_deterministic_and_in_range(self):
        a = harmonic_phases(7, 1.5, 6)
        assert a == harmonic_phases(7, 1.5, 6)
        assert a != harmonic_phases(8, 1.5, 6)
        assert all(0.0 <= p <= 2 * math.pi for p in a)

    def test_harmonic_count_bounds(self):
        assert max_harmonics(0) == 0
        assert max_harmonics(5) == 5
        assert max_harmonics(10_000) == 12

    def test_base_frequency(self):
        assert base_frequency(0.0, 10) == 1.0
        assert base_frequency(100.0, 10) == pytest.approx(1.0)

    def test_no_chains_leaves_values(self):
        base = np.linspace(5.0, 15.0, 30)
        np.testing.assert_array_equal(synthesize_harmonics(base, [], 120.0, 1.0), base)

    def test_only_chain_points_change(self):
        counts = np.zeros(40, dtype=int)
        counts[10:20] = 15
        features = _features(40)
        result = harmonic_thornfiddle(
            features, counts, 160.0, pixel_threshold=10, min_chain_length=5, strength=1.0
        )
        assert result.total_chain_count == result.valid_chain_count == 1
        assert features[12].golden_pixels == 15
        outside = [f.thornfiddle_path_harmonic for i, f in enumerate(features) if not 10 <= i < 20]
        assert outside == pytest.approx([10.0] * 30)
        assert any(abs(features[i].thornfiddle_path_harmonic - 10.0) > 1e-9 for i in range(11, 20))

    def test_short_chains_not_valid(self):
        counts = np.zeros(30, dtype=int)
        counts[3:6] = 20
        result = harmonic_thornfiddle(
            _features(30), counts, 90.0, pixel_threshold=10, min_chain_length=5, strength=1.0
        )
        assert result.total_chain_count == 1
        assert result.valid_chain_count == 0
        assert result.global_complexity == 0.0

    def test_multiplier(self):
        f = MarginalPointFeature(
            point_index=0, x=0, y=0, straight_path_length=10.0, diego_path_length=15.0, clr_alpha=100, clr_gamma=100
        )
        assert thornfiddle_multiplier(f) == pytest.approx(1.7)
        f.clr_alpha = 5000
        assert thornfiddle_multiplier(f) == pytest.approx(2.0)


class TestPetiole:
    def test_run_across_origin(self):
        values = np.zeros(20)
        values[[18, 19, 0, 1]] = [4.0, 30.0, 5.0, 3.0]
        values[[8, 9]] = [2.0, 2.0]
        assert detect_petiole(values) == [18, 19, 0, 1]

    def test_no_candidates(self):
        assert detect_petiole(np.zeros(10)) == []
        assert detect_petiole(np.array([])) == []

    def test_remove_completely_reindexes(self):
        features = _features(6)
        kept = filter_petiole(features, [1, 2], remove_completely=True)
        assert [f.x for f in kept] == [0, 3, 4, 5]
        assert [f.point_index for f in kept] == [0, 1, 2, 3]
        # originals untouched
        assert features[3].point_index == 3

    def test_zero_mode_keeps_length(self):
        features = _features(4, diego_path_pink=7)
        out = filter_petiole(features, [2], remove_completely=False)
        assert pink_signal(out).tolist() == [7, 7, 0, 7]
        assert features[2].diego_path_pink == 7

    def test_pink_threshold(self):
        features = _features(4)
        for f, pink in zip(features, [0, 2, 3, 5]):
            f.diego_path_pink = pink
        assert apply_pink_threshold(features, 3.0) == 2
        assert pink_signal(features).tolist() == [0, 0, 0, 5]


def test_edge_density_and_complexity():
    values = np.array([0.0, 2.0, 0.0, 4.0])
    assert edge_feature_density(values) == 0.5
    assert edge_complexity(values, 3.0) == pytest.approx(0.5 * (1 + math.sqrt(3.0)) * 3.0)
    assert edge_complexity(np.array([]), 3.0) == 0.0
