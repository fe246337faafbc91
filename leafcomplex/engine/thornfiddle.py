"""Thornfiddle complexity — golden chains, harmonic synthesis, petiole filtering.

Stateless batch computations over the ordered feature sequence of one
contour. The golden image is the macro image re-opened with a larger kernel,
removed pixels painted the golden colour.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, replace

import numpy as np
from numpy.typing import NDArray

from leafcomplex.engine.features import MarginalPointFeature
from leafcomplex.utils.paths import count_sentinel_on_path, straight_line
from leafcomplex.utils.raster import Color

logger = logging.getLogger(__name__)

# Seeded LCG for harmonic phases (64-bit wrap)
_LCG_MULTIPLIER = 1103515245
_LCG_INCREMENT = 12345
_U64_MASK = (1 << 64) - 1
_U64_MAX = float(_U64_MASK)

_MAX_HARMONICS = 12
_CHAOS_CAP = 2.0
_STRESS_RATE = 0.3
_ISOLATION_STEP = 0.3
_OVERLAP_STEP = 0.3

# Curved-region contribution to the thornfiddle multiplier
_REGION_SCALE = 1000.0
_REGION_CAP = 0.5


@dataclass
class GoldenChain:
    start: int
    end: int
    length: int
    total_pixels: int
    max_pixels: int

    def indices(self, n: int) -> list[int]:
        return [(self.start + k) % n for k in range(self.length)]


@dataclass
class HarmonicResult:
    values: NDArray[np.float64]
    chains: list[GoldenChain]
    valid_chains: list[GoldenChain]
    global_complexity: float
    weighted_chain_score: float

    @property
    def total_chain_count(self) -> int:
        return len(self.chains)

    @property
    def valid_chain_count(self) -> int:
        return len(self.valid_chains)


# --- Golden chains ---


def golden_pixel_counts(
    contour: NDArray, reference: tuple[int, int], golden_image: NDArray[np.uint8], golden_color: Color
) -> NDArray[np.int64]:
    """Golden pixels on the straight chord from ``reference`` to each contour point."""
    return np.asarray(
        [
            count_sentinel_on_path(straight_line(reference, (int(x), int(y))), golden_image, golden_color)
            for x, y in np.asarray(contour)
        ],
        dtype=np.int64,
    )


def detect_chains(counts: NDArray, threshold: int, merge_wraparound: bool = False) -> list[GoldenChain]:
    """Maximal runs of consecutive indices with count >= threshold.

    A run reaching the last index is closed there; with ``merge_wraparound``
    it is joined to a run starting at index 0.
    """
    counts = np.asarray(counts)
    n = len(counts)
    chains: list[GoldenChain] = []
    start: int | None = None
    for i in range(n + 1):
        hit = i < n and counts[i] >= threshold
        if hit and start is None:
            start = i
        elif not hit and start is not None:
            run = counts[start:i]
            chains.append(GoldenChain(start, i - 1, i - start, int(run.sum()), int(run.max())))
            start = None

    if merge_wraparound and len(chains) > 1 and chains[0].start == 0 and chains[-1].end == n - 1:
        head, tail = chains[0], chains.pop()
        chains[0] = GoldenChain(
            start=tail.start,
            end=head.end,
            length=tail.length + head.length,
            total_pixels=tail.total_pixels + head.total_pixels,
            max_pixels=max(tail.max_pixels, head.max_pixels),
        )
    return chains


def global_complexity(chains: list[GoldenChain]) -> float:
    """Chain-count factor × √(total length) × √(mean golden mass) × isolation bonus.

    Many small isolated lobes score higher than one fused lobe of equal mass.
    """
    if not chains:
        return 0.0
    count = len(chains)
    total_length = sum(c.length for c in chains)
    mean_pixels = sum(c.total_pixels for c in chains) / count
    isolation = 1.0 if count <= 2 else 1.0 + _ISOLATION_STEP * (count - 2)
    return (math.log(count) + 1.0) * math.sqrt(total_length) * math.sqrt(mean_pixels) * isolation


def weighted_chain_score(chains: list[GoldenChain]) -> float:
    return float(sum(c.total_pixels * c.length for c in chains))


# --- Composite values ---


def thornfiddle_multiplier(feature: MarginalPointFeature) -> float:
    if feature.straight_path_length <= 0.0 or feature.diego_path_length <= 0.0:
        return 1.0
    ratio = max(feature.diego_path_length / feature.straight_path_length, 1.0)
    return ratio + min((feature.clr_alpha + feature.clr_gamma) / _REGION_SCALE, _REGION_CAP)


def assign_thornfiddle_paths(features: list[MarginalPointFeature]) -> NDArray[np.float64]:
    for f in features:
        f.thornfiddle_multiplier = thornfiddle_multiplier(f)
        f.thornfiddle_path = f.diego_path_length * f.thornfiddle_multiplier
    return np.asarray([f.thornfiddle_path for f in features], dtype=np.float64)


# --- Harmonic synthesis ---


def max_harmonics(chain_length: int) -> int:
    if chain_length <= 0:
        return 0
    return min(max(int(math.floor(math.log2(chain_length))) + 3, 1), _MAX_HARMONICS)


def base_frequency(circumference: float, point_count: int) -> float:
    if circumference <= 0.0 or point_count == 0:
        return 1.0
    return 2.0 / (1.0 + (circumference / point_count) / 10.0)


def accumulated_stress(chain_index: int, complexity: float) -> float:
    return math.tanh(chain_index * _STRESS_RATE) * complexity


def chaos_factor(position_ratio: float, stress: float, intensity: float, peak: float) -> float:
    """Monotonic in position, scaled by relative golden intensity and stress; capped at 2."""
    log_progression = math.log(1.0 + 9.0 * position_ratio) / math.log(10.0)
    smooth_progression = 0.8 + 0.4 * position_ratio
    golden = intensity / peak if peak > 0.0 else 1.0
    return min(log_progression * smooth_progression * golden * (1.0 + stress), _CHAOS_CAP)


def harmonic_phases(position: int, base_freq: float, count: int) -> list[float]:
    """Deterministic phase offsets from a 64-bit LCG seeded by position and frequency."""
    state = int(position * 1000.0 + base_freq * 100.0) & _U64_MASK
    phases = []
    for _ in range(count):
        state = (state * _LCG_MULTIPLIER + _LCG_INCREMENT) & _U64_MASK
        phases.append(state / _U64_MAX * 2.0 * math.pi)
    return phases


def harmonic_component(position: int, harmonics: int, base_freq: float, chaos: float, ratio: float) -> float:
    if harmonics == 0:
        return 0.0
    total = 0.0
    for h, phase in enumerate(harmonic_phases(position, base_freq, harmonics), start=1):
        total += (1.0 / h) * chaos * math.sin(2.0 * math.pi * base_freq * h * ratio + phase)
    return total / harmonics


def synthesize_harmonics(
    base_values: NDArray,
    valid_chains: list[GoldenChain],
    circumference: float,
    strength: float,
) -> NDArray[np.float64]:
    """Enhance base values inside every valid chain, then boost overlapping coverage."""
    values = np.asarray(base_values, dtype=np.float64).copy()
    n = len(values)
    if n == 0:
        return values
    complexity = global_complexity(valid_chains)
    freq = base_frequency(circumference, n)
    coverage = np.zeros(n, dtype=np.int64)

    for chain_index, chain in enumerate(valid_chains):
        harmonics = max_harmonics(chain.length)
        stress = accumulated_stress(chain_index, complexity)
        intensity = chain.total_pixels / chain.length
        for position, i in enumerate(chain.indices(n)):
            ratio = position / chain.length
            chaos = chaos_factor(ratio, stress, intensity, float(chain.max_pixels))
            harmonic = harmonic_component(position, harmonics, freq, chaos, ratio) * strength
            values[i] = values[i] + values[i] * harmonic
            coverage[i] += 1

    overlapped = coverage > 1
    values[overlapped] *= 1.0 + _OVERLAP_STEP * (coverage[overlapped] - 1)
    return values


def harmonic_thornfiddle(
    features: list[MarginalPointFeature],
    golden_counts: NDArray,
    circumference: float,
    *,
    pixel_threshold: int,
    min_chain_length: int,
    strength: float,
    merge_wraparound: bool = False,
) -> HarmonicResult:
    """Composite and harmonic thornfiddle values for one contour's features."""
    for f, count in zip(features, golden_counts):
        f.golden_pixels = int(count)
    base = assign_thornfiddle_paths(features)
    chains = detect_chains(golden_counts, pixel_threshold, merge_wraparound)
    valid = [c for c in chains if c.length >= min_chain_length]
    values = synthesize_harmonics(base, valid, circumference, strength)
    for f, value in zip(features, values):
        f.thornfiddle_path_harmonic = float(value)

    logger.debug(
        "Golden chains: %d total, %d valid (min length %d)", len(chains), len(valid), min_chain_length
    )
    return HarmonicResult(
        values=values,
        chains=chains,
        valid_chains=valid,
        global_complexity=global_complexity(valid),
        weighted_chain_score=weighted_chain_score(valid),
    )


# --- Petiole filtering ---


def detect_petiole(values: NDArray, candidate_threshold: float = 1.0, percentile: float = 0.95) -> list[int]:
    """Indices of the longest circular run above ``candidate_threshold`` holding an outlier.

    The outlier level is the value at rank ⌊percentile·n⌋ of the sorted signal.
    Runs crossing the end of the signal continue at index 0.
    """
    signal = np.asarray(values, dtype=np.float64)
    n = len(signal)
    if n == 0:
        return []
    rank = int(n * percentile)
    outlier = float(np.sort(signal)[rank]) if rank < n else math.inf

    above = signal > candidate_threshold
    if above.all():
        return list(range(n)) if (signal >= outlier).any() else []
    # start scanning just after a non-candidate so no run straddles the origin
    origin = (int(np.flatnonzero(~above)[-1]) + 1) % n

    best: list[int] = []
    run: list[int] = []
    extreme = False
    for k in range(n + 1):
        i = (origin + k) % n
        if k < n and above[i]:
            run.append(i)
            extreme = extreme or signal[i] >= outlier
            continue
        if run and extreme and len(run) > len(best):
            best = run
        run, extreme = [], False
    return best


def filter_petiole(
    features: list[MarginalPointFeature], indices: list[int], remove_completely: bool
) -> list[MarginalPointFeature]:
    """Copy of ``features`` with the petiole excised (re-indexed) or its pink tally zeroed."""
    petiole = set(indices)
    if remove_completely:
        kept = [f for i, f in enumerate(features) if i not in petiole]
        return [replace(f, point_index=new_index) for new_index, f in enumerate(kept)]
    return [replace(f, diego_path_pink=0) if i in petiole else replace(f) for i, f in enumerate(features)]


def apply_pink_threshold(features: list[MarginalPointFeature], threshold: float) -> int:
    """Zero pink tallies at or below ``threshold``; returns how many were zeroed."""
    zeroed = 0
    for f in features:
        if f.diego_path_pink and f.diego_path_pink <= threshold:
            f.diego_path_pink = 0
            zeroed += 1
    return zeroed


def pink_signal(features: list[MarginalPointFeature]) -> NDArray[np.float64]:
    return np.asarray([f.diego_path_pink for f in features], dtype=np.float64)


def harmonic_signal(features: list[MarginalPointFeature]) -> NDArray[np.float64]:
    return np.asarray([f.thornfiddle_path_harmonic for f in features], dtype=np.float64)


# --- Edge feature density ---


def edge_feature_density(values: NDArray, threshold: float = 1.0) -> float:
    signal = np.asarray(values, dtype=np.float64)
    if signal.size == 0:
        return 0.0
    return float(np.count_nonzero(signal > threshold)) / signal.size


def edge_complexity(values: NDArray, scaling: float, threshold: float = 1.0) -> float:
    """density × (1 + √(mean feature magnitude)) × scaling."""
    signal = np.asarray(values, dtype=np.float64)
    if signal.size == 0:
        return 0.0
    feature_values = signal[signal > threshold]
    magnitude = float(feature_values.mean()) if feature_values.size else 0.0
    return edge_feature_density(signal, threshold) * (1.0 + math.sqrt(magnitude)) * scaling
