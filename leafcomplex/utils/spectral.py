"""Signal entropy — periodic smoothing, FFT power spectrum, Shannon entropy, ApEn.

All signals are treated as closed loops (contour order wraps around).
"""

from __future__ import annotations

import math

import numpy as np
from numpy.lib.stride_tricks import sliding_window_view
from numpy.typing import NDArray
from scipy import fft, ndimage

from leafcomplex.utils.contour import resample

# Near-constant signals short-circuit to a near-zero entropy
_CV_FLAT = 0.01
_CV_LOW = 0.05
_MIN_SPECTRUM_POINTS = 4
_MIN_VARIANCE = 1e-6
_MIN_PROBABILITY = 1e-12

# Contour deviation signal: moving-average window and the flatness cutoffs (pixels)
_CONTOUR_SMOOTHING_WINDOW = 2
_CONTOUR_FLAT_MEAN = 5.0
_CONTOUR_FLAT_MAX = 10.0
_CONTOUR_FULL_SCALE = 20.0


def smoothing_window(n: int) -> int:
    return min(max(n // 8, 3), 21)


def periodic_gaussian_smooth(values: NDArray, sigma: float, window: int | None = None) -> NDArray[np.float64]:
    """Gaussian smoothing that wraps around the ends of the signal.

    Exactly ``window`` taps at offsets -window//2 .. window-1-window//2, so an
    even window leans one sample toward the past.
    """
    arr = np.asarray(values, dtype=np.float64)
    if len(arr) < 3 or sigma <= 0.0:
        return arr.copy()
    window = smoothing_window(len(arr)) if window is None else window
    if window <= 0:
        return arr.copy()
    offsets = np.arange(window) - window // 2
    weights = np.exp(-0.5 * (offsets / sigma) ** 2)
    return ndimage.correlate1d(arr, weights / weights.sum(), mode="wrap")


def truncated_moving_average(values: NDArray, window: int) -> NDArray[np.float64]:
    """Mean over ±window//2 neighbours, shrinking the window at both ends (no wrap)."""
    arr = np.asarray(values, dtype=np.float64)
    if len(arr) < 3 or window <= 0:
        return arr.copy()
    taps = np.ones(2 * (window // 2) + 1)
    sums = np.convolve(arr, taps, mode="same")
    counts = np.convolve(np.ones_like(arr), taps, mode="same")
    return sums / counts


def coefficient_of_variation(values: NDArray) -> float:
    arr = np.asarray(values, dtype=np.float64)
    if arr.size == 0:
        return 0.0
    mean = float(np.mean(arr))
    if mean <= _MIN_VARIANCE:
        return 0.0
    return float(np.std(arr)) / mean


def power_spectrum(values: NDArray) -> NDArray[np.float64]:
    """Normalised power of the positive non-DC frequencies (empty when degenerate)."""
    arr = np.asarray(values, dtype=np.float64)
    if len(arr) < _MIN_SPECTRUM_POINTS or float(np.var(arr)) < _MIN_VARIANCE:
        return np.empty(0)
    size = 1 << (len(arr) - 1).bit_length()
    spectrum = fft.fft(arr - arr.mean(), n=size)
    power = np.abs(spectrum[1 : size // 2]) ** 2
    total = power.sum()
    if total <= 0.0:
        return np.empty(0)
    return power / total


def shannon_entropy(distribution: NDArray) -> float:
    """Entropy in bits normalised by log2 of the bin count, so in [0, 1]."""
    p = np.asarray(distribution, dtype=np.float64)
    if p.size <= 1:
        return 0.0
    nz = p[p > _MIN_PROBABILITY]
    h = float(-(nz * np.log2(nz)).sum())
    return min(max(h / math.log2(p.size), 0.0), 1.0)


def variation_factor(cv: float, sigmoid_k: float, sigmoid_c: float) -> float:
    """Scale for the entropy of a signal with coefficient of variation ``cv``.

    Sigmoid 1/(1+exp(-k(cv-c))) when k > 0, else the linear min(2·cv, 1).
    """
    if sigmoid_k <= 0.0:
        return min(cv * 2.0, 1.0)
    return min(1.0 / (1.0 + math.exp(-sigmoid_k * (cv - sigmoid_c))), 1.0)


def spectral_entropy(
    values: NDArray,
    smoothing_strength: float | None = None,
    sigmoid_k: float = 0.0,
    sigmoid_c: float = 0.0,
) -> float:
    """Spectral entropy of a closed-loop signal.

    ``smoothing_strength`` None skips smoothing; otherwise it is the gaussian
    sigma (floored at 0.5).
    """
    signal = np.asarray(values, dtype=np.float64)
    if signal.size == 0:
        return 0.0
    if smoothing_strength is not None:
        signal = periodic_gaussian_smooth(signal, sigma=max(smoothing_strength, 0.5))

    cv = coefficient_of_variation(signal)
    if cv < _CV_FLAT:
        return 0.001 + cv * 0.01
    if cv < _CV_LOW:
        return 0.01 + cv * 0.1

    return shannon_entropy(power_spectrum(signal)) * variation_factor(cv, sigmoid_k, sigmoid_c)


def contour_spectral_entropy(contour: NDArray, interpolation_points: int) -> float:
    """Entropy of the centroid-distance deviation signal of a resampled contour."""
    if len(contour) < 3:
        return 0.0
    pts = resample(contour, interpolation_points)
    dist = np.linalg.norm(pts - pts.mean(axis=0), axis=1)
    dist = truncated_moving_average(dist, _CONTOUR_SMOOTHING_WINDOW)
    deviation = np.abs(dist - dist.mean())

    mean_dev = float(deviation.mean())
    if mean_dev < _CONTOUR_FLAT_MEAN:
        return 0.001 + mean_dev * 0.0001
    if float(deviation.max()) < _CONTOUR_FLAT_MAX:
        return 0.01 + mean_dev * 0.001
    return shannon_entropy(power_spectrum(deviation)) * min(mean_dev / _CONTOUR_FULL_SCALE, 1.0)


def _phi(signal: NDArray[np.float64], m: int, tolerance: float) -> float:
    windows = sliding_window_view(signal, m)
    count = len(windows)
    matches = np.empty(count, dtype=np.int64)
    for i in range(count):
        # Chebyshev distance from window i to every window
        dist = np.max(np.abs(windows - windows[i]), axis=1)
        matches[i] = np.count_nonzero(dist <= tolerance)
    ratios = matches / count
    ratios = ratios[ratios > _MIN_PROBABILITY]
    return float(np.log(ratios).mean()) if ratios.size else 0.0


def approximate_entropy(values: NDArray, m: int = 2, r: float = 0.2) -> float:
    """ApEn(m, r) with r scaled by the signal's standard deviation."""
    signal = np.asarray(values, dtype=np.float64)
    n = signal.size
    if n < 4 or n <= m + 1:
        return 0.0
    std = float(np.std(signal))
    tolerance = r * std if std > _MIN_VARIANCE else r
    return _phi(signal, m, tolerance) - _phi(signal, m + 1, tolerance)
