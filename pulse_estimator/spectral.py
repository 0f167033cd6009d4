"""
Spectral heart-rate estimator.

Algorithm
---------
1. Hann-window the filtered candidate signal.
2. Zero-pad to the next power of two of ``4 * n`` for finer bin spacing.
3. Take the magnitude spectrum and search the in-band bins for the peak.
4. Refine the peak to sub-bin precision with a parabola through the peak
   and its two neighbours.
5. SNR = energy within ±2 bins of the peak / total in-band energy.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Tuple

import numpy as np

from pulse_estimator.config import DEFAULT_CONFIG, PipelineConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SpectralEstimate:
    bpm: float
    snr: float
    peak_magnitude: float


def next_power_of_two(n: int) -> int:
    """Smallest power of two >= *n* (1 for n <= 1)."""
    if n <= 1:
        return 1
    return 1 << (int(n) - 1).bit_length()


def hann_window(n: int) -> np.ndarray:
    """Symmetric Hann window ``0.5 - 0.5 cos(2 pi i / (n - 1))``."""
    if n < 2:
        return np.ones(n, dtype=np.float64)
    i = np.arange(n, dtype=np.float64)
    return 0.5 - 0.5 * np.cos(2.0 * np.pi * i / (n - 1))


def magnitude_spectrum(signal: np.ndarray, fft_size: int) -> np.ndarray:
    """Hann-windowed, zero-padded magnitude spectrum, first ``fft_size / 2`` bins."""
    x = np.asarray(signal, dtype=np.float64)
    windowed = x * hann_window(len(x))
    spectrum = np.fft.rfft(windowed, n=fft_size)
    return np.abs(spectrum[: fft_size // 2])


def band_bins(
    fft_size: int,
    fps: float,
    config: PipelineConfig = DEFAULT_CONFIG,
) -> Tuple[int, int]:
    """Inclusive ``(min_bin, max_bin)`` covering the heart-rate band."""
    last = max(fft_size // 2 - 1, 1)
    min_bin = int(round(config.band_low_hz * fft_size / fps))
    max_bin = int(round(config.band_high_hz * fft_size / fps))
    min_bin = min(max(min_bin, 1), last)
    max_bin = min(max(max_bin, min_bin), last)
    return min_bin, max_bin


def parabolic_offset(alpha: float, beta: float, gamma: float, eps: float = 1e-10) -> float:
    """
    Sub-bin offset of a peak from its magnitude *beta* and neighbours.

    Returns 0.0 when the three points are (nearly) collinear.
    """
    denom = alpha - 2.0 * beta + gamma
    if abs(denom) <= eps:
        return 0.0
    return 0.5 * (alpha - gamma) / denom


def estimate(
    signal: np.ndarray,
    fps: float,
    config: PipelineConfig = DEFAULT_CONFIG,
) -> SpectralEstimate:
    """
    Estimate the dominant in-band frequency of *signal*.

    Returns an estimate with ``snr == 0`` for an all-zero signal; the
    reported BPM is then the lower band edge and carries no information.
    """
    n = len(signal)
    fft_size = next_power_of_two(n * config.zero_pad_factor)
    magnitudes = magnitude_spectrum(signal, fft_size)
    if len(magnitudes) < 2:
        return SpectralEstimate(bpm=0.0, snr=0.0, peak_magnitude=0.0)

    min_bin, max_bin = band_bins(fft_size, fps, config)
    band = magnitudes[min_bin: max_bin + 1]
    peak_bin = min_bin + int(np.argmax(band))
    peak_magnitude = float(magnitudes[peak_bin])

    refined = float(peak_bin)
    if min_bin < peak_bin < max_bin:
        refined += parabolic_offset(
            magnitudes[peak_bin - 1],
            magnitudes[peak_bin],
            magnitudes[peak_bin + 1],
            config.parabolic_eps,
        )
    bpm = refined * fps / fft_size * 60.0

    power = band * band
    total = float(power.sum())
    lo = max(peak_bin - config.snr_peak_halfwidth, min_bin) - min_bin
    hi = min(peak_bin + config.snr_peak_halfwidth, max_bin) - min_bin
    snr = float(power[lo: hi + 1].sum()) / total if total > 0 else 0.0

    logger.debug(
        "Spectrum: n=%d fft=%d bins=[%d, %d] peak=%d bpm=%.2f snr=%.3f",
        n, fft_size, min_bin, max_bin, peak_bin, bpm, snr,
    )
    return SpectralEstimate(bpm=bpm, snr=snr, peak_magnitude=peak_magnitude)
