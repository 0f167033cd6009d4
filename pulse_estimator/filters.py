"""
Heart-rate band filter.

Two single-pole RC high-pass sections followed by two single-pole RC
low-pass sections.  It approximates a Butterworth band-pass over
``band_low_hz`` – ``band_high_hz`` and, unlike ``sosfilt`` with zero
initial state, starts each section at the first input sample so the
output has no start-up step.
"""

from __future__ import annotations

import math

import numpy as np
from scipy.signal import lfilter

from pulse_estimator.config import DEFAULT_CONFIG, PipelineConfig


def _highpass_coefficient(cutoff_hz: float, fps: float) -> float:
    rc = 1.0 / (2.0 * math.pi * cutoff_hz)
    return rc / (rc + 1.0 / fps)


def _lowpass_coefficient(cutoff_hz: float, fps: float) -> float:
    rc = 1.0 / (2.0 * math.pi * cutoff_hz)
    dt = 1.0 / fps
    return dt / (rc + dt)


def rc_highpass(signal: np.ndarray, cutoff_hz: float, fps: float) -> np.ndarray:
    """``y[i] = a * (y[i-1] + x[i] - x[i-1])`` with ``y[0] = x[0]``."""
    x = np.asarray(signal, dtype=np.float64)
    if not len(x):
        return x.copy()
    a = _highpass_coefficient(cutoff_hz, fps)
    y, _ = lfilter([a, -a], [1.0, -a], x, zi=[(1.0 - a) * x[0]])
    return y


def rc_lowpass(signal: np.ndarray, cutoff_hz: float, fps: float) -> np.ndarray:
    """``y[i] = y[i-1] + a * (x[i] - y[i-1])`` with ``y[0] = x[0]``."""
    x = np.asarray(signal, dtype=np.float64)
    if not len(x):
        return x.copy()
    a = _lowpass_coefficient(cutoff_hz, fps)
    y, _ = lfilter([a], [1.0, a - 1.0], x, zi=[(1.0 - a) * x[0]])
    return y


def bandpass(
    signal: np.ndarray,
    fps: float,
    config: PipelineConfig = DEFAULT_CONFIG,
) -> np.ndarray:
    """Restrict *signal* to the plausible heart-rate band."""
    hp = rc_highpass(signal, config.band_low_hz, fps)
    hp = rc_highpass(hp, config.band_low_hz, fps)
    lp = rc_lowpass(hp, config.band_high_hz, fps)
    return rc_lowpass(lp, config.band_high_hz, fps)
