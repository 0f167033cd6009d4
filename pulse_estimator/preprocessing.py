"""
Detrending and normalisation.

Both operations act on a single 1-D channel.  :func:`detrend_normalize` is
the combinator used everywhere a channel must be made zero-mean, unit
variance and free of linear lighting drift.
"""

from __future__ import annotations

import numpy as np


MIN_STD = 1e-10


def safe_std(signal: np.ndarray) -> float:
    """Population standard deviation, or 1.0 when it is (numerically) zero."""
    std = float(np.std(signal)) if len(signal) else 0.0
    return std if std > MIN_STD else 1.0


def detrend(signal: np.ndarray) -> np.ndarray:
    """
    Subtract the least-squares line ``slope * i + intercept`` fitted over
    sample index ``i = 0 .. n-1``.
    """
    y = np.asarray(signal, dtype=np.float64)
    n = len(y)
    if n < 2:
        return y - y.mean() if n else y.copy()

    i = np.arange(n, dtype=np.float64)
    sum_x = i.sum()
    sum_y = y.sum()
    denom = n * np.dot(i, i) - sum_x * sum_x
    slope = (n * np.dot(i, y) - sum_x * sum_y) / denom
    intercept = (sum_y - slope * sum_x) / n
    return y - (slope * i + intercept)


def normalize(signal: np.ndarray) -> np.ndarray:
    """Zero mean, unit (population) variance."""
    y = np.asarray(signal, dtype=np.float64)
    if not len(y):
        return y.copy()
    return (y - y.mean()) / safe_std(y)


def detrend_normalize(signal: np.ndarray) -> np.ndarray:
    """Detrend, then normalise."""
    return normalize(detrend(signal))


def signal_variance(signal: np.ndarray) -> float:
    """Mean power of *signal* (variance about zero)."""
    y = np.asarray(signal, dtype=np.float64)
    return float(np.mean(y * y)) if len(y) else 0.0
