"""
Plane-Orthogonal-to-Skin (POS) pulse projection.

Algorithm
---------
1. Slide a window of ``max(round(1.6 * fps), 10)`` samples over the
   detrended, normalised R, G, B traces with 50 % overlap.
2. Re-normalise each window locally, then form the two chrominance
   signals ``X = 3R - 2G`` and ``Y = 1.5R + G - 1.5B``.
3. Tune ``X + alpha * Y`` with ``alpha = std(X) / std(Y)`` and overlap-add
   it into the output.
4. Detrend the accumulated signal once more; the window seams reintroduce
   slow drift.

A plain green-channel candidate is produced alongside and used when POS
under-performs on short or noisy captures.

References
----------
- Wang W. et al., "Algorithmic principles of remote PPG."
  IEEE Trans. Biomed. Eng., 2017.
- De Haan G. et al., "Robust pulse rate from chrominance-based rPPG." 2013.
"""

from __future__ import annotations

import logging
from typing import Tuple

import numpy as np

from pulse_estimator.config import DEFAULT_CONFIG, PipelineConfig
from pulse_estimator.preprocessing import safe_std, detrend, detrend_normalize, normalize
from pulse_estimator.samples import SampleSeries

logger = logging.getLogger(__name__)


def pos_project(
    r: np.ndarray,
    g: np.ndarray,
    b: np.ndarray,
    fps: float,
    config: PipelineConfig = DEFAULT_CONFIG,
) -> np.ndarray:
    """
    Project normalised R, G, B traces onto the POS pulse signal.

    Parameters
    ----------
    r, g, b:
        Equal-length channels, already detrended and normalised.
    fps:
        Sampling rate in Hz; sets the window length.

    Returns
    -------
    The overlap-added POS signal, detrended, with the same length as the
    input.  Samples not covered by any window stay at zero.
    """
    n = len(g)
    window = config.pos_window(fps)
    hop = max(window // 2, 1)
    pos = np.zeros(n, dtype=np.float64)

    for start in range(0, n - window, hop):
        end = start + window
        r_win = normalize(r[start:end])
        g_win = normalize(g[start:end])
        b_win = normalize(b[start:end])

        xs = 3.0 * r_win - 2.0 * g_win
        ys = 1.5 * r_win + g_win - 1.5 * b_win
        alpha = safe_std(xs) / safe_std(ys)

        pos[start:end] += xs + alpha * ys

    logger.debug("POS: n=%d window=%d hop=%d", n, window, hop)
    return detrend(pos)


def extract_candidates(
    series: SampleSeries,
    fps: float,
    config: PipelineConfig = DEFAULT_CONFIG,
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Return ``(pos_signal, green_signal)`` for *series*.

    Both are unfiltered; the green candidate is the detrended, normalised
    green channel with no windowing.
    """
    r_norm = detrend_normalize(series.r)
    g_norm = detrend_normalize(series.g)
    b_norm = detrend_normalize(series.b)

    pos_signal = pos_project(r_norm, g_norm, b_norm, fps, config)
    return pos_signal, g_norm
