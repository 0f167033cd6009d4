"""
Synthetic capture generator.

Produces mean-colour samples with a sinusoidal pulse on the green channel,
used by the ``--demo`` mode of the command line tool and by the tests.
"""

from __future__ import annotations

from typing import List, Optional

import numpy as np

from pulse_estimator.samples import RawSample


def synthesize_capture(
    bpm: float = 72.0,
    fps: float = 10.0,
    duration: float = 30.0,
    amplitude: float = 5.0,
    noise: float = 0.1,
    green_noise: float = 0.0,
    seed: Optional[int] = 0,
    base: tuple = (150.0, 128.0, 110.0),
) -> List[RawSample]:
    """
    Synthesise ``round(fps * duration)`` samples.

    Parameters
    ----------
    bpm:
        Simulated pulse rate.
    amplitude:
        Peak deviation of the green channel (0 – 255 scale).
    noise:
        Standard deviation of independent Gaussian noise on red and blue.
    green_noise:
        Standard deviation of Gaussian noise added to green.
    seed:
        Seed for ``np.random.default_rng``; the same seed gives the same
        capture.
    """
    rng = np.random.default_rng(seed)
    n = int(round(fps * duration))
    t = np.arange(n) / fps
    r0, g0, b0 = base

    g = g0 + amplitude * np.sin(2 * np.pi * (bpm / 60.0) * t)
    if green_noise:
        g = g + rng.normal(0.0, green_noise, n)
    r = r0 + rng.normal(0.0, noise, n) if noise else np.full(n, r0)
    b = b0 + rng.normal(0.0, noise, n) if noise else np.full(n, b0)

    step_ms = 1000.0 / fps
    return [
        RawSample(
            r=float(np.clip(r[i], 0, 255)),
            g=float(np.clip(g[i], 0, 255)),
            b=float(np.clip(b[i], 0, 255)),
            timestamp=int(round(i * step_ms)),
        )
        for i in range(n)
    ]
