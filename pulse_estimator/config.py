"""
Tuning constants for the rPPG pipeline.

Every threshold used by the pipeline stages lives here so the POS and green
candidate paths are always evaluated against the same numbers.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class PipelineConfig:
    """
    Immutable parameter set shared by all pipeline stages.

    Parameters
    ----------
    default_fps:
        Sampling rate assumed when the caller does not provide one.
    min_samples:
        Minimum number of valid samples required for an estimate.
    min_green_range:
        Minimum peak-to-peak green intensity (0 – 255 scale).  Below this the
        capture is considered uninformative (covered camera, no face).
    band_low_hz, band_high_hz:
        Plausible heart-rate band (0.75 – 3.0 Hz = 45 – 180 BPM).
    pos_window_seconds, pos_min_window:
        POS sliding window length in seconds and its lower bound in samples.
    zero_pad_factor:
        FFT length is the next power of two of ``n * zero_pad_factor``.
    snr_peak_halfwidth:
        Bins on each side of the peak counted as "signal" energy.
    """

    default_fps: float = 10.0
    min_samples: int = 30
    min_green_range: float = 0.3

    band_low_hz: float = 0.75
    band_high_hz: float = 3.0

    pos_window_seconds: float = 1.6
    pos_min_window: int = 10

    zero_pad_factor: int = 4
    snr_peak_halfwidth: int = 2
    parabolic_eps: float = 1e-10

    candidate_snr_floor: float = 0.05
    valid_snr: float = 0.08
    min_signal_variance: float = 1e-10

    bpm_low: int = 45
    bpm_high: int = 180

    high_snr: float = 0.18
    high_min_samples: int = 60
    medium_snr: float = 0.10
    medium_min_samples: int = 40

    waveform_points: int = 100

    # Request limits enforced in front of the pipeline (runner / CLI)
    min_request_fps: float = 1.0
    max_request_fps: float = 60.0
    max_request_samples: int = 1000

    max_concurrent_workers: int = 3
    processing_timeout: float = 10.0

    def __post_init__(self) -> None:
        if not 0 < self.band_low_hz < self.band_high_hz:
            raise ValueError(
                f"Invalid band edges: {self.band_low_hz} – {self.band_high_hz} Hz"
            )
        if self.bpm_low >= self.bpm_high:
            raise ValueError(f"Invalid BPM bounds: {self.bpm_low} – {self.bpm_high}")
        for name in ("min_samples", "pos_min_window", "zero_pad_factor",
                     "waveform_points", "max_concurrent_workers"):
            if getattr(self, name) < 1:
                raise ValueError(f"{name} must be >= 1")
        if self.default_fps <= 0:
            raise ValueError("default_fps must be positive")

    def pos_window(self, fps: float) -> int:
        """POS window length in samples for sampling rate *fps*."""
        return max(int(round(fps * self.pos_window_seconds)), self.pos_min_window)


DEFAULT_CONFIG = PipelineConfig()
