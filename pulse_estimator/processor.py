"""
rPPG heart-rate processor.

Algorithm
---------
1. Ingest the colour samples, dropping failed captures; short-circuit when
   the green channel is flat.
2. Detrend and normalise each channel.
3. Build two candidate pulse signals: POS projection and plain green.
4. Band-pass both to 0.75 – 3.0 Hz.
5. Estimate the spectral peak and SNR of each candidate.
6. Keep the candidate with the better SNR, check the estimate against
   physiological bounds and grade the confidence.

The processor keeps no state between calls; one instance may be shared by
any number of threads.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Sequence, Tuple

import numpy as np

from pulse_estimator import filters, spectral
from pulse_estimator.config import DEFAULT_CONFIG, PipelineConfig
from pulse_estimator.errors import InvalidRequestError
from pulse_estimator.pos import extract_candidates
from pulse_estimator.preprocessing import signal_variance
from pulse_estimator.samples import SampleLike, has_color_variation, ingest
from pulse_estimator.spectral import SpectralEstimate

logger = logging.getLogger(__name__)

CONFIDENCE_LEVELS = ("low", "medium", "high")

MSG_NO_VARIATION = "No color variation detected"
MSG_UNRELIABLE = "Could not detect a reliable heart rate"
MSG_STRONG = "Strong signal detected"
MSG_MODERATE = "Moderate signal quality - try holding still in good lighting"


@dataclass(frozen=True)
class ProcessingResult:
    """Outcome of one heart-rate estimate."""

    heart_rate: int
    confidence: str
    waveform: Tuple[float, ...]
    signal_quality: int
    samples_processed: int
    valid_reading: bool
    message: str

    def to_dict(self) -> Dict[str, Any]:
        """Mapping with the field names the result consumer expects."""
        return {
            "heartRate": self.heart_rate,
            "confidence": self.confidence,
            "waveform": list(self.waveform),
            "signalQuality": self.signal_quality,
            "samplesProcessed": self.samples_processed,
            "validReading": self.valid_reading,
            "message": self.message,
        }


@dataclass(frozen=True)
class Candidate:
    """A filtered candidate signal with its spectral estimate."""

    name: str
    filtered: np.ndarray = field(repr=False, compare=False)
    estimate: SpectralEstimate


class RppgProcessor:
    """
    Single-shot rPPG heart-rate estimator.

    Parameters
    ----------
    config:
        Pipeline thresholds.  Defaults to :data:`DEFAULT_CONFIG`.
    """

    def __init__(self, config: PipelineConfig = DEFAULT_CONFIG) -> None:
        self.config = config

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def process(
        self,
        signals: Sequence[SampleLike],
        fps: Optional[float] = None,
    ) -> ProcessingResult:
        """
        Estimate heart rate from a sequence of mean-colour samples.

        Parameters
        ----------
        signals:
            :class:`~pulse_estimator.samples.RawSample` objects or
            ``{r, g, b, timestamp}`` mappings, in capture order.
        fps:
            Sampling rate in Hz.  ``None`` or 0 selects
            ``config.default_fps``.

        Raises
        ------
        InsufficientSamplesError
            Fewer than ``config.min_samples`` valid samples.
        """
        fps = self._resolve_fps(fps)
        series = ingest(signals, self.config)
        n = len(series)

        if not has_color_variation(series, self.config):
            logger.info(
                "Green range %.3f below %.3f – no colour variation",
                series.green_range, self.config.min_green_range,
            )
            return ProcessingResult(
                heart_rate=0,
                confidence="low",
                waveform=(),
                signal_quality=0,
                samples_processed=n,
                valid_reading=False,
                message=MSG_NO_VARIATION,
            )

        pos_signal, green_signal = extract_candidates(series, fps, self.config)
        pos = self._evaluate("pos", pos_signal, fps)
        green = self._evaluate("green", green_signal, fps)
        best = self.select(pos, green)

        return self.build_result(best, n)

    def select(self, pos: Candidate, green: Candidate) -> Candidate:
        """
        Pick the candidate to report.

        POS wins ties.  A candidate below ``candidate_snr_floor`` is only
        used when both are below it.
        """
        floor = self.config.candidate_snr_floor
        if pos.estimate.snr >= green.estimate.snr and pos.estimate.snr > floor:
            best = pos
        elif green.estimate.snr > floor:
            best = green
        else:
            best = pos if pos.estimate.snr >= green.estimate.snr else green
        logger.debug(
            "Selected %s (pos snr=%.3f, green snr=%.3f)",
            best.name, pos.estimate.snr, green.estimate.snr,
        )
        return best

    def confidence_for(self, snr: float, sample_count: int) -> str:
        """Confidence tier for a valid reading."""
        cfg = self.config
        if snr > cfg.high_snr and sample_count >= cfg.high_min_samples:
            return "high"
        if snr > cfg.medium_snr and sample_count >= cfg.medium_min_samples:
            return "medium"
        return "low"

    def make_waveform(self, filtered: np.ndarray) -> Tuple[float, ...]:
        """Nearest-index resample to ``waveform_points`` and scale to [-1, 1]."""
        points = self.config.waveform_points
        n = len(filtered)
        if n == 0:
            return tuple(0.0 for _ in range(points))
        idx = (np.arange(points) * n) // points
        wave = np.nan_to_num(np.asarray(filtered, dtype=np.float64)[idx])
        peak = float(np.max(np.abs(wave))) or 1.0
        return tuple(float(v) for v in wave / peak)

    def build_result(self, best: Candidate, n: int) -> ProcessingResult:
        """Apply the validity rule and confidence tiers to the chosen candidate."""
        cfg = self.config
        snr = best.estimate.snr
        bpm = int(round(best.estimate.bpm)) if math.isfinite(best.estimate.bpm) else 0

        valid = (
            cfg.bpm_low <= bpm <= cfg.bpm_high
            and snr > cfg.valid_snr
            and signal_variance(best.filtered) > cfg.min_signal_variance
        )

        if valid:
            heart_rate = max(cfg.bpm_low, min(cfg.bpm_high, bpm))
            confidence = self.confidence_for(snr, n)
            message = MSG_STRONG if confidence == "high" else MSG_MODERATE
        else:
            heart_rate = 0
            confidence = "low"
            message = MSG_UNRELIABLE

        return ProcessingResult(
            heart_rate=heart_rate,
            confidence=confidence,
            waveform=self.make_waveform(best.filtered),
            signal_quality=int(round(snr * 100)),
            samples_processed=n,
            valid_reading=valid,
            message=message,
        )

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _resolve_fps(self, fps: Optional[float]) -> float:
        if not fps:
            return self.config.default_fps
        if not math.isfinite(fps) or fps < 0:
            raise InvalidRequestError(f"Invalid sampling rate: {fps!r}")
        return float(fps)

    def _evaluate(self, name: str, signal: np.ndarray, fps: float) -> Candidate:
        filtered = filters.bandpass(signal, fps, self.config)
        est = spectral.estimate(filtered, fps, self.config)
        logger.debug("Candidate %s: bpm=%.1f snr=%.3f", name, est.bpm, est.snr)
        return Candidate(name=name, filtered=filtered, estimate=est)


def process(
    signals: Sequence[SampleLike],
    fps: Optional[float] = None,
    config: PipelineConfig = DEFAULT_CONFIG,
) -> ProcessingResult:
    """Module-level shortcut for :meth:`RppgProcessor.process`."""
    return RppgProcessor(config).process(signals, fps)
