"""
Pulse Estimator — camera-based (rPPG) heart-rate estimation.

Turns a sequence of mean face-region colours sampled from successive camera
frames into a heart rate, a confidence tier, a display waveform and a
signal-quality score.  Not a medical device.
"""

from pulse_estimator.config import DEFAULT_CONFIG, PipelineConfig
from pulse_estimator.errors import (
    InsufficientSamplesError,
    InvalidRequestError,
    ProcessingQueueFullError,
    ProcessingTimeoutError,
    PulseEstimatorError,
)
from pulse_estimator.processor import ProcessingResult, RppgProcessor, process
from pulse_estimator.samples import RawSample

__version__ = "0.1.0"
__author__ = "pulse_estimator"

__all__ = [
    "DEFAULT_CONFIG",
    "InsufficientSamplesError",
    "InvalidRequestError",
    "PipelineConfig",
    "ProcessingQueueFullError",
    "ProcessingResult",
    "ProcessingTimeoutError",
    "PulseEstimatorError",
    "RawSample",
    "RppgProcessor",
    "process",
]
