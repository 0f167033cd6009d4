"""
Sample ingestion and validity gate.

Each capture frame is reduced upstream to one :class:`RawSample` holding the
mean red, green and blue intensity (0 – 255) of the face region.  A frame
whose capture failed is reported with negative channel values; those are
dropped here before any numerics run.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Sequence, Union

import numpy as np

from pulse_estimator.config import DEFAULT_CONFIG, PipelineConfig
from pulse_estimator.errors import InsufficientSamplesError, InvalidRequestError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RawSample:
    """Mean colour of one captured frame."""

    r: float
    g: float
    b: float
    timestamp: int = 0

    @property
    def is_valid(self) -> bool:
        return self.r >= 0 and self.g >= 0 and self.b >= 0

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "RawSample":
        """Build a sample from a ``{r, g, b, timestamp}`` mapping."""
        try:
            return cls(
                r=float(data["r"]),
                g=float(data["g"]),
                b=float(data["b"]),
                timestamp=int(data.get("timestamp", 0)),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise InvalidRequestError(f"Malformed sample {data!r}: {e}") from e


SampleLike = Union[RawSample, Mapping[str, Any]]


@dataclass(frozen=True)
class SampleSeries:
    """Valid samples split into per-channel arrays, in capture order."""

    r: np.ndarray
    g: np.ndarray
    b: np.ndarray

    def __len__(self) -> int:
        return len(self.g)

    @property
    def green_range(self) -> float:
        """Peak-to-peak green intensity."""
        return float(self.g.max() - self.g.min()) if len(self.g) else 0.0


def coerce_samples(samples: Iterable[SampleLike]) -> list[RawSample]:
    """Accept :class:`RawSample` objects or plain mappings."""
    return [
        s if isinstance(s, RawSample) else RawSample.from_mapping(s)
        for s in samples
    ]


def ingest(
    samples: Sequence[SampleLike],
    config: PipelineConfig = DEFAULT_CONFIG,
) -> SampleSeries:
    """
    Drop failed captures and enforce the minimum sample count.

    Raises
    ------
    InsufficientSamplesError
        When fewer than ``config.min_samples`` samples were received, or
        fewer than that remain after dropping failed captures.
    """
    raw = coerce_samples(samples)
    received = len(raw)
    if received < config.min_samples:
        logger.warning("Only %d samples received (need %d)", received, config.min_samples)
        raise InsufficientSamplesError(
            "Not enough samples for analysis", received=received, valid=received
        )

    valid = [s for s in raw if s.is_valid]
    dropped = received - len(valid)
    if dropped:
        logger.warning("Dropped %d failed frame captures of %d", dropped, received)
    if len(valid) < config.min_samples:
        raise InsufficientSamplesError(
            "Too many failed frame captures", received=received, valid=len(valid)
        )

    return SampleSeries(
        r=np.array([s.r for s in valid], dtype=np.float64),
        g=np.array([s.g for s in valid], dtype=np.float64),
        b=np.array([s.b for s in valid], dtype=np.float64),
    )


def has_color_variation(series: SampleSeries, config: PipelineConfig = DEFAULT_CONFIG) -> bool:
    """False when the green channel is too flat to carry a pulse."""
    return series.green_range >= config.min_green_range


def validate_request(
    samples: Sequence[SampleLike],
    fps: float | None,
    config: PipelineConfig = DEFAULT_CONFIG,
) -> list[RawSample]:
    """
    Check request-level limits in front of the pipeline.

    The pipeline itself accepts any sampling rate; these limits mirror what
    a capture client can realistically send.
    """
    if fps is not None and not config.min_request_fps <= fps <= config.max_request_fps:
        raise InvalidRequestError(
            f"fps must be between {config.min_request_fps:g} and "
            f"{config.max_request_fps:g}, got {fps:g}"
        )
    if len(samples) > config.max_request_samples:
        raise InvalidRequestError(
            f"At most {config.max_request_samples} samples per request, got {len(samples)}"
        )
    return coerce_samples(samples)
