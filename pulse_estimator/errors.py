"""Exceptions raised by the pulse estimator."""

from __future__ import annotations


class PulseEstimatorError(Exception):
    """Base class for all pulse estimator errors."""


class InsufficientSamplesError(PulseEstimatorError, ValueError):
    """
    Too few usable samples to attempt an estimate.

    The caller should capture for longer rather than retry the same input.
    """

    def __init__(self, message: str, received: int, valid: int) -> None:
        super().__init__(message)
        self.received = received
        self.valid = valid


class InvalidRequestError(PulseEstimatorError, ValueError):
    """A request failed validation before reaching the pipeline."""


class ProcessingQueueFullError(PulseEstimatorError):
    """All worker slots are busy."""


class ProcessingTimeoutError(PulseEstimatorError, TimeoutError):
    """A job did not finish before the deadline."""
