"""
Unit tests for sample ingestion and configuration.
Run with:  pytest tests/
"""

from __future__ import annotations

import dataclasses

import numpy as np
import pytest

from pulse_estimator.config import DEFAULT_CONFIG, PipelineConfig
from pulse_estimator.errors import InsufficientSamplesError, InvalidRequestError
from pulse_estimator.samples import (
    RawSample,
    SampleSeries,
    has_color_variation,
    ingest,
    validate_request,
)


def _samples(n: int, g_step: float = 1.0) -> list[RawSample]:
    return [RawSample(r=150.0, g=100.0 + g_step * (i % 5), b=90.0, timestamp=i * 100)
            for i in range(n)]


# ---------------------------------------------------------------------------
# RawSample
# ---------------------------------------------------------------------------

class TestRawSample:

    def test_from_mapping(self):
        s = RawSample.from_mapping({"r": 1, "g": 2.5, "b": 3, "timestamp": 42})
        assert s == RawSample(r=1.0, g=2.5, b=3.0, timestamp=42)

    def test_from_mapping_timestamp_optional(self):
        assert RawSample.from_mapping({"r": 1, "g": 2, "b": 3}).timestamp == 0

    @pytest.mark.parametrize("data", [
        {"r": 1, "g": 2},
        {"r": "x", "g": 2, "b": 3},
        {"r": None, "g": 2, "b": 3},
    ])
    def test_from_mapping_malformed(self, data):
        with pytest.raises(InvalidRequestError):
            RawSample.from_mapping(data)

    def test_is_valid(self):
        assert RawSample(0, 0, 0).is_valid
        assert not RawSample(-1, 10, 10).is_valid
        assert not RawSample(10, -0.5, 10).is_valid
        assert not RawSample(10, 10, -3).is_valid


# ---------------------------------------------------------------------------
# Ingestion gate
# ---------------------------------------------------------------------------

class TestIngest:

    def test_drops_failed_captures(self):
        samples = _samples(40)
        samples[5] = RawSample(r=-1, g=-1, b=-1)
        samples[9] = RawSample(r=10, g=10, b=-1)
        series = ingest(samples)
        assert len(series) == 38
        assert series.g.dtype == np.float64

    def test_preserves_order(self):
        series = ingest(_samples(30))
        assert list(series.g[:6]) == [100.0, 101.0, 102.0, 103.0, 104.0, 100.0]

    def test_minimum_exactly_met(self):
        assert len(ingest(_samples(30))) == 30

    def test_too_few_received(self):
        with pytest.raises(InsufficientSamplesError) as info:
            ingest(_samples(29))
        assert info.value.received == 29

    def test_too_few_valid(self):
        samples = _samples(31) + [RawSample(-1, -1, -1)] * 10
        samples[0] = RawSample(-1, 0, 0)
        samples[1] = RawSample(-1, 0, 0)
        with pytest.raises(InsufficientSamplesError, match="failed frame captures"):
            ingest(samples)

    def test_insufficient_is_a_value_error(self):
        with pytest.raises(ValueError):
            ingest([])

    def test_color_variation(self):
        flat = SampleSeries(r=np.ones(30), g=np.full(30, 80.0), b=np.ones(30))
        assert flat.green_range == 0.0
        assert not has_color_variation(flat)
        assert has_color_variation(ingest(_samples(30, g_step=0.1)))
        assert not has_color_variation(ingest(_samples(30, g_step=0.05)))


# ---------------------------------------------------------------------------
# Request limits
# ---------------------------------------------------------------------------

class TestValidateRequest:

    @pytest.mark.parametrize("fps", [None, 1, 10, 60])
    def test_accepted_fps(self, fps):
        assert len(validate_request(_samples(30), fps)) == 30

    @pytest.mark.parametrize("fps", [0.5, 61, 120])
    def test_rejected_fps(self, fps):
        with pytest.raises(InvalidRequestError, match="fps"):
            validate_request(_samples(30), fps)

    def test_too_many_samples(self):
        with pytest.raises(InvalidRequestError, match="1000"):
            validate_request(_samples(1001), 10)

    def test_coerces_mappings(self):
        out = validate_request([{"r": 1, "g": 2, "b": 3}], None)
        assert out == [RawSample(1.0, 2.0, 3.0)]


# ---------------------------------------------------------------------------
# PipelineConfig
# ---------------------------------------------------------------------------

class TestPipelineConfig:

    def test_defaults(self):
        assert DEFAULT_CONFIG.min_samples == 30
        assert DEFAULT_CONFIG.band_low_hz == 0.75
        assert DEFAULT_CONFIG.band_high_hz == 3.0
        assert DEFAULT_CONFIG.waveform_points == 100

    def test_frozen(self):
        with pytest.raises(dataclasses.FrozenInstanceError):
            DEFAULT_CONFIG.min_samples = 10

    @pytest.mark.parametrize("kwargs", [
        {"band_low_hz": 3.0, "band_high_hz": 0.75},
        {"band_low_hz": 0.0},
        {"bpm_low": 200},
        {"min_samples": 0},
        {"default_fps": 0},
    ])
    def test_invalid(self, kwargs):
        with pytest.raises(ValueError):
            PipelineConfig(**kwargs)

    def test_replace(self):
        cfg = dataclasses.replace(DEFAULT_CONFIG, min_samples=10)
        assert len(ingest(_samples(12), cfg)) == 12
