"""Shared fixtures for the step streaming tests."""

import pytest

from step_streaming import Sample, StepDetector


# One walking cycle sampled every 300 ms: a heel strike spike and a dip
WALKING_PATTERN = [9.8, 9.8, 12.0, 9.8, 9.8, 9.8, 8.0, 9.8]
# One running cycle sampled every 150 ms
RUNNING_PATTERN = [9.8, 9.8, 14.0]


def vertical(magnitude: float, timestamp: float) -> Sample:
    """Sample with the whole acceleration on the y axis."""
    return Sample(x=0.0, y=magnitude, z=0.0, timestamp=timestamp)


def pattern_samples(pattern, count, interval_ms, start_ms=0.0):
    return [vertical(pattern[i % len(pattern)], start_ms + i * interval_ms) for i in range(count)]


@pytest.fixture
def detector():
    return StepDetector()


@pytest.fixture
def feed():
    """Feed (magnitude, timestamp) pairs to a detector and return the step flags."""
    def _feed(detector, readings):
        return [detector.ingest(vertical(m, t)) for m, t in readings]
    return _feed
