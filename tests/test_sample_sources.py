"""Tests for the simulated, recorded and callback sample sources."""

import asyncio

import pytest

from step_streaming import (
    AccelDataLoader,
    CallbackSampleSource,
    InvalidSampleError,
    RecordedSampleSource,
    Sample,
    SimulatedSampleSource,
    StepDetector
)


def test_simulated_samples_are_evenly_spaced():
    source = SimulatedSampleSource(interval_ms=100, seed=1)
    samples = source.generate_samples(5, start_ms=1000)

    assert [s.timestamp for s in samples] == [1000.0, 1100.0, 1200.0, 1300.0, 1400.0]


def test_simulated_samples_are_reproducible():
    first = SimulatedSampleSource(seed=7).generate_samples(50)
    second = SimulatedSampleSource(seed=7).generate_samples(50)

    assert first == second


def test_simulated_footfall_shape():
    source = SimulatedSampleSource(cadence=60, noise_std=0.0)

    # Step period of 1 s with the footfall impulse at its midpoint
    assert source.sample_at(0).y == pytest.approx(9.8)
    assert source.sample_at(500).y == pytest.approx(9.8 + 3.0)


def test_simulated_walk_produces_steps():
    """Thirty seconds of simulated walking at 70 steps/min is counted."""
    detector = StepDetector()
    source = SimulatedSampleSource(cadence=70, noise_std=0.0)
    for sample in source.generate_samples(300):
        detector.ingest(sample)

    steps = detector.get_state().steps
    assert 0 < steps <= 35


def test_noisy_simulated_walk_produces_steps():
    detector = StepDetector()
    for sample in SimulatedSampleSource(seed=3).generate_samples(300):
        detector.ingest(sample)

    assert detector.get_state().steps > 0


@pytest.mark.asyncio
async def test_simulated_permission_always_granted():
    assert await SimulatedSampleSource().request_permission() == 'granted'


@pytest.mark.asyncio
async def test_simulated_stream_starts_and_stops():
    received = []
    source = SimulatedSampleSource(interval_ms=5)
    source.subscribe(received.append)
    assert source.is_streaming

    await asyncio.sleep(0.05)
    source.unsubscribe()
    count = len(received)
    await asyncio.sleep(0.02)

    assert count > 0
    assert len(received) == count
    assert not source.is_streaming


@pytest.mark.asyncio
async def test_missing_recording_is_unavailable(tmp_path):
    source = RecordedSampleSource(tmp_path / "missing.parquet")

    assert await source.request_permission() == 'unavailable'


@pytest.mark.asyncio
async def test_recording_is_replayed_in_order(tmp_path):
    samples = [Sample(x=0.0, y=9.8, z=0.0, timestamp=float(i * 10)) for i in range(10)]
    path = AccelDataLoader(tmp_path).save_session(samples, "walk")
    source = RecordedSampleSource(path, speed=100.0, start_ms=30)
    assert await source.request_permission() == 'granted'

    received = []
    source.subscribe(received.append)
    while source.is_streaming:
        await asyncio.sleep(0.01)

    assert received == samples[3:]


def test_callback_source_forwards_while_subscribed():
    source = CallbackSampleSource()
    sample = Sample(x=0.0, y=9.8, z=0.0, timestamp=0.0)
    received = []

    assert source.emit(sample) is False
    source.subscribe(received.append)
    assert source.is_subscribed
    assert source.emit(sample) is True
    source.unsubscribe()
    assert source.emit(sample) is False

    assert received == [sample]


@pytest.mark.asyncio
async def test_callback_source_reports_configured_permission():
    assert await CallbackSampleSource(permission='denied').request_permission() == 'denied'


@pytest.mark.asyncio
async def test_stream_failure_is_reported(tmp_path):
    path = tmp_path / "broken.csv"
    path.write_text("t,a\n0,1.0\n")
    source = RecordedSampleSource(path)
    received, errors = [], []

    source.subscribe(received.append, on_error=errors.append)
    await asyncio.sleep(0.05)

    assert not source.is_streaming
    assert received == []
    assert len(errors) == 1
    assert isinstance(errors[0], InvalidSampleError)


def test_callback_source_reports_subscriber_failure():
    source = CallbackSampleSource()
    errors = []

    def broken(sample):
        raise RuntimeError("subscriber bug")

    source.subscribe(broken, on_error=errors.append)
    assert source.emit(Sample(x=0.0, y=9.8, z=0.0, timestamp=0.0)) is False
    assert isinstance(errors[0], RuntimeError)

    source.subscribe(broken)
    with pytest.raises(RuntimeError):
        source.emit(Sample(x=0.0, y=9.8, z=0.0, timestamp=1.0))
