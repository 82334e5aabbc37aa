"""Tests for the tracking lifecycle."""

import asyncio

import pytest

from step_streaming import (
    AccelDataLoader,
    CallbackSampleSource,
    InMemorySummaryStore,
    RecordedSampleSource,
    Sample,
    SensorPermissionDenied,
    StepState,
    StepTracker
)
from conftest import WALKING_PATTERN, pattern_samples, vertical


STEP_READINGS = [(9.8, 0), (9.8, 100), (19.8, 200)]


def emit_readings(source, readings, offset=0):
    for magnitude, timestamp in readings:
        source.emit(vertical(magnitude, timestamp + offset))


class DeniedSource(CallbackSampleSource):
    async def request_permission(self):
        raise SensorPermissionDenied("user refused")


class BrokenSource(CallbackSampleSource):
    async def request_permission(self):
        raise RuntimeError("driver crashed")


class PendingSource(CallbackSampleSource):
    """Source whose permission prompt stays open until answered."""

    def __init__(self):
        super().__init__()
        self.answered = asyncio.Event()

    async def request_permission(self):
        await self.answered.wait()
        return 'granted'


@pytest.mark.asyncio
async def test_granted_source_is_used():
    source, fallback = CallbackSampleSource(), CallbackSampleSource()
    tracker = StepTracker(source=source, fallback=fallback)

    handle = await tracker.start()

    assert tracker.permission_status == 'granted'
    assert tracker.is_tracking
    assert handle.source is source
    assert not handle.simulated
    assert handle.started_at is not None
    assert source.is_subscribed and not fallback.is_subscribed

    emit_readings(source, STEP_READINGS)
    assert tracker.get_state().steps == 1


@pytest.mark.asyncio
@pytest.mark.parametrize("source, status", [
    (CallbackSampleSource(permission='denied'), 'denied'),
    (CallbackSampleSource(permission='unavailable'), 'unavailable'),
    (DeniedSource(), 'denied'),
    (BrokenSource(), 'unavailable'),
])
async def test_falls_back_to_simulation(source, status):
    fallback = CallbackSampleSource()
    tracker = StepTracker(source=source, fallback=fallback)

    handle = await tracker.start()

    assert tracker.permission_status == status
    assert handle.simulated
    assert handle.source is fallback
    assert fallback.is_subscribed
    emit_readings(fallback, STEP_READINGS)
    assert tracker.get_state().steps == 1


@pytest.mark.asyncio
async def test_default_fallback_is_simulated_walker():
    tracker = StepTracker(source=CallbackSampleSource(permission='denied'))
    handle = await tracker.start()

    assert handle.source.is_streaming
    tracker.stop()
    assert not handle.source.is_streaming


@pytest.mark.asyncio
async def test_check_permission_does_not_start():
    tracker = StepTracker(source=CallbackSampleSource(permission='denied'))

    assert await tracker.check_permission() == 'denied'
    assert not tracker.is_tracking


@pytest.mark.asyncio
async def test_stop_keeps_state_and_ignores_late_samples():
    source = CallbackSampleSource()
    tracker = StepTracker(source=source)
    handle = await tracker.start()
    emit_readings(source, STEP_READINGS)
    late_callback = source._callback

    tracker.stop(handle)

    assert not handle.active
    assert not tracker.is_tracking
    assert not source.is_subscribed
    assert tracker.get_state().steps == 1

    emit_readings(source, STEP_READINGS, offset=1000)
    for magnitude, timestamp in STEP_READINGS:
        late_callback(vertical(magnitude, timestamp + 1000))
    assert tracker.get_state().steps == 1


@pytest.mark.asyncio
async def test_restart_discards_previous_session_callbacks():
    source = CallbackSampleSource()
    tracker = StepTracker(source=source)
    await tracker.start()
    stale_callback = source._callback
    await tracker.start()

    for magnitude, timestamp in STEP_READINGS:
        stale_callback(vertical(magnitude, timestamp))
    assert tracker.get_state().steps == 0

    emit_readings(source, STEP_READINGS)
    assert tracker.get_state().steps == 1


@pytest.mark.asyncio
async def test_stop_while_permission_pending():
    source = PendingSource()
    tracker = StepTracker(source=source, fallback=CallbackSampleSource())

    starting = asyncio.ensure_future(tracker.start())
    await asyncio.sleep(0)
    tracker.stop()
    source.answered.set()
    handle = await starting

    assert not handle.active
    assert handle.source is None
    assert not source.is_subscribed
    assert not tracker.is_tracking


@pytest.mark.asyncio
async def test_reset_keeps_tracking():
    source = CallbackSampleSource()
    tracker = StepTracker(source=source)
    await tracker.start()
    emit_readings(source, STEP_READINGS)

    tracker.reset()

    assert tracker.get_state() == StepState()
    assert tracker.is_tracking
    emit_readings(source, STEP_READINGS, offset=50)
    assert tracker.get_state().steps == 1


@pytest.mark.asyncio
async def test_invalid_samples_are_dropped():
    source = CallbackSampleSource()
    tracker = StepTracker(source=source)
    await tracker.start()

    source.emit(Sample(x=float('inf'), y=9.8, z=0.0, timestamp=0.0))
    source.emit(Sample(x='0', y=9.8, z=0.0, timestamp=10.0))
    emit_readings(source, STEP_READINGS, offset=20)

    assert tracker.dropped_samples == 2
    assert tracker.get_state().steps == 1


@pytest.mark.asyncio
async def test_subscribers_see_updates():
    source = CallbackSampleSource()
    tracker = StepTracker(source=source)
    received = []
    tracker.subscribe(received.append)
    await tracker.start()
    emit_readings(source, STEP_READINGS)

    assert [s.steps for s in received] == [1]


@pytest.mark.asyncio
async def test_autosave_runs_while_tracking():
    source = CallbackSampleSource()
    store = InMemorySummaryStore()
    tracker = StepTracker(source=source, store=store, user_id="alice", autosave_interval=0.01)
    await tracker.start()
    emit_readings(source, STEP_READINGS)

    assert tracker.autosaver.is_running
    await asyncio.sleep(0.05)
    tracker.stop()

    assert not tracker.autosaver.is_running
    [summary] = store.summaries.values()
    assert summary.user_id == "alice"
    assert summary.total_steps == 1


def write_broken_recording(directory, name="broken.csv"):
    path = directory / name
    path.write_text("t,a\n0,1.0\n100,2.0\n")
    return path


@pytest.mark.asyncio
async def test_replaying_recording_twice_counts_both_sessions(tmp_path):
    """Each start begins a new timestamp sequence while totals carry over."""
    path = AccelDataLoader(tmp_path).save_session(pattern_samples(WALKING_PATTERN, 20, 300), "walk")
    tracker = StepTracker(source=RecordedSampleSource(path, speed=100.0), fallback=CallbackSampleSource())

    steps_after_session = []
    for _ in range(2):
        handle = await tracker.start()
        while handle.source.is_streaming:
            await asyncio.sleep(0.01)
        tracker.stop(handle)
        steps_after_session.append(tracker.get_state().steps)

    assert steps_after_session == [5, 10]


@pytest.mark.asyncio
async def test_failed_recording_switches_to_simulation(tmp_path):
    fallback = CallbackSampleSource()
    tracker = StepTracker(source=RecordedSampleSource(write_broken_recording(tmp_path)), fallback=fallback)

    handle = await tracker.start()
    assert not handle.simulated
    await asyncio.sleep(0.05)

    assert tracker.is_tracking
    assert handle.simulated
    assert handle.source is fallback
    emit_readings(fallback, STEP_READINGS)
    assert tracker.get_state().steps == 1


@pytest.mark.asyncio
async def test_failed_fallback_stops_tracking(tmp_path):
    tracker = StepTracker(
        source=RecordedSampleSource(write_broken_recording(tmp_path, "first.csv")),
        fallback=RecordedSampleSource(write_broken_recording(tmp_path, "second.csv")),
    )

    handle = await tracker.start()
    await asyncio.sleep(0.1)

    assert not handle.active
    assert not tracker.is_tracking
    assert not handle.source.is_streaming


@pytest.mark.asyncio
async def test_stopping_stale_handle_keeps_current_session():
    source = CallbackSampleSource()
    tracker = StepTracker(source=source)
    first = await tracker.start()
    second = await tracker.start()

    tracker.stop(first)

    assert second.active
    assert tracker.is_tracking
    assert source.is_subscribed
    emit_readings(source, STEP_READINGS)
    assert tracker.get_state().steps == 1
