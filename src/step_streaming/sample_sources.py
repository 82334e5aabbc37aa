"""Accelerometer sample sources: recorded sessions, driver callbacks and simulation."""

import asyncio
import math
import time
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Callable, List, Optional
import numpy as np
import structlog

from .config import TrackingConfig
from .data_loader import AccelDataLoader
from .models import PermissionStatus, Sample


logger = structlog.get_logger(__name__)

SampleCallback = Callable[[Sample], None]
ErrorCallback = Callable[[BaseException], None]


class SampleSource(ABC):
    """
    Interface of a motion sensor.

    Samples are delivered to the subscribed callback, one at a time, from the
    running asyncio event loop. If the source fails while delivering, the
    exception is passed to on_error and delivery stops.
    """

    @abstractmethod
    async def request_permission(self) -> PermissionStatus:
        """Ask for access to the sensor ('granted', 'denied' or 'unavailable')."""

    @abstractmethod
    def subscribe(self, callback: SampleCallback, on_error: Optional[ErrorCallback] = None):
        """Start delivering samples to the callback."""

    @abstractmethod
    def unsubscribe(self):
        """Stop delivering samples. Safe to call when not subscribed."""


class StreamingSampleSource(SampleSource):
    """Base class for sources that produce samples from an asyncio task."""

    def __init__(self):
        self._task: Optional[asyncio.Task] = None

    @property
    def is_streaming(self) -> bool:
        return self._task is not None and not self._task.done()

    def subscribe(self, callback: SampleCallback, on_error: Optional[ErrorCallback] = None):
        """Start the streaming task. Must be called from a running event loop."""
        self.unsubscribe()
        self._task = asyncio.get_running_loop().create_task(self._stream(callback))
        self._task.add_done_callback(lambda task: self._on_stream_done(task, on_error))

    def unsubscribe(self):
        if self._task is not None:
            self._task.cancel()
            self._task = None

    def _on_stream_done(self, task: asyncio.Task, on_error: Optional[ErrorCallback]):
        if task.cancelled():
            return
        error = task.exception()
        if error is None:
            return
        logger.error("sample_stream_failed", source=type(self).__name__, exc_info=error)
        if on_error is not None:
            on_error(error)

    @abstractmethod
    async def _stream(self, callback: SampleCallback):
        """Produce samples until cancelled or exhausted."""


class SimulatedSampleSource(StreamingSampleSource):
    """
    Synthetic walking-like accelerometer signal.

    Gravity on the y axis plus a footfall impulse once per step period and
    Gaussian jitter on every axis. Used whenever no real sensor is available.
    """

    def __init__(
        self,
        interval_ms: Optional[int] = None,
        cadence: Optional[float] = None,
        impulse: float = 3.0,
        noise_std: float = 0.15,
        seed: Optional[int] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize the simulated source.

        Args:
            interval_ms: Sample period in ms
            cadence: Simulated steps per minute
            impulse: Peak footfall acceleration above gravity (m/s^2)
            noise_std: Standard deviation of the sensor jitter (m/s^2)
            seed: Random seed for reproducible signals
            clock: Monotonic clock in seconds used for live timestamps
        """
        super().__init__()
        defaults = TrackingConfig()
        self.interval_ms = interval_ms or defaults.SIMULATION_INTERVAL_MS
        self.cadence = cadence or defaults.SIMULATED_CADENCE
        self.impulse = impulse
        self.noise_std = noise_std
        self.rng = np.random.default_rng(seed)
        self.clock = clock

    async def request_permission(self) -> PermissionStatus:
        return 'granted'

    def sample_at(self, timestamp: float) -> Sample:
        """
        Generate the sample at a given time.

        Args:
            timestamp: Time in ms

        Returns:
            Synthetic sample
        """
        step_period = 60000.0 / self.cadence
        phase = (timestamp % step_period) / step_period
        # Short Gaussian footfall pulse centred in each step period
        footfall = self.impulse * math.exp(-((phase - 0.5) / 0.08) ** 2)
        jitter = self.rng.normal(0.0, self.noise_std, size=3)
        return Sample(
            x=float(jitter[0]),
            y=float(9.8 + footfall + jitter[1]),
            z=float(jitter[2]),
            timestamp=float(timestamp),
        )

    def generate_samples(self, count: int, start_ms: float = 0.0) -> List[Sample]:
        """
        Generate a batch of evenly spaced samples.

        Args:
            count: Number of samples
            start_ms: Timestamp of the first sample

        Returns:
            List of samples
        """
        return [self.sample_at(start_ms + i * self.interval_ms) for i in range(count)]

    async def _stream(self, callback: SampleCallback):
        interval = self.interval_ms / 1000
        while True:
            callback(self.sample_at(self.clock() * 1000))
            await asyncio.sleep(interval)


class RecordedSampleSource(StreamingSampleSource):
    """
    Replays a recorded accelerometer session in real time.

    Stands in for a hardware sensor: the recording is paced by its own
    timestamps, scaled by a speed multiplier.
    """

    def __init__(self, path: Path, speed: Optional[float] = None, start_ms: float = 0.0):
        """
        Initialize the replay source.

        Args:
            path: Parquet or CSV recording with timestamp, x, y, z columns
            speed: Playback speed multiplier (1 = real-time)
            start_ms: Skip samples recorded before this time
        """
        super().__init__()
        self.path = Path(path)
        self.speed = speed or TrackingConfig().REPLAY_SPEED
        self.start_ms = start_ms
        self.loader = AccelDataLoader(self.path.parent)

    async def request_permission(self) -> PermissionStatus:
        if not self.path.exists():
            logger.warning("recording_unavailable", path=str(self.path))
            return 'unavailable'
        return 'granted'

    async def _stream(self, callback: SampleCallback):
        df = self.loader.load_file(self.path)
        start_index = self.loader.time_to_sample_index(df, self.start_ms)
        samples = self.loader.to_samples(df, start_index)
        logger.info("replay_started", path=str(self.path), samples=len(samples), speed=self.speed)

        previous = None
        for sample in samples:
            if previous is not None:
                delay = (sample.timestamp - previous.timestamp) / 1000 / self.speed
                await asyncio.sleep(max(0.0, delay))
            callback(sample)
            previous = sample

        logger.info("replay_completed", path=str(self.path))


class CallbackSampleSource(SampleSource):
    """
    Bridge for a platform sensor driver that pushes samples.

    The driver calls emit() for every reading; readings are forwarded while a
    callback is subscribed and dropped otherwise.
    """

    def __init__(self, permission: PermissionStatus = 'granted'):
        self.permission = permission
        self._callback: Optional[SampleCallback] = None
        self._on_error: Optional[ErrorCallback] = None

    async def request_permission(self) -> PermissionStatus:
        return self.permission

    def subscribe(self, callback: SampleCallback, on_error: Optional[ErrorCallback] = None):
        self._callback = callback
        self._on_error = on_error

    def unsubscribe(self):
        self._callback = None
        self._on_error = None

    @property
    def is_subscribed(self) -> bool:
        return self._callback is not None

    def emit(self, sample: Sample) -> bool:
        """
        Forward a reading to the subscriber.

        Returns:
            False if nobody is subscribed or the subscriber failed
        """
        if self._callback is None:
            return False
        on_error = self._on_error
        try:
            self._callback(sample)
        except Exception as e:
            logger.exception("sample_delivery_failed")
            if on_error is None:
                raise
            on_error(e)
            return False
        return True
