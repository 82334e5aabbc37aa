"""Tracking lifecycle: sensor permission, source selection, ingestion and autosave."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Optional
import structlog

from .errors import InvalidSampleError, SensorPermissionDenied
from .models import PermissionStatus, Sample, StepState
from .persistence import AutoSaver, SummaryStore
from .sample_sources import SampleSource, SimulatedSampleSource
from .step_detector import StepDetector, StateListener


logger = structlog.get_logger(__name__)


@dataclass(eq=False)
class TrackingHandle:
    """Handle of one tracking session, returned by start() and accepted by stop()."""

    started_at: datetime = field(default_factory=datetime.now)
    active: bool = True
    source: Optional[SampleSource] = None
    simulated: bool = False


class StepTracker:
    """
    Runs a StepDetector against a sample source.

    The primary source is used when sensor permission is granted; otherwise
    the simulated fallback keeps the rest of the system fed with plausible
    data. Samples are processed in arrival order on the event loop.
    """

    def __init__(
        self,
        detector: Optional[StepDetector] = None,
        source: Optional[SampleSource] = None,
        fallback: Optional[SampleSource] = None,
        store: Optional[SummaryStore] = None,
        user_id: Optional[str] = None,
        autosave_interval: Optional[float] = None,
    ):
        """
        Initialize the tracker.

        Args:
            detector: Step detector, defaults to a detector with the default profile
            source: Primary sample source, defaults to the simulated source
            fallback: Source used when the primary one is denied or unavailable
            store: Optional summary store for periodic autosave
            user_id: User whose daily summary is saved
            autosave_interval: Seconds between autosaves
        """
        self.detector = detector or StepDetector()
        self.fallback = fallback or SimulatedSampleSource()
        self.source = source or self.fallback
        self.permission_status: Optional[PermissionStatus] = None
        self.dropped_samples = 0
        self._handle: Optional[TrackingHandle] = None

        self.autosaver = None
        if store is not None:
            self.autosaver = AutoSaver(store, user_id, self.get_state, interval=autosave_interval)

    @property
    def is_tracking(self) -> bool:
        return self._handle is not None and self._handle.active

    @property
    def handle(self) -> Optional[TrackingHandle]:
        return self._handle

    def get_state(self) -> StepState:
        return self.detector.get_state()

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Register a listener called on every state update."""
        return self.detector.subscribe(listener)

    async def check_permission(self) -> PermissionStatus:
        """Query the primary source's permission status without tracking."""
        self.permission_status = await self._request_permission()
        return self.permission_status

    async def start(self) -> TrackingHandle:
        """
        Start tracking.

        Returns:
            Handle of the new session. If stop() is called while the
            permission request is pending, the handle comes back inactive
            and no source is subscribed.
        """
        if self.is_tracking:
            self.stop()

        handle = TrackingHandle()
        self._handle = handle

        status = await self._request_permission()
        if not handle.active:
            logger.info("start_cancelled", permission=status)
            return handle
        self.permission_status = status

        if status == 'granted':
            handle.source = self.source
        else:
            logger.warning("sensor_unavailable_using_simulation", permission=status)
            handle.source = self.fallback
            handle.simulated = True

        self.detector.begin_session()
        self._subscribe(handle)
        if self.autosaver is not None:
            self.autosaver.start()

        logger.info("tracking_started", permission=status, simulated=handle.simulated)
        return handle

    def stop(self, handle: Optional[TrackingHandle] = None):
        """
        Stop tracking. The step state is kept.

        Args:
            handle: Session to stop, defaults to the current one
        """
        handle = handle or self._handle
        if handle is None:
            return

        handle.active = False
        current = self._handle
        # A stale handle must not unsubscribe a source the current session shares
        if handle.source is not None and (
            handle is current or current is None or handle.source is not current.source
        ):
            handle.source.unsubscribe()
        if handle is current:
            self._handle = None
            if self.autosaver is not None:
                self.autosaver.stop()
        logger.info("tracking_stopped", steps=self.get_state().steps)

    def reset(self):
        """Zero the step state. Tracking continues if it was running."""
        self.detector.reset()

    async def _request_permission(self) -> PermissionStatus:
        try:
            return await self.source.request_permission()
        except SensorPermissionDenied:
            return 'denied'
        except Exception:
            logger.exception("permission_request_failed")
            return 'unavailable'

    def _subscribe(self, handle: TrackingHandle):
        handle.source.subscribe(
            lambda sample: self._on_sample(handle, sample),
            on_error=lambda error: self._on_source_failed(handle, error),
        )

    def _on_source_failed(self, handle: TrackingHandle, error: BaseException):
        """Switch a failed session to the simulated fallback, or stop it if that failed too."""
        if not handle.active or handle is not self._handle:
            return
        handle.source.unsubscribe()
        if handle.simulated or handle.source is self.fallback:
            logger.error("fallback_source_failed", error=str(error))
            self.stop(handle)
            return

        logger.warning("sensor_failed_using_simulation", error=str(error))
        handle.source = self.fallback
        handle.simulated = True
        self.detector.begin_session()
        self._subscribe(handle)

    def _on_sample(self, handle: TrackingHandle, sample: Sample):
        # Late callbacks from a stopped session are discarded
        if not handle.active or handle is not self._handle:
            return
        try:
            self.detector.ingest(sample)
        except InvalidSampleError as e:
            self.dropped_samples += 1
            logger.warning("invalid_sample_dropped", error=str(e))
