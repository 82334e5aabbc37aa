"""Real-time step detection module."""

from collections import deque
from typing import Callable, List, Mapping, Optional, Union
import structlog

from .activity import calculate_calories, calculate_pace, classify_activity, stride_length
from .calibration import AdaptiveCalibrator
from .config import DetectorConfig, UserProfile
from .models import Sample, StepState
from .signal_filters import SmoothingWindow, calculate_magnitude, remove_gravity


logger = structlog.get_logger(__name__)

StateListener = Callable[[StepState], None]


class StepDetector:
    """
    Detects steps in real-time from 3-axis accelerometer samples.

    Each sample goes through gravity removal, exponential smoothing and a
    peak detector with an adaptive threshold. Every confirmed step replaces
    the aggregate StepState snapshot and notifies subscribers.
    """

    def __init__(
        self,
        profile: Optional[UserProfile] = None,
        config: Optional[DetectorConfig] = None,
    ):
        """
        Initialize the step detector.

        Args:
            profile: User weight and height, defaults to 70 kg / 170 cm
            config: Detection constants, defaults to DetectorConfig()
        """
        self.config = config or DetectorConfig()
        self.profile = profile or UserProfile()
        self.calibrator = AdaptiveCalibrator(self.config)
        self._listeners: List[StateListener] = []
        self._init_state()

    def _init_state(self):
        """Initialize buffers, peak detector state and the aggregate."""
        # Sample history and the matching raw magnitudes
        self.history = deque(maxlen=self.config.HISTORY_SIZE)
        self.magnitudes = deque(maxlen=self.config.HISTORY_SIZE)

        # Filtering state
        self.smoothing = SmoothingWindow(self.config.SMOOTHING_SIZE, self.config.SMOOTHING_ALPHA)
        self.recent_high_pass = deque(maxlen=self.config.LOCAL_MAX_WINDOW)
        self.last_smoothed = 0.0

        # Peak detection state
        self.step_log = deque(maxlen=self.config.STEP_LOG_SIZE)
        self.last_peak_magnitude: Optional[float] = None
        self.last_step_time: Optional[float] = None
        self.last_sample_time: Optional[float] = None
        self.calibrator.reset()

        # Totals accrued under a previous profile
        self._steps_offset = 0
        self._distance_offset = 0.0
        self._calorie_offset = 0.0

        self._state = StepState()

    @property
    def threshold(self) -> float:
        return self.calibrator.threshold

    @property
    def baseline_acceleration(self) -> float:
        return self.calibrator.baseline

    @property
    def step_times(self) -> List[float]:
        """Timestamps (ms) of the most recent confirmed steps."""
        return list(self.step_log)

    def get_state(self) -> StepState:
        """Return the current aggregate snapshot."""
        return self._state

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """
        Register a listener called with every new StepState.

        Returns:
            Function that removes the listener
        """
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def reset(self):
        """Zero the aggregate and clear all buffers and detector state."""
        self._init_state()
        logger.info("detector_reset")
        self._notify()

    def begin_session(self):
        """
        Mark the start of a new sample stream.

        A new source may restart its clock, so timestamp ordering, the step
        log and the peak memory are cleared. Totals and calibration are kept.
        """
        self.last_sample_time = None
        self.recent_high_pass.clear()
        self.step_log.clear()
        self._clear_peak_memory()
        logger.debug("session_started", steps=self._state.steps)

    def update_profile(self, weight_kg: Optional[float] = None, height_cm: Optional[float] = None):
        """
        Change the user profile for steps taken from now on.

        Distance and calories already accrued are kept as they are.
        """
        self._steps_offset = self._state.steps
        self._distance_offset = self._state.distance_meters
        self._calorie_offset = self._state.calories_burned
        self.profile = UserProfile(
            weight_kg=self.profile.weight_kg if weight_kg is None else weight_kg,
            height_cm=self.profile.height_cm if height_cm is None else height_cm,
        )

    def ingest(self, sample: Union[Sample, Mapping]) -> bool:
        """
        Process a new sample.

        Args:
            sample: Sample, or a sensor payload mapping with x, y, z and timestamp

        Returns:
            True if the sample confirmed a step

        Raises:
            InvalidSampleError: If the sample is malformed
        """
        if not isinstance(sample, Sample):
            sample = Sample.from_mapping(sample)
        sample.validate()

        if self.last_sample_time is not None and sample.timestamp < self.last_sample_time:
            logger.warning(
                "out_of_order_sample_rejected",
                timestamp=sample.timestamp,
                last_timestamp=self.last_sample_time,
            )
            return False

        # STEP 1: Buffer the sample
        magnitude = calculate_magnitude(sample.x, sample.y, sample.z)
        self.history.append(sample)
        self.magnitudes.append(magnitude)

        # STEP 2: Periodic baseline and threshold calibration
        self.calibrator.on_sample(self.magnitudes)

        # STEP 3: Peak detection
        is_step = self._detect_step(magnitude, sample.timestamp)
        self.last_sample_time = sample.timestamp

        # STEP 4: Aggregate update
        if is_step:
            self._update_state()

        return is_step

    def _detect_step(self, magnitude: float, timestamp: float) -> bool:
        """Run the reset-pending / cooldown / candidate state machine for one sample."""
        max_gap = self.config.MAX_STEP_INTERVAL_MS
        stopped = (
            (self.last_step_time is not None and timestamp - self.last_step_time > max_gap)
            or (self.last_sample_time is not None and timestamp - self.last_sample_time > max_gap)
        )
        if stopped:
            self._clear_peak_memory()

        high_pass = remove_gravity(magnitude, self.calibrator.baseline)
        smoothed = self.smoothing.filter_sample(high_pass)
        prior = list(self.recent_high_pass)
        self.recent_high_pass.append(high_pass)
        self.last_smoothed = smoothed

        # Cooldown: too soon after the last step
        if self.last_step_time is not None and timestamp - self.last_step_time < self.config.MIN_STEP_INTERVAL_MS:
            return False

        if not self._is_peak(smoothed, prior):
            return False

        self.last_peak_magnitude = smoothed
        self.last_step_time = timestamp
        self.step_log.append(timestamp)
        return True

    def _is_peak(self, smoothed: float, prior: List[float]) -> bool:
        """Check threshold, local maximum and previous-peak ratio conditions."""
        if smoothed <= self.calibrator.threshold:
            return False

        # Strict local maximum against the prior high-pass magnitudes
        if len(prior) < self.config.LOCAL_MAX_WINDOW:
            return False
        if any(smoothed <= value for value in prior):
            return False

        # Residual vibration after a strong footfall is weaker than a real step
        if self.last_peak_magnitude is not None:
            return smoothed >= self.config.PEAK_RATIO * self.last_peak_magnitude

        return True

    def _clear_peak_memory(self):
        """Forget smoothing and peak history after the walker stopped."""
        self.smoothing.reset()
        self.last_peak_magnitude = None
        self.last_step_time = None

    def _update_state(self):
        """Recompute the whole aggregate after a confirmed step."""
        steps = self._state.steps + 1
        pace = calculate_pace(self.step_log, self.config.PACE_WINDOW)
        activity = classify_activity(pace)

        new_steps = steps - self._steps_offset
        distance = self._distance_offset + new_steps * stride_length(self.profile.height_cm)
        calories = self._calorie_offset + calculate_calories(new_steps, activity, self.profile.weight_kg)

        self._state = StepState(
            steps=steps,
            distance_meters=distance,
            calories_burned=calories,
            pace_steps_per_minute=pace,
            activity_type=activity,
        )
        logger.debug("step_confirmed", steps=steps, pace=round(pace, 1), activity=activity)
        self._notify()

    def _notify(self):
        state = self._state
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception:
                logger.exception("state_listener_failed", listener=repr(listener))
