"""Adaptive threshold and gravity baseline calibration."""

from typing import Sequence
import numpy as np

from .config import DetectorConfig


class AdaptiveCalibrator:
    """
    Periodically re-estimates the gravity baseline and the peak threshold.

    A fixed threshold fails across users, devices and carry positions, so the
    threshold follows the recent signal statistics. The baseline tracks the
    mean magnitude during a warm-up period and is frozen afterwards.
    """

    def __init__(self, config: DetectorConfig):
        self.config = config
        self.reset()

    def reset(self):
        """Restore the initial baseline and threshold."""
        self.baseline = self.config.GRAVITY
        self.threshold = self.config.INITIAL_THRESHOLD
        self.calibration_sample_count = 0
        self.sample_count = 0

    @property
    def baseline_converged(self) -> bool:
        return self.calibration_sample_count >= self.config.CALIBRATION_SAMPLES

    def on_sample(self, magnitudes: Sequence[float]) -> bool:
        """
        Count an ingested sample and recalibrate every CALIBRATION_INTERVAL samples.

        Args:
            magnitudes: Raw magnitudes of the sample history, oldest first

        Returns:
            True if a recalibration ran
        """
        self.sample_count += 1
        if self.sample_count % self.config.CALIBRATION_INTERVAL != 0:
            return False
        return self.recalibrate(magnitudes)

    def recalibrate(self, magnitudes: Sequence[float]) -> bool:
        """
        Recompute baseline and threshold from the most recent magnitudes.

        Args:
            magnitudes: Raw magnitudes, oldest first

        Returns:
            False if there were too few magnitudes for stable statistics
        """
        if len(magnitudes) < self.config.CALIBRATION_MIN_SAMPLES:
            return False

        recent = np.asarray(list(magnitudes)[-self.config.HISTORY_SIZE:], dtype=float)

        if not self.baseline_converged:
            self.baseline = float(np.mean(recent))
            self.calibration_sample_count += self.config.CALIBRATION_INTERVAL

        # Statistics of the gravity-removed signal, the same quantity the
        # threshold is compared against. Raw magnitudes always clamp to the max.
        high_pass = np.abs(recent - self.baseline)
        threshold = np.mean(high_pass) + self.config.THRESHOLD_STD_FACTOR * np.std(high_pass)
        self.threshold = float(np.clip(threshold, self.config.THRESHOLD_MIN, self.config.THRESHOLD_MAX))
        return True
