"""
Signal filtering for real-time accelerometer step detection.

This module provides the filtering stages used by the streaming detector:
1. Magnitude of the acceleration vector
2. Gravity removal (high-pass against a calibrated baseline)
3. Exponential low-pass smoothing over a short window

It also provides an offline Butterworth band-pass + peak picking reference,
used when replaying recorded sessions to tune the streaming detector.
"""

import math
from collections import deque
from typing import Iterable, Optional, Sequence
import numpy as np
from scipy.signal import butter, sosfiltfilt, find_peaks


def calculate_magnitude(x: float, y: float, z: float) -> float:
    """Euclidean norm of the acceleration vector."""
    return math.sqrt(x * x + y * y + z * z)


def remove_gravity(magnitude: float, baseline: float) -> float:
    """
    Remove the gravity baseline from a magnitude.

    The absolute value keeps the result centred near zero at rest and
    positive during footfall impulses.
    """
    return abs(magnitude - baseline)


def exponential_smooth(values: Iterable[float], alpha: float = 0.85) -> float:
    """
    Exponential low-pass filter over a short window.

    f[0] = raw[0], f[i] = alpha * raw[i] + (1 - alpha) * f[i-1]

    Args:
        values: Window of raw values, oldest first
        alpha: Weight of the newest value

    Returns:
        Filtered value for the newest sample, 0.0 for an empty window
    """
    filtered = None
    for value in values:
        if filtered is None:
            filtered = value
        else:
            filtered = alpha * value + (1 - alpha) * filtered
    return 0.0 if filtered is None else filtered


class SmoothingWindow:
    """
    Fixed-size window of high-pass magnitudes feeding the exponential filter.

    Oldest values are evicted first once the window is full.
    """

    def __init__(self, window_size: int, alpha: float = 0.85):
        """
        Initialize smoothing window.

        Args:
            window_size: Number of values kept
            alpha: Exponential filter weight of the newest value
        """
        self.window_size = window_size
        self.alpha = alpha
        self.buffer = deque(maxlen=window_size)

    def filter_sample(self, sample: float) -> float:
        """
        Add a sample and return the smoothed value.

        Args:
            sample: High-pass magnitude

        Returns:
            Smoothed magnitude
        """
        self.buffer.append(sample)
        return exponential_smooth(self.buffer, self.alpha)

    def reset(self):
        """Reset filter state."""
        self.buffer.clear()

    def __len__(self) -> int:
        return len(self.buffer)


def reference_step_count(
    magnitudes: Sequence[float],
    fs: float,
    low_cut: float = 0.5,
    high_cut: float = 3.0,
    order: int = 2,
    min_step_interval: float = 0.25,
    min_height: Optional[float] = None,
) -> int:
    """
    Count steps offline with a zero-phase band-pass filter and peak picking.

    Walking and running footfalls fall between 0.5 and 3 Hz. filtfilt is
    non-causal, so this is only usable on complete recordings.

    Args:
        magnitudes: Acceleration magnitudes of the whole session
        fs: Sampling rate in Hz
        low_cut: Lower band edge in Hz
        high_cut: Upper band edge in Hz
        order: Butterworth order
        min_step_interval: Minimum spacing between peaks in seconds
        min_height: Minimum filtered peak height, defaults to the signal std

    Returns:
        Number of detected steps
    """
    signal = np.asarray(magnitudes, dtype=float)
    # sosfiltfilt needs more samples than its padding length
    if len(signal) < 3 * (2 * order + 1) * 2:
        return 0

    nyquist = fs / 2
    if nyquist <= high_cut:
        high_cut = nyquist * 0.9

    sos = butter(order, [low_cut, high_cut], btype='band', fs=fs, output='sos')
    filtered = sosfiltfilt(sos, signal - np.mean(signal))

    if min_height is None:
        min_height = float(np.std(filtered))
    if min_height == 0:
        return 0

    distance = max(1, int(min_step_interval * fs))
    peaks, _ = find_peaks(filtered, height=min_height, distance=distance)
    return int(len(peaks))
