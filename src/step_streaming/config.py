"""Configuration settings for step streaming."""

from pathlib import Path
from dataclasses import dataclass, field


@dataclass
class DetectorConfig:
    """Tuning constants for the step detection engine."""

    HISTORY_SIZE: int = 100  # Raw samples kept for calibration
    SMOOTHING_SIZE: int = 5  # High-pass magnitudes fed to the low-pass filter
    STEP_LOG_SIZE: int = 20  # Step timestamps kept for pace
    PACE_WINDOW: int = 10  # Most recent step timestamps used for pace
    SMOOTHING_ALPHA: float = 0.85
    LOCAL_MAX_WINDOW: int = 2  # Prior samples the current one must exceed

    # Peak detection
    INITIAL_THRESHOLD: float = 1.2  # m/s^2 above baseline
    THRESHOLD_MIN: float = 0.8
    THRESHOLD_MAX: float = 2.5
    THRESHOLD_STD_FACTOR: float = 1.2
    PEAK_RATIO: float = 0.6  # Fraction of the previous peak a new one must reach
    MIN_STEP_INTERVAL_MS: int = 250  # Caps cadence at 240 steps/min
    MAX_STEP_INTERVAL_MS: int = 2000  # Longer gaps mean the walker stopped

    # Calibration
    GRAVITY: float = 9.8  # Initial baseline (m/s^2)
    CALIBRATION_INTERVAL: int = 10  # Recalibrate every N samples
    CALIBRATION_MIN_SAMPLES: int = 20
    CALIBRATION_SAMPLES: int = 100  # Baseline is frozen after this many


@dataclass
class UserProfile:
    """Body measurements used for stride length and calories."""

    weight_kg: float = 70.0
    height_cm: float = 170.0


@dataclass
class TrackingConfig:
    """Configuration for sample sources, tracking and persistence."""

    DATA_DIR: Path = Path("data/recordings")
    SUMMARY_PATH: Path = Path("data/daily_summaries.parquet")
    SIMULATION_INTERVAL_MS: int = 100  # Synthetic sample period
    SIMULATED_CADENCE: float = 70.0  # Steps/min of the synthetic walker
    REPLAY_SPEED: float = 1.0  # Playback speed multiplier (1 = real-time)
    AUTOSAVE_INTERVAL: float = 30.0  # Seconds between summary upserts
    DAILY_STEP_GOAL: int = 10000
    HISTORY_DAYS: int = 7
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "console"  # 'console' or 'json'


@dataclass
class UIConfig:
    """Configuration for UI elements and styling."""

    CHART_HEIGHT: int = 350
    CHART_LINE_WIDTH: float = 1.5
    CHART_MARGIN: dict = field(default_factory=lambda: dict(l=50, r=20, t=30, b=50))
    CHART_COLORS: dict = field(default_factory=lambda: {
        'magnitude': '#d68032',   # Orange
        'threshold': '#2a9d8f',   # Teal
        'history': '#264653'
    })
    CHART_WINDOW_SECONDS: float = 10.0  # Visible span of the live chart
    REFRESH_INTERVAL: float = 0.5  # Seconds between dashboard redraws
    DOWNSAMPLE_FACTOR: int = 2  # Display every Nth point
