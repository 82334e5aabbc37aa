"""Real-time step detection and activity classification from accelerometer streams."""

from .config import DetectorConfig, TrackingConfig, UIConfig, UserProfile
from .errors import InvalidSampleError, PersistenceFailure, SensorPermissionDenied, StepStreamingError
from .models import ActivityType, PermissionStatus, Sample, StepState
from .step_detector import StepDetector
from .sample_sources import CallbackSampleSource, RecordedSampleSource, SampleSource, SimulatedSampleSource
from .data_loader import AccelDataLoader
from .persistence import (
    AutoSaver,
    DailySummary,
    InMemorySummaryStore,
    ParquetSummaryStore,
    SummaryStore,
    summarize_history
)
from .tracker import StepTracker, TrackingHandle
from .logging_setup import setup_logging


__all__ = [
    'DetectorConfig',
    'TrackingConfig',
    'UIConfig',
    'UserProfile',
    'StepStreamingError',
    'InvalidSampleError',
    'PersistenceFailure',
    'SensorPermissionDenied',
    'ActivityType',
    'PermissionStatus',
    'Sample',
    'StepState',
    'StepDetector',
    'SampleSource',
    'SimulatedSampleSource',
    'RecordedSampleSource',
    'CallbackSampleSource',
    'AccelDataLoader',
    'AutoSaver',
    'DailySummary',
    'SummaryStore',
    'InMemorySummaryStore',
    'ParquetSummaryStore',
    'summarize_history',
    'StepTracker',
    'TrackingHandle',
    'setup_logging'
]
