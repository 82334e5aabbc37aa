"""Offline replay of sample sequences through the streaming detector."""

from typing import Iterable, Optional
import polars as pl

from .models import Sample
from .signal_filters import reference_step_count
from .step_detector import StepDetector


def replay_samples(samples: Iterable[Sample], detector: Optional[StepDetector] = None) -> pl.DataFrame:
    """
    Feed samples through a detector and record its internal signals.

    Args:
        samples: Samples in timestamp order
        detector: Detector to use, defaults to a fresh one

    Returns:
        DataFrame with one row per sample: timestamp, magnitude, smoothed,
        threshold, baseline, is_step and the running step count
    """
    detector = detector or StepDetector()
    rows = []
    for sample in samples:
        is_step = detector.ingest(sample)
        rows.append({
            'timestamp': float(sample.timestamp),
            'magnitude': detector.magnitudes[-1],
            'smoothed': detector.last_smoothed,
            'threshold': detector.threshold,
            'baseline': detector.baseline_acceleration,
            'is_step': is_step,
            'steps': detector.get_state().steps,
        })
    return pl.DataFrame(rows, schema={
        'timestamp': pl.Float64,
        'magnitude': pl.Float64,
        'smoothed': pl.Float64,
        'threshold': pl.Float64,
        'baseline': pl.Float64,
        'is_step': pl.Boolean,
        'steps': pl.Int64,
    })


def compare_with_reference(trace: pl.DataFrame) -> dict:
    """
    Compare the streaming step count of a replay with the offline reference.

    Args:
        trace: Output of replay_samples

    Returns:
        Dictionary with both counts and the sampling rate estimate
    """
    if trace.height < 2:
        return {'streaming_steps': int(trace['is_step'].sum()), 'reference_steps': 0, 'sampling_rate': None}

    duration_s = (trace['timestamp'][-1] - trace['timestamp'][0]) / 1000
    fs = (trace.height - 1) / duration_s if duration_s > 0 else None
    reference = reference_step_count(trace['magnitude'].to_numpy(), fs) if fs else 0
    return {
        'streaming_steps': int(trace['is_step'].sum()),
        'reference_steps': reference,
        'sampling_rate': fs,
    }
