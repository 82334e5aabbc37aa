"""Cadence, activity classification and energy estimates."""

from typing import Sequence

from .models import ActivityType


# Metabolic equivalents per activity
MET = {
    'idle': 1.0,
    'walking': 3.5,
    'jogging': 7.0,
    'running': 10.0,
}

# Assumed cadence (steps/min) used to turn a step count into a duration.
# Idle has no cadence and falls back to the walking value.
ASSUMED_CADENCE = {
    'walking': 100,
    'jogging': 140,
    'running': 180,
}
DEFAULT_CADENCE = 100

# Upper pace bound (exclusive) of each activity, in steps/min
ACTIVITY_PACE_LIMITS = [
    (20, 'idle'),
    (80, 'walking'),
    (120, 'jogging'),
]


def stride_length(height_cm: float) -> float:
    """Anthropometric stride estimate in meters."""
    return height_cm * 0.415 / 100


def calculate_pace(step_times: Sequence[float], window: int = 10) -> float:
    """
    Current pace in steps per minute.

    Args:
        step_times: Step timestamps in ms, oldest first
        window: Number of most recent timestamps to use

    Returns:
        Number of recent steps divided by their time span in minutes, or 0
    """
    recent = list(step_times)[-window:]
    if len(recent) < 2:
        return 0.0

    span_minutes = (recent[-1] - recent[0]) / 1000 / 60
    return len(recent) / span_minutes if span_minutes > 0 else 0.0


def classify_activity(pace: float) -> ActivityType:
    """Classify activity from pace alone."""
    for limit, activity in ACTIVITY_PACE_LIMITS:
        if pace < limit:
            return activity
    return 'running'


def calculate_calories(steps: int, activity: ActivityType, weight_kg: float) -> float:
    """
    Estimate calories burned as MET * weight (kg) * duration (h).

    The duration is approximated from the step count and a fixed cadence for
    the activity, not from the measured pace.
    """
    cadence = ASSUMED_CADENCE.get(activity, DEFAULT_CADENCE)
    duration_hours = steps / cadence / 60
    return MET[activity] * weight_kg * duration_hours
