"""Metrics display helpers for the step tracking UI."""

from typing import Optional, Tuple, Dict, Any, List

from .models import StepState


ACTIVITY_LABELS = {
    'running': ("🔴", "Running"),
    'jogging': ("🟠", "Jogging"),
    'walking': ("🟢", "Walking"),
    'idle': ("⚪", "Idle"),
}

PERMISSION_MESSAGES = {
    'granted': "Motion sensor active",
    'denied': "Motion permission denied, showing simulated data",
    'unavailable': "No motion sensor available, showing simulated data",
}


def get_activity_status(activity: str) -> Tuple[str, str]:
    """
    Emoji and label for an activity type.

    Args:
        activity: Activity type

    Returns:
        Tuple of (emoji, label)
    """
    return ACTIVITY_LABELS.get(activity, ACTIVITY_LABELS['idle'])


def goal_progress(steps: int, goal: int = 10000) -> float:
    """Percentage of the daily step goal reached, capped at 100."""
    if goal <= 0:
        return 100.0
    return min(100.0, steps / goal * 100)


def format_metric_value(value: Optional[float], unit: str, decimals: int = 1) -> str:
    """
    Format metric value with its unit.

    Args:
        value: The metric value to format
        unit: The unit string to append
        decimals: Number of decimals

    Returns:
        Formatted metric string, '--' when there is no value
    """
    if value is None:
        return "--"
    return f"{value:.{decimals}f}{unit}"


def format_distance(meters: float) -> str:
    """Meters below one kilometer, kilometers above."""
    if meters < 1000:
        return format_metric_value(meters, " m", 0)
    return format_metric_value(meters / 1000, " km", 2)


def display_step_metrics(placeholders: Dict[str, Any], state: StepState, goal: int,
                         tooltips: Dict[str, str]):
    """
    Display the aggregate step metrics.

    Args:
        placeholders: Dictionary of Streamlit placeholder objects
        state: Current step snapshot
        goal: Daily step goal
        tooltips: Tooltip text dictionary
    """
    placeholders['steps'].metric(
        "Steps", value=f"{state.steps:,}",
        delta=f"{goal_progress(state.steps, goal):.0f}% of goal", delta_color="off"
    )
    placeholders['distance'].metric("Distance", value=format_distance(state.distance_meters),
                                    help=tooltips['distance'])
    placeholders['calories'].metric("Calories", value=format_metric_value(state.calories_burned, " kcal"),
                                    help=tooltips['calories'])
    placeholders['pace'].metric("Pace (steps/min)", value=format_metric_value(state.pace_steps_per_minute, ""),
                                help=tooltips['pace'])

    emoji, label = get_activity_status(state.activity_type)
    placeholders['activity'].metric("Activity", value=f"{emoji} {label}", help=tooltips['activity'])
    placeholders['progress'].progress(int(goal_progress(state.steps, goal)))


def display_empty_metrics(placeholders: Dict[str, Any], tooltips: Dict[str, str]):
    """
    Display empty metric placeholders before tracking starts.

    Args:
        placeholders: Dictionary of Streamlit placeholder objects
        tooltips: Tooltip text dictionary
    """
    placeholders['steps'].metric("Steps", value="--")
    placeholders['distance'].metric("Distance", value="--", help=tooltips['distance'])
    placeholders['calories'].metric("Calories", value="--", help=tooltips['calories'])
    placeholders['pace'].metric("Pace (steps/min)", value="--", help=tooltips['pace'])
    placeholders['activity'].metric("Activity", value="--", help=tooltips['activity'])
    placeholders['progress'].progress(0)


def calculate_dynamic_x_range(times: List[float], window_duration: float,
                              fallback_start: float = 0.0) -> Tuple[float, float]:
    """
    Calculate dynamic x-axis range for scrolling window display.

    Args:
        times: Time values in seconds
        window_duration: Duration of the display window in seconds
        fallback_start: Fallback start time if no data available

    Returns:
        Tuple of (x_min, x_max)
    """
    if times:
        current_max_time = max(times)
        return current_max_time - window_duration, current_max_time
    return fallback_start, fallback_start + window_duration
