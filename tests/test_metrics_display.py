"""Tests for metric formatting helpers."""

from unittest.mock import MagicMock

import pytest

from step_streaming import StepState
from step_streaming.metrics_display import (
    calculate_dynamic_x_range,
    display_empty_metrics,
    display_step_metrics,
    format_distance,
    format_metric_value,
    get_activity_status,
    goal_progress
)


TOOLTIPS = {'distance': "d", 'calories': "c", 'pace': "p", 'activity': "a"}
METRICS = ['steps', 'distance', 'calories', 'pace', 'activity', 'progress']


def test_goal_progress():
    assert goal_progress(0) == 0.0
    assert goal_progress(5000) == 50.0
    assert goal_progress(25000) == 100.0
    assert goal_progress(10, goal=0) == 100.0


def test_format_metric_value():
    assert format_metric_value(None, " m") == "--"
    assert format_metric_value(3.14159, " kcal") == "3.1 kcal"
    assert format_metric_value(62.5, "", 0) == "62"


def test_format_distance():
    assert format_distance(512.4) == "512 m"
    assert format_distance(1500.0) == "1.50 km"


def test_activity_status():
    assert get_activity_status('running') == ("🔴", "Running")
    assert get_activity_status('unknown') == ("⚪", "Idle")


def test_dynamic_x_range():
    assert calculate_dynamic_x_range([1.0, 5.0, 12.0], 10.0) == (2.0, 12.0)
    assert calculate_dynamic_x_range([], 10.0) == (0.0, 10.0)
    assert calculate_dynamic_x_range([], 5.0, fallback_start=3.0) == (3.0, 8.0)


def test_display_step_metrics():
    placeholders = {name: MagicMock() for name in METRICS}
    state = StepState(steps=2500, distance_meters=1763.75, calories_burned=102.1,
                      pace_steps_per_minute=98.0, activity_type='jogging')

    display_step_metrics(placeholders, state, 10000, TOOLTIPS)

    placeholders['steps'].metric.assert_called_once()
    assert placeholders['steps'].metric.call_args.kwargs['value'] == "2,500"
    assert placeholders['distance'].metric.call_args.kwargs['value'] == "1.76 km"
    assert placeholders['activity'].metric.call_args.kwargs['value'] == "🟠 Jogging"
    placeholders['progress'].progress.assert_called_once_with(25)


@pytest.mark.parametrize("name", METRICS[:-1])
def test_display_empty_metrics(name):
    placeholders = {n: MagicMock() for n in METRICS}

    display_empty_metrics(placeholders, TOOLTIPS)

    assert placeholders[name].metric.call_args.kwargs['value'] == "--"
