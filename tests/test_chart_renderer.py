"""Tests for the Plotly chart builders."""

from datetime import date

from step_streaming import DailySummary, UIConfig
from step_streaming.chart_renderer import ChartRenderer


def test_magnitude_chart_with_threshold_and_steps():
    renderer = ChartRenderer(UIConfig())
    fig = renderer.create_magnitude_chart(
        [0.0, 0.1, 0.2, 0.3], [0.0, 2.0, 0.1, 0.0],
        threshold=1.2, step_times=[0.11, 5.0], x_range=(-9.7, 0.3)
    )

    assert len(fig.data) == 3
    assert list(fig.data[1].y) == [1.2, 1.2]
    assert list(fig.data[2].x) == [0.1]
    assert list(fig.data[2].y) == [2.0]
    assert list(fig.layout.xaxis.range) == [-9.7, 0.3]


def test_magnitude_chart_signal_only():
    fig = ChartRenderer(UIConfig()).create_magnitude_chart([0.0, 0.1], [0.0, 0.5])

    assert len(fig.data) == 1
    assert fig.layout.height == UIConfig().CHART_HEIGHT


def test_history_chart():
    summaries = [
        DailySummary("alice", date(2026, 3, 9), 4000, 150.0),
        DailySummary("alice", date(2026, 3, 10), 6500, 240.0),
    ]
    fig = ChartRenderer(UIConfig()).create_history_chart(summaries)

    assert list(fig.data[0].x) == ["Mar 09", "Mar 10"]
    assert list(fig.data[0].y) == [4000, 6500]


def test_downsample():
    times, values = ChartRenderer.downsample_data([0, 1, 2, 3, 4], [5, 6, 7, 8, 9], 2)

    assert times == [0, 2, 4]
    assert values == [5, 7, 9]
