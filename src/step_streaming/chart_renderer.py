"""Chart rendering utilities for step tracking visualization."""

import plotly.graph_objects as go
from typing import List, Optional, Tuple

from .config import UIConfig
from .persistence import DailySummary


class ChartRenderer:
    """Handles creation and styling of Plotly charts for step data."""

    def __init__(self, ui_config: UIConfig):
        """
        Initialize the chart renderer.

        Args:
            ui_config: UI configuration object
        """
        self.config = ui_config

    def create_magnitude_chart(
        self,
        times: List[float],
        values: List[float],
        threshold: Optional[float] = None,
        step_times: Optional[List[float]] = None,
        x_range: Optional[Tuple[float, float]] = None
    ) -> go.Figure:
        """
        Create a chart of the gravity-removed magnitude with step markers.

        Args:
            times: Time values in seconds (x-axis)
            values: High-pass magnitudes (y-axis)
            threshold: Current detection threshold, drawn as a horizontal line
            step_times: Times in seconds of confirmed steps
            x_range: Optional x-axis range

        Returns:
            Plotly Figure object
        """
        fig = go.Figure()

        fig.add_trace(go.Scatter(
            x=times,
            y=values,
            mode='lines',
            line=dict(color=self.config.CHART_COLORS['magnitude'], width=self.config.CHART_LINE_WIDTH),
            name="Magnitude"
        ))

        if threshold is not None and times:
            fig.add_trace(go.Scatter(
                x=[min(times), max(times)],
                y=[threshold, threshold],
                mode='lines',
                line=dict(color=self.config.CHART_COLORS['threshold'], width=1, dash='dash'),
                name="Threshold"
            ))

        # Step markers at the closest plotted sample
        if step_times and times:
            time_min, time_max = min(times), max(times)
            marker_x, marker_y = [], []
            for t in step_times:
                if time_min <= t <= time_max:
                    idx = min(range(len(times)), key=lambda i: abs(times[i] - t))
                    marker_x.append(times[idx])
                    marker_y.append(values[idx])
            if marker_x:
                fig.add_trace(go.Scatter(
                    x=marker_x,
                    y=marker_y,
                    mode='markers',
                    marker=dict(symbol='circle', size=7, color='rgba(0, 0, 0, 0.6)', line=dict(width=0)),
                    name="Step",
                    hoverinfo='skip'
                ))

        fig.update_layout(
            height=self.config.CHART_HEIGHT,
            margin=self.config.CHART_MARGIN,
            xaxis_title="Time (s)",
            yaxis_title="Acceleration (m/s²)",
            showlegend=False,
            transition={'duration': 0},
            uirevision='constant',
            hovermode=False,
            dragmode=False,
            plot_bgcolor='white',
            paper_bgcolor='white',
        )
        if x_range is not None:
            fig.update_xaxes(range=list(x_range))
        fig.update_xaxes(fixedrange=True, showgrid=True, gridcolor='lightgray')
        fig.update_yaxes(fixedrange=True, showgrid=True, gridcolor='lightgray', rangemode='tozero')

        return fig

    def create_history_chart(self, summaries: List[DailySummary]) -> go.Figure:
        """
        Create a bar chart of daily step totals.

        Args:
            summaries: Daily summaries, oldest first

        Returns:
            Plotly Figure object
        """
        fig = go.Figure()
        fig.add_trace(go.Bar(
            x=[s.summary_date.strftime('%b %d') for s in summaries],
            y=[s.total_steps for s in summaries],
            marker_color=self.config.CHART_COLORS['history'],
            name="Steps"
        ))
        fig.update_layout(
            height=self.config.CHART_HEIGHT,
            margin=self.config.CHART_MARGIN,
            yaxis_title="Steps",
            showlegend=False,
            plot_bgcolor='white',
            paper_bgcolor='white',
        )
        return fig

    @staticmethod
    def downsample_data(times: List[float], values: List[float], factor: int) -> Tuple[List[float], List[float]]:
        """Keep every `factor`-th point to reduce rendering load."""
        return times[::factor], values[::factor]
