"""UI components for the Streamlit step tracking dashboard."""

import streamlit as st
from typing import Dict, List, Optional, Tuple

from .config import UIConfig, UserProfile
from .metrics_display import PERMISSION_MESSAGES


SIMULATION_OPTION = "Simulated walker"


class StepTrackerUI:
    """Handles rendering of UI components for the step tracking dashboard."""

    def __init__(self, ui_config: UIConfig):
        """
        Initialize the UI component manager.

        Args:
            ui_config: UI configuration object
        """
        self.config = ui_config

    def render_header(self):
        """Render app title."""
        st.title("Real-time step tracking")

    def render_profile_inputs(self, default: Optional[UserProfile] = None) -> UserProfile:
        """
        Render weight and height inputs in the sidebar.

        Args:
            default: Initial profile values

        Returns:
            Profile entered by the user
        """
        default = default or UserProfile()
        st.sidebar.subheader("Profile")
        weight = st.sidebar.number_input("Weight (kg)", min_value=20.0, max_value=300.0,
                                         value=float(default.weight_kg), step=1.0)
        height = st.sidebar.number_input("Height (cm)", min_value=80.0, max_value=250.0,
                                         value=float(default.height_cm), step=1.0,
                                         help="Used to estimate stride length")
        return UserProfile(weight_kg=weight, height_cm=height)

    def render_source_selector(self, sessions: List[str]) -> str:
        """
        Render the sample source dropdown.

        Args:
            sessions: Available recorded sessions

        Returns:
            Selected session name, or SIMULATION_OPTION
        """
        return st.selectbox("Sample source", [SIMULATION_OPTION] + sessions, index=0)

    def render_controls(self) -> Tuple[bool, bool, bool]:
        """
        Render tracking control buttons.

        Returns:
            Tuple of (start_clicked, stop_clicked, reset_clicked)
        """
        col1, col2, col3 = st.columns([1, 1, 1])
        with col1:
            start = st.button("▶ Start")
        with col2:
            stop = st.button("⏹ Stop")
        with col3:
            reset = st.button("↺ Reset")
        return start, stop, reset

    def render_permission_status(self, placeholder, status: Optional[str]):
        """Show the sensor permission status in a placeholder."""
        if status is None:
            placeholder.info("Ready. Click 'Start' to begin tracking.")
        elif status == 'granted':
            placeholder.success(PERMISSION_MESSAGES[status])
        else:
            placeholder.warning(PERMISSION_MESSAGES[status])

    def create_metric_placeholders(self) -> Dict:
        """
        Create placeholders for the step metrics.

        Returns:
            Dictionary of Streamlit placeholders keyed by metric
        """
        col1, col2, col3 = st.columns(3)
        with col1:
            steps = st.empty()
            pace = st.empty()
        with col2:
            distance = st.empty()
            activity = st.empty()
        with col3:
            calories = st.empty()
        progress = st.empty()

        return {
            'steps': steps,
            'distance': distance,
            'calories': calories,
            'pace': pace,
            'activity': activity,
            'progress': progress,
        }

    def create_status_placeholder(self) -> st.delta_generator.DeltaGenerator:
        """
        Create a placeholder for status messages.

        Returns:
            Streamlit empty placeholder
        """
        return st.empty()
