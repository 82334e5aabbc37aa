"""
Streamlit dashboard for real-time step tracking.
Streams accelerometer samples from a recorded session (or the simulated walker)
through the step detector and shows live metrics, the filtered signal and the
daily history.
"""
import asyncio
import streamlit as st

from step_streaming import (
    TrackingConfig,
    UIConfig,
    AccelDataLoader,
    ParquetSummaryStore,
    PersistenceFailure,
    RecordedSampleSource,
    SimulatedSampleSource,
    StepDetector,
    StepTracker,
    setup_logging,
    summarize_history
)
from step_streaming.chart_renderer import ChartRenderer
from step_streaming.metrics_display import (
    calculate_dynamic_x_range,
    display_empty_metrics,
    display_step_metrics
)
from step_streaming.signal_filters import remove_gravity
from step_streaming.ui_components import SIMULATION_OPTION, StepTrackerUI


# Constants
TOOLTIPS = {
    'distance': "Steps × stride length. Stride is estimated as 41.5% of your height.",
    'calories': "MET × weight × duration. Duration is estimated from the step count.",
    'pace': "Steps per minute over the last 10 steps. Walking < 80, jogging < 120, running above.",
    'activity': "Classified from pace alone.",
}

USER_ID = "local-user"


# Initialize configurations and components
tracking_config = TrackingConfig()
ui_config = UIConfig()

st.set_page_config(page_title="Step tracking")
setup_logging(tracking_config)
ui = StepTrackerUI(ui_config)
data_loader = AccelDataLoader(tracking_config.DATA_DIR)
renderer = ChartRenderer(ui_config)
store = ParquetSummaryStore(tracking_config.SUMMARY_PATH)

# === UI Setup ===
ui.render_header()
profile = ui.render_profile_inputs()
selected_source = ui.render_source_selector(data_loader.get_available_sessions())
start_clicked, stop_clicked, reset_clicked = ui.render_controls()

# === Session State Initialization ===
for key, default in [('streaming', False), ('detector', None), ('last_chart', None)]:
    if key not in st.session_state:
        st.session_state[key] = default

if st.session_state.detector is None:
    st.session_state.detector = StepDetector(profile=profile)
detector: StepDetector = st.session_state.detector
if detector.profile != profile:
    detector.update_profile(weight_kg=profile.weight_kg, height_cm=profile.height_cm)

# === UI Placeholders ===
status = ui.create_status_placeholder()
metric_placeholders = ui.create_metric_placeholders()
st.subheader("Live Signal")
chart = st.empty()
st.markdown("---")
st.subheader(f"Last {tracking_config.HISTORY_DAYS} Days")
history_chart = st.empty()
history_caption = st.empty()


def render_history():
    """Draw the daily history chart from the summary store."""
    try:
        summaries = store.get_history(USER_ID, tracking_config.HISTORY_DAYS)
    except PersistenceFailure as e:
        history_caption.error(str(e))
        return
    if not summaries:
        history_caption.caption("No history yet.")
        return
    totals = summarize_history(summaries)
    history_chart.plotly_chart(renderer.create_history_chart(summaries), use_container_width=True,
                               config={'displayModeBar': False})
    history_caption.caption(
        f"Total: {totals['total_steps']:,} steps | Daily average: {totals['average_steps']:,} | "
        f"≈ {totals['total_distance_km']:.1f} km | {totals['total_calories']:.0f} kcal"
    )


def render_live():
    """Draw metrics and the filtered magnitude chart from the detector state."""
    display_step_metrics(metric_placeholders, detector.get_state(), tracking_config.DAILY_STEP_GOAL, TOOLTIPS)

    samples = list(detector.history)
    if not samples:
        return
    times = [s.timestamp / 1000 for s in samples]
    values = [remove_gravity(m, detector.baseline_acceleration) for m in detector.magnitudes]
    times_display, values_display = renderer.downsample_data(times, values, ui_config.DOWNSAMPLE_FACTOR)
    fig = renderer.create_magnitude_chart(
        times_display, values_display,
        threshold=detector.threshold,
        step_times=[t / 1000 for t in detector.step_times],
        x_range=calculate_dynamic_x_range(times, ui_config.CHART_WINDOW_SECONDS)
    )
    st.session_state.last_chart = fig
    chart.plotly_chart(fig, use_container_width=True, config={'displayModeBar': False})


# === Main Tracking Function ===
async def track_steps(source_name: str) -> None:
    """
    Run the tracker until the user stops the stream.

    Args:
        source_name: Recorded session name, or the simulation option
    """
    if source_name == SIMULATION_OPTION:
        source = SimulatedSampleSource()
    else:
        source = RecordedSampleSource(data_loader.get_file_path(source_name), speed=tracking_config.REPLAY_SPEED)

    tracker = StepTracker(detector=detector, source=source, store=store, user_id=USER_ID,
                          autosave_interval=tracking_config.AUTOSAVE_INTERVAL)
    handle = await tracker.start()
    ui.render_permission_status(status, tracker.permission_status)

    try:
        while st.session_state.streaming and handle.active and handle.source.is_streaming:
            render_live()
            await asyncio.sleep(ui_config.REFRESH_INTERVAL)
    finally:
        tracker.stop(handle)
        if tracker.autosaver is not None:
            tracker.autosaver.save_now()
        st.session_state.streaming = False


# Pre-populate UI with frozen/empty state before tracking starts
if not st.session_state.streaming:
    if detector.get_state().steps > 0:
        display_step_metrics(metric_placeholders, detector.get_state(), tracking_config.DAILY_STEP_GOAL, TOOLTIPS)
    else:
        display_empty_metrics(metric_placeholders, TOOLTIPS)
    if st.session_state.last_chart is not None:
        chart.plotly_chart(st.session_state.last_chart, use_container_width=True,
                           config={'displayModeBar': False}, key='frozen_chart')
    ui.render_permission_status(status, None)
    render_history()


# === Control Logic ===
if reset_clicked:
    detector.reset()
    st.session_state.last_chart = None
    st.rerun()

if start_clicked:
    st.session_state.streaming = True
    asyncio.run(track_steps(selected_source))

if stop_clicked:
    st.session_state.streaming = False
    st.rerun()
