"""Prediction page: pick a driver and circuit, run the agent."""

import asyncio

import plotly.graph_objects as go
import streamlit as st

from apex.agent.config import AgentConfig
from apex.agent.orchestrator import AgentState, ApexAgent
from apex.prediction.models import PredictionResult, StatsSource
from apex.roster.models import Driver, Track

_STAGE_LABELS = {
    AgentState.FETCHING: "Fetching session data...",
    AgentState.SCORING: "Calculating win probability...",
    AgentState.SUMMARIZING: "Generating tactical insight...",
}


def render_prediction_page() -> None:
    """Render the prediction page."""
    config = AgentConfig.from_env()

    drivers, tracks = _load_roster(_roster_key(config), config)
    if not drivers or not tracks:
        st.error("Failed to load the grid. Check your connection and retry.")
        if st.button("Retry"):
            _load_roster.clear()
            st.rerun()
        return

    mode = "STRICT" if config.strict_mode else "FALLBACK"
    feed = "LIVE DATA FEED" if config.api_base_url else "SIMULATION MODE"
    st.caption(f"{feed} | policy: {mode} | {len(drivers)} drivers active")

    col1, col2 = st.columns(2)
    with col1:
        driver = st.selectbox(
            "Driver",
            drivers,
            index=None,
            format_func=lambda d: f"{d.name} ({d.team})",
            placeholder="Select a driver",
        )
    with col2:
        track = st.selectbox(
            "Circuit",
            tracks,
            index=None,
            format_func=lambda t: f"{t.name}, {t.location}",
            placeholder="Select a circuit",
        )

    if not st.button("Run Prediction", type="primary", disabled=not (driver and track)):
        return

    status = st.status("Agent running...", expanded=True)

    def on_state_change(state: AgentState) -> None:
        label = _STAGE_LABELS.get(state)
        if label:
            status.write(label)

    agent_state, result, error = asyncio.run(
        _run_agent(config, driver, track, on_state_change)
    )

    if agent_state is AgentState.ERROR:
        status.update(label="Agent failed", state="error")
        st.error(error or "An unexpected error occurred during the agent workflow.")
        return

    status.update(label="Prediction complete", state="complete", expanded=False)
    _render_result(driver, track, result)


def _roster_key(config: AgentConfig) -> tuple:
    """Settings that change which roster the agent loads."""
    return (config.api_base_url, config.strict_mode, config.openf1_credential)


@st.cache_data(ttl=600, show_spinner="Syncing grid...")
def _load_roster(
    key: tuple, _config: AgentConfig
) -> tuple[list[Driver], list[Track]]:
    async def load():
        async with ApexAgent(_config) as agent:
            return await agent.load_roster()

    try:
        return asyncio.run(load())
    except Exception as e:
        st.error(f"Failed to connect to OpenF1: {e}")
        return [], []


async def _run_agent(config, driver, track, on_state_change):
    async with ApexAgent(config, on_state_change=on_state_change) as agent:
        await agent.run(driver, track)
        return agent.state, agent.result, agent.error_message


def _render_result(driver: Driver, track: Track, result: PredictionResult) -> None:
    st.markdown("---")
    st.subheader(f"{driver.name} at {track.name}")

    stats = result.raw_stats
    c1, c2, c3, c4 = st.columns(4)
    c1.metric("Win Probability", f"{result.probability:.1f}%")
    c2.metric("Historical", f"{stats.historical_score:.1f}/10")
    c3.metric("Recent Form", f"{stats.recent_form_score:.1f}/10")
    c4.metric("Data Source", stats.source.value.title())

    if stats.source is StatsSource.SIMULATED:
        st.info("OpenF1 unreachable: scores were simulated from the driver's tier.")

    st.plotly_chart(_breakdown_plot(result), use_container_width=True)

    st.subheader("Agent Insight")
    st.markdown(result.narrative or "")


def _breakdown_plot(result: PredictionResult) -> go.Figure:
    """Build a Plotly bar chart of the score breakdown (0-100 scale)."""
    stats = result.raw_stats
    labels = ["Historical", "Recent Form", "Win Prob"]
    values = [
        stats.historical_score * 10,
        stats.recent_form_score * 10,
        result.probability,
    ]

    fig = go.Figure(go.Bar(
        x=values,
        y=labels,
        orientation="h",
        marker_color=["#dc2626", "#f59e0b", "#10b981"],
        text=[f"{v:.1f}%" for v in values],
        textposition="inside",
    ))
    fig.update_layout(
        xaxis=dict(range=[0, 100], title="Score"),
        height=250,
        margin=dict(l=40, r=20, t=20, b=40),
    )
    return fig
