"""Main page rendering.

Composes all UI components into the main application page.
"""

from __future__ import annotations

import streamlit as st

from luxsim.application.services.chat import ChatSession
from luxsim.domain.calculator.insights import upgrade_frontier, value_layers
from luxsim.domain.models.metrics import MetricsBundle
from luxsim.domain.models.scenario import ScenarioState
from luxsim.ui.components.charts import (
    render_debt_breakdown_chart,
    render_macro_heatmap,
    render_projection_chart,
    render_structure_chart,
    render_upgrade_frontier_chart,
    render_value_layers_chart,
    render_waterfall_chart,
)
from luxsim.ui.components.chat import render_chat
from luxsim.ui.components.results import (
    render_burn_rate,
    render_exit_summary,
    render_kpi_summary,
    render_liquidity_panel,
    render_structure_table,
)
from luxsim.ui.state import STRESS_HORIZON_KEY, SessionManager, ensure_choice


def render_header() -> None:
    """Render page header."""
    st.markdown(
        """
        <h1 style="text-align: center;">
            🏝️ Luxury Investment Simulator
        </h1>
        """,
        unsafe_allow_html=True,
    )
    st.caption("Carry, financing, exit and stress analysis for prime real estate")


def render_dashboard(state: ScenarioState, metrics: MetricsBundle) -> None:
    """KPIs plus the tabbed analysis panels."""
    render_kpi_summary(state, metrics)

    tabs = st.tabs(["📈 Projection", "🚪 Exit", "⚖️ Structures", "🌪️ Stress", "⏳ Liquidity", "🔍 Insights"])

    with tabs[0]:
        render_projection_chart(metrics)
        render_debt_breakdown_chart(metrics)

    with tabs[1]:
        render_exit_summary(state, metrics)
        render_waterfall_chart(metrics)

    with tabs[2]:
        render_structure_chart(metrics)
        render_structure_table(metrics)

    with tabs[3]:
        horizons = [g.horizon_years for g in metrics.macro_grids]
        if horizons:
            ensure_choice(STRESS_HORIZON_KEY, horizons, horizons[-1])
            horizon = st.radio("Horizon (years)", horizons, horizontal=True, key=STRESS_HORIZON_KEY)
            grid = metrics.macro_grid(horizon)
            if grid is not None:
                render_macro_heatmap(grid)

    with tabs[4]:
        render_liquidity_panel(metrics)
        st.markdown("**Lifestyle burn rate**")
        render_burn_rate(metrics)

    with tabs[5]:
        render_value_layers_chart(value_layers(state))
        render_upgrade_frontier_chart(upgrade_frontier(state))


def render_main_page(session: ChatSession, response_delay: float = 0.0) -> None:
    """Dashboard on the left, advisor chat on the right.

    Reruns the script after a chat message so every panel reflects the
    updated scenario.
    """
    render_header()

    left, right = st.columns([3, 2], gap="large")
    with left:
        render_dashboard(session.state, session.metrics)
    with right:
        if render_chat(session, response_delay):
            st.rerun()
        if st.button("↺ Start over", use_container_width=True):
            SessionManager.reset()
            st.rerun()
