"""Chart components for visualization."""

from __future__ import annotations

import plotly.express as px
import plotly.graph_objects as go
import streamlit as st

from luxsim.domain.calculator.insights import Upgrade, ValueLayers
from luxsim.domain.models.metrics import MacroShockGrid, MetricsBundle

POSITIVE = "#28a745"
NEGATIVE = "#dc3545"
NEUTRAL = "#17a2b8"
ACCENT = "#ffc107"

_LEGEND_TOP = dict(orientation="h", yanchor="bottom", y=1.02, xanchor="right", x=1)


def render_projection_chart(metrics: MetricsBundle, key: str = "proj") -> None:
    """Projected value, remaining debt and equity over the hold period."""
    df = metrics.projection_frame()
    if df.empty:
        st.info("No projection for a zero-year hold.")
        return

    fig = go.Figure()
    fig.add_trace(go.Scatter(
        x=df.index,
        y=df["equity"],
        name="Equity",
        fill="tozeroy",
        line=dict(color=POSITIVE),
        mode="lines",
    ))
    fig.add_trace(go.Scatter(
        x=df.index,
        y=df["projected_value"],
        name="Projected value",
        line=dict(color=NEUTRAL, width=3),
        mode="lines",
    ))
    fig.add_trace(go.Scatter(
        x=df.index,
        y=df["remaining_loan"],
        name="Remaining loan",
        line=dict(color=NEGATIVE, width=3),
        mode="lines",
    ))
    fig.update_layout(
        title="Value, Debt and Equity",
        xaxis_title="Year",
        yaxis_title="Amount ($)",
        hovermode="x unified",
        legend=_LEGEND_TOP,
    )
    st.plotly_chart(fig, use_container_width=True, key=f"projection_{key}")


def render_debt_breakdown_chart(metrics: MetricsBundle, key: str = "debt") -> None:
    """Yearly principal vs interest."""
    df = metrics.projection_frame()
    if df.empty or metrics.loan_amount <= 0:
        return

    fig = px.area(
        df.reset_index(),
        x="year",
        y=["principal_paid", "interest_paid"],
        title="Debt Service Breakdown",
        labels={"value": "Amount ($)", "variable": "Type", "year": "Year"},
        color_discrete_map={"principal_paid": NEUTRAL, "interest_paid": ACCENT},
    )
    fig.update_layout(hovermode="x unified", legend=_LEGEND_TOP)
    st.plotly_chart(fig, use_container_width=True, key=f"debt_breakdown_{key}")


def render_waterfall_chart(metrics: MetricsBundle, key: str = "wf") -> None:
    """Exit waterfall from purchase price to net proceeds."""
    steps = metrics.waterfall
    if not steps:
        return

    measures = ["absolute"] + ["relative"] * (len(steps) - 2) + ["total"]
    fig = go.Figure(go.Waterfall(
        x=[s.label for s in steps],
        y=[s.amount for s in steps],
        measure=measures,
        increasing=dict(marker=dict(color=POSITIVE)),
        decreasing=dict(marker=dict(color=NEGATIVE)),
        totals=dict(marker=dict(color=NEUTRAL)),
    ))
    fig.update_layout(title="Exit Waterfall", yaxis_title="Amount ($)", showlegend=False)
    st.plotly_chart(fig, use_container_width=True, key=f"waterfall_{key}")


def render_structure_chart(metrics: MetricsBundle, key: str = "struct") -> None:
    """Net exit proceeds per holding structure."""
    df = metrics.structure_frame().reset_index()
    if df.empty:
        return

    colors = [POSITIVE if best else NEUTRAL if active else "#6c757d" for best, active in zip(df["is_best"], df["is_active"])]
    fig = go.Figure(go.Bar(x=df["label"], y=df["net"], marker_color=colors, text=df["net"].map("${:,.0f}".format)))
    fig.update_layout(title="Net Exit by Holding Structure", yaxis_title="Net ($)")
    st.plotly_chart(fig, use_container_width=True, key=f"structures_{key}")


def render_macro_heatmap(grid: MacroShockGrid, key: str = "macro") -> None:
    """Stress grid: total gain under rate and appreciation shocks."""
    df = grid.to_frame()
    fig = px.imshow(
        df.values,
        x=[f"{s:+g}%" for s in df.columns],
        y=[f"{s:+g}%" for s in df.index],
        labels=dict(x="Rate shift", y="Appreciation shift", color="Gain ($)"),
        color_continuous_scale="RdYlGn",
        color_continuous_midpoint=0,
        text_auto=".3s",
        aspect="auto",
        title=f"Macro Shock Grid ({grid.horizon_years} years)",
    )
    st.plotly_chart(fig, use_container_width=True, key=f"macro_{key}_{grid.horizon_years}")


def render_value_layers_chart(layers: ValueLayers, key: str = "layers") -> None:
    """Land / structure / intangible split of the price."""
    fig = px.pie(
        names=[layer.label for layer in layers.layers],
        values=[layer.value for layer in layers.layers],
        title="What You're Paying For",
        hole=0.45,
        color_discrete_sequence=[NEUTRAL, ACCENT, POSITIVE],
    )
    st.plotly_chart(fig, use_container_width=True, key=f"value_layers_{key}")
    st.caption(layers.downside_protection)


def render_upgrade_frontier_chart(upgrades: list[Upgrade], key: str = "upgrades") -> None:
    """Cost vs value added for candidate upgrades."""
    if not upgrades:
        return

    fig = px.scatter(
        x=[u.cost for u in upgrades],
        y=[u.arv_boost for u in upgrades],
        text=[u.label for u in upgrades],
        size=[max(u.roi, 1.0) for u in upgrades],
        labels={"x": "Cost ($)", "y": "Value added ($)"},
        title="Upgrade Frontier",
    )
    fig.update_traces(textposition="top center")
    max_cost = max(u.cost for u in upgrades)
    fig.add_trace(go.Scatter(
        x=[0, max_cost],
        y=[0, max_cost],
        mode="lines",
        name="Break-even",
        line=dict(color=NEGATIVE, dash="dash"),
    ))
    st.plotly_chart(fig, use_container_width=True, key=f"upgrade_frontier_{key}")
