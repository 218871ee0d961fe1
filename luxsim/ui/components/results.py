"""Metric display components."""

from __future__ import annotations

import math

import pandas as pd
import streamlit as st

from luxsim.application.services.narrative import format_usd
from luxsim.domain.models.metrics import MetricsBundle
from luxsim.domain.models.scenario import ScenarioState

RISK_COLORS = {"High": "#dc3545", "Medium": "#ffc107", "Low": "#28a745"}


def format_pct(value: float, decimals: int = 1) -> str:
    """Format a number as percentage."""
    if value is None or not math.isfinite(value):
        return "—"
    return f"{value:.{decimals}f}%"


def format_ratio(value: float) -> str:
    return "∞" if math.isinf(value) else f"{value:.2f}"


def render_kpi_summary(state: ScenarioState, metrics: MetricsBundle) -> None:
    """Headline metrics in two rows of cards."""
    cols = st.columns(4)
    cols[0].metric("NOI", f"{format_usd(metrics.noi)}/yr")
    cols[1].metric("Cap rate", format_pct(metrics.cap_rate, 2))
    cols[2].metric("Cash-on-cash", format_pct(metrics.cash_on_cash, 2))
    cols[3].metric("DSCR", format_ratio(metrics.dscr))

    cols = st.columns(4)
    irr_label = f"IRR ({state.hold_period_years}y)"
    cols[0].metric(irr_label, format_pct(metrics.irr_percent), help=None if metrics.irr_converged else "Approximation")
    cols[1].metric("Carry ratio", format_pct(metrics.carry_ratio, 2))
    cols[2].metric("Break-even appreciation", format_pct(metrics.break_even_appreciation, 2))
    cols[3].metric(
        "Effective appreciation",
        format_pct(metrics.effective_appreciation, 2),
        delta=f"{metrics.appreciation_gap:+.2f} pts vs target" if state.hold_period_years > 0 else None,
    )


def render_exit_summary(state: ScenarioState, metrics: MetricsBundle) -> None:
    """Exit figures and the target exit check."""
    cols = st.columns(3)
    cols[0].metric("Exit value", format_usd(metrics.exit_value))
    cols[1].metric("Net proceeds", format_usd(metrics.net_exit_with_benefit))
    cols[2].metric("Profit multiple", f"{metrics.profit_multiple:.2f}x")

    st.caption(
        f"Target profit {format_usd(state.target_exit_profit)} needs an exit at "
        f"{format_usd(metrics.target_exit_value)}, i.e. {metrics.required_appreciation:.2f}%/yr appreciation."
    )


def render_liquidity_panel(metrics: MetricsBundle) -> None:
    """Days on market, listing carry and region ranking."""
    liquidity = metrics.liquidity
    color = RISK_COLORS.get(liquidity.risk, "inherit")
    st.markdown(
        f"**{liquidity.region_label}** · ~{liquidity.avg_dom} days on market · "
        f"<span style='color:{color}'>{liquidity.risk} liquidity risk</span>",
        unsafe_allow_html=True,
    )
    st.caption(
        f"Carry while listed: {format_usd(liquidity.carry_cost_during_listing)} · "
        f"Broker fee: {liquidity.broker_fee_pct:g}%"
    )
    df = pd.DataFrame(
        [{"Region": r.label, "Days on market": r.avg_dom, "Active": "●" if r.is_active else ""} for r in liquidity.ranking]
    )
    st.dataframe(df, hide_index=True, use_container_width=True)


def render_burn_rate(metrics: MetricsBundle) -> None:
    """Lifestyle burn rate: what the property costs per unit of time."""
    burn = metrics.burn_rate
    cols = st.columns(4)
    cols[0].metric("Per month", format_usd(burn.monthly))
    cols[1].metric("Per day", format_usd(burn.daily))
    cols[2].metric("Per hour", f"${burn.hourly:,.0f}")
    cols[3].metric("Per minute", f"${burn.per_minute:,.2f}")


def render_structure_table(metrics: MetricsBundle) -> None:
    df = metrics.structure_frame()
    if df.empty:
        return
    table = df[["label", "tax", "benefit", "setup_cost", "net"]].rename(
        columns={"label": "Structure", "tax": "Tax on gain", "benefit": "Benefit", "setup_cost": "Setup", "net": "Net"}
    )
    st.dataframe(
        table.style.format({c: "${:,.0f}" for c in ("Tax on gain", "Benefit", "Setup", "Net")}),
        hide_index=True,
        use_container_width=True,
    )
    best = metrics.best_structure
    if best is not None and not best.is_active:
        st.info(f"💡 {best.label} would net {format_usd(best.net)} at exit.")
