"""Sidebar components for the main app.

Direct-manipulation controls for every scenario field. Each section renders
from the current scenario and the sidebar returns only the fields the user
changed; applying them is the caller's job.
"""

from __future__ import annotations

from typing import Any

import streamlit as st

from luxsim.core.constants import (
    BRACKET_LABELS,
    MARKET_LIQUIDITY,
    SCARCITY_LABELS,
    SERVICE_FIELDS,
    SPECIALIZED_MAINTENANCE_COSTS,
    TAX_PROFILES,
)
from luxsim.domain.models.scenario import ScenarioState

LOAN_TERMS = (10, 15, 20, 25, 30)

MAINTENANCE_LABELS = {
    "infinity_pool": "Infinity pool",
    "wine_climate_control": "Wine climate control",
    "smart_home_updates": "Smart home updates",
}


def _money_input(label: str, value: float, step: float = 5_000.0) -> float:
    return st.number_input(f"{label} ($)", min_value=0.0, value=float(value), step=step, format="%.0f")


def render_acquisition_section(state: ScenarioState) -> dict[str, Any]:
    """Purchase price and one-off costs."""
    with st.expander("🏛️ Acquisition", expanded=True):
        return {
            "property_value": _money_input("Property value", state.property_value, 100_000.0),
            "closing_costs": _money_input("Closing costs", state.closing_costs),
            "renovation_costs": _money_input("Renovations", state.renovation_costs, 25_000.0),
        }


def render_income_section(state: ScenarioState) -> dict[str, Any]:
    with st.expander("💵 Income", expanded=False):
        return {
            "gross_annual_rent": _money_input("Gross annual rent", state.gross_annual_rent, 25_000.0),
            "vacancy_rate": st.slider("Vacancy (%)", 0.0, 100.0, float(state.vacancy_rate), 0.5),
        }


def render_financing_section(state: ScenarioState) -> dict[str, Any]:
    """LTV, rate and term."""
    with st.expander("🏦 Financing", expanded=False):
        terms = sorted({*LOAN_TERMS, state.loan_term_years})
        return {
            "ltv_ratio": st.slider("LTV (%)", 0.0, 100.0, float(state.ltv_ratio), 5.0),
            "interest_rate": st.slider("Interest rate (%)", 0.0, 30.0, float(state.interest_rate), 0.1),
            "loan_term_years": st.selectbox(
                "Loan term (years)", terms, index=terms.index(state.loan_term_years)
            ),
        }


def render_services_section(state: ScenarioState) -> dict[str, Any]:
    """Luxury service budgets, staffing and specialized maintenance."""
    values: dict[str, Any] = {}
    with st.expander("🛎️ Services & Staff", expanded=False):
        for field, label in SERVICE_FIELDS.items():
            values[field] = _money_input(label, getattr(state, field))

        st.markdown("**Staffing**")
        values["live_in_staff"] = st.number_input("Live-in staff", 0, 50, state.live_in_staff)
        values["security_team"] = st.number_input("Security team", 0, 50, state.security_team)
        values["property_managers"] = st.number_input("Property managers", 0, 50, state.property_managers)
        values["avg_staff_salary"] = _money_input("Average salary", state.avg_staff_salary)

        st.markdown("**Specialized maintenance**")
        for field, label in MAINTENANCE_LABELS.items():
            cost = SPECIALIZED_MAINTENANCE_COSTS[field]
            values[field] = st.checkbox(f"{label} (${cost / 1_000:.0f}K/yr)", value=getattr(state, field))
    return values


def render_fixed_costs_section(state: ScenarioState) -> dict[str, Any]:
    with st.expander("🧾 Tax & Insurance", expanded=False):
        return {
            "property_tax_rate": st.number_input(
                "Property tax (%)", 0.0, 100.0, float(state.property_tax_rate), 0.05, format="%.2f"
            ),
            "annual_insurance": _money_input("Insurance", state.annual_insurance, 1_000.0),
        }


def render_strategy_section(state: ScenarioState) -> dict[str, Any]:
    """Holding structure, market, appreciation and exit."""
    values: dict[str, Any] = {}
    with st.expander("⚖️ Strategy & Market", expanded=False):
        structures = list(TAX_PROFILES)
        values["holding_structure"] = st.selectbox(
            "Holding structure",
            structures,
            index=structures.index(state.holding_structure),
            format_func=lambda k: TAX_PROFILES[k]["label"],
        )
        regions = list(MARKET_LIQUIDITY)
        values["market_region"] = st.selectbox(
            "Market region",
            regions,
            index=regions.index(state.market_region),
            format_func=lambda k: MARKET_LIQUIDITY[k]["label"],
        )
        brackets = list(BRACKET_LABELS)
        values["price_bracket"] = st.selectbox(
            "Price bracket",
            brackets,
            index=brackets.index(state.price_bracket),
            format_func=lambda k: BRACKET_LABELS[k],
        )

        values["base_appreciation_rate"] = st.number_input(
            "Base appreciation (%/yr)", 0.0, 100.0, float(state.base_appreciation_rate), 0.1, format="%.1f"
        )
        for field, label in SCARCITY_LABELS.items():
            values[field] = st.checkbox(label, value=getattr(state, field))

        values["hold_period_years"] = st.slider("Hold period (years)", 0, 50, state.hold_period_years)
        values["target_exit_profit"] = _money_input("Target exit profit", state.target_exit_profit, 500_000.0)
    return values


def render_sidebar(state: ScenarioState) -> dict[str, Any]:
    """Render all sidebar sections.

    Returns:
        Fields whose widget value differs from ``state``
    """
    with st.sidebar:
        st.title("⚙️ Parameters")
        values: dict[str, Any] = {}
        values.update(render_acquisition_section(state))
        values.update(render_income_section(state))
        values.update(render_financing_section(state))
        values.update(render_services_section(state))
        values.update(render_fixed_costs_section(state))
        values.update(render_strategy_section(state))

    return {k: v for k, v in values.items() if v != getattr(state, k)}
