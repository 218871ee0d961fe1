"""Macro-shock stress grids.

Recomputes the total return of a scenario under combined interest rate and
appreciation shocks, one grid per horizon.
"""

from __future__ import annotations

from collections.abc import Iterable

import numpy as np
import numpy_financial as npf

from luxsim.core.constants import (
    APPRECIATION_SHIFTS,
    MIN_SHOCKED_RATE_PCT,
    RATE_SHIFTS,
    STRESS_HORIZONS,
)
from luxsim.domain.models.metrics import MacroShockGrid
from luxsim.domain.models.scenario import ScenarioState


def stress_horizons(hold_period_years: int) -> tuple[int, ...]:
    """Standard horizons plus the hold period, ascending and without duplicates."""
    horizons = set(STRESS_HORIZONS)
    if hold_period_years >= 1:
        horizons.add(hold_period_years)
    return tuple(sorted(h for h in horizons if h >= 1))


def shocked_debt_service(
    loan_amount: float,
    interest_rate_pct: float,
    loan_term_years: int,
    rate_shifts: Iterable[float] = RATE_SHIFTS,
) -> np.ndarray:
    """Annual debt service for each shifted rate.

    The shifted rate is floored at ``MIN_SHOCKED_RATE_PCT`` so a large cut
    never produces a zero or negative rate.
    """
    shifts = np.asarray(tuple(rate_shifts), dtype=float)
    if loan_amount <= 0 or loan_term_years <= 0:
        return np.zeros_like(shifts)

    monthly_rates = np.maximum(MIN_SHOCKED_RATE_PCT, interest_rate_pct + shifts) / 100.0 / 12.0
    monthly = -npf.pmt(monthly_rates, loan_term_years * 12, loan_amount)
    return np.asarray(monthly, dtype=float) * 12.0


def macro_shock_grid(
    state: ScenarioState,
    *,
    effective_appreciation: float,
    effective_rent: float,
    total_carry_cost: float,
    horizon_years: int,
) -> MacroShockGrid:
    """Build one return grid.

    Cell = (future value - value) + (effective rent - carry - shocked debt
    service) x horizon, where the future value compounds the shifted
    effective appreciation over the horizon.

    Args:
        state: Scenario being stressed
        effective_appreciation: Base plus scarcity appreciation %
        effective_rent: Rent after vacancy in $/yr
        total_carry_cost: Annual carry cost in $
        horizon_years: Horizon of the grid in years

    Returns:
        MacroShockGrid with rows = appreciation shifts, columns = rate shifts
    """
    loan_amount = state.property_value * state.ltv_ratio / 100.0
    annual_ds = shocked_debt_service(loan_amount, state.interest_rate, state.loan_term_years)

    app_shifts = np.asarray(APPRECIATION_SHIFTS, dtype=float)
    future_values = state.property_value * (1.0 + (effective_appreciation + app_shifts) / 100.0) ** horizon_years
    value_gain = future_values - state.property_value
    cash_gain = (effective_rent - total_carry_cost - annual_ds) * horizon_years

    grid = value_gain[:, np.newaxis] + cash_gain[np.newaxis, :]

    return MacroShockGrid(
        horizon_years=horizon_years,
        rate_shifts=RATE_SHIFTS,
        appreciation_shifts=APPRECIATION_SHIFTS,
        values=tuple(tuple(float(v) for v in row) for row in grid),
    )


def macro_shock_grids(
    state: ScenarioState,
    *,
    effective_appreciation: float,
    effective_rent: float,
    total_carry_cost: float,
) -> tuple[MacroShockGrid, ...]:
    """One grid per horizon from ``stress_horizons``."""
    return tuple(
        macro_shock_grid(
            state,
            effective_appreciation=effective_appreciation,
            effective_rent=effective_rent,
            total_carry_cost=total_carry_cost,
            horizon_years=h,
        )
        for h in stress_horizons(state.hold_period_years)
    )
