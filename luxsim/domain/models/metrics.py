"""Derived metrics data models.

Everything here is computed from a ScenarioState by the financial engine
and holds no state of its own. Models are frozen so a bundle can be shared
from the metrics cache.
"""

from __future__ import annotations

import pandas as pd
from pydantic import BaseModel, Field, computed_field

_FROZEN = {"frozen": True}


class YearProjection(BaseModel):
    """One year of the hold-period projection."""

    year: int = Field(..., ge=1)
    projected_value: float = Field(..., description="Property value at year end in $")
    remaining_loan: float = Field(..., ge=0, description="Loan balance at year end in $")
    equity: float = Field(..., description="Value minus remaining loan in $")
    cumulative_cash_flow: float = Field(..., description="Sum of annual cash flows to date in $")
    principal_paid: float = Field(default=0.0, ge=0, description="Principal repaid during the year in $")
    interest_paid: float = Field(default=0.0, ge=0, description="Interest paid during the year in $")

    model_config = _FROZEN


class WaterfallStep(BaseModel):
    """One bar of the exit waterfall (signed amount)."""

    label: str
    amount: float

    model_config = _FROZEN


class StructureComparison(BaseModel):
    """Exit economics of one holding structure for the same scenario."""

    key: str
    label: str
    tax: float = Field(..., ge=0)
    benefit: float
    setup_cost: float = Field(..., ge=0)
    net: float
    is_active: bool = False
    is_best: bool = False

    model_config = _FROZEN


class RegionLiquidity(BaseModel):
    """Days on market for one region at the scenario's price bracket."""

    key: str
    label: str
    avg_dom: int
    is_active: bool = False

    model_config = _FROZEN


class LiquidityForecast(BaseModel):
    """Expected time to sell and what the wait costs."""

    region_label: str
    broker_fee_pct: float
    avg_dom: int
    carry_cost_during_listing: float
    risk: str = Field(..., description="High, Medium or Low")
    ranking: tuple[RegionLiquidity, ...] = ()

    model_config = _FROZEN


class MacroShockGrid(BaseModel):
    """Total return under combined interest rate and appreciation shocks.

    ``values[i][j]`` is the return for ``appreciation_shifts[i]`` and
    ``rate_shifts[j]`` over ``horizon_years``.
    """

    horizon_years: int = Field(..., ge=1)
    rate_shifts: tuple[float, ...]
    appreciation_shifts: tuple[float, ...]
    values: tuple[tuple[float, ...], ...]

    model_config = _FROZEN

    def cell(self, appreciation_shift: float, rate_shift: float) -> float:
        """Return value for one shock combination."""
        i = self.appreciation_shifts.index(appreciation_shift)
        j = self.rate_shifts.index(rate_shift)
        return self.values[i][j]

    def to_frame(self) -> pd.DataFrame:
        """Grid as a DataFrame: rows are appreciation shifts, columns rate shifts."""
        return pd.DataFrame(
            [list(row) for row in self.values],
            index=pd.Index(self.appreciation_shifts, name="appreciation_shift"),
            columns=pd.Index(self.rate_shifts, name="rate_shift"),
        )


class BurnRate(BaseModel):
    """Carry cost expressed per period."""

    monthly: float
    daily: float
    hourly: float
    per_minute: float

    model_config = _FROZEN


class MetricsBundle(BaseModel):
    """Full set of derived metrics for one scenario."""

    # Carry costs
    luxury_opex: float
    staffing_cost: float
    total_staff: int
    specialized_maintenance: float
    property_tax: float
    total_carry_cost: float

    # Income
    vacancy_loss: float
    effective_rent: float
    noi: float
    cap_rate: float

    # Debt
    loan_amount: float
    equity_invested: float
    monthly_payment: float
    annual_debt_service: float
    dscr: float = Field(..., description="math.inf when there is no debt service")

    # Cash returns
    annual_cash_flow: float
    structure_setup_cost: float
    total_cash_invested: float
    cash_on_cash: float

    # Appreciation
    scarcity_bonus: float
    effective_appreciation: float
    projection: tuple[YearProjection, ...] = ()

    # Exit
    exit_value: float
    capital_gain: float
    tax_on_gain: float
    selling_costs: float
    remaining_loan_at_exit: float
    net_exit_proceeds: float
    structure_benefit: float
    net_exit_with_benefit: float
    total_gain: float
    profit_multiple: float
    waterfall: tuple[WaterfallStep, ...] = ()

    # Returns
    irr_percent: float
    irr_converged: bool = True
    carry_ratio: float
    break_even_appreciation: float

    # Target exit
    target_exit_value: float
    required_appreciation: float

    # Liquidity, structures, stress
    liquidity: LiquidityForecast
    structure_comparison: tuple[StructureComparison, ...] = ()
    macro_grids: tuple[MacroShockGrid, ...] = ()
    burn_rate: BurnRate

    model_config = _FROZEN

    @computed_field
    @property
    def monthly_cash_flow(self) -> float:
        """Annual cash flow spread over twelve months."""
        return self.annual_cash_flow / 12

    @computed_field
    @property
    def appreciation_gap(self) -> float:
        """Effective minus required appreciation (positive means on track)."""
        return self.effective_appreciation - self.required_appreciation

    @property
    def best_structure(self) -> StructureComparison | None:
        best = [s for s in self.structure_comparison if s.is_best]
        return best[0] if best else None

    def macro_grid(self, horizon_years: int) -> MacroShockGrid | None:
        for grid in self.macro_grids:
            if grid.horizon_years == horizon_years:
                return grid
        return None

    def projection_frame(self) -> pd.DataFrame:
        """Year-by-year projection as a DataFrame indexed by year."""
        columns = list(YearProjection.model_fields)
        rows = [p.model_dump() for p in self.projection]
        return pd.DataFrame(rows, columns=columns).set_index("year")

    def structure_frame(self) -> pd.DataFrame:
        """Holding structure comparison as a DataFrame indexed by key."""
        columns = list(StructureComparison.model_fields)
        rows = [s.model_dump() for s in self.structure_comparison]
        return pd.DataFrame(rows, columns=columns).set_index("key")
