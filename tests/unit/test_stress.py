"""Unit tests for macro-shock stress grids."""

import numpy as np
import pytest

from luxsim.core.constants import APPRECIATION_SHIFTS, RATE_SHIFTS
from luxsim.core.financial import calculate_monthly_payment
from luxsim.domain.calculator.engine import compute_metrics
from luxsim.domain.calculator.stress import macro_shock_grid, shocked_debt_service, stress_horizons
from luxsim.domain.models.scenario import ScenarioState


def grid_for(state, horizon):
    m = compute_metrics(state)
    return macro_shock_grid(
        state,
        effective_appreciation=m.effective_appreciation,
        effective_rent=m.effective_rent,
        total_carry_cost=m.total_carry_cost,
        horizon_years=horizon,
    ), m


class TestStressHorizons:
    @pytest.mark.parametrize(
        "hold,expected",
        [(10, (5, 10)), (7, (5, 7, 10)), (5, (5, 10)), (20, (5, 10, 20)), (0, (5, 10))],
    )
    def test_horizons(self, hold, expected):
        assert stress_horizons(hold) == expected


class TestShockedDebtService:
    """Tests for debt service under rate shifts."""

    def test_no_loan(self):
        ds = shocked_debt_service(0, 5.5, 30)
        assert ds.shape == (len(RATE_SHIFTS),)
        assert not ds.any()

    def test_unshifted_matches_payment(self):
        ds = shocked_debt_service(7_500_000, 5.5, 30)
        base = RATE_SHIFTS.index(0.0)
        assert ds[base] == pytest.approx(calculate_monthly_payment(7_500_000, 5.5, 360) * 12)

    def test_increasing_in_rate(self):
        ds = shocked_debt_service(7_500_000, 5.5, 30)
        assert np.all(np.diff(ds) > 0)

    def test_rate_floor(self):
        """A 2-point cut on a 1% loan is floored, never zero or negative."""
        ds = shocked_debt_service(1_000_000, 1.0, 30)
        assert np.all(np.isfinite(ds))
        assert ds[0] > 0
        assert ds[0] == pytest.approx(ds[1])


class TestMacroShockGrid:
    """Tests for the return grid."""

    def test_shape(self, default_state):
        grid, _ = grid_for(default_state, 10)
        assert len(grid.values) == len(APPRECIATION_SHIFTS)
        assert all(len(row) == len(RATE_SHIFTS) for row in grid.values)

    def test_base_cell(self, default_state):
        """No shock: value gain plus net cash over the horizon."""
        grid, m = grid_for(default_state, 10)
        pv = default_state.property_value
        value_gain = pv * (1 + m.effective_appreciation / 100) ** 10 - pv
        cash = (m.effective_rent - m.total_carry_cost - m.annual_debt_service) * 10
        assert grid.cell(0.0, 0.0) == pytest.approx(value_gain + cash)

    def test_monotonic(self, default_state):
        """More appreciation helps, higher rates hurt."""
        grid, _ = grid_for(default_state, 5)
        values = np.array(grid.values)
        assert np.all(np.diff(values, axis=0) > 0)
        assert np.all(np.diff(values, axis=1) < 0)

    def test_all_cash_ignores_rates(self, all_cash_state):
        grid, _ = grid_for(all_cash_state, 5)
        for row in grid.values:
            assert len(set(row)) == 1

    def test_frame(self, default_state):
        grid, _ = grid_for(default_state, 5)
        frame = grid.to_frame()
        assert frame.shape == (len(APPRECIATION_SHIFTS), len(RATE_SHIFTS))
        assert frame.index.name == "appreciation_shift"
        assert frame.loc[0.0, 0.0] == grid.cell(0.0, 0.0)


class TestGridsOnMetrics:
    def test_one_grid_per_horizon(self):
        m = compute_metrics(ScenarioState(hold_period_years=7))
        assert [g.horizon_years for g in m.macro_grids] == [5, 7, 10]
        assert m.macro_grid(7) is not None
        assert m.macro_grid(3) is None
