"""Unit tests for goal detection and advice generation."""

import pytest

from luxsim.application.services.advisor import _Proposal, detect_goal, generate_advice
from luxsim.core.constants import FIELD_BOUNDS, SERVICE_FIELDS
from luxsim.domain.calculator.engine import compute_metrics
from luxsim.domain.models.scenario import ScenarioState

GOALS = ["minimize-cost", "maximize-return", "maximize-cashflow", "reduce-risk", "optimize-tax", "general"]


def advise(goal, state):
    return generate_advice(goal, state, compute_metrics(state))


class TestDetectGoal:
    """Tests for goal detection."""

    @pytest.mark.parametrize(
        "text,goal",
        [
            ("minimize my cost", "minimize-cost"),
            ("how can I reduce my expenses?", "minimize-cost"),
            ("maximize my return", "maximize-return"),
            ("what's the best IRR I can get", "maximize-return"),
            ("improve cash flow", "maximize-cashflow"),
            ("reduce risk", "reduce-risk"),
            ("optimize taxes", "optimize-tax"),
            ("what should I do?", "general"),
            ("any advice?", "general"),
        ],
    )
    def test_goals(self, text, goal):
        detection = detect_goal(text)
        assert detection.is_advice
        assert detection.goal == goal

    def test_first_pattern_wins(self):
        """Cost cutting is checked before risk."""
        assert detect_goal("minimize cost and reduce risk").goal == "minimize-cost"

    def test_optimize_return_is_not_tax(self):
        assert detect_goal("optimize my return").goal == "maximize-return"

    def test_no_goal(self):
        detection = detect_goal("It's a $6.5M villa in Miami Beach")
        assert not detection.is_advice
        assert detection.goal == "general"


class TestMinimizeCost:
    """Tests for the cost-cutting strategy."""

    def test_default_savings(self, default_state):
        """All seven default services are above $25K and get eliminated."""
        advice = advise("minimize-cost", default_state)
        assert advice.estimated_savings == 560_000
        assert advice.staffing_savings == 255_000
        assert "$815K/yr" in advice.text

    def test_savings_equal_zeroed_services(self, miami_state):
        advice = advise("minimize-cost", miami_state)
        zeroed = [f for f in SERVICE_FIELDS if advice.recommended_params.get(f) == 0]
        assert advice.estimated_savings == pytest.approx(sum(getattr(miami_state, f) for f in zeroed))

    def test_keeps_one_manager(self, default_state):
        params = advise("minimize-cost", default_state).recommended_params
        assert params["live_in_staff"] == 0
        assert params["security_team"] == 0
        assert params["property_managers"] == 1

    def test_small_services_kept(self):
        state = ScenarioState(wine_climate=20_000)
        params = advise("minimize-cost", state).recommended_params
        assert "wine_climate" not in params

    def test_extends_short_loan(self):
        params = advise("minimize-cost", ScenarioState(loan_term_years=15)).recommended_params
        assert params["loan_term_years"] == 30

    def test_no_loan_extension_all_cash(self, all_cash_state):
        state = all_cash_state.model_copy(update={"loan_term_years": 15})
        assert "loan_term_years" not in advise("minimize-cost", state).recommended_params

    def test_nothing_to_cut(self, lean_state):
        advice = advise("minimize-cost", lean_state.model_copy(update={"property_managers": 0}))
        assert advice.estimated_savings == 0
        assert advice.staffing_savings == 0


class TestOtherGoals:
    """Tests for the remaining strategies on the baseline scenario."""

    def test_maximize_return(self, default_state):
        params = advise("maximize-return", default_state).recommended_params
        assert params["ltv_ratio"] == 70
        assert params["concierge"] == 0
        assert params["wine_climate"] == 0
        assert params["smart_home_systems"] == 0
        assert "specialized_security" not in params
        assert params["property_managers"] == 1

    def test_maximize_return_switches_personal_to_llc(self):
        params = advise("maximize-return", ScenarioState(holding_structure="personal")).recommended_params
        assert params["holding_structure"] == "llc"

    def test_maximize_cashflow_halves_services(self, default_state):
        params = advise("maximize-cashflow", default_state).recommended_params
        assert params["concierge"] == 60_000
        assert params["high_end_landscaping"] == 50_000
        assert params["pool_maintenance"] == 25_000
        assert params["vacancy_rate"] == 5
        assert "ltv_ratio" not in params

    def test_maximize_cashflow_deleverages(self):
        params = advise("maximize-cashflow", ScenarioState(ltv_ratio=75)).recommended_params
        assert params["ltv_ratio"] == 50

    def test_reduce_risk(self, default_state):
        params = advise("reduce-risk", default_state).recommended_params
        assert params == {"ltv_ratio": 40, "base_appreciation_rate": 2.5}

    def test_optimize_tax(self, default_state):
        advice = advise("optimize-tax", default_state)
        assert advice.recommended_params == {"holding_structure": "trust", "renovation_costs": 450_000}
        assert "$436K" in advice.text

    def test_optimize_tax_short_hold(self):
        params = advise("optimize-tax", ScenarioState(holding_structure="personal", hold_period_years=3)).recommended_params
        assert params["holding_structure"] == "llc"
        assert params["hold_period_years"] == 5

    def test_general_trims_top_services(self, default_state):
        params = advise("general", default_state).recommended_params
        assert params["specialized_security"] == 90_000
        assert params["concierge"] == 60_000

    def test_general_solid_setup(self, lean_state):
        """Nothing to fix: no delta and a list of goals to try."""
        advice = advise("general", lean_state.model_copy(update={"ltv_ratio": 0}))
        assert advice.recommended_params == {}
        assert "Your setup looks solid" in advice.text


class TestProposalBounds:
    """Every recommended value must be accepted by the scenario model."""

    @pytest.mark.parametrize("goal", GOALS)
    @pytest.mark.parametrize(
        "state",
        [
            ScenarioState(),
            ScenarioState(holding_structure="personal", hold_period_years=2, ltv_ratio=90, loan_term_years=10),
            ScenarioState(ltv_ratio=0, vacancy_rate=2, base_appreciation_rate=8),
            ScenarioState(property_value=2_000_000, renovation_costs=0, holding_structure="foreign"),
        ],
    )
    def test_in_range(self, goal, state):
        params = advise(goal, state).recommended_params
        merged = ScenarioState.model_validate({**state.model_dump(), **params})
        for field, value in params.items():
            low, high = FIELD_BOUNDS.get(field, (float("-inf"), float("inf")))
            if not isinstance(value, (bool, str)):
                assert low <= value <= high
        assert merged is not None

    def test_out_of_range_value_dropped(self):
        proposal = _Proposal()
        assert not proposal.set("hold_period_years", 45)
        assert proposal.set("hold_period_years", 10)
        assert proposal.params == {"hold_period_years": 10}

    def test_steps_numbered(self):
        proposal = _Proposal()
        proposal.step("first")
        proposal.step("second")
        assert proposal.lines == ["1. first", "2. second"]
