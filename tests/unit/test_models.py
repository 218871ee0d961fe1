"""Unit tests for luxsim Pydantic models."""

import pytest
from pydantic import ValidationError

from luxsim.domain.calculator.engine import compute_metrics
from luxsim.domain.models.chat import AdviceResult, ChatMessage, ExtractionResult, GoalDetection
from luxsim.domain.models.scenario import ScenarioState


class TestScenarioState:
    """Tests for ScenarioState model."""

    def test_defaults(self):
        """Baseline scenario: $15M Beverly Hills, 50% LTV at 5.5%."""
        state = ScenarioState()
        assert state.property_value == 15_000_000
        assert state.ltv_ratio == 50
        assert state.interest_rate == 5.5
        assert state.market_region == "beverly-hills"
        assert state.holding_structure == "llc"

    def test_frozen(self, default_state):
        with pytest.raises(ValidationError):
            default_state.property_value = 1

    def test_hashable(self):
        assert hash(ScenarioState()) == hash(ScenarioState())
        assert len({ScenarioState(), ScenarioState(), ScenarioState(ltv_ratio=60)}) == 2

    def test_alias_and_name(self):
        assert ScenarioState(propertyValue=5_000_000) == ScenarioState(property_value=5_000_000)

    def test_dump_by_alias(self, default_state):
        dumped = default_state.model_dump(by_alias=True)
        assert dumped["grossAnnualRent"] == 600_000
        assert dumped["scarcityPrivateBeach"] is False

    def test_extra_forbidden(self):
        with pytest.raises(ValidationError):
            ScenarioState(helipad=True)

    @pytest.mark.parametrize(
        "field,value",
        [
            ("property_value", -1),
            ("vacancy_rate", 101),
            ("ltv_ratio", -5),
            ("interest_rate", 31),
            ("hold_period_years", 51),
            ("security_team", -1),
            ("property_value", float("inf")),
            ("interest_rate", float("nan")),
        ],
    )
    def test_range_checks(self, field, value):
        with pytest.raises(ValidationError):
            ScenarioState(**{field: value})

    def test_unknown_region(self):
        with pytest.raises(ValidationError, match="unknown market region"):
            ScenarioState(market_region="atlantis")

    def test_field_name_resolution(self):
        assert ScenarioState.field_name("ltvRatio") == "ltv_ratio"
        assert ScenarioState.field_name("ltv_ratio") == "ltv_ratio"
        assert ScenarioState.field_name("nope") is None


class TestMetricsBundle:
    """Tests for MetricsBundle helpers."""

    def test_computed_fields(self, default_metrics):
        m = default_metrics
        assert m.monthly_cash_flow == pytest.approx(m.annual_cash_flow / 12)
        assert m.appreciation_gap == pytest.approx(m.effective_appreciation - m.required_appreciation)
        assert "monthly_cash_flow" in m.model_dump()

    def test_projection_frame(self, default_metrics):
        frame = default_metrics.projection_frame()
        assert list(frame.index) == list(range(1, 11))
        assert "projected_value" in frame.columns

    def test_empty_projection_frame(self):
        frame = compute_metrics(ScenarioState(hold_period_years=0)).projection_frame()
        assert frame.empty

    def test_structure_frame(self, default_metrics):
        frame = default_metrics.structure_frame()
        assert set(frame.index) == {"personal", "llc", "trust", "foreign"}
        assert frame["is_active"].sum() == 1

    def test_frozen(self, default_metrics):
        with pytest.raises(ValidationError):
            default_metrics.noi = 0


class TestChatModels:
    """Tests for chat and advisor models."""

    def test_message_frozen(self):
        message = ChatMessage(role="user", text="hi")
        assert message.params == {}
        with pytest.raises(ValidationError):
            message.text = "changed"

    def test_message_role_checked(self):
        with pytest.raises(ValidationError):
            ChatMessage(role="system", text="hi")

    def test_extraction_empty(self):
        assert ExtractionResult().is_empty
        assert not ExtractionResult(params={"ltv_ratio": 70}).is_empty

    def test_goal_default(self):
        assert GoalDetection() == GoalDetection(is_advice=False, goal="general")

    def test_negative_savings_rejected(self):
        with pytest.raises(ValidationError):
            AdviceResult(text="", estimated_savings=-1)
