"""Unit tests for narrative generation."""

import pytest

from luxsim.application.services.narrative import (
    ANALYSIS_REQUEST_DESCRIPTION,
    BULK_INTAKE_THRESHOLD,
    GUIDANCE_MESSAGE,
    format_number,
    format_usd,
    generate_analysis,
    generate_change_summary,
    generate_guidance,
    generate_intake_summary,
    is_analysis_request,
)
from luxsim.domain.calculator.engine import compute_metrics
from luxsim.domain.models.scenario import ScenarioState


class TestFormatting:
    @pytest.mark.parametrize(
        "value,expected",
        [(6_500_000, "$6.5M"), (420_000, "$420K"), (950, "$950"), (-250_000, "$-250K"), (1_000_000, "$1.0M")],
    )
    def test_format_usd(self, value, expected):
        assert format_usd(value) == expected

    def test_format_number(self):
        assert format_number(30.0) == "30"
        assert format_number(6.5) == "6.5"


class TestAnalysisRequest:
    @pytest.mark.parametrize("text", ["analyze this", "give me a summary", "what do you think?", "break down the numbers"])
    def test_requests(self, text):
        assert is_analysis_request(text)

    def test_not_a_request(self):
        assert not is_analysis_request("hello")


class TestGuidance:
    def test_guidance(self):
        assert generate_guidance() == GUIDANCE_MESSAGE
        assert "analyze this" in GUIDANCE_MESSAGE


class TestChangeSummary:
    """Tests for the incremental walkthrough."""

    def test_lists_descriptions(self, default_state, default_metrics):
        text = generate_change_summary(default_state, default_metrics, {}, ["Interest rate → 6.5%"])
        assert text.startswith("**Updated the simulator:**")
        assert "• Interest rate → 6.5%" in text
        assert "**Investment Analysis**" in text

    def test_sections(self, default_state, default_metrics):
        text = generate_change_summary(default_state, default_metrics, {}, [ANALYSIS_REQUEST_DESCRIPTION])
        for heading in ("Entry Cost (Year 0)", "Annual Performance", "Carry Cost Ratio", "Financing", "10-Year Exit"):
            assert heading in text
        assert "Break-Even Appreciation" in text

    def test_no_financing_when_all_cash(self, all_cash_state):
        text = generate_change_summary(all_cash_state, compute_metrics(all_cash_state), {}, [])
        assert "**Financing:**" not in text
        assert "Updated the simulator" not in text

    def test_low_cap_rate_remark(self, default_state, default_metrics):
        """The baseline has negative NOI: a lifestyle asset."""
        text = generate_change_summary(default_state, default_metrics, {}, [])
        assert "lifestyle asset" in text

    def test_strong_cap_rate_remark(self, lean_state):
        state = lean_state.model_copy(update={"gross_annual_rent": 1_500_000})
        text = generate_change_summary(state, compute_metrics(state), {}, [])
        assert "strong for luxury" in text

    def test_break_even_gap(self, default_state, default_metrics):
        text = generate_change_summary(default_state, default_metrics, {}, [])
        assert "there's a gap of" in text


class TestIntakeSummary:
    """Tests for the grouped intake summary."""

    DESCRIPTIONS = [
        "Property value → $6.5M",
        "Gross rent → $420K/yr ($35K/mo)",
        "Down payment 30% → LTV 70%",
        "Interest rate → 6.5%",
        "Market region → miami-beach",
        "Something unusual",
    ]

    def test_grouped(self, miami_state):
        text = generate_intake_summary(miami_state, compute_metrics(miami_state), {}, self.DESCRIPTIONS)
        assert text.startswith("**I've set up the property.")
        assert text.index("**Property:**") < text.index("**Income:**") < text.index("**Financing:**")
        assert "**Strategy & Market:**" in text
        assert "**Other:**\n• Something unusual" in text
        assert "**Instant Analysis:**" in text

    def test_empty_sections_skipped(self, miami_state):
        text = generate_intake_summary(miami_state, compute_metrics(miami_state), {}, self.DESCRIPTIONS[:4])
        assert "**Services & Amenities:**" not in text
        assert "**Other:**" not in text

    def test_cash_on_cash_only_with_loan(self, all_cash_state):
        text = generate_intake_summary(all_cash_state, compute_metrics(all_cash_state), {}, self.DESCRIPTIONS)
        assert "Cash-on-Cash" not in text


class TestGenerateAnalysis:
    def test_threshold(self, default_state, default_metrics):
        few = ["a"] * (BULK_INTAKE_THRESHOLD - 1)
        many = ["a"] * BULK_INTAKE_THRESHOLD
        assert "**Updated the simulator:**" in generate_analysis(default_state, default_metrics, {}, few)
        assert "I've set up the property" in generate_analysis(default_state, default_metrics, {}, many)

    def test_irr_not_converged_note(self):
        state = ScenarioState()
        metrics = compute_metrics(state).model_copy(update={"irr_converged": False})
        assert "approximation" in generate_change_summary(state, metrics, {}, [])
