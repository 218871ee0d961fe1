"""End-to-end tests for a chat session.

Drives ChatSession the way the UI does: one message at a time, checking
the scenario, the metrics and the transcript after each exchange.
"""

import pytest

from luxsim.application.services.chat import WELCOME_MESSAGE, ChatSession, ChatTranscript
from luxsim.application.services.narrative import GUIDANCE_MESSAGE
from luxsim.application.services.scenario import initialize_scenario
from luxsim.core.exceptions import InvalidParameterError
from luxsim.domain.models.chat import ChatMessage
from luxsim.domain.models.scenario import ScenarioState


@pytest.fixture
def session() -> ChatSession:
    return ChatSession()


class TestOnboarding:
    """A fresh session and a full property description."""

    def test_welcome(self, session):
        assert len(session.transcript) == 1
        first = session.transcript.messages[0]
        assert first.role == "assistant"
        assert first.text == WELCOME_MESSAGE
        assert session.state == ScenarioState()

    def test_full_intake(self, session, intake_text):
        result = session.send(intake_text)
        assert session.state.property_value == 6_500_000
        assert session.state.market_region == "miami-beach"
        assert session.state.ltv_ratio == 70
        assert session.state.hold_period_years == 7
        assert "I've set up the property" in result.response_text
        assert "**Instant Analysis:**" in result.response_text
        assert len(result.descriptions) >= 4

    def test_metrics_follow_state(self, session, listing_text):
        before = session.metrics
        session.send(listing_text)
        assert session.metrics.loan_amount == pytest.approx(6_500_000 * 0.7)
        assert session.metrics != before

    def test_transcript_records_delta(self, session, listing_text):
        result = session.send(listing_text)
        user, assistant = session.transcript.messages[-2:]
        assert user.role == "user"
        assert user.text == listing_text
        assert assistant.role == "assistant"
        assert assistant.params == result.applied_delta


class TestIncrementalChanges:
    """Small follow-up edits after the intake."""

    def test_change_summary(self, session, listing_text):
        session.send(listing_text)
        result = session.send("set vacancy to 5%")
        assert session.state.vacancy_rate == 5
        assert session.state.property_value == 6_500_000
        assert result.response_text.startswith("**Updated the simulator:**")

    def test_turn_off_pool(self, session):
        session.send("turn off the pool")
        assert session.state.pool_maintenance == 0
        assert session.state.infinity_pool is False

    def test_dollar_down_uses_current_price(self):
        session = ChatSession(initialize_scenario(5_000_000))
        session.send("put 500K down")
        assert session.state.ltv_ratio == 90

    def test_all_cash_wins_over_down_payment(self, session):
        result = session.send("put $100K down, actually all cash")
        assert session.state.ltv_ratio == 0
        assert result.rejected_fields == []


class TestAdviceFlow:
    def test_minimize_cost_applied(self, session):
        before = session.metrics.total_carry_cost
        result = session.send("minimize my cost")
        assert result.goal == "minimize-cost"
        assert session.state.concierge == 0
        assert session.state.live_in_staff == 0
        assert session.metrics.total_carry_cost < before
        assert "Estimated annual savings" in result.response_text

    def test_reduce_risk_applied(self, session):
        session.send("reduce risk")
        assert session.state.ltv_ratio == 40
        assert session.state.base_appreciation_rate == 2.5

    def test_advice_after_intake(self, session, intake_text):
        session.send(intake_text)
        session.send("maximize my return")
        assert session.state.ltv_ratio == 70
        assert session.state.concierge == 0


class TestFallbacks:
    def test_guidance(self, session):
        result = session.send("hello")
        assert result.response_text == GUIDANCE_MESSAGE
        assert result.applied_delta == {}
        assert session.state == ScenarioState()

    def test_analysis_request(self, session):
        result = session.send("analyze this")
        assert "Analyzing current scenario" in result.response_text
        assert "**Investment Analysis**" in result.response_text
        assert session.state == ScenarioState()


class TestTranscript:
    """The log only ever grows."""

    def test_append_only(self, session):
        session.send("hello")
        session.send("analyze this")
        assert len(session.transcript) == 5
        assert [m.role for m in session.transcript] == ["assistant", "user", "assistant", "user", "assistant"]

    def test_messages_is_a_snapshot(self):
        transcript = ChatTranscript()
        snapshot = transcript.messages
        transcript.append(ChatMessage(role="user", text="hi"))
        assert len(snapshot) == 1
        assert len(transcript) == 2


class TestDirectManipulation:
    def test_apply(self, session):
        session.apply({"interestRate": 7.0})
        assert session.state.interest_rate == 7.0

    def test_apply_rejects(self, session):
        with pytest.raises(InvalidParameterError):
            session.apply({"ltv_ratio": 120})
        assert session.state.ltv_ratio == 50
