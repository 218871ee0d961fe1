"""Chat orchestration.

Routes one user message through goal detection, advice or extraction, the
scenario update, the engine and the narrative, and keeps the conversation
log for a session.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from typing import Any

from luxsim.core.exceptions import InvalidParameterError
from luxsim.core.logging import get_logger
from luxsim.application.services.advisor import detect_goal, generate_advice
from luxsim.application.services.extractor import parse_user_message
from luxsim.application.services.narrative import (
    ANALYSIS_REQUEST_DESCRIPTION,
    generate_analysis,
    generate_change_summary,
    generate_guidance,
    is_analysis_request,
)
from luxsim.application.services.scenario import initialize_scenario, update_scenario
from luxsim.domain.calculator.engine import compute_metrics_cached
from luxsim.domain.models.chat import ChatMessage, MessageResult
from luxsim.domain.models.metrics import MetricsBundle
from luxsim.domain.models.scenario import ScenarioState

log = get_logger(__name__)

WELCOME_MESSAGE = (
    "Welcome! I'm your investment advisor.\n\n"
    "**Tell me everything you know about this property** — price, location, rent potential, financing terms, "
    "square footage, amenities, condition… anything. Drop it all in one message and I'll configure the entire "
    "simulator instantly.\n\n"
    "For example:\n"
    '*"It\'s a $6.5M villa in Miami Beach, 6 bed 8 bath, 8,000 sqft, oceanfront with a private pool. Currently '
    "rented at $35K/month. Taxes are $78K/year, insurance $42K. We'd put 30% down at 6.5% over 30 years. Needs "
    "about $200K in renovation. Has a wine cellar, smart home system, and concierge service. We plan to hold for "
    '7 years."*\n\n'
    "I'll parse everything and give you an instant investment analysis — or just ask me to **\"minimize cost\"** "
    'or **"maximize return"** anytime.'
)


def apply_delta(
    state: ScenarioState, delta: Mapping[str, Any]
) -> tuple[ScenarioState, dict[str, Any], list[str]]:
    """Merge ``delta`` into ``state``, dropping fields the model rejects.

    Returns:
        Tuple of (new state, delta actually applied, rejected field names)
    """
    pending = dict(delta)
    rejected: list[str] = []
    while pending:
        try:
            return update_scenario(state, pending), pending, rejected
        except InvalidParameterError as e:
            key = next((k for k in pending if ScenarioState.field_name(k) == e.param_name), e.param_name)
            if key not in pending:
                # Error not attributable to a single field: keep the state as is
                log.warning("delta_rejected", fields=sorted(pending), reason=e.reason)
                return state, {}, rejected + sorted(pending)
            log.warning("delta_field_rejected", field=key, value=pending[key], reason=e.reason)
            rejected.append(key)
            del pending[key]
    return state, {}, rejected


def _rejection_note(rejected: list[str]) -> str:
    return f"\n\n_Ignored out-of-range values for: {', '.join(rejected)}._" if rejected else ""


def process_message(text: str, state: ScenarioState) -> MessageResult:
    """Handle one user message against the current scenario.

    Args:
        text: User message
        state: Current scenario

    Returns:
        MessageResult with the updated (always valid) scenario and the
        markdown response
    """
    detection = detect_goal(text)
    if detection.is_advice:
        advice = generate_advice(detection.goal, state, compute_metrics_cached(state))
        updated, applied, rejected = apply_delta(state, advice.recommended_params)
        log.info("message_processed", route="advice", goal=detection.goal, fields=sorted(applied))
        return MessageResult(
            updated_state=updated,
            response_text=advice.text + _rejection_note(rejected),
            applied_delta=applied,
            goal=detection.goal,
            rejected_fields=rejected,
        )

    extraction = parse_user_message(text, state.property_value)
    if not extraction.is_empty:
        updated, applied, rejected = apply_delta(state, extraction.params)
        response = generate_analysis(updated, compute_metrics_cached(updated), applied, extraction.descriptions)
        log.info("message_processed", route="extraction", fields=sorted(applied), rejected=rejected)
        return MessageResult(
            updated_state=updated,
            response_text=response + _rejection_note(rejected),
            applied_delta=applied,
            descriptions=extraction.descriptions,
            rejected_fields=rejected,
        )

    if is_analysis_request(text):
        response = generate_change_summary(state, compute_metrics_cached(state), {}, [ANALYSIS_REQUEST_DESCRIPTION])
        route = "analysis"
    else:
        response = generate_guidance()
        route = "guidance"
    log.info("message_processed", route=route)
    return MessageResult(updated_state=state, response_text=response)


class ChatTranscript:
    """Append-only conversation log, seeded with the welcome message."""

    def __init__(self, welcome: str = WELCOME_MESSAGE):
        self._messages: list[ChatMessage] = [ChatMessage(role="assistant", text=welcome)]

    def append(self, message: ChatMessage) -> None:
        self._messages.append(message)

    @property
    def messages(self) -> tuple[ChatMessage, ...]:
        return tuple(self._messages)

    def __iter__(self) -> Iterator[ChatMessage]:
        return iter(tuple(self._messages))

    def __len__(self) -> int:
        return len(self._messages)


class ChatSession:
    """Current scenario plus its conversation."""

    def __init__(self, state: ScenarioState | None = None, transcript: ChatTranscript | None = None):
        self.state = state if state is not None else initialize_scenario()
        self.transcript = transcript if transcript is not None else ChatTranscript()

    @property
    def metrics(self) -> MetricsBundle:
        return compute_metrics_cached(self.state)

    def send(self, text: str) -> MessageResult:
        """Process a user message and record both sides of the exchange."""
        self.transcript.append(ChatMessage(role="user", text=text))
        result = process_message(text, self.state)
        self.state = result.updated_state
        self.transcript.append(
            ChatMessage(role="assistant", text=result.response_text, params=result.applied_delta)
        )
        return result

    def apply(self, delta: Mapping[str, Any]) -> ScenarioState:
        """Direct manipulation (sliders, toggles).

        Raises:
            InvalidParameterError: Unknown field or out-of-range value
        """
        self.state = update_scenario(self.state, delta)
        return self.state
