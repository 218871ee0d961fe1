"""Session state management for Streamlit app.

Provides a centralized interface for managing Streamlit session state. The
scenario itself lives in a ChatSession stored in session state; the UI never
mutates it directly.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from typing import Any

import streamlit as st

from luxsim.application.services.chat import ChatSession
from luxsim.application.services.scenario import initialize_scenario
from luxsim.core.logging import get_logger

log = get_logger(__name__)

SESSION_KEY = "chat_session"
STRESS_HORIZON_KEY = "stress_horizon"


def set_state(key: str, value: Any) -> None:
    """Set a value in session state."""
    st.session_state[key] = value


def ensure_choice(key: str, options: Sequence[Any], default: Any) -> None:
    """Keep a widget's session value among ``options``.

    Must run before the widget is created. A missing or stale value (for
    instance a horizon that disappeared after the hold period changed) is
    replaced by ``default``.
    """
    if st.session_state.get(key) not in options:
        set_state(key, default)


class SessionManager:
    """Manages all session state for the app."""

    @classmethod
    def initialize(cls) -> None:
        """Initialize session state, seeding the scenario from the URL if present.

        ``?price=6500000&address=Miami+Beach`` starts from a scaled scenario.
        """
        if SESSION_KEY in st.session_state:
            return

        params = st.query_params
        price: float | None = None
        if "price" in params:
            try:
                price = float(params["price"])
            except ValueError:
                log.warning("invalid_query_price", value=params["price"])
            else:
                if not math.isfinite(price):
                    log.warning("invalid_query_price", value=params["price"])
                    price = None
        address = params.get("address")
        set_state(SESSION_KEY, ChatSession(initialize_scenario(price, address)))

    @classmethod
    def get_session(cls) -> ChatSession:
        """Current chat session (scenario + transcript)."""
        if SESSION_KEY not in st.session_state:
            cls.initialize()
        return st.session_state[SESSION_KEY]

    @classmethod
    def reset(cls) -> None:
        """Start over from the baseline scenario and a fresh transcript."""
        set_state(SESSION_KEY, ChatSession())
        log.info("session_reset")
