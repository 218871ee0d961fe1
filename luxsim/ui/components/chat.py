"""Advisor chat panel."""

from __future__ import annotations

import time

import streamlit as st

from luxsim.application.services.chat import ChatSession


def render_chat(session: ChatSession, response_delay: float = 0.0) -> bool:
    """Render the transcript and the input box.

    Args:
        session: Chat session holding scenario and transcript
        response_delay: Simulated thinking time before answering, in seconds

    Returns:
        True when a message was sent and the scenario may have changed
    """
    st.markdown("### 💬 Investment Advisor")

    for message in session.transcript:
        with st.chat_message(message.role):
            st.markdown(message.text)

    text = st.chat_input("Describe the property or ask for advice…")
    if not text:
        return False

    with st.chat_message("user"):
        st.markdown(text)
    with st.spinner("Thinking…"):
        if response_delay > 0:
            time.sleep(response_delay)
        session.send(text)
    return True
