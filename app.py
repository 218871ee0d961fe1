"""Main Application Entry Point.

Orchestrates UI components and services. All calculations live in the
luxsim package; this module only wires Streamlit to it.
"""

import streamlit as st

from luxsim.core.exceptions import InvalidParameterError
from luxsim.core.logging import get_logger
from luxsim.core.settings import get_settings
from luxsim.ui.components.sidebar import render_sidebar
from luxsim.ui.pages.main import render_main_page
from luxsim.ui.state import SessionManager


def main() -> None:
    """Main application entry point."""
    # Streamlit configuration (must be first Streamlit call)
    st.set_page_config(
        page_title="Luxury Investment Simulator",
        page_icon="🏝️",
        layout="wide",
        initial_sidebar_state="expanded",
    )
    settings = get_settings()
    log = get_logger(__name__)

    # 1. Initialize session
    SessionManager.initialize()
    session = SessionManager.get_session()

    # 2. Sidebar edits are applied before anything is rendered from the scenario
    changes = render_sidebar(session.state)
    if changes:
        try:
            session.apply(changes)
        except InvalidParameterError as e:
            st.sidebar.error(str(e))
        else:
            log.info("sidebar_applied", fields=sorted(changes))
            st.rerun()

    # 3. Render main page
    render_main_page(session, settings.response_delay_seconds)

    if settings.debug_mode:
        with st.sidebar.expander("🐞 Debug", expanded=False):
            st.json(session.state.model_dump(by_alias=True))


if __name__ == "__main__":
    main()
