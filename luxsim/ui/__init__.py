"""Streamlit user interface: session state, components and pages."""
