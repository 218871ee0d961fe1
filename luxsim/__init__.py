"""
luxsim - Luxury Real Estate Investment Simulator

Financial engine and natural-language advisor behind the property vault's
investment simulator.

Modules:
    - core: Loan maths, IRR solver, constants, settings, logging, exceptions
    - domain: Pydantic models and the pure financial engine
    - application: Scenario lifecycle, text extraction, advice and narrative services
    - ui: Streamlit pages and components
"""

__version__ = "1.4.0"
