"""Pytest fixtures for luxsim tests."""

import os
import sys

import pytest

# Add project root to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from luxsim.application.services.scenario import initialize_scenario  # noqa: E402
from luxsim.domain.calculator.engine import compute_metrics  # noqa: E402
from luxsim.domain.models.scenario import ScenarioState  # noqa: E402

MIAMI_LISTING = (
    "It's a $6.5M villa in Miami Beach, rented at $35K/month, 30% down at 6.5% over 30 years"
)

FULL_INTAKE = (
    "It's a $6.5M villa in Miami Beach, 6 bed 8 bath, 8,000 sqft, oceanfront with a private pool. "
    "Currently rented at $35K/month. Taxes are $78K/year, insurance $42K. We'd put 30% down at 6.5% "
    "over 30 years. Needs about $200K in renovation. Has a wine cellar, smart home system, and "
    "concierge service. We plan to hold for 7 years."
)


@pytest.fixture
def listing_text() -> str:
    return MIAMI_LISTING


@pytest.fixture
def intake_text() -> str:
    """The worked example from the welcome message."""
    return FULL_INTAKE


@pytest.fixture
def default_state() -> ScenarioState:
    """Baseline scenario ($15M Beverly Hills, 50% LTV)."""
    return ScenarioState()


@pytest.fixture
def default_metrics(default_state):
    return compute_metrics(default_state)


@pytest.fixture
def miami_state() -> ScenarioState:
    """Scenario scaled to a $6.5M Miami Beach listing."""
    return initialize_scenario(6_500_000, "1200 Ocean Drive, Miami Beach, FL")


@pytest.fixture
def all_cash_state() -> ScenarioState:
    return ScenarioState(ltv_ratio=0)


@pytest.fixture
def scarce_state() -> ScenarioState:
    """All four scarcity flags active."""
    return ScenarioState(
        scarcity_private_beach=True,
        scarcity_historic_heritage=True,
        scarcity_starchitect=True,
        scarcity_unique_view=True,
    )


@pytest.fixture
def zero_cash_state() -> ScenarioState:
    """Nothing invested: no price, no fees, no structure setup."""
    return ScenarioState(
        property_value=0,
        closing_costs=0,
        renovation_costs=0,
        holding_structure="personal",
    )


@pytest.fixture
def lean_state() -> ScenarioState:
    """No services, no staff, no maintenance flags."""
    return ScenarioState(
        concierge=0,
        specialized_security=0,
        high_end_landscaping=0,
        pool_maintenance=0,
        wine_climate=0,
        smart_home_systems=0,
        property_management=0,
        live_in_staff=0,
        security_team=0,
        property_managers=0,
        infinity_pool=False,
        smart_home_updates=False,
    )
