"""Scenario state data model.

A scenario is the complete, flat description of one hypothetical luxury
property purchase and its operating plan. Every field has a default, so a
scenario is always fully populated; updates produce a new instance.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, field_validator
from pydantic.alias_generators import to_camel

from luxsim.core.constants import MARKET_LIQUIDITY

HoldingStructure = Literal["personal", "llc", "trust", "foreign"]
PriceBracket = Literal["entry", "premium", "ultra"]


class ScenarioState(BaseModel):
    """Investment scenario parameters.

    Accepts snake_case field names or their camelCase aliases
    (``property_value`` or ``propertyValue``).
    """

    # Acquisition
    property_value: float = Field(default=15_000_000, ge=0, description="Purchase price in $")
    closing_costs: float = Field(default=150_000, ge=0, description="Closing costs in $")
    renovation_costs: float = Field(default=0, ge=0, description="Immediate renovations in $")

    # Income
    gross_annual_rent: float = Field(default=600_000, ge=0, description="Gross rent in $/yr")
    vacancy_rate: float = Field(default=10, ge=0, le=100, description="Rent lost to vacancy %")

    # Luxury services ($/yr)
    concierge: float = Field(default=120_000, ge=0)
    specialized_security: float = Field(default=180_000, ge=0)
    high_end_landscaping: float = Field(default=95_000, ge=0)
    pool_maintenance: float = Field(default=45_000, ge=0)
    wine_climate: float = Field(default=25_000, ge=0)
    smart_home_systems: float = Field(default=35_000, ge=0)
    property_management: float = Field(default=60_000, ge=0)

    # Staffing
    live_in_staff: int = Field(default=2, ge=0, le=50)
    security_team: int = Field(default=1, ge=0, le=50)
    property_managers: int = Field(default=1, ge=0, le=50)
    avg_staff_salary: float = Field(default=85_000, ge=0, description="Average salary in $/yr")

    # Specialized maintenance
    infinity_pool: bool = True
    wine_climate_control: bool = False
    smart_home_updates: bool = True

    # Fixed costs
    property_tax_rate: float = Field(default=1.1, ge=0, le=100, description="Property tax % of value")
    annual_insurance: float = Field(default=75_000, ge=0, description="Insurance in $/yr")

    # Financing
    ltv_ratio: float = Field(default=50, ge=0, le=100, description="Loan-to-value %")
    interest_rate: float = Field(default=5.5, ge=0, le=30, description="Annual interest rate %")
    loan_term_years: int = Field(default=30, ge=1, le=50)

    # Holding structure
    holding_structure: HoldingStructure = "llc"

    # Appreciation & scarcity
    base_appreciation_rate: float = Field(default=3.5, ge=0, le=100, description="Base appreciation %/yr")
    scarcity_private_beach: bool = False
    scarcity_historic_heritage: bool = False
    scarcity_starchitect: bool = False
    scarcity_unique_view: bool = False

    # Hold & exit
    hold_period_years: int = Field(default=10, ge=0, le=50)
    target_exit_profit: float = Field(default=5_000_000, ge=0, description="Target profit at exit in $")

    # Liquidity context
    price_bracket: PriceBracket = "ultra"
    market_region: str = Field(default="beverly-hills", description="Key of the market region table")

    model_config = {
        "frozen": True,
        "extra": "forbid",
        "alias_generator": to_camel,
        "populate_by_name": True,
        "validate_default": True,
        "allow_inf_nan": False,
    }

    @field_validator("market_region")
    @classmethod
    def _known_region(cls, value: str) -> str:
        if value not in MARKET_LIQUIDITY:
            raise ValueError(f"unknown market region '{value}'")
        return value

    @classmethod
    def field_name(cls, key: str) -> str | None:
        """Resolve a snake_case name or camelCase alias to the field name."""
        if key in cls.model_fields:
            return key
        for name, info in cls.model_fields.items():
            if info.alias == key:
                return name
        return None
