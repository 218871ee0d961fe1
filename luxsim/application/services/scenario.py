"""Scenario lifecycle service.

Creates the initial scenario (optionally scaled to a listing price and
seeded from a listing address) and applies partial updates.
"""

from __future__ import annotations

import math
import re
from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from luxsim.core.constants import ADDRESS_REGION_KEYWORDS, DEFAULT_REGION
from luxsim.core.exceptions import InvalidParameterError
from luxsim.core.financial import round_to_step
from luxsim.core.logging import get_logger
from luxsim.domain.calculator.insights import price_tier
from luxsim.domain.models.scenario import ScenarioState

log = get_logger(__name__)


def _contains_keyword(text: str, keyword: str) -> bool:
    return re.search(rf"\b{re.escape(keyword)}\b", text) is not None


def match_region(text: str, keywords: Mapping[str, tuple[str, ...]]) -> str | None:
    """First region whose keyword appears in ``text`` as a whole word."""
    lower = text.lower()
    for region, words in keywords.items():
        if any(_contains_keyword(lower, w) for w in words):
            return region
    return None


def detect_region(address: str | None) -> str:
    """Map a free-form address to a market region key.

    Unknown or empty addresses fall back to the default region.
    """
    if not address:
        return DEFAULT_REGION
    return match_region(address, ADDRESS_REGION_KEYWORDS) or DEFAULT_REGION


def generate_scaled_defaults(price: float) -> dict[str, Any]:
    """Proportional defaults for a property listed at ``price``.

    Args:
        price: Listing price in $

    Returns:
        Partial scenario (field name -> value) scaled to the price tier
    """
    tier = price_tier(price)
    is_ultra = tier == "ultra"
    is_premium = tier in ("ultra", "premium")

    rent = round_to_step(price * 0.06, 25_000)

    if is_ultra:
        renovation = round_to_step(price * 0.05, 50_000)
    elif is_premium:
        renovation = round_to_step(price * 0.04, 25_000)
    else:
        renovation = round_to_step(price * 0.06, 25_000)

    landscaping_ratio = 0.006 if is_ultra else 0.004 if is_premium else 0.0012
    pool_ratio = 0.003 if is_ultra else 0.002 if is_premium else 0.0008

    return {
        "property_value": price,
        "gross_annual_rent": rent,
        "vacancy_rate": 10,
        "closing_costs": round_to_step(price * 0.03, 5_000),
        "renovation_costs": renovation,
        "concierge": round_to_step(price * 0.008, 10_000) if is_premium else 0,
        "specialized_security": round_to_step(price * 0.012, 10_000) if is_premium else 0,
        "high_end_landscaping": round_to_step(price * landscaping_ratio, 1_000),
        "pool_maintenance": round_to_step(price * pool_ratio, 1_000),
        "wine_climate": round_to_step(price * 0.0017, 5_000) if is_ultra else 0,
        "smart_home_systems": (
            round_to_step(price * 0.0023, 5_000) if is_premium else round_to_step(price * 0.0012, 1_000)
        ),
        "property_management": round_to_step(rent * 0.10, 5_000),
        "live_in_staff": 2 if is_ultra else 0,
        "security_team": 1 if is_ultra else 0,
        "property_managers": 1 if is_premium else 0,
        "avg_staff_salary": 85_000,
        "infinity_pool": is_premium,
        "wine_climate_control": False,
        "smart_home_updates": is_premium,
        "property_tax_rate": 1.1 if is_ultra else 1.2,
        "annual_insurance": round_to_step(price * 0.005, 1_000),
        "price_bracket": tier,
        "hold_period_years": 10,
        "target_exit_profit": round_to_step(price * 0.30, 500_000) or 500_000,
    }


def initialize_scenario(property_value: float | None = None, address: str | None = None) -> ScenarioState:
    """Create the starting scenario.

    Args:
        property_value: Listing price; when given, costs and income are
            scaled to it, otherwise the baseline defaults are used
        address: Listing address used to seed the market region

    Returns:
        Fully populated ScenarioState

    Raises:
        InvalidParameterError: Non-finite property value
    """
    values: dict[str, Any] = {}
    if property_value is not None and not math.isfinite(property_value):
        raise InvalidParameterError("property_value", property_value, "must be a finite amount")
    if property_value is not None and property_value > 0:
        values.update(generate_scaled_defaults(property_value))
    if address:
        values["market_region"] = detect_region(address)

    state = ScenarioState(**values)
    log.info(
        "scenario_initialized",
        property_value=state.property_value,
        market_region=state.market_region,
        price_bracket=state.price_bracket,
    )
    return state


def update_scenario(current: ScenarioState, delta: Mapping[str, Any]) -> ScenarioState:
    """Merge a partial update into a scenario.

    Keys may be field names or camelCase aliases. ``current`` is never
    modified.

    Raises:
        InvalidParameterError: Unknown field or a value outside its range
    """
    normalized: dict[str, Any] = {}
    for key, value in delta.items():
        name = ScenarioState.field_name(key)
        if name is None:
            raise InvalidParameterError(key, value, "unknown scenario field")
        normalized[name] = value

    if not normalized:
        return current

    merged = {**current.model_dump(), **normalized}
    try:
        state = ScenarioState.model_validate(merged)
    except ValidationError as e:
        error = e.errors()[0]
        loc = error.get("loc") or ("?",)
        field = ScenarioState.field_name(str(loc[0])) or str(loc[0])
        raise InvalidParameterError(field, merged.get(field), error.get("msg", "")) from e

    log.debug("scenario_updated", fields=sorted(normalized))
    return state
