"""Dashboard insight helpers.

Value decomposition and upgrade ROI estimates shown next to the core
metrics. Ratios are editorial rules of thumb, not appraisals.
"""

from __future__ import annotations

from dataclasses import dataclass

from luxsim.core.constants import PREMIUM_THRESHOLD, ULTRA_THRESHOLD
from luxsim.core.financial import round_to_step
from luxsim.domain.models.scenario import ScenarioState

# (land, structure) share of value by tier; intangibles take the rest
VALUE_SPLIT = {
    "ultra": (0.55, 0.25),
    "premium": (0.45, 0.35),
    "entry": (0.35, 0.45),
}

SAFE_LAND_RATIO = 0.5
MODERATE_LAND_RATIO = 0.35

UPGRADE_BASELINE_VALUE = 15_000_000

# label, cost, ARV boost, rounding step, cost floor, ARV floor (at the baseline value)
UPGRADES: tuple[tuple[str, float, float, float, float, float], ...] = (
    ("Chef's Kitchen Remodel", 350_000, 550_000, 25_000, 100_000, 175_000),
    ("Primary Suite Expansion", 250_000, 400_000, 25_000, 75_000, 125_000),
    ("Infinity Pool / Water Feature", 450_000, 600_000, 25_000, 150_000, 200_000),
    ("Smart Home Integration", 180_000, 250_000, 10_000, 60_000, 80_000),
    ("Home Theater / Entertainment", 200_000, 280_000, 25_000, 75_000, 100_000),
    ("Sea Wall / Coastal Protection", 300_000, 500_000, 25_000, 100_000, 175_000),
    ("Landscaping & Outdoor Living", 220_000, 380_000, 25_000, 75_000, 125_000),
    ("Wine Cellar & Tasting Room", 150_000, 200_000, 10_000, 50_000, 70_000),
)


@dataclass(frozen=True)
class ValueLayer:
    label: str
    value: float
    pct: float


@dataclass(frozen=True)
class ValueLayers:
    """Land / structure / intangible decomposition of the purchase price."""

    land: ValueLayer
    structure: ValueLayer
    intangible: ValueLayer
    intangible_breakdown: tuple[ValueLayer, ...]
    downside_protection: str

    @property
    def layers(self) -> tuple[ValueLayer, ValueLayer, ValueLayer]:
        return (self.land, self.structure, self.intangible)


@dataclass(frozen=True)
class Upgrade:
    label: str
    cost: float
    arv_boost: float

    @property
    def net_gain(self) -> float:
        return self.arv_boost - self.cost

    @property
    def roi(self) -> float:
        """Return on the upgrade cost, in %."""
        return (self.arv_boost - self.cost) / self.cost * 100 if self.cost else 0.0


def price_tier(property_value: float) -> str:
    if property_value >= ULTRA_THRESHOLD:
        return "ultra"
    if property_value >= PREMIUM_THRESHOLD:
        return "premium"
    return "entry"


def value_layers(state: ScenarioState) -> ValueLayers:
    """Split the property value into land, structure and intangible layers.

    Intangibles are spread over five drivers whose weights rise with the
    matching scarcity flags.
    """
    value = state.property_value
    land_ratio, structure_ratio = VALUE_SPLIT[price_tier(value)]
    intangible_ratio = 1 - land_ratio - structure_ratio
    intangible_value = value * intangible_ratio

    weights = (
        ("Water Frontage / Views", 40 if state.scarcity_unique_view or state.scarcity_private_beach else 15),
        ("Zoning & Development Rights", 20),
        ("Privacy & Exclusivity", 25 if state.scarcity_private_beach else 15),
        ("Brand / Architect Premium", 30 if state.scarcity_starchitect else 10),
        ("Heritage & Provenance", 25 if state.scarcity_historic_heritage else 10),
    )
    total_weight = sum(w for _, w in weights)
    breakdown = tuple(
        ValueLayer(label=label, value=intangible_value * w / total_weight, pct=w / total_weight * 100)
        for label, w in weights
    )

    if land_ratio >= SAFE_LAND_RATIO:
        protection = "High"
    elif land_ratio >= MODERATE_LAND_RATIO:
        protection = "Moderate"
    else:
        protection = "Low"

    return ValueLayers(
        land=ValueLayer("Land Value", value * land_ratio, land_ratio * 100),
        structure=ValueLayer("Structure Value", value * structure_ratio, structure_ratio * 100),
        intangible=ValueLayer("Intangible Value", intangible_value, intangible_ratio * 100),
        intangible_breakdown=breakdown,
        downside_protection=protection,
    )


def upgrade_frontier(state: ScenarioState) -> list[Upgrade]:
    """Candidate upgrades scaled to the property value, best ROI first."""
    factor = state.property_value / UPGRADE_BASELINE_VALUE
    upgrades = []
    for label, cost, arv, step, cost_floor, arv_floor in UPGRADES:
        upgrades.append(
            Upgrade(
                label=label,
                cost=round_to_step(cost * factor, step) or cost_floor,
                arv_boost=round_to_step(arv * factor, step) or arv_floor,
            )
        )
    return sorted(upgrades, key=lambda u: u.roi, reverse=True)
