"""Unit tests for value decomposition and upgrade estimates."""

import pytest

from luxsim.core.financial import round_to_step
from luxsim.domain.calculator.insights import UPGRADES, price_tier, upgrade_frontier, value_layers
from luxsim.domain.models.scenario import ScenarioState


class TestPriceTier:
    @pytest.mark.parametrize(
        "value,tier",
        [(10_000_000, "ultra"), (9_999_999, "premium"), (5_000_000, "premium"), (4_999_999, "entry"), (0, "entry")],
    )
    def test_tiers(self, value, tier):
        assert price_tier(value) == tier


class TestValueLayers:
    """Tests for the land / structure / intangible split."""

    def test_ultra_split(self, default_state):
        layers = value_layers(default_state)
        assert layers.land.value == pytest.approx(8_250_000)
        assert layers.structure.value == pytest.approx(3_750_000)
        assert layers.intangible.value == pytest.approx(3_000_000)
        assert layers.downside_protection == "High"

    def test_layers_sum_to_value(self, miami_state):
        layers = value_layers(miami_state)
        assert sum(layer.value for layer in layers.layers) == pytest.approx(miami_state.property_value)
        assert sum(layer.pct for layer in layers.layers) == pytest.approx(100)

    def test_breakdown_sums_to_intangible(self, scarce_state):
        layers = value_layers(scarce_state)
        assert sum(d.value for d in layers.intangible_breakdown) == pytest.approx(layers.intangible.value)
        assert sum(d.pct for d in layers.intangible_breakdown) == pytest.approx(100)

    def test_scarcity_shifts_weights(self, default_state):
        plain = value_layers(default_state)
        starchitect = value_layers(ScenarioState(scarcity_starchitect=True))
        brand = [d for d in starchitect.intangible_breakdown if d.label.startswith("Brand")][0]
        plain_brand = [d for d in plain.intangible_breakdown if d.label.startswith("Brand")][0]
        assert brand.pct > plain_brand.pct

    def test_entry_protection(self):
        assert value_layers(ScenarioState(property_value=3_000_000)).downside_protection == "Moderate"


class TestUpgradeFrontier:
    """Tests for scaled upgrade estimates."""

    def test_baseline_costs(self, default_state):
        """At $15M the table values are only rounded to their step."""
        upgrades = {u.label: u for u in upgrade_frontier(default_state)}
        for label, cost, arv, step, *_ in UPGRADES:
            assert upgrades[label].cost == round_to_step(cost, step)
            assert upgrades[label].arv_boost == round_to_step(arv, step)

    def test_sorted_by_roi(self, default_state):
        rois = [u.roi for u in upgrade_frontier(default_state)]
        assert rois == sorted(rois, reverse=True)

    def test_floors(self):
        upgrades = {u.label: u for u in upgrade_frontier(ScenarioState(property_value=0))}
        for label, _, _, _, cost_floor, arv_floor in UPGRADES:
            assert upgrades[label].cost == cost_floor
            assert upgrades[label].arv_boost == arv_floor

    def test_net_gain(self, default_state):
        for upgrade in upgrade_frontier(default_state):
            assert upgrade.net_gain == upgrade.arv_boost - upgrade.cost
