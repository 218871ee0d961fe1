"""Financial engine, stress grids and dashboard insights."""

from .engine import compute_metrics, compute_metrics_cached, liquidity_risk, scarcity_bonus
from .insights import upgrade_frontier, value_layers
from .stress import macro_shock_grid, macro_shock_grids, stress_horizons

__all__ = [
    "compute_metrics",
    "compute_metrics_cached",
    "liquidity_risk",
    "scarcity_bonus",
    "macro_shock_grid",
    "macro_shock_grids",
    "stress_horizons",
    "value_layers",
    "upgrade_frontier",
]
