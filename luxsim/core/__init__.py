"""Core financial primitives and application plumbing."""

from .exceptions import (
    ConfigurationError,
    InvalidParameterError,
    LuxSimError,
    ScenarioError,
)
from .financial import (
    calculate_monthly_payment,
    calculate_remaining_balance,
    generate_amortization_schedule,
    round_to_step,
    solve_irr,
)

__all__ = [
    "calculate_monthly_payment",
    "calculate_remaining_balance",
    "generate_amortization_schedule",
    "round_to_step",
    "solve_irr",
    # Exceptions
    "LuxSimError",
    "ScenarioError",
    "InvalidParameterError",
    "ConfigurationError",
]
