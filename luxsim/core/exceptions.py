"""Custom exceptions for luxsim.

Domain-specific exception types for better error handling and debugging.
"""

from __future__ import annotations

from typing import Any


class LuxSimError(Exception):
    """Base exception for all luxsim errors."""
    pass


# --- Scenario Errors ---

class ScenarioError(LuxSimError):
    """Scenario state could not be built or merged."""
    pass


class InvalidParameterError(ScenarioError):
    """Invalid parameter value provided."""

    def __init__(self, param_name: str, value: Any, reason: str = ""):
        self.param_name = param_name
        self.value = value
        self.reason = reason
        msg = f"Invalid parameter '{param_name}': {value}"
        if reason:
            msg += f" - {reason}"
        super().__init__(msg)


# --- Configuration Errors ---

class ConfigurationError(LuxSimError):
    """Error in application configuration."""
    pass
