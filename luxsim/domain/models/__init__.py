"""Domain models package."""

from .chat import (
    AdviceResult,
    ChatMessage,
    ExtractionResult,
    GoalDetection,
    MessageResult,
)
from .metrics import (
    BurnRate,
    LiquidityForecast,
    MacroShockGrid,
    MetricsBundle,
    RegionLiquidity,
    StructureComparison,
    WaterfallStep,
    YearProjection,
)
from .scenario import HoldingStructure, PriceBracket, ScenarioState

__all__ = [
    "ScenarioState",
    "HoldingStructure",
    "PriceBracket",
    "MetricsBundle",
    "YearProjection",
    "WaterfallStep",
    "StructureComparison",
    "RegionLiquidity",
    "LiquidityForecast",
    "MacroShockGrid",
    "BurnRate",
    "ChatMessage",
    "ExtractionResult",
    "GoalDetection",
    "AdviceResult",
    "MessageResult",
]
