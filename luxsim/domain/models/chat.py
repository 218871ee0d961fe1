"""Chat and advisor data models."""

from __future__ import annotations

import time
from typing import Any, Literal

from pydantic import BaseModel, Field, computed_field

from luxsim.domain.models.scenario import ScenarioState

Role = Literal["user", "assistant"]
Goal = Literal[
    "minimize-cost",
    "maximize-return",
    "maximize-cashflow",
    "reduce-risk",
    "optimize-tax",
    "general",
]


class ChatMessage(BaseModel):
    """One entry of the conversation log. Never mutated after creation."""

    role: Role
    text: str
    params: dict[str, Any] = Field(default_factory=dict, description="Parameter delta attached to the message")
    timestamp: float = Field(default_factory=time.time)

    model_config = {
        "frozen": True,
    }


class ExtractionResult(BaseModel):
    """Fields recognised in one message and what was understood."""

    params: dict[str, Any] = Field(default_factory=dict)
    descriptions: list[str] = Field(default_factory=list)

    @computed_field
    @property
    def is_empty(self) -> bool:
        return not self.params


class GoalDetection(BaseModel):
    """Result of goal detection on a user message."""

    is_advice: bool = False
    goal: Goal = "general"


class AdviceResult(BaseModel):
    """Advice text plus the parameter delta it recommends."""

    text: str
    recommended_params: dict[str, Any] = Field(default_factory=dict)
    estimated_savings: float = Field(default=0.0, ge=0, description="Sum of zeroed service budgets in $/yr")
    staffing_savings: float = Field(default=0.0, ge=0, description="Salary savings from staff cuts in $/yr")


class MessageResult(BaseModel):
    """Outcome of processing one chat message."""

    updated_state: ScenarioState
    response_text: str
    applied_delta: dict[str, Any] = Field(default_factory=dict)
    descriptions: list[str] = Field(default_factory=list)
    goal: Goal | None = None
    rejected_fields: list[str] = Field(default_factory=list)
