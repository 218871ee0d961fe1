"""Application services: scenario lifecycle, extraction, advice, narrative and chat."""

from .advisor import detect_goal, generate_advice
from .chat import ChatSession, ChatTranscript, WELCOME_MESSAGE, apply_delta, process_message
from .extractor import parse_money, parse_percent, parse_user_message, parse_years
from .narrative import (
    format_usd,
    generate_analysis,
    generate_change_summary,
    generate_guidance,
    generate_intake_summary,
    is_analysis_request,
)
from .scenario import detect_region, generate_scaled_defaults, initialize_scenario, update_scenario

__all__ = [
    "initialize_scenario",
    "update_scenario",
    "generate_scaled_defaults",
    "detect_region",
    "parse_user_message",
    "parse_money",
    "parse_percent",
    "parse_years",
    "detect_goal",
    "generate_advice",
    "format_usd",
    "generate_analysis",
    "generate_change_summary",
    "generate_intake_summary",
    "generate_guidance",
    "is_analysis_request",
    "process_message",
    "apply_delta",
    "ChatSession",
    "ChatTranscript",
    "WELCOME_MESSAGE",
]
