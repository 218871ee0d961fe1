"""Goal-oriented advice.

Detects an optimisation goal in a chat message ("minimize my cost",
"reduce risk", ...) and proposes a parameter delta for it together with a
markdown explanation. The delta is only a proposal; the chat layer applies
it through the normal scenario update path.
"""

from __future__ import annotations

import math
import re
from typing import Any

from luxsim.core.constants import FIELD_BOUNDS, SERVICE_FIELDS, STAFF_FIELDS
from luxsim.core.financial import round_to_step
from luxsim.core.logging import get_logger
from luxsim.application.services.narrative import format_usd
from luxsim.domain.models.chat import AdviceResult, Goal, GoalDetection
from luxsim.domain.models.metrics import MetricsBundle
from luxsim.domain.models.scenario import ScenarioState

log = get_logger(__name__)

# First match wins
GOAL_PATTERNS: tuple[tuple[re.Pattern[str], Goal], ...] = (
    (
        re.compile(
            r"\b(?:minimize|reduce|lower|cut|decrease)\s+(?:my\s+)?"
            r"(?:cost|expense|spending|carry|overhead|burn|outgoing)",
            re.I,
        ),
        "minimize-cost",
    ),
    (
        re.compile(
            r"\b(?:maximize|increase|boost|improve|best|highest|optimize)\s+(?:my\s+)?"
            r"(?:return|irr|yield|profit|gain|roi)",
            re.I,
        ),
        "maximize-return",
    ),
    (
        re.compile(
            r"\b(?:improve|increase|boost|maximize|positive)\s+(?:my\s+)?"
            r"(?:cash\s*flow|income|revenue|net\s+income)",
            re.I,
        ),
        "maximize-cashflow",
    ),
    (
        re.compile(r"\b(?:reduce|minimize|lower|limit)\s+(?:my\s+)?(?:risk|exposure|downside|volatility)", re.I),
        "reduce-risk",
    ),
    (
        re.compile(r"\b(?:optimize|best|minimize)\s+(?:my\s+)?(?:tax|taxes|structure|fiscal)", re.I),
        "optimize-tax",
    ),
    (
        re.compile(
            r"\b(?:advice|recommend|suggest|optimize|what\s+should\s+i|how\s+(?:can|do|should)\s+i"
            r"|best\s+(?:way|strategy|approach|move))\b",
            re.I,
        ),
        "general",
    ),
)

# Thresholds ($/yr) used when trimming service budgets
ELIMINATE_SERVICE_MIN = 25_000
HALVE_SERVICE_MIN = 20_000
HALVED_BUDGET_STEP = 5_000

NON_ESSENTIAL_SERVICES = ("concierge", "wine_climate", "smart_home_systems")

RENOVATION_BUDGET_RATIO = 0.03
RENOVATION_BUDGET_STEP = 25_000
DEPRECIABLE_SHARE = 0.8
DEPRECIATION_YEARS = 27.5

LOW_COC_PCT = 3.0
HIGH_CARRY_PCT = 3.0
LOW_IRR_PCT = 5.0


def detect_goal(text: str) -> GoalDetection:
    """Optimisation goal requested in ``text``, if any."""
    for pattern, goal in GOAL_PATTERNS:
        if pattern.search(text):
            return GoalDetection(is_advice=True, goal=goal)
    return GoalDetection()


def _ranked_services(state: ScenarioState) -> list[tuple[str, str, float]]:
    """Non-zero service budgets as (field, label, value), largest first."""
    services = [(f, label, getattr(state, f)) for f, label in SERVICE_FIELDS.items()]
    return sorted((s for s in services if s[2] > 0), key=lambda s: s[2], reverse=True)


def _headcount(state: ScenarioState) -> int:
    return sum(getattr(state, f) for f in STAFF_FIELDS)


class _Proposal:
    """Accumulates a recommended delta and its numbered advice lines."""

    def __init__(self) -> None:
        self.params: dict[str, Any] = {}
        self.lines: list[str] = []
        self._n = 1

    def set(self, field: str, value: Any) -> bool:
        low, high = FIELD_BOUNDS.get(field, (-math.inf, math.inf))
        if isinstance(value, (int, float)) and not isinstance(value, bool) and not low <= value <= high:
            log.warning("advice_out_of_range", field=field, value=value)
            return False
        self.params[field] = value
        return True

    def step(self, text: str) -> None:
        self.lines.append(f"{self._n}. {text}")
        self._n += 1


def _minimize_cost(state: ScenarioState, metrics: MetricsBundle, p: _Proposal) -> tuple[float, float]:
    services = _ranked_services(state)
    staff_cost = _headcount(state) * state.avg_staff_salary

    p.lines.append("**Goal: Minimize Carry Cost**\n")
    p.lines.append(
        f"Current annual carry: **{format_usd(metrics.total_carry_cost)}** "
        f"({metrics.carry_ratio:.1f}% of property value)\n"
    )
    p.lines.append("**Cost breakdown (ranked by impact):**\n")
    if metrics.annual_debt_service > 0:
        p.lines.append(f"• Debt service: {format_usd(metrics.annual_debt_service)}/yr")
    if staff_cost > 0:
        p.lines.append(f"• Staffing ({_headcount(state)} people): {format_usd(staff_cost)}/yr")
    p.lines.extend(f"• {label}: {format_usd(value)}/yr" for _, label, value in services)
    p.lines.append(f"• Property tax: {format_usd(metrics.property_tax)}/yr")
    p.lines.append(f"• Insurance: {format_usd(state.annual_insurance)}/yr\n")
    p.lines.append("**Recommendations:**\n")

    service_savings = 0.0
    for field, label, value in services:
        if value >= ELIMINATE_SERVICE_MIN and p.set(field, 0):
            service_savings += value
            p.step(f"**Eliminate {label}** → save {format_usd(value)}/yr")

    staff_savings = 0.0
    if staff_cost > 0:
        managers = min(1, state.property_managers)
        p.set("live_in_staff", 0)
        p.set("security_team", 0)
        p.set("property_managers", managers)
        staff_savings = max(0.0, staff_cost - managers * state.avg_staff_salary)
        if staff_savings > 0:
            p.step(f"**Reduce staff** to 1 property manager → save {format_usd(staff_savings)}/yr")

    if state.loan_term_years < 30 and metrics.loan_amount > 0 and p.set("loan_term_years", 30):
        p.step("**Extend loan to 30 years** → lower monthly payment")

    p.lines.append(f"\n**Estimated annual savings: {format_usd(service_savings + staff_savings)}/yr**")
    p.lines.append("\n_Applying cost-cutting changes now…_")
    return service_savings, staff_savings


def _maximize_return(state: ScenarioState, metrics: MetricsBundle, p: _Proposal) -> None:
    irr = f"{metrics.irr_percent:.1f}%" if math.isfinite(metrics.irr_percent) else "N/A"
    p.lines.append("**Goal: Maximize IRR & Return**\n")
    p.lines.append(f"Current IRR: **{irr}** · CoC: **{metrics.cash_on_cash:.1f}%**\n")
    p.lines.append("**Recommendations:**\n")

    if state.ltv_ratio < 70 and p.set("ltv_ratio", 70):
        p.step("**Increase leverage to 70% LTV** → more capital-efficient")

    cut = 0.0
    for field, _, value in _ranked_services(state):
        if field in NON_ESSENTIAL_SERVICES and p.set(field, 0):
            cut += value
    if cut > 0:
        p.step(f"**Cut non-essential services** → +{format_usd(cut)}/yr to NOI")

    if _headcount(state) * state.avg_staff_salary > state.avg_staff_salary:
        p.set("live_in_staff", 0)
        p.set("security_team", 0)
        p.set("property_managers", 1)
        p.step("**Minimize staffing** → keep 1 manager")

    if state.hold_period_years < 7 and p.set("hold_period_years", 7):
        p.step("**Hold at least 7 years** → compound appreciation")
    if state.holding_structure == "personal":
        p.set("holding_structure", "llc")
        p.step("**Switch to LLC** → liability protection + tax flexibility")
    p.lines.append("\n_Applying return-maximizing changes…_")


def _maximize_cashflow(state: ScenarioState, metrics: MetricsBundle, p: _Proposal) -> None:
    sign = "+" if metrics.annual_cash_flow >= 0 else ""
    p.lines.append("**Goal: Maximize Cash Flow**\n")
    p.lines.append(f"Current annual cash flow: **{sign}{format_usd(metrics.annual_cash_flow)}**\n")
    p.lines.append("**Recommendations:**\n")

    if state.ltv_ratio > 50 and p.set("ltv_ratio", 50):
        p.step("**Reduce leverage to 50%** → lower debt service")
    if state.loan_term_years < 30 and metrics.loan_amount > 0 and p.set("loan_term_years", 30):
        p.step("**Extend loan to 30 years** → lower payments")

    cut = 0.0
    for field, _, value in _ranked_services(state):
        if value > HALVE_SERVICE_MIN:
            half = round_to_step(value * 0.5, HALVED_BUDGET_STEP)
            if p.set(field, half):
                cut += value - half
    if cut > 0:
        p.step(f"**Halve service budgets** → save {format_usd(cut)}/yr")

    if state.vacancy_rate > 8 and p.set("vacancy_rate", 5):
        p.step("**Target 5% vacancy** through premium tenant retention")
    p.lines.append("\n_Applying cash-flow optimizations…_")


def _reduce_risk(state: ScenarioState, metrics: MetricsBundle, p: _Proposal) -> None:
    p.lines.append("**Goal: Reduce Risk & Protect Downside**\n")
    p.lines.append("**Recommendations:**\n")

    if state.ltv_ratio > 40 and p.set("ltv_ratio", 40):
        p.step("**Lower leverage to 40% LTV** → bigger equity cushion")
    if state.holding_structure == "personal":
        p.set("holding_structure", "llc")
        p.step("**Use LLC** → asset protection + liability shield")
    if state.hold_period_years < 10 and p.set("hold_period_years", 10):
        p.step("**Plan 10+ year hold** → ride out market cycles")
    if state.vacancy_rate < 10 and p.set("vacancy_rate", 15):
        p.step("**Model 15% vacancy** → conservative stress test")
    if state.base_appreciation_rate > 3 and p.set("base_appreciation_rate", 2.5):
        p.step("**Use 2.5% appreciation** → conservative growth assumption")
    p.lines.append("\n_Applying conservative parameters…_")


def _optimize_tax(state: ScenarioState, metrics: MetricsBundle, p: _Proposal) -> None:
    p.lines.append("**Goal: Tax Optimization**\n")
    p.lines.append("**Recommendations:**\n")

    if state.holding_structure == "personal":
        p.set("holding_structure", "llc")
        p.step("**Move to LLC** → pass-through taxation, deductible expenses")
    elif state.holding_structure == "llc":
        p.set("holding_structure", "trust")
        p.step("**Consider irrevocable trust** → estate planning + tax deferral")

    if state.renovation_costs == 0:
        budget = round_to_step(state.property_value * RENOVATION_BUDGET_RATIO, RENOVATION_BUDGET_STEP)
        p.set("renovation_costs", budget)
        p.step(f"**Budget {format_usd(budget)} for renovation** → deductible improvements")
    if state.hold_period_years < 5 and p.set("hold_period_years", 5):
        p.step("**Hold 5+ years** → long-term capital gains treatment")

    depreciation = round_to_step(state.property_value * DEPRECIABLE_SHARE / DEPRECIATION_YEARS, 1)
    p.lines.append(
        f"\n**Note:** Estimated annual depreciation: ~{format_usd(depreciation)} (27.5-year schedule on 80% of "
        "value) — a non-cash deduction that reduces taxable income."
    )
    p.lines.append("\n_Applying tax-optimized parameters…_")


def _general(state: ScenarioState, metrics: MetricsBundle, p: _Proposal) -> None:
    p.lines.append("**Investment Optimization Summary**\n")

    if metrics.cash_on_cash < LOW_COC_PCT and metrics.loan_amount > 0:
        p.lines.append(f"**Challenge: Low cash yield ({metrics.cash_on_cash:.1f}% CoC)**")
        for field, label, value in _ranked_services(state)[:2]:
            if value >= HALVE_SERVICE_MIN:
                half = round_to_step(value * 0.5, HALVED_BUDGET_STEP)
                if p.set(field, half):
                    p.lines.append(f"• Reduce {label}: {format_usd(value)} → {format_usd(half)}")

    if metrics.carry_ratio > HIGH_CARRY_PCT:
        p.lines.append(f"\n**Challenge: High carry ({metrics.carry_ratio:.1f}%)**. Target: under 3%.")

    weak_irr = not math.isfinite(metrics.irr_percent) or metrics.irr_percent < LOW_IRR_PCT
    if weak_irr and state.hold_period_years < 7 and p.set("hold_period_years", 10):
        p.lines.append("\n• **Extend hold to 10 years** for compounding")

    if not p.params:
        p.lines.append("\nYour setup looks solid. Try a specific goal:\n")
        p.lines.append('• *"minimize my cost"* — cut every expense')
        p.lines.append('• *"maximize my return"* — optimize for IRR')
        p.lines.append('• *"improve cash flow"* — boost net income')
        p.lines.append('• *"reduce risk"* — conservative posture')
        p.lines.append('• *"optimize taxes"* — best structure')
    else:
        p.lines.append("\n_Applying improvements…_")


_STRATEGIES = {
    "maximize-return": _maximize_return,
    "maximize-cashflow": _maximize_cashflow,
    "reduce-risk": _reduce_risk,
    "optimize-tax": _optimize_tax,
    "general": _general,
}


def generate_advice(goal: Goal, state: ScenarioState, metrics: MetricsBundle) -> AdviceResult:
    """Recommendations for ``goal`` given the current scenario.

    Args:
        goal: Detected optimisation goal
        state: Current scenario
        metrics: Metrics of ``state``

    Returns:
        AdviceResult with markdown text and the recommended delta. Every
        recommended value lies inside its field's valid range.
    """
    proposal = _Proposal()
    service_savings = staff_savings = 0.0

    if goal == "minimize-cost":
        service_savings, staff_savings = _minimize_cost(state, metrics, proposal)
    else:
        _STRATEGIES.get(goal, _general)(state, metrics, proposal)

    log.info("advice_generated", goal=goal, fields=sorted(proposal.params))
    return AdviceResult(
        text="\n".join(proposal.lines),
        recommended_params=proposal.params,
        estimated_savings=service_savings,
        staffing_savings=staff_savings,
    )
