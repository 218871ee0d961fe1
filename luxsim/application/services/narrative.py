"""Narrative generation.

Renders a scenario and its metrics as the markdown text shown in the chat:
a grouped "intake" summary after a bulk description, an incremental
change summary otherwise, and a guidance message when nothing was
understood. Remark thresholds are fixed editorial constants.
"""

from __future__ import annotations

import math
import re
from collections.abc import Mapping, Sequence
from typing import Any

from luxsim.domain.models.metrics import MetricsBundle
from luxsim.domain.models.scenario import ScenarioState

# Number of extracted descriptions at which a message counts as a bulk intake
BULK_INTAKE_THRESHOLD = 4

# Cap rate remarks (%)
CAP_RATE_STRONG = 4.0
CAP_RATE_SOLID = 2.0

# Cash-on-cash remarks (%)
COC_STRONG = 6.0
COC_DECENT = 3.0

# IRR remarks (%)
IRR_EXCELLENT = 10.0
IRR_SOLID = 7.0
IRR_MODERATE = 4.0

GUIDANCE_MESSAGE = (
    "I couldn't detect specific parameters. Try telling me everything about the property in one "
    "message — price, rent, location, financing, amenities — and I'll set it all up.\n\n"
    'Or ask me to *"analyze this"*, *"minimize my cost"*, or *"maximize my return"*.'
)

ANALYSIS_REQUEST_DESCRIPTION = "Analyzing current scenario"

_ANALYSIS_REQUEST_RE = re.compile(
    r"\b(analy[zs]e|review|summary|summarize|tell me|how does|what do you think|opinion|assess"
    r"|evaluate|break.?down|overview|report|current|this property|the numbers)\b",
    re.IGNORECASE,
)

# Intake sections, in display order. A description may appear in several.
INTAKE_SECTIONS: tuple[tuple[str, re.Pattern[str]], ...] = (
    ("Property", re.compile(r"property value|listing|price|worth", re.I)),
    ("Income", re.compile(r"rent|income|vacancy", re.I)),
    ("Financing", re.compile(r"ltv|down payment|interest|loan|mortgage|all-cash|leverage", re.I)),
    ("Acquisition & Fixed Costs", re.compile(r"closing|renovation|tax|insurance|hoa", re.I)),
    (
        "Services & Amenities",
        re.compile(r"security|landscaping|pool|concierge|wine|smart|management|staff|enabled|disabled", re.I),
    ),
    ("Strategy & Market", re.compile(r"hold|structure|region|appreciation|scarcity", re.I)),
)


def format_usd(value: float, decimals: int = 1) -> str:
    """Compact dollar amount: $6.5M, $420K or $950."""
    if abs(value) >= 1_000_000:
        return f"${value / 1_000_000:.{decimals}f}M"
    if abs(value) >= 1_000:
        return f"${value / 1_000:.0f}K"
    return f"${value:.0f}"


def format_number(value: float) -> str:
    """Shortest plain rendering of a number (30.0 -> '30', 6.5 -> '6.5')."""
    return f"{value:g}"


def _signed_usd(value: float) -> str:
    return f"{'+' if value >= 0 else ''}{format_usd(value)}"


def _format_irr(metrics: MetricsBundle) -> str:
    if not math.isfinite(metrics.irr_percent):
        return "N/A"
    return f"{metrics.irr_percent:.1f}%"


def _format_dscr(dscr: float) -> str:
    return "∞" if math.isinf(dscr) else f"{dscr:.2f}"


def is_analysis_request(text: str) -> bool:
    """True when the user asks for a walkthrough of the current numbers."""
    return _ANALYSIS_REQUEST_RE.search(text) is not None


def generate_guidance() -> str:
    return GUIDANCE_MESSAGE


def generate_intake_summary(
    state: ScenarioState,
    metrics: MetricsBundle,
    changes: Mapping[str, Any],
    descriptions: Sequence[str],
) -> str:
    """Grouped summary of a bulk property description plus key metrics.

    Args:
        state: Scenario after the changes were applied
        metrics: Metrics of that scenario
        changes: Applied parameter delta
        descriptions: What was extracted, one line per field

    Returns:
        Markdown text
    """
    lines = ["**I've set up the property. Here's what I detected:**\n"]

    grouped: set[str] = set()
    for title, pattern in INTAKE_SECTIONS:
        items = [d for d in descriptions if pattern.search(d)]
        grouped.update(items)
        _section(lines, title, items)
    _section(lines, "Other", [d for d in descriptions if d not in grouped])

    lines.append("**Instant Analysis:**")
    lines.append(f"• NOI: **{format_usd(metrics.noi)}/yr** · Cap Rate: **{metrics.cap_rate:.2f}%**")
    if metrics.loan_amount > 0:
        lines.append(
            f"• Cash-on-Cash: **{metrics.cash_on_cash:.2f}%** · DSCR: **{_format_dscr(metrics.dscr)}**"
        )
        lines.append(
            f"• Monthly payment: **{format_usd(metrics.monthly_payment)}** · "
            f"Annual cash flow: **{_signed_usd(metrics.annual_cash_flow)}**"
        )
    lines.append(
        f"• Carry Cost: **{metrics.carry_ratio:.2f}%** of value ({format_usd(metrics.total_carry_cost)}/yr)"
    )
    lines.append(f"• IRR ({state.hold_period_years}yr): **{_format_irr(metrics)}**")
    lines.append(f"• Break-Even Appreciation: **{metrics.break_even_appreciation:.2f}%/yr**")
    lines.append("")

    if metrics.cap_rate >= CAP_RATE_STRONG:
        lines.append("_Strong cap rate for luxury — this is a genuine income-producing asset._")
    elif metrics.cap_rate >= CAP_RATE_SOLID:
        lines.append("_Solid cap rate for prime luxury — a safe-haven asset with reliable income._")
    else:
        lines.append("_This is a prestige asset — the investment thesis rests on appreciation and lifestyle value._")

    lines.append("")
    lines.append(
        "_The simulator is now live with all your data. Feel free to tweak anything — just tell me what "
        'to change, or ask me to **"minimize my cost"** or **"maximize my return"**._'
    )
    return "\n".join(lines)


def _section(lines: list[str], title: str, items: Sequence[str]) -> None:
    if not items:
        return
    lines.append(f"**{title}:**")
    lines.extend(f"• {d}" for d in items)
    lines.append("")


def generate_change_summary(
    state: ScenarioState,
    metrics: MetricsBundle,
    changes: Mapping[str, Any],
    descriptions: Sequence[str],
) -> str:
    """What changed, followed by a full walkthrough of the scenario."""
    lines: list[str] = []

    if descriptions:
        lines.append("**Updated the simulator:**")
        lines.extend(f"• {d}" for d in descriptions)
        lines.append("")

    lines.append("**Investment Analysis**")
    lines.append("")

    # Entry cost
    lines.append("**Entry Cost (Year 0):**")
    lines.append(
        f"Purchase: {format_usd(state.property_value)} · Down payment: {format_usd(metrics.equity_invested)} · "
        f"Closing: {format_usd(state.closing_costs)} · Renovations: {format_usd(state.renovation_costs)}"
    )
    lines.append(f"Total cash outlay: **{format_usd(metrics.total_cash_invested)}**")
    lines.append("")

    # NOI and cap rate
    cap = metrics.cap_rate
    lines.append("**Annual Performance:**")
    lines.append(
        f"Gross rent: {format_usd(state.gross_annual_rent)}/yr → Effective (after "
        f"{format_number(state.vacancy_rate)}% vacancy): {format_usd(metrics.effective_rent)}/yr"
    )
    lines.append(f"Operating expenses: {format_usd(metrics.total_carry_cost)}/yr")
    lines.append(f"**NOI: {format_usd(metrics.noi)}/yr** · Cap Rate: **{cap:.2f}%**")
    if cap < CAP_RATE_SOLID:
        lines.append(f"_At {cap:.1f}%, this is a lifestyle asset — low yield but high prestige and appreciation potential._")
    elif cap < CAP_RATE_STRONG:
        lines.append(
            f"_A {cap:.1f}% cap rate is typical for stable prime luxury — it beats inflation and provides a safe haven._"
        )
    else:
        lines.append(f"_{cap:.1f}% is strong for luxury — potential value-add opportunity._")
    lines.append("")

    # Carry
    lines.append(f"**Carry Cost Ratio: {metrics.carry_ratio:.2f}%**")
    lines.append(
        f"The property burns {format_usd(metrics.total_carry_cost)}/yr ({metrics.carry_ratio:.1f}% of value) just "
        f"to stay open. Without rental income, you'd need {metrics.carry_ratio:.1f}%+ annual appreciation just to "
        "break even."
    )
    lines.append("")

    # Financing
    if metrics.loan_amount > 0:
        coc = metrics.cash_on_cash
        lines.append("**Financing:**")
        lines.append(
            f"Loan: {format_usd(metrics.loan_amount)} at {format_number(state.interest_rate)}% over "
            f"{state.loan_term_years}yr → {format_usd(metrics.monthly_payment)}/mo"
        )
        lines.append(f"Annual cash flow after debt: **{_signed_usd(metrics.annual_cash_flow)}**")
        lines.append(f"Cash-on-Cash return: **{coc:.2f}%**")
        if coc < COC_DECENT:
            lines.append(
                f"_A {coc:.1f}% CoC is below risk-free Treasury yields — the investment thesis relies on "
                "appreciation and lifestyle value._"
            )
        elif coc < COC_STRONG:
            lines.append("_Decent cash yield for luxury real estate. The property carries itself._")
        else:
            lines.append("_Strong cash returns — this property is a genuine income producer._")
        lines.append("")

    # Exit and IRR
    hold = state.hold_period_years
    irr = metrics.irr_percent
    lines.append(f"**{hold}-Year Exit (IRR):**")
    lines.append(
        f"Projected exit value: {format_usd(metrics.exit_value)} · Net proceeds: "
        f"{format_usd(metrics.net_exit_with_benefit)}"
    )
    lines.append(f"**IRR: {_format_irr(metrics)}** over {hold} years")
    if math.isfinite(irr):
        if irr >= IRR_EXCELLENT:
            lines.append("_Excellent — outperforms most asset classes._")
        elif irr >= IRR_SOLID:
            lines.append(
                "_Solid return. Competitive with S&P 500 averages, and you get a tangible luxury asset — a "
                "physical hedge against currency devaluation and a legacy asset._"
            )
        elif irr >= IRR_MODERATE:
            lines.append(
                "_Moderate return. The investment works if you value lifestyle utility and portfolio "
                "diversification._"
            )
        else:
            lines.append(
                "_Below-market return. Consider whether the lifestyle value and asset class diversification "
                "justify the opportunity cost._"
            )
    if not metrics.irr_converged:
        lines.append("_IRR is an approximation: the solver stopped before fully converging._")
    lines.append("")

    # Break-even
    break_even = metrics.break_even_appreciation
    effective = metrics.effective_appreciation
    lines.append(f"**Break-Even Appreciation: {break_even:.2f}%/yr**")
    if break_even <= effective:
        lines.append(
            f"_Current expected growth ({effective:.1f}%) exceeds the break-even threshold — the numbers work._"
        )
    else:
        lines.append(
            f"_The market needs to grow by at least {break_even:.1f}%/yr for this to not lose money. Current "
            f"estimate is {effective:.1f}% — there's a gap of {break_even - effective:.1f}%._"
        )

    return "\n".join(lines)


def generate_analysis(
    state: ScenarioState,
    metrics: MetricsBundle,
    changes: Mapping[str, Any],
    descriptions: Sequence[str],
) -> str:
    """Pick the intake or change summary from the number of descriptions."""
    if len(descriptions) >= BULK_INTAKE_THRESHOLD:
        return generate_intake_summary(state, metrics, changes, descriptions)
    return generate_change_summary(state, metrics, changes, descriptions)
