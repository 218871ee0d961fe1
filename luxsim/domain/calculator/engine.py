"""Financial engine.

Maps a ScenarioState to its full MetricsBundle. The computation is pure and
deterministic: no I/O, no hidden state, and every division is guarded so
degenerate scenarios resolve to 0 or ``math.inf`` instead of NaN.
"""

from __future__ import annotations

import math
from functools import lru_cache

from luxsim.core.constants import (
    DEFAULT_BROKER_FEE_PCT,
    DEFAULT_DAYS_ON_MARKET,
    DEFAULT_REGION,
    HIGH_LIQUIDITY_RISK_DAYS,
    MARKET_LIQUIDITY,
    MEDIUM_LIQUIDITY_RISK_DAYS,
    SCARCITY_BONUSES,
    SERVICE_FIELDS,
    SPECIALIZED_MAINTENANCE_COSTS,
    STAFF_FIELDS,
    TAX_PROFILES,
)
from luxsim.core.financial import (
    calculate_monthly_payment,
    calculate_remaining_balance,
    generate_amortization_schedule,
    solve_irr,
)
from luxsim.core.logging import get_logger
from luxsim.domain.calculator.stress import macro_shock_grids
from luxsim.domain.models.metrics import (
    BurnRate,
    LiquidityForecast,
    MetricsBundle,
    RegionLiquidity,
    StructureComparison,
    WaterfallStep,
    YearProjection,
)
from luxsim.domain.models.scenario import ScenarioState

log = get_logger(__name__)

METRICS_CACHE_SIZE = 256


def _safe_div(numerator: float, denominator: float, default: float = 0.0) -> float:
    return numerator / denominator if denominator else default


def liquidity_risk(avg_dom: float) -> str:
    """Classify days on market as High, Medium or Low liquidity risk."""
    if avg_dom > HIGH_LIQUIDITY_RISK_DAYS:
        return "High"
    if avg_dom > MEDIUM_LIQUIDITY_RISK_DAYS:
        return "Medium"
    return "Low"


def scarcity_bonus(state: ScenarioState) -> float:
    """Sum of the appreciation bonuses of the active scarcity flags."""
    return sum(bonus for flag, bonus in SCARCITY_BONUSES.items() if getattr(state, flag))


def _project_years(
    state: ScenarioState,
    loan_amount: float,
    annual_cash_flow: float,
    effective_appreciation: float,
) -> list[YearProjection]:
    n_months = state.loan_term_years * 12
    schedule = generate_amortization_schedule(loan_amount, state.interest_rate, n_months)
    rows: list[YearProjection] = []

    for year in range(1, state.hold_period_years + 1):
        value = state.property_value * (1 + effective_appreciation / 100) ** year
        balance = calculate_remaining_balance(loan_amount, state.interest_rate, n_months, year * 12)
        # Empty once the loan is repaid
        months = slice((year - 1) * 12, year * 12)
        principal_paid = max(0.0, sum(schedule["principal"][months]))
        interest_paid = max(0.0, sum(schedule["interest"][months]))

        rows.append(
            YearProjection(
                year=year,
                projected_value=value,
                remaining_loan=balance,
                equity=value - balance,
                cumulative_cash_flow=annual_cash_flow * year,
                principal_paid=principal_paid,
                interest_paid=interest_paid,
            )
        )

    return rows


def _compare_structures(
    state: ScenarioState,
    exit_value: float,
    capital_gain: float,
    remaining_loan: float,
    selling_costs: float,
) -> tuple[StructureComparison, ...]:
    nets: dict[str, dict[str, float]] = {}
    for key, profile in TAX_PROFILES.items():
        tax = max(0.0, capital_gain) * profile["effective_cap_gain_rate"]
        benefit = profile["yearly_benefit"] * state.property_value * state.hold_period_years
        net = exit_value - remaining_loan - tax - selling_costs + benefit - profile["setup_cost"]
        nets[key] = {"tax": tax, "benefit": benefit, "net": net}

    best_key = max(nets, key=lambda k: nets[k]["net"])

    return tuple(
        StructureComparison(
            key=key,
            label=TAX_PROFILES[key]["label"],
            tax=values["tax"],
            benefit=values["benefit"],
            setup_cost=TAX_PROFILES[key]["setup_cost"],
            net=values["net"],
            is_active=key == state.holding_structure,
            is_best=key == best_key,
        )
        for key, values in nets.items()
    )


def _forecast_liquidity(state: ScenarioState, total_carry_cost: float) -> LiquidityForecast:
    market = MARKET_LIQUIDITY.get(state.market_region, MARKET_LIQUIDITY[DEFAULT_REGION])
    avg_dom = market["avg_dom"].get(state.price_bracket, DEFAULT_DAYS_ON_MARKET)

    ranking = sorted(
        (
            RegionLiquidity(
                key=key,
                label=data["label"],
                avg_dom=data["avg_dom"].get(state.price_bracket, DEFAULT_DAYS_ON_MARKET),
                is_active=key == state.market_region,
            )
            for key, data in MARKET_LIQUIDITY.items()
        ),
        key=lambda r: r.avg_dom,
    )

    return LiquidityForecast(
        region_label=market["label"],
        broker_fee_pct=market.get("broker_fee", DEFAULT_BROKER_FEE_PCT),
        avg_dom=avg_dom,
        carry_cost_during_listing=total_carry_cost / 365 * avg_dom,
        risk=liquidity_risk(avg_dom),
        ranking=tuple(ranking),
    )


def compute_metrics(state: ScenarioState) -> MetricsBundle:
    """Compute every derived metric of a scenario.

    A zero hold period means no sale has happened yet: there is no
    projection, the exit value is the purchase price and the whole loan is
    still owed at exit (not 0).

    Args:
        state: Complete scenario

    Returns:
        MetricsBundle. Never raises for an in-range state.
    """
    value = state.property_value
    hold = state.hold_period_years
    profile = TAX_PROFILES[state.holding_structure]

    # 1. Carry costs
    luxury_opex = sum(getattr(state, f) for f in SERVICE_FIELDS)
    total_staff = sum(getattr(state, f) for f in STAFF_FIELDS)
    staffing_cost = total_staff * state.avg_staff_salary
    specialized_maintenance = sum(
        cost for flag, cost in SPECIALIZED_MAINTENANCE_COSTS.items() if getattr(state, flag)
    )
    property_tax = value * state.property_tax_rate / 100
    total_carry_cost = (
        luxury_opex + staffing_cost + specialized_maintenance + property_tax + state.annual_insurance
    )

    # 2-3. Income and NOI
    vacancy_loss = state.gross_annual_rent * state.vacancy_rate / 100
    effective_rent = state.gross_annual_rent - vacancy_loss
    noi = effective_rent - total_carry_cost
    cap_rate = _safe_div(noi, value) * 100

    # 4. Debt
    loan_amount = value * state.ltv_ratio / 100
    equity_invested = value - loan_amount
    n_months = state.loan_term_years * 12
    monthly_payment = calculate_monthly_payment(loan_amount, state.interest_rate, n_months)
    annual_debt_service = monthly_payment * 12
    dscr = noi / annual_debt_service if annual_debt_service > 0 else math.inf

    # 5. Cash on cash
    annual_cash_flow = noi - annual_debt_service
    setup_cost = profile["setup_cost"]
    total_cash_invested = equity_invested + state.closing_costs + state.renovation_costs + setup_cost
    cash_on_cash = _safe_div(annual_cash_flow, total_cash_invested) * 100

    # 6. Appreciation
    bonus = scarcity_bonus(state)
    effective_appreciation = state.base_appreciation_rate + bonus

    # 7. Projection
    projection = _project_years(state, loan_amount, annual_cash_flow, effective_appreciation)

    # 8, 11. Exit and liquidity
    if projection:
        exit_value = projection[-1].projected_value
        remaining_at_exit = projection[-1].remaining_loan
    else:
        exit_value = value
        remaining_at_exit = loan_amount
    capital_gain = exit_value - value
    tax_on_gain = max(0.0, capital_gain) * profile["effective_cap_gain_rate"]
    liquidity = _forecast_liquidity(state, total_carry_cost)
    selling_costs = exit_value * liquidity.broker_fee_pct / 100
    net_exit_proceeds = exit_value - remaining_at_exit - tax_on_gain - selling_costs
    yearly_benefit = profile["yearly_benefit"] * value
    structure_benefit = yearly_benefit * hold
    net_exit_with_benefit = net_exit_proceeds + structure_benefit

    waterfall = (
        WaterfallStep(label="Purchase", amount=value),
        WaterfallStep(label="Appreciation", amount=capital_gain),
        WaterfallStep(label="Tax on Gain", amount=-tax_on_gain),
        WaterfallStep(label="Selling Costs", amount=-selling_costs),
        WaterfallStep(label="Remaining Debt", amount=-remaining_at_exit),
        WaterfallStep(label="Net Proceeds", amount=net_exit_with_benefit),
    )

    # 9. IRR
    cash_flows = [-total_cash_invested]
    cash_flows += [annual_cash_flow + yearly_benefit] * max(0, hold - 1)
    cash_flows.append(annual_cash_flow + net_exit_with_benefit)
    irr, irr_converged = solve_irr(cash_flows)
    if not irr_converged:
        log.debug("irr_not_converged", last_estimate=irr, periods=len(cash_flows))

    # 10. Carry ratio and break-even
    carry_ratio = _safe_div(total_carry_cost, value) * 100
    acquisition_costs = state.closing_costs + state.renovation_costs + setup_cost
    if hold > 0 and value > 0:
        break_even = (
            (acquisition_costs + total_carry_cost * hold - effective_rent * hold) / (value * hold) * 100
        )
    else:
        break_even = 0.0

    # 12. Target exit
    target_exit_value = value + state.target_exit_profit + selling_costs + tax_on_gain
    if hold > 0 and value > 0:
        required_appreciation = ((target_exit_value / value) ** (1 / hold) - 1) * 100
    else:
        required_appreciation = 0.0

    # 13-14. Structures and stress grids
    structures = _compare_structures(state, exit_value, capital_gain, remaining_at_exit, selling_costs)
    grids = macro_shock_grids(
        state,
        effective_appreciation=effective_appreciation,
        effective_rent=effective_rent,
        total_carry_cost=total_carry_cost,
    )

    daily = total_carry_cost / 365
    burn_rate = BurnRate(
        monthly=total_carry_cost / 12,
        daily=daily,
        hourly=daily / 24,
        per_minute=daily / 24 / 60,
    )

    return MetricsBundle(
        luxury_opex=luxury_opex,
        staffing_cost=staffing_cost,
        total_staff=total_staff,
        specialized_maintenance=specialized_maintenance,
        property_tax=property_tax,
        total_carry_cost=total_carry_cost,
        vacancy_loss=vacancy_loss,
        effective_rent=effective_rent,
        noi=noi,
        cap_rate=cap_rate,
        loan_amount=loan_amount,
        equity_invested=equity_invested,
        monthly_payment=monthly_payment,
        annual_debt_service=annual_debt_service,
        dscr=dscr,
        annual_cash_flow=annual_cash_flow,
        structure_setup_cost=setup_cost,
        total_cash_invested=total_cash_invested,
        cash_on_cash=cash_on_cash,
        scarcity_bonus=bonus,
        effective_appreciation=effective_appreciation,
        projection=tuple(projection),
        exit_value=exit_value,
        capital_gain=capital_gain,
        tax_on_gain=tax_on_gain,
        selling_costs=selling_costs,
        remaining_loan_at_exit=remaining_at_exit,
        net_exit_proceeds=net_exit_proceeds,
        structure_benefit=structure_benefit,
        net_exit_with_benefit=net_exit_with_benefit,
        total_gain=net_exit_with_benefit - equity_invested,
        profit_multiple=_safe_div(net_exit_with_benefit, equity_invested) if equity_invested > 0 else 0.0,
        waterfall=waterfall,
        irr_percent=irr * 100,
        irr_converged=irr_converged,
        carry_ratio=carry_ratio,
        break_even_appreciation=break_even,
        target_exit_value=target_exit_value,
        required_appreciation=required_appreciation,
        liquidity=liquidity,
        structure_comparison=structures,
        macro_grids=grids,
        burn_rate=burn_rate,
    )


@lru_cache(maxsize=METRICS_CACHE_SIZE)
def compute_metrics_cached(state: ScenarioState) -> MetricsBundle:
    """``compute_metrics`` memoized on the full (frozen, hashable) state."""
    return compute_metrics(state)
