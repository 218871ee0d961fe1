"""Financial calculation functions.

Core loan, amortization and discounted-cash-flow calculations.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from typing import Any

import numpy_financial as npf

# Newton-Raphson IRR solver settings
IRR_INITIAL_GUESS = 0.08
IRR_MAX_ITERATIONS = 200
IRR_DERIVATIVE_TOLERANCE = 1e-10
IRR_STEP_TOLERANCE = 1e-8


def round_to_step(value: float, step: float) -> float:
    """Round half-up to the nearest multiple of ``step``."""
    if step <= 0:
        return value
    return math.floor(value / step + 0.5) * step


def calculate_monthly_payment(
    principal: float,
    annual_rate_pct: float,
    duration_months: int,
) -> float:
    """Calculate monthly loan payment (principal + interest).

    Args:
        principal: Loan amount in $
        annual_rate_pct: Annual interest rate as percentage (e.g., 5.5 for 5.5%)
        duration_months: Loan term in months

    Returns:
        Monthly payment amount in $
    """
    if principal <= 0 or duration_months <= 0:
        return 0.0

    monthly_rate = (annual_rate_pct / 100.0) / 12.0

    if monthly_rate <= 0:
        return principal / duration_months

    return float(-npf.pmt(monthly_rate, duration_months, principal))


def calculate_remaining_balance(
    principal: float,
    annual_rate_pct: float,
    duration_months: int,
    months_paid: int,
) -> float:
    """Calculate remaining loan balance after N months.

    Args:
        principal: Initial loan amount in $
        annual_rate_pct: Annual interest rate %
        duration_months: Original loan term in months
        months_paid: Number of months already paid

    Returns:
        Remaining balance in $
    """
    if principal <= 0 or months_paid >= duration_months:
        return 0.0

    if months_paid <= 0:
        return principal

    monthly_rate = (annual_rate_pct / 100.0) / 12.0

    if monthly_rate <= 0:
        return principal * (1 - months_paid / duration_months)

    # Balance = P * [(1+r)^n - (1+r)^p] / [(1+r)^n - 1]
    factor_n = (1 + monthly_rate) ** duration_months
    factor_p = (1 + monthly_rate) ** months_paid

    remaining = principal * (factor_n - factor_p) / (factor_n - 1)

    return max(0.0, remaining)


def generate_amortization_schedule(
    principal: float,
    annual_rate_pct: float,
    duration_months: int,
) -> dict[str, Any]:
    """Generate full monthly loan amortization schedule.

    Args:
        principal: Loan amount in $
        annual_rate_pct: Annual interest rate %
        duration_months: Loan term in months

    Returns:
        Dict with keys:
        - months: List of month numbers
        - opening_balance: List of start balances
        - interest: List of interest payments
        - principal: List of principal payments
        - closing_balance: List of end balances
        - payment: Monthly payment amount
        - n_months: Number of months
    """
    if principal <= 0 or duration_months <= 0:
        return {
            "months": [],
            "opening_balance": [],
            "interest": [],
            "principal": [],
            "closing_balance": [],
            "payment": 0.0,
            "n_months": 0,
        }

    monthly_rate = (annual_rate_pct / 100.0) / 12.0
    payment = calculate_monthly_payment(principal, annual_rate_pct, duration_months)

    opening, interests, principals, closing = [], [], [], []
    balance = principal

    for _ in range(duration_months):
        interest = balance * monthly_rate
        principal_payment = payment - interest
        new_balance = max(0.0, balance - principal_payment)

        opening.append(balance)
        interests.append(interest)
        principals.append(principal_payment)
        closing.append(new_balance)

        balance = new_balance

    return {
        "months": list(range(1, duration_months + 1)),
        "opening_balance": opening,
        "interest": interests,
        "principal": principals,
        "closing_balance": closing,
        "payment": payment,
        "n_months": duration_months,
    }


def calculate_npv(rate: float, cash_flows: Sequence[float]) -> float:
    """Net present value of yearly cash flows, t = 0 undiscounted."""
    return sum(cf / (1 + rate) ** t for t, cf in enumerate(cash_flows))


def solve_irr(
    cash_flows: Sequence[float],
    guess: float = IRR_INITIAL_GUESS,
    max_iterations: int = IRR_MAX_ITERATIONS,
) -> tuple[float, bool]:
    """Solve NPV(rate) = 0 by Newton-Raphson.

    Best effort: when the iteration cap is hit the last estimate is returned
    with ``converged=False`` instead of raising. A step that would leave the
    real line (rate <= -100% or non-finite) stops the search at the last
    finite estimate.

    Args:
        cash_flows: Cash flows, t = 0 first (usually the negative outlay)
        guess: Starting rate as a fraction
        max_iterations: Iteration cap

    Returns:
        Tuple of (rate as a fraction, converged flag)
    """
    rate = guess
    for _ in range(max_iterations):
        try:
            npv = calculate_npv(rate, cash_flows)
            d_npv = -sum(t * cf / (1 + rate) ** (t + 1) for t, cf in enumerate(cash_flows) if t > 0)
        except (OverflowError, ZeroDivisionError):
            return rate, False

        if abs(d_npv) < IRR_DERIVATIVE_TOLERANCE:
            return rate, abs(npv) < IRR_STEP_TOLERANCE

        new_rate = rate - npv / d_npv
        if not math.isfinite(new_rate) or new_rate <= -1.0:
            return rate, False
        if abs(new_rate - rate) < IRR_STEP_TOLERANCE:
            return new_rate, True
        rate = new_rate

    return rate, False
