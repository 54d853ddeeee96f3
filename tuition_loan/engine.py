"""Core calculation engine for the tuition loan calculator.

This module implements the financial simulation of a deferred-payment
education loan. The loan goes through two phases:

* the school phase, where tuition is disbursed every quarter and no payments
  are made. Interest compounds on the running balance (principal plus unpaid
  interest), i.e. interest is capitalized while the loan is deferred;
* the repayment phase, which starts after graduation. Interest accrues on the
  remaining principal only, and each payment is applied to accumulated
  interest first and then to principal.

The asymmetry between the two phases is intentional. Do not "fix" the school
phase to simple interest or the repayment phase to compound interest.

All functions are pure: they take a ``LoanConfig`` and plain values and build
fresh lists of ``TimelinePoint`` objects.
"""

from __future__ import annotations

import logging
from decimal import Decimal, ROUND_HALF_UP, getcontext
from typing import List

from .data_models import (
    MONTHS_PER_QUARTER,
    PAYOFF_EPSILON,
    LoanConfig,
    LoanResult,
    TimelinePoint,
)

getcontext().prec = 28  # increase precision for financial calculations

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


def simulate_school_phase(config: LoanConfig) -> List[TimelinePoint]:
    """Return the monthly trajectory from enrolment to graduation.

    The first point is month 0 with everything at zero. At the start of every
    quarter one disbursement is added to principal, then interest accrues for
    each of the quarter's three months on ``principal + interest``.

    The result holds ``config.graduation_month + 1`` points.
    """
    rate = config.monthly_interest_rate
    disbursement = config.quarterly_disbursement
    principal = ZERO
    interest = ZERO

    points = [TimelinePoint(month=0, principal=ZERO, interest=ZERO, balance=ZERO)]
    for quarter in range(config.total_quarters):
        quarter_start = quarter * MONTHS_PER_QUARTER
        principal += disbursement
        for month_in_quarter in range(MONTHS_PER_QUARTER):
            # Capitalized: unpaid interest accrues interest too
            interest += (principal + interest) * rate
            points.append(
                TimelinePoint(
                    month=quarter_start + month_in_quarter + 1,
                    principal=principal,
                    interest=interest,
                    balance=principal + interest,
                )
            )
    logger.debug(
        "School phase: %d months, balance at graduation %s",
        config.graduation_month,
        points[-1].balance,
    )
    return points


def simulate_repayment_phase(
    start_principal: Decimal,
    start_interest: Decimal,
    monthly_payment: Decimal,
    config: LoanConfig,
) -> List[TimelinePoint]:
    """Return the monthly trajectory from graduation until payoff.

    Parameters
    ----------
    start_principal, start_interest: Decimal
        Loan state at the graduation month.
    monthly_payment: Decimal
        Amount paid every month. The last payment is capped at the
        outstanding balance.
    config: LoanConfig
        Supplies the interest rate and the graduation month.

    Returns
    -------
    List[TimelinePoint]
        Points for months ``graduation_month + 1`` onwards, each carrying the
        cumulative ``total_paid``. The loop stops once principal drops to
        ``PAYOFF_EPSILON`` or the month reaches ``config.max_month``, so it
        always terminates; a last point with principal still above the
        epsilon means the loan did not converge.
    """
    rate = config.monthly_interest_rate
    principal = start_principal
    interest = start_interest
    month = config.graduation_month
    max_month = config.max_month
    total_paid = ZERO

    points: List[TimelinePoint] = []
    while principal > PAYOFF_EPSILON and month < max_month:
        # Simple interest on principal only after graduation
        interest += principal * rate

        payment = min(monthly_payment, principal + interest)
        total_paid += payment

        # Interest first, then principal
        if payment >= interest:
            principal -= payment - interest
            interest = ZERO
        else:
            interest -= payment

        if principal < 0:
            principal = ZERO
        if interest < 0:
            interest = ZERO

        month += 1
        points.append(
            TimelinePoint(
                month=month,
                principal=principal,
                interest=interest,
                balance=principal + interest,
                total_paid=total_paid,
            )
        )

    if principal > PAYOFF_EPSILON:
        logger.debug(
            "Repayment stopped at safety cap (month %d) with %s principal left",
            month,
            principal,
        )
    return points


def compute_loan_timeline(config: LoanConfig, monthly_payment: Decimal) -> LoanResult:
    """Simulate the whole loan and compute its summary metrics.

    When ``monthly_payment`` does not exceed the first month's interest on
    the graduation balance the loan can never amortize. In that case the
    result only contains the school phase, ``insufficient_payment`` is set and
    ``payoff_months`` is ``None``. A payment exactly equal to that minimum is
    rejected as well, since the balance would never decrease.
    """
    school = simulate_school_phase(config)
    graduation = school[-1]

    minimum_payment = graduation.balance * config.monthly_interest_rate
    if monthly_payment <= minimum_payment:
        logger.debug(
            "Payment %s does not exceed minimum %s; loan never pays off",
            monthly_payment,
            minimum_payment,
        )
        return LoanResult(
            timeline=school,
            graduation_month=config.graduation_month,
            graduation_balance=graduation.balance,
            graduation_principal=graduation.principal,
            graduation_interest=graduation.interest,
            payoff_months=None,
            total_paid=ZERO,
            total_interest_paid=ZERO,
            insufficient_payment=True,
        )

    repayment = simulate_repayment_phase(
        graduation.principal, graduation.interest, monthly_payment, config
    )
    total_paid = repayment[-1].total_paid if repayment else ZERO
    logger.debug("Repayment phase: %d months, %s paid", len(repayment), total_paid)

    return LoanResult(
        timeline=school + repayment,
        graduation_month=config.graduation_month,
        graduation_balance=graduation.balance,
        graduation_principal=graduation.principal,
        graduation_interest=graduation.interest,
        payoff_months=len(repayment),
        total_paid=total_paid,
        # Excludes interest capitalized during school
        total_interest_paid=total_paid - graduation.principal,
        insufficient_payment=False,
    )


def calculate_suggested_payment(
    principal: Decimal, annual_rate: Decimal, term_years: int
) -> Decimal:
    """Return the level monthly payment that amortizes ``principal``.

    The formula is:

        payment = P * (r * (1 + r)^n) / ((1 + r)^n - 1)

    where ``r`` is the monthly rate and ``n`` the number of monthly payments.
    The payment is rounded to a whole currency unit. With a zero rate the
    payment is simply ``P / n`` and is left unrounded.
    """
    monthly_rate = Decimal(annual_rate) / Decimal(100) / Decimal(12)
    num_payments = term_years * 12

    if monthly_rate == 0:
        return principal / Decimal(num_payments)

    factor = (1 + monthly_rate) ** num_payments
    payment = principal * (monthly_rate * factor) / (factor - 1)
    return payment.quantize(Decimal("1"), rounding=ROUND_HALF_UP)


def suggested_payment_for(config: LoanConfig) -> Decimal:
    """Suggested payment for paying off ``config`` in its target term."""
    graduation_balance = simulate_school_phase(config)[-1].balance
    return calculate_suggested_payment(
        graduation_balance, config.annual_interest_rate, config.loan_term_years
    )
