"""Data models for the tuition loan calculator.

This module defines dataclasses for the entities used by the calculator: the
loan configuration, individual timeline points, the assembled loan result and
the persisted snapshot of user inputs. Money values are ``Decimal`` throughout
so that repeated monthly accrual does not drift the way binary floats do.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional

# Remaining principal at or below this amount counts as paid off.
PAYOFF_EPSILON = Decimal("0.01")

# Upper bound on the repayment phase, in years after graduation.
MAX_REPAYMENT_YEARS = 50

MONTHS_PER_QUARTER = 3


@dataclass(frozen=True)
class LoanConfig:
    """Configuration of a deferred-payment education loan.

    Attributes
    ----------
    annual_tuition: Decimal
        Total yearly cost, disbursed in equal parts every quarter.
    quarters_per_year: int
        Number of disbursements per school year.
    school_years: int
        Length of the programme in years.
    annual_interest_rate: Decimal
        Nominal annual rate in percent, compounded monthly.
    loan_term_years: int
        Target repayment term used for the suggested payment.
    """

    annual_tuition: Decimal
    quarters_per_year: int
    school_years: int
    annual_interest_rate: Decimal
    loan_term_years: int

    @property
    def total_quarters(self) -> int:
        return self.school_years * self.quarters_per_year

    @property
    def quarterly_disbursement(self) -> Decimal:
        return self.annual_tuition / Decimal(self.quarters_per_year)

    @property
    def monthly_interest_rate(self) -> Decimal:
        return self.annual_interest_rate / Decimal(100) / Decimal(12)

    @property
    def graduation_month(self) -> int:
        return self.total_quarters * MONTHS_PER_QUARTER

    @property
    def max_month(self) -> int:
        """Last month index the repayment phase may reach."""
        return MAX_REPAYMENT_YEARS * 12 + self.graduation_month


DEFAULT_CONFIG = LoanConfig(
    annual_tuition=Decimal("96000"),
    quarters_per_year=3,
    school_years=2,
    annual_interest_rate=Decimal("8.0"),
    loan_term_years=10,
)


@dataclass(frozen=True)
class TimelinePoint:
    """Loan state at the end of one month.

    ``total_paid`` is the cumulative amount paid since graduation; it stays
    zero during the school phase.
    """

    month: int
    principal: Decimal
    interest: Decimal
    balance: Decimal
    total_paid: Decimal = Decimal("0")


@dataclass(frozen=True)
class LoanResult:
    """Outcome of simulating a loan for one monthly payment.

    ``payoff_months`` is ``None`` when the loan never amortizes (the payment
    does not exceed the first month's interest on the graduation balance).
    """

    timeline: List[TimelinePoint]
    graduation_month: int
    graduation_balance: Decimal
    graduation_principal: Decimal
    graduation_interest: Decimal
    payoff_months: Optional[int]
    total_paid: Decimal
    total_interest_paid: Decimal
    insufficient_payment: bool

    @property
    def school_phase(self) -> List[TimelinePoint]:
        return self.timeline[: self.graduation_month + 1]

    @property
    def repayment_phase(self) -> List[TimelinePoint]:
        return self.timeline[self.graduation_month + 1 :]

    @property
    def converged(self) -> bool:
        """Whether the repayment phase actually reached a zero balance.

        A repayment phase that stops at the safety cap with principal still
        outstanding is reported as not converged.
        """
        if self.insufficient_payment or not self.repayment_phase:
            return False
        return self.timeline[-1].principal <= PAYOFF_EPSILON


@dataclass(frozen=True)
class LoanSnapshot:
    """User inputs persisted between sessions."""

    config: LoanConfig
    monthly_payment: Decimal
