"""Output helpers for the tuition loan calculator.

This module turns a ``LoanResult`` into what presentation layers consume:
currency and duration strings, parallel chart series split at the graduation
month, a summary dictionary and plain-text tables for the terminal. We rely
only on built-in printing and string formatting.
"""

from __future__ import annotations

import math
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, Iterable, List, Optional, Union

from .data_models import LoanConfig, LoanResult, TimelinePoint
from .engine import suggested_payment_for

INSUFFICIENT_PAYMENT_TEXT = "Payment too low"


def format_currency(amount: Union[Decimal, float, int]) -> str:
    """Format an amount as whole US dollars, e.g. ``"$205,993"``."""
    rounded = Decimal(str(amount)).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    sign = "-" if rounded < 0 else ""
    return f"{sign}${abs(rounded):,.0f}"


def _plural(count: int, unit: str) -> str:
    return f"{count} {unit}{'' if count == 1 else 's'}"


def format_duration(months: Optional[Union[int, float, Decimal]]) -> str:
    """Describe a number of months in words.

    ``None``, infinity and NaN all mean the loan never pays off.
    """
    if months is None:
        return INSUFFICIENT_PAYMENT_TEXT
    if isinstance(months, float) and not math.isfinite(months):
        return INSUFFICIENT_PAYMENT_TEXT
    if isinstance(months, Decimal) and not months.is_finite():
        return INSUFFICIENT_PAYMENT_TEXT
    months = int(months)
    years, remaining = divmod(months, 12)
    if years == 0:
        return _plural(remaining, "month")
    if remaining == 0:
        return _plural(years, "year")
    return f"{years}y {remaining}m"


def payoff_text(result: LoanResult) -> str:
    """Payoff duration for display; a capped, unfinished repayment counts as too low."""
    if not result.converged:
        return INSUFFICIENT_PAYMENT_TEXT
    return format_duration(result.payoff_months)


def describe_payment_pace(
    result: LoanResult, monthly_payment: Decimal, suggested_payment: Decimal, term_years: int
) -> str:
    """Compare the payment with the suggested one for the target term."""
    if monthly_payment == suggested_payment:
        return f"Exactly {term_years} years"
    if monthly_payment > suggested_payment:
        return f"{payoff_text(result)} (faster than {term_years}y target)"
    return f"{payoff_text(result)} (longer than {term_years}y target)"


def payment_tip(monthly_payment: Decimal, suggested_payment: Decimal, term_years: int) -> Optional[str]:
    if monthly_payment >= suggested_payment:
        return None
    return (
        f"Your current payment ({format_currency(monthly_payment)}/month) is below the "
        f"suggested amount. Consider {format_currency(suggested_payment)}/month to pay "
        f"off in {term_years} years."
    )


def interest_share_percent(result: LoanResult) -> float:
    """Interest as a percentage of everything paid, to one decimal place."""
    if result.total_paid <= 0:
        return 0.0
    share = result.total_interest_paid / result.total_paid * 100
    return float(share.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def chart_series(result: LoanResult) -> Dict[str, Any]:
    """Return parallel arrays aligned by index for a charting collaborator."""
    return {
        "graduation_month": result.graduation_month,
        "months": [p.month for p in result.timeline],
        "principal": [float(p.principal) for p in result.timeline],
        "interest": [float(p.interest) for p in result.timeline],
        "balance": [float(p.balance) for p in result.timeline],
    }


def serialize_timeline(timeline: Iterable[TimelinePoint]) -> List[Dict[str, Any]]:
    """Convert timeline points into JSON-serialisable dictionaries."""
    return [
        {
            "month": p.month,
            "principal": float(p.principal),
            "interest": float(p.interest),
            "balance": float(p.balance),
            "total_paid": float(p.total_paid),
        }
        for p in timeline
    ]


def summarize(result: LoanResult, config: LoanConfig, monthly_payment: Decimal) -> Dict[str, Any]:
    """Collect the summary metrics shown next to the chart.

    Money values are floats so the dictionary can be dumped to JSON as is.
    """
    suggested = suggested_payment_for(config)
    return {
        "monthly_payment": float(monthly_payment),
        "graduation_month": result.graduation_month,
        "quarterly_disbursement": float(config.quarterly_disbursement),
        "graduation_balance": float(result.graduation_balance),
        "graduation_principal": float(result.graduation_principal),
        "graduation_interest": float(result.graduation_interest),
        "suggested_payment": float(suggested),
        "payoff_months": result.payoff_months,
        "payoff_text": payoff_text(result),
        "pace_text": describe_payment_pace(result, monthly_payment, suggested, config.loan_term_years),
        "tip": payment_tip(monthly_payment, suggested, config.loan_term_years),
        "total_paid": float(result.total_paid),
        "total_interest_paid": float(result.total_interest_paid),
        "interest_share_percent": interest_share_percent(result),
        "insufficient_payment": result.insufficient_payment,
        "converged": result.converged,
    }


def print_summary(summary: Dict[str, Any]) -> None:
    """Print a summary of loan metrics in a human-readable format."""
    print("Summary")
    print("-" * 72)
    print(f"Monthly payment       : {format_currency(summary['monthly_payment'])}")
    print(f"Graduation month      : {summary['graduation_month']}")
    print(f"Balance at graduation : {format_currency(summary['graduation_balance'])}")
    print(f"  Principal           : {format_currency(summary['graduation_principal'])}")
    print(f"  Interest            : {format_currency(summary['graduation_interest'])}")
    print(f"Suggested payment     : {format_currency(summary['suggested_payment'])}")
    print(f"Payoff time           : {summary['payoff_text']}")
    if not summary["insufficient_payment"]:
        print(f"Total paid            : {format_currency(summary['total_paid'])}")
        print(
            f"Interest paid         : {format_currency(summary['total_interest_paid'])}"
            f" ({summary['interest_share_percent']:.1f}% of total payments)"
        )
    print(f"Pace                  : {summary['pace_text']}")
    if summary.get("tip"):
        print(f"Tip: {summary['tip']}")
    print("-" * 72)


def print_timeline(timeline: Iterable[TimelinePoint], graduation_month: int) -> None:
    """Print the timeline as a simple tab-separated table."""
    headers = ["Month", "Phase", "Principal", "Interest", "Balance", "TotalPaid"]
    print("\t".join(headers))
    for point in timeline:
        row = [
            str(point.month),
            "school" if point.month <= graduation_month else "repay",
            f"{point.principal:.2f}",
            f"{point.interest:.2f}",
            f"{point.balance:.2f}",
            f"{point.total_paid:.2f}",
        ]
        print("\t".join(row))
