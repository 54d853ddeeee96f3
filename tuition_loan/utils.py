"""Utility functions for the tuition loan calculator.

This module provides helpers for parsing user input into Python data types,
validating a loan configuration before it reaches the engine and converting
configurations and snapshots to and from plain JSON-compatible dictionaries.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Mapping, Optional

from .data_models import DEFAULT_CONFIG, LoanConfig, LoanSnapshot

# Input ranges accepted by the loan form
MAX_QUARTERS_PER_YEAR = 4
MAX_SCHOOL_YEARS = 10
MAX_LOAN_TERM_YEARS = 30
MAX_INTEREST_RATE = Decimal("30")


def decimal_from_str(value: Any) -> Decimal:
    """Convert a numeric string (or number) into a ``Decimal``.

    Commas are stripped so that "96,000" is accepted. Floats go through
    ``str`` first to avoid binary representation noise. Raises ``ValueError``
    if conversion fails.
    """
    if isinstance(value, Decimal):
        return value
    try:
        cleaned = str(value).strip().replace(",", "")
        result = Decimal(cleaned)
    except (InvalidOperation, ValueError) as exc:
        raise ValueError(f"Invalid numeric value: {value}") from exc
    if not result.is_finite():
        raise ValueError(f"Invalid numeric value: {value}")
    return result


def parse_amount(value: str) -> Decimal:
    """Parse a money amount with optional ``k``/``m`` suffix.

    Accepts plain numbers ("96000"), thousands separators ("96,000"), a
    leading dollar sign and shorthand such as "96k" or "1.2m".
    """
    text = str(value).strip().lower().replace(",", "").lstrip("$")
    factor = Decimal(1)
    if text.endswith("k"):
        factor = Decimal(1_000)
        text = text[:-1]
    elif text.endswith("m"):
        factor = Decimal(1_000_000)
        text = text[:-1]
    return decimal_from_str(text) * factor


def parse_percent(value: str) -> Decimal:
    """Parse an interest rate given in percent ("8", "8.5" or "8%")."""
    text = str(value).strip()
    if text.endswith("%"):
        text = text[:-1]
    return decimal_from_str(text)


def _whole_number(name: str, value: Any) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError, OverflowError) as exc:
        raise ValueError(f"{name} must be a whole number; got {value!r}") from exc
    if not isinstance(value, str) and number != value:
        raise ValueError(f"{name} must be a whole number; got {value!r}")
    return number


def validate_rate(annual_interest_rate: Decimal) -> Decimal:
    if annual_interest_rate < 0:
        raise ValueError("Interest rate cannot be negative")
    if annual_interest_rate > MAX_INTEREST_RATE:
        raise ValueError(f"Interest rate cannot exceed {MAX_INTEREST_RATE}%")
    return annual_interest_rate


def validate_term(loan_term_years: int) -> int:
    if loan_term_years <= 0:
        raise ValueError("Loan term must be positive")
    if loan_term_years > MAX_LOAN_TERM_YEARS:
        raise ValueError(f"Loan term cannot exceed {MAX_LOAN_TERM_YEARS} years")
    return loan_term_years


def validate_config(config: LoanConfig) -> LoanConfig:
    """Check the preconditions the engine relies on.

    The engine does not validate its input; calling it with a non-positive
    number of quarters or years yields meaningless results or a division by
    zero, and very large counts make the simulation loops run for a long
    time. Boundary layers call this first.

    Raises
    ------
    ValueError
        If any field is outside its valid range.
    """
    if config.annual_tuition <= 0:
        raise ValueError("Annual tuition must be positive")
    if config.quarters_per_year <= 0:
        raise ValueError("Quarters per year must be positive")
    if config.quarters_per_year > MAX_QUARTERS_PER_YEAR:
        raise ValueError(f"Quarters per year cannot exceed {MAX_QUARTERS_PER_YEAR}")
    if config.school_years <= 0:
        raise ValueError("School years must be positive")
    if config.school_years > MAX_SCHOOL_YEARS:
        raise ValueError(f"School years cannot exceed {MAX_SCHOOL_YEARS}")
    validate_rate(config.annual_interest_rate)
    validate_term(config.loan_term_years)
    return config


def validate_payment(monthly_payment: Decimal) -> Decimal:
    if monthly_payment < 0:
        raise ValueError("Monthly payment cannot be negative")
    return monthly_payment


def build_config(
    annual_tuition: Any,
    quarters_per_year: Any,
    school_years: Any,
    annual_interest_rate: Any,
    loan_term_years: Any,
) -> LoanConfig:
    """Build and validate a ``LoanConfig`` from raw user values."""
    config = LoanConfig(
        annual_tuition=parse_amount(annual_tuition),
        quarters_per_year=_whole_number("Quarters per year", quarters_per_year),
        school_years=_whole_number("School years", school_years),
        annual_interest_rate=parse_percent(annual_interest_rate),
        loan_term_years=_whole_number("Loan term", loan_term_years),
    )
    return validate_config(config)


def config_to_dict(config: LoanConfig) -> Dict[str, Any]:
    return {
        "annual_tuition": float(config.annual_tuition),
        "quarters_per_year": config.quarters_per_year,
        "school_years": config.school_years,
        "annual_interest_rate": float(config.annual_interest_rate),
        "loan_term_years": config.loan_term_years,
    }


def config_from_dict(data: Mapping[str, Any], defaults: Optional[LoanConfig] = None) -> LoanConfig:
    """Build a validated ``LoanConfig`` from a dictionary.

    Missing keys are taken from ``defaults`` (``DEFAULT_CONFIG`` unless
    given), so partial updates from a form only need the changed fields.
    """
    base = config_to_dict(defaults or DEFAULT_CONFIG)
    unknown = set(data) - set(base)
    if unknown:
        raise ValueError(f"Unknown configuration fields: {', '.join(sorted(unknown))}")
    merged = {**base, **data}
    return build_config(
        merged["annual_tuition"],
        merged["quarters_per_year"],
        merged["school_years"],
        merged["annual_interest_rate"],
        merged["loan_term_years"],
    )


def snapshot_to_dict(snapshot: LoanSnapshot) -> Dict[str, Any]:
    return {
        "config": config_to_dict(snapshot.config),
        "monthly_payment": float(snapshot.monthly_payment),
    }
