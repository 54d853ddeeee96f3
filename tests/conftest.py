"""Shared fixtures for the tuition loan tests.

Fixture loan: $96K/year tuition in 3 disbursements a year for 2 years at 8 %,
with a 10-year target term. Graduation is at month 18.
"""

import os
from decimal import Decimal

import pytest

# Keep the web module from creating an SQLite file on import
os.environ.setdefault("SNAPSHOT_DATABASE_URL", "sqlite://")

from tuition_loan.data_models import DEFAULT_CONFIG, LoanConfig
from tuition_loan.engine import compute_loan_timeline


@pytest.fixture
def default_config() -> LoanConfig:
    return DEFAULT_CONFIG


@pytest.fixture
def zero_rate_config() -> LoanConfig:
    return LoanConfig(
        annual_tuition=Decimal("96000"),
        quarters_per_year=3,
        school_years=2,
        annual_interest_rate=Decimal("0"),
        loan_term_years=10,
    )


@pytest.fixture
def paid_off_result(default_config):
    """$3,000/month, comfortably above the minimum payment."""
    return compute_loan_timeline(default_config, Decimal("3000"))


@pytest.fixture
def insufficient_result(default_config):
    return compute_loan_timeline(default_config, Decimal("1"))
