from decimal import Decimal

import pytest

from tuition_loan.data_models import PAYOFF_EPSILON, LoanConfig
from tuition_loan.engine import (
    calculate_suggested_payment,
    compute_loan_timeline,
    simulate_repayment_phase,
    simulate_school_phase,
    suggested_payment_for,
)

TOLERANCE = Decimal("0.000001")


def _closed_form_graduation_balance(config: LoanConfig) -> Decimal:
    """Each disbursement compounds monthly until graduation."""
    growth = 1 + config.monthly_interest_rate
    remaining_months = [3 * k for k in range(1, config.total_quarters + 1)]
    return sum(config.quarterly_disbursement * growth ** m for m in remaining_months)


class TestLoanConfig:
    def test_derived_constants(self, default_config):
        assert default_config.total_quarters == 6
        assert default_config.quarterly_disbursement == Decimal("32000")
        assert default_config.graduation_month == 18
        assert default_config.max_month == 618
        assert abs(default_config.monthly_interest_rate - Decimal("0.08") / 12) < TOLERANCE


class TestSchoolPhase:
    def test_point_count(self, default_config):
        points = simulate_school_phase(default_config)
        assert len(points) == default_config.graduation_month + 1

    def test_origin_is_zero(self, default_config):
        origin = simulate_school_phase(default_config)[0]
        assert origin.month == 0
        assert origin.principal == origin.interest == origin.balance == 0

    def test_months_strictly_increasing(self, default_config):
        months = [p.month for p in simulate_school_phase(default_config)]
        assert months == list(range(default_config.graduation_month + 1))

    def test_principal_non_decreasing(self, default_config):
        points = simulate_school_phase(default_config)
        for prev, cur in zip(points, points[1:]):
            assert cur.principal >= prev.principal

    def test_balance_is_principal_plus_interest(self, default_config):
        for p in simulate_school_phase(default_config):
            assert abs(p.balance - (p.principal + p.interest)) < TOLERANCE

    def test_disbursement_at_quarter_start(self, default_config):
        points = simulate_school_phase(default_config)
        # Months 1-3 carry the first disbursement, months 4-6 the second
        assert points[1].principal == points[3].principal == Decimal("32000")
        assert points[4].principal == Decimal("64000")
        assert points[-1].principal == Decimal("192000")

    def test_no_payments_during_school(self, default_config):
        assert all(p.total_paid == 0 for p in simulate_school_phase(default_config))

    def test_interest_is_capitalized(self, default_config):
        """Unpaid interest accrues interest during school."""
        rate = default_config.monthly_interest_rate
        points = simulate_school_phase(default_config)
        first = Decimal("32000") * rate
        assert abs(points[1].interest - first) < TOLERANCE
        compounded = first + (Decimal("32000") + first) * rate
        assert abs(points[2].interest - compounded) < TOLERANCE
        assert points[2].interest > 2 * first

    def test_graduation_balance_matches_closed_form(self, default_config):
        balance = simulate_school_phase(default_config)[-1].balance
        assert abs(balance - _closed_form_graduation_balance(default_config)) < Decimal("0.01")
        assert Decimal("205000") < balance < Decimal("207000")

    def test_zero_rate_accrues_nothing(self, zero_rate_config):
        last = simulate_school_phase(zero_rate_config)[-1]
        assert last.interest == 0
        assert last.balance == Decimal("192000")


class TestRepaymentPhase:
    def test_starts_after_graduation(self, default_config):
        points = simulate_repayment_phase(Decimal("10000"), Decimal("0"), Decimal("500"), default_config)
        assert points[0].month == default_config.graduation_month + 1

    def test_interest_accrues_on_principal_only(self, default_config):
        """After graduation unpaid interest does not itself accrue interest."""
        rate = default_config.monthly_interest_rate
        points = simulate_repayment_phase(Decimal("1000"), Decimal("500"), Decimal("0"), default_config)
        assert abs(points[0].interest - (Decimal("500") + Decimal("1000") * rate)) < TOLERANCE
        assert abs(points[1].interest - (Decimal("500") + 2 * Decimal("1000") * rate)) < TOLERANCE

    def test_payment_below_interest_leaves_principal(self, default_config):
        points = simulate_repayment_phase(Decimal("10000"), Decimal("1000"), Decimal("200"), default_config)
        first = points[0]
        assert first.principal == Decimal("10000")
        accrued = Decimal("10000") * default_config.monthly_interest_rate
        assert abs(first.interest - (Decimal("1000") + accrued - 200)) < TOLERANCE

    def test_interest_paid_before_principal(self, default_config):
        points = simulate_repayment_phase(Decimal("10000"), Decimal("100"), Decimal("500"), default_config)
        first = points[0]
        accrued = Decimal("10000") * default_config.monthly_interest_rate
        assert first.interest == 0
        assert abs(first.principal - (Decimal("10000") - (500 - 100 - accrued))) < TOLERANCE

    def test_last_payment_capped_at_balance(self, default_config):
        points = simulate_repayment_phase(Decimal("1000"), Decimal("0"), Decimal("5000"), default_config)
        assert len(points) == 1
        accrued = Decimal("1000") * default_config.monthly_interest_rate
        assert abs(points[0].total_paid - (Decimal("1000") + accrued)) < TOLERANCE
        assert points[0].principal < TOLERANCE
        assert points[0].interest == 0

    def test_principal_non_increasing(self, default_config):
        points = simulate_repayment_phase(Decimal("150000"), Decimal("20000"), Decimal("1500"), default_config)
        for prev, cur in zip(points, points[1:]):
            assert cur.principal <= prev.principal

    def test_total_paid_non_decreasing(self, default_config):
        points = simulate_repayment_phase(Decimal("150000"), Decimal("20000"), Decimal("1500"), default_config)
        for prev, cur in zip(points, points[1:]):
            assert cur.total_paid >= prev.total_paid

    def test_never_negative(self, default_config):
        points = simulate_repayment_phase(Decimal("5000"), Decimal("3000"), Decimal("2600"), default_config)
        for p in points:
            assert p.principal >= 0
            assert p.interest >= 0

    def test_stops_at_safety_cap(self, default_config):
        points = simulate_repayment_phase(Decimal("100000"), Decimal("0"), Decimal("0"), default_config)
        assert len(points) == 50 * 12
        assert points[-1].month == default_config.max_month
        assert points[-1].principal > PAYOFF_EPSILON

    def test_paid_off_principal_yields_empty_phase(self, default_config):
        assert simulate_repayment_phase(Decimal("0.01"), Decimal("0"), Decimal("100"), default_config) == []


class TestComputeLoanTimeline:
    def test_paid_off_scenario(self, paid_off_result):
        result = paid_off_result
        assert result.insufficient_payment is False
        assert result.graduation_month == 18
        assert 0 < result.payoff_months <= 600
        assert len(result.timeline) - 1 == result.graduation_month + result.payoff_months
        assert result.converged
        assert result.timeline[-1].principal <= PAYOFF_EPSILON

    def test_graduation_figures(self, paid_off_result):
        result = paid_off_result
        assert result.graduation_principal == Decimal("192000")
        assert result.graduation_balance == result.graduation_principal + result.graduation_interest
        assert result.timeline[18].balance == result.graduation_balance

    def test_no_duplicate_boundary_month(self, paid_off_result):
        months = [p.month for p in paid_off_result.timeline]
        assert months == list(range(len(months)))

    def test_balance_identity_everywhere(self, paid_off_result):
        for p in paid_off_result.timeline:
            assert abs(p.balance - (p.principal + p.interest)) < TOLERANCE

    def test_totals(self, paid_off_result):
        result = paid_off_result
        assert result.total_paid == result.timeline[-1].total_paid
        assert result.total_interest_paid == result.total_paid - result.graduation_principal
        assert result.total_paid > result.graduation_balance

    def test_phase_views(self, paid_off_result):
        result = paid_off_result
        assert len(result.school_phase) == 19
        assert len(result.repayment_phase) == result.payoff_months
        assert result.repayment_phase[0].month == 19

    def test_insufficient_payment(self, insufficient_result):
        result = insufficient_result
        assert result.insufficient_payment is True
        assert len(result.timeline) == 19
        assert result.payoff_months is None
        assert result.total_paid == 0
        assert result.total_interest_paid == 0
        assert not result.converged

    def test_payment_equal_to_minimum_is_insufficient(self, default_config):
        graduation_balance = simulate_school_phase(default_config)[-1].balance
        minimum = graduation_balance * default_config.monthly_interest_rate
        result = compute_loan_timeline(default_config, minimum)
        assert result.insufficient_payment is True

    def test_payment_just_above_minimum_terminates(self, default_config):
        graduation_balance = simulate_school_phase(default_config)[-1].balance
        minimum = graduation_balance * default_config.monthly_interest_rate
        result = compute_loan_timeline(default_config, minimum + Decimal("0.01"))
        assert result.insufficient_payment is False
        assert len(result.timeline) <= default_config.max_month + 1

    def test_zero_payment_is_insufficient_at_zero_rate(self, zero_rate_config):
        assert compute_loan_timeline(zero_rate_config, Decimal("0")).insufficient_payment

    def test_zero_rate_payoff(self, zero_rate_config):
        result = compute_loan_timeline(zero_rate_config, Decimal("1000"))
        assert result.payoff_months == 192
        assert result.total_paid == Decimal("192000")
        assert result.total_interest_paid == 0

    def test_single_payment_payoff(self, default_config):
        result = compute_loan_timeline(default_config, Decimal("10000000"))
        assert result.payoff_months == 1
        accrued = result.graduation_principal * default_config.monthly_interest_rate
        assert abs(result.total_paid - (result.graduation_balance + accrued)) < TOLERANCE

    def test_higher_payment_pays_off_sooner(self, default_config):
        slow = compute_loan_timeline(default_config, Decimal("2000"))
        fast = compute_loan_timeline(default_config, Decimal("4000"))
        assert fast.payoff_months < slow.payoff_months
        assert fast.total_interest_paid < slow.total_interest_paid

    def test_idempotent(self, default_config):
        first = compute_loan_timeline(default_config, Decimal("3000"))
        second = compute_loan_timeline(default_config, Decimal("3000"))
        assert first == second
        assert first.timeline is not second.timeline


class TestSuggestedPayment:
    def test_standard_annuity(self):
        assert calculate_suggested_payment(Decimal("100000"), Decimal("8"), 10) == Decimal("1213")

    def test_zero_rate(self):
        assert calculate_suggested_payment(Decimal("120000"), Decimal("0"), 10) == Decimal("1000")

    def test_zero_rate_is_not_rounded(self):
        payment = calculate_suggested_payment(Decimal("1000"), Decimal("0"), 1)
        assert abs(payment - Decimal("83.333333")) < TOLERANCE

    def test_suggested_for_default_config(self, default_config):
        payment = suggested_payment_for(default_config)
        assert Decimal("2490") <= payment <= Decimal("2510")
        assert payment == payment.to_integral_value()

    def test_suggested_payment_pays_off_within_term(self, default_config):
        payment = suggested_payment_for(default_config)
        result = compute_loan_timeline(default_config, payment)
        assert result.converged
        assert result.payoff_months <= default_config.loan_term_years * 12

    @pytest.mark.parametrize("term", [5, 10, 20])
    def test_longer_term_lowers_payment(self, term):
        shorter = calculate_suggested_payment(Decimal("100000"), Decimal("8"), term)
        longer = calculate_suggested_payment(Decimal("100000"), Decimal("8"), term + 5)
        assert longer < shorter
