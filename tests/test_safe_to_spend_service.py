"""Tests for the safe-to-spend calculation."""
from datetime import date

import pytest

from models.recurring_rule import ManualRecurringRule
from models.recurring_transaction import RecurringTransaction
from services.safe_to_spend_service import (
    calculate_safe_to_spend,
    compute_safe_amount,
    find_next_payday,
    next_occurrence,
)
from utils.constants import Direction, Frequency


@pytest.fixture
def history(series):
    # Reference date 2024-06-15:
    #   salary    last 2024-05-26 -> next 2024-06-25 (payday)
    #   insurance last 2024-05-20 -> next 2024-06-19 (before payday)
    #   netflix   last 2024-06-01 -> next 2024-07-01 (after payday)
    return (
        series("sal", "SALARY ACME", date(2024, 2, 26), 30, 4, 5000.0, Direction.CREDIT)
        + series("ins", "HELVETIA INSURANCE", date(2024, 2, 20), 30, 4, 300.0)
        + series("nf", "NETFLIX", date(2024, 3, 3), 30, 4, 15.9)
    )


def test_compute_safe_amount():
    assert compute_safe_amount(2000.0, 300.0, 500.0) == 1200.0
    assert compute_safe_amount(700.0, 300.0, 500.0) == 0.0


def test_reserves_bills_due_before_payday(history, ref_date):
    details = calculate_safe_to_spend(2000.0, history, [], 500.0, ref_date)

    assert details.next_payday == "2024-06-25"
    assert details.days_until_payday == 10
    assert details.reserved_for_bills == 300.0
    assert details.safe_to_spend == 1200.0
    assert details.buffer == 500.0
    assert details.total_balance == 2000.0


def test_without_income_payday_defaults_to_thirty_days(history, ref_date):
    expenses_only = [t for t in history if t.type == Direction.DEBIT]
    details = calculate_safe_to_spend(2000.0, expenses_only, [], 500.0, ref_date)

    assert details.next_payday == "2024-07-15"
    assert details.days_until_payday == 30
    assert details.reserved_for_bills == pytest.approx(315.9)


def test_negative_result_is_clamped(history, ref_date):
    details = calculate_safe_to_spend(100.0, history, [], 500.0, ref_date)
    assert details.safe_to_spend == 0.0


def test_projected_manual_bill_is_reserved(history, ref_date):
    rule = ManualRecurringRule(
        id="tax", type=Direction.DEBIT, description_pattern="steueramt", expected_amount=1200.0,
    )
    details = calculate_safe_to_spend(5000.0, history, [rule], 500.0, ref_date)
    assert details.reserved_for_bills == pytest.approx(1500.0)


def test_next_occurrence_advances_by_interval(ref_date):
    entry = RecurringTransaction(
        description="X", category="", amount=1.0, frequency=Frequency.WEEKLY,
        interval_days=7, last_charged="2024-06-01", occurrences=3,
    )
    assert next_occurrence(entry, ref_date) == date(2024, 6, 15)


def test_next_payday_picks_highest_income(ref_date):
    def income(amount, last):
        return RecurringTransaction(
            description=str(amount), category="", amount=amount, frequency=Frequency.MONTHLY,
            interval_days=30, last_charged=last, occurrences=3,
        )
    incomes = [income(200.0, "2024-06-10"), income(5000.0, "2024-05-26")]
    assert find_next_payday(incomes, ref_date) == date(2024, 6, 25)
