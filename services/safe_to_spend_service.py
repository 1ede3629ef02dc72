import logging
from datetime import date, timedelta

from models.recurring_rule import ManualRecurringRule
from models.recurring_transaction import RecurringTransaction
from models.safe_to_spend import SafeToSpendDetails
from models.transaction import Transaction
from services.recurring_service import detect_recurring_transactions, split_by_direction
from utils.constants import (
    DEFAULT_PAYDAY_FALLBACK_DAYS,
    DEFAULT_SAFETY_BUFFER,
    FORECAST_MIN_OCCURRENCES,
)
from utils.date_helpers import days_between, first_on_or_after, format_date, parse_date, today

logger = logging.getLogger(__name__)


def next_occurrence(recurring: RecurringTransaction, reference_date: date) -> date:
    """Advance last_charged by interval_days until it is on or after reference_date."""
    last = parse_date(recurring.last_charged) or reference_date
    if recurring.interval_days <= 0:
        return max(last, reference_date)
    return first_on_or_after(last, recurring.interval_days, reference_date)


def find_primary_income(incomes: list[RecurringTransaction]) -> RecurringTransaction | None:
    """The highest-amount recurring income is taken as the payday."""
    if not incomes:
        return None
    return max(incomes, key=lambda r: r.amount)


def find_next_payday(incomes: list[RecurringTransaction], reference_date: date) -> date:
    primary = find_primary_income(incomes)
    if primary is None:
        return reference_date + timedelta(days=DEFAULT_PAYDAY_FALLBACK_DAYS)
    return next_occurrence(primary, reference_date)


def reserve_for_bills(
    expenses: list[RecurringTransaction],
    next_payday: date,
    reference_date: date,
) -> float:
    """Sum of every recurring expense whose next occurrence is on or before payday."""
    return sum(
        e.amount for e in expenses
        if next_occurrence(e, reference_date) <= next_payday
    )


def compute_safe_amount(current_balance: float, reserved_for_bills: float, buffer: float) -> float:
    return max(0.0, current_balance - reserved_for_bills - buffer)


def calculate_safe_to_spend(
    current_balance: float,
    transactions: list[Transaction],
    manual_rules: list[ManualRecurringRule] | None = None,
    buffer: float = DEFAULT_SAFETY_BUFFER,
    reference_date: date | None = None,
) -> SafeToSpendDetails:
    """How much can be spent today without touching upcoming bills or the buffer."""
    ref = reference_date or today()
    credits, debits = split_by_direction(transactions)
    incomes = detect_recurring_transactions(credits, FORECAST_MIN_OCCURRENCES, manual_rules, ref)
    expenses = detect_recurring_transactions(debits, FORECAST_MIN_OCCURRENCES, manual_rules, ref)

    next_payday = find_next_payday(incomes, ref)
    reserved = reserve_for_bills(expenses, next_payday, ref)
    logger.debug("Next payday %s, %.2f reserved for bills", next_payday, reserved)

    return SafeToSpendDetails(
        safe_to_spend=compute_safe_amount(current_balance, reserved, buffer),
        reserved_for_bills=reserved,
        days_until_payday=max(0, days_between(ref, next_payday)),
        next_payday=format_date(next_payday),
        buffer=buffer,
        total_balance=current_balance,
    )
