"""Automatic recurring-pattern detection.

Transactions are grouped by their normalized description, then each group has
to pass three guards to become a recurring pattern:

* ``has_min_occurrences`` - enough members to judge a rhythm
* ``is_consistent``       - every gap within 20% of the mean gap
* ``is_stale``            - silent for more than twice the mean gap is rejected

Grouping on description only (not description + amount) is what lets
variable-amount recurrences such as salary through.
"""
import logging
import math
from datetime import date

from models.recurring_transaction import RecurringTransaction
from models.transaction import Transaction
from utils.constants import (
    AMOUNT_VARIANCE_RATIO,
    AMOUNT_WINDOW,
    DEFAULT_MIN_OCCURRENCES,
    FREQUENCY_BANDS,
    INTERVAL_TOLERANCE,
    STALENESS_FACTOR,
    Frequency,
)
from utils.date_helpers import days_between, parse_date, today
from utils.text_helpers import normalize_description

logger = logging.getLogger(__name__)


def classify_frequency(avg_days: float) -> Frequency:
    for upper, frequency in FREQUENCY_BANDS:
        if avg_days <= upper:
            return frequency
    return Frequency.YEARLY


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def sort_chronologically(transactions: list[Transaction]) -> list[Transaction]:
    """Stable date sort; transactions without a parseable date are dropped."""
    dated = [(parse_date(t.trade_date), t) for t in transactions]
    skipped = sum(1 for d, _ in dated if d is None)
    if skipped:
        logger.debug("Ignoring %d transaction(s) with unparseable trade dates", skipped)
    dated = [(d, t) for d, t in dated if d is not None]
    dated.sort(key=lambda pair: pair[0])
    return [t for _, t in dated]


def group_by_description(transactions: list[Transaction]) -> dict[str, list[Transaction]]:
    """{normalized description: [tx, ...]} in chronological order, first-seen key order."""
    groups: dict[str, list[Transaction]] = {}
    for tx in sort_chronologically(transactions):
        groups.setdefault(normalize_description(tx.description), []).append(tx)
    return groups


def compute_intervals(transactions: list[Transaction]) -> list[int]:
    """Day gaps between consecutive (chronologically sorted) transactions."""
    dates = [parse_date(t.trade_date) for t in transactions]
    return [days_between(prev, cur) for prev, cur in zip(dates, dates[1:])]


def mean_interval(intervals: list[int]) -> float:
    if not intervals:
        return 0.0
    return sum(intervals) / len(intervals)


def interval_deviations(intervals: list[int], avg_interval: float) -> list[float]:
    """Relative deviation of each gap from the mean; empty when the mean is not positive."""
    if avg_interval <= 0:
        return []
    return [abs(i - avg_interval) / avg_interval for i in intervals]


# ── Guards ────────────────────────────────────────────────────────────────────

def has_min_occurrences(group: list[Transaction], min_occurrences: int) -> bool:
    return len(group) >= min_occurrences


def is_consistent(intervals: list[int]) -> bool:
    avg = mean_interval(intervals)
    if not intervals or avg <= 0:
        return False
    return all(dev < INTERVAL_TOLERANCE for dev in interval_deviations(intervals, avg))


def is_stale(last_date: date, avg_interval: float, reference_date: date) -> bool:
    return days_between(last_date, reference_date) > avg_interval * STALENESS_FACTOR


# ── Amounts ───────────────────────────────────────────────────────────────────

def representative_amount(group: list[Transaction]) -> float:
    """Latest amount for fixed charges, recent average for variable ones."""
    recent = [t.amount for t in group[-AMOUNT_WINDOW:]]
    avg_amount = sum(recent) / len(recent)
    if max(recent) - min(recent) > avg_amount * AMOUNT_VARIANCE_RATIO:
        return avg_amount
    return group[-1].amount


# ── Detector ──────────────────────────────────────────────────────────────────

def analyze_group(
    group: list[Transaction],
    min_occurrences: int,
    reference_date: date,
) -> RecurringTransaction | None:
    """Run every guard over one description group; None when any rejects it."""
    if not has_min_occurrences(group, min_occurrences):
        return None

    intervals = compute_intervals(group)
    if not is_consistent(intervals):
        return None

    avg_interval = mean_interval(intervals)
    last = group[-1]
    if is_stale(parse_date(last.trade_date), avg_interval, reference_date):
        logger.debug("Discarding stale pattern %r (last seen %s)", last.description, last.trade_date)
        return None

    return RecurringTransaction(
        description=last.description,
        category=last.category,
        amount=representative_amount(group),
        frequency=classify_frequency(avg_interval),
        interval_days=round_half_up(avg_interval),
        last_charged=last.trade_date[:10],
        occurrences=len(group),
        transaction_ids=tuple(t.id for t in group),
    )


def detect_automatic(
    transactions: list[Transaction],
    min_occurrences: int = DEFAULT_MIN_OCCURRENCES,
    reference_date: date | None = None,
) -> list[RecurringTransaction]:
    """Detect recurring patterns in a single-direction transaction list.

    Returns one RecurringTransaction per surviving description group, sorted by
    amount descending.
    """
    ref = reference_date or today()
    groups = group_by_description(transactions)

    recurring = []
    for group in groups.values():
        pattern = analyze_group(group, min_occurrences, ref)
        if pattern is not None:
            recurring.append(pattern)

    logger.debug(
        "Automatic detection: %d group(s), %d recurring pattern(s)",
        len(groups), len(recurring),
    )
    return sorted(recurring, key=lambda r: r.amount, reverse=True)
