"""Evaluate user-authored recurring rules against a transaction set.

Each enabled rule yields at most one entry:

* a *projected* entry (zero occurrences) when nothing matches yet, exclusion
  rules included,
* an exclusion marker carrying the matched ids when ``is_exclude`` is set,
* otherwise a rule-backed recurring entry built from the matches.
"""
import logging
from datetime import date

from models.recurring_rule import ManualRecurringRule
from models.recurring_transaction import RecurringTransaction
from models.transaction import Transaction
from services.pattern_detector import (
    classify_frequency,
    compute_intervals,
    mean_interval,
    round_half_up,
    sort_chronologically,
)
from utils.constants import (
    DEFAULT_RULE_INTERVAL_DAYS,
    EXCLUDED_PREFIX,
    MANUAL_PREFIX,
    UNCATEGORIZED,
    Frequency,
)
from utils.date_helpers import format_date, parse_date, today
from utils.text_helpers import normalize_description

logger = logging.getLogger(__name__)


# ── Match predicates ──────────────────────────────────────────────────────────

def matches_description(rule: ManualRecurringRule, tx: Transaction) -> bool:
    pattern = rule.description_pattern or ""
    if normalize_description(pattern) in normalize_description(tx.description):
        return True
    return pattern.lower() in (tx.description or "").lower()


def matches_category(rule: ManualRecurringRule, tx: Transaction) -> bool:
    return not rule.category or tx.category == rule.category


def matches_day_window(rule: ManualRecurringRule, tx: Transaction) -> bool:
    if rule.day_range_start is None and rule.day_range_end is None:
        return True
    day = parse_date(tx.trade_date).day
    if rule.day_range_start is not None and day < rule.day_range_start:
        return False
    if rule.day_range_end is not None and day > rule.day_range_end:
        return False
    return True


def matches_amount(rule: ManualRecurringRule, tx: Transaction) -> bool:
    if not rule.expected_amount or rule.amount_tolerance is None:
        return True
    return abs(tx.amount - rule.expected_amount) <= rule.expected_amount * rule.amount_tolerance


def rule_matches(rule: ManualRecurringRule, tx: Transaction) -> bool:
    return (
        tx.type == rule.type
        and matches_description(rule, tx)
        and matches_category(rule, tx)
        and matches_day_window(rule, tx)
        and matches_amount(rule, tx)
    )


# ── Entry builders ────────────────────────────────────────────────────────────

def _context_accepts(rule: ManualRecurringRule, transactions: list[Transaction]) -> bool:
    """An empty context, or one whose direction is the rule's, may carry projections."""
    if not transactions:
        return True
    return transactions[0].type == rule.type


def _projected_entry(rule: ManualRecurringRule, reference_date: date) -> RecurringTransaction:
    interval = rule.interval_days or DEFAULT_RULE_INTERVAL_DAYS
    return RecurringTransaction(
        description=f"{MANUAL_PREFIX}{rule.description_pattern}",
        category=rule.category or UNCATEGORIZED,
        amount=rule.expected_amount or 0.0,
        frequency=classify_frequency(rule.interval_days) if rule.interval_days else Frequency.MONTHLY,
        interval_days=interval,
        last_charged=format_date(reference_date),
        occurrences=0,
        rule_id=rule.id,
    )


def _exclusion_entry(rule: ManualRecurringRule, matched: list[Transaction]) -> RecurringTransaction:
    last = matched[-1]
    return RecurringTransaction(
        description=f"{EXCLUDED_PREFIX}{rule.description_pattern}",
        category=last.category,
        amount=0.0,
        frequency=Frequency.MONTHLY,
        interval_days=0,
        last_charged=last.trade_date[:10],
        occurrences=len(matched),
        transaction_ids=tuple(t.id for t in matched),
        is_exclude=True,
        rule_id=rule.id,
    )


def _matched_entry(rule: ManualRecurringRule, matched: list[Transaction]) -> RecurringTransaction:
    last = matched[-1]
    intervals = compute_intervals(matched)
    if intervals:
        avg_interval = mean_interval(intervals)
    else:
        avg_interval = rule.interval_days or DEFAULT_RULE_INTERVAL_DAYS

    avg_amount = sum(t.amount for t in matched) / len(matched)
    if rule.use_average:
        amount = avg_amount
    else:
        amount = rule.expected_amount or last.amount

    return RecurringTransaction(
        description=f"{MANUAL_PREFIX}{rule.description_pattern}",
        category=rule.category or last.category,
        amount=amount,
        frequency=classify_frequency(avg_interval),
        interval_days=round_half_up(avg_interval),
        last_charged=last.trade_date[:10],
        occurrences=len(matched),
        transaction_ids=tuple(t.id for t in matched),
        rule_id=rule.id,
    )


def evaluate_rule(
    rule: ManualRecurringRule,
    transactions: list[Transaction],
    reference_date: date | None = None,
) -> RecurringTransaction | None:
    ref = reference_date or today()
    matched = [t for t in sort_chronologically(transactions) if rule_matches(rule, t)]

    if not matched:
        has_projection_data = bool(rule.description_pattern or rule.expected_amount)
        if has_projection_data and _context_accepts(rule, transactions):
            return _projected_entry(rule, ref)
        return None

    if rule.is_exclude:
        return _exclusion_entry(rule, matched)

    return _matched_entry(rule, matched)


def match_manual_rules(
    transactions: list[Transaction],
    rules: list[ManualRecurringRule],
    reference_date: date | None = None,
) -> list[RecurringTransaction]:
    """Evaluate every enabled rule, in rule order.

    Rules never see each other's matches: two rules may claim the same
    transaction and both entries carry its id.
    """
    results = []
    for rule in rules:
        if not rule.enabled:
            continue
        entry = evaluate_rule(rule, transactions, reference_date)
        if entry is not None:
            results.append(entry)
    logger.debug("Manual rules: %d enabled rule(s) produced %d entries",
                 sum(1 for r in rules if r.enabled), len(results))
    return results
