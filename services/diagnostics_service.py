"""Explain, group by group, why transactions were or weren't detected as recurring."""
from datetime import date

from models.diagnostic import DetectionDiagnostic
from models.transaction import Transaction
from services.pattern_detector import (
    compute_intervals,
    group_by_description,
    has_min_occurrences,
    interval_deviations,
    is_consistent,
    is_stale,
    mean_interval,
)
from utils.constants import DEFAULT_MIN_OCCURRENCES, STALENESS_FACTOR
from utils.date_helpers import days_between, parse_date, today


def _reason(diag: DetectionDiagnostic, min_occurrences: int) -> str:
    if not has_min_occurrences(diag.transactions, min_occurrences):
        return f"Not enough occurrences ({diag.count} < {min_occurrences})"
    if not diag.is_consistent:
        formatted = ", ".join(f"{d * 100:.1f}%" for d in diag.deviations)
        return f"Intervals not consistent (deviation: {formatted})"
    if diag.is_stale:
        threshold = round(diag.avg_interval * STALENESS_FACTOR)
        return (
            f"Stale - last occurrence {diag.days_since_last_occurrence} days ago "
            f"(threshold: {threshold} days)"
        )
    return "Detected as recurring"


def debug_recurring_detection(
    transactions: list[Transaction],
    min_occurrences: int = DEFAULT_MIN_OCCURRENCES,
    reference_date: date | None = None,
) -> list[DetectionDiagnostic]:
    ref = reference_date or today()
    results = []
    for key, group in group_by_description(transactions).items():
        intervals = compute_intervals(group)
        avg = mean_interval(intervals)
        last_date = parse_date(group[-1].trade_date)
        diag = DetectionDiagnostic(
            normalized_description=key,
            original_description=group[0].description,
            transactions=group,
            count=len(group),
            intervals=intervals,
            avg_interval=avg,
            deviations=interval_deviations(intervals, avg),
            is_consistent=is_consistent(intervals),
            days_since_last_occurrence=days_between(last_date, ref),
            is_stale=is_stale(last_date, avg, ref),
        )
        diag.reason = _reason(diag, min_occurrences)
        results.append(diag)

    return sorted(results, key=lambda d: d.count, reverse=True)
