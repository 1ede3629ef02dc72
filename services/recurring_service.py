import logging
import uuid
from dataclasses import replace
from datetime import date, datetime
from typing import Protocol

from models.recurring_rule import ManualRecurringRule
from models.recurring_transaction import RecurringTransaction
from models.transaction import Transaction
from services.pattern_detector import detect_automatic
from services.rule_matcher import match_manual_rules
from utils.constants import DEFAULT_MIN_OCCURRENCES, Direction

logger = logging.getLogger(__name__)


def detect_recurring_transactions(
    transactions: list[Transaction],
    min_occurrences: int = DEFAULT_MIN_OCCURRENCES,
    manual_rules: list[ManualRecurringRule] | None = None,
    reference_date: date | None = None,
) -> list[RecurringTransaction]:
    """
    Merge manual-rule entries with automatically detected patterns.

    Manual rules run first. Every transaction id they claim (exclusions
    included) is withheld from automatic detection so nothing is counted twice.
    Exclusion markers are dropped from the result; the rest is sorted by amount
    descending.
    """
    manual_results = match_manual_rules(transactions, manual_rules or [], reference_date)
    claimed_ids = {tx_id for entry in manual_results for tx_id in entry.transaction_ids}

    remaining = [t for t in transactions if t.id not in claimed_ids]
    automatic = detect_automatic(remaining, min_occurrences, reference_date)

    active_manual = [m for m in manual_results if not m.is_exclude]
    return sorted(active_manual + automatic, key=lambda r: r.amount, reverse=True)


def split_by_direction(
    transactions: list[Transaction],
) -> tuple[list[Transaction], list[Transaction]]:
    """(credits, debits)"""
    credits = [t for t in transactions if t.type == Direction.CREDIT]
    debits = [t for t in transactions if t.type == Direction.DEBIT]
    return credits, debits


def validate_rule(rule: ManualRecurringRule):
    """Raise ValueError when a rule cannot be evaluated meaningfully."""
    if not (rule.description_pattern or "").strip() and not rule.expected_amount:
        raise ValueError("A rule needs a description pattern or an expected amount.")
    for day in (rule.day_range_start, rule.day_range_end):
        if day is not None and not 1 <= day <= 31:
            raise ValueError("Day of month must be between 1 and 31.")
    if (
        rule.day_range_start is not None
        and rule.day_range_end is not None
        and rule.day_range_start > rule.day_range_end
    ):
        raise ValueError("Day range start must not be after its end.")
    if rule.expected_amount is not None and rule.expected_amount < 0:
        raise ValueError("Expected amount cannot be negative.")
    if rule.amount_tolerance is not None and not 0 <= rule.amount_tolerance <= 1:
        raise ValueError("Amount tolerance must be between 0 and 1.")
    if rule.interval_days is not None and rule.interval_days <= 0:
        raise ValueError("Interval must be a positive number of days.")


class RuleRepository(Protocol):
    def load(self) -> list[ManualRecurringRule]: ...

    def save(self, rules: list[ManualRecurringRule]) -> None: ...


class RecurringService:
    """Rule authoring on top of an injected repository, plus detection.

    The service keeps no rule cache: each call loads a fresh snapshot.
    """

    def __init__(self, repository: RuleRepository):
        self._repo = repository

    def get_all(self) -> list[ManualRecurringRule]:
        return self._repo.load()

    def get_enabled(self) -> list[ManualRecurringRule]:
        return [r for r in self._repo.load() if r.enabled]

    def get_by_id(self, rule_id: str) -> ManualRecurringRule | None:
        return next((r for r in self._repo.load() if r.id == rule_id), None)

    def add_rule(
        self,
        type_: str,
        description_pattern: str,
        category: str | None = None,
        day_range_start: int | None = None,
        day_range_end: int | None = None,
        interval_days: int | None = None,
        expected_amount: float | None = None,
        amount_tolerance: float | None = None,
        use_average: bool = False,
        is_exclude: bool = False,
        notes: str = "",
    ) -> ManualRecurringRule:
        rule = ManualRecurringRule(
            id=str(uuid.uuid4()),
            type=self._parse_direction(type_),
            description_pattern=description_pattern.strip(),
            category=category or None,
            day_range_start=day_range_start,
            day_range_end=day_range_end,
            interval_days=interval_days,
            expected_amount=expected_amount,
            amount_tolerance=amount_tolerance,
            use_average=use_average,
            enabled=True,
            is_exclude=is_exclude,
            created_at=datetime.now().isoformat(timespec="seconds"),
            notes=notes,
        )
        validate_rule(rule)
        rules = self._repo.load()
        rules.append(rule)
        self._repo.save(rules)
        logger.info("Added recurring rule %s (%s)", rule.id, rule.description_pattern)
        return rule

    def update_rule(self, rule_id: str, **changes) -> ManualRecurringRule:
        if "id" in changes or "created_at" in changes:
            raise ValueError("Rule id and creation time cannot be changed.")
        rules = self._repo.load()
        idx = self._index_of(rules, rule_id)
        if "type" in changes:
            changes["type"] = self._parse_direction(changes["type"])
        updated = replace(rules[idx], **changes)
        validate_rule(updated)
        rules[idx] = updated
        self._repo.save(rules)
        return updated

    def remove_rule(self, rule_id: str):
        rules = self._repo.load()
        del rules[self._index_of(rules, rule_id)]
        self._repo.save(rules)

    def toggle_rule(self, rule_id: str) -> ManualRecurringRule:
        rules = self._repo.load()
        idx = self._index_of(rules, rule_id)
        rules[idx] = replace(rules[idx], enabled=not rules[idx].enabled)
        self._repo.save(rules)
        return rules[idx]

    def detect(
        self,
        transactions: list[Transaction],
        min_occurrences: int = DEFAULT_MIN_OCCURRENCES,
        reference_date: date | None = None,
    ) -> list[RecurringTransaction]:
        """Merged detection using the repository's current enabled rules."""
        return detect_recurring_transactions(
            transactions, min_occurrences, self.get_enabled(), reference_date
        )

    # ── Helpers ──────────────────────────────────────────────────────────────

    def _index_of(self, rules: list[ManualRecurringRule], rule_id: str) -> int:
        for idx, rule in enumerate(rules):
            if rule.id == rule_id:
                return idx
        raise KeyError(f"No recurring rule with id {rule_id!r}")

    def _parse_direction(self, value) -> Direction:
        try:
            return Direction(str(getattr(value, "value", value)).upper())
        except ValueError:
            raise ValueError("Type must be CREDIT or DEBIT.") from None

