"""Tests for the manual/automatic merge and rule authoring."""
from datetime import date

import pytest

from models.recurring_rule import ManualRecurringRule
from services.recurring_service import (
    RecurringService,
    detect_recurring_transactions,
    split_by_direction,
)
from utils.constants import Direction


@pytest.fixture
def netflix(series):
    return series("nf", "NETFLIX", date(2024, 3, 1), 30, 4, 15.9)


def test_exclusion_removes_ids_from_automatic_pool(netflix, ref_date):
    rule = ManualRecurringRule(id="x", type=Direction.DEBIT, description_pattern="netflix", is_exclude=True)

    result = detect_recurring_transactions(netflix, 3, [rule], ref_date)

    assert result == []
    excluded = {t.id for t in netflix}
    assert all(not excluded & set(r.transaction_ids) for r in result)


def test_manual_match_prevents_double_counting(series, ref_date):
    salary = series("s", "SALARY ACME", date(2024, 2, 26), 30, 4, 5000.0, Direction.CREDIT)
    rule = ManualRecurringRule(id="pay", type=Direction.CREDIT, description_pattern="salary")

    result = detect_recurring_transactions(salary, 2, [rule], ref_date)

    assert len(result) == 1
    assert result[0].rule_id == "pay"
    assert result[0].occurrences == 4


def test_merged_output_sorted_by_amount(series, netflix, ref_date):
    rent = series("r", "LANDLORD AG", date(2024, 3, 1), 30, 4, 1800.0)
    rule = ManualRecurringRule(
        id="ins", type=Direction.DEBIT, description_pattern="insurance", expected_amount=300.0,
    )

    result = detect_recurring_transactions(netflix + rent, 3, [rule], ref_date)

    assert [r.amount for r in result] == [1800.0, 300.0, 15.9]
    assert result[1].is_projected


def test_exclusion_entries_never_exposed(netflix, series, ref_date):
    phone = series("p", "SWISSCOM", date(2024, 3, 1), 30, 4, 79.0)
    rule = ManualRecurringRule(id="x", type=Direction.DEBIT, description_pattern="netflix", is_exclude=True)
    result = detect_recurring_transactions(netflix + phone, 3, [rule], ref_date)
    assert [r.description for r in result] == ["SWISSCOM"]
    assert not any(r.is_exclude for r in result)


def test_unmatched_exclusion_rule_is_projected(ref_date):
    rule = ManualRecurringRule(
        id="x", type=Direction.DEBIT, description_pattern="rent", expected_amount=1500.0, is_exclude=True,
    )
    [entry] = detect_recurring_transactions([], 2, [rule], ref_date)
    assert entry.amount == 1500.0
    assert entry.occurrences == 0
    assert entry.rule_id == "x"


def test_split_by_direction(make_tx):
    txs = [
        make_tx("1", "2024-01-01", "A", 1.0, Direction.CREDIT),
        make_tx("2", "2024-01-01", "B", 1.0, Direction.DEBIT),
    ]
    credits, debits = split_by_direction(txs)
    assert [t.id for t in credits] == ["1"]
    assert [t.id for t in debits] == ["2"]


# ── RecurringService ─────────────────────────────────────────────────────────

def test_add_rule_persists_through_repository(rule_repo):
    svc = RecurringService(rule_repo)
    rule = svc.add_rule("debit", "Gym", expected_amount=60.0, amount_tolerance=0.1)

    assert rule.type == Direction.DEBIT
    assert rule.enabled
    assert rule.created_at
    assert rule_repo.rules == [rule]
    assert svc.get_by_id(rule.id) == rule


def test_update_and_toggle_rule(rule_repo):
    svc = RecurringService(rule_repo)
    rule = svc.add_rule("DEBIT", "gym")

    updated = svc.update_rule(rule.id, expected_amount=75.0, type="CREDIT")
    assert updated.expected_amount == 75.0
    assert updated.type == Direction.CREDIT

    toggled = svc.toggle_rule(rule.id)
    assert not toggled.enabled
    assert svc.get_enabled() == []


def test_remove_rule(rule_repo):
    svc = RecurringService(rule_repo)
    rule = svc.add_rule("DEBIT", "gym")
    svc.remove_rule(rule.id)
    assert svc.get_all() == []


def test_unknown_rule_id_raises(rule_repo):
    svc = RecurringService(rule_repo)
    with pytest.raises(KeyError):
        svc.toggle_rule("missing")
    with pytest.raises(KeyError):
        svc.remove_rule("missing")


@pytest.mark.parametrize("kwargs", [
    {"type_": "TRANSFER", "description_pattern": "gym"},
    {"type_": "DEBIT", "description_pattern": ""},
    {"type_": "DEBIT", "description_pattern": "gym", "day_range_start": 0},
    {"type_": "DEBIT", "description_pattern": "gym", "day_range_start": 20, "day_range_end": 5},
    {"type_": "DEBIT", "description_pattern": "gym", "expected_amount": -1.0},
    {"type_": "DEBIT", "description_pattern": "gym", "amount_tolerance": 1.5},
    {"type_": "DEBIT", "description_pattern": "gym", "interval_days": 0},
])
def test_invalid_rules_rejected(rule_repo, kwargs):
    svc = RecurringService(rule_repo)
    with pytest.raises(ValueError):
        svc.add_rule(**kwargs)
    assert rule_repo.rules == []


def test_id_cannot_be_updated(rule_repo):
    svc = RecurringService(rule_repo)
    rule = svc.add_rule("DEBIT", "gym")
    with pytest.raises(ValueError):
        svc.update_rule(rule.id, id="other")


def test_detect_uses_enabled_rules_only(rule_repo, netflix, ref_date):
    svc = RecurringService(rule_repo)
    rule = svc.add_rule("DEBIT", "netflix", is_exclude=True)
    assert svc.detect(netflix, 3, ref_date) == []

    svc.toggle_rule(rule.id)
    [entry] = svc.detect(netflix, 3, ref_date)
    assert entry.rule_id is None
