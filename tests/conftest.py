"""Shared fixtures: transaction factories and in-memory stores."""
from datetime import date, timedelta

import pytest

from database.db_manager import DatabaseManager
from models.transaction import Transaction
from utils.constants import Direction
from utils.date_helpers import format_date

REF_DATE = date(2024, 6, 15)


class InMemoryRuleRepository:
    def __init__(self, rules=None):
        self.rules = list(rules or [])
        self.save_count = 0

    def load(self):
        return list(self.rules)

    def save(self, rules):
        self.rules = list(rules)
        self.save_count += 1


@pytest.fixture
def ref_date():
    return REF_DATE


@pytest.fixture
def make_tx():
    def _make(tx_id, trade_date, description, amount, type_=Direction.DEBIT, category=""):
        if isinstance(trade_date, date):
            trade_date = format_date(trade_date)
        return Transaction(
            id=tx_id, trade_date=trade_date, description=description,
            amount=amount, type=type_, category=category,
        )
    return _make


@pytest.fixture
def series(make_tx):
    """Build `count` transactions `interval` days apart starting at `start`."""
    def _series(prefix, description, start, interval, count, amount,
                type_=Direction.DEBIT, category=""):
        amounts = amount if isinstance(amount, list) else [amount] * count
        return [
            make_tx(f"{prefix}-{i}", start + timedelta(days=interval * i),
                    description, amounts[i], type_, category)
            for i in range(count)
        ]
    return _series


@pytest.fixture
def rule_repo():
    return InMemoryRuleRepository()


@pytest.fixture
def db():
    manager = DatabaseManager(":memory:")
    manager.initialize()
    yield manager
    manager.close()
