"""Tests for the sqlite layer: settings, rule DAO, transaction DAO."""
import sqlite3

import pytest

from database.db_manager import DatabaseManager
from database.recurring_dao import RecurringDAO
from database.transaction_dao import TransactionDAO
from models.recurring_rule import ManualRecurringRule
from utils.constants import DEFAULT_FORECAST_DAYS, DEFAULT_SAFETY_BUFFER, Direction


def _rule(rule_id, pattern, **kwargs):
    return ManualRecurringRule(
        id=rule_id, type=kwargs.pop("type", Direction.DEBIT),
        description_pattern=pattern, created_at="2024-01-01T00:00:00", **kwargs,
    )


# ── Settings ──────────────────────────────────────────────────────────────────

def test_defaults_are_seeded(db):
    assert db.get_float_setting("safety_buffer", 0.0) == DEFAULT_SAFETY_BUFFER
    assert db.get_int_setting("forecast_days", 0) == DEFAULT_FORECAST_DAYS


def test_set_setting_overrides(db):
    db.set_setting("safety_buffer", "750")
    assert db.get_float_setting("safety_buffer", 0.0) == 750.0


def test_unparseable_setting_falls_back(db):
    db.set_setting("forecast_days", "soon")
    assert db.get_int_setting("forecast_days", 42) == 42
    assert db.get_setting("missing", "x") == "x"


def test_initialize_is_idempotent(db):
    db.set_setting("safety_buffer", "100")
    db.initialize()
    assert db.get_setting("safety_buffer") == "100"


def test_open_creates_folder(tmp_path):
    folder = tmp_path / "nested" / "data"
    manager = DatabaseManager.open(str(folder))
    try:
        assert (folder / "cashflow.db").exists()
    finally:
        manager.close()


# ── RecurringDAO ──────────────────────────────────────────────────────────────

def test_save_and_load_preserve_order(db):
    dao = RecurringDAO(db)
    rules = [_rule("b", "rent"), _rule("a", "salary", type=Direction.CREDIT), _rule("c", "gym")]
    dao.save(rules)

    loaded = dao.load()
    assert [r.id for r in loaded] == ["b", "a", "c"]
    assert loaded[1].type == Direction.CREDIT


def test_save_replaces_previous_set(db):
    dao = RecurringDAO(db)
    dao.save([_rule("a", "rent"), _rule("b", "gym")])
    dao.save([_rule("c", "netflix")])
    assert [r.id for r in dao.load()] == ["c"]


def test_fields_round_trip(db):
    dao = RecurringDAO(db)
    rule = _rule(
        "r1", "steueramt", category="Taxes", day_range_start=25, day_range_end=28,
        interval_days=91, expected_amount=1200.0, amount_tolerance=0.1,
        use_average=True, is_exclude=False, notes="quarterly instalment",
    )
    dao.save([rule])
    assert dao.get_by_id("r1") == rule


def test_create_appends_and_crud(db):
    dao = RecurringDAO(db)
    dao.save([_rule("a", "rent")])
    dao.create(_rule("b", "gym"))
    assert [r.id for r in dao.get_all()] == ["a", "b"]

    updated = dao.update(_rule("b", "fitness park", expected_amount=60.0))
    assert updated.description_pattern == "fitness park"
    assert updated.expected_amount == 60.0

    dao.set_enabled("a", False)
    assert [r.id for r in dao.get_enabled()] == ["b"]

    dao.delete("b")
    assert dao.get_by_id("b") is None


def test_day_range_is_constrained(db):
    dao = RecurringDAO(db)
    with pytest.raises(sqlite3.IntegrityError):
        dao.save([_rule("bad", "rent", day_range_start=32)])
    assert dao.load() == []


def test_notes_column_is_migrated(tmp_path):
    path = str(tmp_path / "old.db")
    conn = sqlite3.connect(path)
    conn.execute("""CREATE TABLE manual_recurring_rules (
        id TEXT PRIMARY KEY, position INTEGER NOT NULL DEFAULT 0,
        type TEXT NOT NULL, description_pattern TEXT NOT NULL DEFAULT '',
        category TEXT, day_range_start INTEGER, day_range_end INTEGER,
        interval_days INTEGER, expected_amount REAL, amount_tolerance REAL,
        use_average INTEGER NOT NULL DEFAULT 0, enabled INTEGER NOT NULL DEFAULT 1,
        is_exclude INTEGER NOT NULL DEFAULT 0, created_at TEXT NOT NULL DEFAULT ''
    )""")
    conn.execute(
        "INSERT INTO manual_recurring_rules (id, type, description_pattern) VALUES ('x', 'DEBIT', 'rent')"
    )
    conn.commit()
    conn.close()

    manager = DatabaseManager(path)
    manager.initialize()
    try:
        (rule,) = RecurringDAO(manager).load()
        assert rule.notes == ""
    finally:
        manager.close()


# ── TransactionDAO ────────────────────────────────────────────────────────────

def test_transactions_are_returned_by_date(db, make_tx):
    dao = TransactionDAO(db)
    dao.create(make_tx("2", "2024-02-01", "RENT", 1200.0))
    dao.create(make_tx("1", "2024-01-01", "RENT", 1200.0))
    dao.create(make_tx("3", "2024-01-25", "SALARY", 5000.0, Direction.CREDIT, "Income"))

    assert [t.id for t in dao.get_all()] == ["1", "3", "2"]
    (salary,) = dao.get_by_direction(Direction.CREDIT)
    assert salary.type == Direction.CREDIT
    assert salary.category == "Income"


def test_bulk_insert_skips_known_ids(db, make_tx):
    dao = TransactionDAO(db)
    first = [make_tx("1", "2024-01-01", "A", 1.0), make_tx("2", "2024-01-02", "B", 2.0)]
    assert dao.bulk_insert(first) == 2
    assert dao.bulk_insert(first + [make_tx("3", "2024-01-03", "C", 3.0)]) == 1
    assert len(dao.get_all()) == 3

    dao.delete_all()
    assert dao.get_all() == []
