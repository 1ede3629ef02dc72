import logging
from typing import Optional
from database.db_manager import DatabaseManager
from models.recurring_rule import ManualRecurringRule
from utils.constants import Direction

logger = logging.getLogger(__name__)

_COLUMNS = (
    "id", "position", "type", "description_pattern", "category",
    "day_range_start", "day_range_end", "interval_days", "expected_amount",
    "amount_tolerance", "use_average", "enabled", "is_exclude", "created_at", "notes",
)


class RecurringDAO:
    """sqlite-backed store for manual recurring rules.

    Implements the load/save repository contract used by RecurringService;
    rule order is preserved through the position column.
    """

    def __init__(self, db: DatabaseManager):
        self._db = db

    def _row_to_model(self, row) -> ManualRecurringRule:
        return ManualRecurringRule(
            id=row["id"],
            type=Direction(row["type"]),
            description_pattern=row["description_pattern"],
            category=row["category"],
            day_range_start=row["day_range_start"],
            day_range_end=row["day_range_end"],
            interval_days=row["interval_days"],
            expected_amount=row["expected_amount"],
            amount_tolerance=row["amount_tolerance"],
            use_average=bool(row["use_average"]),
            enabled=bool(row["enabled"]),
            is_exclude=bool(row["is_exclude"]),
            created_at=row["created_at"],
            notes=row["notes"] if "notes" in row.keys() else "",
        )

    def _model_to_params(self, rule: ManualRecurringRule, position: int) -> tuple:
        return (
            rule.id, position, rule.type.value, rule.description_pattern,
            rule.category, rule.day_range_start, rule.day_range_end,
            rule.interval_days, rule.expected_amount, rule.amount_tolerance,
            1 if rule.use_average else 0, 1 if rule.enabled else 0,
            1 if rule.is_exclude else 0, rule.created_at, rule.notes,
        )

    def _insert_sql(self) -> str:
        placeholders = ", ".join("?" * len(_COLUMNS))
        return f"INSERT INTO manual_recurring_rules ({', '.join(_COLUMNS)}) VALUES ({placeholders})"

    # ── Repository contract ──────────────────────────────────────────────────

    def load(self) -> list[ManualRecurringRule]:
        return self.get_all()

    def save(self, rules: list[ManualRecurringRule]):
        """Replace the stored rule set with `rules`, in order, atomically."""
        conn = self._db.get_connection()
        with conn:
            conn.execute("DELETE FROM manual_recurring_rules")
            conn.executemany(
                self._insert_sql(),
                [self._model_to_params(r, pos) for pos, r in enumerate(rules)],
            )
        logger.debug("Saved %d recurring rule(s)", len(rules))

    # ── Row-level access ─────────────────────────────────────────────────────

    def get_all(self) -> list[ManualRecurringRule]:
        conn = self._db.get_connection()
        rows = conn.execute(
            "SELECT * FROM manual_recurring_rules ORDER BY position, created_at"
        ).fetchall()
        return [self._row_to_model(r) for r in rows]

    def get_enabled(self) -> list[ManualRecurringRule]:
        conn = self._db.get_connection()
        rows = conn.execute(
            "SELECT * FROM manual_recurring_rules WHERE enabled = 1 ORDER BY position, created_at"
        ).fetchall()
        return [self._row_to_model(r) for r in rows]

    def get_by_id(self, rule_id: str) -> Optional[ManualRecurringRule]:
        conn = self._db.get_connection()
        row = conn.execute(
            "SELECT * FROM manual_recurring_rules WHERE id = ?", (rule_id,)
        ).fetchone()
        return self._row_to_model(row) if row else None

    def create(self, rule: ManualRecurringRule) -> ManualRecurringRule:
        conn = self._db.get_connection()
        next_pos = conn.execute(
            "SELECT COALESCE(MAX(position) + 1, 0) FROM manual_recurring_rules"
        ).fetchone()[0]
        conn.execute(self._insert_sql(), self._model_to_params(rule, next_pos))
        conn.commit()
        return self.get_by_id(rule.id)

    def update(self, rule: ManualRecurringRule) -> ManualRecurringRule:
        conn = self._db.get_connection()
        conn.execute(
            """UPDATE manual_recurring_rules SET
               type=?, description_pattern=?, category=?, day_range_start=?,
               day_range_end=?, interval_days=?, expected_amount=?,
               amount_tolerance=?, use_average=?, enabled=?, is_exclude=?, notes=?
               WHERE id=?""",
            (
                rule.type.value, rule.description_pattern, rule.category,
                rule.day_range_start, rule.day_range_end, rule.interval_days,
                rule.expected_amount, rule.amount_tolerance,
                1 if rule.use_average else 0, 1 if rule.enabled else 0,
                1 if rule.is_exclude else 0, rule.notes, rule.id,
            ),
        )
        conn.commit()
        return self.get_by_id(rule.id)

    def set_enabled(self, rule_id: str, enabled: bool):
        conn = self._db.get_connection()
        conn.execute(
            "UPDATE manual_recurring_rules SET enabled = ? WHERE id = ?",
            (1 if enabled else 0, rule_id),
        )
        conn.commit()

    def delete(self, rule_id: str):
        conn = self._db.get_connection()
        conn.execute("DELETE FROM manual_recurring_rules WHERE id = ?", (rule_id,))
        conn.commit()
