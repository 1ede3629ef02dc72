from database.db_manager import DatabaseManager
from models.transaction import Transaction
from utils.constants import Direction


class TransactionDAO:
    """Read access to the imported transaction history, plus inserts for importers."""

    def __init__(self, db: DatabaseManager):
        self._db = db

    def _row_to_model(self, row) -> Transaction:
        return Transaction(
            id=row["id"],
            trade_date=row["trade_date"],
            description=row["description"],
            amount=row["amount"],
            type=Direction(row["type"]),
            category=row["category"],
        )

    def _params(self, tx: Transaction) -> tuple:
        return (tx.id, tx.trade_date, tx.description, tx.amount, tx.type.value, tx.category)

    def get_all(self) -> list[Transaction]:
        conn = self._db.get_connection()
        rows = conn.execute(
            "SELECT * FROM transactions ORDER BY trade_date ASC, id ASC"
        ).fetchall()
        return [self._row_to_model(r) for r in rows]

    def get_by_direction(self, direction: Direction) -> list[Transaction]:
        conn = self._db.get_connection()
        rows = conn.execute(
            "SELECT * FROM transactions WHERE type = ? ORDER BY trade_date ASC, id ASC",
            (Direction(direction).value,),
        ).fetchall()
        return [self._row_to_model(r) for r in rows]

    def create(self, tx: Transaction) -> Transaction:
        conn = self._db.get_connection()
        conn.execute(
            """INSERT INTO transactions (id, trade_date, description, amount, type, category)
               VALUES (?, ?, ?, ?, ?, ?)""",
            self._params(tx),
        )
        conn.commit()
        return tx

    def bulk_insert(self, transactions: list[Transaction]) -> int:
        """Insert many transactions, skipping ids already stored. Returns rows added."""
        conn = self._db.get_connection()
        before = conn.total_changes
        with conn:
            conn.executemany(
                """INSERT OR IGNORE INTO transactions
                   (id, trade_date, description, amount, type, category)
                   VALUES (?, ?, ?, ?, ?, ?)""",
                [self._params(t) for t in transactions],
            )
        return conn.total_changes - before

    def delete_all(self):
        conn = self._db.get_connection()
        conn.execute("DELETE FROM transactions")
        conn.commit()
