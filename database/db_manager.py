import sqlite3
import os
from utils.constants import DB_FILE, DEFAULT_SETTINGS


class DatabaseManager:
    def __init__(self, db_path: str | None = None):
        self.db_path = db_path or DB_FILE
        self._conn: sqlite3.Connection | None = None

    def get_connection(self) -> sqlite3.Connection:
        if self._conn is None:
            self._conn = sqlite3.connect(self.db_path, check_same_thread=False)
            self._conn.row_factory = sqlite3.Row
            self._conn.execute("PRAGMA foreign_keys = ON")
            if self.db_path != ":memory:":
                self._conn.execute("PRAGMA journal_mode = WAL")
        return self._conn

    def initialize(self):
        """Create schema and seed defaults."""
        conn = self.get_connection()
        self._create_schema(conn)
        self._migrate_schema(conn)
        self._seed_defaults(conn)
        conn.commit()

    def _migrate_schema(self, conn: sqlite3.Connection):
        """Idempotent ALTER TABLE for columns added after initial release."""
        cols = {row[1] for row in conn.execute("PRAGMA table_info(manual_recurring_rules)").fetchall()}
        if "notes" not in cols:
            conn.execute(
                "ALTER TABLE manual_recurring_rules ADD COLUMN notes TEXT NOT NULL DEFAULT ''"
            )

    def _create_schema(self, conn: sqlite3.Connection):
        conn.executescript("""
            CREATE TABLE IF NOT EXISTS manual_recurring_rules (
                id                  TEXT PRIMARY KEY,
                position            INTEGER NOT NULL DEFAULT 0,
                type                TEXT NOT NULL CHECK(type IN ('CREDIT','DEBIT')),
                description_pattern TEXT NOT NULL DEFAULT '',
                category            TEXT,
                day_range_start     INTEGER CHECK(day_range_start BETWEEN 1 AND 31),
                day_range_end       INTEGER CHECK(day_range_end BETWEEN 1 AND 31),
                interval_days       INTEGER,
                expected_amount     REAL,
                amount_tolerance    REAL,
                use_average         INTEGER NOT NULL DEFAULT 0,
                enabled             INTEGER NOT NULL DEFAULT 1,
                is_exclude          INTEGER NOT NULL DEFAULT 0,
                created_at          TEXT NOT NULL DEFAULT (datetime('now'))
            );

            CREATE TABLE IF NOT EXISTS transactions (
                id          TEXT PRIMARY KEY,
                trade_date  TEXT NOT NULL,
                description TEXT NOT NULL DEFAULT '',
                amount      REAL NOT NULL CHECK(amount >= 0),
                type        TEXT NOT NULL CHECK(type IN ('CREDIT','DEBIT')),
                category    TEXT NOT NULL DEFAULT ''
            );

            CREATE INDEX IF NOT EXISTS idx_transactions_trade_date ON transactions(trade_date);
            CREATE INDEX IF NOT EXISTS idx_transactions_type       ON transactions(type);

            CREATE TABLE IF NOT EXISTS app_settings (
                key   TEXT PRIMARY KEY,
                value TEXT NOT NULL
            );
        """)

    def _seed_defaults(self, conn: sqlite3.Connection):
        for key, value in DEFAULT_SETTINGS:
            conn.execute(
                "INSERT OR IGNORE INTO app_settings(key, value) VALUES (?, ?)",
                (key, value),
            )

    def get_setting(self, key: str, default: str = "") -> str:
        conn = self.get_connection()
        row = conn.execute(
            "SELECT value FROM app_settings WHERE key = ?", (key,)
        ).fetchone()
        return row["value"] if row else default

    def get_float_setting(self, key: str, default: float) -> float:
        try:
            return float(self.get_setting(key, str(default)))
        except ValueError:
            return default

    def get_int_setting(self, key: str, default: int) -> int:
        try:
            return int(self.get_setting(key, str(default)))
        except ValueError:
            return default

    def set_setting(self, key: str, value: str):
        conn = self.get_connection()
        conn.execute(
            "INSERT OR REPLACE INTO app_settings(key, value) VALUES (?, ?)",
            (key, value),
        )
        conn.commit()

    @staticmethod
    def open(db_folder: str | None = None) -> "DatabaseManager":
        """Startup factory: opens (and initializes) the DB in db_folder, or the CWD."""
        path = os.path.join(db_folder, DB_FILE) if db_folder else DB_FILE
        if db_folder:
            os.makedirs(db_folder, exist_ok=True)
        db = DatabaseManager(path)
        db.initialize()
        return db

    def close(self):
        if self._conn:
            self._conn.close()
            self._conn = None
