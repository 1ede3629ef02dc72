from enum import Enum

APP_NAME = "Cashflow Forecast"
DB_FILE = "cashflow.db"
DATE_FORMAT = "%Y-%m-%d"


class Direction(str, Enum):
    CREDIT = "CREDIT"
    DEBIT = "DEBIT"


class Frequency(str, Enum):
    WEEKLY = "weekly"
    BI_WEEKLY = "bi-weekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"


class EventType(str, Enum):
    INCOME = "income"
    EXPENSE = "expense"


# ── Detection heuristics ──────────────────────────────────────────────────────

DEFAULT_MIN_OCCURRENCES = 3
FORECAST_MIN_OCCURRENCES = 2
NORMALIZED_KEY_LENGTH = 30
INTERVAL_TOLERANCE = 0.20       # max relative deviation of any gap from the mean gap
STALENESS_FACTOR = 2            # stale once silent for more than 2x the mean gap
AMOUNT_VARIANCE_RATIO = 0.10    # range above 10% of the average = variable amount
AMOUNT_WINDOW = 12              # most recent occurrences used for amount stats

# Upper bound (inclusive) of the mean gap in days for each band; anything above
# the last band is yearly.
FREQUENCY_BANDS = [
    (9, Frequency.WEEKLY),
    (16, Frequency.BI_WEEKLY),
    (35, Frequency.MONTHLY),
    (100, Frequency.QUARTERLY),
]

# ── Manual rules ──────────────────────────────────────────────────────────────

DEFAULT_RULE_INTERVAL_DAYS = 30
MANUAL_PREFIX = "Manual: "
EXCLUDED_PREFIX = "Excluded: "
UNCATEGORIZED = "Uncategorized"

# ── Subscriptions ─────────────────────────────────────────────────────────────

HOUSING_KEYWORDS = ("rent", "mortgage", "miete", "hypothek", "lease")

MONTHLY_MULTIPLIERS = {
    Frequency.WEEKLY: 4.33,
    Frequency.BI_WEEKLY: 2.17,
    Frequency.MONTHLY: 1,
    Frequency.QUARTERLY: 0.33,
    Frequency.YEARLY: 0.083,
}

# ── Forecast / safe-to-spend ──────────────────────────────────────────────────

DEFAULT_FORECAST_DAYS = 90
DEFAULT_SAFETY_BUFFER = 500.0
DEFAULT_PAYDAY_FALLBACK_DAYS = 30

DEFAULT_SETTINGS = [
    ("safety_buffer", "500"),
    ("forecast_days", "90"),
    ("min_occurrences", "2"),
    ("currency_symbol", "CHF "),
]
