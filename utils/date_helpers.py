from datetime import date, datetime, timedelta
import calendar
from utils.constants import DATE_FORMAT


def today() -> date:
    return date.today()


def parse_date(date_str: str) -> date | None:
    """Parse a date string in YYYY-MM-DD format, returning None on failure.

    Full ISO timestamps ('2024-01-31T08:00:00') are accepted and truncated to
    their calendar date.
    """
    if not date_str:
        return None
    if isinstance(date_str, date):
        return date_str
    candidate = date_str.strip()[:10]
    for fmt in ("%Y-%m-%d", "%Y/%m/%d", "%Y.%m.%d"):
        try:
            return datetime.strptime(candidate, fmt).date()
        except ValueError:
            continue
    return None


def format_date(d: date) -> str:
    return d.strftime(DATE_FORMAT)


def days_between(start: date, end: date) -> int:
    """Whole calendar days from start to end (negative when end is earlier)."""
    return (end - start).days


def last_day_of_month(d: date) -> date:
    return d.replace(day=calendar.monthrange(d.year, d.month)[1])


def clamp_day_to_month(year: int, month: int, day: int) -> int:
    """Clamp day to valid range for the given year/month."""
    max_day = calendar.monthrange(year, month)[1]
    return min(day, max_day)


def add_months(d: date, n: int) -> date:
    """Add n months to date d, clamping day to month end."""
    month = d.month - 1 + n
    year = d.year + month // 12
    month = month % 12 + 1
    day = clamp_day_to_month(year, month, d.day)
    return d.replace(year=year, month=month, day=day)


def first_on_or_after(anchor: date, interval: int, from_date: date) -> date:
    """Return the first date in the anchor + k*interval series that is >= from_date.

    A non-positive interval never advances, so the anchor is returned as is.
    """
    if from_date <= anchor or interval <= 0:
        return anchor
    days_since = (from_date - anchor).days
    n = days_since // interval
    candidate = anchor + timedelta(days=n * interval)
    if candidate < from_date:
        candidate += timedelta(days=interval)
    return candidate
