"""Day-by-day liquidity projection from recurring incomes and expenses."""
import logging
from datetime import date, timedelta

from models.forecast import (
    ForecastEvent,
    ForecastStats,
    LiquidityForecastPoint,
    LiquidityReport,
)
from models.recurring_rule import ManualRecurringRule
from models.recurring_transaction import RecurringTransaction
from models.transaction import Transaction
from services.recurring_service import detect_recurring_transactions, split_by_direction
from utils.constants import DEFAULT_FORECAST_DAYS, FORECAST_MIN_OCCURRENCES, EventType
from utils.date_helpers import (
    add_months,
    days_between,
    first_on_or_after,
    format_date,
    last_day_of_month,
    parse_date,
    today,
)

logger = logging.getLogger(__name__)


def month_end_occurrences(start_date: date, days: int) -> list[date]:
    """Last calendar day of each month, from the start month, within the horizon."""
    current = last_day_of_month(start_date)
    if current < start_date:
        current = last_day_of_month(add_months(current, 1))
    result = []
    while days_between(start_date, current) <= days:
        result.append(current)
        current = last_day_of_month(add_months(current.replace(day=1), 1))
    return result


def interval_occurrences(last_charged: date, interval: int, start_date: date, days: int) -> list[date]:
    """last_charged + k*interval (k >= 1) falling inside [start_date, start_date + days]."""
    if interval <= 0:
        return []
    first = last_charged + timedelta(days=interval)
    current = first_on_or_after(first, interval, start_date)
    result = []
    while days_between(start_date, current) <= days:
        result.append(current)
        current += timedelta(days=interval)
    return result


def occurrence_dates(recurring: RecurringTransaction, start_date: date, days: int) -> list[date]:
    """Rule-backed entries land on month ends; detected ones follow their interval."""
    if recurring.is_rule_backed:
        return month_end_occurrences(start_date, days)
    last = parse_date(recurring.last_charged)
    if last is None:
        return []
    return interval_occurrences(last, recurring.interval_days, start_date, days)


def project_liquidity(
    current_balance: float,
    recurring_incomes: list[RecurringTransaction],
    recurring_expenses: list[RecurringTransaction],
    days_to_project: int = DEFAULT_FORECAST_DAYS,
    start_date: date | None = None,
) -> list[LiquidityForecastPoint]:
    """
    One point per day for day 0..days_to_project inclusive.

    Every event of a day moves the balance; the point keeps only the first
    event of that day as its representative.
    """
    start = start_date or today()
    events: dict[date, list[ForecastEvent]] = {}

    for event_type, entries in (
        (EventType.INCOME, recurring_incomes),
        (EventType.EXPENSE, recurring_expenses),
    ):
        for entry in entries:
            for d in occurrence_dates(entry, start, days_to_project):
                events.setdefault(d, []).append(
                    ForecastEvent(type=event_type, description=entry.description, amount=entry.amount)
                )

    forecast = []
    balance = current_balance
    for offset in range(days_to_project + 1):
        current = start + timedelta(days=offset)
        day_events = events.get(current, [])
        for event in day_events:
            if event.type == EventType.INCOME:
                balance += event.amount
            else:
                balance -= event.amount
        forecast.append(LiquidityForecastPoint(
            date=format_date(current),
            projected_balance=balance,
            event=day_events[0] if day_events else None,
        ))

    return forecast


def find_lowest_liquidity_point(
    forecast: list[LiquidityForecastPoint],
) -> LiquidityForecastPoint | None:
    """Minimum-balance point; the earliest one wins ties."""
    if not forecast:
        return None
    lowest = forecast[0]
    for point in forecast[1:]:
        if point.projected_balance < lowest.projected_balance:
            lowest = point
    return lowest


def summarize_forecast(
    forecast: list[LiquidityForecastPoint],
    lowest_point: LiquidityForecastPoint | None = None,
) -> ForecastStats:
    if not forecast:
        return ForecastStats(start=0.0, end=0.0, change=0.0, lowest=0.0)
    start = forecast[0].projected_balance
    end = forecast[-1].projected_balance
    lowest_point = lowest_point or find_lowest_liquidity_point(forecast)
    return ForecastStats(
        start=start,
        end=end,
        change=end - start,
        lowest=lowest_point.projected_balance,
    )


class ForecastService:
    def __init__(self, recurring_svc=None):
        self._recurring_svc = recurring_svc

    def build_report(
        self,
        current_balance: float,
        transactions: list[Transaction],
        manual_rules: list[ManualRecurringRule] | None = None,
        days: int = DEFAULT_FORECAST_DAYS,
        categories: list[str] | None = None,
        start_date: date | None = None,
    ) -> LiquidityReport:
        """
        Detect recurring incomes/expenses (threshold 2) and project the balance.
        categories: restrict the input transactions to these categories first.
        manual_rules: defaults to the recurring service's enabled rules.
        """
        if days < 0:
            raise ValueError("Forecast horizon cannot be negative.")
        start = start_date or today()

        if manual_rules is None:
            manual_rules = self._recurring_svc.get_enabled() if self._recurring_svc else []
        if categories:
            transactions = [t for t in transactions if t.category and t.category in categories]

        credits, debits = split_by_direction(transactions)
        incomes = detect_recurring_transactions(credits, FORECAST_MIN_OCCURRENCES, manual_rules, start)
        expenses = detect_recurring_transactions(debits, FORECAST_MIN_OCCURRENCES, manual_rules, start)

        forecast = project_liquidity(current_balance, incomes, expenses, days, start)
        lowest = find_lowest_liquidity_point(forecast)
        logger.debug(
            "Forecast over %d days: %d income(s), %d expense(s), lowest %s",
            days, len(incomes), len(expenses), lowest.date if lowest else None,
        )
        return LiquidityReport(
            incomes=incomes,
            expenses=expenses,
            forecast=forecast,
            lowest_point=lowest,
            stats=summarize_forecast(forecast, lowest),
            days=days,
            categories=tuple(categories or ()),
        )
