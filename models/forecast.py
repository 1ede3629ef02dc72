from dataclasses import dataclass, field
from typing import Optional

from models.recurring_transaction import RecurringTransaction
from utils.constants import EventType


@dataclass(frozen=True)
class ForecastEvent:
    type: EventType
    description: str
    amount: float


@dataclass(frozen=True)
class LiquidityForecastPoint:
    date: str               # 'YYYY-MM-DD'
    projected_balance: float
    event: Optional[ForecastEvent] = None   # first event of the day only


@dataclass(frozen=True)
class ForecastStats:
    start: float
    end: float
    change: float
    lowest: float


@dataclass(frozen=True)
class LiquidityReport:
    incomes: list[RecurringTransaction]
    expenses: list[RecurringTransaction]
    forecast: list[LiquidityForecastPoint]
    lowest_point: Optional[LiquidityForecastPoint]
    stats: ForecastStats
    days: int = 90
    categories: tuple[str, ...] = field(default_factory=tuple)
