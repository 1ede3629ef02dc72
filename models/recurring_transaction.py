from dataclasses import dataclass, field
from typing import Optional

from utils.constants import Frequency


@dataclass(frozen=True)
class RecurringTransaction:
    description: str
    category: str
    amount: float
    frequency: Frequency
    interval_days: int
    last_charged: str       # 'YYYY-MM-DD'
    occurrences: int
    transaction_ids: tuple[str, ...] = field(default_factory=tuple)
    is_exclude: bool = False
    rule_id: Optional[str] = None

    @property
    def is_rule_backed(self) -> bool:
        return self.rule_id is not None

    @property
    def is_projected(self) -> bool:
        """Rule-backed entry with no observed transactions yet."""
        return self.is_rule_backed and self.occurrences == 0


@dataclass(frozen=True)
class SubscriptionItem(RecurringTransaction):
    monthly_equivalent: float = 0.0
