from dataclasses import dataclass, asdict
from typing import Optional

from utils.constants import Direction


@dataclass
class ManualRecurringRule:
    id: str
    type: Direction
    description_pattern: str
    category: Optional[str] = None
    day_range_start: Optional[int] = None   # 1-31, inclusive
    day_range_end: Optional[int] = None     # 1-31, inclusive
    interval_days: Optional[int] = None
    expected_amount: Optional[float] = None
    amount_tolerance: Optional[float] = None  # fraction, 0.1 = 10%
    use_average: bool = False
    enabled: bool = True
    is_exclude: bool = False
    created_at: str = ""
    notes: str = ""

    def __post_init__(self):
        self.type = Direction(self.type)

    def to_dict(self) -> dict:
        data = asdict(self)
        data["type"] = self.type.value
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "ManualRecurringRule":
        """Build a rule from a plain dict, ignoring unknown keys."""
        known = {k: v for k, v in data.items() if k in cls.__dataclass_fields__}
        known.setdefault("type", Direction.DEBIT)
        return cls(**known)
