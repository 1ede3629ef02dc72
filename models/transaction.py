from dataclasses import dataclass

from utils.constants import Direction


@dataclass(frozen=True)
class Transaction:
    id: str
    trade_date: str         # 'YYYY-MM-DD'
    description: str
    amount: float           # always a non-negative magnitude
    type: Direction
    category: str = ""

    def __post_init__(self):
        object.__setattr__(self, "type", Direction(self.type))

    @classmethod
    def from_dict(cls, data: dict) -> "Transaction":
        return cls(
            id=str(data["id"]),
            trade_date=str(data["trade_date"])[:10],
            description=data.get("description", ""),
            amount=float(data["amount"]),
            type=data["type"],
            category=data.get("category") or "",
        )
