from dataclasses import dataclass


@dataclass(frozen=True)
class SafeToSpendDetails:
    safe_to_spend: float
    reserved_for_bills: float
    days_until_payday: int
    next_payday: str        # 'YYYY-MM-DD'
    buffer: float
    total_balance: float
