from dataclasses import dataclass, field

from models.transaction import Transaction


@dataclass
class DetectionDiagnostic:
    normalized_description: str
    original_description: str
    transactions: list[Transaction]
    count: int
    intervals: list[int] = field(default_factory=list)
    avg_interval: float = 0.0
    deviations: list[float] = field(default_factory=list)
    is_consistent: bool = False
    days_since_last_occurrence: int = 0
    is_stale: bool = False
    reason: str = ""

    @property
    def is_detected(self) -> bool:
        return self.reason == "Detected as recurring"
