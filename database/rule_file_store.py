"""JSON-file rule repository (one file per profile)."""
import json
import logging
import os
from pathlib import Path

from models.recurring_rule import ManualRecurringRule

logger = logging.getLogger(__name__)


class RuleFileStore:
    def __init__(self, path: str | Path):
        self._path = Path(path)

    def load(self) -> list[ManualRecurringRule]:
        """Returns [] on a missing or unreadable file."""
        if not self._path.exists():
            return []
        try:
            with open(self._path, "r", encoding="utf-8") as f:
                data = json.load(f)
            return [ManualRecurringRule.from_dict(d) for d in data]
        except (OSError, ValueError, TypeError, AttributeError) as exc:
            logger.warning("Failed to read recurring rules from %s: %s", self._path, exc)
            return []

    def save(self, rules: list[ManualRecurringRule]):
        """Atomic write via .tmp + os.replace()."""
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_suffix(".tmp")
        try:
            with open(tmp, "w", encoding="utf-8") as f:
                json.dump([r.to_dict() for r in rules], f, indent=2)
            os.replace(tmp, self._path)
        finally:
            tmp.unlink(missing_ok=True)
