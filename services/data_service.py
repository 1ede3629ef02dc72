"""Export and import manual recurring rules, and load transaction history, as JSON."""
import logging
from datetime import datetime

from database.transaction_dao import TransactionDAO
from models.recurring_rule import ManualRecurringRule
from models.transaction import Transaction
from services.recurring_service import RuleRepository, validate_rule
from utils.date_helpers import parse_date

logger = logging.getLogger(__name__)

EXPORT_VERSION = 1


class DataService:
    def __init__(self, rule_repository: RuleRepository, tx_dao: TransactionDAO | None = None):
        self._rules = rule_repository
        self._tx_dao = tx_dao

    # ── Export ────────────────────────────────────────────────────────────────

    def export_rules_json(self) -> dict:
        """Return a full export dict (caller writes to disk)."""
        return {
            "export_version": EXPORT_VERSION,
            "exported_at": datetime.now().isoformat(),
            "recurring_rules": [r.to_dict() for r in self._rules.load()],
        }

    # ── Import ────────────────────────────────────────────────────────────────

    def import_rules_json(self, data: dict, mode: str) -> dict:
        """Import rules from a previously exported JSON dict.

        mode: 'merge' | 'replace'
        Returns stats dict {"created": n, "skipped": m}.
        """
        if mode not in ("merge", "replace"):
            raise ValueError("Import mode must be 'merge' or 'replace'.")
        if not isinstance(data, dict) or not isinstance(data.get("recurring_rules", []), list):
            raise ValueError("Rule import expects an object with a 'recurring_rules' list.")

        incoming = []
        for pos, record in enumerate(data.get("recurring_rules", [])):
            try:
                rule = ManualRecurringRule.from_dict(record)
                validate_rule(rule)
            except (AttributeError, KeyError, TypeError, ValueError) as exc:
                raise ValueError(f"Invalid recurring rule #{pos}: {exc}") from exc
            incoming.append(rule)

        existing = [] if mode == "replace" else self._rules.load()
        known_ids = {r.id for r in existing}

        created = skipped = 0
        for rule in incoming:
            if rule.id in known_ids:
                skipped += 1
                continue
            existing.append(rule)
            known_ids.add(rule.id)
            created += 1

        self._rules.save(existing)
        logger.info("Imported %d rule(s) (%d skipped, mode=%s)", created, skipped, mode)
        return {"created": created, "skipped": skipped}

    def import_transactions_json(self, data: list | dict) -> dict:
        """Store transaction records; ids already present are skipped.

        Every record is validated before anything is written.
        """
        if self._tx_dao is None:
            raise ValueError("No transaction store configured.")
        records = data.get("transactions", []) if isinstance(data, dict) else data
        if not isinstance(records, list):
            raise ValueError("Transaction load expects a list of records.")

        transactions = []
        for pos, record in enumerate(records):
            try:
                tx = Transaction.from_dict(record)
            except (KeyError, TypeError, ValueError) as exc:
                raise ValueError(f"Invalid transaction record #{pos}: {exc}") from exc
            if parse_date(tx.trade_date) is None:
                raise ValueError(f"Invalid transaction record #{pos}: bad date {tx.trade_date!r}")
            if tx.amount < 0:
                raise ValueError(f"Invalid transaction record #{pos}: negative amount")
            transactions.append(tx)

        created = self._tx_dao.bulk_insert(transactions)
        skipped = len(transactions) - created
        logger.info("Loaded %d transaction(s) (%d skipped)", created, skipped)
        return {"created": created, "skipped": skipped}
