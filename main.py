import argparse
import json
import os
import sys

# Ensure project root is on sys.path when run directly
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from database.db_manager import DatabaseManager
from database.recurring_dao import RecurringDAO
from database.rule_file_store import RuleFileStore
from database.transaction_dao import TransactionDAO

from services.recurring_service import RecurringService, split_by_direction
from services.forecast_service import ForecastService
from services.safe_to_spend_service import calculate_safe_to_spend
from services.subscription_service import identify_subscriptions, calculate_subscription_burn_rate
from services.diagnostics_service import debug_recurring_detection
from services.data_service import DataService

from ui.liquidity_chart import draw_liquidity_chart, draw_subscription_chart, save_figure
from utils.app_config import get_db_folder, get_log_level
from utils.constants import APP_NAME, Direction, EventType
from utils.currency import format_currency, format_signed
from utils.date_helpers import parse_date
from utils.log_setup import setup_logging


class App:
    """Wires the database, DAOs and services together for one CLI invocation."""

    def __init__(self, db: DatabaseManager, rules_file: str | None = None):
        self.db = db
        # Rules live in the database unless a JSON rules file is given
        self.rule_repo = RuleFileStore(rules_file) if rules_file else RecurringDAO(db)
        self.tx_dao = TransactionDAO(db)
        self.recurring_svc = RecurringService(self.rule_repo)
        self.forecast_svc = ForecastService(self.recurring_svc)
        self.data_svc = DataService(self.rule_repo, self.tx_dao)
        self.symbol = db.get_setting("currency_symbol", "CHF ")

    def money(self, amount: float) -> str:
        return format_currency(amount, self.symbol)


# ── Commands ─────────────────────────────────────────────────────────────────

def cmd_forecast(app: App, args) -> int:
    days = args.days if args.days is not None else app.db.get_int_setting("forecast_days", 90)
    report = app.forecast_svc.build_report(
        current_balance=args.balance,
        transactions=app.tx_dao.get_all(),
        days=days,
        categories=args.category or None,
        start_date=args.start,
    )
    print(f"{APP_NAME}: {days}-day liquidity forecast")
    print(f"  Start balance:  {app.money(report.stats.start)}")
    print(f"  End balance:    {app.money(report.stats.end)}")
    print(f"  Change:         {format_signed(report.stats.change, app.symbol)}")
    if report.lowest_point:
        print(f"  Lowest point:   {app.money(report.lowest_point.projected_balance)}"
              f" on {report.lowest_point.date}")
    for point in report.forecast:
        if point.event:
            sign = "+" if point.event.type == EventType.INCOME else "-"
            print(f"  {point.date}  {sign}{app.money(point.event.amount):>14}  "
                  f"{point.event.description}  balance {app.money(point.projected_balance)}")
    if args.chart:
        fig = draw_liquidity_chart(report.forecast, report.lowest_point, days)
        save_figure(fig, args.chart)
        print(f"Chart saved to {args.chart}")
    return 0


def cmd_safe_to_spend(app: App, args) -> int:
    buffer = args.buffer if args.buffer is not None else app.db.get_float_setting("safety_buffer", 500.0)
    details = calculate_safe_to_spend(
        args.balance, app.tx_dao.get_all(), app.recurring_svc.get_enabled(), buffer, args.start,
    )
    print(f"Safe to spend:       {app.money(details.safe_to_spend)}")
    print(f"Reserved for bills:  {app.money(details.reserved_for_bills)}")
    print(f"Buffer:              {app.money(details.buffer)}")
    print(f"Next payday:         {details.next_payday} ({details.days_until_payday} days)")
    return 0


def cmd_subscriptions(app: App, args) -> int:
    min_occ = app.db.get_int_setting("min_occurrences", 2)
    _, debits = split_by_direction(app.tx_dao.get_all())
    recurring = app.recurring_svc.detect(debits, min_occ, args.start)
    subs = identify_subscriptions(recurring, args.category or None)
    for s in subs:
        print(f"  {s.description:<30} {s.frequency.value:<10} {app.money(s.monthly_equivalent):>14}/mo")
    print(f"Monthly burn rate: {app.money(calculate_subscription_burn_rate(subs))}")
    if args.chart:
        save_figure(draw_subscription_chart(subs), args.chart)
        print(f"Chart saved to {args.chart}")
    return 0


def cmd_debug(app: App, args) -> int:
    txs = app.tx_dao.get_all()
    if args.type:
        txs = [t for t in txs if t.type == Direction(args.type)]
    for diag in debug_recurring_detection(txs, args.min_occurrences, args.start):
        print(f"  [{diag.count:>3}] {diag.original_description:<30} {diag.reason}")
    return 0


def cmd_rules(app: App, args) -> int:
    svc = app.recurring_svc
    if args.rules_cmd == "list":
        for r in svc.get_all():
            flags = ("on " if r.enabled else "off") + (" exclude" if r.is_exclude else "")
            print(f"  {r.id}  {r.type.value:<6} {flags:<11} {r.description_pattern}")
    elif args.rules_cmd == "add":
        rule = svc.add_rule(
            type_=args.type, description_pattern=args.pattern, category=args.category,
            day_range_start=args.day_start, day_range_end=args.day_end,
            interval_days=args.interval, expected_amount=args.amount,
            amount_tolerance=args.tolerance, use_average=args.use_average,
            is_exclude=args.exclude, notes=args.notes,
        )
        print(rule.id)
    elif args.rules_cmd == "remove":
        svc.remove_rule(args.rule_id)
    elif args.rules_cmd == "toggle":
        rule = svc.toggle_rule(args.rule_id)
        print("enabled" if rule.enabled else "disabled")
    elif args.rules_cmd == "export":
        with open(args.path, "w", encoding="utf-8") as f:
            json.dump(app.data_svc.export_rules_json(), f, indent=2)
    elif args.rules_cmd == "import":
        with open(args.path, "r", encoding="utf-8") as f:
            stats = app.data_svc.import_rules_json(json.load(f), args.mode)
        print(f"created {stats['created']}, skipped {stats['skipped']}")
    return 0


def cmd_transactions(app: App, args) -> int:
    if args.tx_cmd == "load":
        with open(args.path, "r", encoding="utf-8") as f:
            stats = app.data_svc.import_transactions_json(json.load(f))
        print(f"created {stats['created']}, skipped {stats['skipped']}")
    elif args.tx_cmd == "clear":
        app.tx_dao.delete_all()
    return 0


# ── Parser ───────────────────────────────────────────────────────────────────

def _date_arg(value: str):
    d = parse_date(value)
    if d is None:
        raise argparse.ArgumentTypeError(f"invalid date: {value!r}")
    return d


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="cashflow", description=APP_NAME)
    parser.add_argument("--db", help="Path to the database file")
    parser.add_argument("--rules-file", help="Keep manual rules in this JSON file instead of the database")
    parser.add_argument("--log-level", help="DEBUG, INFO, WARNING, ...")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("forecast", help="Project daily balance")
    p.add_argument("--balance", type=float, required=True)
    p.add_argument("--days", type=int)
    p.add_argument("--category", action="append")
    p.add_argument("--start", type=_date_arg)
    p.add_argument("--chart", help="Save a PNG chart to this path")
    p.set_defaults(func=cmd_forecast)

    p = sub.add_parser("safe-to-spend", help="Spendable amount before next payday")
    p.add_argument("--balance", type=float, required=True)
    p.add_argument("--buffer", type=float)
    p.add_argument("--start", type=_date_arg)
    p.set_defaults(func=cmd_safe_to_spend)

    p = sub.add_parser("subscriptions", help="Recurring non-housing expenses")
    p.add_argument("--category", action="append")
    p.add_argument("--start", type=_date_arg)
    p.add_argument("--chart", help="Save a PNG chart to this path")
    p.set_defaults(func=cmd_subscriptions)

    p = sub.add_parser("debug", help="Explain recurring detection per group")
    p.add_argument("--min-occurrences", type=int, default=3)
    p.add_argument("--type", choices=[d.value for d in Direction])
    p.add_argument("--start", type=_date_arg)
    p.set_defaults(func=cmd_debug)

    p = sub.add_parser("rules", help="Manage manual recurring rules")
    p.set_defaults(func=cmd_rules)
    rules = p.add_subparsers(dest="rules_cmd", required=True)
    rules.add_parser("list")
    add = rules.add_parser("add")
    add.add_argument("--type", required=True, choices=[d.value for d in Direction])
    add.add_argument("--pattern", default="")
    add.add_argument("--category")
    add.add_argument("--day-start", type=int)
    add.add_argument("--day-end", type=int)
    add.add_argument("--interval", type=int)
    add.add_argument("--amount", type=float)
    add.add_argument("--tolerance", type=float)
    add.add_argument("--use-average", action="store_true")
    add.add_argument("--exclude", action="store_true")
    add.add_argument("--notes", default="")
    for name in ("remove", "toggle"):
        rules.add_parser(name).add_argument("rule_id")
    rules.add_parser("export").add_argument("path")
    imp = rules.add_parser("import")
    imp.add_argument("path")
    imp.add_argument("--mode", choices=["merge", "replace"], default="merge")

    p = sub.add_parser("transactions", help="Load or clear the transaction history")
    p.set_defaults(func=cmd_transactions)
    txs = p.add_subparsers(dest="tx_cmd", required=True)
    txs.add_parser("load").add_argument("path", help="JSON file of transaction records")
    txs.add_parser("clear")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level or get_log_level())

    # ── Database ─────────────────────────────────────────────────────────────
    if args.db:
        db = DatabaseManager(args.db)
        db.initialize()
    else:
        db = DatabaseManager.open(db_folder=get_db_folder())

    try:
        return args.func(App(db, args.rules_file), args)
    except (OSError, ValueError, KeyError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
