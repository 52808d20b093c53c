"""
Operator CLI.

    python -m src.app_shell.cli migrate
    python -m src.app_shell.cli quota <vendor-id>
    python -m src.app_shell.cli expiring
    python -m src.app_shell.cli reminders [--mark]
"""

import argparse
import logging
import sys
from collections.abc import Sequence
from pathlib import Path
from uuid import UUID

from src.adapters.dev_notifier import DevNotifierAdapter
from src.adapters.sqlite.migrator import SQLiteMigrator
from src.app_shell.config import ConfigError, validate_ops_rules
from src.app_shell.context import ServiceContext
from src.rules.loader import load_rules

logger = logging.getLogger("cli")

DATA_DIR = "data"
RULES_PATH = "rules.yaml"


def get_context(data_dir: Path, rules_path: Path) -> ServiceContext:
    try:
        rules = load_rules(rules_path)
        validate_ops_rules(rules, data_dir)
    except (ConfigError, ValueError, OSError) as e:
        logger.error("Cannot load rules from %s: %s", rules_path, e)
        sys.exit(1)
    db_path = str(data_dir / "marketplace.db")
    SQLiteMigrator(db_path).run_migrations()
    return ServiceContext.create(db_path, rules)


def handle_migrate(data_dir: Path) -> None:
    data_dir.mkdir(parents=True, exist_ok=True)
    applied = SQLiteMigrator(str(data_dir / "marketplace.db")).run_migrations()
    print(f"Applied {len(applied)} migration(s).")
    for name in applied:
        print(f"  {name}")


def handle_quota(ctx: ServiceContext, args: argparse.Namespace) -> None:
    try:
        vendor_id = UUID(args.vendor_id)
    except ValueError:
        logger.error("Not a vendor id: %s", args.vendor_id)
        sys.exit(1)

    snapshot = ctx.quota.get_snapshot(vendor_id)
    print(f"Vendor {vendor_id} as of {snapshot.as_of.isoformat()}")
    print(f"  plan: {snapshot.plan_id or '-'}  entitled: {snapshot.entitled}")
    for w in snapshot.windows:
        print(
            f"  {w.window:<7} {w.used}/{w.limit}  "
            f"remaining {w.remaining}  resets {w.resets_at.isoformat()}"
        )
    print(f"  top-up leads: {snapshot.top_up_remaining}")
    print(f"  can purchase: {snapshot.can_purchase}")


def handle_expiring(ctx: ServiceContext) -> None:
    summary = ctx.entitlements.expiration_summary()
    print(f"As of {summary.as_of.isoformat()}")
    print(f"  expiring within 7 days:  {summary.expiring_within_7_days}")
    print(f"  expiring within 30 days: {summary.expiring_within_30_days}")
    print(f"  active but expired:      {summary.active_but_expired}")


def handle_reminders(ctx: ServiceContext, args: argparse.Namespace) -> None:
    if not args.mark:
        due = ctx.entitlements.due_for_reminder()
        print(f"{len(due)} subscription(s) due for a renewal reminder.")
        for sub in due:
            print(f"  {sub.id} vendor={sub.vendor_id} ends={sub.end_date.isoformat()}")
        return

    sent = ctx.entitlements.send_renewal_reminders(DevNotifierAdapter())
    print(f"Sent {len(sent)} renewal reminder(s).")


def main(argv: Sequence[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Lead Marketplace CLI")
    parser.add_argument("--data-dir", default=DATA_DIR, help="Directory holding marketplace.db")
    parser.add_argument("--rules", default=RULES_PATH, help="Path to rules.yaml")
    subparsers = parser.add_subparsers(dest="command", required=True)

    # migrate
    subparsers.add_parser("migrate", help="Apply pending database migrations")

    # quota
    quota_parser = subparsers.add_parser("quota", help="Show a vendor's quota windows")
    quota_parser.add_argument("vendor_id", help="Vendor UUID")

    # expiring
    subparsers.add_parser("expiring", help="Summarise subscriptions nearing their end date")

    # reminders
    reminders_parser = subparsers.add_parser("reminders", help="List or send renewal reminders")
    reminders_parser.add_argument(
        "--mark", action="store_true", help="Send reminders and mark them as notified"
    )

    args = parser.parse_args(argv)
    data_dir = Path(args.data_dir)

    if args.command == "migrate":
        handle_migrate(data_dir)
        return

    ctx = get_context(data_dir, Path(args.rules))

    if args.command == "quota":
        handle_quota(ctx, args)
    elif args.command == "expiring":
        handle_expiring(ctx)
    elif args.command == "reminders":
        handle_reminders(ctx, args)


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    main()
