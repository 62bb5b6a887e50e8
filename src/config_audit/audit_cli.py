#!/usr/bin/env python3
"""
CLI for inspecting and maintaining the configuration audit directory.

Usage:
    config-audit list roles
    config-audit diff roles 1 2
    config-audit timemachine flows [--limit 5] [--start-time 2024-03-01T00:00:00Z]
    config-audit import-diffs roles
    config-audit validate roles
    config-audit integrity-check [--types flows roles]
    config-audit prune [roles] [--retention-days 30] [--dry-run]
    config-audit log [--type roles] [--operation import] [--limit 20] [--json]
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

from .audit.history import HistoryPrinter
from .audit.manager import AuditManager
from .config.config_loader import AuditConfig
from .core.exceptions import AuditConfigError, AuditError
from .core.logging import configure_logging
from .core.timestamps import parse_iso_datetime


def _load_dotenv_if_present() -> None:
    """
    Load .env from the working directory.

    Existing shell environment variables take precedence.
    """
    env_path = Path.cwd() / ".env"
    if env_path.exists():
        load_dotenv(env_path, override=False)


def setup_logging(verbose: bool = False, structured: bool = False) -> None:
    """Configure logging."""
    configure_logging(level=logging.DEBUG if verbose else logging.WARNING, structured=structured)


def build_manager(args) -> AuditManager:
    """Resolve configuration from arguments and environment."""
    config = AuditConfig.load(
        audit_dir=Path(args.audit_dir) if args.audit_dir else None,
        config_path=Path(args.config) if args.config else None,
        retention_days=getattr(args, "retention_days", None),
    )
    return AuditManager(config=config)


def cmd_list(args, manager: AuditManager, printer: HistoryPrinter) -> int:
    """List all snapshots for a config type."""
    snapshots = manager.get_snapshots(args.type)
    if not snapshots:
        print(f"No snapshots found for type: {args.type}")
        return 0

    print(f"Snapshots for {args.type}:")
    for idx, snap in enumerate(snapshots, 1):
        print(f"{idx}. {snap.id}")
    return 0


def cmd_diff(args, manager: AuditManager, printer: HistoryPrinter) -> int:
    """Diff two snapshots chosen by their 1-based index in 'list'."""
    logger = logging.getLogger(__name__)

    snapshots = manager.get_snapshots(args.type)
    indices = (args.idx1 - 1, args.idx2 - 1)
    if any(i < 0 or i >= len(snapshots) for i in indices):
        logger.error("Invalid snapshot indices.")
        print("Invalid snapshot indices.", file=sys.stderr)
        return 1

    report = manager.diff_snapshots(snapshots[indices[0]].path, snapshots[indices[1]].path)
    printer.print_diff(report)
    return 0


def cmd_timemachine(args, manager: AuditManager, printer: HistoryPrinter) -> int:
    """Show diffs between consecutive regular snapshots."""
    start_time = None
    if args.start_time:
        try:
            start_time = parse_iso_datetime(args.start_time)
        except ValueError:
            print(f"Invalid --start-time: {args.start_time}", file=sys.stderr)
            return 1

    report = manager.time_machine(args.type, limit=args.limit, start_time=start_time)
    printer.print_time_machine(report)
    return 0


def cmd_import_diffs(args, manager: AuditManager, printer: HistoryPrinter) -> int:
    """Show the latest import diff set (preview vs actual)."""
    printer.print_import_diff(manager.latest_import_diff(args.type))
    return 0


def _print_summary_checks(summary) -> None:
    for check in summary.checks:
        if not check.is_valid:
            print(f"INVALID  {check.id} - {'; '.join(check.issues)}")
        elif check.legacy:
            print(f"LEGACY   {check.id} - Legacy format (no metadata)")
        else:
            print(f"VALID    {check.id}")


def cmd_validate(args, manager: AuditManager, printer: HistoryPrinter) -> int:
    """Validate snapshot consistency and integrity for a config type."""
    summary = manager.validate(args.type)
    if summary.total == 0:
        print(f"No snapshots found for type: {args.type}")
        return 0

    print(f"Validating {summary.total} snapshots for {args.type}...")
    _print_summary_checks(summary)
    print("\nValidation Summary:")
    print(f"   Valid snapshots: {summary.valid_count}")
    print(f"   Invalid snapshots: {summary.invalid_count}")
    print(f"   Total snapshots: {summary.total}")
    return 1 if summary.invalid_count else 0


def cmd_integrity_check(args, manager: AuditManager, printer: HistoryPrinter) -> int:
    """Validate snapshots across several config types."""
    results = manager.integrity_check(args.types)

    total_valid = 0
    total_invalid = 0
    print("Performing integrity check...")
    for item_type, summary in results.items():
        if summary.total == 0:
            print(f"   {item_type}: No snapshots")
            continue
        state = "FAIL" if summary.invalid_count else "OK"
        print(f"   [{state}] {item_type}: {summary.valid_count} valid, {summary.invalid_count} invalid")
        total_valid += summary.valid_count
        total_invalid += summary.invalid_count

    print("\nOverall Integrity Status:")
    print(f"   Total valid snapshots: {total_valid}")
    print(f"   Total invalid snapshots: {total_invalid}")
    return 1 if total_invalid else 0


def cmd_prune(args, manager: AuditManager, printer: HistoryPrinter) -> int:
    """Apply the retention policy now."""
    if args.dry_run:
        item_types = [args.type] if args.type else manager.store.list_item_types()
        for item_type in item_types:
            plan = manager.plan_prune(item_type, retention_days=args.retention_days)
            for info in plan.files_to_delete:
                print(f"would delete {item_type}/{info.id}")
        return 0

    removed = manager.prune(args.type, retention_days=args.retention_days)
    print(f"Removed {removed} snapshot file(s).")
    return 0


def cmd_log(args, manager: AuditManager, printer: HistoryPrinter) -> int:
    """Show audit log entries, oldest first."""
    entries = manager.read_log(item_type=args.type, operation=args.operation, limit=args.limit)
    if args.json:
        for entry in entries:
            print(json.dumps(entry.to_dict(), ensure_ascii=False))
        return 0

    if not entries:
        print("No audit entries found.")
        return 0

    for entry in entries:
        line = f"{entry.timestamp}  {entry.operation:<6}  {entry.status:<7}  {entry.item_type}  {entry.manager}"
        if entry.message:
            line += f"  - {entry.message}"
        print(line)
    return 0


COMMANDS = {
    "list": cmd_list,
    "diff": cmd_diff,
    "timemachine": cmd_timemachine,
    "import-diffs": cmd_import_diffs,
    "validate": cmd_validate,
    "integrity-check": cmd_integrity_check,
    "prune": cmd_prune,
    "log": cmd_log,
}


def _non_negative(value: str) -> int:
    number = int(value)
    if number < 0:
        raise argparse.ArgumentTypeError("must be a non-negative integer")
    return number


def parse_args(argv: Optional[List[str]] = None):
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Configuration audit & snapshot CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose/debug logging")
    parser.add_argument("--json-logs", action="store_true", help="Emit structured JSON logs")
    parser.add_argument("--audit-dir", help="Audit directory (default: $DCT_AUDIT_PATH)")
    parser.add_argument("--config", help="YAML config file (default: $DCT_AUDIT_CONFIG)")
    parser.add_argument("--no-color", action="store_true", help="Disable colored output")

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    list_parser = subparsers.add_parser("list", help="List all snapshots for a config type")
    list_parser.add_argument("type", help="Config type (e.g., roles)")

    diff_parser = subparsers.add_parser("diff", help="Diff two snapshots by index (see 'list')")
    diff_parser.add_argument("type", help="Config type")
    diff_parser.add_argument("idx1", type=int, help="1-based index of the first snapshot")
    diff_parser.add_argument("idx2", type=int, help="1-based index of the second snapshot")

    tm_parser = subparsers.add_parser("timemachine", help="Diff consecutive regular snapshots")
    tm_parser.add_argument("type", help="Config type")
    tm_parser.add_argument("--limit", type=_non_negative, default=5, help="Only the last N diffs (0 = all)")
    tm_parser.add_argument("--start-time", help="Only snapshots at/after this ISO date/time")

    import_parser = subparsers.add_parser("import-diffs", help="Show latest import diff (preview vs actual)")
    import_parser.add_argument("type", help="Config type")

    validate_parser = subparsers.add_parser("validate", help="Validate snapshots of a config type")
    validate_parser.add_argument("type", help="Config type")

    integrity_parser = subparsers.add_parser("integrity-check", help="Validate snapshots across config types")
    integrity_parser.add_argument("--types", nargs="+", help="Config types (default: standard set)")

    prune_parser = subparsers.add_parser("prune", help="Apply the snapshot retention policy")
    prune_parser.add_argument("type", nargs="?", help="Config type (default: all)")
    prune_parser.add_argument("--retention-days", type=_non_negative, help="Override retention period")
    prune_parser.add_argument("--dry-run", action="store_true", help="Report without deleting")

    log_parser = subparsers.add_parser("log", help="Show audit log entries")
    log_parser.add_argument("--type", help="Only entries for this config type")
    log_parser.add_argument("--operation", choices=["import", "export"], help="Only this operation")
    log_parser.add_argument("--limit", type=_non_negative, help="Only the last N entries")
    log_parser.add_argument("--json", action="store_true", help="Output raw NDJSON entries")

    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    _load_dotenv_if_present()
    args = parse_args(argv)

    setup_logging(verbose=args.verbose, structured=args.json_logs)
    logger = logging.getLogger(__name__)

    handler = COMMANDS.get(args.command)
    if handler is None:
        print("No command specified. Use --help for usage.", file=sys.stderr)
        return 1

    try:
        manager = build_manager(args)
    except AuditConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1

    try:
        return handler(args, manager, HistoryPrinter(no_color=args.no_color))
    except AuditError as e:
        logger.error(f"{args.command} failed: {e}")
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
