"""Administrative command line for a lock namespace."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from collections.abc import Sequence
from typing import NoReturn

import argcomplete
from dotenv import find_dotenv, load_dotenv

from ci_locks.core.config import LockConfig
from ci_locks.core.constants import LOG_FORMAT_CHOICES, NAMING_CHOICES, VALID_LOG_LEVELS
from ci_locks.core.exceptions import CILockError
from ci_locks.core.logging import setup_logging
from ci_locks.core.version import __version__
from ci_locks.locks.manager import LockManager
from ci_locks.locks.resources import ConfigurationItem

EXIT_OK = 0
EXIT_NEGATIVE = 1  # Not locked / could not lock
EXIT_FATAL = 2

logger = logging.getLogger(__name__)

EPILOG = """
Examples:
  # Show what is locked
  ci-locks list --details

  # Lock two resources atomically, then release them
  ci-locks lock Infrastructure/app/db Infrastructure/app/web
  ci-locks unlock Infrastructure/app/db Infrastructure/app/web

  # Force-release everything (no ownership check)
  ci-locks clear --yes
"""


def _exit_error(msg: str) -> NoReturn:
    """Print an error message to stderr and exit with the fatal status."""
    print(f"ERROR: {msg}", file=sys.stderr)
    sys.exit(EXIT_FATAL)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ci-locks",
        description="Inspect and manage advisory locks on configuration items",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=EPILOG,
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--lock-dir",
        metavar="PATH",
        help="Lock namespace directory (default: $CI_LOCKS_DIR or ./locks)",
    )
    parser.add_argument(
        "--naming",
        choices=NAMING_CHOICES,
        help="Lock file naming scheme (default: $CI_LOCKS_NAMING or percent)",
    )
    parser.add_argument(
        "--log-level",
        choices=VALID_LOG_LEVELS,
        type=str.upper,
        help="Logging level (default: $LOG_LEVEL or INFO)",
    )
    parser.add_argument("--log-format", choices=LOG_FORMAT_CHOICES, default="text", help="Log output format")
    parser.add_argument("--log-file", metavar="PATH", help="Also write logs to a rotating file")

    subparsers = parser.add_subparsers(dest="command", required=True, metavar="COMMAND")

    list_parser = subparsers.add_parser("list", help="List locked resource ids")
    list_parser.add_argument("--details", action="store_true", help="Include lock file path and note")
    list_parser.add_argument("--json", action="store_true", dest="as_json", help="Print JSON")

    check_parser = subparsers.add_parser("check", help="Exit 0 if the resource is locked, 1 otherwise")
    check_parser.add_argument("resource_id")

    lock_parser = subparsers.add_parser("lock", help="Lock all given resources or none of them")
    lock_parser.add_argument("resource_ids", nargs="+", metavar="resource_id")
    lock_parser.add_argument("--name", help="Display name recorded in the lock note (single resource only)")

    unlock_parser = subparsers.add_parser("unlock", help="Release the given resources")
    unlock_parser.add_argument("resource_ids", nargs="+", metavar="resource_id")

    clear_parser = subparsers.add_parser("clear", help="Delete every lock in the namespace")
    clear_parser.add_argument("--yes", action="store_true", help="Confirm clearing all locks")

    argcomplete.autocomplete(parser)
    return parser


def _cmd_list(manager: LockManager, args: argparse.Namespace) -> int:
    if args.details:
        records = manager.list_lock_details()
        if args.as_json:
            payload = [
                {"resource_id": r.resource_id, "lock_file": str(r.lock_path), "note": r.note} for r in records
            ]
            print(json.dumps(payload, indent=2))
        else:
            for record in records:
                print(f"{record.resource_id}\t{record.note or ''}")
        return EXIT_OK

    resource_ids = manager.list_locks()
    if args.as_json:
        print(json.dumps(resource_ids, indent=2))
    else:
        for resource_id in resource_ids:
            print(resource_id)
    return EXIT_OK


def _cmd_check(manager: LockManager, args: argparse.Namespace) -> int:
    if manager.is_locked(args.resource_id):
        print(f"{args.resource_id} is locked")
        return EXIT_OK
    print(f"{args.resource_id} is not locked")
    return EXIT_NEGATIVE


def _cmd_lock(manager: LockManager, args: argparse.Namespace) -> int:
    if args.name and len(args.resource_ids) > 1:
        _exit_error("--name can only be used with a single resource")
    resources = [ConfigurationItem(id=resource_id, name=args.name or "") for resource_id in args.resource_ids]
    if manager.atomically_lock(resources):
        print(f"Locked {len(resources)} resource(s)")
        return EXIT_OK
    print("Could not lock all resources; nothing was locked", file=sys.stderr)
    return EXIT_NEGATIVE


def _cmd_unlock(manager: LockManager, args: argparse.Namespace) -> int:
    manager.unlock_all(args.resource_ids)
    print(f"Unlocked {len(args.resource_ids)} resource(s)")
    return EXIT_OK


def _cmd_clear(manager: LockManager, args: argparse.Namespace) -> int:
    if not args.yes:
        _exit_error("clear removes every lock in the namespace; pass --yes to confirm")
    count = manager.clear_locks()
    print(f"Cleared {count} lock(s)")
    return EXIT_OK


_COMMANDS = {
    "list": _cmd_list,
    "check": _cmd_check,
    "lock": _cmd_lock,
    "unlock": _cmd_unlock,
    "clear": _cmd_clear,
}


def main(argv: Sequence[str] | None = None) -> int:
    """Run the command line and return the exit status."""
    load_dotenv(find_dotenv(usecwd=True))
    args = build_parser().parse_args(argv)
    config = LockConfig.from_args(args)
    setup_logging(
        log_level=config.log.level,
        log_format=config.log.log_format,
        log_file=config.log.log_file,
        file_max_bytes=config.log.file_max_bytes,
        file_backup_count=config.log.file_backup_count,
    )

    manager = LockManager.from_config(config)
    logger.debug("Running %s against %s", args.command, manager.lock_dir)
    try:
        return _COMMANDS[args.command](manager, args)
    except CILockError as e:
        logger.debug("%s failed", args.command, exc_info=True)
        print(f"ERROR: {e}", file=sys.stderr)
        return EXIT_FATAL


def run() -> NoReturn:
    """Console script entry point."""
    sys.exit(main())
