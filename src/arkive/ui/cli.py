# ruff: noqa: T201

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from arkive.app import (
    delete_record,
    list_records,
    mark_notifications_read,
    preferences_store,
    pull_records,
    push_local_records,
    update_preferences,
    watch_records,
)
from arkive.config import ConfigurationError, configure_logging
from arkive.domain.model import (
    Activity,
    Client,
    Document,
    EntityType,
    Expense,
    Notification,
    Receipt,
)

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from arkive.config import Preferences
    from arkive.domain.model import Record
    from arkive.domain.reconciliation import Snapshot

log = logging.getLogger(__name__)

_ENTITY_CHOICES = [entity_type.value for entity_type in EntityType]
# the activity log is append-only
_DELETABLE_CHOICES = [choice for choice in _ENTITY_CHOICES if choice != EntityType.ACTIVITY]
_SWITCH_VALUES = {"on": True, "off": False}


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Reconcile Arkive records with the cloud")
    subparsers = parser.add_subparsers(dest="command", required=True)

    list_cmd = subparsers.add_parser("list", help="Print the local records of one entity type")
    list_cmd.add_argument("entity", choices=_ENTITY_CHOICES)

    watch = subparsers.add_parser("watch", help="Follow remote changes of one entity type")
    watch.add_argument("entity", choices=_ENTITY_CHOICES)
    watch.add_argument(
        "--seconds",
        type=float,
        help="Stop after this many seconds (default: run until interrupted)",
    )

    push = subparsers.add_parser("push", help="Upload local records to the cloud database")
    push.add_argument("entity", choices=_ENTITY_CHOICES)

    pull = subparsers.add_parser("pull", help="Print local records merged with the cloud copy")
    pull.add_argument("entity", choices=_ENTITY_CHOICES)

    delete = subparsers.add_parser("delete", help="Delete one local record and log the activity")
    delete.add_argument("entity", choices=_DELETABLE_CHOICES)
    delete.add_argument("record_id", help="Id of the record to delete")
    delete.add_argument("--user", default="cli", help="User id written to the activity log")
    delete.add_argument(
        "--remote", action="store_true", help="Also delete the copy in the cloud database"
    )

    notifications = subparsers.add_parser("notifications", help="Notification commands")
    notifications_sub = notifications.add_subparsers(dest="notifications_command", required=True)
    mark_read = notifications_sub.add_parser("mark-read", help="Mark notifications as read")
    target = mark_read.add_mutually_exclusive_group(required=True)
    target.add_argument("--id", dest="record_id", type=str, help="Notification id")
    target.add_argument("--all", action="store_true", help="Mark every notification as read")

    prefs = subparsers.add_parser("prefs", help="Interface preferences")
    prefs_sub = prefs.add_subparsers(dest="prefs_command", required=True)
    prefs_sub.add_parser("show", help="Print the stored preferences")
    prefs_set = prefs_sub.add_parser("set", help="Change preferences")
    prefs_set.add_argument("--dark-mode", choices=sorted(_SWITCH_VALUES))
    prefs_set.add_argument("--sidebar-collapsed", choices=sorted(_SWITCH_VALUES))

    args = parser.parse_args(list(argv))
    if args.command == "watch" and args.seconds is not None and args.seconds < 0:
        raise ValueError("--seconds must be non-negative")
    return args


def _preference_changes(args: argparse.Namespace) -> dict[str, bool]:
    changes: dict[str, bool] = {}
    if args.dark_mode is not None:
        changes["dark_mode"] = _SWITCH_VALUES[args.dark_mode]
    if args.sidebar_collapsed is not None:
        changes["sidebar_collapsed"] = _SWITCH_VALUES[args.sidebar_collapsed]
    if not changes:
        raise ValueError("Nothing to change: pass --dark-mode and/or --sidebar-collapsed")
    return changes


def describe_record(record: Record) -> str:
    """One display line per record: id, recency and the fields a reader scans for."""

    match record:
        case Client():
            label = f"{record.name} ({record.cnic}, {record.client_type})"
        case Receipt():
            label = f"{record.client_name} {record.amount:.2f} via {record.payment_method}"
        case Expense():
            label = f"{record.description} {record.amount:.2f} [{record.category}]"
        case Notification():
            label = f"{'read' if record.read else 'unread'} {record.level}: {record.message}"
        case Document():
            accesses = len(record.access_log)
            label = f"{record.file_name} for {record.client_cnic} ({accesses} accesses)"
        case Activity():
            label = f"{record.user_id} {record.action}: {record.details}"
        case _:
            label = ""
    return f"{record.id}  {record.recency.isoformat()}  {label}".rstrip()


def _describe_preferences(preferences: Preferences) -> str:
    return (
        f"dark_mode={'on' if preferences.dark_mode else 'off'} "
        f"sidebar_collapsed={'on' if preferences.sidebar_collapsed else 'off'}"
    )


def _log_snapshot(snapshot: Snapshot[Record]) -> None:
    if snapshot.is_loading:
        return
    newest = snapshot.records[0].id if snapshot.records else None
    log.info("Snapshot: %s records, newest=%s", len(snapshot), newest)


def _run_command(args: argparse.Namespace) -> None:
    if args.command == "list":
        for record in list_records(EntityType(args.entity)):
            print(describe_record(record))
    elif args.command == "watch":
        snapshot = asyncio.run(
            watch_records(EntityType(args.entity), seconds=args.seconds, on_snapshot=_log_snapshot)
        )
        log.info("Stopped watching %s with %s records", args.entity, len(snapshot))
    elif args.command == "push":
        result = asyncio.run(push_local_records(EntityType(args.entity)))
        if not result.ok:
            raise RuntimeError(f"Failed to push {len(result.failed)} {args.entity}")
    elif args.command == "pull":
        for record in asyncio.run(pull_records(EntityType(args.entity))):
            print(describe_record(record))
    elif args.command == "delete":
        asyncio.run(
            delete_record(
                EntityType(args.entity), args.record_id, user_id=args.user, remote=args.remote
            )
        )
        log.info("Deleted %s %s", args.entity, args.record_id)
    elif args.command == "notifications" and args.notifications_command == "mark-read":
        unread = mark_notifications_read(record_id=None if args.all else args.record_id)
        log.info("%s unread notifications left", unread)
    elif args.command == "prefs" and args.prefs_command == "show":
        print(_describe_preferences(preferences_store().current))
    elif args.command == "prefs" and args.prefs_command == "set":
        print(_describe_preferences(update_preferences(**_preference_changes(args))))
    else:
        raise ValueError(f"Unsupported command: {args.command}")


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    configure_logging()
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    try:
        parsed_args = _parse_args(args_list)
        if parsed_args.command == "prefs" and parsed_args.prefs_command == "set":
            _preference_changes(parsed_args)
    except ValueError:
        log.exception("CLI validation error")
        sys.exit(2)

    try:
        _run_command(parsed_args)
    except ConfigurationError:
        log.exception("Configuration error")
        sys.exit(2)
    except Exception:
        log.exception("Fatal error")
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
