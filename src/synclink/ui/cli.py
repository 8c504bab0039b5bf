# ruff: noqa: T201

from __future__ import annotations

import argparse
import json
import logging
import sys
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from synclink.app import ENTITY_TYPES, check_heartbeats, fetch_entities, list_runs
from synclink.config import configure_logging
from synclink.domain.model.enums import DeferralPolicy, HydrationPolicy

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

log = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Fetch and serialize provider entities")
    subparsers = parser.add_subparsers(dest="command", required=True)

    get = subparsers.add_parser("get", help="Fetch entities and print them as JSON")
    get.add_argument("entity", choices=sorted(ENTITY_TYPES), help="Entity type to fetch")
    get.add_argument(
        "--id",
        dest="entity_id",
        type=str,
        help="Id or name of a single entity (lists all entities when omitted)",
    )
    get.add_argument(
        "--policy",
        choices=[policy.value for policy in DeferralPolicy],
        help="When deferred entities are resolved (defaults to config)",
    )
    get.add_argument(
        "--hydration",
        choices=[policy.value for policy in HydrationPolicy],
        help="How relationships are hydrated (defaults to config)",
    )
    get.add_argument(
        "--filter",
        dest="filters",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Filter passed to the list operation; may be repeated",
    )

    heartbeat = subparsers.add_parser("heartbeat", help="Check that providers are reachable")
    heartbeat.add_argument(
        "--ttl",
        type=int,
        help="Seconds a successful check is trusted for (defaults to config)",
    )

    runs = subparsers.add_parser("runs", help="Show recent runs")
    runs.add_argument(
        "--limit",
        type=int,
        default=10,
        help="Number of runs to show (default: %(default)s)",
    )

    return parser.parse_args(list(argv))


def _parse_filters(values: Sequence[str]) -> dict[str, str]:
    filters: dict[str, str] = {}
    for value in values:
        key, separator, filter_value = value.partition("=")
        if not separator or not key.strip():
            raise ValueError(f"Invalid filter (expected KEY=VALUE): {value}")
        filters[key.strip()] = filter_value.strip()
    return filters


def _validate(args: argparse.Namespace) -> dict[str, str]:
    if args.command == "get":
        if args.entity_id is not None and args.filters:
            raise ValueError("--id and --filter cannot be combined")
        return _parse_filters(args.filters)
    if args.command == "heartbeat" and args.ttl is not None and args.ttl < 0:
        raise ValueError("TTL must be non-negative")
    if args.command == "runs" and args.limit < 1:
        raise ValueError("Limit must be at least 1")
    return {}


def _print_json(payload: object) -> None:
    print(json.dumps(payload, indent=2, default=str))


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    configure_logging()
    parsed_args: argparse.Namespace
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    try:
        parsed_args = _parse_args(args_list)
        filters = _validate(parsed_args)
    except ValueError:
        log.exception("CLI validation error")
        sys.exit(2)

    try:
        if parsed_args.command == "get":
            entities = fetch_entities(
                parsed_args.entity,
                entity_id=parsed_args.entity_id,
                filters=filters,
                deferral_policy=DeferralPolicy(parsed_args.policy) if parsed_args.policy else None,
                hydration_policy=(
                    HydrationPolicy(parsed_args.hydration) if parsed_args.hydration else None
                ),
            )
            _print_json(entities[0] if parsed_args.entity_id is not None else entities)
        elif parsed_args.command == "heartbeat":
            checked = check_heartbeats(ttl=parsed_args.ttl)
            for description in checked:
                log.info("Backend reachable: %s", description)
        elif parsed_args.command == "runs":
            _print_json(
                [
                    {
                        "run_id": run.run_id,
                        "run_uuid": run.run_uuid,
                        "command": run.run_command,
                        "started_at": run.started_at,
                        "finished_at": run.finished_at,
                        "exit_status": run.exit_status,
                        "error_count": run.error_count,
                        "warning_count": run.warning_count,
                    }
                    for run in list_runs(parsed_args.limit)
                ]
            )
        else:
            raise ValueError(f"Unsupported command: {parsed_args.command}")  # noqa: TRY301

    except Exception:
        log.exception("Fatal error during sync")
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


if __name__ == "__main__":
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()
