"""Command-line entry point: ``ports-monitor list`` and ``ports-monitor stop``."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import List, Optional, Sequence

from .config import ConfigurationError, MonitorConfig
from .exceptions import PortsMonitorError
from .formatting import format_ports_table, format_stop_summary, supports_color, to_json
from .logging_config import setup_logging
from .models import FilterCriteria
from .port_inventory import enumerate_ports, filter_ports
from .process_terminator import ProcessTerminator

logger = logging.getLogger(__name__)

NO_TARGETS_MESSAGE = "No matching live PID found for stop operation."


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ports-monitor",
        description="List open ports with their owning process and stop the owners.",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging on stderr")
    subparsers = parser.add_subparsers(dest="command")

    list_parser = subparsers.add_parser("list", help="List open ports")
    _add_filter_arguments(list_parser)
    list_parser.add_argument("--json", action="store_true", help="Emit JSON instead of a table")

    stop_parser = subparsers.add_parser("stop", help="Stop the process owning a port or pid")
    stop_parser.add_argument("--port", type=int, help="Target the owner(s) of this port")
    stop_parser.add_argument("--pid", type=int, help="Target this process id")
    stop_parser.add_argument("--protocol", choices=("tcp", "udp"), help="Restrict --port to one protocol")
    stop_parser.add_argument("--force", action="store_true", help="Kill immediately without a grace period")
    stop_parser.add_argument("--dry-run", action="store_true", help="Report what would be stopped")
    stop_parser.add_argument("--yes", action="store_true", help="Confirm the stop operation")
    stop_parser.add_argument("--json", action="store_true", help="Emit JSON results")
    return parser


def _add_filter_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--port", type=int)
    parser.add_argument("--pid", type=int)
    parser.add_argument("--process", dest="process_name", help="Case-insensitive substring of the process name")
    parser.add_argument("--protocol", choices=("tcp", "udp"))
    parser.add_argument("--state", help="Socket state, e.g. LISTEN")
    parser.add_argument("--address", help="Case-insensitive substring of the bound address")
    parser.add_argument("--query", help="Case-insensitive substring across all fields")


async def run_list(args: argparse.Namespace, config: MonitorConfig) -> int:
    records = await enumerate_ports(config)
    filtered = filter_ports(
        records,
        FilterCriteria(
            port=args.port,
            pid=args.pid,
            protocol=args.protocol,
            process_name=args.process_name,
            state=args.state,
            address=args.address,
            query=args.query,
        ),
    )

    if args.json:
        print(to_json(filtered))
    else:
        print(format_ports_table(filtered, color=supports_color(config, sys.stdout)))
    return 0


async def run_stop(
    args: argparse.Namespace, config: MonitorConfig, terminator: Optional[ProcessTerminator] = None
) -> int:
    if not args.pid and not args.port:
        raise PortsMonitorError("Stop requires --pid N or --port N")

    records = await enumerate_ports(config)
    candidates = filter_ports(records, FilterCriteria(pid=args.pid, port=args.port, protocol=args.protocol))
    pids = _unique_owner_pids(record.pid for record in candidates)

    if not pids:
        print(NO_TARGETS_MESSAGE)
        return 0

    if not args.yes and not args.dry_run:
        print(f"Refusing to stop {len(pids)} process(es) without --yes confirmation.")
        print("Add --yes to execute, or --dry-run --json to inspect targets.")
        return 0

    terminator = terminator if terminator is not None else ProcessTerminator(config)
    outcomes = await terminator.stop_processes(pids, force=args.force, dry_run=args.dry_run)

    if args.json:
        print(to_json(outcomes))
    else:
        print(format_stop_summary(outcomes))
    return 0 if all(outcome.success for outcome in outcomes) else 1


def _unique_owner_pids(pids) -> List[int]:
    unique: List[int] = []
    for pid in pids:
        if pid and pid not in unique:
            unique.append(pid)
    return unique


async def _dispatch(args: argparse.Namespace, config: MonitorConfig) -> int:
    if args.command == "stop":
        return await run_stop(args, config)
    return await run_list(args, config)


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    argv = list(sys.argv[1:] if argv is None else argv)
    args = parser.parse_args(argv)
    if args.command is None:
        args = parser.parse_args([*argv, "list"])

    setup_logging(verbose=args.verbose)

    try:
        config = MonitorConfig.from_env()
        return asyncio.run(_dispatch(args, config))
    except (PortsMonitorError, ConfigurationError) as exc:
        logger.debug("Command failed", exc_info=True)
        print(f"Error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
