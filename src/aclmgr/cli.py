"""Command-line entry point for aclmgr."""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Sequence

from aclmgr.config import Config, configure_logging, settle_seconds
from aclmgr.coordinator import ToggleCoordinator
from aclmgr.sink import MemoryCommandSink

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="aclmgr",
        description="Suspend or resume the Android Compatibility Layer.",
    )
    parser.add_argument(
        "command",
        nargs="?",
        default="ui",
        choices=["ui", "status", "stop", "start", "list"],
        help="what to do (default: ui)",
    )
    parser.add_argument("--control-file", help="control file watched by the helper daemon")
    parser.add_argument("--proc-root", help="process table root (default: live /proc)")
    parser.add_argument(
        "--settle-interval",
        type=float,
        help="seconds to wait for the daemon after each request",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="do not write the control file",
    )
    parser.add_argument("--log-level", help="logging level (default: WARNING)")
    return parser


def config_from_args(args: argparse.Namespace) -> Config:
    """Environment defaults overridden by command-line flags."""
    config = Config.from_env()
    if args.control_file:
        config.control_file = args.control_file
    if args.proc_root:
        config.proc_root = args.proc_root
    if args.settle_interval is not None:
        config.settle_interval = settle_seconds(args.settle_interval)
    if args.log_level:
        config.log_level = args.log_level.upper()
    return config


def main(argv: Sequence[str] | None = None) -> int:
    """Run aclmgr. Returns the process exit code."""
    args = build_parser().parse_args(argv)
    config = config_from_args(args)
    configure_logging(config.log_level)

    sink = MemoryCommandSink() if args.dry_run else None
    coordinator = ToggleCoordinator.from_config(config, sink=sink)

    if args.command == "ui":
        from aclmgr.app import AclManagerApp

        AclManagerApp(coordinator).run()
        return 0

    if args.command == "list":
        for record in sorted(coordinator.scanner.scan(), key=lambda r: r.pid):
            print(f"{record.pid:>7} {record.state.value:<8} {record.command_line}")
        return 0

    if args.command == "stop":
        status = coordinator.request_stop()
    elif args.command == "start":
        status = coordinator.request_start()
    else:
        status = coordinator.refresh()
    print(status.message)
    return 0


if __name__ == "__main__":
    sys.exit(main())
