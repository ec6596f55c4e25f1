"""Command line interface.

Usage:
    zusi-fahrplan-generator generate-fahrplan --config path/to/config.xml
    zusi-fahrplan-generator schedule apply --schedule a.schedule.xml --trn-files a.trn b.trn
    zusi-fahrplan-generator schedule generate --trn a.trn --schedule a.schedule.xml
"""
from __future__ import annotations

import argparse
import logging
import os
import sys
from collections.abc import Sequence
from pathlib import Path

from zusi_fpn.application.fahrplan_service import FahrplanService
from zusi_fpn.domain.exceptions import ZusiFpnError

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="zusi-fahrplan-generator",
        description="Generate Zusi 3 timetables from route, rolling stock and schedule templates.",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    generate = commands.add_parser("generate-fahrplan", help="generate a .fpn with all its trains")
    generate.add_argument("-c", "--config", type=Path, required=True, help="configuration file")

    schedule = commands.add_parser("schedule", help="apply or extract schedules")
    schedule_commands = schedule.add_subparsers(dest="schedule_command", required=True)

    apply = schedule_commands.add_parser("apply", help="re-time train files in place")
    apply.add_argument("-s", "--schedule", type=Path, required=True, help="schedule file")
    apply.add_argument(
        "-t", "--trn-files", type=Path, nargs="+", required=True, help="train files to update"
    )

    extract = schedule_commands.add_parser("generate", help="write the schedule of a train file")
    extract.add_argument("-t", "--trn", type=Path, required=True, help="train file to read")
    extract.add_argument("-s", "--schedule", type=Path, required=True, help="schedule file to write")
    return parser


def configure_logging() -> None:
    # Quiet by default so successful runs print nothing; LOG_LEVEL=INFO shows progress.
    level = os.environ.get("LOG_LEVEL", "WARNING").upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging()
    service = FahrplanService()

    try:
        if args.command == "generate-fahrplan":
            service.generate_fahrplan(args.config)
        elif args.schedule_command == "apply":
            for result in service.apply_schedule(args.schedule, args.trn_files):
                if result.error is not None:
                    print(f"{result.path}: {result.error}", file=sys.stderr)
        else:
            service.generate_schedule(args.trn, args.schedule)
    except ZusiFpnError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
