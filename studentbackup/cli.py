from __future__ import annotations

import argparse
import asyncio
import json
import os
import sys
from pathlib import Path
from typing import Sequence

import uvicorn

from studentbackup.backup.log_listener import attach_backup_logging
from studentbackup.backup.scheduler import BackupScheduler, BackupStalledError
from studentbackup.core.config import Settings, get_settings
from studentbackup.core.events import EventChannel
from studentbackup.core.logging import configure_logging, get_logger
from studentbackup.reports.service import BackupReporter, format_report, report_to_dict
from studentbackup.students.log_listener import attach_student_logging
from studentbackup.students.registry import StudentRegistry, default_students


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="studentbackup", description="Periodic student snapshots and reports")
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument("--verbose", action="store_true", help="Log debug output")
    verbosity.add_argument("--quiet", action="store_true", help="Only log errors")
    parser.add_argument("--backup-dir", type=Path, default=None, help="Snapshot directory")

    subparsers = parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser("run", help="Run the backup scheduler for a fixed duration")
    run_parser.add_argument("--interval-ms", type=int, default=None, help="Tick period in milliseconds")
    run_parser.add_argument("--duration", type=float, default=5.0, help="Seconds to keep the scheduler running")
    run_parser.add_argument("--students", type=Path, default=None, help="JSON file with the students to back up")

    report_parser = subparsers.add_parser("report", help="Print the aggregate backup report")
    report_parser.add_argument("--json", action="store_true", help="Print the report as JSON")

    serve_parser = subparsers.add_parser("serve", help="Serve the backup HTTP API")
    serve_parser.add_argument("--host", default=None)
    serve_parser.add_argument("--port", type=int, default=None)

    return parser.parse_args(argv)


def resolve_log_level(args: argparse.Namespace, settings: Settings) -> str:
    if args.verbose:
        return "DEBUG"
    if args.quiet:
        return "ERROR"
    return settings.log_level


async def run_scheduler(
    scheduler: BackupScheduler,
    registry: StudentRegistry,
    *,
    interval_ms: int,
    duration_seconds: float,
) -> bool:
    scheduler.start(registry.get_all_students, interval_ms)
    try:
        await asyncio.wait_for(scheduler.wait(), timeout=duration_seconds)
    except asyncio.TimeoutError:
        scheduler.stop()
        stalled = False
    except BackupStalledError:
        stalled = True
    else:
        stalled = False
    await scheduler.wait_for_pending()
    return not stalled


def command_run(args: argparse.Namespace, settings: Settings, backup_dir: Path) -> int:
    events = EventChannel(logger=get_logger("events"))
    attach_backup_logging(events, get_logger("backup"))
    attach_student_logging(events, get_logger("students"))

    registry = StudentRegistry(events=events, students=default_students() if settings.seed_students else [])
    students_file = args.students or settings.students_file
    if students_file is not None:
        try:
            loaded = registry.load_from_json(students_file)
        except ValueError as exc:
            get_logger("cli").error("Invalid student file %s: %s", students_file, exc)
            return 2
        if loaded is None:
            get_logger("cli").error("Student file not found: %s", students_file)
            return 2

    scheduler = BackupScheduler(backup_dir, events=events, max_consecutive_skips=settings.backup_max_consecutive_skips)
    ok = asyncio.run(
        run_scheduler(
            scheduler,
            registry,
            interval_ms=args.interval_ms or settings.backup_interval_ms,
            duration_seconds=args.duration,
        )
    )
    return 0 if ok else 1


def command_report(args: argparse.Namespace, settings: Settings, backup_dir: Path) -> int:
    reporter = BackupReporter(backup_dir, display_timezone=settings.report_tzinfo, logger=get_logger("reports"))
    report = reporter.generate_report()
    if args.json:
        print(json.dumps(report_to_dict(report), indent=2))
    else:
        print(format_report(report))
    return 0


def serve_settings(settings: Settings, backup_dir: Path, log_level: str) -> Settings:
    # The app factory reads its own settings, so CLI overrides travel through the environment.
    overrides = {}
    if backup_dir != settings.backup_dir:
        overrides["STUDENTBACKUP_BACKUP_DIR"] = backup_dir.as_posix()
    if log_level != settings.log_level:
        overrides["STUDENTBACKUP_LOG_LEVEL"] = log_level
    if not overrides:
        return settings
    os.environ.update(overrides)
    get_settings.cache_clear()
    return get_settings()


def command_serve(args: argparse.Namespace, settings: Settings, backup_dir: Path, log_level: str) -> int:
    settings = serve_settings(settings, backup_dir, log_level)
    uvicorn.run(
        "studentbackup.api.app:create_app",
        factory=True,
        host=args.host or settings.api_host,
        port=args.port or settings.api_port,
        log_level=settings.log_level.lower(),
    )
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    settings = get_settings()
    log_level = resolve_log_level(args, settings)
    configure_logging(log_level)
    backup_dir = args.backup_dir.resolve() if args.backup_dir is not None else settings.backup_dir

    if args.command == "run":
        return command_run(args, settings, backup_dir)
    if args.command == "report":
        return command_report(args, settings, backup_dir)
    return command_serve(args, settings, backup_dir, log_level)


if __name__ == "__main__":
    sys.exit(main())
