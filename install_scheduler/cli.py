"""Command-line interface for planning and booking installer jobs."""

from __future__ import annotations

import argparse
import json
import logging
from datetime import datetime
from typing import List, Tuple

from .config import SchedulingConfig, load_config
from .data_io import read_existing_assignments, read_slices, slices_to_frame, summarize_daily_load, write_slices
from .domain.db import DB_URL_ENV, init_database, session_scope
from .domain.models import Installer
from .domain.repositories import InstallerRepository
from .engine.planner import JobRequest, PlanResult, plan_job
from .exceptions import ConfigurationError, DuplicateJobError, FAILURE_KINDS, JobNotFoundError, RECOVERABLE_BY
from .log import configure_logging
from .services.booking import book_job, delete_job
from .services.conflicts import ExistingAssignments

# Malformed arguments, settings or input files
INPUT_ERRORS = (ConfigurationError, ValueError, OSError)
DB_HELP = f"Database URL (default: ${DB_URL_ENV} or sqlite:///install_scheduler.db)"


def _parse_installers(value: str) -> List[int]:
    return [int(x) for x in value.split(",") if x.strip()]


def _request_from_args(args: argparse.Namespace) -> JobRequest:
    return JobRequest.from_flags(
        requested_start=datetime.fromisoformat(args.start),
        total_man_hours=args.man_hours,
        installer_ids=_parse_installers(args.installers),
        override_core_hours=args.override_core_hours,
        override_daily_limit=args.override_daily_limit,
        override_availability=args.override_availability,
    )


def _config_from_args(args: argparse.Namespace) -> SchedulingConfig:
    if args.config:
        return load_config(args.config)
    return SchedulingConfig()


def _print_plan(result: PlanResult) -> None:
    shift = result.shift
    if shift.shifted:
        print(
            f"[INFO] Start moved from {shift.original_date} ({shift.reason}) to {shift.effective_date}"
        )
    if result.override_report.any:
        print(f"[INFO] Rule overrides: {', '.join(result.override_report.tags)}")

    if not result.ok:
        failure = result.validation.failure
        hint = ""
        error_cls = FAILURE_KINDS.get(failure.kind)
        if error_cls in RECOVERABLE_BY:
            hint = f" (bypass with the '{RECOVERABLE_BY[error_cls]}' override)"
        print(f"[ERROR] {failure.kind}: {failure.message}{hint}")
        return

    for s in result.slices:
        print(
            f"  {s.label:<12} {s.start:%a %Y-%m-%d %H:%M} -> {s.end:%H:%M}  "
            f"{s.duration_hours:.2f}h  remaining {s.remaining_man_hours:.2f} man-hours"
        )
    print(f"[OK] {len(result.slices)} slice(s) planned")


def _job_inputs(args: argparse.Namespace) -> Tuple[SchedulingConfig, JobRequest]:
    """Build config and request from the job arguments; raises on bad input."""
    return _config_from_args(args), _request_from_args(args)


def _input_error(e: Exception) -> int:
    print(f"[ERROR] Invalid input: {e}")
    return 1


def _cmd_plan(args: argparse.Namespace) -> int:
    """Plan a job without persisting it."""
    try:
        cfg, request = _job_inputs(args)
        existing = read_existing_assignments(args.existing) if args.existing else ExistingAssignments()
    except INPUT_ERRORS as e:
        return _input_error(e)

    result = plan_job(request, cfg, existing)
    if args.json:
        print(json.dumps(result.to_dict(), indent=2))
    else:
        _print_plan(result)

    if result.ok and args.out:
        write_slices(args.out, slices_to_frame(result.slices, request.installer_ids))
        print(f"[OK] Slices written to {args.out}")
    return 0 if result.ok else 1


def _cmd_init_db(args: argparse.Namespace) -> int:
    """Initialize the database."""
    url = init_database(args.db)
    print(f"[OK] Database initialized: {url}")
    return 0


def _cmd_add_installer(args: argparse.Namespace) -> int:
    """Register an installer."""
    with session_scope(args.db) as session:
        installer = InstallerRepository.create(session, Installer(name=args.name, email=args.email))
        print(f"[OK] Installer {installer.id} created: {installer.name}")
    return 0


def _cmd_book(args: argparse.Namespace) -> int:
    """Plan a job and persist it (create, or update with --schedule-id)."""
    try:
        cfg, request = _job_inputs(args)
    except INPUT_ERRORS as e:
        return _input_error(e)

    with session_scope(args.db) as session:
        try:
            result = book_job(
                session,
                request,
                cfg,
                job_number=args.job_number,
                title=args.title,
                description=args.description,
                address=args.address,
                schedule_id=args.schedule_id,
            )
        except (DuplicateJobError, JobNotFoundError, ValueError) as e:
            print(f"[ERROR] Booking failed: {e}")
            return 1

        _print_plan(result.plan)
        if result.ok:
            print(f"[OK] Job {args.job_number} saved as schedule {result.schedule.id}")
    return 0 if result.ok else 1


def _cmd_delete(args: argparse.Namespace) -> int:
    """Delete a booked job."""
    with session_scope(args.db) as session:
        try:
            delete_job(session, args.schedule_id)
        except JobNotFoundError as e:
            print(f"[ERROR] {e}")
            return 1
    print(f"[OK] Schedule {args.schedule_id} deleted")
    return 0


def _cmd_summarize(args: argparse.Namespace) -> int:
    """Summarize a slices CSV."""
    try:
        slices_df = read_slices(args.slices)
    except INPUT_ERRORS as e:
        return _input_error(e)
    print(summarize_daily_load(slices_df, daily_cap=args.daily_cap))
    return 0


def _add_job_arguments(p: argparse.ArgumentParser) -> None:
    p.add_argument("--config", help="Path to scheduling settings (JSON or YAML)")
    p.add_argument("--start", required=True, help="Requested start, ISO format (e.g. 2025-09-05T08:00)")
    p.add_argument("--man-hours", type=float, required=True, help="Total man-hours across all installers")
    p.add_argument("--installers", required=True, help="Comma-separated installer ids")
    p.add_argument("--override-core-hours", action="store_true", help="Allow work outside core hours")
    p.add_argument("--override-daily-limit", action="store_true", help="Bypass daily hour cap and overlap checks")
    p.add_argument("--override-availability", action="store_true", help="Bypass installer availability")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="install-scheduler",
        description="Plan and book on-site installation jobs against installer calendars",
    )
    parser.add_argument("--log-level", default="WARNING", help="Logging level (default: WARNING)")
    parser.add_argument("--log-file", help="Optional log file")

    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("plan", help="Plan a job's slices without saving")
    _add_job_arguments(p)
    p.add_argument("--existing", help="CSV of existing slices (schedule_id,installer_id,start,duration_hours)")
    p.add_argument("--out", help="Optional: write slices to CSV")
    p.add_argument("--json", action="store_true", help="Print the plan as JSON")
    p.set_defaults(func=_cmd_plan)

    init = sub.add_parser("init-db", help="Initialize database")
    init.add_argument("--db", help=DB_HELP)
    init.set_defaults(func=_cmd_init_db)

    inst = sub.add_parser("add-installer", help="Register an installer")
    inst.add_argument("--db", help=DB_HELP)
    inst.add_argument("--name", required=True)
    inst.add_argument("--email")
    inst.set_defaults(func=_cmd_add_installer)

    b = sub.add_parser("book", help="Plan a job and save it")
    _add_job_arguments(b)
    b.add_argument("--db", help=DB_HELP)
    b.add_argument("--job-number", required=True)
    b.add_argument("--title")
    b.add_argument("--description")
    b.add_argument("--address")
    b.add_argument("--schedule-id", type=int, help="Update this schedule instead of creating one")
    b.set_defaults(func=_cmd_book)

    d = sub.add_parser("delete", help="Delete a booked job")
    d.add_argument("--db", help=DB_HELP)
    d.add_argument("--schedule-id", type=int, required=True)
    d.set_defaults(func=_cmd_delete)

    s = sub.add_parser("summarize", help="Summarize a slices CSV")
    s.add_argument("--slices", required=True)
    s.add_argument("--daily-cap", type=float, default=8.0)
    s.set_defaults(func=_cmd_summarize)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(getattr(logging, str(args.log_level).upper(), logging.WARNING), args.log_file)
    return args.func(args)


if __name__ == "__main__":
    raise SystemExit(main())
