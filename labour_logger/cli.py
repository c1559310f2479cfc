from __future__ import annotations
import argparse
import json
import sys
from datetime import date
from pathlib import Path
from uuid import uuid4

from labour_reports.exporter import EXPORTERS

from .core.config import get_settings
from .core.logging import configure_logging
from .core.monitoring import configure_error_monitoring
from .csv_io import import_projects
from .exceptions import LabourLoggerError, ValidationError
from .kiosk import clock_in, clock_out
from .models import Employee, EntryStatus, Project
from .overtime import OvertimeScope
from .seed import seed_store
from .session import LoggerSession
from .time_tracking import compute_duration, pending_entries, update_settings
from .views import format_entries, format_totals, format_weekly_report


def session_from_args(args: argparse.Namespace) -> LoggerSession:
    settings = get_settings()
    if args.data:
        settings = settings.model_copy(update={"data_path": Path(args.data)})
    scope = getattr(args, "scope", None) or OvertimeScope.VISIBLE
    return LoggerSession.from_settings(settings, scope=OvertimeScope(scope))


def parse_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise ValidationError(f"Invalid date {value!r} (expected YYYY-MM-DD)") from None


def resolve_project_id(session: LoggerSession, value: str | None) -> str | None:
    if not value:
        return None
    if value in session.store.projects:
        return value
    project = session.store.find_project_by_code(value)
    if not project:
        raise ValidationError(f"Unknown project {value}")
    return project.id


def resolve_employee_id(session: LoggerSession, value: str | None) -> str | None:
    if not value or value in session.store.employees:
        return value
    employee = session.store.find_employee_by_identifier(value)
    return employee.id if employee else value


def apply_filters(session: LoggerSession, args: argparse.Namespace) -> None:
    session.with_filters(
        project_id=resolve_project_id(session, args.project),
        date_from=parse_date(args.date_from) if args.date_from else None,
        date_to=parse_date(args.date_to) if args.date_to else None,
        search=args.search or "",
    )


def cmd_seed(args: argparse.Namespace) -> None:
    session = session_from_args(args)
    added = seed_store(session.store)
    print(f"Seeded {added} records into {session.store.path}")


def cmd_add_employee(args: argparse.Namespace) -> None:
    session = session_from_args(args)
    employee = Employee(id=args.id or str(uuid4()), name=args.name.strip(), badge=args.badge, pin=args.pin)
    session.store.add_employee(employee)
    session.store.save()
    print(f"Added employee {employee.id} ({employee.name})")


def cmd_list_employees(args: argparse.Namespace) -> None:
    session = session_from_args(args)
    for employee in session.store.list_employees():
        print(f"{employee.id} {employee.name} badge: {employee.badge or '-'}")


def cmd_add_project(args: argparse.Namespace) -> None:
    session = session_from_args(args)
    project = Project(id=args.id or str(uuid4()), code=args.code.strip(), name=args.name.strip())
    session.store.add_project(project)
    session.store.save()
    print(f"Added project {project.code} ({project.name})")


def cmd_list_projects(args: argparse.Namespace) -> None:
    session = session_from_args(args)
    for project in session.store.list_projects():
        print(f"{project.id} {project.code} {project.name}")


def cmd_import_projects(args: argparse.Namespace) -> None:
    session = session_from_args(args)
    summary = import_projects(session.store, Path(args.path))
    print(summary.describe())


def cmd_preview(args: argparse.Namespace) -> None:
    session = session_from_args(args)
    increment = args.increment or session.store.settings.rounding_increment
    preview = compute_duration(args.start, args.end, args.break_minutes, increment, args.hours)
    print(f"Raw minutes: {preview.raw_minutes}")
    print(f"Rounded minutes: {preview.rounded_minutes} (increment {increment})")
    print(f"Hours: {preview.hours:.2f}")


def cmd_log_time(args: argparse.Namespace) -> None:
    session = session_from_args(args)
    entry = session.log_time(
        employee_id=resolve_employee_id(session, args.employee),
        project_id=resolve_project_id(session, args.project),
        day=parse_date(args.date),
        start=args.start,
        end=args.end,
        break_minutes=args.break_minutes,
        work_type=args.work_type,
        notes=args.notes,
        manual_hours=args.hours,
        entry_id=args.id,
    )
    print(f"Created time entry {entry.id} for {entry.hours:.2f} hours on {entry.date}")


def cmd_entries(args: argparse.Namespace) -> None:
    session = session_from_args(args)
    apply_filters(session, args)
    entries = session.visible_entries()
    print(format_entries(entries, session.allocations(entries), session.store.employees, session.store.projects))


def cmd_totals(args: argparse.Namespace) -> None:
    session = session_from_args(args)
    apply_filters(session, args)
    print(format_totals(session.totals()))


def cmd_weekly_report(args: argparse.Namespace) -> None:
    session = session_from_args(args)
    print(format_weekly_report(session.weekly_report(args.week)))


def cmd_set_status(args: argparse.Namespace) -> None:
    session = session_from_args(args)
    session.set_status(args.id, EntryStatus(args.status))
    print(session.status)


def cmd_approve_week(args: argparse.Namespace) -> None:
    session = session_from_args(args)
    session.approve_week(args.week)
    print(session.status)


def cmd_reject_week(args: argparse.Namespace) -> None:
    session = session_from_args(args)
    session.reject_week(args.week)
    print(session.status)


def cmd_delete(args: argparse.Namespace) -> None:
    session = session_from_args(args)
    session.delete_entry(args.id)
    print(session.status)


def cmd_pending(args: argparse.Namespace) -> None:
    session = session_from_args(args)
    employee_id = resolve_employee_id(session, args.employee)
    for entry in pending_entries(session.store, employee_id):
        print(f"{entry.id} {entry.employee_id} {entry.date} {entry.hours:.2f}h project={entry.project_id}")


def cmd_settings(args: argparse.Namespace) -> None:
    session = session_from_args(args)
    if args.rounding is not None or args.threshold is not None:
        update_settings(session.store, rounding_increment=args.rounding, daily_overtime_threshold=args.threshold)
    if args.api_base:
        session.set_api_base(args.api_base)
    settings = session.store.settings
    print(f"Rounding increment: {settings.rounding_increment} min")
    print(f"Daily overtime threshold: {settings.daily_overtime_threshold:g} h")
    print(f"API base: {session.store.api_base}")


def cmd_export(args: argparse.Namespace) -> int:
    session = session_from_args(args)
    apply_filters(session, args)
    title = args.title or get_settings().app_name
    path = session.export(args.format, Path(args.path), title=title)
    print(session.status)
    return 0 if path is not None else 1


def cmd_clock_in(args: argparse.Namespace) -> None:
    session = session_from_args(args)
    shift = clock_in(session.store, args.identifier, resolve_project_id(session, args.project))
    employee = session.store.employees[shift.employee_id]
    print(f"{employee.name} clocked in at {shift.started_at:%H:%M}")


def cmd_clock_out(args: argparse.Namespace) -> None:
    session = session_from_args(args)
    entry = clock_out(session.store, args.identifier, break_minutes=args.break_minutes, notes=args.notes)
    print(f"Clocked out: {entry.start}-{entry.end}, {entry.hours:.2f} hours logged")


def cmd_health(args: argparse.Namespace) -> int:
    session = session_from_args(args)
    payload = session.check_health()
    print(session.status if payload is None else json.dumps(payload, indent=2))
    return 0 if payload is not None else 1


def cmd_login(args: argparse.Namespace) -> int:
    session = session_from_args(args)
    ok = session.login(args.username, args.password)
    print(session.status)
    return 0 if ok else 1


def cmd_push(args: argparse.Namespace) -> int:
    session = session_from_args(args)
    ok = session.push_entries()
    print(session.status)
    return 0 if ok else 1


def cmd_pull(args: argparse.Namespace) -> int:
    session = session_from_args(args)
    ok = session.pull_entries()
    print(session.status)
    return 0 if ok else 1


def add_filter_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--project", help="Project id or code")
    parser.add_argument("--from", dest="date_from", help="First date (YYYY-MM-DD)")
    parser.add_argument("--to", dest="date_to", help="Last date (YYYY-MM-DD)")
    parser.add_argument("--search", help="Case-insensitive text search")
    parser.add_argument(
        "--scope",
        choices=[scope.value for scope in OvertimeScope],
        default=OvertimeScope.VISIBLE.value,
        help="Count only visible entries toward daily overtime, or the whole day",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Factory labour time logger")
    parser.add_argument("--data", help="Path to the local state file")
    sub = parser.add_subparsers(dest="command", required=True)

    seed = sub.add_parser("seed", help="Add demo employees and projects")
    seed.set_defaults(func=cmd_seed)

    employee = sub.add_parser("add-employee", help="Quick-add an employee")
    employee.add_argument("name")
    employee.add_argument("--id")
    employee.add_argument("--badge")
    employee.add_argument("--pin")
    employee.set_defaults(func=cmd_add_employee)

    list_employees = sub.add_parser("list-employees", help="List employees")
    list_employees.set_defaults(func=cmd_list_employees)

    project = sub.add_parser("add-project", help="Quick-add a project")
    project.add_argument("code")
    project.add_argument("name")
    project.add_argument("--id")
    project.set_defaults(func=cmd_add_project)

    list_projects = sub.add_parser("list-projects", help="List projects")
    list_projects.set_defaults(func=cmd_list_projects)

    imp = sub.add_parser("import-projects", help="Import projects from a CSV with code,name columns")
    imp.add_argument("path")
    imp.set_defaults(func=cmd_import_projects)

    preview = sub.add_parser("preview", help="Preview rounded hours without saving")
    preview.add_argument("--start")
    preview.add_argument("--end")
    preview.add_argument("--break", dest="break_minutes", type=int, default=0)
    preview.add_argument("--hours", type=float, help="Manual hours instead of start/end")
    preview.add_argument("--increment", type=int, help="Rounding increment (defaults to the saved setting)")
    preview.set_defaults(func=cmd_preview)

    log_time = sub.add_parser("log-time", help="Record hours against a project")
    log_time.add_argument("employee", help="Employee id or badge")
    log_time.add_argument("project", help="Project id or code")
    log_time.add_argument("date")
    log_time.add_argument("--start")
    log_time.add_argument("--end")
    log_time.add_argument("--break", dest="break_minutes", type=int, default=0)
    log_time.add_argument("--hours", type=float, help="Manual hours instead of start/end")
    log_time.add_argument("--work-type", default="")
    log_time.add_argument("--notes", default="")
    log_time.add_argument("--id")
    log_time.set_defaults(func=cmd_log_time)

    entries = sub.add_parser("entries", help="List entries with base/OT split")
    add_filter_arguments(entries)
    entries.set_defaults(func=cmd_entries)

    totals = sub.add_parser("totals", help="Totals for the filtered entries")
    add_filter_arguments(totals)
    totals.set_defaults(func=cmd_totals)

    weekly = sub.add_parser("weekly-report", help="Hours by employee and project for one ISO week")
    weekly.add_argument("week", nargs="?", help="Week label such as 2024-W05 (defaults to this week)")
    weekly.set_defaults(func=cmd_weekly_report)

    status = sub.add_parser("set-status", help="Approve, reject or reset one entry")
    status.add_argument("id")
    status.add_argument("status", choices=[s.value for s in EntryStatus])
    status.set_defaults(func=cmd_set_status)

    approve = sub.add_parser("approve-week", help="Approve and lock every entry in an ISO week")
    approve.add_argument("week")
    approve.set_defaults(func=cmd_approve_week)

    reject = sub.add_parser("reject-week", help="Reject and unlock every entry in an ISO week")
    reject.add_argument("week")
    reject.set_defaults(func=cmd_reject_week)

    delete = sub.add_parser("delete", help="Delete an unlocked entry")
    delete.add_argument("id")
    delete.set_defaults(func=cmd_delete)

    pending = sub.add_parser("pending", help="List entries awaiting approval")
    pending.add_argument("--employee")
    pending.set_defaults(func=cmd_pending)

    settings = sub.add_parser("settings", help="Show or change rounding, overtime and API settings")
    settings.add_argument("--rounding", type=int, help="Rounding increment in minutes")
    settings.add_argument("--threshold", type=float, help="Daily overtime threshold in hours")
    settings.add_argument("--api-base", help="Remote API base URL")
    settings.set_defaults(func=cmd_settings)

    export = sub.add_parser("export", help="Export the filtered entries")
    export.add_argument("format", choices=list(EXPORTERS))
    export.add_argument("path")
    export.add_argument("--title", help="Report title (defaults to the application name)")
    add_filter_arguments(export)
    export.set_defaults(func=cmd_export)

    kiosk_in = sub.add_parser("clock-in", help="Kiosk clock-in by badge or PIN")
    kiosk_in.add_argument("identifier")
    kiosk_in.add_argument("project", help="Project id or code")
    kiosk_in.set_defaults(func=cmd_clock_in)

    kiosk_out = sub.add_parser("clock-out", help="Kiosk clock-out; logs the shift as an entry")
    kiosk_out.add_argument("identifier")
    kiosk_out.add_argument("--break", dest="break_minutes", type=int, default=0)
    kiosk_out.add_argument("--notes", default="")
    kiosk_out.set_defaults(func=cmd_clock_out)

    health = sub.add_parser("health", help="Check the remote API /health endpoint")
    health.set_defaults(func=cmd_health)

    login = sub.add_parser("login", help="Sign in to the remote API")
    login.add_argument("username")
    login.add_argument("password")
    login.set_defaults(func=cmd_login)

    push = sub.add_parser("push", help="Save all local entries to the remote API")
    push.set_defaults(func=cmd_push)

    pull = sub.add_parser("pull", help="Replace local entries with the remote API's")
    pull.set_defaults(func=cmd_pull)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    settings = get_settings()
    configure_logging(settings.log_level)
    configure_error_monitoring(settings)
    try:
        return args.func(args) or 0
    except LabourLoggerError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
