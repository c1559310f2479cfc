from __future__ import annotations
from typing import Dict, Iterable

from labour_reports.reports import FilteredTotals, HoursTotals, WeeklyReport

from .models import Employee, OvertimeSplit, Project, TimeEntry
from .weeks import week_bounds


def format_entries(
    entries: Iterable[TimeEntry],
    allocations: Dict[str, OvertimeSplit],
    employees: Dict[str, Employee],
    projects: Dict[str, Project],
) -> str:
    rows = ["Date        Start  End    Employee             Project     Hours   Base     OT  Status    Lock  Id"]
    for entry in entries:
        employee = employees.get(entry.employee_id)
        project = projects.get(entry.project_id)
        split = allocations.get(entry.id, OvertimeSplit())
        rows.append(
            f"{entry.date.isoformat()}  {entry.start or '-':<5}  {entry.end or '-':<5}  "
            f"{(employee.name if employee else '-'):<19.19}  {(project.code if project else '-'):<10.10}  "
            f"{entry.hours:>5.2f}  {split.base:>5.2f}  {split.ot:>5.2f}  {entry.status.value:<8}  "
            f"{'yes' if entry.locked else 'no':<4}  {entry.id}"
        )
    if len(rows) == 1:
        rows.append("(no entries)")
    return "\n".join(rows)


def _totals_line(label: str, totals: HoursTotals) -> str:
    return f"{label:<24.24}  {totals.hours:>7.2f}  {totals.base:>7.2f}  {totals.ot:>7.2f}"


def format_totals(summary: FilteredTotals) -> str:
    rows = [f"{'':<24}  {'Hours':>7}  {'Base':>7}  {'OT':>7}", _totals_line("All visible entries", summary.totals)]
    rows.append("By project")
    rows.extend(_totals_line(f"  {code or '(unknown)'}", totals) for code, totals in summary.by_project.items())
    rows.append("By employee")
    rows.extend(_totals_line(f"  {name or '(unknown)'}", totals) for name, totals in summary.by_employee.items())
    return "\n".join(rows)


def format_weekly_report(report: WeeklyReport) -> str:
    start, end = week_bounds(report.week)
    rows = [
        f"Week {report.week} ({start.isoformat()} - {end.isoformat()})",
        f"{'':<24}  {'Hours':>7}  {'Base':>7}  {'OT':>7}",
        "By employee",
    ]
    rows.extend(_totals_line(f"  {name or '(unknown)'}", totals) for name, totals in report.by_employee.items())
    rows.append("By project")
    rows.extend(_totals_line(f"  {code or '(unknown)'}", totals) for code, totals in report.by_project.items())
    rows.append(_totals_line("Total", report.totals))
    return "\n".join(rows)
