from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List

from labour_logger.models import Employee, OvertimeSplit, Project, TimeEntry
from labour_logger.weeks import iso_week_label

ReportRow = Dict[str, Any]

EXPORT_COLUMNS = [
    "Date",
    "Employee",
    "Project Code",
    "Project Name",
    "Work Type",
    "Start",
    "End",
    "Break(min)",
    "Hours",
    "Base",
    "OT",
    "Status",
    "Notes",
]


@dataclass
class HoursTotals:
    hours: float = 0.0
    base: float = 0.0
    ot: float = 0.0

    def add(self, hours: float, split: OvertimeSplit) -> None:
        self.hours += hours
        self.base += split.base
        self.ot += split.ot

    def rounded(self) -> "HoursTotals":
        return HoursTotals(hours=round(self.hours, 2), base=round(self.base, 2), ot=round(self.ot, 2))


@dataclass
class FilteredTotals:
    totals: HoursTotals = field(default_factory=HoursTotals)
    by_project: Dict[str, HoursTotals] = field(default_factory=dict)
    by_employee: Dict[str, HoursTotals] = field(default_factory=dict)


@dataclass
class WeeklyReport:
    week: str
    totals: HoursTotals = field(default_factory=HoursTotals)
    by_employee: Dict[str, HoursTotals] = field(default_factory=dict)
    by_project: Dict[str, HoursTotals] = field(default_factory=dict)


def _employee_name(entry: TimeEntry, employees: Dict[str, Employee]) -> str:
    employee = employees.get(entry.employee_id)
    return employee.name if employee else ""


def _project_code(entry: TimeEntry, projects: Dict[str, Project]) -> str:
    project = projects.get(entry.project_id)
    return project.code if project else ""


def _split_for(entry: TimeEntry, allocations: Dict[str, OvertimeSplit]) -> OvertimeSplit:
    return allocations.get(entry.id, OvertimeSplit())


def _group_totals(
    entries: Iterable[TimeEntry],
    allocations: Dict[str, OvertimeSplit],
    key: Callable[[TimeEntry], str],
) -> Dict[str, HoursTotals]:
    grouped: Dict[str, HoursTotals] = defaultdict(HoursTotals)
    for entry in entries:
        grouped[key(entry)].add(entry.hours, _split_for(entry, allocations))
    return {name: totals.rounded() for name, totals in sorted(grouped.items())}


def _overall(entries: Iterable[TimeEntry], allocations: Dict[str, OvertimeSplit]) -> HoursTotals:
    totals = HoursTotals()
    for entry in entries:
        totals.add(entry.hours, _split_for(entry, allocations))
    return totals.rounded()


def summarize(
    entries: Iterable[TimeEntry],
    allocations: Dict[str, OvertimeSplit],
    employees: Dict[str, Employee],
    projects: Dict[str, Project],
) -> FilteredTotals:
    """Totals for an already filtered list, overall and per project/employee."""

    entry_list = list(entries)
    return FilteredTotals(
        totals=_overall(entry_list, allocations),
        by_project=_group_totals(entry_list, allocations, lambda e: _project_code(e, projects)),
        by_employee=_group_totals(entry_list, allocations, lambda e: _employee_name(e, employees)),
    )


def weekly_report(
    entries: Iterable[TimeEntry],
    allocations: Dict[str, OvertimeSplit],
    week: str,
    employees: Dict[str, Employee],
    projects: Dict[str, Project],
) -> WeeklyReport:
    """Hours, base and overtime for one ISO week by employee name and project code.

    Only the week scopes this report; callers pass every stored entry.
    """
    in_week = [entry for entry in entries if iso_week_label(entry.date) == week]
    return WeeklyReport(
        week=week,
        totals=_overall(in_week, allocations),
        by_employee=_group_totals(in_week, allocations, lambda e: _employee_name(e, employees)),
        by_project=_group_totals(in_week, allocations, lambda e: _project_code(e, projects)),
    )


def build_export_rows(
    entries: Iterable[TimeEntry],
    allocations: Dict[str, OvertimeSplit],
    employees: Dict[str, Employee],
    projects: Dict[str, Project],
) -> List[ReportRow]:
    rows: List[ReportRow] = []
    for entry in sorted(entries, key=lambda e: (e.date, e.start or "")):
        project = projects.get(entry.project_id)
        split = _split_for(entry, allocations)
        values = [
            entry.date.isoformat(),
            _employee_name(entry, employees),
            project.code if project else "",
            project.name if project else "",
            entry.work_type,
            entry.start or "",
            entry.end or "",
            entry.break_minutes,
            f"{entry.hours:.2f}",
            f"{split.base:.2f}",
            f"{split.ot:.2f}",
            entry.status.value,
            entry.notes,
        ]
        rows.append(dict(zip(EXPORT_COLUMNS, values)))
    return rows
