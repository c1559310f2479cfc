from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Dict, Iterable, List, Optional

from labour_logger.models import Employee, Project, TimeEntry


@dataclass(frozen=True)
class EntryFilter:
    project_id: Optional[str] = None
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    search: str = ""

    @property
    def is_empty(self) -> bool:
        return not (self.project_id or self.date_from or self.date_to or self.search.strip())


def _haystack(entry: TimeEntry, employees: Dict[str, Employee], projects: Dict[str, Project]) -> str:
    employee = employees.get(entry.employee_id)
    project = projects.get(entry.project_id)
    parts = [
        employee.name if employee else "",
        project.name if project else "",
        project.code if project else "",
        entry.notes,
        entry.work_type,
        entry.status.value,
    ]
    return " ".join(part or "" for part in parts).lower()


def filter_entries(
    entries: Iterable[TimeEntry],
    entry_filter: EntryFilter,
    employees: Dict[str, Employee],
    projects: Dict[str, Project],
) -> List[TimeEntry]:
    """Filter entries by project, inclusive date range and free-text search."""

    needle = entry_filter.search.strip().lower()

    def matches(entry: TimeEntry) -> bool:
        if entry_filter.project_id and entry.project_id != entry_filter.project_id:
            return False
        if entry_filter.date_from and entry.date < entry_filter.date_from:
            return False
        if entry_filter.date_to and entry.date > entry_filter.date_to:
            return False
        if needle and needle not in _haystack(entry, employees, projects):
            return False
        return True

    return [entry for entry in entries if matches(entry)]
