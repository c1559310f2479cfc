from __future__ import annotations
import json
from datetime import date, datetime
from pathlib import Path
from typing import Dict, List, Optional

from .core.logging import get_logger
from .exceptions import DuplicateProjectError, UnknownRecordError, ValidationError
from .models import Employee, EntryStatus, OpenShift, Project, TimeEntry, TrackingSettings

logger = get_logger(__name__)

DEFAULT_API_BASE = "https://factory-labour-logger-backend.onrender.com"


class DataStore:
    """The single persisted state blob.

    Holds employees, projects, entries, tracking settings, the remote API base
    and any open kiosk shifts. The file is read once on construction and
    rewritten in full by ``save()``.
    """

    def __init__(
        self,
        path: Path,
        *,
        settings: TrackingSettings | None = None,
        api_base: str = DEFAULT_API_BASE,
    ) -> None:
        self.path = path
        self.employees: Dict[str, Employee] = {}
        self.projects: Dict[str, Project] = {}
        self.time_entries: Dict[str, TimeEntry] = {}
        self.open_shifts: Dict[str, OpenShift] = {}
        self.settings = settings or TrackingSettings()
        self.api_base = api_base
        if path.exists():
            self.load()

    def load(self) -> None:
        content = json.loads(self.path.read_text(encoding="utf-8"))
        self.employees = {e["id"]: Employee(**e) for e in content.get("employees", [])}
        self.projects = {p["id"]: Project(**p) for p in content.get("projects", [])}
        self.time_entries = {t["id"]: self._deserialize_time_entry(t) for t in content.get("entries", [])}
        self.open_shifts = {
            s["employeeId"]: self._deserialize_open_shift(s) for s in content.get("clockedIn", [])
        }
        settings = content.get("settings") or {}
        self.settings = TrackingSettings(
            rounding_increment=int(settings.get("roundingIncrement", self.settings.rounding_increment)),
            daily_overtime_threshold=float(
                settings.get("dailyOvertimeThreshold", self.settings.daily_overtime_threshold)
            ),
        )
        self.api_base = content.get("apiBase") or self.api_base
        logger.debug("store_loaded", path=str(self.path), entries=len(self.time_entries))

    def save(self) -> None:
        payload = {
            "employees": [self._serialize_employee(e) for e in self.employees.values()],
            "projects": [{"id": p.id, "code": p.code, "name": p.name} for p in self.projects.values()],
            "entries": [self._serialize_time_entry(t) for t in self.time_entries.values()],
            "settings": {
                "roundingIncrement": self.settings.rounding_increment,
                "dailyOvertimeThreshold": self.settings.daily_overtime_threshold,
            },
            "apiBase": self.api_base,
            "clockedIn": [self._serialize_open_shift(s) for s in self.open_shifts.values()],
        }
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(payload, indent=2), encoding="utf-8")

    def add_employee(self, employee: Employee) -> None:
        if not employee.name.strip():
            raise ValidationError("Employee name is required")
        if employee.id in self.employees:
            raise ValidationError(f"Employee {employee.id} already exists")
        self.employees[employee.id] = employee

    def add_project(self, project: Project) -> None:
        if not project.code.strip() or not project.name.strip():
            raise ValidationError("Project code and name are required")
        if self.find_project_by_code(project.code):
            raise DuplicateProjectError(f"Project code {project.code} already exists")
        self.projects[project.id] = project

    def add_time_entry(self, entry: TimeEntry) -> None:
        self.time_entries[entry.id] = entry

    def replace_entries(self, entries: List[TimeEntry]) -> None:
        self.time_entries = {entry.id: entry for entry in entries}

    def get_entry(self, entry_id: str) -> TimeEntry:
        try:
            return self.time_entries[entry_id]
        except KeyError:
            raise UnknownRecordError(f"No time entry with id {entry_id}") from None

    def find_project_by_code(self, code: str) -> Optional[Project]:
        wanted = code.strip().lower()
        for project in self.projects.values():
            if project.code.lower() == wanted:
                return project
        return None

    def find_employee_by_identifier(self, identifier: str) -> Optional[Employee]:
        """Look an employee up by badge code (case-insensitive) or PIN."""

        wanted = identifier.strip()
        for employee in self.employees.values():
            if employee.badge and employee.badge.lower() == wanted.lower():
                return employee
        for employee in self.employees.values():
            if employee.pin and employee.pin == wanted:
                return employee
        return None

    def find_entries(self, employee_id: Optional[str] = None) -> List[TimeEntry]:
        entries = list(self.time_entries.values())
        if employee_id:
            entries = [e for e in entries if e.employee_id == employee_id]
        return sorted(entries, key=lambda e: (e.date, e.start or ""))

    def list_employees(self) -> List[Employee]:
        """Return employees ordered by display name."""

        return sorted(self.employees.values(), key=lambda e: e.name.lower())

    def list_projects(self) -> List[Project]:
        return sorted(self.projects.values(), key=lambda p: p.code.lower())

    @staticmethod
    def _serialize_employee(employee: Employee) -> dict:
        return {"id": employee.id, "name": employee.name, "badge": employee.badge, "pin": employee.pin}

    @staticmethod
    def _serialize_time_entry(entry: TimeEntry) -> dict:
        return {
            "id": entry.id,
            "employeeId": entry.employee_id,
            "projectId": entry.project_id,
            "date": entry.date.isoformat(),
            "start": entry.start,
            "end": entry.end,
            "breakMinutes": entry.break_minutes,
            "workType": entry.work_type,
            "notes": entry.notes,
            "hours": entry.hours,
            "roundedFromMinutes": entry.rounded_from_minutes,
            "roundingIncrement": entry.rounding_increment,
            "status": entry.status.value,
            "locked": entry.locked,
            "createdAt": entry.created_at.isoformat() if entry.created_at else None,
        }

    @staticmethod
    def _deserialize_time_entry(data: dict) -> TimeEntry:
        created_at = data.get("createdAt")
        return TimeEntry(
            id=data["id"],
            employee_id=data["employeeId"],
            project_id=data["projectId"],
            date=date.fromisoformat(data["date"]),
            start=data.get("start"),
            end=data.get("end"),
            break_minutes=int(data.get("breakMinutes") or 0),
            work_type=data.get("workType") or "",
            notes=data.get("notes") or "",
            hours=float(data.get("hours") or 0.0),
            rounded_from_minutes=int(data.get("roundedFromMinutes") or 0),
            rounding_increment=int(data.get("roundingIncrement") or 1),
            status=EntryStatus(data.get("status") or EntryStatus.PENDING.value),
            locked=bool(data.get("locked", False)),
            created_at=datetime.fromisoformat(created_at) if created_at else None,
        )

    @staticmethod
    def _serialize_open_shift(shift: OpenShift) -> dict:
        return {
            "employeeId": shift.employee_id,
            "projectId": shift.project_id,
            "startedAt": shift.started_at.isoformat(),
        }

    @staticmethod
    def _deserialize_open_shift(data: dict) -> OpenShift:
        return OpenShift(
            employee_id=data["employeeId"],
            project_id=data["projectId"],
            started_at=datetime.fromisoformat(data["startedAt"]),
        )
