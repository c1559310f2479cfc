from __future__ import annotations
from datetime import datetime

from .clock import minutes_to_time
from .core.logging import get_logger
from .exceptions import ValidationError
from .models import Employee, OpenShift, TimeEntry
from .storage import DataStore
from .time_tracking import create_time_entry

logger = get_logger(__name__)

KIOSK_WORK_TYPE = "Kiosk"


def _identify(store: DataStore, identifier: str) -> Employee:
    employee = store.find_employee_by_identifier(identifier or "")
    if not employee:
        raise ValidationError("Badge or PIN not recognised")
    return employee


def _clock_time(moment: datetime) -> str:
    return minutes_to_time(moment.hour * 60 + moment.minute)


def clock_in(store: DataStore, identifier: str, project_id: str, *, now: datetime | None = None) -> OpenShift:
    employee = _identify(store, identifier)
    if employee.id in store.open_shifts:
        raise ValidationError(f"{employee.name} is already clocked in")
    if project_id not in store.projects:
        raise ValidationError("Select a project")
    shift = OpenShift(employee_id=employee.id, project_id=project_id, started_at=now or datetime.now())
    store.open_shifts[employee.id] = shift
    store.save()
    logger.info("clocked_in", employee_id=employee.id, project_id=project_id)
    return shift


def clock_out(
    store: DataStore,
    identifier: str,
    *,
    break_minutes: int = 0,
    notes: str = "",
    now: datetime | None = None,
) -> TimeEntry:
    """Close the employee's open shift and record it as a regular time entry.

    Shifts are recorded against the clock-in date. A shift that crosses
    midnight is refused and stays open.
    """
    employee = _identify(store, identifier)
    shift = store.open_shifts.get(employee.id)
    if not shift:
        raise ValidationError(f"{employee.name} is not clocked in")
    finished_at = now or datetime.now()
    if finished_at.date() != shift.started_at.date():
        raise ValidationError("Shift crosses midnight; log it from the entry form instead")

    entry = create_time_entry(
        store,
        employee_id=employee.id,
        project_id=shift.project_id,
        day=shift.started_at.date(),
        start=_clock_time(shift.started_at),
        end=_clock_time(finished_at),
        break_minutes=break_minutes,
        work_type=KIOSK_WORK_TYPE,
        notes=notes,
        now=finished_at,
    )
    del store.open_shifts[employee.id]
    store.save()
    logger.info("clocked_out", employee_id=employee.id, entry_id=entry.id)
    return entry
