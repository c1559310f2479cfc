from __future__ import annotations
from datetime import date, datetime
from typing import Iterable, List, Optional
from uuid import uuid4

from .clock import round_half_away, round_hours, round_to_increment, time_to_minutes
from .core.logging import get_logger
from .exceptions import EntryLockedError, ValidationError
from .models import DurationPreview, EntryStatus, TimeEntry, TrackingSettings
from .storage import DataStore
from .weeks import iso_week_label, parse_week_label

logger = get_logger(__name__)

MAX_BREAK_MINUTES = 240


def compute_duration(
    start: str | None,
    end: str | None,
    break_minutes: int,
    increment: int,
    manual_hours: float | None = None,
) -> DurationPreview:
    """Preview the worked time for a start/end/break or a manual hours figure.

    Never raises: negative spans clamp to zero here and are rejected later by
    ``create_time_entry``.
    """
    if manual_hours is not None:
        raw = max(0, round_half_away(manual_hours * 60))
    else:
        raw = max(0, time_to_minutes(end) - time_to_minutes(start) - int(break_minutes or 0))
    rounded = round_to_increment(raw, increment)
    return DurationPreview(raw_minutes=raw, rounded_minutes=rounded, hours=round_hours(rounded / 60))


def _validate_entry(
    store: DataStore,
    *,
    employee_id: str | None,
    project_id: str | None,
    day: date | None,
    start: str | None,
    end: str | None,
    break_minutes: int,
    manual_hours: float | None,
    preview: DurationPreview,
) -> None:
    if not employee_id:
        raise ValidationError("Select an employee")
    if employee_id not in store.employees:
        raise ValidationError(f"Unknown employee {employee_id}")
    if not project_id:
        raise ValidationError("Select a project")
    if project_id not in store.projects:
        raise ValidationError(f"Unknown project {project_id}")
    if day is None:
        raise ValidationError("Pick a date")
    if manual_hours is None:
        if not 0 <= break_minutes <= MAX_BREAK_MINUTES:
            raise ValidationError(f"Break must be between 0 and {MAX_BREAK_MINUTES} minutes")
        if time_to_minutes(end) <= time_to_minutes(start):
            raise ValidationError("End time must be after start time")
    if preview.hours <= 0:
        raise ValidationError("Hours must be greater than zero")


def create_time_entry(
    store: DataStore,
    *,
    employee_id: str | None,
    project_id: str | None,
    day: date | None,
    start: str | None = None,
    end: str | None = None,
    break_minutes: int = 0,
    work_type: str = "",
    notes: str = "",
    manual_hours: float | None = None,
    entry_id: str | None = None,
    now: datetime | None = None,
) -> TimeEntry:
    if entry_id and entry_id in store.time_entries:
        if store.time_entries[entry_id].locked:
            raise EntryLockedError(f"Entry {entry_id} is locked and cannot be replaced")
        raise ValidationError(f"Entry {entry_id} already exists")
    increment = store.settings.rounding_increment
    preview = compute_duration(start, end, break_minutes, increment, manual_hours)
    _validate_entry(
        store,
        employee_id=employee_id,
        project_id=project_id,
        day=day,
        start=start,
        end=end,
        break_minutes=break_minutes,
        manual_hours=manual_hours,
        preview=preview,
    )

    manual = manual_hours is not None
    entry = TimeEntry(
        id=entry_id or str(uuid4()),
        employee_id=employee_id,
        project_id=project_id,
        date=day,
        start=None if manual else start,
        end=None if manual else end,
        break_minutes=0 if manual else int(break_minutes),
        work_type=work_type.strip(),
        notes=notes.strip(),
        hours=preview.hours,
        rounded_from_minutes=preview.raw_minutes,
        rounding_increment=increment,
        created_at=now or datetime.now(),
    )
    store.add_time_entry(entry)
    store.save()
    logger.info("entry_created", entry_id=entry.id, employee_id=employee_id, hours=entry.hours)
    return entry


def set_entry_status(store: DataStore, entry_id: str, status: EntryStatus) -> TimeEntry:
    entry = store.get_entry(entry_id)
    if entry.locked:
        raise EntryLockedError(f"Entry {entry_id} is locked and cannot be changed")
    entry.status = EntryStatus(status)
    if entry.status is EntryStatus.APPROVED:
        entry.locked = True
    store.save()
    logger.info("entry_status_changed", entry_id=entry_id, status=entry.status.value, locked=entry.locked)
    return entry


def entries_in_week(entries: Iterable[TimeEntry], week: str) -> List[TimeEntry]:
    return [entry for entry in entries if iso_week_label(entry.date) == week]


def approve_week(store: DataStore, week: str) -> List[TimeEntry]:
    """Approve and lock every entry in the ISO week, locked ones included."""

    parse_week_label(week)
    affected = entries_in_week(store.time_entries.values(), week)
    for entry in affected:
        entry.status = EntryStatus.APPROVED
        entry.locked = True
    store.save()
    logger.info("week_approved", week=week, entries=len(affected))
    return affected


def reject_week(store: DataStore, week: str) -> List[TimeEntry]:
    """Reject every entry in the ISO week and unlock previously approved ones."""

    parse_week_label(week)
    affected = entries_in_week(store.time_entries.values(), week)
    for entry in affected:
        entry.status = EntryStatus.REJECTED
        entry.locked = False
    store.save()
    logger.info("week_rejected", week=week, entries=len(affected))
    return affected


def delete_time_entry(store: DataStore, entry_id: str) -> TimeEntry:
    entry = store.get_entry(entry_id)
    if entry.locked:
        raise EntryLockedError(f"Entry {entry_id} is locked and cannot be deleted")
    del store.time_entries[entry_id]
    store.save()
    logger.info("entry_deleted", entry_id=entry_id)
    return entry


def pending_entries(store: DataStore, employee_id: Optional[str] = None) -> Iterable[TimeEntry]:
    for entry in store.find_entries(employee_id):
        if entry.status is EntryStatus.PENDING:
            yield entry


def update_settings(
    store: DataStore,
    *,
    rounding_increment: int | None = None,
    daily_overtime_threshold: float | None = None,
) -> TrackingSettings:
    """Change global settings. Existing entries keep their own increment."""

    if rounding_increment is not None:
        store.settings.rounding_increment = max(1, int(rounding_increment))
    if daily_overtime_threshold is not None:
        if daily_overtime_threshold < 0:
            raise ValidationError("Daily overtime threshold cannot be negative")
        store.settings.daily_overtime_threshold = float(daily_overtime_threshold)
    store.save()
    logger.info(
        "settings_updated",
        rounding_increment=store.settings.rounding_increment,
        daily_overtime_threshold=store.settings.daily_overtime_threshold,
    )
    return store.settings
