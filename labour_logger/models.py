from __future__ import annotations
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Optional


class EntryStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


@dataclass
class Employee:
    id: str
    name: str
    badge: Optional[str] = None
    pin: Optional[str] = None


@dataclass
class Project:
    id: str
    code: str
    name: str


@dataclass
class TimeEntry:
    id: str
    employee_id: str
    project_id: str
    date: date
    hours: float
    rounded_from_minutes: int
    rounding_increment: int
    start: Optional[str] = None
    end: Optional[str] = None
    break_minutes: int = 0
    work_type: str = ""
    notes: str = ""
    status: EntryStatus = EntryStatus.PENDING
    locked: bool = False
    created_at: Optional[datetime] = None


@dataclass
class TrackingSettings:
    rounding_increment: int = 15
    daily_overtime_threshold: float = 8.0


@dataclass
class OpenShift:
    """A kiosk clock-in that has not been closed yet."""

    employee_id: str
    project_id: str
    started_at: datetime


@dataclass(frozen=True)
class DurationPreview:
    raw_minutes: int
    rounded_minutes: int
    hours: float


@dataclass(frozen=True)
class OvertimeSplit:
    base: float = 0.0
    ot: float = 0.0
