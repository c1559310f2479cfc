from __future__ import annotations
from collections import defaultdict
from datetime import date
from enum import Enum
from typing import Dict, Iterable, List, Optional, Tuple

from .clock import time_to_minutes
from .models import OvertimeSplit, TimeEntry

DayKey = Tuple[str, date]


class OvertimeScope(str, Enum):
    """Which entries count toward a day's running total.

    VISIBLE only uses the entries being reported on (for example the filtered
    list). FULL_DAY also counts every other stored entry of the same employee
    and day, so filters do not change the base/OT split.
    """

    VISIBLE = "visible"
    FULL_DAY = "full_day"


def group_by_day(entries: Iterable[TimeEntry]) -> Dict[DayKey, List[TimeEntry]]:
    groups: Dict[DayKey, List[TimeEntry]] = defaultdict(list)
    for entry in entries:
        groups[(entry.employee_id, entry.date)].append(entry)
    return groups


def allocate_overtime(
    entries: Iterable[TimeEntry],
    threshold: float,
    *,
    context: Optional[Iterable[TimeEntry]] = None,
) -> Dict[str, OvertimeSplit]:
    """Split each entry's hours into base and overtime against a daily threshold.

    Entries are grouped by (employee, date) and walked in start-time order;
    the first hours of the day fill the threshold, the rest is overtime.
    ``context`` entries take part in the running totals but are not part of the
    result. The result covers exactly the ids in ``entries``.
    """
    targets = list(entries)
    wanted = {entry.id for entry in targets}
    pool: Dict[str, TimeEntry] = {entry.id: entry for entry in targets}
    days = {(entry.employee_id, entry.date) for entry in targets}
    for entry in context or ():
        if (entry.employee_id, entry.date) in days:
            pool.setdefault(entry.id, entry)

    allocations: Dict[str, OvertimeSplit] = {}
    for group in group_by_day(pool.values()).values():
        cumulative = 0.0
        # sorted() is stable: equal start times keep their input order
        for entry in sorted(group, key=lambda e: time_to_minutes(e.start)):
            base = min(max(threshold - cumulative, 0.0), entry.hours)
            if entry.id in wanted:
                allocations[entry.id] = OvertimeSplit(base=base, ot=entry.hours - base)
            cumulative += entry.hours
    return allocations
