from __future__ import annotations
import re
from datetime import date, timedelta
from typing import Tuple

from .exceptions import ValidationError

WEEK_LABEL = re.compile(r"^(\d{4})-W(\d{2})$")


def iso_week_label(day: date) -> str:
    """Return the ISO-8601 week label ("YYYY-Www") that ``day`` falls in.

    ISO weeks start on Monday and week 1 is the week holding the year's first
    Thursday, so early January days can belong to the previous week-year.
    """
    week_year, week, _ = day.isocalendar()
    return f"{week_year}-W{week:02d}"


def parse_week_label(label: str) -> Tuple[int, int]:
    match = WEEK_LABEL.match(label.strip())
    if not match:
        raise ValidationError(f"Invalid ISO week label: {label!r} (expected YYYY-Www)")
    week_year, week = int(match.group(1)), int(match.group(2))
    try:
        date.fromisocalendar(week_year, week, 1)
    except ValueError as exc:
        raise ValidationError(f"Invalid ISO week label: {label!r}") from exc
    return week_year, week


def week_bounds(label: str) -> Tuple[date, date]:
    week_year, week = parse_week_label(label)
    start = date.fromisocalendar(week_year, week, 1)
    return start, start + timedelta(days=6)
