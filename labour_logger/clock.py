from __future__ import annotations
import math
from decimal import ROUND_HALF_UP, Decimal


def round_half_away(value: float) -> int:
    """Round to the nearest integer, halves away from zero (2.5 -> 3, -2.5 -> -3)."""

    return int(math.copysign(math.floor(abs(value) + 0.5), value))


def round_hours(value: float) -> float:
    return float(Decimal(repr(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def _part(value: str) -> int:
    try:
        return int(value.strip())
    except ValueError:
        return 0


def time_to_minutes(hhmm: str | None) -> int:
    """Convert "HH:MM" to minutes since midnight.

    Unparseable parts count as zero, so malformed input reads as "00:00".
    """
    if not hhmm or not isinstance(hhmm, str):
        return 0
    hours, _, minutes = hhmm.partition(":")
    return _part(hours) * 60 + _part(minutes)


def minutes_to_time(minutes: float) -> str:
    hours, remainder = divmod(round_half_away(minutes), 60)
    return f"{hours:02d}:{remainder:02d}"


def round_to_increment(minutes: float, increment: int) -> int:
    step = max(1, int(increment or 0))
    return round_half_away(minutes / step) * step
