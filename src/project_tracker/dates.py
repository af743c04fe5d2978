"""Calendar-date helpers: days remaining, schedule risk and display labels.

All arithmetic is on ``datetime.date`` values, so time of day never shifts a
result.  ``datetime`` inputs are truncated to their date first.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Any, Optional, Union

from .errors import ValidationError
from .model import ScheduleStatus
from .utils import _parse_date

DateLike = Union[date, datetime, str]

# Due within this many days (inclusive) counts as at risk.
AT_RISK_WINDOW_DAYS = 7

_MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")

_SCHEDULE_LABELS = {
    ScheduleStatus.ON_TRACK: "On Track",
    ScheduleStatus.AT_RISK: "At Risk",
    ScheduleStatus.DELAYED: "Delayed",
}


def parse_date(value: Any, field_name: str = "date") -> date:
    """Parse *value* into a calendar date.

    Raises:
        ValidationError: If the value is empty or not an ISO date.
    """
    parsed = _parse_date(value)
    if parsed is None:
        raise ValidationError({field_name: f"Invalid date: {value!r}"})
    return parsed


def _today(today: Optional[DateLike]) -> date:
    return date.today() if today is None else parse_date(today, "today")


def days_until(due_date: DateLike, today: Optional[DateLike] = None) -> int:
    """Whole days from *today* until *due_date* (negative once past)."""
    return (parse_date(due_date, "due_date") - _today(today)).days


def schedule_status(due_date: DateLike, today: Optional[DateLike] = None) -> ScheduleStatus:
    """Classify a due date as delayed, at risk or on track.

    Completed items are never passed through here; callers treat them as
    on track.
    """
    days = days_until(due_date, today)
    if days < 0:
        return ScheduleStatus.DELAYED
    if days <= AT_RISK_WINDOW_DAYS:
        return ScheduleStatus.AT_RISK
    return ScheduleStatus.ON_TRACK


def schedule_status_label(status: ScheduleStatus) -> str:
    return _SCHEDULE_LABELS[ScheduleStatus(status)]


def days_remaining_text(due_date: DateLike, today: Optional[DateLike] = None) -> str:
    days = days_until(due_date, today)
    if days < 0:
        overdue = abs(days)
        return f"{overdue} day{'s' if overdue != 1 else ''} overdue"
    if days == 0:
        return "Due today"
    if days == 1:
        return "Due tomorrow"
    return f"{days} days left"


def format_date(value: DateLike) -> str:
    """``2026-03-05`` -> ``Mar 5, 2026``."""
    d = parse_date(value)
    return f"{_MONTHS[d.month - 1]} {d.day}, {d.year}"


def format_date_short(value: DateLike) -> str:
    d = parse_date(value)
    return f"{_MONTHS[d.month - 1]} {d.day}"


def date_from_today(days: int, today: Optional[DateLike] = None) -> date:
    return _today(today) + timedelta(days=days)


def is_past_date(value: DateLike, today: Optional[DateLike] = None) -> bool:
    return days_until(value, today) < 0


def is_today(value: DateLike, today: Optional[DateLike] = None) -> bool:
    return days_until(value, today) == 0
