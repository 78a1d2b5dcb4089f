"""
Attendance window math.

Pure functions of (active days, period slots, buffer, now, timezone):
no database access and no cached state, so a test only has to pass `now`.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime

from core.common.timeutils import local_now

logger = logging.getLogger(__name__)

DEFAULT_WINDOW_START = "08:00"
DEFAULT_WINDOW_END = "10:00"
DEFAULT_ACTIVE_DAYS = (1, 2, 3, 4, 5, 6)  # Mon..Sat
SINGLE_PERIOD_EXTENSION_MINUTES = 60

HHMM_RE = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


@dataclass(frozen=True)
class AttendanceWindow:
    start_time: str  # HH:MM
    end_time: str    # HH:MM
    active_days: tuple = field(default=DEFAULT_ACTIVE_DAYS)

    def as_dict(self) -> dict:
        return {"startTime": self.start_time, "endTime": self.end_time, "activeDays": list(self.active_days)}


DEFAULT_WINDOW = AttendanceWindow(DEFAULT_WINDOW_START, DEFAULT_WINDOW_END, DEFAULT_ACTIVE_DAYS)


def parse_hhmm(value) -> tuple[int, int]:
    """Zero-padded 24h "HH:MM" only; anything else raises ValueError."""
    if not isinstance(value, str) or not HHMM_RE.match(value):
        raise ValueError(f"Invalid HH:MM time: {value!r}")
    hours, mins = value.split(":")
    return int(hours), int(mins)


def add_minutes_to_time(hhmm: str, minutes: int) -> str:
    """"08:40" + 10 -> "08:50"; wraps past midnight."""
    hours, mins = parse_hhmm(hhmm)
    total = hours * 60 + mins + int(minutes)
    return f"{(total // 60) % 24:02d}:{total % 60:02d}"


def weekday_number(dt: datetime) -> int:
    """Mon=1 .. Sun=7."""
    return dt.isoweekday()


def _days(active_days) -> tuple:
    if active_days and not isinstance(active_days, (list, tuple)):
        raise ValueError(f"Invalid active days: {active_days!r}")
    days = []
    for d in active_days or ():
        if isinstance(d, bool) or not isinstance(d, int):
            raise ValueError(f"Invalid active day: {d!r}")
        if 1 <= d <= 7:
            days.append(d)
    return tuple(days) or DEFAULT_ACTIVE_DAYS


def compute_attendance_window(active_days, slots, buffer_minutes: int) -> AttendanceWindow:
    """
    `slots` are objects with period_number, start_time, end_time and
    is_break; only the first two non-break periods matter.

    start = first period end + buffer
    end   = second period end, or first period end + 60 minutes

    Raises ValueError on a malformed slot time or active day.
    """
    periods = sorted((s for s in (slots or []) if not getattr(s, "is_break", False)), key=lambda s: s.period_number)

    if not periods:
        return AttendanceWindow(DEFAULT_WINDOW_START, DEFAULT_WINDOW_END, _days(active_days))

    first = periods[0]
    second = periods[1] if len(periods) > 1 else None

    parse_hhmm(first.start_time)
    start = add_minutes_to_time(first.end_time, buffer_minutes or 0)
    if second:
        parse_hhmm(second.end_time)
        end = second.end_time
    else:
        end = add_minutes_to_time(first.end_time, SINGLE_PERIOD_EXTENSION_MINUTES)
    return AttendanceWindow(start, end, _days(active_days))


def is_within_window(window: AttendanceWindow, now: datetime | None, tz_name: str | None) -> bool:
    """Inclusive on both ends, compared in the organization's local time."""
    local = local_now(now, tz_name)
    day = weekday_number(local)
    if day not in window.active_days:
        logger.debug("Not an active day day=%s active=%s", day, window.active_days)
        return False

    current = local.strftime("%H:%M")
    inside = window.start_time <= current <= window.end_time
    if not inside:
        logger.debug("Outside window now=%s window=%s-%s", current, window.start_time, window.end_time)
    return inside


def window_for_organization(org) -> AttendanceWindow:
    """
    Window from the org's default period template (first one found).
    Raises ValueError when that template holds malformed times or days.
    """
    template = org.period_templates.filter(is_default=True).order_by("created_at").first()
    if not template:
        return DEFAULT_WINDOW
    slots = list(template.slots.filter(is_break=False).order_by("period_number")[:2])
    return compute_attendance_window(template.active_days, slots, org.attendance_buffer_minutes)
