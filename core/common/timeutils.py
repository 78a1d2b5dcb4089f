from __future__ import annotations

from datetime import datetime, time, timedelta, timezone as dt_timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from django.conf import settings
from django.utils import timezone

DEFAULT_TIMEZONE = "Asia/Kolkata"


def get_zone(tz_name: str | None) -> ZoneInfo:
    try:
        return ZoneInfo(tz_name or DEFAULT_TIMEZONE)
    except (ZoneInfoNotFoundError, ValueError):
        return ZoneInfo(getattr(settings, "TIME_ZONE", None) or DEFAULT_TIMEZONE)


def local_now(now: datetime | None, tz_name: str | None) -> datetime:
    now = now or timezone.now()
    if timezone.is_naive(now):
        now = timezone.make_aware(now, dt_timezone.utc)
    return now.astimezone(get_zone(tz_name))


def local_today(now: datetime | None, tz_name: str | None):
    return local_now(now, tz_name).date()


def day_bounds(now: datetime | None, tz_name: str | None):
    """[start, end) of the local calendar day containing `now`, as aware datetimes."""
    zone = get_zone(tz_name)
    day = local_today(now, tz_name)
    start = datetime.combine(day, time.min, tzinfo=zone)
    return start, start + timedelta(days=1)
