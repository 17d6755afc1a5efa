"""
Time arithmetic for booking windows.

Turns (start_time, duration) into the concrete end of the half-open window
[start_time, end_time). All values are facility-local wall-clock datetimes;
aware inputs are converted with to_facility_time() before they get here.
"""

import calendar
from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

from studyspace.core.config import get_settings
from studyspace.core.exceptions import InvalidDuration
from studyspace.schemas.duration import (
    ALLOWED_HOURS,
    DailyDuration,
    HourlyDuration,
    MonthlyDuration,
    YearlyDuration,
)

settings = get_settings()


def to_facility_time(value: datetime) -> datetime:
    """Naive datetimes are already facility-local; aware ones are converted."""
    if value.tzinfo is None:
        return value
    return value.astimezone(ZoneInfo(settings.FACILITY_TIMEZONE)).replace(tzinfo=None)


def add_months(value: datetime, months: int) -> datetime:
    """Calendar-month addition, clamping to the last day of a shorter target month."""
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def resolve_end_time(start_time: datetime, duration) -> datetime:
    if isinstance(duration, HourlyDuration):
        if duration.hours not in ALLOWED_HOURS:
            raise InvalidDuration(f"Hourly bookings must be one of {ALLOWED_HOURS} hours")
        return start_time + timedelta(hours=duration.hours)

    if isinstance(duration, DailyDuration):
        end_time = start_time.replace(
            hour=settings.FACILITY_CLOSE_HOUR, minute=0, second=0, microsecond=0
        )
        if end_time <= start_time:
            raise InvalidDuration(
                f"Full-day booking must start before closing time "
                f"({settings.FACILITY_CLOSE_HOUR:02d}:00)"
            )
        return end_time

    if isinstance(duration, MonthlyDuration):
        if duration.months < 1:
            raise InvalidDuration("Monthly bookings need at least one month")
        return add_months(start_time, duration.months)

    if isinstance(duration, YearlyDuration):
        return add_months(start_time, 12)

    raise InvalidDuration(f"Unrecognised booking duration: {duration!r}")
