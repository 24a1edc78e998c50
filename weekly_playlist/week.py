"""Calendar week boundaries for the weekly run"""
from datetime import datetime, time, timedelta
from typing import Optional, Union

from weekly_playlist.models.contribution import TimeWindow


def get_previous_week_dates(target_date: Optional[Union[str, datetime]] = None) -> TimeWindow:
    """
    Window covering the calendar week before the one containing target_date.

    The window ends at the most recent Monday 00:00:00.000 at or before
    target_date and starts seven days earlier. Boundaries are built in
    target_date's timezone, or the local timezone when target_date is
    naive or omitted.
    """
    if target_date is None:
        target_date = datetime.now().astimezone()
    elif isinstance(target_date, str):
        if target_date.endswith('Z'):
            target_date = target_date[:-1] + '+00:00'
        target_date = datetime.fromisoformat(target_date)

    start_of_target_week = target_date.date() - timedelta(days=target_date.weekday())
    start_of_previous_week = start_of_target_week - timedelta(days=7)

    tz = target_date.tzinfo
    end = datetime.combine(start_of_target_week, time.min, tzinfo=tz)
    start = datetime.combine(start_of_previous_week, time.min, tzinfo=tz)
    if tz is None:
        # naive datetimes are interpreted as local time
        end, start = end.astimezone(), start.astimezone()
    return TimeWindow(start=start, end=end)


def format_us_date(date: datetime) -> str:
    """e.g. 5/8/2023"""
    return f"{date.month}/{date.day}/{date.year}"


def format_us_datetime(date: datetime) -> str:
    """e.g. 5/8/2023, 3:04:05 PM"""
    hour = date.hour % 12 or 12
    meridiem = 'AM' if date.hour < 12 else 'PM'
    return f"{format_us_date(date)}, {hour}:{date.minute:02d}:{date.second:02d} {meridiem}"
