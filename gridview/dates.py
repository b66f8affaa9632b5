from __future__ import annotations

import calendar
from datetime import date, datetime, timedelta
from typing import Union

import pandas as pd

DateLike = Union[date, datetime, pd.Timestamp, str]

MONTH_ABBR = ["Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]
DAY_LABELS = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]


def as_date(value: DateLike) -> date:
    """Reduce any supported date-like value to a naive calendar date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return pd.Timestamp(value).date()


def days_in_year(year: int) -> int:
    return 366 if calendar.isleap(year) else 365


def day_of_year(value: DateLike) -> int:
    # Calendar-date arithmetic only, so no UTC/local offset can move the day.
    d = as_date(value)
    return (d - date(d.year, 1, 1)).days + 1


def date_from_day_of_year(day: int, year: int) -> date:
    day = int(day)
    if day < 1 or day > days_in_year(year):
        raise ValueError(f"day {day} is outside 1..{days_in_year(year)} for {year}")
    return date(year, 1, 1) + timedelta(days=day - 1)


def day_of_week(value: DateLike) -> int:
    """ISO weekday: 1=Monday .. 7=Sunday."""
    return as_date(value).isoweekday()


def ordinal_suffix(day: int) -> str:
    if 11 <= day % 100 <= 13:
        return "th"
    return {1: "st", 2: "nd", 3: "rd"}.get(day % 10, "th")


def format_human_date(value: DateLike) -> str:
    d = as_date(value)
    return f"{MONTH_ABBR[d.month - 1]} {d.day}{ordinal_suffix(d.day)}, {d.year}"


def format_range_label(min_day: int, max_day: int, year: int) -> str:
    # Day 366 of a common year is shown as the last day of that year.
    last = days_in_year(year)
    min_day, max_day = min(min_day, last), min(max_day, last)
    start = format_human_date(date_from_day_of_year(min_day, year))
    end = format_human_date(date_from_day_of_year(max_day, year))
    return f"Range: {start} - {end}"
