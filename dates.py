"""Date helpers.

Abacus shows dates as DD.MM.YYYY and filters months as MM.YYYY; the CLI
speaks ISO (YYYY-MM-DD). All calculations use local calendar dates.
"""

import calendar
from datetime import date, datetime, timedelta

from patterns import Patterns


def parse_iso(value: str) -> date:
    return date.fromisoformat(value)


def format_date(iso: str) -> str:
    """YYYY-MM-DD -> DD.MM.YYYY"""
    y, m, d = iso.split("-")
    return f"{d}.{m}.{y}"


def fmt_full(d: date) -> str:
    return d.strftime("%d.%m.%Y")


def display_to_iso(display: str) -> str:
    """DD.MM.YYYY -> YYYY-MM-DD"""
    d, m, y = display.split(".")
    return f"{y}-{m}-{d}"


def to_month_year(iso: str) -> str:
    """YYYY-MM-DD -> MM.YYYY"""
    y, m, _ = iso.split("-")
    return f"{m}.{y}"


def month_year_of(d: date) -> str:
    return f"{d.month:02d}.{d.year}"


def parse_month_year(month_year: str) -> tuple[int, int]:
    """MM.YYYY -> (year, month)"""
    match = Patterns.MONTH_YEAR.match(month_year)
    if not match or not 1 <= int(match.group(1)) <= 12:
        raise ValueError(f"Invalid month '{month_year}'. Expected MM.YYYY (e.g., 01.2025)")
    return int(match.group(2)), int(match.group(1))


def month_bounds(month_year: str) -> tuple[date, date]:
    year, month = parse_month_year(month_year)
    last = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last)


def iso_week_number(d: date) -> int:
    return d.isocalendar()[1]


def week_bounds(d: date) -> tuple[date, date]:
    """Monday and Friday of the week containing d."""
    monday = d - timedelta(days=d.weekday())
    return monday, monday + timedelta(days=4)


def weekdays_between(start: date, end: date) -> list[date]:
    """All Mon-Fri dates in [start, end]."""
    days = []
    current = start
    while current <= end:
        if current.weekday() < 5:
            days.append(current)
        current += timedelta(days=1)
    return days


def is_weekend(iso: str) -> bool:
    return parse_iso(iso).weekday() >= 5


def months_in_range(start: date, end: date) -> list[str]:
    """Distinct MM.YYYY values touched by [start, end], in order."""
    months: list[str] = []
    current = start
    while current <= end:
        key = month_year_of(current)
        if key not in months:
            months.append(key)
        current += timedelta(days=1)
    return months


def format_time_ago(iso_timestamp: str, now: datetime | None = None) -> str:
    """Compact age of a timestamp: 5min, 3h, 2d."""
    then = datetime.fromisoformat(iso_timestamp)
    now = now or datetime.now(then.tzinfo)
    minutes = int((now - then).total_seconds() // 60)
    if minutes < 60:
        return f"{max(1, minutes)}min"
    hours = minutes // 60
    if hours < 24:
        return f"{hours}h"
    return f"{hours // 24}d"
