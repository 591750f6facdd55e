"""Local status snapshot (status.json) used by the summary and check commands."""

import json
import os
from datetime import date, datetime

from dates import fmt_full, iso_week_number, month_bounds, week_bounds, weekdays_between
from locales import Locale
from models import ExistingEntry, MissingDay, SaldoData, StatusCache, VacationData, WeeklyReport

DEFAULT_WEEKLY_TARGET = 40.0


def read_status_cache(path: str) -> StatusCache | None:
    """Return the cached status, or None if missing or unreadable."""
    if not os.path.exists(path):
        return None
    try:
        with open(path, encoding="utf-8") as f:
            return StatusCache.from_dict(json.load(f))
    except (OSError, ValueError, KeyError, TypeError):
        return None


def write_status_cache(path: str, cache: StatusCache) -> None:
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(cache.to_dict(), f, indent=2, ensure_ascii=False)
        f.write("\n")


def is_current_week(cache: StatusCache, today: date) -> bool:
    return cache.week_number == iso_week_number(today)


def missing_days(entries: list[ExistingEntry], start: date, end: date, locale: Locale) -> list[MissingDay]:
    """Weekdays in [start, end] with no entry in the grid."""
    booked = {e.date for e in entries}
    return [
        MissingDay(date=fmt_full(d), day_name=locale.day_name(d))
        for d in weekdays_between(start, end)
        if fmt_full(d) not in booked
    ]


def month_missing_days(entries: list[ExistingEntry], month_year: str, today: date, locale: Locale) -> list[MissingDay]:
    first, last = month_bounds(month_year)
    return missing_days(entries, first, min(last, today), locale)


def worked_in_week(entries: list[ExistingEntry], today: date) -> float:
    monday, friday = week_bounds(today)
    week_dates = {fmt_full(d) for d in weekdays_between(monday, friday)}
    return sum(e.hours_value or 0.0 for e in entries if e.date in week_dates)


def build_cache_from_entries(
    entries: list[ExistingEntry],
    month_year: str,
    today: date,
    locale: Locale,
    previous: StatusCache | None = None,
) -> StatusCache:
    """Cache computed from the month grid alone.

    Target, saldo and vacation are only visible on the weekly report, so
    they are carried over from the previous cache.
    """
    monday, friday = week_bounds(today)
    worked = worked_in_week(entries, today)
    target = previous.target if previous and previous.target else DEFAULT_WEEKLY_TARGET
    return StatusCache(
        updated_at=datetime.now().astimezone().isoformat(timespec="seconds"),
        month=month_year,
        week_number=iso_week_number(today),
        monday=fmt_full(monday),
        friday=fmt_full(friday),
        worked=worked,
        target=target,
        remaining=max(0.0, target - worked),
        missing_days=month_missing_days(entries, month_year, today, locale),
        saldo=previous.saldo if previous else None,
        vacation=previous.vacation if previous else None,
    )


def build_cache_from_report(
    entries: list[ExistingEntry],
    month_year: str,
    week_of: date,
    today: date,
    locale: Locale,
    weekly: WeeklyReport,
    saldo: SaldoData | None,
    vacation: VacationData | None,
) -> StatusCache:
    monday, friday = week_bounds(week_of)
    return StatusCache(
        updated_at=datetime.now().astimezone().isoformat(timespec="seconds"),
        month=month_year,
        week_number=iso_week_number(week_of),
        monday=fmt_full(monday),
        friday=fmt_full(friday),
        worked=weekly.worked,
        target=weekly.target,
        remaining=max(0.0, weekly.target - weekly.worked),
        missing_days=month_missing_days(entries, month_year, today, locale),
        saldo=(
            {"overtime": saldo.overtime, "extraTime": saldo.extra_time, "total": saldo.total}
            if saldo
            else None
        ),
        vacation=(
            {
                "remaining": vacation.remaining,
                "entitlement": vacation.entitlement,
                "remainingDays": round(vacation.remaining / 8, 1),
                "entitlementDays": round(vacation.entitlement / 8, 1),
            }
            if vacation
            else None
        ),
    )
