"""Time tracking operations against Abacus.

Every public operation opens its own browser session, runs its navigator
steps and closes the session again. Operations are wrapped in the captcha
retry policy: after a solved captcha the whole operation runs again from its
first navigation, never from the middle of a form.
"""

import asyncio
from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass
from datetime import date
from typing import Awaitable, Callable

from abacus_browser import open_session
from aliases import load_aliases, reverse_project, reverse_service_type
from batch_file import write_batch_template
from dates import (
    display_to_iso,
    fmt_full,
    format_date,
    iso_week_number,
    month_bounds,
    month_year_of,
    months_in_range,
    parse_iso,
    parse_month_year,
    to_month_year,
    week_bounds,
    weekdays_between,
)
from errors import NotFoundError, StaleRowError
from locales import Locale
from models import AppConfig, BatchResult, ExistingEntry, MissingDay, StatusCache, TimeEntry
from navigator import Navigator
from patterns import Patterns, parse_decimal, project_matches, strip_hours_unit
from reporter import Reporter
from status_cache import (
    build_cache_from_entries,
    build_cache_from_report,
    missing_days,
    read_status_cache,
    write_status_cache,
)
from utils import with_captcha_retry

LABEL_WIDTH = 22
DEFAULT_HOURS = 8.0
HOURS_PER_DAY = 8.0


@dataclass
class RunContext:
    """Everything an operation needs besides its arguments.

    Passed explicitly instead of module globals so that tests can swap the
    browser session, the clock, the prompt and the output stream.
    """

    config: AppConfig
    locale: Locale
    reporter: Reporter
    prompt: Callable[[str], str] = input
    session_factory: Callable[[], AbstractAsyncContextManager] | None = None
    today: Callable[[], date] = date.today

    def session(self) -> AbstractAsyncContextManager:
        if self.session_factory:
            return self.session_factory()
        return open_session(self.config, self.reporter, self.locale)

    async def ask(self, message: str) -> str:
        """Prompt the user; the answer is stripped and lower-cased."""
        try:
            answer = await asyncio.get_event_loop().run_in_executor(None, self.prompt, message)
        except EOFError:
            answer = ""
        return (answer or "").strip().lower()

    def aliases(self) -> dict:
        return load_aliases(self.config.aliases_path)


@dataclass
class MonthEntries:
    """Current month's rows plus a delegate deleting a selection of them."""

    month: str
    entries: list[ExistingEntry]
    delete: Callable[[list[int]], Awaitable[int]]


# ---------------------------------------------------------------------------
# Business rules
# ---------------------------------------------------------------------------


def find_matches(entries: list[ExistingEntry], iso_date: str, project: str) -> list[ExistingEntry]:
    """Rows booked on iso_date whose project label contains the project id."""
    target = format_date(iso_date)
    return [e for e in entries if e.date == target and project_matches(e.project, project)]


def deletion_order(entries: list[ExistingEntry]) -> list[ExistingEntry]:
    """Highest row first, so the rows still to delete never shift."""
    return sorted(entries, key=lambda e: e.row_index, reverse=True)


def group_by_month(items: list, key: Callable = lambda item: item) -> dict[str, list]:
    """Group items by the MM.YYYY of their ISO date, keeping first-seen order."""
    groups: dict[str, list] = {}
    for item in items:
        groups.setdefault(to_month_year(key(item)), []).append(item)
    return groups


def build_month_listing(
    entries: list[ExistingEntry], month_year: str, today: date, locale: Locale
) -> list[ExistingEntry | MissingDay]:
    """One block per weekday up to today, a MissingDay where nothing is booked.

    Rows on other dates (weekend bookings) follow at the end.
    """
    first, last = month_bounds(month_year)
    by_date: dict[str, list[ExistingEntry]] = {}
    for entry in entries:
        by_date.setdefault(entry.date, []).append(entry)

    rows: list[ExistingEntry | MissingDay] = []
    covered = set()
    for day in weekdays_between(first, min(last, today)):
        key = fmt_full(day)
        covered.add(key)
        if by_date.get(key):
            rows.extend(by_date[key])
        else:
            rows.append(MissingDay(date=key, day_name=locale.day_name(day)))
    rows.extend(e for e in entries if e.date not in covered)
    return rows


def find_missing_weekdays(entries: list[ExistingEntry], start: date, end: date) -> list[date]:
    booked = {e.date for e in entries}
    return [d for d in weekdays_between(start, end) if fmt_full(d) not in booked]


def batch_template_rows(missing: list[date], existing: list[ExistingEntry]) -> list[dict]:
    """Template rows for missing days, seeded from the most recent booking."""
    project = service_type = text = ""
    hours = DEFAULT_HOURS
    if existing:
        last = existing[-1]
        project = last.project.strip()
        service_type = last.service_type.strip()
        text = last.text.strip()
        hours = parse_decimal(last.hours) or DEFAULT_HOURS
    return [
        {"date": d.isoformat(), "project": project, "serviceType": service_type, "hours": hours, "text": text}
        for d in missing
    ]


def build_batch_preview(
    entries: list[TimeEntry], existing: list[ExistingEntry], locale: Locale
) -> tuple[list[list[str]], int, int]:
    """Merge existing rows and planned new rows into one date-sorted table.

    Returns:
        (table rows, new count, skipped duplicate count)
    """
    merged = []
    for e in existing:
        # Rows without a readable date card sort first
        key = display_to_iso(e.date) if Patterns.DISPLAY_DATE.match(e.date or "") else ""
        merged.append(
            (key, [e.date, e.project, e.service_type, strip_hours_unit(e.hours), e.text, locale("dry_run_existing")])
        )

    skipped = 0
    new = 0
    for entry in entries:
        if find_matches(existing, entry.date, entry.project):
            skipped += 1
            continue
        new += 1
        merged.append(
            (
                entry.date,
                [format_date(entry.date), entry.project, entry.service_type, f"{entry.hours:.2f}", entry.description, locale("dry_run_new")],
            )
        )

    merged.sort(key=lambda item: item[0])
    return [row for _, row in merged], new, skipped


def _table_headers(locale: Locale, with_status: bool = False) -> list[str]:
    headers = [
        locale("header_date"),
        locale("header_project"),
        locale("header_service_type"),
        locale("header_hours"),
        locale("header_text"),
    ]
    if with_status:
        headers.append(locale("header_status"))
    return headers


# ---------------------------------------------------------------------------
# Shared steps
# ---------------------------------------------------------------------------


async def _run(ctx: RunContext, operation: Callable[[], Awaitable]):
    return await with_captcha_retry(operation, on_retry=lambda: ctx.reporter.step(ctx.locale("captcha_retry")))


async def _read_months(ctx: RunContext, months: list[str], message_key: str = "reading_existing_entries") -> list[ExistingEntry]:
    async with ctx.session() as nav:
        await nav.open_entries_grid()
        found = []
        for month_year in months:
            await nav.set_month_filter(month_year)
            ctx.reporter.step(ctx.locale(message_key))
            found.extend(await nav.read_grid_rows())
        return found


def _update_cache_from_entries(ctx: RunContext, entries: list[ExistingEntry], month_year: str) -> None:
    path = ctx.config.status_cache_path
    cache = build_cache_from_entries(entries, month_year, ctx.today(), ctx.locale, read_status_cache(path))
    write_status_cache(path, cache)


async def _refresh_cache(ctx: RunContext, nav: Navigator) -> None:
    """Rebuild the status cache from the current month. Never fails the caller."""
    try:
        ctx.reporter.step(ctx.locale("updating_cache"))
        month_year = month_year_of(ctx.today())
        await nav.set_month_filter(month_year)
        _update_cache_from_entries(ctx, await nav.read_grid_rows(), month_year)
    except Exception as e:
        ctx.reporter.debug(f"status cache not updated: {e}")


def print_hints(ctx: RunContext, entries: list[ExistingEntry], missing_dates: list[str], hours: float) -> None:
    """Print ready-to-run commands for booking the missing days (DD.MM.YYYY)."""
    if not entries or not missing_dates:
        return
    t, r = ctx.locale, ctx.reporter
    aliases = ctx.aliases()
    last = entries[-1]
    project = reverse_project(aliases, last.project) or last.project
    service_type = reverse_service_type(aliases, last.service_type) or last.service_type
    text = last.text or "..."
    first_day = display_to_iso(missing_dates[0])
    last_day = display_to_iso(missing_dates[-1])
    common = f'--project {project} --hours {hours:.2f} --service-type {service_type} --text "{text}"'

    r.line()
    r.line(f"  {t('hint_quick_actions')}")
    r.line()
    r.line(f"  {t('hint_log_single')}")
    r.line(f"    abacus time log {common} --date {first_day}")
    if len(missing_dates) > 1:
        r.line()
        r.line(f"  {t('hint_batch_fill')}")
        r.line(f"    abacus time batch {common} --from {first_day} --to {last_day}")
        r.line()
        r.line(f"  {t('hint_batch_generate')}")
        r.line(f"    abacus time batch --generate --from {first_day} --to {last_day}")
        r.line("    abacus time batch --file batch.json")
    r.line()


# ---------------------------------------------------------------------------
# Operations
# ---------------------------------------------------------------------------


async def fetch_existing_entries(ctx: RunContext, dates: list[str]) -> list[ExistingEntry]:
    """Rows of every month touched by dates (YYYY-MM-DD), one grid visit."""
    months = list(group_by_month(dates))
    return await _run(ctx, lambda: _read_months(ctx, months))


def _signed(value: float) -> str:
    return f"+{value:.2f}" if value > 0 else f"{value:.2f}"


async def status_time(ctx: RunContext, iso_date: str | None = None) -> StatusCache:
    """Show the weekly report for the week containing iso_date (default today)."""
    t, r = ctx.locale, ctx.reporter
    day = parse_iso(iso_date) if iso_date else ctx.today()
    month_year = month_year_of(day)

    async def operation():
        async with ctx.session() as nav:
            await nav.open_entries_grid()
            await nav.set_month_filter(month_year)
            r.step(t("reading_time_report"))
            entries = await nav.read_grid_rows()

            await nav.open_weekly_report()
            weekly = await nav.read_weekly_totals()
            saldo = await nav.read_overtime_balance()
            vacation = await nav.read_vacation_balance()
        return entries, weekly, saldo, vacation

    entries, weekly, saldo, vacation = await _run(ctx, operation)
    if weekly is None:
        raise NotFoundError(t("time_report_not_found"))

    today = ctx.today()
    monday, friday = week_bounds(day)
    week_missing = missing_days(entries, monday, min(today, friday), t)
    remaining = max(0.0, weekly.target - weekly.worked)
    hours_unit, days_unit = t("hours_unit"), t("days_unit")

    def label(key: str) -> str:
        return f"  {(t(key) + ':').ljust(LABEL_WIDTH)}"

    r.line()
    r.line(t("status_week_header", week=iso_week_number(day), start=monday.strftime("%d.%m."), end=fmt_full(friday)))
    r.line()
    r.line(f"{label('status_worked')} {weekly.worked:.2f} / {weekly.target:.2f} {hours_unit}")
    r.line(f"{label('status_remaining')} {remaining:.2f} {hours_unit}")
    if week_missing:
        r.line(f"{label('status_missing_days')} {', '.join(d.day_name for d in week_missing)}")

    if saldo:
        r.line()
        r.line(t("status_balances_header"))
        r.line(f"{label('status_overtime')} {_signed(saldo.overtime)} {hours_unit} ({saldo.overtime / HOURS_PER_DAY:.1f}{days_unit})")
        r.line(f"{label('status_extra_time')} {_signed(saldo.extra_time)} {hours_unit} ({saldo.extra_time / HOURS_PER_DAY:.1f}{days_unit})")

    if vacation:
        r.line()
        r.line(t("status_vacation_header"))
        r.line(
            f"{label('status_vacation_remaining')} {vacation.remaining:.2f} / {vacation.entitlement:.2f} {hours_unit} "
            f"({vacation.remaining / HOURS_PER_DAY:.1f} / {vacation.entitlement / HOURS_PER_DAY:.1f}{days_unit})"
        )
        r.line(
            f"{label('status_vacation_planned')} {vacation.planned_by_year_end:.2f} {hours_unit} "
            f"({vacation.planned_by_year_end / HOURS_PER_DAY:.1f}{days_unit})"
        )

    cache = build_cache_from_report(entries, month_year, day, today, t, weekly, saldo, vacation)
    if month_year == month_year_of(today):
        try:
            write_status_cache(ctx.config.status_cache_path, cache)
        except OSError as e:
            r.debug(f"status cache not written: {e}")

    if weekly.difference < 0:
        hours = min(abs(weekly.difference), HOURS_PER_DAY)
        print_hints(ctx, entries, [d.date for d in week_missing], hours)
    else:
        r.line()
    return cache


async def list_time(ctx: RunContext, month_year: str) -> list[ExistingEntry | MissingDay]:
    """List a month's entries with a marker row for every unbooked weekday."""
    t, r = ctx.locale, ctx.reporter
    parse_month_year(month_year)

    entries = await _run(ctx, lambda: _read_months(ctx, [month_year], "reading_entries"))
    today = ctx.today()
    listing = build_month_listing(entries, month_year, today, t)

    table = []
    missing = []
    for row in listing:
        if isinstance(row, MissingDay):
            missing.append(row.date)
            table.append([row.date, f"! {t('missing_day_row')}", "", "", ""])
        else:
            table.append([row.date, row.project, row.service_type, row.hours, row.text])

    r.line()
    r.table(_table_headers(t), table)
    r.line()
    r.info(t("entries_total", count=len(entries)))
    if missing:
        r.warn(t("missing_days_summary", count=len(missing)))
        print_hints(ctx, entries, missing, DEFAULT_HOURS)

    if month_year == month_year_of(today):
        try:
            _update_cache_from_entries(ctx, entries, month_year)
        except OSError as e:
            r.debug(f"status cache not written: {e}")
    return listing


async def log_time(ctx: RunContext, entry: TimeEntry) -> None:
    """Book one entry, offering to update an existing booking for the same day and project."""
    t, r = ctx.locale, ctx.reporter

    async def operation():
        async with ctx.session() as nav:
            await nav.open_entries_grid()
            await nav.set_month_filter(to_month_year(entry.date))
            r.step(t("reading_existing_entries"))
            matches = find_matches(await nav.read_grid_rows(), entry.date, entry.project)

            if matches:
                match = matches[0]
                r.line()
                r.warn(t("already_booked", hours=match.hours, date=match.date, project=match.project))
                r.info(f"{t('service_type_label')}: {match.service_type}")
                if match.text:
                    r.info(f"{t('text_label')}: {match.text}")
                r.line()
                if await ctx.ask(t("prompt_update_or_new")) == t.update_yes:
                    r.step(t("opening_existing_entry"))
                    await nav.open_row_for_edit(match)
                else:
                    r.step(t("creating_new_entry"))
                    await nav.open_new_entry()
            else:
                r.step(t("no_existing_entry_creating"))
                await nav.open_new_entry()

            await nav.fill_entry_form(entry)

            if ctx.config.semi_manual:
                await ctx.ask(t("semi_manual_save"))
                nav.confirm_manual_save()
            else:
                r.step(t("saving"))
                await nav.save_open_entry()
            r.ok(t("saved"))

            await _refresh_cache(ctx, nav)

    await _run(ctx, operation)


async def _choose_deletions(ctx: RunContext, matches: list[ExistingEntry], target: str, project: str) -> list[ExistingEntry]:
    t, r = ctx.locale, ctx.reporter
    if len(matches) == 1:
        match = matches[0]
        r.line(t("found_entry", hours=match.hours, date=match.date, project=match.project))
        r.info(f"{t('service_type_label')}: {match.service_type}")
        if match.text:
            r.info(f"{t('text_label')}: {match.text}")
        r.line()
        if await ctx.ask(t("prompt_confirm_delete")) != t.confirm_yes:
            r.info(t("cancelled"))
            return []
        return [match]

    r.line(t("multiple_entries_found", count=len(matches), date=target, project=project))
    r.line()
    for i, m in enumerate(matches, start=1):
        r.line(f"  [{i}] {m.hours}  {m.service_type}  {m.text or t('no_text')}")
    r.line()

    answer = await ctx.ask(t("prompt_which_delete", count=len(matches)))
    if answer == "a":
        return list(matches)
    if answer == "n":
        r.info(t("cancelled"))
        return []
    try:
        choice = int(answer) - 1
    except ValueError:
        choice = -1
    if not 0 <= choice < len(matches):
        r.warn(t("invalid_selection"))
        return []
    return [matches[choice]]


async def delete_time(ctx: RunContext, iso_date: str, project: str) -> int:
    """Delete bookings for a day and project. Returns the number deleted."""
    t, r = ctx.locale, ctx.reporter
    target = format_date(iso_date)

    async def operation():
        async with ctx.session() as nav:
            await nav.open_entries_grid()
            await nav.set_month_filter(to_month_year(iso_date))
            r.step(t("reading_entries"))
            matches = find_matches(await nav.read_grid_rows(), iso_date, project)
            if not matches:
                r.info(t("no_entry_found", date=target, project=project))
                return 0

            selected = deletion_order(await _choose_deletions(ctx, matches, target, project))
            if not selected:
                return 0

            for i, entry in enumerate(selected, start=1):
                r.step(t("deleting_entry", current=i, total=len(selected)))
                await nav.open_row_for_edit(entry)
                await nav.delete_open_entry()

            if len(selected) == 1:
                r.ok(t("entry_deleted"))
            else:
                r.ok(t("entries_deleted", count=len(selected)))
            await _refresh_cache(ctx, nav)
            return len(selected)

    return await _run(ctx, operation)


async def load_month_entries(ctx: RunContext) -> MonthEntries:
    """Current month's rows for an interactive picker.

    The returned delegate takes row indices from these rows. It runs in a
    fresh session, because the picker may stay open for a long time: the
    grid is re-read and every chosen row must still show the same booking,
    otherwise nothing is deleted.
    """
    t, r = ctx.locale, ctx.reporter
    month_year = month_year_of(ctx.today())
    entries = await _run(ctx, lambda: _read_months(ctx, [month_year], "reading_entries"))
    by_index = {e.row_index: e for e in entries}

    async def delete_rows(indices: list[int]) -> int:
        unknown = [i for i in indices if i not in by_index]
        if unknown:
            raise NotFoundError("Unknown row selected", row_index=unknown[0])
        chosen = deletion_order([by_index[i] for i in set(indices)])

        async def operation():
            async with ctx.session() as nav:
                await nav.open_entries_grid()
                await nav.set_month_filter(month_year)
                current = {e.row_index: e for e in await nav.read_grid_rows()}

                handles = []
                for old in chosen:
                    fresh = current.get(old.row_index)
                    if fresh is None or not fresh.same_row_content(old):
                        raise StaleRowError(
                            "Entries changed since they were listed. Nothing was deleted, please run the command again",
                            row_index=old.row_index,
                            date=old.date,
                        )
                    handles.append(fresh)

                for i, row in enumerate(handles, start=1):
                    r.step(t("deleting_entry", current=i, total=len(handles)))
                    await nav.delete_row_inline(row)
                r.ok(t("entries_deleted", count=len(handles)))
                await _refresh_cache(ctx, nav)
                return len(handles)

        return await _run(ctx, operation)

    return MonthEntries(month=month_year, entries=entries, delete=delete_rows)


async def batch_log_time(ctx: RunContext, entries: list[TimeEntry]) -> BatchResult:
    """Create many entries in one session, skipping days already booked for the project."""
    t, r = ctx.locale, ctx.reporter

    async def operation():
        result = BatchResult()
        async with ctx.session() as nav:
            await nav.open_entries_grid()
            position = 0
            for month_year, month_entries in group_by_month(entries, key=lambda e: e.date).items():
                await nav.set_month_filter(month_year)
                r.step(t("reading_existing_entries"))
                existing = await nav.read_grid_rows()

                for entry in month_entries:
                    position += 1
                    shown_date = format_date(entry.date)
                    if find_matches(existing, entry.date, entry.project):
                        r.warn(t("batch_skipping", date=shown_date, project=entry.project))
                        result.skipped += 1
                        continue

                    r.step(t("batch_creating", current=position, total=len(entries), date=shown_date))
                    await nav.open_new_entry()
                    await nav.fill_entry_form(entry)
                    r.step(t("saving"))
                    await nav.save_open_entry()
                    await nav.close_side_panel_if_open()
                    result.created += 1

            r.ok(t("batch_summary", created=result.created, skipped=result.skipped))
            if result.created:
                await _refresh_cache(ctx, nav)
        return result

    return await _run(ctx, operation)


async def preview_batch(ctx: RunContext, entries: list[TimeEntry]) -> tuple[int, int, int]:
    """Dry run: show what a batch would create next to what already exists.

    Returns:
        (new, skipped, existing) counts.
    """
    t, r = ctx.locale, ctx.reporter
    existing = await fetch_existing_entries(ctx, [e.date for e in entries])
    rows, new, skipped = build_batch_preview(entries, existing, t)

    r.line()
    r.line(t("batch_dry_run"))
    r.line()
    r.table(_table_headers(t, with_status=True), rows)
    r.line()
    r.info(t("dry_run_summary", new=new, skipped=skipped, existing=len(existing)))
    return new, skipped, len(existing)


async def generate_batch_file(ctx: RunContext, from_date: str, to_date: str, out_path: str) -> int:
    """Write a batch template for every unbooked weekday in [from_date, to_date].

    Returns:
        Number of template rows written (0 writes nothing).
    """
    t, r = ctx.locale, ctx.reporter
    start, end = parse_iso(from_date), parse_iso(to_date)
    if end < start:
        raise ValueError(f"--from ({from_date}) is after --to ({to_date})")

    existing = await _run(ctx, lambda: _read_months(ctx, months_in_range(start, end), "reading_entries"))
    missing = find_missing_weekdays(existing, start, end)
    if not missing:
        r.info(t("batch_no_entries"))
        return 0

    write_batch_template(out_path, batch_template_rows(missing, existing))
    r.ok(t("batch_generated", path=out_path, count=len(missing)))
    r.info(t("batch_generate_hint", path=out_path))
    return len(missing)
