#!/usr/bin/env python3
"""
Abacus time tracking from the command line.

Usage:
    abacus login                      # interactive login, saves the session
    abacus time status                # weekly report for this week
    abacus time list --month 01.2025  # month listing with missing days
    abacus time log --project da_dev --hours 8 --text "Development"
    abacus time batch --generate      # template for this week's missing days
    abacus summary                    # two-line status from the local cache
"""

import argparse
import asyncio
import traceback
from datetime import datetime

from playwright.async_api import Error as PlaywrightError

from abacus_browser import login, refresh
from abacus_time import (
    RunContext,
    batch_log_time,
    delete_time,
    generate_batch_file,
    list_time,
    load_month_entries,
    log_time,
    preview_batch,
    status_time,
)
from aliases import (
    add_alias,
    alias_section,
    remove_alias,
    resolve_project,
    resolve_service_type,
    save_aliases,
)
from batch_file import DEFAULT_SERVICE_TYPE, parse_batch_file
from dates import display_to_iso, format_time_ago, month_year_of, parse_iso, week_bounds, weekdays_between
from errors import AbacusError, ConfigError
from locales import LOCALE_STRINGS, Locale
from models import StatusCache, TimeEntry
from reporter import Reporter
from status_cache import is_current_week, read_status_cache
from utils import CONFIG_KEYS, load_config, save_config_file, validate_config


# ---------------------------------------------------------------------------
# Interactive helpers
# ---------------------------------------------------------------------------


def pick_alias(label: str, items: dict, reporter: Reporter, ask=input) -> str:
    """Numbered picker over configured aliases. Returns the chosen id."""
    if not items:
        raise ConfigError(f"No {label} aliases configured. Use 'abacus alias add' first.")

    entries = list(items.items())
    if len(entries) == 1:
        alias, ident = entries[0]
        reporter.info(f"{label}: {alias} -> {ident}")
        return ident

    width = max(len(alias) for alias, _ in entries)
    reporter.line(f"Select {label}:")
    for i, (alias, ident) in enumerate(entries, start=1):
        reporter.line(f"  [{i}] {alias.ljust(width)}  -> {ident}")

    answer = ask(f"Choose [1-{len(entries)}]: ").strip()
    try:
        choice = int(answer)
    except ValueError:
        choice = 0
    if not 1 <= choice <= len(entries):
        raise ValueError(f"Invalid selection '{answer}'")
    return entries[choice - 1][1]


def parse_selection(answer: str, count: int) -> list[int]:
    """Parse "1,3,5-7" / "a" into zero-based positions. Empty means none."""
    answer = answer.strip().lower()
    if not answer:
        return []
    if answer == "a":
        return list(range(count))

    positions = set()
    for part in answer.split(","):
        part = part.strip()
        if "-" in part:
            low, high = (int(p) for p in part.split("-", 1))
            numbers = range(low, high + 1)
        else:
            numbers = [int(part)]
        for n in numbers:
            if not 1 <= n <= count:
                raise ValueError(f"Selection {n} is out of range 1-{count}")
            positions.add(n - 1)
    return sorted(positions)


def print_summary(cache: StatusCache, t: Locale, reporter: Reporter, now: datetime | None = None) -> None:
    missing = ", ".join(d.day_name for d in cache.missing_days)
    reporter.line(
        t(
            "summary_line1",
            week=f"{cache.week_number:02d}",
            worked=f"{cache.worked:.1f}",
            target=f"{cache.target:.0f}",
            remaining=f"{cache.remaining:.1f}",
            missing=t("summary_missing", days=missing) if missing else "",
        )
    )

    if cache.saldo or cache.vacation:
        overtime = (cache.saldo or {}).get("overtime", 0.0)
        vacation_days = (cache.vacation or {}).get("remainingDays", 0.0)
        reporter.line(
            t(
                "summary_line2",
                overtime=f"{'+' if overtime >= 0 else ''}{overtime:.1f}",
                overtime_days=f"{overtime / 8:.1f}",
                vacation_days=f"{vacation_days:.1f}",
            )
        )
    reporter.line(t("summary_updated_ago", ago=format_time_ago(cache.updated_at, now)))


def run_check(cache: StatusCache | None, t: Locale, reporter: Reporter, now: datetime) -> None:
    """Shell start-up reminder. Silent when everything is booked."""
    if cache is None:
        reporter.line(t("check_reminder"))
        return

    updated = datetime.fromisoformat(cache.updated_at).astimezone()
    if updated.date() != now.date() or (cache.month and cache.month != month_year_of(now.date())):
        reporter.line(t("check_reminder"))
        return

    if not cache.missing_days:
        return
    reporter.warn(t("check_warning", days=", ".join(d.day_name for d in cache.missing_days)))
    first_missing = display_to_iso(cache.missing_days[0].date)
    hours = min(cache.remaining, 8.0) if cache.remaining > 0 else 8.0
    reporter.info(f'run: abacus time log --hours {hours:.2f} --text "{t("default_booking_text")}" --date {first_missing}')


def _resolve_project(value: str | None, aliases: dict, ctx: RunContext) -> str:
    if value:
        return resolve_project(aliases, value)
    return pick_alias("project", aliases["projects"], ctx.reporter, ctx.prompt)


def _resolve_service_type(value: str | None, aliases: dict, ctx: RunContext) -> str:
    if value:
        return resolve_service_type(aliases, value)
    if aliases["serviceTypes"]:
        return pick_alias("service-type", aliases["serviceTypes"], ctx.reporter, ctx.prompt)
    return DEFAULT_SERVICE_TYPE


def _require_valid_config(ctx: RunContext) -> bool:
    errors = validate_config(ctx.config)
    if errors:
        ctx.reporter.error("configuration is incomplete:")
        for err in errors:
            ctx.reporter.info(f"- {err}")
        return False
    return True


# ---------------------------------------------------------------------------
# Command handlers
# ---------------------------------------------------------------------------


def cmd_login(args, ctx: RunContext) -> int:
    if not _require_valid_config(ctx):
        return 1
    asyncio.run(login(ctx.config, ctx.reporter, ctx.locale))
    return 0


def cmd_refresh(args, ctx: RunContext) -> int:
    if not _require_valid_config(ctx):
        return 1
    return 0 if asyncio.run(refresh(ctx.config, ctx.reporter, ctx.locale)) else 1


def cmd_config_set(args, ctx: RunContext) -> int:
    if args.key not in CONFIG_KEYS:
        raise ValueError(f"Unknown config key '{args.key}'. Valid keys: {', '.join(CONFIG_KEYS)}")
    value = args.value.strip()
    if args.key == "url" and not value.startswith(("http://", "https://")):
        raise ValueError(f"URL must start with http:// or https:// (got '{value}')")
    if args.key == "locale" and value not in LOCALE_STRINGS:
        raise ValueError(f"Unsupported locale '{value}'. Available: {', '.join(LOCALE_STRINGS)}")

    path = save_config_file({CONFIG_KEYS[args.key]: value}, ctx.config.config_dir)
    ctx.reporter.ok(f"{args.key} = {value} ({path})")
    return 0


def cmd_config_show(args, ctx: RunContext) -> int:
    config = ctx.config
    r = ctx.reporter
    r.line(f"Config dir: {config.config_dir}")
    r.line(f"  url:         {config.url or '(not set)'} [{config.sources.get('url', '-')}]")
    r.line(f"  locale:      {config.locale} [{config.sources.get('locale', '-')}]")
    r.line(f"  headless:    {config.headless} [{config.sources.get('headless', '-')}]")
    r.line(f"  semi-manual: {config.semi_manual}")
    r.line(f"  session:     {config.state_path}")
    return 0


def cmd_summary(args, ctx: RunContext) -> int:
    cache = read_status_cache(ctx.config.status_cache_path)
    if cache and is_current_week(cache, ctx.today()):
        print_summary(cache, ctx.locale, ctx.reporter)
        return 0

    if not _require_valid_config(ctx):
        return 1
    asyncio.run(status_time(ctx))
    fresh = read_status_cache(ctx.config.status_cache_path)
    if fresh:
        ctx.reporter.line()
        print_summary(fresh, ctx.locale, ctx.reporter)
    return 0


def cmd_check(args, ctx: RunContext) -> int:
    run_check(read_status_cache(ctx.config.status_cache_path), ctx.locale, ctx.reporter, datetime.now())
    return 0


def cmd_time_status(args, ctx: RunContext) -> int:
    if not _require_valid_config(ctx):
        return 1
    if args.date:
        parse_iso(args.date)
    asyncio.run(status_time(ctx, args.date))
    return 0


def cmd_time_list(args, ctx: RunContext) -> int:
    if not _require_valid_config(ctx):
        return 1
    month = args.month or month_year_of(ctx.today())
    ctx.reporter.step(ctx.locale("listing_entries", month=month))
    asyncio.run(list_time(ctx, month))
    return 0


def cmd_time_log(args, ctx: RunContext) -> int:
    if not _require_valid_config(ctx):
        return 1
    t, r = ctx.locale, ctx.reporter
    aliases = ctx.aliases()
    entry = TimeEntry(
        project=_resolve_project(args.project, aliases, ctx),
        service_type=_resolve_service_type(args.service_type, aliases, ctx),
        hours=args.hours,
        date=args.date or ctx.today().isoformat(),
        description=args.text or "",
    )

    r.line()
    r.line(t("time_entry_label"))
    r.info(f"{t('header_project')}: {entry.project}")
    r.info(f"{t('service_type_label')}: {entry.service_type}")
    r.info(f"{t('header_hours')}: {entry.hours}")
    r.info(f"{t('header_date')}: {entry.date}")
    if entry.description:
        r.info(f"{t('text_label')}: {entry.description}")
    r.line()

    asyncio.run(log_time(ctx, entry))
    return 0


def _interactive_delete(ctx: RunContext) -> int:
    t, r = ctx.locale, ctx.reporter

    async def run() -> int:
        month = await load_month_entries(ctx)
        if not month.entries:
            r.info(t("no_entries_found"))
            return 0

        r.line()
        for i, e in enumerate(month.entries, start=1):
            r.line(f"  [{i}] {e.date}  {e.project}  {e.service_type}  {e.hours}  {e.text}")
        r.line()
        r.line(t("select_entries_to_delete"))
        positions = parse_selection(await ctx.ask("> "), len(month.entries))
        if not positions:
            r.info(t("no_entries_selected"))
            return 0

        r.line()
        return await month.delete([month.entries[p].row_index for p in positions])

    asyncio.run(run())
    return 0


def cmd_time_delete(args, ctx: RunContext) -> int:
    if not _require_valid_config(ctx):
        return 1
    if not args.date and not args.project:
        return _interactive_delete(ctx)
    if not args.date:
        raise ValueError("--date is required when --project is specified.")

    parse_iso(args.date)
    project = _resolve_project(args.project, ctx.aliases(), ctx)
    ctx.reporter.info(ctx.locale("deleting_entry_for", date=args.date, project=project))
    ctx.reporter.line()
    asyncio.run(delete_time(ctx, args.date, project))
    return 0


def _range_entries(args, ctx: RunContext, aliases: dict) -> list[TimeEntry] | None:
    if args.hours is None:
        ctx.reporter.error("--hours is required for range fill mode. Use --file to import from a file.")
        return None
    monday, friday = week_bounds(ctx.today())
    start = parse_iso(args.date_from) if args.date_from else monday
    end = parse_iso(args.date_to) if args.date_to else friday

    project = _resolve_project(args.project, aliases, ctx)
    service_type = _resolve_service_type(args.service_type, aliases, ctx)
    return [
        TimeEntry(project=project, service_type=service_type, hours=args.hours, date=d.isoformat(), description=args.text or "")
        for d in weekdays_between(start, end)
    ]


def _file_entries(args, ctx: RunContext, aliases: dict) -> list[TimeEntry]:
    entries, weekend_dates = parse_batch_file(args.file, include_weekends=args.include_weekends)
    for skipped in weekend_dates:
        ctx.reporter.warn(ctx.locale("batch_weekend_skipped", date=skipped))
    for entry in entries:
        entry.project = resolve_project(aliases, entry.project)
        entry.service_type = resolve_service_type(aliases, entry.service_type)
    return entries


def cmd_time_batch(args, ctx: RunContext) -> int:
    if not _require_valid_config(ctx):
        return 1
    t, r = ctx.locale, ctx.reporter

    if args.generate:
        monday, friday = week_bounds(ctx.today())
        asyncio.run(
            generate_batch_file(
                ctx,
                args.date_from or monday.isoformat(),
                args.date_to or friday.isoformat(),
                args.out,
            )
        )
        return 0

    aliases = ctx.aliases()
    if args.file:
        entries = _file_entries(args, ctx, aliases)
    else:
        entries = _range_entries(args, ctx, aliases)
        if entries is None:
            return 1

    if not entries:
        r.info(t("batch_no_entries"))
        return 0

    if args.dry_run:
        asyncio.run(preview_batch(ctx, entries))
        return 0

    r.line()
    r.line(t("batch_header", count=len(entries)))
    for e in entries:
        r.info(f"{e.date}  {e.project}  {e.service_type}  {e.hours}h  {e.description}")
    r.line()

    asyncio.run(batch_log_time(ctx, entries))
    return 0


def cmd_alias_list(args, ctx: RunContext) -> int:
    aliases = ctx.aliases()
    r = ctx.reporter
    if not aliases["projects"] and not aliases["serviceTypes"]:
        r.info("No aliases configured. Use 'abacus alias add' to create one.")
        return 0

    for title, section in (("Projects:", "projects"), ("Service Types:", "serviceTypes")):
        mapping = aliases[section]
        if not mapping:
            continue
        width = max(len(a) for a in mapping)
        r.line(title)
        for alias, ident in mapping.items():
            r.line(f"  {alias.ljust(width)}  -> {ident}")
    return 0


def cmd_alias_add(args, ctx: RunContext) -> int:
    aliases = ctx.aliases()
    add_alias(aliases, args.kind, args.alias, args.id)
    save_aliases(ctx.config.aliases_path, aliases)
    ctx.reporter.ok(f"Alias set: {args.alias} -> {args.id} ({alias_section(args.kind)})")
    return 0


def cmd_alias_remove(args, ctx: RunContext) -> int:
    aliases = ctx.aliases()
    if not remove_alias(aliases, args.kind, args.alias):
        ctx.reporter.error(f"Alias '{args.alias}' not found.")
        return 1
    save_aliases(ctx.config.aliases_path, aliases)
    ctx.reporter.ok(f"Removed alias: {args.alias}")
    return 0


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="abacus",
        description="Abacus time tracking automation",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # First time: configure the portal and log in
    abacus config set url https://abacus.example.com/portal/myabacus
    abacus login

    # Book today, 8 hours
    abacus time log --project 71100000001 --hours 8 --text "Development"

    # Preview filling the whole week
    abacus time batch --project da_dev --hours 8 --dry-run
        """,
    )
    parser.add_argument("--debug", action="store_true", help="Show debug output and tracebacks")
    commands = parser.add_subparsers(dest="command", metavar="<command>")

    commands.add_parser("login", help="Log in interactively and save the session").set_defaults(handler=cmd_login)
    commands.add_parser("refresh", help="Keep the saved session alive (for schedulers)").set_defaults(
        handler=cmd_refresh
    )
    commands.add_parser("summary", help="Compact weekly status (fetches if the cache is old)").set_defaults(
        handler=cmd_summary
    )
    commands.add_parser("check", help="Silent check for missing days (for shell start-up)").set_defaults(
        handler=cmd_check
    )

    config = commands.add_parser("config", help="Show or change configuration").add_subparsers(
        dest="config_command", metavar="<action>"
    )
    config_set = config.add_parser("set", help="Set a config value")
    config_set.add_argument("key", help=f"One of: {', '.join(CONFIG_KEYS)}")
    config_set.add_argument("value")
    config_set.set_defaults(handler=cmd_config_set)
    config.add_parser("show", help="Show resolved configuration").set_defaults(handler=cmd_config_show)

    time_parser = commands.add_parser("time", help="Time tracking commands").add_subparsers(
        dest="time_command", metavar="<action>"
    )

    status = time_parser.add_parser("status", help="Show the weekly report")
    status.add_argument("--date", help="Date within the target week (YYYY-MM-DD, default: today)")
    status.set_defaults(handler=cmd_time_status)

    listing = time_parser.add_parser("list", help="List entries for a month")
    listing.add_argument("--month", help="Month (MM.YYYY, default: current month)")
    listing.set_defaults(handler=cmd_time_list)

    log = time_parser.add_parser("log", help="Log a time entry")
    log.add_argument("--project", help="Project number or alias")
    log.add_argument("--hours", type=float, required=True, help="Number of hours")
    log.add_argument("--service-type", help=f"Service type (default: {DEFAULT_SERVICE_TYPE})")
    log.add_argument("--text", required=True, help="Description")
    log.add_argument("--date", help="Date (YYYY-MM-DD, default: today)")
    log.set_defaults(handler=cmd_time_log)

    delete = time_parser.add_parser("delete", help="Delete entries (interactive without flags)")
    delete.add_argument("--date", help="Date of the entry (YYYY-MM-DD)")
    delete.add_argument("--project", help="Project number or alias")
    delete.set_defaults(handler=cmd_time_delete)

    batch = time_parser.add_parser("batch", help="Create many entries in one browser session")
    batch.add_argument("--project", help="Project number or alias")
    batch.add_argument("--hours", type=float, help="Hours per entry")
    batch.add_argument("--service-type", help=f"Service type (default: {DEFAULT_SERVICE_TYPE})")
    batch.add_argument("--text", help="Description for all entries")
    batch.add_argument("--from", dest="date_from", help="Start date (default: Monday of this week)")
    batch.add_argument("--to", dest="date_to", help="End date (default: Friday of this week)")
    batch.add_argument("--file", help="Import entries from a JSON or CSV file")
    batch.add_argument("--generate", action="store_true", help="Write a template with the missing days")
    batch.add_argument("--out", default="batch.json", help="Output path for --generate (default: batch.json)")
    batch.add_argument("--dry-run", action="store_true", help="Preview without creating anything")
    batch.add_argument("--include-weekends", action="store_true", help="Keep weekend dates from --file")
    batch.set_defaults(handler=cmd_time_batch)

    alias = commands.add_parser("alias", help="Manage project and service type aliases").add_subparsers(
        dest="alias_command", metavar="<action>"
    )
    alias.add_parser("list", help="List aliases").set_defaults(handler=cmd_alias_list)
    alias_add = alias.add_parser("add", help="Add an alias, e.g. 'alias add project da_dev 71100000001'")
    alias_add.add_argument("kind", help="project or service-type")
    alias_add.add_argument("alias", help="Short name")
    alias_add.add_argument("id", help="Abacus number")
    alias_add.set_defaults(handler=cmd_alias_add)
    alias_remove = alias.add_parser("remove", help="Remove an alias")
    alias_remove.add_argument("kind", help="project or service-type")
    alias_remove.add_argument("alias")
    alias_remove.set_defaults(handler=cmd_alias_remove)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not getattr(args, "handler", None):
        parser.print_help()
        return 1

    reporter = Reporter(debug=args.debug)
    try:
        config = load_config()
        reporter.debug_enabled = args.debug or config.debug
        ctx = RunContext(config=config, locale=Locale(config.locale), reporter=reporter)
        return args.handler(args, ctx)
    except KeyboardInterrupt:
        reporter.line()
        reporter.error("Interrupted")
        return 1
    except (AbacusError, ValueError, OSError, PlaywrightError) as e:
        if reporter.debug_enabled:
            traceback.print_exc()
        reporter.error(str(e))
        return 1
    except Exception as e:
        if reporter.debug_enabled:
            traceback.print_exc()
        reporter.error(f"Unexpected error: {e}")
        return 1


if __name__ == "__main__":
    exit(main())
