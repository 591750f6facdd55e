"""Tests for the time tracking operations.

Operations run against FakeBackend from conftest, which keeps the grid rows
across sessions and enforces the same row handle rules as the navigator.
"""

import asyncio
import json
from datetime import date

import pytest

from abacus_time import (
    batch_log_time,
    batch_template_rows,
    build_batch_preview,
    build_month_listing,
    delete_time,
    deletion_order,
    find_matches,
    generate_batch_file,
    group_by_month,
    list_time,
    load_month_entries,
    log_time,
    preview_batch,
    status_time,
)
from conftest import row
from errors import CaptchaLoopError, NotFoundError, StaleRowError
from locales import Locale
from models import BatchResult, ExistingEntry, MissingDay, TimeEntry
from status_cache import read_status_cache

EN = Locale("en")
PROJECT = "71100000001"
LABEL = "71100000001 – Internal"


def entry(day, project=PROJECT, hours=8.0, text="Dev"):
    return TimeEntry(project=project, service_type="1435", hours=hours, date=day, description=text)


def handle(display_date, project=LABEL, index=0, hours="8.00"):
    return ExistingEntry(display_date, project, "1435 Development", "Work", hours, "", row_index=index)


# ---------------------------------------------------------------------------
# Business rules
# ---------------------------------------------------------------------------

class TestFindMatches:

    def test_same_day_and_project(self):
        rows = [handle("15.01.2025"), handle("15.01.2025", "42 – Other"), handle("16.01.2025")]
        assert find_matches(rows, "2025-01-15", PROJECT) == [rows[0]]

    def test_short_id_is_not_a_duplicate_of_long_one(self):
        assert find_matches([handle("15.01.2025")], "2025-01-15", "711") == []


class TestDeletionOrder:

    def test_highest_row_first(self):
        rows = [handle("15.01.2025", index=i) for i in (1, 4, 2)]
        assert [r.row_index for r in deletion_order(rows)] == [4, 2, 1]


class TestGrouping:

    def test_group_by_month_keeps_order(self):
        dates = ["2025-02-03", "2025-01-13", "2025-02-04"]
        assert group_by_month(dates) == {"02.2025": ["2025-02-03", "2025-02-04"], "01.2025": ["2025-01-13"]}


class TestMonthListing:

    def test_marks_missing_weekdays_up_to_today(self):
        rows = [handle("13.01.2025"), handle("14.01.2025"), handle("14.01.2025", index=2, hours="2.00")]
        listing = build_month_listing(rows, "01.2025", date(2025, 1, 15), EN)

        missing = [r.date for r in listing if isinstance(r, MissingDay)]
        assert missing == [
            "01.01.2025", "02.01.2025", "03.01.2025",
            "06.01.2025", "07.01.2025", "08.01.2025", "09.01.2025", "10.01.2025",
            "15.01.2025",
        ]
        # Both bookings on the 14th are shown
        assert [r.hours for r in listing if isinstance(r, ExistingEntry) and r.date == "14.01.2025"] == ["8.00", "2.00"]

    def test_every_weekend_booking_listed(self):
        rows = [handle("11.01.2025", hours="2.00"), handle("11.01.2025", hours="3.00")]
        listing = build_month_listing(rows, "01.2025", date(2025, 1, 15), EN)
        assert listing[-2:] == rows

    def test_past_month_lists_whole_month(self):
        listing = build_month_listing([], "12.2024", date(2025, 1, 15), EN)
        assert len(listing) == 22
        assert listing[-1].date == "31.12.2024"
        assert listing[-1].day_name == "Tue"


class TestBatchHelpers:

    def test_template_rows_seeded_from_last_booking(self):
        existing = [handle("13.01.2025"), ExistingEntry("14.01.2025", LABEL, "1435 Development", "Review", "4,50", "", 1)]
        rows = batch_template_rows([date(2025, 1, 15)], existing)
        assert rows == [
            {"date": "2025-01-15", "project": LABEL, "serviceType": "1435 Development", "hours": 4.5, "text": "Review"}
        ]

    def test_template_rows_without_history(self):
        rows = batch_template_rows([date(2025, 1, 15)], [])
        assert rows[0]["hours"] == 8.0 and rows[0]["project"] == ""

    def test_preview_merges_and_sorts(self):
        existing = [handle("14.01.2025")]
        entries = [entry("2025-01-15"), entry("2025-01-14"), entry("2025-01-13")]
        rows, new, skipped = build_batch_preview(entries, existing, EN)
        assert (new, skipped) == (2, 1)
        assert [r[0] for r in rows] == ["13.01.2025", "14.01.2025", "15.01.2025"]
        assert rows[1][-1] == EN("dry_run_existing")
        assert rows[0][-1] == EN("dry_run_new")

    def test_preview_keeps_row_without_date(self):
        existing = [handle("14.01.2025"), handle("", index=1)]
        rows, new, skipped = build_batch_preview([entry("2025-01-15")], existing, EN)
        assert (new, skipped) == (1, 0)
        assert [r[0] for r in rows] == ["", "14.01.2025", "15.01.2025"]


# ---------------------------------------------------------------------------
# Operations
# ---------------------------------------------------------------------------

def run(coro):
    return asyncio.run(coro)


class TestLogTime:

    def test_creates_new_entry(self, make_ctx, backend, config):
        backend.rows = [row("13.01.2025", LABEL)]
        ctx = make_ctx()
        run(log_time(ctx, entry("2025-01-15")))

        assert [r.date for r in backend.created] == ["15.01.2025"]
        assert ctx.prompt.questions == []
        assert "save" in backend.calls
        # Cache refreshed from the current month after saving
        cache = read_status_cache(config.status_cache_path)
        assert cache.worked == 16.0

    def test_duplicate_update(self, make_ctx, backend):
        backend.rows = [row("13.01.2025", LABEL), row("15.01.2025", LABEL, hours="4.00")]
        run(log_time(make_ctx("u"), entry("2025-01-15", hours=8.0)))

        assert backend.created == []
        assert [r.hours for r in backend.updated] == ["8.00"]
        assert ("open_row", 1) in backend.calls
        assert len(backend.rows) == 2

    def test_duplicate_add_new(self, make_ctx, backend):
        backend.rows = [row("15.01.2025", LABEL, hours="4.00")]
        run(log_time(make_ctx("n"), entry("2025-01-15", hours=4.0)))

        assert len(backend.created) == 1
        assert backend.updated == []
        assert len(backend.rows) == 2

    def test_no_answer_adds_new(self, make_ctx, backend):
        backend.rows = [row("15.01.2025", LABEL)]
        run(log_time(make_ctx(), entry("2025-01-15")))
        assert len(backend.created) == 1

    def test_prefix_of_other_project_is_not_duplicate(self, make_ctx, backend):
        backend.rows = [row("15.01.2025", LABEL)]
        ctx = make_ctx()
        run(log_time(ctx, entry("2025-01-15", project="711")))
        assert ctx.prompt.questions == []
        assert len(backend.created) == 1

    def test_semi_manual_waits_for_user(self, make_ctx, backend, config):
        config.semi_manual = True
        ctx = make_ctx("")
        run(log_time(ctx, entry("2025-01-15")))
        assert "manual_save" in backend.calls
        assert "save" not in backend.calls
        assert ctx.prompt.questions == [EN("semi_manual_save")]

    def test_captcha_restarts_from_first_navigation(self, make_ctx, backend, output):
        backend.captcha_sessions = 1
        run(log_time(make_ctx(), entry("2025-01-15")))

        assert backend.sessions == 2
        assert backend.calls.count("open_entries_grid") == 2
        assert len(backend.created) == 1
        assert EN("captcha_retry") in output.getvalue()

    def test_second_captcha_is_fatal(self, make_ctx, backend):
        backend.captcha_sessions = 2
        with pytest.raises(CaptchaLoopError):
            run(log_time(make_ctx(), entry("2025-01-15")))
        assert backend.created == []


class TestDeleteTime:

    ROWS = [
        ("13.01.2025", LABEL, "8.00"),
        ("15.01.2025", LABEL, "1.00"),
        ("15.01.2025", LABEL, "2.00"),
        ("14.01.2025", LABEL, "8.00"),
        ("15.01.2025", LABEL, "3.00"),
        ("15.01.2025", "42 – Other", "1.00"),
    ]

    @pytest.fixture(autouse=True)
    def grid(self, backend):
        backend.rows = [row(d, p, hours=h) for d, p, h in self.ROWS]

    def test_delete_all_matches_highest_first(self, make_ctx, backend):
        assert run(delete_time(make_ctx("a"), "2025-01-15", PROJECT)) == 3
        assert [r.hours for r in backend.deleted] == ["3.00", "2.00", "1.00"]
        assert [(r.date, r.project) for r in backend.rows] == [
            ("13.01.2025", LABEL),
            ("14.01.2025", LABEL),
            ("15.01.2025", "42 – Other"),
        ]

    def test_delete_one_of_several(self, make_ctx, backend):
        assert run(delete_time(make_ctx("2"), "2025-01-15", PROJECT)) == 1
        assert [r.hours for r in backend.deleted] == ["2.00"]

    def test_cancel_choice(self, make_ctx, backend, output):
        assert run(delete_time(make_ctx("n"), "2025-01-15", PROJECT)) == 0
        assert backend.deleted == []
        assert EN("cancelled") in output.getvalue()

    @pytest.mark.parametrize("answer", ["", "9", "x"])
    def test_invalid_choice(self, make_ctx, backend, output, answer):
        assert run(delete_time(make_ctx(answer), "2025-01-15", PROJECT)) == 0
        assert backend.deleted == []
        assert EN("invalid_selection") in output.getvalue()

    def test_single_match_confirmed(self, make_ctx, backend):
        assert run(delete_time(make_ctx("y"), "2025-01-14", PROJECT)) == 1
        assert [r.date for r in backend.deleted] == ["14.01.2025"]

    def test_single_match_needs_locale_yes(self, make_ctx, backend):
        # "j" confirms in German, not in English
        assert run(delete_time(make_ctx("j"), "2025-01-14", PROJECT)) == 0
        assert backend.deleted == []

    def test_nothing_found(self, make_ctx, backend):
        ctx = make_ctx()
        assert run(delete_time(ctx, "2025-01-16", PROJECT)) == 0
        assert ctx.prompt.questions == []


class TestBulkDelete:

    @pytest.fixture(autouse=True)
    def grid(self, backend):
        backend.rows = [
            row("13.01.2025", LABEL, text="A"),
            row("14.01.2025", LABEL, text="B"),
            row("15.01.2025", LABEL, text="C"),
            row("15.01.2025", "42 – Other", text="D"),
        ]

    def test_deletes_selected_rows(self, make_ctx, backend):
        month = run(load_month_entries(make_ctx()))
        assert month.month == "01.2025"
        assert [e.text for e in month.entries] == ["A", "B", "C", "D"]

        assert run(month.delete([1, 3])) == 2
        assert [r.text for r in backend.deleted] == ["D", "B"]
        assert [r.text for r in backend.rows] == ["A", "C"]
        # Listing and deleting are separate sessions
        assert backend.sessions == 2

    def test_changed_grid_deletes_nothing(self, make_ctx, backend):
        month = run(load_month_entries(make_ctx()))
        backend.rows.insert(0, row("02.01.2025", LABEL, text="new"))

        with pytest.raises(StaleRowError):
            run(month.delete([1, 3]))
        assert backend.deleted == []

    def test_unknown_row(self, make_ctx, backend):
        month = run(load_month_entries(make_ctx()))
        with pytest.raises(NotFoundError):
            run(month.delete([7]))
        assert backend.sessions == 1


class TestBatch:

    def test_skips_existing_and_spans_months(self, make_ctx, backend):
        backend.rows = [row("13.01.2025", LABEL)]
        entries = [entry("2025-01-13"), entry("2025-01-14"), entry("2025-02-03")]
        result = run(batch_log_time(make_ctx(), entries))

        assert result == BatchResult(created=2, skipped=1)
        assert [r.date for r in backend.created] == ["14.01.2025", "03.02.2025"]
        months = [c[1] for c in backend.calls if isinstance(c, tuple) and c[0] == "month"]
        assert months[:2] == ["01.2025", "02.2025"]
        assert backend.calls.count("close_panel") == 2

    def test_preview_creates_nothing(self, make_ctx, backend, output):
        backend.rows = [row("13.01.2025", LABEL)]
        entries = [entry("2025-01-13"), entry("2025-01-14")]
        assert run(preview_batch(make_ctx(), entries)) == (1, 1, 1)
        assert backend.created == []
        assert EN("dry_run_new") in output.getvalue()


class TestGenerateBatchFile:

    def test_writes_missing_days(self, make_ctx, backend, tmp_path):
        backend.rows = [row("13.01.2025", LABEL), row("14.01.2025", LABEL, hours="4,50", text="Review")]
        out = str(tmp_path / "batch.json")
        assert run(generate_batch_file(make_ctx(), "2025-01-13", "2025-01-19", out)) == 3

        with open(out, encoding="utf-8") as f:
            rows = json.load(f)
        assert [r["date"] for r in rows] == ["2025-01-15", "2025-01-16", "2025-01-17"]
        assert rows[0]["hours"] == 4.5
        assert rows[0]["text"] == "Review"

    def test_nothing_missing_writes_nothing(self, make_ctx, backend, tmp_path):
        backend.rows = [row(f"{d}.01.2025", LABEL) for d in ("13", "14", "15", "16", "17")]
        out = tmp_path / "batch.json"
        assert run(generate_batch_file(make_ctx(), "2025-01-13", "2025-01-17", str(out))) == 0
        assert not out.exists()

    def test_reversed_range(self, make_ctx, backend, tmp_path):
        with pytest.raises(ValueError, match="after"):
            run(generate_batch_file(make_ctx(), "2025-01-17", "2025-01-13", str(tmp_path / "b.json")))
        assert backend.sessions == 0


class TestStatusAndList:

    def test_status_prints_report_and_writes_cache(self, make_ctx, backend, config, output):
        backend.rows = [row("13.01.2025", LABEL), row("14.01.2025", LABEL)]
        cache = run(status_time(make_ctx()))

        text = output.getvalue()
        assert "Week 03" in text
        assert "16.00 / 40.00" in text
        assert "+12.50" in text
        assert "abacus time log" in text and "--date 2025-01-15" in text
        assert cache.missing_days[-1].date == "15.01.2025"
        assert read_status_cache(config.status_cache_path).saldo["overtime"] == 12.5

    def test_status_past_month_leaves_cache(self, make_ctx, backend, config):
        run(status_time(make_ctx(), "2024-12-18"))
        assert read_status_cache(config.status_cache_path) is None

    def test_status_without_report(self, make_ctx, backend):
        backend.weekly = None
        with pytest.raises(NotFoundError):
            run(status_time(make_ctx()))

    def test_list_marks_missing_days(self, make_ctx, backend, config, output):
        backend.rows = [row("13.01.2025", LABEL), row("14.01.2025", LABEL)]
        listing = run(list_time(make_ctx(), "01.2025"))

        assert sum(isinstance(r, MissingDay) for r in listing) == 9
        assert EN("missing_days_summary", count=9) in output.getvalue()
        assert "abacus time batch" in output.getvalue()
        assert read_status_cache(config.status_cache_path).worked == 16.0

    def test_list_rejects_bad_month(self, make_ctx, backend):
        with pytest.raises(ValueError):
            run(list_time(make_ctx(), "2025-01"))
        assert backend.sessions == 0
