"""Shared fixtures: a scripted fake Playwright page and a fake Abacus backend.

Nothing here starts a browser. FakePage records every interaction so tests
can assert on the order of UI steps; FakeBackend stands in for the remote
services grid behind the Navigator interface used by abacus_time.
"""

import io
from contextlib import asynccontextmanager
from datetime import date

import pytest
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from abacus_selectors import Selectors
from abacus_time import RunContext
from dates import format_date
from errors import CaptchaRetrySignal, StaleRowError
from locales import Locale
from models import AppConfig, ExistingEntry, SaldoData, VacationData, WeeklyReport
from reporter import Reporter

# ---------------------------------------------------------------------------
# Fake Playwright page
# ---------------------------------------------------------------------------


class FakeKeyboard:
    def __init__(self, page):
        self.page = page

    async def press(self, key):
        self.page.actions.append(("key", key))


class FakeMouse:
    def __init__(self, page):
        self.page = page

    async def click(self, x, y):
        self.page.actions.append(("mouse", x, y))


class FakeLocator:
    def __init__(self, page, selector):
        self.page = page
        self.selector = selector

    def locator(self, selector):
        return FakeLocator(self.page, f"{self.selector} {selector}")

    def _timeout(self):
        return PlaywrightTimeoutError(f"Timeout waiting for {self.selector}")

    async def click(self, click_count=1, timeout=None):
        if self.selector in self.page.missing:
            raise self._timeout()
        self.page.actions.append(("click", self.selector))
        self.page.after_click(self.selector)

    async def press_sequentially(self, text, delay=None):
        self.page.actions.append(("type", self.selector, text))

    async def press(self, key):
        self.page.actions.append(("press", self.selector, key))

    async def fill(self, value):
        self.page.actions.append(("fill", self.selector, value))

    async def is_visible(self):
        return self.selector in self.page.visible

    async def wait_for(self, state="visible", timeout=None):
        if state == "visible" and self.selector not in self.page.visible:
            raise self._timeout()
        if state == "hidden" and self.selector in self.page.visible:
            raise self._timeout()

    async def get_attribute(self, name):
        return self.page.attributes.get((self.selector, name))


class FakePage:
    """Scripted stand-in for a Playwright Page.

    ``visible`` holds the selectors currently on screen, ``scripts`` maps a
    JS source to its result (a value or a callable taking the arg).
    """

    def __init__(self, url="https://abacus.example.com/portal/myabacus", visible=(), scripts=None):
        self.url = url
        self.visible = set(visible)
        self.missing = set()
        self.attributes = {}
        self.scripts = dict(scripts or {})
        self.hide_on_click = set()
        self.reveal_on_click = {}
        self.redirect_to = None
        self.idle = True
        self.function_results = {}
        self.actions = []
        self.keyboard = FakeKeyboard(self)
        self.mouse = FakeMouse(self)

    def locator(self, selector):
        return FakeLocator(self, selector)

    def after_click(self, selector):
        if selector in self.hide_on_click:
            self.visible.discard(selector)
        if selector in self.reveal_on_click:
            self.visible.add(self.reveal_on_click[selector])

    async def goto(self, url, wait_until=None):
        self.actions.append(("goto", url))
        self.url = self.redirect_to or url

    async def wait_for_function(self, script, arg=None, timeout=None):
        result = self.function_results.get(script, self.idle)
        if not result:
            raise PlaywrightTimeoutError(f"Timeout {timeout}ms exceeded")

    async def wait_for_timeout(self, ms):
        self.actions.append(("sleep", ms))

    async def evaluate(self, script, arg=None):
        result = self.scripts.get(script)
        if callable(result):
            return result(arg)
        return result

    def clicked(self):
        return [a[1] for a in self.actions if a[0] == "click"]


ENTRY_FORM = {
    Selectors.MENU_TIME_TRACKING,
    Selectors.FORM_DATE,
    Selectors.combo(Selectors.COMBO_PROJECT),
    Selectors.combo(Selectors.COMBO_SERVICE_TYPE),
    Selectors.FIELD_HOURS,
    Selectors.BUTTON_SAVE,
    Selectors.BUTTON_PRIMARY,
    Selectors.ROW_CONTEXT_DELETE,
}


@pytest.fixture
def page():
    return FakePage(visible=ENTRY_FORM)


# ---------------------------------------------------------------------------
# Fake Abacus backend for the operations layer
# ---------------------------------------------------------------------------


def row(display_date, project, hours="8.00", service_type="1435 Development", text="Work"):
    """Build a grid row template; row_index is assigned when the grid is read."""
    return ExistingEntry(
        date=display_date,
        project=project,
        service_type=service_type,
        text=text,
        hours=hours,
        status="",
        row_index=-1,
    )


class FakeNavigator:
    """Navigator double working on FakeBackend.rows.

    Row handles follow the same staleness rule as the real navigator: a
    handle is only valid for the render it was read from, and rows at or
    after a deleted or saved position are void.
    """

    def __init__(self, backend, captcha=False):
        self.backend = backend
        self.captcha = captcha
        self.month = None
        self.generation = 0
        self._valid_below = None
        self._open = None
        self.form = None

    def _view(self):
        return [r for r in self.backend.rows if self.month and r.date.endswith(self.month)]

    def _check(self, entry):
        if entry.generation != self.generation or (
            self._valid_below is not None and entry.row_index >= self._valid_below
        ):
            raise StaleRowError("stale", row_index=entry.row_index)

    def _invalidate(self, index):
        if self._valid_below is None or index < self._valid_below:
            self._valid_below = index

    def _position(self, view_index):
        target = self._view()[view_index]
        return next(i for i, r in enumerate(self.backend.rows) if r is target)

    def _remove(self, index):
        target = self.backend.rows.pop(self._position(index))
        self.backend.deleted.append(target)
        self._invalidate(index)

    async def open_entries_grid(self):
        self.backend.calls.append("open_entries_grid")
        if self.captcha:
            raise CaptchaRetrySignal("https://abacus.example.com/fortiadc_captcha")

    async def set_month_filter(self, month_year):
        self.backend.calls.append(("month", month_year))
        self.month = month_year
        self.generation += 1
        self._valid_below = None

    async def read_grid_rows(self):
        if self._valid_below is not None:
            self.generation += 1
            self._valid_below = None
        return [
            ExistingEntry(
                date=r.date,
                project=r.project,
                service_type=r.service_type,
                text=r.text,
                hours=r.hours,
                status=r.status,
                row_index=i,
                generation=self.generation,
            )
            for i, r in enumerate(self._view())
        ]

    async def open_row_for_edit(self, entry):
        self._check(entry)
        self.backend.calls.append(("open_row", entry.row_index))
        self._open = entry.row_index

    async def open_new_entry(self):
        self.backend.calls.append("open_new_entry")
        self._open = None

    async def fill_entry_form(self, entry):
        self.form = entry

    def _save(self):
        entry = self.form
        saved = row(format_date(entry.date), entry.project, f"{entry.hours:.2f}", entry.service_type, entry.description)
        if self._open is not None:
            self.backend.rows[self._position(self._open)] = saved
            self.backend.updated.append(saved)
        else:
            self.backend.rows.append(saved)
            self.backend.created.append(saved)
        self._invalidate(0)
        self._open = None

    async def save_open_entry(self):
        self.backend.calls.append("save")
        self._save()

    def confirm_manual_save(self):
        self.backend.calls.append("manual_save")
        self._save()

    async def delete_open_entry(self):
        self._remove(self._open)
        self._open = None

    async def delete_row_inline(self, entry):
        self._check(entry)
        self._remove(entry.row_index)

    async def close_side_panel_if_open(self):
        self.backend.calls.append("close_panel")

    async def open_weekly_report(self):
        self.backend.calls.append("open_weekly_report")

    async def read_weekly_totals(self):
        return self.backend.weekly

    async def read_overtime_balance(self):
        return self.backend.saldo

    async def read_vacation_balance(self):
        return self.backend.vacation


class FakeBackend:
    """The remote grid shared by every session of one test."""

    def __init__(self, rows=(), captcha_sessions=0, weekly=None, saldo=None, vacation=None):
        self.rows = list(rows)
        self.captcha_sessions = captcha_sessions
        self.weekly = weekly
        self.saldo = saldo
        self.vacation = vacation
        self.sessions = 0
        self.calls = []
        self.created = []
        self.updated = []
        self.deleted = []

    def session(self):
        backend = self

        @asynccontextmanager
        async def open_fake_session():
            backend.sessions += 1
            yield FakeNavigator(backend, captcha=backend.sessions <= backend.captcha_sessions)

        return open_fake_session()


@pytest.fixture
def backend():
    return FakeBackend(
        weekly=WeeklyReport(worked=16.0, target=40.0, difference=-8.0),
        saldo=SaldoData(overtime=12.5, extra_time=0.0, total=12.5),
        vacation=VacationData(
            entitlement=200.0, used=40.0, remaining=160.0, planned_by_year_end=16.0, remaining_by_year_end=144.0
        ),
    )


@pytest.fixture
def config(tmp_path):
    return AppConfig(
        url="https://abacus.example.com/portal/myabacus",
        locale="en",
        headless=True,
        semi_manual=False,
        debug=False,
        config_dir=str(tmp_path),
    )


class Answers:
    """Prompt double returning queued answers and recording the questions."""

    def __init__(self, *answers):
        self.answers = list(answers)
        self.questions = []

    def __call__(self, message=""):
        self.questions.append(message)
        if not self.answers:
            raise EOFError
        return self.answers.pop(0)


@pytest.fixture
def output():
    return io.StringIO()


@pytest.fixture
def make_ctx(config, backend, output):
    def make(*answers, today=date(2025, 1, 15)):
        return RunContext(
            config=config,
            locale=Locale("en"),
            reporter=Reporter(stream=output, err_stream=output),
            prompt=Answers(*answers),
            session_factory=backend.session,
            today=lambda: today,
        )

    return make
