"""Business-aware page procedures for the Abacus services grid and weekly report.

The remote UI never tells us which state it is in, so the navigator keeps an
explicit model of it (NavState) and refuses steps that make no sense from the
current state. Grid rows carry the render generation they were read in; a row
handle from an older render is rejected before the page is touched.
"""

from datetime import date
from enum import Enum
from typing import Awaitable, Callable

from playwright.async_api import Page
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from abacus_selectors import Selectors
from dates import fmt_full, format_date
from errors import CaptchaRetrySignal, SaveButtonNotFoundError, SessionExpiredError, StaleRowError
from locales import Locale
from models import ExistingEntry, SaldoData, TimeEntry, VacationData, WeeklyReport
from patterns import Patterns, parse_decimal
from reporter import Reporter
from vaadin import (
    click_grid_row_by_index,
    click_row_button,
    is_visible,
    overwrite_field,
    select_dropdown_item_by_position,
    type_date,
    type_into_filter_field,
    wait_for_idle,
    wait_hidden,
    wait_visible,
)

MENU_TIMEOUT = 15000
FORM_TIMEOUT = 10000
DATE_SETTLE_MS = 500
SAVE_SETTLE_MS = 1000
DELETE_SETTLE_MS = 500
MENU_SETTLE_MS = 300


class NavState(Enum):
    START = "start"
    PORTAL_LOADED = "portal_loaded"
    CAPTCHA_CHALLENGE = "captcha_challenge"
    SESSION_EXPIRED = "session_expired"
    MENU_READY = "menu_ready"
    GRID_VIEW = "grid_view"
    REPORT_VIEW = "report_view"
    ROW_OPEN = "row_open"
    FILLED = "filled"
    SAVED = "saved"
    DELETED = "deleted"


TRANSITIONS = {
    NavState.START: {NavState.PORTAL_LOADED},
    NavState.PORTAL_LOADED: {NavState.CAPTCHA_CHALLENGE, NavState.SESSION_EXPIRED, NavState.MENU_READY},
    NavState.CAPTCHA_CHALLENGE: set(),
    NavState.SESSION_EXPIRED: set(),
    NavState.MENU_READY: {NavState.GRID_VIEW, NavState.REPORT_VIEW, NavState.PORTAL_LOADED},
    NavState.GRID_VIEW: {
        NavState.GRID_VIEW,
        NavState.REPORT_VIEW,
        NavState.ROW_OPEN,
        NavState.DELETED,
        NavState.PORTAL_LOADED,
    },
    NavState.REPORT_VIEW: {NavState.GRID_VIEW, NavState.PORTAL_LOADED},
    NavState.ROW_OPEN: {NavState.FILLED, NavState.DELETED, NavState.GRID_VIEW, NavState.PORTAL_LOADED},
    NavState.FILLED: {NavState.FILLED, NavState.SAVED, NavState.GRID_VIEW, NavState.PORTAL_LOADED},
    NavState.SAVED: {NavState.GRID_VIEW, NavState.ROW_OPEN, NavState.PORTAL_LOADED},
    NavState.DELETED: {NavState.GRID_VIEW, NavState.DELETED, NavState.ROW_OPEN, NavState.PORTAL_LOADED},
}

# States in which the services grid is on screen (possibly under a panel)
GRID_STATES = (NavState.GRID_VIEW, NavState.SAVED, NavState.DELETED)

READ_GRID_JS = """(gridSelector) => {
    const grid = document.querySelector(gridSelector);
    if (!grid || !grid.shadowRoot) return [];
    const tbody = grid.shadowRoot.querySelector("#items");
    if (!tbody) return [];

    const results = [];
    Array.from(tbody.querySelectorAll("tr")).forEach((row, index) => {
        const cells = Array.from(row.querySelectorAll("td"));
        const slotted = (i) => {
            if (i >= cells.length) return null;
            const slot = cells[i].querySelector("slot");
            if (!slot) return null;
            const assigned = slot.assignedElements();
            return assigned.length > 0 ? assigned[0] : null;
        };
        const textOf = (el) => (el && el.textContent ? el.textContent.trim() : "");

        const cardEl = slotted(0);
        const card = [];
        if (cardEl) {
            const blocks = cardEl.querySelectorAll(".dl-slot-row");
            const parts = blocks.length > 0 ? Array.from(blocks) : Array.from(cardEl.children);
            parts.forEach((b) => card.push(textOf(b)));
        }
        const text = textOf(slotted(1));
        const hours = textOf(slotted(2));
        const status = textOf(slotted(3));

        if (card.length === 0 && !text && !hours) return;
        results.push({ index, card, text, hours, status });
    });
    return results;
}"""

PAGE_CELL_TEXTS_JS = """(contentSelector) => {
    const content = document.querySelector(contentSelector);
    if (!content) return null;
    return Array.from(content.querySelectorAll("div.va-flex-layout")).map(
        (el) => (el.textContent || "").trim()
    );
}"""

PANEL_VALUES_JS = """(panelSelector) => {
    const panel = document.querySelector(panelSelector);
    if (!panel) return null;
    const values = [];
    panel.querySelectorAll("vaadin-vertical-layout > vaadin-horizontal-layout").forEach((row) => {
        const labels = row.querySelectorAll("div.va-label");
        if (labels.length >= 2) {
            values.push((labels[labels.length - 1].textContent || "").trim() || "0");
        }
    });
    return values;
}"""


def _number(text: str) -> float:
    return parse_decimal(text) or 0.0


def weekly_totals_from_cells(texts: list[str] | None) -> WeeklyReport | None:
    """Extract worked/target/difference from the weekly report's flat cell list.

    The report is a flat run of cells, eight per row:
    [label, Mon, Tue, Wed, Thu, Fri, Total, spacer]. The first rows whose
    day and total columns are decimals are worked, target and difference,
    in that order in every language.
    """
    if not texts:
        return None
    decimal = Patterns.REPORT_DECIMAL
    totals = []
    for i, text in enumerate(texts):
        if (
            text
            and not decimal.match(text)
            and i + 6 < len(texts)
            and decimal.match(texts[i + 1])
            and decimal.match(texts[i + 6])
        ):
            totals.append(texts[i + 6])
    if len(totals) < 2:
        return None
    return WeeklyReport(
        worked=_number(totals[0]),
        target=_number(totals[1]),
        difference=_number(totals[2]) if len(totals) >= 3 else 0.0,
    )


def saldo_from_values(values: list[str] | None) -> SaldoData | None:
    if not values or len(values) < 2:
        return None
    return SaldoData(
        overtime=_number(values[0]),
        extra_time=_number(values[1]),
        total=_number(values[2]) if len(values) >= 3 else 0.0,
    )


def vacation_from_values(values: list[str] | None) -> VacationData | None:
    if not values or len(values) < 5:
        return None
    return VacationData(
        entitlement=_number(values[0]),
        used=_number(values[1]),
        remaining=_number(values[2]),
        planned_by_year_end=_number(values[3]),
        remaining_by_year_end=_number(values[4]),
    )


CaptchaHandler = Callable[[str], Awaitable[None]]


class Navigator:
    """Drives one page through the portal, the services grid and the weekly report."""

    def __init__(
        self,
        page: Page,
        url: str,
        reporter: Reporter,
        locale: Locale,
        on_captcha: CaptchaHandler | None = None,
        on_authenticated: Callable[[], None] | None = None,
    ):
        self.page = page
        self.url = url
        self.reporter = reporter
        self.t = locale
        self.on_captcha = on_captcha
        self.on_authenticated = on_authenticated
        self.state = NavState.START
        self.history: list[NavState] = [NavState.START]
        self.generation = 0
        self._valid_below: int | None = None
        self._open_row: int | None = None

    # -- state model -------------------------------------------------------

    def _debug_history(self) -> None:
        self.reporter.debug("nav history: " + " -> ".join(s.value for s in self.history))

    def _transition(self, target: NavState) -> None:
        if target not in TRANSITIONS[self.state]:
            self._debug_history()
            raise RuntimeError(f"Invalid navigator transition {self.state.value} -> {target.value}")
        self.reporter.debug(f"nav: {self.state.value} -> {target.value}")
        self.state = target
        self.history.append(target)

    def _require(self, *states: NavState) -> None:
        if self.state not in states:
            expected = ", ".join(s.value for s in states)
            self._debug_history()
            raise RuntimeError(f"Navigator is in state {self.state.value}, expected one of: {expected}")

    def _new_render(self) -> None:
        """Navigation or filter change: every row handle read so far is void."""
        self.generation += 1
        self._valid_below = None
        self._open_row = None

    def _invalidate_from(self, row_index: int) -> None:
        """Rows at or after row_index shifted; earlier handles stay usable."""
        if self._valid_below is None or row_index < self._valid_below:
            self._valid_below = row_index

    def check_row(self, entry: ExistingEntry) -> None:
        """Raise StaleRowError if the handle no longer names the same physical row."""
        stale = entry.generation != self.generation or (
            self._valid_below is not None and entry.row_index >= self._valid_below
        )
        if stale:
            raise StaleRowError(
                "Grid row handle is from an outdated render",
                row_index=entry.row_index,
                generation=entry.generation,
                current_generation=self.generation,
            )

    # -- portal ------------------------------------------------------------

    async def _load_portal(self) -> None:
        self.reporter.step(self.t("navigating_to_portal"))
        self._transition(NavState.PORTAL_LOADED)
        self._new_render()
        await self.page.goto(self.url, wait_until="networkidle")

        if Selectors.CAPTCHA_URL_MARKER in self.page.url:
            self._transition(NavState.CAPTCHA_CHALLENGE)
            if self.on_captcha:
                await self.on_captcha(self.url)
            raise CaptchaRetrySignal(self.page.url)

        await wait_for_idle(self.page)

        menu = self.page.locator(Selectors.MENU_TIME_TRACKING)
        try:
            await menu.wait_for(state="visible", timeout=MENU_TIMEOUT)
        except PlaywrightTimeoutError:
            self._transition(NavState.SESSION_EXPIRED)
            raise SessionExpiredError(self.page.url)

        self._transition(NavState.MENU_READY)
        if self.on_authenticated:
            self.on_authenticated()

    async def _expand_time_tracking_menu(self) -> None:
        menu = self.page.locator(Selectors.MENU_TIME_TRACKING)
        if await menu.get_attribute("aria-expanded") != "true":
            await menu.click()
            await wait_for_idle(self.page)

    async def open_entries_grid(self) -> None:
        """Load the portal from scratch and open the services grid."""
        await self._load_portal()

        self.reporter.step(self.t("opening_time_tracking"))
        await self._expand_time_tracking_menu()

        self.reporter.step(self.t("opening_services"))
        await self.page.locator(Selectors.LINK_SERVICES).click()
        await wait_for_idle(self.page)
        self._transition(NavState.GRID_VIEW)

    async def open_weekly_report(self) -> None:
        if self.state == NavState.START:
            await self._load_portal()
        self.reporter.step(self.t("opening_weekly_report"))
        await self._expand_time_tracking_menu()
        await self.page.locator(Selectors.LINK_WEEKLY_REPORT).click()
        await wait_for_idle(self.page)
        self._new_render()
        self._transition(NavState.REPORT_VIEW)

    # -- filters -----------------------------------------------------------

    async def _set_filter(self, position: int, formatted_date: str) -> None:
        self._require(*GRID_STATES)
        await select_dropdown_item_by_position(self.page, Selectors.COMBO_DATE_RANGE, position)

        self.reporter.step(self.t("setting_date", date=formatted_date))
        field = self.page.locator(Selectors.DATE_FILTER).locator("input")
        await type_date(self.page, field, formatted_date, settle_ms=DATE_SETTLE_MS)
        self._new_render()
        self._transition(NavState.GRID_VIEW)

    async def set_month_filter(self, month_year: str) -> None:
        """Show a whole month (MM.YYYY) in the grid."""
        self.reporter.step(self.t("setting_view_month"))
        await self._set_filter(Selectors.VIEW_MONTH, f"01.{month_year}")

    async def set_week_filter(self, day: date) -> None:
        """Show the week containing day in the grid."""
        self.reporter.step(self.t("setting_view_week"))
        await self._set_filter(Selectors.VIEW_WEEK, fmt_full(day))

    # -- grid --------------------------------------------------------------

    async def read_grid_rows(self) -> list[ExistingEntry]:
        """Scrape the rendered grid rows, tagged with the current render generation."""
        self._require(*GRID_STATES)
        if self._valid_below is not None:
            # The grid changed since the last read; this read is a new render.
            self.generation += 1
            self._valid_below = None

        if await is_visible(self.page.locator(Selectors.GRID_EMPTY_STATE)):
            return []

        raw = await self.page.evaluate(READ_GRID_JS, Selectors.GRID) or []
        rows = []
        for r in raw:
            card = r.get("card") or []
            rows.append(
                ExistingEntry(
                    date=card[0] if len(card) > 0 else "",
                    project=card[1] if len(card) > 1 else "",
                    service_type=card[2] if len(card) > 2 else "",
                    text=r.get("text", ""),
                    hours=r.get("hours", ""),
                    status=r.get("status", ""),
                    row_index=r["index"],
                    generation=self.generation,
                )
            )
        self.reporter.debug(f"grid: {len(rows)} rows (generation {self.generation})")
        return rows

    async def open_row_for_edit(self, entry: ExistingEntry) -> None:
        """Open an existing row's edit form (side panel or dialog)."""
        self._require(*GRID_STATES)
        self.check_row(entry)
        await click_grid_row_by_index(self.page, Selectors.GRID, entry.row_index)
        await wait_visible(self.page.locator(Selectors.FORM_DATE), "entry form", timeout=FORM_TIMEOUT)
        self._open_row = entry.row_index
        self._transition(NavState.ROW_OPEN)

    async def open_new_entry(self) -> None:
        self._require(*GRID_STATES)
        await self.page.locator(Selectors.BUTTON_NEW_ENTRY).click()
        await wait_for_idle(self.page)
        await wait_visible(self.page.locator(Selectors.combo(Selectors.COMBO_PROJECT)), "new entry form", FORM_TIMEOUT)
        self._open_row = None
        self._transition(NavState.ROW_OPEN)

    async def fill_entry_form(self, entry: TimeEntry) -> None:
        """Set date, project, service type, hours and description in order."""
        self._require(NavState.ROW_OPEN, NavState.FILLED)
        page = self.page

        formatted = format_date(entry.date)
        self.reporter.info(self.t("setting_date_field", date=formatted))
        await type_date(page, page.locator(f"{Selectors.FORM_DATE} input"), formatted)

        self.reporter.info(self.t("setting_project", project=entry.project))
        await type_into_filter_field(page, Selectors.COMBO_PROJECT, entry.project)

        # Only rendered once a project is selected
        self.reporter.info(self.t("setting_service_type", service_type=entry.service_type))
        await wait_visible(page.locator(Selectors.combo(Selectors.COMBO_SERVICE_TYPE)), "service type", FORM_TIMEOUT)
        await type_into_filter_field(page, Selectors.COMBO_SERVICE_TYPE, entry.service_type)

        self.reporter.info(self.t("setting_hours", hours=entry.hours))
        hours_field = page.locator(Selectors.FIELD_HOURS)
        await wait_visible(hours_field, "hours", FORM_TIMEOUT)
        await overwrite_field(page, hours_field, str(entry.hours))

        if entry.description:
            self.reporter.info(self.t("setting_description", text=entry.description))
            await overwrite_field(page, page.locator(Selectors.FIELD_TEXT), entry.description)

        self._transition(NavState.FILLED)

    async def save_open_entry(self) -> None:
        """Commit the focused field, then click whichever save button is shown."""
        self._require(NavState.FILLED)
        page = self.page

        # Blur the active field so Vaadin sends its value before the save
        await page.keyboard.press("Tab")
        await wait_for_idle(page)

        save_button = page.locator(Selectors.BUTTON_SAVE)
        dialog_button = page.locator(Selectors.BUTTON_PRIMARY)
        if await is_visible(save_button):
            await save_button.click()
        elif await is_visible(dialog_button):
            await dialog_button.click()
        else:
            raise SaveButtonNotFoundError()

        await wait_for_idle(page)
        await page.wait_for_timeout(SAVE_SETTLE_MS)
        self._entry_saved()

    def confirm_manual_save(self) -> None:
        """Record that the user saved the filled form in the browser."""
        self._require(NavState.FILLED)
        self._entry_saved()

    def _entry_saved(self) -> None:
        # A saved entry may be inserted or re-sorted anywhere in the grid
        self._invalidate_from(0)
        self._open_row = None
        self._transition(NavState.SAVED)

    async def _confirm_delete_dialog(self):
        confirm = self.page.locator(Selectors.BUTTON_PRIMARY)
        await wait_visible(confirm, "delete confirmation", FORM_TIMEOUT)
        await confirm.click()
        await wait_for_idle(self.page)
        return confirm

    async def delete_open_entry(self) -> None:
        """Delete the entry open in the side panel via its actions menu."""
        self._require(NavState.ROW_OPEN)
        await self.page.locator(Selectors.SIDE_PANEL_ACTIONS).click()
        await self.page.wait_for_timeout(MENU_SETTLE_MS)
        await self.page.locator(Selectors.SIDE_PANEL_DELETE).click()
        await wait_for_idle(self.page)
        await self._confirm_delete_dialog()

        self._invalidate_from(self._open_row if self._open_row is not None else 0)
        self._open_row = None
        self._transition(NavState.DELETED)

    async def delete_row_inline(self, entry: ExistingEntry) -> None:
        """Delete a row through its inline context menu without opening it."""
        self._require(NavState.GRID_VIEW, NavState.DELETED)
        self.check_row(entry)
        await click_row_button(self.page, Selectors.GRID, entry.row_index, Selectors.ROW_MENU_BUTTON)

        delete_item = self.page.locator(Selectors.ROW_CONTEXT_DELETE)
        await wait_visible(delete_item, "row delete action", FORM_TIMEOUT)
        await delete_item.click()
        await wait_for_idle(self.page)

        confirm = await self._confirm_delete_dialog()
        await wait_hidden(confirm, "delete confirmation", FORM_TIMEOUT)
        await self.page.wait_for_timeout(DELETE_SETTLE_MS)

        self._invalidate_from(entry.row_index)
        self._transition(NavState.DELETED)

    async def close_side_panel_if_open(self) -> None:
        panel = self.page.locator(Selectors.SIDE_PANEL)
        if await is_visible(panel):
            await self.page.locator(Selectors.SIDE_PANEL_CLOSE).click()
            await wait_for_idle(self.page)
        if self.state != NavState.GRID_VIEW:
            self._transition(NavState.GRID_VIEW)

    # -- weekly report -----------------------------------------------------

    async def read_weekly_totals(self) -> WeeklyReport | None:
        self._require(NavState.REPORT_VIEW)
        texts = await self.page.evaluate(PAGE_CELL_TEXTS_JS, Selectors.PORTAL_CONTENT)
        return weekly_totals_from_cells(texts)

    async def read_overtime_balance(self) -> SaldoData | None:
        self._require(NavState.REPORT_VIEW)
        return saldo_from_values(await self.page.evaluate(PANEL_VALUES_JS, Selectors.PANEL_OVERTIME))

    async def read_vacation_balance(self) -> VacationData | None:
        self._require(NavState.REPORT_VIEW)
        return vacation_from_values(await self.page.evaluate(PANEL_VALUES_JS, Selectors.PANEL_HOLIDAY))
