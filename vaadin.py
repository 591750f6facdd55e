"""Generic Vaadin-over-Playwright primitives.

No business logic and no knowledge of the Abacus page structure beyond the
component conventions every Vaadin application shares.
"""

from playwright.async_api import Locator, Page
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from errors import NotFoundError, UiTimeoutError

IDLE_TIMEOUT = 15000  # 15 seconds
ELEMENT_TIMEOUT = 10000
FILTER_SETTLE_MS = 1000
MENU_SETTLE_MS = 300
KEY_DELAY_MS = 50
DATE_KEY_DELAY_MS = 30

# Vaadin Flow keeps one client per UI; isActive() is true while a server
# round-trip is in flight. The connection itself may stay open, so network
# idle alone is not enough.
VAADIN_IDLE_JS = """() => {
    const vaadin = window.Vaadin;
    if (!vaadin || !vaadin.Flow || !vaadin.Flow.clients) return true;
    return Object.values(vaadin.Flow.clients).every(
        (client) => !(client.isActive && client.isActive())
    );
}"""

# Rows of a vaadin-grid live in its shadow root; only the currently
# rendered window of a virtualized grid is present.
ROW_CENTER_JS = """([gridSelector, idx]) => {
    const grid = document.querySelector(gridSelector);
    if (!grid || !grid.shadowRoot) return null;
    const tbody = grid.shadowRoot.querySelector("#items");
    if (!tbody) return null;
    const rows = tbody.querySelectorAll("tr");
    if (!rows[idx]) return null;
    const rect = rows[idx].getBoundingClientRect();
    return { x: rect.x + rect.width / 2, y: rect.y + rect.height / 2 };
}"""

ROW_BUTTON_CENTER_JS = """([gridSelector, idx, buttonSelector]) => {
    const grid = document.querySelector(gridSelector);
    if (!grid || !grid.shadowRoot) return null;
    const tbody = grid.shadowRoot.querySelector("#items");
    if (!tbody) return null;
    const rows = tbody.querySelectorAll("tr");
    if (!rows[idx]) return null;
    for (const cell of Array.from(rows[idx].querySelectorAll("td"))) {
        const slot = cell.querySelector("slot");
        if (!slot) continue;
        for (const el of slot.assignedElements()) {
            const btn = el.matches(buttonSelector) ? el : el.querySelector(buttonSelector);
            if (btn) {
                const rect = btn.getBoundingClientRect();
                return { x: rect.x + rect.width / 2, y: rect.y + rect.height / 2 };
            }
        }
    }
    return null;
}"""


async def wait_for_idle(page: Page, timeout: int = IDLE_TIMEOUT) -> None:
    """Block until no Vaadin client has a server round-trip in flight."""
    try:
        await page.wait_for_function(VAADIN_IDLE_JS, timeout=timeout)
    except PlaywrightTimeoutError:
        raise UiTimeoutError("Vaadin did not become idle", timeout_ms=timeout, url=page.url)


async def is_visible(locator: Locator) -> bool:
    """Visibility check that treats a detached or missing element as hidden."""
    try:
        return await locator.is_visible()
    except PlaywrightTimeoutError:
        return False


async def wait_visible(locator: Locator, what: str, timeout: int = ELEMENT_TIMEOUT) -> None:
    try:
        await locator.wait_for(state="visible", timeout=timeout)
    except PlaywrightTimeoutError:
        raise UiTimeoutError(f"{what} did not appear", selector=what, timeout_ms=timeout)


async def wait_hidden(locator: Locator, what: str, timeout: int = ELEMENT_TIMEOUT) -> None:
    try:
        await locator.wait_for(state="hidden", timeout=timeout)
    except PlaywrightTimeoutError:
        raise UiTimeoutError(f"{what} did not close", selector=what, timeout_ms=timeout)


async def clear_field(page: Page, field: Locator) -> None:
    await field.click(click_count=3)
    await page.keyboard.press("Backspace")


async def type_into_filter_field(page: Page, movie_id: str, value: str) -> None:
    """Fill a filtering combobox and accept the top suggestion.

    The combobox filters on the server per keystroke, so the value is typed
    character by character and the last round-trip must settle before Enter,
    otherwise a suggestion for an earlier prefix gets picked.
    """
    field = page.locator(f'vaadin-combo-box[movie-id="{movie_id}"]').locator("input")
    await clear_field(page, field)
    await field.press_sequentially(value, delay=KEY_DELAY_MS)

    await page.wait_for_timeout(FILTER_SETTLE_MS)
    await wait_for_idle(page)

    await field.press("Enter")
    await wait_for_idle(page)


async def type_date(page: Page, field: Locator, formatted: str, settle_ms: int = 0) -> None:
    """Type a DD.MM.YYYY date into a date picker input and confirm it."""
    await clear_field(page, field)
    await field.press_sequentially(formatted, delay=DATE_KEY_DELAY_MS)
    await field.press("Enter")
    if settle_ms:
        await page.wait_for_timeout(settle_ms)
    await wait_for_idle(page)


async def overwrite_field(page: Page, field: Locator, value: str) -> None:
    """Replace a plain text field's content in one go."""
    await clear_field(page, field)
    await field.fill(value)
    await wait_for_idle(page)


async def select_dropdown_item_by_position(page: Page, movie_id: str, position: int) -> None:
    """Open a combobox and click the item at aria-posinset=position.

    Works in every display language because it never looks at item text.
    """
    field = page.locator(f'vaadin-combo-box[movie-id="{movie_id}"]').locator("input")
    await field.click()
    await page.wait_for_timeout(MENU_SETTLE_MS)

    item = page.locator(f'vaadin-combo-box-item[aria-posinset="{position}"]')
    try:
        await item.click(timeout=ELEMENT_TIMEOUT)
    except PlaywrightTimeoutError:
        raise NotFoundError("Dropdown item not found", field=movie_id, position=position)
    await wait_for_idle(page)


async def click_grid_row_by_index(page: Page, grid_selector: str, row_index: int) -> None:
    """Click the center of a rendered grid row with a real pointer event.

    vaadin-grid ignores synthetic DOM clicks for row activation.
    """
    box = await page.evaluate(ROW_CENTER_JS, [grid_selector, row_index])
    if not box:
        raise NotFoundError("Grid row not found", grid=grid_selector, row_index=row_index)
    await page.mouse.click(box["x"], box["y"])
    await wait_for_idle(page)


async def click_row_button(page: Page, grid_selector: str, row_index: int, button_selector: str) -> None:
    """Click a button slotted into one of a grid row's cells."""
    box = await page.evaluate(ROW_BUTTON_CENTER_JS, [grid_selector, row_index, button_selector])
    if not box:
        raise NotFoundError("Menu button not found on row", grid=grid_selector, row_index=row_index)
    await page.mouse.click(box["x"], box["y"])
