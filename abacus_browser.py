"""Abacus browser session management: login, authenticated sessions, refresh."""

import asyncio
import os
from contextlib import asynccontextmanager
from datetime import datetime
from typing import AsyncIterator, Awaitable, Callable

from playwright.async_api import Browser, BrowserContext, Page, async_playwright
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from abacus_selectors import Selectors
from captcha import CaptchaRecovery
from errors import SessionBusyError
from locales import Locale
from models import AppConfig
from navigator import Navigator
from reporter import Reporter
from session_store import SessionLock, SessionStore
from utils import ensure_config_dir, require_url, save_config_file

LOGIN_TIMEOUT = 300000  # 5 minutes, includes 2FA
REFRESH_TIMEOUT = 15000
LOCK_WAIT = 60.0
LOCK_HEARTBEAT = 60.0

STEALTH_ARGS = [
    "--disable-blink-features=AutomationControlled",
    "--no-sandbox",
    "--disable-dev-shm-usage",
    "--disable-gpu",
    "--disable-extensions",
    "--disable-infobars",
    "--disable-background-networking",
    "--disable-sync",
    "--disable-translate",
    "--metrics-recording-only",
    "--no-first-run",
]

USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/131.0.0.0 Safari/537.36"
)
VIEWPORT = {"width": 1280, "height": 800}
EXTRA_HEADERS = {
    "sec-ch-ua": '"Chromium";v="131", "Google Chrome";v="131", "Not_A Brand";v="99"',
    "sec-ch-ua-mobile": "?0",
    "sec-ch-ua-platform": '"macOS"',
}


class AbacusBrowser:
    """Context manager for one authenticated browser session.

    Holds the session lock while open. On close the storage state is written
    back (sliding session window), but only if an authenticated page was
    reached, so a session that hit the login page never overwrites a good one.
    """

    def __init__(
        self,
        config: AppConfig,
        reporter: Reporter,
        headless: bool | None = None,
        lock_wait: float | None = LOCK_WAIT,
    ):
        self.config = config
        self.reporter = reporter
        self.headless = config.headless if headless is None else headless
        self.lock_wait = lock_wait
        self.store = SessionStore(config.state_path)
        self.lock = SessionLock(config.lock_path)
        self.authenticated = False
        self._playwright = None
        self._browser: Browser | None = None
        self._context: BrowserContext | None = None
        self._page: Page | None = None
        self._closed = False
        self._heartbeat: asyncio.Task | None = None

    @property
    def page(self) -> Page:
        if not self._page:
            raise RuntimeError("Browser not initialized. Use 'async with' context.")
        return self._page

    async def __aenter__(self) -> "AbacusBrowser":
        require_url(self.config)
        state = self.store.load()

        if self.lock_wait is None:
            if not self.lock.try_acquire():
                raise SessionBusyError("Another Abacus session is running", lock=self.lock.path)
        else:
            await self.lock.acquire(wait=self.lock_wait)

        self._heartbeat = asyncio.ensure_future(self._keep_lock_alive())
        try:
            self._playwright = await async_playwright().start()
            await self._launch(self.headless, state)
        except BaseException:
            await self.close()
            raise
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def _keep_lock_alive(self) -> None:
        while True:
            await asyncio.sleep(LOCK_HEARTBEAT)
            self.lock.touch()

    async def _stop_heartbeat(self) -> None:
        if not self._heartbeat:
            return
        self._heartbeat.cancel()
        try:
            await self._heartbeat
        except asyncio.CancelledError:
            pass
        self._heartbeat = None

    async def _launch(self, headless: bool, state: dict) -> None:
        self.reporter.debug(f"launching chromium (headless={headless})")
        self._browser = await self._playwright.chromium.launch(headless=headless, args=STEALTH_ARGS)
        self._context = await self._browser.new_context(
            storage_state=state,
            user_agent=USER_AGENT,
            viewport=VIEWPORT,
            extra_http_headers=EXTRA_HEADERS,
        )
        self._page = await self._context.new_page()

    def mark_authenticated(self) -> None:
        self.authenticated = True

    async def _close_browser(self, save: bool) -> None:
        if self._context and save:
            try:
                self.store.save(await self._context.storage_state())
            except PlaywrightError as e:
                self.reporter.debug(f"could not read session state: {e}")
        if self._browser:
            await self._browser.close()
        self._browser = None
        self._context = None
        self._page = None

    async def relaunch(self, headless: bool) -> Page:
        """Replace the running browser, keeping whatever session state it had."""
        await self._close_browser(save=True)
        await self._launch(headless, self.store.load())
        return self.page

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        await self._stop_heartbeat()
        try:
            await self._close_browser(save=self.authenticated)
        finally:
            try:
                if self._playwright:
                    await self._playwright.stop()
            finally:
                self.lock.release()


@asynccontextmanager
async def open_session(config: AppConfig, reporter: Reporter, locale: Locale) -> AsyncIterator[Navigator]:
    """Open an authenticated browser and yield a Navigator bound to it."""
    async with AbacusBrowser(config, reporter) as browser:
        recovery = CaptchaRecovery(browser, reporter, locale)
        yield Navigator(
            browser.page,
            config.url,
            reporter,
            locale,
            on_captcha=recovery.recover,
            on_authenticated=browser.mark_authenticated,
        )


async def _wait_for_enter() -> None:
    try:
        await asyncio.get_event_loop().run_in_executor(None, input)
    except EOFError:
        pass


async def login(
    config: AppConfig,
    reporter: Reporter,
    locale: Locale,
    wait_for_enter: Callable[[], Awaitable[None]] = _wait_for_enter,
) -> str:
    """Interactive login in a visible browser. Returns the session file path."""
    url = require_url(config)
    ensure_config_dir(config.config_dir)

    reporter.step(locale("login_start", url=url))
    reporter.info(locale("login_instructions"))

    lock = SessionLock(config.lock_path)
    await lock.acquire(wait=LOCK_WAIT)
    try:
        async with async_playwright() as p:
            browser = await p.chromium.launch(headless=False, args=STEALTH_ARGS)
            try:
                context = await browser.new_context(user_agent=USER_AGENT, viewport=VIEWPORT)
                page = await context.new_page()
                await page.goto(url)
                try:
                    await page.locator(Selectors.MENU_TIME_TRACKING).wait_for(state="visible", timeout=LOGIN_TIMEOUT)
                    reporter.ok(locale("login_detected"))
                except PlaywrightTimeoutError:
                    reporter.warn(locale("login_timeout"))
                    await wait_for_enter()

                SessionStore(config.state_path).save(await context.storage_state())
            finally:
                await browser.close()
    finally:
        lock.release()

    # Persist the URL so the scheduled refresh finds it without the env var
    save_config_file({"url": url}, config.config_dir)
    reporter.ok(locale("session_saved", path=config.state_path))
    return config.state_path


def append_refresh_log(path: str, message: str) -> None:
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
    with open(path, "a", encoding="utf-8") as f:
        f.write(f"[{timestamp}] {message}\n")


async def refresh(config: AppConfig, reporter: Reporter, locale: Locale) -> bool:
    """Keep the session alive with a short headless visit to the portal.

    Meant for a scheduler. Never waits for the session lock: if a user
    command is running, it is already refreshing the session.

    Returns:
        True if the session is alive (or the refresh was skipped).
    """
    log_path = config.refresh_log_path
    try:
        async with AbacusBrowser(config, reporter, headless=True, lock_wait=None) as browser:
            page = browser.page
            await page.goto(config.url, wait_until="networkidle")
            try:
                await page.locator(Selectors.MENU_TIME_TRACKING).wait_for(state="visible", timeout=REFRESH_TIMEOUT)
            except PlaywrightTimeoutError:
                append_refresh_log(log_path, f"ERROR: {locale('session_refresh_failed')}")
                reporter.error(locale("session_refresh_failed"))
                return False
            browser.mark_authenticated()
    except SessionBusyError:
        append_refresh_log(log_path, locale("session_busy_skip"))
        reporter.warn(locale("session_busy_skip"))
        return True

    append_refresh_log(log_path, locale("session_refreshed"))
    reporter.ok(locale("session_refreshed"))
    return True
