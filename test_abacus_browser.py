"""Tests for browser sessions, login and the scheduled refresh.

Playwright itself is replaced by a small fake driver that hands out the
scripted FakePage from conftest.
"""

import asyncio
import io
import json
import os
import re
import time

import pytest

import abacus_browser
from abacus_browser import AbacusBrowser, append_refresh_log, login, open_session, refresh
from abacus_selectors import Selectors
from captcha import CAPTCHA_GONE_JS
from conftest import FakePage
from errors import CaptchaRetrySignal, ConfigError, SessionBusyError
from locales import Locale
from reporter import Reporter
from session_store import SessionLock, SessionStore

EN = Locale("en")
FRESH_STATE = {"cookies": [{"name": "JSESSIONID", "value": "fresh"}], "origins": []}


class FakeContext:
    def __init__(self, driver):
        self.driver = driver

    async def new_page(self):
        return self.driver.page

    async def storage_state(self):
        return FRESH_STATE


class FakeBrowserProcess:
    def __init__(self, driver):
        self.driver = driver

    async def new_context(self, storage_state=None, **kwargs):
        self.driver.contexts.append(storage_state)
        return FakeContext(self.driver)

    async def close(self):
        self.driver.closed += 1


class FakeChromium:
    def __init__(self, driver):
        self.driver = driver

    async def launch(self, headless=True, args=None):
        self.driver.launches.append(headless)
        return FakeBrowserProcess(self.driver)


class FakeDriver:
    def __init__(self, page):
        self.page = page
        self.chromium = FakeChromium(self)
        self.launches = []
        self.contexts = []
        self.closed = 0
        self.stopped = False

    async def start(self):
        return self

    async def stop(self):
        self.stopped = True

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        await self.stop()


@pytest.fixture
def driver(monkeypatch):
    fake = FakeDriver(FakePage(visible={Selectors.MENU_TIME_TRACKING}))
    monkeypatch.setattr(abacus_browser, "async_playwright", lambda: fake)
    return fake


@pytest.fixture
def saved_session(config):
    SessionStore(config.state_path).save({"cookies": [], "origins": []})
    return config.state_path


def reporter():
    return Reporter(stream=io.StringIO(), err_stream=io.StringIO())


def read_state(path):
    with open(path, encoding="utf-8") as f:
        return json.load(f)


class TestAbacusBrowser:

    def test_requires_saved_session(self, config, driver):
        with pytest.raises(ConfigError, match="abacus login"):
            asyncio.run(AbacusBrowser(config, reporter()).__aenter__())
        assert driver.launches == []

    def test_unauthenticated_session_not_saved(self, config, driver, saved_session):
        async def scenario():
            async with AbacusBrowser(config, reporter()):
                pass

        asyncio.run(scenario())
        assert read_state(saved_session) == {"cookies": [], "origins": []}
        assert driver.stopped
        assert SessionLock(config.lock_path).try_acquire()

    def test_authenticated_session_saved(self, config, driver, saved_session):
        async def scenario():
            async with AbacusBrowser(config, reporter()) as browser:
                browser.mark_authenticated()

        asyncio.run(scenario())
        assert read_state(saved_session) == FRESH_STATE
        assert driver.contexts == [{"cookies": [], "origins": []}]

    def test_lock_released_on_error(self, config, driver, saved_session):
        async def scenario():
            async with AbacusBrowser(config, reporter()):
                raise RuntimeError("boom")

        with pytest.raises(RuntimeError):
            asyncio.run(scenario())
        assert SessionLock(config.lock_path).try_acquire()

    def test_lock_kept_alive_during_long_session(self, config, driver, saved_session, monkeypatch):
        monkeypatch.setattr(abacus_browser, "LOCK_HEARTBEAT", 0.01)
        old = time.time() - 660

        async def scenario():
            async with AbacusBrowser(config, reporter()):
                os.utime(config.lock_path, (old, old))
                await asyncio.sleep(0.1)
                return SessionLock(config.lock_path).try_acquire()

        assert asyncio.run(scenario()) is False
        assert not os.path.exists(config.lock_path)

    def test_busy_lock(self, config, driver, saved_session):
        holder = SessionLock(config.lock_path)
        assert holder.try_acquire()
        with pytest.raises(SessionBusyError):
            asyncio.run(AbacusBrowser(config, reporter(), lock_wait=None).__aenter__())
        holder.release()


class TestCaptchaInSession:

    def test_captcha_relaunches_headed_and_saves(self, config, driver, saved_session):
        driver.page.redirect_to = "https://abacus.example.com/fortiadc_captcha"
        driver.page.function_results[CAPTCHA_GONE_JS] = True

        async def scenario():
            async with open_session(config, reporter(), EN) as nav:
                await nav.open_entries_grid()

        with pytest.raises(CaptchaRetrySignal):
            asyncio.run(scenario())
        assert driver.launches == [True, False]
        assert read_state(saved_session) == FRESH_STATE
        assert SessionLock(config.lock_path).try_acquire()


class TestRefresh:

    def test_alive(self, config, driver, saved_session):
        assert asyncio.run(refresh(config, reporter(), EN)) is True
        assert driver.launches == [True]
        assert read_state(saved_session) == FRESH_STATE
        with open(config.refresh_log_path, encoding="utf-8") as f:
            assert EN("session_refreshed") in f.read()

    def test_expired(self, config, driver, saved_session):
        driver.page.visible.clear()
        assert asyncio.run(refresh(config, reporter(), EN)) is False
        assert read_state(saved_session) == {"cookies": [], "origins": []}
        with open(config.refresh_log_path, encoding="utf-8") as f:
            assert "ERROR: " + EN("session_refresh_failed") in f.read()

    def test_busy_is_skipped(self, config, driver, saved_session):
        holder = SessionLock(config.lock_path)
        assert holder.try_acquire()
        assert asyncio.run(refresh(config, reporter(), EN)) is True
        holder.release()
        assert driver.launches == []
        with open(config.refresh_log_path, encoding="utf-8") as f:
            assert EN("session_busy_skip") in f.read()


class TestLogin:

    def test_detects_login(self, config, driver):
        waited = []

        async def wait_for_enter():
            waited.append(True)

        path = asyncio.run(login(config, reporter(), EN, wait_for_enter=wait_for_enter))
        assert path == config.state_path
        assert read_state(path) == FRESH_STATE
        assert driver.launches == [False]
        assert waited == []
        with open(config.config_file, encoding="utf-8") as f:
            assert json.load(f)["url"] == config.url

    def test_falls_back_to_enter(self, config, driver):
        driver.page.visible.clear()
        waited = []

        async def wait_for_enter():
            waited.append(True)

        asyncio.run(login(config, reporter(), EN, wait_for_enter=wait_for_enter))
        assert waited == [True]
        assert read_state(config.state_path) == FRESH_STATE


def test_refresh_log_line(tmp_path):
    path = str(tmp_path / "logs" / "refresh.log")
    append_refresh_log(path, "Session refreshed successfully")
    with open(path, encoding="utf-8") as f:
        line = f.read()
    assert re.fullmatch(r"\[\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}\] Session refreshed successfully\n", line)
