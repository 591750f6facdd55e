"""Recovery from the FortiADC captcha interstitial.

The load balancer in front of Abacus occasionally redirects to a human
verification page. A headless browser cannot get past it, so the browser is
reopened visibly, the user solves the challenge, the refreshed session is
saved and the interrupted operation is started over.
"""

from enum import Enum

from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from abacus_selectors import Selectors
from errors import CaptchaRetrySignal, UiTimeoutError
from locales import Locale
from reporter import Reporter
from vaadin import wait_for_idle

CAPTCHA_TIMEOUT = 120000  # 2 minutes for a human

CAPTCHA_GONE_JS = "(marker) => !window.location.href.includes(marker)"


class CaptchaState(Enum):
    HEADLESS = "headless"
    DETECTED = "detected"
    HEADED_OPEN = "headed_open"
    SOLVED = "solved"
    RETRYING = "retrying"


class CaptchaRecovery:
    """Walks one browser session through Headless -> ... -> Retrying.

    ``browser`` must offer ``relaunch(headless)`` returning the new page,
    ``mark_authenticated()`` and ``close()``; see AbacusBrowser.
    """

    def __init__(self, browser, reporter: Reporter, locale: Locale, timeout: int = CAPTCHA_TIMEOUT):
        self.browser = browser
        self.reporter = reporter
        self.t = locale
        self.timeout = timeout
        self.state = CaptchaState.HEADLESS

    async def recover(self, url: str) -> None:
        """Let the user solve the challenge, then raise CaptchaRetrySignal.

        Never returns normally.
        """
        self.state = CaptchaState.DETECTED
        self.reporter.warn(self.t("captcha_detected"))

        page = await self.browser.relaunch(headless=False)
        self.state = CaptchaState.HEADED_OPEN
        await page.goto(url, wait_until="networkidle")

        self.reporter.info(self.t("captcha_solve"))
        self.reporter.info(self.t("captcha_waiting"))
        try:
            await page.wait_for_function(CAPTCHA_GONE_JS, arg=Selectors.CAPTCHA_URL_MARKER, timeout=self.timeout)
        except PlaywrightTimeoutError:
            raise UiTimeoutError("Captcha was not solved in time", url=url, timeout_ms=self.timeout)
        await wait_for_idle(page)
        self.state = CaptchaState.SOLVED

        # Closing an authenticated session writes the fresh cookies to disk
        self.browser.mark_authenticated()
        await self.browser.close()

        self.state = CaptchaState.RETRYING
        raise CaptchaRetrySignal(url)
