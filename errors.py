"""Error types for Abacus time tracking automation."""


class AbacusError(Exception):
    """User-facing error with optional diagnostic context."""

    def __init__(self, message: str, **context):
        self.context = {k: v for k, v in context.items() if v is not None}
        if self.context:
            details = ", ".join(f"{k}={v}" for k, v in self.context.items())
            message = f"{message} ({details})"
        super().__init__(message)


class ConfigError(AbacusError):
    """Required configuration (URL, session) is missing."""


class SessionExpiredError(AbacusError):
    """The saved session is no longer accepted by the portal."""

    def __init__(self, url: str):
        super().__init__(
            "Session expired or page not loaded. Please run 'abacus login' again.",
            url=url,
        )
        self.url = url


class UiTimeoutError(AbacusError, TimeoutError):
    """An expected UI element or state never appeared in time."""


class NotFoundError(AbacusError):
    """An expected UI element is not present."""


class StaleRowError(NotFoundError):
    """A grid row handle from an outdated render was used."""


class SaveButtonNotFoundError(AbacusError):
    """The form was filled but neither save button is visible."""

    def __init__(self):
        super().__init__("Save button not found. Entry was NOT saved.")


class BatchFileError(AbacusError):
    """A batch import file is missing or malformed."""


class CaptchaLoopError(AbacusError):
    """The captcha challenge reappeared after the single retry."""


class SessionBusyError(AbacusError):
    """Another browser session holds the session lock."""


class EntryValidationError(ValueError):
    """A time entry violates its invariants."""


class CaptchaRetrySignal(Exception):
    """Raised after a captcha was solved; the operation must start over."""
