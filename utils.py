"""Configuration loading and the captcha retry policy."""

import json
import os
from typing import Awaitable, Callable, TypeVar

from errors import CaptchaLoopError, CaptchaRetrySignal, ConfigError
from locales import LOCALE_STRINGS, resolve_locale
from models import AppConfig, CaptchaRequired, Failure, Success

T = TypeVar("T")

DEFAULT_CONFIG_DIR = os.path.join(os.path.expanduser("~"), ".abacus-cli")
CONFIG_KEYS = {"url": "url", "locale": "locale"}


def get_config_dir() -> str:
    return os.environ.get("ABACUS_CONFIG_DIR") or DEFAULT_CONFIG_DIR


def ensure_config_dir(config_dir: str | None = None) -> str:
    path = config_dir or get_config_dir()
    os.makedirs(path, exist_ok=True)
    return path


def read_config_file(config_dir: str | None = None) -> dict:
    """Read config.json; a missing file is an empty config."""
    path = os.path.join(config_dir or get_config_dir(), "config.json")
    if not os.path.exists(path):
        return {}
    with open(path, encoding="utf-8") as f:
        return json.load(f)


def save_config_file(updates: dict, config_dir: str | None = None) -> str:
    """Merge keys into config.json and return its path."""
    path = os.path.join(ensure_config_dir(config_dir), "config.json")
    data = read_config_file(config_dir)
    data.update(updates)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, ensure_ascii=False)
        f.write("\n")
    return path


def _env_flag(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None or value == "":
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def load_config(config_dir: str | None = None) -> AppConfig:
    """Resolve configuration from environment, config.json and defaults."""
    config_dir = config_dir or get_config_dir()
    file_config = read_config_file(config_dir)
    sources = {}

    url = os.environ.get("ABACUS_URL", "")
    if url:
        sources["url"] = "env"
    else:
        url = file_config.get("url") or file_config.get("abacusUrl") or ""
        sources["url"] = "file" if url else "-"

    locale, sources["locale"] = resolve_locale(file_config.get("locale", ""))
    sources["headless"] = "env" if os.environ.get("ABACUS_HEADLESS") else "default"

    return AppConfig(
        url=url.strip(),
        locale=locale,
        headless=_env_flag("ABACUS_HEADLESS", True),
        semi_manual=_env_flag("ABACUS_SEMI_MANUAL", False),
        debug=_env_flag("ABACUS_DEBUG", False),
        config_dir=config_dir,
        sources=sources,
    )


def validate_config(config: AppConfig) -> list[str]:
    """Validate config and return list of error messages.

    Returns:
        Empty list if valid, otherwise list of error messages.
    """
    errors = []
    if not config.url:
        errors.append("Missing portal URL (set ABACUS_URL or run 'abacus config set url <url>')")
    elif not config.url.startswith(("http://", "https://")):
        errors.append(f"Portal URL must start with http:// or https:// (got '{config.url}')")
    if config.locale not in LOCALE_STRINGS:
        errors.append(f"Unsupported locale '{config.locale}'")
    return errors


def load_config_safe(config_dir: str | None = None) -> AppConfig | None:
    """Load config with user-friendly error messages.

    Returns:
        Config if valid, None if errors occurred.
    """
    try:
        config = load_config(config_dir)
    except json.JSONDecodeError as e:
        print("[!] ERROR: config.json is not valid JSON!")
        print(f"    Line {e.lineno}, column {e.colno}: {e.msg}")
        return None

    errors = validate_config(config)
    if errors:
        print("[!] ERROR: configuration is incomplete:")
        for err in errors:
            print(f"    - {err}")
        return None

    return config


def require_url(config: AppConfig) -> str:
    if not config.url:
        raise ConfigError("Portal URL not configured. Run 'abacus config set url <url>'")
    return config.url


# ---------------------------------------------------------------------------
# Captcha retry policy
# ---------------------------------------------------------------------------


async def capture_outcome(operation: Callable[[], Awaitable[T]]):
    """Run an operation and describe how it ended.

    Returns Success, CaptchaRequired or Failure. KeyboardInterrupt and other
    BaseExceptions are not captured.
    """
    try:
        return Success(await operation())
    except CaptchaRetrySignal as signal:
        return CaptchaRequired(url=str(signal))
    except Exception as e:
        return Failure(e)


async def with_captcha_retry(
    operation: Callable[[], Awaitable[T]],
    on_retry: Callable[[], None] | None = None,
) -> T:
    """Execute an operation, starting it over once after a solved captcha.

    The whole operation runs again from its first navigation. A second
    captcha in the retry is fatal.
    """
    outcome = await capture_outcome(operation)
    if isinstance(outcome, CaptchaRequired):
        if on_retry:
            on_retry()
        outcome = await capture_outcome(operation)
        if isinstance(outcome, CaptchaRequired):
            raise CaptchaLoopError("Captcha challenge appeared again after retry", url=outcome.url or None)

    if isinstance(outcome, Failure):
        raise outcome.error
    return outcome.value
