"""Runtime configuration for the telehealth link sender."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping
from zoneinfo import ZoneInfo

DEFAULT_API_URL = "https://rest.clicksend.com/v3/sms/send"
DEFAULT_ERROR_LOG_SHEET = "Messaging Errors"
DEFAULT_TIMEZONE = "America/Los_Angeles"
DEFAULT_LINK_HOST = "goldstandard.doxy.me"
DEFAULT_CREDENTIALS_PATH = "credentials/service_account.json"
DEFAULT_WORK_DAYS = "mon,tue,wed,thu,fri"
VALID_WORK_DAYS = ("mon", "tue", "wed", "thu", "fri", "sat", "sun")


class LinkSenderError(RuntimeError):
    """Base error for link sender runtime failures."""


class ConfigError(ValueError):
    """Raised when an environment value cannot be interpreted."""


@dataclass(slots=True)
class LinkSenderConfig:
    spreadsheet_id: str = ""
    credentials_path: Path = Path(DEFAULT_CREDENTIALS_PATH)
    clicksend_username: str = ""
    clicksend_api_key: str = ""
    clicksend_api_url: str = DEFAULT_API_URL
    sms_from: str = "GSMG"
    lead_minutes: int = 5
    stop_at_tabs: tuple[str, ...] = ()
    error_log_sheet: str = DEFAULT_ERROR_LOG_SHEET
    timezone: str = DEFAULT_TIMEZONE
    link_host: str = DEFAULT_LINK_HOST
    dry_run: bool = False
    interval_minutes: int = 10
    active_hours: str = "7-19"
    work_days: str = DEFAULT_WORK_DAYS
    http_timeout: float = 15.0

    @property
    def tz(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)

    @property
    def has_clicksend_credentials(self) -> bool:
        return bool(self.clicksend_username and self.clicksend_api_key)


def _get(env: Mapping[str, str], key: str, default: str = "") -> str:
    return env.get(key, default).strip()


def _parse_int(env: Mapping[str, str], key: str, default: int) -> int:
    raw = _get(env, key)
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ConfigError(f"{key} must be an integer, got {raw!r}") from exc
    if value < 0:
        raise ConfigError(f"{key} must not be negative, got {value}")
    return value


def _parse_float(env: Mapping[str, str], key: str, default: float) -> float:
    raw = _get(env, key)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ConfigError(f"{key} must be a number, got {raw!r}") from exc


def _parse_list(raw: str) -> tuple[str, ...]:
    return tuple(item.strip() for item in raw.split(",") if item.strip())


def resolve_work_days(env: Mapping[str, str] | None = None) -> str:
    """Return the cron day-of-week list, dropping unknown day tokens."""
    env = os.environ if env is None else env
    raw = _get(env, "LINKSENDER_WORK_DAYS") or DEFAULT_WORK_DAYS
    days = [day.lower() for day in _parse_list(raw) if day.lower() in VALID_WORK_DAYS]
    return ",".join(days) or DEFAULT_WORK_DAYS


def load_config(env: Mapping[str, str] | None = None) -> LinkSenderConfig:
    """Build a config from environment variables."""
    env = os.environ if env is None else env
    timezone_name = _get(env, "LINKSENDER_TIMEZONE") or DEFAULT_TIMEZONE
    try:
        ZoneInfo(timezone_name)
    except (KeyError, ValueError) as exc:
        raise ConfigError(f"LINKSENDER_TIMEZONE is not a known timezone: {timezone_name!r}") from exc

    return LinkSenderConfig(
        spreadsheet_id=_get(env, "LINKSENDER_SPREADSHEET_ID"),
        credentials_path=Path(
            _get(env, "LINKSENDER_GOOGLE_CREDENTIALS_PATH") or DEFAULT_CREDENTIALS_PATH
        ),
        clicksend_username=_get(env, "CLICKSEND_USERNAME"),
        clicksend_api_key=_get(env, "CLICKSEND_API_KEY"),
        clicksend_api_url=_get(env, "CLICKSEND_API_URL") or DEFAULT_API_URL,
        sms_from=_get(env, "CLICKSEND_FROM") or "GSMG",
        lead_minutes=_parse_int(env, "LINKSENDER_LEAD_MINUTES", 5),
        stop_at_tabs=_parse_list(_get(env, "LINKSENDER_STOP_AT_TABS")),
        error_log_sheet=_get(env, "LINKSENDER_ERROR_LOG_SHEET") or DEFAULT_ERROR_LOG_SHEET,
        timezone=timezone_name,
        link_host=_get(env, "LINKSENDER_LINK_HOST") or DEFAULT_LINK_HOST,
        dry_run=_get(env, "LINKSENDER_DRY_RUN").lower() in {"1", "true", "yes"},
        interval_minutes=_parse_int(env, "LINKSENDER_INTERVAL_MINUTES", 10) or 10,
        active_hours=_get(env, "LINKSENDER_ACTIVE_HOURS") or "7-19",
        work_days=resolve_work_days(env),
        http_timeout=_parse_float(env, "LINKSENDER_HTTP_TIMEOUT", 15.0),
    )
