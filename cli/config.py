"""CLI configuration resolved from options, then environment, then defaults."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from services.window import TimeWindow

DEFAULT_BASE_URL = "http://localhost:8000"
DEFAULT_TIME_FILTER = TimeWindow.all.value

_BASE_URL_ENV = "API_BASE_URL"
_DEVICE_CODE_ENV = "DEVICE_CODE"
_POLL_INTERVAL_ENV = "CLI_POLL_INTERVAL"
_TIME_FILTER_ENV = "CLI_TIME_FILTER"
_HTTP_TIMEOUT_ENV = "CLI_HTTP_TIMEOUT"


@dataclass(frozen=True)
class CLIConfig:
    base_url: str = DEFAULT_BASE_URL
    device_code: Optional[str] = None
    poll_interval: float = 30.0
    time_filter: str = DEFAULT_TIME_FILTER
    http_timeout: float = 30.0


def _positive_float_env(name: str, default: float) -> float:
    raw = (os.getenv(name) or "").strip()
    try:
        value = float(raw) if raw else default
    except ValueError:
        return default
    return value if value > 0 else default


def _time_filter_env(default: str) -> str:
    raw = os.getenv(_TIME_FILTER_ENV)
    try:
        return TimeWindow.parse(raw).value if raw and raw.strip() else default
    except ValueError:
        return default


def load_config(
    base_url: Optional[str] = None,
    device_code: Optional[str] = None,
    poll_interval: Optional[float] = None,
) -> CLIConfig:
    defaults = CLIConfig()
    url = (base_url or os.getenv(_BASE_URL_ENV) or defaults.base_url).rstrip("/")
    code = (device_code or os.getenv(_DEVICE_CODE_ENV) or "").strip() or None
    return CLIConfig(
        base_url=url,
        device_code=code,
        poll_interval=poll_interval
        if poll_interval is not None
        else _positive_float_env(_POLL_INTERVAL_ENV, defaults.poll_interval),
        time_filter=_time_filter_env(defaults.time_filter),
        http_timeout=_positive_float_env(_HTTP_TIMEOUT_ENV, defaults.http_timeout),
    )
