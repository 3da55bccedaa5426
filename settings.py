from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional, Tuple

from models.parameters import PARAMETER_KEYS


_SOURCE_ENV = "READINGS_SOURCE"
_READINGS_PATH_ENV = "READINGS_PATH"
_REALTIME_PATH_ENV = "REALTIME_PATH"
_FALLBACK_ENV = "SYNTHETIC_FALLBACK"
_ENABLED_PARAMETERS_ENV = "ENABLED_PARAMETERS"
_WINDOW_POLICY_ENV = "EMPTY_WINDOW_POLICY"
_POLL_INTERVAL_ENV = "POLL_INTERVAL_SECONDS"
_RETENTION_ENV = "WARNING_RETENTION_HOURS"
_DEVICE_CODES_ENV = "DEVICE_CODES"
_THRESHOLDS_PATH_ENV = "THRESHOLDS_PATH"
_LOG_LEVEL_ENV = "LOG_LEVEL"
_HOST_ENV = "SERVER_HOST"
_PORT_ENV = "SERVER_PORT"

_SOURCES = ("file", "dummy", "dummy_realtime")
_WINDOW_POLICIES = ("latest", "empty")
_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class Settings:
    readings_source: str
    readings_path: str
    realtime_path: Optional[str]
    synthetic_fallback: bool
    enabled_parameters: Tuple[str, ...]
    empty_window_policy: str
    poll_interval: float
    warning_retention_hours: float
    device_codes: Tuple[str, ...]
    thresholds_path: Optional[str]
    log_level: str
    server_host: str
    server_port: int


def _read_str_env(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or default


def _read_optional_env(name: str, default: Optional[str]) -> Optional[str]:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or None


def _read_choice_env(name: str, choices: Tuple[str, ...], default: str) -> str:
    candidate = _read_str_env(name, default).lower()
    return candidate if candidate in choices else default


def _read_bool_env(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip().lower()
    if candidate in _TRUE_VALUES:
        return True
    if candidate in _FALSE_VALUES:
        return False
    return default


def _read_positive_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = float(candidate)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _read_list_env(name: str, default: Tuple[str, ...]) -> Tuple[str, ...]:
    value = os.getenv(name)
    if value is None:
        return default
    items = tuple(item.strip() for item in value.split(",") if item.strip())
    return items


def _read_port(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        parsed = int(value.strip())
    except ValueError:
        return default
    return parsed if 0 < parsed < 65536 else default


def _read_parameters_env(name: str, default: Tuple[str, ...]) -> Tuple[str, ...]:
    keys = (item.lower() for item in _read_list_env(name, default))
    selected = tuple(dict.fromkeys(key for key in keys if key in PARAMETER_KEYS))
    return selected or default


def _read_log_level(default: str) -> str:
    value = os.getenv(_LOG_LEVEL_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    return candidate.upper()


@lru_cache
def get_settings() -> Settings:
    return Settings(
        readings_source=_read_choice_env(_SOURCE_ENV, _SOURCES, "file"),
        readings_path=_read_str_env(_READINGS_PATH_ENV, "./data/readings.json"),
        realtime_path=_read_optional_env(_REALTIME_PATH_ENV, "./data/realtime.json"),
        synthetic_fallback=_read_bool_env(_FALLBACK_ENV, True),
        enabled_parameters=_read_parameters_env(
            _ENABLED_PARAMETERS_ENV, ("temperature", "humidity", "co2", "pm25")
        ),
        empty_window_policy=_read_choice_env(_WINDOW_POLICY_ENV, _WINDOW_POLICIES, "latest"),
        poll_interval=_read_positive_float(_POLL_INTERVAL_ENV, 5.0),
        warning_retention_hours=_read_positive_float(_RETENTION_ENV, 24.0),
        device_codes=_read_list_env(_DEVICE_CODES_ENV, ()),
        thresholds_path=_read_optional_env(_THRESHOLDS_PATH_ENV, None),
        log_level=_read_log_level("INFO"),
        server_host=_read_str_env(_HOST_ENV, "127.0.0.1"),
        server_port=_read_port(_PORT_ENV, 8000),
    )
