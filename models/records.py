"""Domain models shared across services."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional

from models.parameters import PARAMETERS_BY_KEY, resolve_parameter_key


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 timestamp into an aware UTC datetime."""
    candidate = value.strip()
    if not candidate:
        raise ValueError("Timestamp is empty.")

    if candidate.endswith("Z"):
        candidate = candidate[:-1] + "+00:00"

    try:
        parsed = datetime.fromisoformat(candidate)
    except ValueError as exc:
        raise ValueError("Invalid timestamp format") from exc

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)

    return parsed.astimezone(timezone.utc)


def format_timestamp(value: datetime) -> str:
    """Render a UTC datetime as ISO-8601 with a ``Z`` suffix."""
    text = value.astimezone(timezone.utc).isoformat(timespec="milliseconds")
    return text.replace("+00:00", "Z")


def coerce_number(value: Any) -> Optional[float]:
    """Return ``value`` as a finite float, or ``None`` when it is not one."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


@dataclass(frozen=True)
class Reading:
    """One timestamped multi-parameter observation."""

    timestamp: datetime
    values: Mapping[str, float] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "values", MappingProxyType(dict(self.values)))

    def get(self, key: str) -> Optional[float]:
        return self.values.get(key)

    def to_record(self) -> Dict[str, Any]:
        """Serialize back to the labelled JSON shape used by reading files."""
        record: Dict[str, Any] = {}
        for key, value in self.values.items():
            record[PARAMETERS_BY_KEY[key].source_label] = value
        record["timestamp"] = format_timestamp(self.timestamp)
        return record


def reading_from_record(record: Mapping[str, Any]) -> Reading:
    """Build a Reading from a labelled record such as ``{"CO2 (ppm)": 410, "timestamp": ...}``.

    Raises ValueError when the record carries no parseable timestamp. Values that
    are not numeric are left out of the reading.
    """
    raw_timestamp = record.get("timestamp")
    if not isinstance(raw_timestamp, str):
        raise ValueError("missing timestamp")
    timestamp = parse_timestamp(raw_timestamp)

    values: Dict[str, float] = {}
    for label, raw_value in record.items():
        if label == "timestamp":
            continue
        key = resolve_parameter_key(str(label))
        if key is None:
            continue
        value = coerce_number(raw_value)
        if value is not None:
            values[key] = value
    return Reading(timestamp=timestamp, values=values)


class Direction(str, Enum):
    high = "high"
    low = "low"


@dataclass(frozen=True)
class ThresholdWarning:
    """A threshold breach by one parameter of one reading."""

    parameter: str
    direction: Direction
    observed_value: float
    threshold_value: float
    timestamp: datetime
    unit: str = ""

    @property
    def key(self) -> str:
        return f"{self.parameter}|{self.direction.value}|{format_timestamp(self.timestamp)}"

    @property
    def title(self) -> str:
        return f"{self.direction.value.capitalize()} {self.parameter.upper()}"

    @property
    def message(self) -> str:
        return (
            f"Value: {self.observed_value:.1f}{self.unit} "
            f"(Threshold: {self.threshold_value:g}{self.unit})"
        )


@dataclass(frozen=True)
class ChartPoint:
    """Display-ready record combining every parameter for one timestamp."""

    time: str
    temperature: float = 0.0
    humidity: float = 0.0
    pm25: float = 0.0
    voc: float = 0.0
    o3: float = 0.0
    co: float = 0.0
    co2: float = 0.0
    no2: float = 0.0
    so2: float = 0.0

    def value(self, key: str) -> float:
        if key not in PARAMETERS_BY_KEY:
            raise KeyError(key)
        return getattr(self, key)


@dataclass
class DeviceData:
    """Parallel per-parameter arrays, index-aligned with ``timestamp``."""

    temperature: List[float] = field(default_factory=list)
    humidity: List[float] = field(default_factory=list)
    pm25: List[float] = field(default_factory=list)
    voc: List[float] = field(default_factory=list)
    o3: List[float] = field(default_factory=list)
    co: List[float] = field(default_factory=list)
    co2: List[float] = field(default_factory=list)
    no2: List[float] = field(default_factory=list)
    so2: List[float] = field(default_factory=list)
    timestamp: List[str] = field(default_factory=list)
