"""Selection of the reading subsequence a dashboard view asks for."""

from __future__ import annotations

from datetime import datetime, timedelta
from enum import Enum
from typing import Optional, Sequence, Tuple

from models.records import Reading


class TimeWindow(str, Enum):
    """Window specifiers accepted by the readings endpoints."""

    last_10 = "10"
    last_30 = "30"
    hour = "1h"
    six_hours = "6h"
    day = "24h"
    all = "all"

    @classmethod
    def parse(cls, value: Optional[str]) -> "TimeWindow":
        if value is None or not value.strip():
            return cls.all
        try:
            return cls(value.strip().lower())
        except ValueError as exc:
            allowed = ", ".join(member.value for member in cls)
            raise ValueError(f"Unknown time filter {value!r}; expected one of: {allowed}") from exc

    @property
    def label(self) -> str:
        return _LABELS[self]


class EmptyWindowPolicy(str, Enum):
    """What a time window returns when no reading falls inside it."""

    latest = "latest"
    empty = "empty"


_COUNTS = {TimeWindow.last_10: 10, TimeWindow.last_30: 30}
_SPANS = {
    TimeWindow.hour: timedelta(hours=1),
    TimeWindow.six_hours: timedelta(hours=6),
    TimeWindow.day: timedelta(hours=24),
}
_LABELS = {
    TimeWindow.last_10: "Last 10 readings",
    TimeWindow.last_30: "Last 30 readings",
    TimeWindow.hour: "Last 1 hour",
    TimeWindow.six_hours: "Last 6 hours",
    TimeWindow.day: "Last 24 hours",
    TimeWindow.all: "All readings",
}


def filter_readings(
    readings: Sequence[Reading],
    window: TimeWindow,
    now: datetime,
    policy: EmptyWindowPolicy = EmptyWindowPolicy.latest,
) -> Tuple[Reading, ...]:
    """Return the part of ``readings`` (sorted ascending) selected by ``window``."""
    ordered = tuple(readings)

    count = _COUNTS.get(window)
    if count is not None:
        return ordered[-count:]

    span = _SPANS.get(window)
    if span is None:
        return ordered

    selected = tuple(reading for reading in ordered if now - reading.timestamp <= span)
    if not selected and ordered and policy is EmptyWindowPolicy.latest:
        return ordered[-1:]
    return selected
