"""Projection of readings into chart points and query payloads."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable, Iterable, List

from models.parameters import PARAMETER_KEYS
from models.records import ChartPoint, DeviceData, Reading, coerce_number, format_timestamp


def format_time_label(value: datetime) -> str:
    """Format a timestamp like ``Apr 18, 2025, 04:22:00 PM`` (UTC)."""
    moment = value.astimezone(timezone.utc)
    return f"{moment:%b} {moment.day}, {moment:%Y, %I:%M:%S %p}"


class Aggregator:
    """Pure projection component that can be unit tested in isolation."""

    def __init__(self, formatter: Callable[[datetime], str] = format_time_label) -> None:
        self.formatter = formatter

    def project(self, readings: Iterable[Reading]) -> List[ChartPoint]:
        points: List[ChartPoint] = []
        for reading in readings:
            values = {}
            for key in PARAMETER_KEYS:
                value = coerce_number(reading.get(key))
                values[key] = round(value, 1) if value is not None else 0.0
            points.append(ChartPoint(time=self.formatter(reading.timestamp), **values))
        return points

    def to_device_data(self, readings: Iterable[Reading]) -> DeviceData:
        data = DeviceData()
        for reading in readings:
            data.timestamp.append(format_timestamp(reading.timestamp))
            for key in PARAMETER_KEYS:
                value = coerce_number(reading.get(key))
                getattr(data, key).append(value if value is not None else 0.0)
        return data
