"""Unit tests for time-window selection."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from models.records import Reading
from services.window import EmptyWindowPolicy, TimeWindow, filter_readings

NOW = datetime(2025, 4, 18, 12, 0, tzinfo=timezone.utc)


def _readings(count: int, step: timedelta = timedelta(minutes=10)) -> list[Reading]:
    start = NOW - step * (count - 1)
    return [Reading(timestamp=start + step * index, values={"co2": float(index)}) for index in range(count)]


@pytest.mark.parametrize("window, size", [(TimeWindow.last_10, 10), (TimeWindow.last_30, 30)])
def test_count_windows_return_suffix(window: TimeWindow, size: int) -> None:
    readings = _readings(45)

    selected = filter_readings(readings, window, NOW)

    assert len(selected) == size
    assert list(selected) == readings[-size:]


def test_count_window_shorter_than_sequence_returns_everything() -> None:
    readings = _readings(4)

    assert list(filter_readings(readings, TimeWindow.last_30, NOW)) == readings


def test_time_window_keeps_readings_within_span() -> None:
    readings = _readings(12)  # every 10 minutes, the last one at NOW

    selected = filter_readings(readings, TimeWindow.hour, NOW)

    assert len(selected) == 7
    assert all(NOW - reading.timestamp <= timedelta(hours=1) for reading in selected)
    assert list(selected) == readings[-7:]


def test_time_window_falls_back_to_latest_reading() -> None:
    old = _readings(5, step=timedelta(days=1))
    stale = [Reading(timestamp=r.timestamp - timedelta(days=10), values=r.values) for r in old]

    selected = filter_readings(stale, TimeWindow.day, NOW)

    assert selected == (stale[-1],)


def test_time_window_empty_policy_returns_nothing() -> None:
    stale = [Reading(timestamp=NOW - timedelta(days=3))]

    assert filter_readings(stale, TimeWindow.six_hours, NOW, EmptyWindowPolicy.empty) == ()


def test_all_window_and_empty_input() -> None:
    readings = _readings(3)

    assert list(filter_readings(readings, TimeWindow.all, NOW)) == readings
    assert filter_readings([], TimeWindow.hour, NOW) == ()


def test_parse_window() -> None:
    assert TimeWindow.parse(None) is TimeWindow.all
    assert TimeWindow.parse("") is TimeWindow.all
    assert TimeWindow.parse("6h") is TimeWindow.six_hours
    with pytest.raises(ValueError, match="Unknown time filter"):
        TimeWindow.parse("2d")
