"""Unit tests for the rolling warning history."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from datastore.warning_history import WarningHistory
from models.records import Direction, ThresholdWarning

NOW = datetime(2025, 4, 18, 12, 0, tzinfo=timezone.utc)


def _warning(age: timedelta, parameter: str = "co2") -> ThresholdWarning:
    return ThresholdWarning(
        parameter=parameter,
        direction=Direction.high,
        observed_value=600.0,
        threshold_value=500.0,
        timestamp=NOW - age,
        unit="ppm",
    )


def test_record_skips_already_known_warnings() -> None:
    history = WarningHistory()
    warning = _warning(timedelta(minutes=5))

    assert history.record([warning], NOW) == [warning]
    assert history.record([warning], NOW) == []
    assert len(history) == 1


def test_warnings_older_than_retention_are_evicted() -> None:
    history = WarningHistory(retention=timedelta(hours=24))
    fresh = _warning(timedelta(hours=1))
    expired = _warning(timedelta(hours=25), parameter="pm25")

    added = history.record([fresh, expired], NOW)

    assert added == [fresh]
    assert history.recent(NOW) == [fresh]
    assert history.recent(NOW + timedelta(hours=24)) == []


def test_recent_is_newest_first() -> None:
    history = WarningHistory()
    older = _warning(timedelta(hours=3))
    newer = _warning(timedelta(hours=1))

    history.record([older, newer], NOW)

    assert history.recent(NOW) == [newer, older]


def test_dismiss_and_clear() -> None:
    history = WarningHistory()
    warning = _warning(timedelta(minutes=1))
    history.record([warning], NOW)

    history.dismiss(warning.key, NOW)
    assert history.is_dismissed(warning.key)

    history.clear()
    assert not history.is_dismissed(warning.key)
    assert len(history) == 0


def test_dismissed_keys_without_retained_warning_age_out() -> None:
    history = WarningHistory()
    keys = [f"co2|high|2020-01-01T00:00:{index:02d}.000Z" for index in range(50)]

    for key in keys:
        history.dismiss(key, NOW)
    assert all(history.is_dismissed(key) for key in keys)

    history.recent(NOW + timedelta(hours=24))
    assert history.is_dismissed(keys[0])

    history.recent(NOW + timedelta(hours=24, seconds=1))
    assert not any(history.is_dismissed(key) for key in keys)
    assert history._dismissed == {}


def test_dismissing_a_warning_evicted_on_record_does_not_linger() -> None:
    history = WarningHistory()
    stale = _warning(timedelta(days=3))

    assert history.record([stale], NOW) == []
    history.dismiss(stale.key, NOW)

    history.record([], NOW + timedelta(days=2))
    assert not history.is_dismissed(stale.key)
