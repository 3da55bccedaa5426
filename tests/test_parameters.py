"""Tests for the parameter catalogue and threshold table loading."""

from __future__ import annotations

import json
from datetime import datetime, timezone

import pytest

from models.parameters import DEFAULT_THRESHOLDS, PARAMETER_KEYS, load_thresholds, resolve_parameter_key
from models.records import parse_timestamp, reading_from_record


def test_threshold_table_covers_every_parameter() -> None:
    assert tuple(DEFAULT_THRESHOLDS) == PARAMETER_KEYS
    assert DEFAULT_THRESHOLDS["co"].high == 8.73
    assert DEFAULT_THRESHOLDS["humidity"].low == 40


@pytest.mark.parametrize(
    "label, key",
    [
        ("CO2 (ppm)", "co2"),
        ("PM2.5 (ug/m3)", "pm25"),
        ("VOCs (ppm)", "voc"),
        ("Temperature (°C)", "temperature"),
        ("humidity", "humidity"),
        ("Radon (Bq/m3)", None),
    ],
)
def test_resolve_parameter_key(label: str, key: str | None) -> None:
    assert resolve_parameter_key(label) == key


def test_load_thresholds_overrides_selected_parameters(tmp_path) -> None:
    path = tmp_path / "thresholds.json"
    path.write_text(json.dumps({"co2": {"high": 800}, "humidity": {"low": 30, "high": 70}}))

    table = load_thresholds(path)

    assert table["co2"].high == 800
    assert table["co2"].low == 0
    assert table["co2"].unit == "ppm"
    assert (table["humidity"].low, table["humidity"].high) == (30, 70)
    assert table["pm25"] == DEFAULT_THRESHOLDS["pm25"]


def test_load_thresholds_rejects_unknown_parameter(tmp_path) -> None:
    path = tmp_path / "thresholds.json"
    path.write_text(json.dumps({"radon": {"high": 1}}))

    with pytest.raises(ValueError, match="Unknown parameter"):
        load_thresholds(path)


def test_parse_timestamp_normalises_to_utc() -> None:
    assert parse_timestamp("2025-04-18T16:22:00Z") == datetime(2025, 4, 18, 16, 22, tzinfo=timezone.utc)
    assert parse_timestamp("2025-04-18T18:22:00+02:00") == datetime(2025, 4, 18, 16, 22, tzinfo=timezone.utc)
    assert parse_timestamp("2025-04-18T16:22:00").tzinfo == timezone.utc
    with pytest.raises(ValueError):
        parse_timestamp("not-a-timestamp")


def test_reading_record_round_trip_keeps_labels() -> None:
    reading = reading_from_record({"CO2 (ppm)": 412.5, "timestamp": "2025-04-18T16:22:00Z"})

    assert reading.to_record() == {"CO2 (ppm)": 412.5, "timestamp": "2025-04-18T16:22:00.000Z"}
