"""Backing sources for the reading store: a JSON file or a synthetic generator."""

from __future__ import annotations

import json
import logging
import random
from datetime import datetime, timezone
from pathlib import Path
from threading import Lock
from typing import Callable, Dict, Iterable, List, Optional, Protocol, Sequence, Tuple

from models.parameters import DEFAULT_THRESHOLDS, PARAMETER_KEYS, ThresholdTable
from models.records import Reading, reading_from_record

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class SourceUnavailableError(RuntimeError):
    """Raised when a backing source cannot be read at all."""


class ReadingSource(Protocol):
    name: str

    def has_changed(self) -> bool:
        """Return True when ``load`` would yield something new."""

    def load(self) -> List[Reading]:
        """Return every reading the source currently holds."""


def parse_records(payload: object, source: str = "") -> List[Reading]:
    """Convert a decoded JSON array into readings, dropping unusable records."""
    if not isinstance(payload, list):
        raise ValueError("Readings payload must be a JSON array.")

    readings: List[Reading] = []
    for index, record in enumerate(payload):
        if not isinstance(record, dict):
            logger.warning(
                "Skipping record %d", index, extra={"source": source, "reason": "not an object"}
            )
            continue
        try:
            readings.append(reading_from_record(record))
        except ValueError as exc:
            logger.warning(
                "Skipping record %d", index, extra={"source": source, "reason": str(exc)}
            )
    return readings


class JsonFileSource:
    """Readings stored as a JSON array of labelled records on disk."""

    name = "file"

    def __init__(self, path: Path) -> None:
        self.path = path
        self._last_modified: Optional[float] = None

    def has_changed(self) -> bool:
        try:
            modified = self.path.stat().st_mtime
        except FileNotFoundError:
            return self._last_modified is not None
        except OSError:
            return True
        return self._last_modified is None or modified > self._last_modified

    def load(self) -> List[Reading]:
        if not self.path.exists():
            self._create_empty()
            self._last_modified = None
            return []

        try:
            modified = self.path.stat().st_mtime
            raw = self.path.read_text(encoding="utf-8")
        except OSError as exc:
            raise SourceUnavailableError(f"Cannot read {self.path}: {exc}") from exc

        self._last_modified = modified
        try:
            payload = json.loads(raw or "[]")
            return parse_records(payload, source=str(self.path))
        except ValueError as exc:
            logger.error(
                "Readings file is corrupt; resetting to empty",
                extra={"path": str(self.path), "reason": str(exc)},
            )
            return []

    def _create_empty(self) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text("[]", encoding="utf-8")
        except OSError as exc:
            logger.warning(
                "Could not create readings file",
                extra={"path": str(self.path), "reason": str(exc)},
            )


# Ranges are (low, high) for the uniform draw of each generated parameter.
_SYNTHETIC_RANGES: Dict[str, Tuple[float, float]] = {
    "temperature": (DEFAULT_THRESHOLDS["temperature"].low, DEFAULT_THRESHOLDS["temperature"].high),
    "humidity": (DEFAULT_THRESHOLDS["humidity"].low, DEFAULT_THRESHOLDS["humidity"].high),
    "pm25": (0.1, 5.1),
    "voc": (0.0, 0.2),
    "o3": (0.0, 0.1),
    "co": (0.0, 0.5),
    "co2": (400.0, 500.0),
    "no2": (0.0, 0.1),
    "so2": (0.0, 0.1),
}


class SyntheticReadingGenerator:
    """Produces plausible readings for the enabled parameters."""

    def __init__(
        self,
        parameters: Iterable[str] = PARAMETER_KEYS,
        rng: Optional[random.Random] = None,
        thresholds: ThresholdTable = DEFAULT_THRESHOLDS,
    ) -> None:
        selected = tuple(parameters)
        unknown = sorted(set(selected) - set(PARAMETER_KEYS))
        if unknown:
            raise ValueError(f"Unknown parameters: {', '.join(unknown)}")
        self.parameters = selected
        self._rng = rng or random.Random()
        self._ranges = dict(_SYNTHETIC_RANGES)
        for key in ("temperature", "humidity"):
            bounds = thresholds[key]
            self._ranges[key] = (bounds.low, bounds.high)

    def generate(self, timestamp: datetime) -> Reading:
        values = {}
        for key in self.parameters:
            low, high = self._ranges[key]
            values[key] = round(self._rng.uniform(low, high), 2)
        return Reading(timestamp=timestamp, values=values)


class SyntheticSource:
    """A fixed batch of generated readings spaced at a regular interval."""

    name = "dummy"

    def __init__(
        self,
        generator: SyntheticReadingGenerator,
        count: int = 100,
        interval_seconds: float = 30.0,
        clock: Clock = utc_now,
    ) -> None:
        self.generator = generator
        self.count = count
        self.interval_seconds = interval_seconds
        self._clock = clock
        self._readings: Optional[List[Reading]] = None

    def has_changed(self) -> bool:
        return self._readings is None

    def load(self) -> List[Reading]:
        if self._readings is None:
            now = self._clock()
            self._readings = [
                self.generator.generate(
                    datetime.fromtimestamp(
                        now.timestamp() - (self.count - 1 - index) * self.interval_seconds,
                        tz=timezone.utc,
                    )
                )
                for index in range(self.count)
            ]
        return list(self._readings)


class RealtimeSyntheticSource:
    """Grows by one generated reading per load, keeping the most recent ``capacity``.

    When ``mirror_path`` is set the feed is seeded from and written back to that
    JSON file so it survives restarts.
    """

    name = "dummy_realtime"

    def __init__(
        self,
        generator: SyntheticReadingGenerator,
        capacity: int = 100,
        mirror_path: Optional[Path] = None,
        clock: Clock = utc_now,
    ) -> None:
        self.generator = generator
        self.capacity = capacity
        self.mirror_path = mirror_path
        self._clock = clock
        self._readings: List[Reading] = []
        self._lock = Lock()
        self._seeded = False

    def has_changed(self) -> bool:
        return True

    def load(self) -> List[Reading]:
        with self._lock:
            if not self._seeded:
                self._readings = self._read_mirror()
                self._seeded = True
            self._readings.append(self.generator.generate(self._clock()))
            if len(self._readings) > self.capacity:
                del self._readings[: len(self._readings) - self.capacity]
            snapshot = list(self._readings)
        self._write_mirror(snapshot)
        return snapshot

    def _read_mirror(self) -> List[Reading]:
        if self.mirror_path is None or not self.mirror_path.exists():
            return []
        try:
            payload = json.loads(self.mirror_path.read_text(encoding="utf-8") or "[]")
            return parse_records(payload, source=str(self.mirror_path))[-self.capacity :]
        except (OSError, ValueError) as exc:
            logger.error(
                "Could not read realtime mirror",
                extra={"path": str(self.mirror_path), "reason": str(exc)},
            )
            return []

    def _write_mirror(self, readings: Sequence[Reading]) -> None:
        if self.mirror_path is None:
            return
        try:
            self.mirror_path.parent.mkdir(parents=True, exist_ok=True)
            payload = [reading.to_record() for reading in readings]
            self.mirror_path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        except OSError as exc:
            logger.error(
                "Could not write realtime mirror",
                extra={"path": str(self.mirror_path), "reason": str(exc)},
            )
