"""Snapshot-based store holding the ordered readings for the dashboard."""

from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass
from datetime import datetime
from functools import lru_cache
from pathlib import Path
from threading import Lock
from typing import Optional, Tuple

from models.records import Reading
from settings import get_settings
from storage.sources import (
    Clock,
    JsonFileSource,
    ReadingSource,
    RealtimeSyntheticSource,
    SourceUnavailableError,
    SyntheticReadingGenerator,
    SyntheticSource,
    utc_now,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Snapshot:
    """Immutable view of the store contents after one refresh."""

    readings: Tuple[Reading, ...]
    ticket: int
    refreshed_at: datetime
    synthetic: bool = False


class ReadingStore:
    """Holds the latest snapshot of a ReadingSource.

    Refreshes take a ticket when they start; a finished refresh is applied only
    if no refresh started later has already been applied, so a slow reload can
    never overwrite a newer one.
    """

    def __init__(
        self,
        source: ReadingSource,
        clock: Clock = utc_now,
        synthetic_fallback: bool = True,
        fallback_generator: Optional[SyntheticReadingGenerator] = None,
    ) -> None:
        self.source = source
        self.synthetic_fallback = synthetic_fallback
        self._clock = clock
        self._fallback_generator = fallback_generator or SyntheticReadingGenerator()
        self._snapshot: Optional[Snapshot] = None
        self._tickets = itertools.count(1)
        self._lock = Lock()
        self._stale = True
        self._closed = False

    @property
    def snapshot(self) -> Optional[Snapshot]:
        with self._lock:
            return self._snapshot

    @property
    def is_open(self) -> bool:
        return self._snapshot is not None and not self._closed

    def open(self) -> Snapshot:
        self._closed = False
        self.refresh()
        snapshot = self.snapshot
        assert snapshot is not None
        return snapshot

    def close(self) -> None:
        with self._lock:
            self._closed = True

    def invalidate(self) -> bool:
        """Mark the current snapshot stale and refetch immediately."""
        with self._lock:
            self._stale = True
        return self.refresh()

    def refresh(self) -> bool:
        """Reload from the source. Returns True when a new snapshot was applied."""
        with self._lock:
            ticket = next(self._tickets)
            if self._closed:
                return False
            needs_load = self._stale or self._snapshot is None or self.source.has_changed()
            self._stale = False

        if not needs_load:
            return False

        try:
            readings = self.source.load()
        except SourceUnavailableError as exc:
            logger.warning(
                "Refresh failed; keeping previous snapshot",
                extra={"source": self.source.name, "ticket": ticket, "reason": str(exc)},
            )
            with self._lock:
                self._stale = True
                if self._snapshot is not None:
                    return False
            readings = []

        ordered = tuple(sorted(readings, key=lambda reading: reading.timestamp))
        synthetic = False
        if not ordered and self.synthetic_fallback:
            ordered = (self._fallback_generator.generate(self._clock()),)
            synthetic = True

        snapshot = Snapshot(
            readings=ordered,
            ticket=ticket,
            refreshed_at=self._clock(),
            synthetic=synthetic,
        )
        return self._apply(snapshot)

    def get_all(self) -> Tuple[Reading, ...]:
        """Return every known reading, sorted ascending by timestamp."""
        snapshot = self.snapshot
        if snapshot is None:
            self.refresh()
            snapshot = self.snapshot
        return snapshot.readings if snapshot is not None else ()

    def _apply(self, snapshot: Snapshot) -> bool:
        with self._lock:
            if self._closed:
                return False
            current = self._snapshot
            if current is not None and current.ticket > snapshot.ticket:
                logger.info(
                    "Discarding superseded refresh",
                    extra={"source": self.source.name, "ticket": snapshot.ticket},
                )
                return False
            self._snapshot = snapshot
        logger.debug(
            "Applied snapshot",
            extra={
                "source": self.source.name,
                "ticket": snapshot.ticket,
                "reading_count": len(snapshot.readings),
            },
        )
        return True


def build_source(clock: Clock = utc_now) -> ReadingSource:
    settings = get_settings()
    generator = SyntheticReadingGenerator(settings.enabled_parameters)
    if settings.readings_source == "dummy":
        return SyntheticSource(generator, clock=clock)
    if settings.readings_source == "dummy_realtime":
        mirror = Path(settings.realtime_path) if settings.realtime_path else None
        return RealtimeSyntheticSource(generator, mirror_path=mirror, clock=clock)
    return JsonFileSource(Path(settings.readings_path))


@lru_cache
def build_default_store() -> ReadingStore:
    settings = get_settings()
    return ReadingStore(
        source=build_source(),
        synthetic_fallback=settings.synthetic_fallback,
        fallback_generator=SyntheticReadingGenerator(settings.enabled_parameters),
    )
