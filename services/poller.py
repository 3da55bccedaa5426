"""Background thread that refreshes the reading store at a fixed interval."""

from __future__ import annotations

import logging
from threading import Event, Thread
from typing import Optional

from storage.reading_store import ReadingStore

logger = logging.getLogger(__name__)


class RefreshPoller:
    """Background thread refreshing a store at a fixed interval."""

    def __init__(self, store: ReadingStore, interval: float) -> None:
        self.store = store
        self.interval = interval
        self._stop = Event()
        self._thread: Optional[Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._thread = Thread(target=self._run, name="reading-refresh", daemon=True)
        self._thread.start()

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stop.set()
        thread = self._thread
        if thread is not None:
            thread.join(timeout=timeout)
        self._thread = None

    def _run(self) -> None:
        while not self._stop.wait(self.interval):
            try:
                self.store.refresh()
            except Exception:  # noqa: BLE001 - keep polling with the last good snapshot
                logger.exception(
                    "Scheduled refresh failed", extra={"source": self.store.source.name}
                )
