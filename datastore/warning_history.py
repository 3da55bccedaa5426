"""Rolling threshold-warning history with dismissed keys, both bounded by retention."""

from __future__ import annotations

from datetime import datetime, timedelta
from functools import lru_cache
from threading import Lock
from typing import Dict, Iterable, List

from models.records import ThresholdWarning
from settings import get_settings


class WarningHistory:
    """Rolling, deduplicated history of warnings plus dismissed warning keys."""

    def __init__(self, retention: timedelta = timedelta(hours=24)) -> None:
        self.retention = retention
        self._items: Dict[str, ThresholdWarning] = {}
        self._dismissed: Dict[str, datetime] = {}
        self._lock = Lock()

    def record(self, warnings: Iterable[ThresholdWarning], now: datetime) -> List[ThresholdWarning]:
        """Store unseen warnings and evict expired ones. Returns the newly stored ones."""
        added: List[ThresholdWarning] = []
        with self._lock:
            for warning in warnings:
                if warning.key in self._items:
                    continue
                self._items[warning.key] = warning
                added.append(warning)
            self._evict(now)
            return [warning for warning in added if warning.key in self._items]

    def recent(self, now: datetime) -> List[ThresholdWarning]:
        """Return retained warnings, newest first."""
        with self._lock:
            self._evict(now)
            items = list(self._items.values())
        return sorted(items, key=lambda warning: warning.timestamp, reverse=True)

    def dismiss(self, key: str, now: datetime) -> None:
        """Hide ``key`` from active warnings until it ages out of the retention window."""
        with self._lock:
            self._dismissed[key] = now
            self._evict(now)

    def is_dismissed(self, key: str) -> bool:
        with self._lock:
            return key in self._dismissed

    def clear(self) -> None:
        with self._lock:
            self._items.clear()
            self._dismissed.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def _evict(self, now: datetime) -> None:
        cutoff = now - self.retention
        expired = [key for key, warning in self._items.items() if warning.timestamp < cutoff]
        for key in expired:
            del self._items[key]
            self._dismissed.pop(key, None)
        stale = [key for key, dismissed_at in self._dismissed.items() if dismissed_at < cutoff]
        for key in stale:
            del self._dismissed[key]


@lru_cache
def build_default_history() -> WarningHistory:
    settings = get_settings()
    return WarningHistory(retention=timedelta(hours=settings.warning_retention_hours))
