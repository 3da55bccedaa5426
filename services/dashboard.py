"""Orchestration of the reading store, window filter, evaluator and exports."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Iterable, List, Optional, Sequence, Tuple

from datastore.warning_history import WarningHistory, build_default_history
from models.parameters import PARAMETER_KEYS, ThresholdTable, load_thresholds
from models.records import ChartPoint, DeviceData, Reading, ThresholdWarning
from services.aggregator import Aggregator
from services.evaluator import ThresholdEvaluator
from services.exporter import ExportArtifact, ExportFormat, export_points
from services.poller import RefreshPoller
from services.window import EmptyWindowPolicy, TimeWindow, filter_readings
from settings import get_settings
from storage.reading_store import ReadingStore, Snapshot, build_default_store
from storage.sources import Clock, utc_now

logger = logging.getLogger(__name__)

NO_READINGS_MESSAGE = "No readings available"


@dataclass
class WarningReport:
    """Warnings for one window: current, per-window and rolling history."""

    active: List[ThresholdWarning] = field(default_factory=list)
    history: List[ThresholdWarning] = field(default_factory=list)
    recent: List[ThresholdWarning] = field(default_factory=list)


@dataclass
class DashboardView:
    readings: Tuple[Reading, ...]
    data: DeviceData
    points: List[ChartPoint]
    report: WarningReport


class DashboardService:
    """Serves filtered readings, warnings and exports for a device."""

    def __init__(
        self,
        store: ReadingStore,
        evaluator: ThresholdEvaluator,
        aggregator: Aggregator,
        history: WarningHistory,
        window_policy: EmptyWindowPolicy = EmptyWindowPolicy.latest,
        device_codes: Iterable[str] = (),
        poll_interval: float = 5.0,
        clock: Clock = utc_now,
    ) -> None:
        self.store = store
        self.evaluator = evaluator
        self.aggregator = aggregator
        self.history = history
        self.window_policy = window_policy
        self.device_codes = frozenset(device_codes)
        self.poller = RefreshPoller(store, poll_interval)
        self._clock = clock

    @property
    def thresholds(self) -> ThresholdTable:
        return self.evaluator.thresholds

    def start(self) -> None:
        self.store.open()
        self.poller.start()

    def shutdown(self) -> None:
        self.poller.stop(timeout=1.0)
        self.store.close()

    def validate_device_code(self, device_code: Optional[str]) -> str:
        code = (device_code or "").strip()
        if not code:
            raise ValueError("Device code is required")
        if self.device_codes and code not in self.device_codes:
            logger.warning("Rejected device code", extra={"device_code": code})
            raise PermissionError("Invalid device code")
        return code

    def filtered(self, device_code: Optional[str], window: TimeWindow) -> Tuple[Reading, ...]:
        """Readings selected by ``window``. Both warnings and charts read from here."""
        code = (device_code or "").strip()
        if not code:
            raise ValueError("Device code is required")

        readings = self.store.get_all()
        if not readings:
            raise LookupError(NO_READINGS_MESSAGE)

        selected = filter_readings(readings, window, self._clock(), self.window_policy)
        logger.debug(
            "Filtered readings",
            extra={"device_code": code, "window": window.value, "reading_count": len(selected)},
        )
        return selected

    def device_data(self, device_code: Optional[str], window: TimeWindow) -> DeviceData:
        return self.aggregator.to_device_data(self.filtered(device_code, window))

    def chart_points(self, device_code: Optional[str], window: TimeWindow) -> List[ChartPoint]:
        return self.aggregator.project(self.filtered(device_code, window))

    def warning_report(self, device_code: Optional[str], window: TimeWindow) -> WarningReport:
        return self._report(self.filtered(device_code, window), device_code)

    def view(self, device_code: Optional[str], window: TimeWindow) -> DashboardView:
        """Chart data and warnings computed from one filtered subsequence."""
        readings = self.filtered(device_code, window)
        return DashboardView(
            readings=readings,
            data=self.aggregator.to_device_data(readings),
            points=self.aggregator.project(readings),
            report=self._report(readings, device_code),
        )

    def _report(self, readings: Sequence[Reading], device_code: Optional[str]) -> WarningReport:
        history = self.evaluator.evaluate_history(readings)
        active = [
            warning
            for warning in self.evaluator.evaluate_latest(readings)
            if not self.history.is_dismissed(warning.key)
        ]
        now = self._clock()
        added = self.history.record(history, now)
        if added:
            logger.info(
                "Recorded new warnings",
                extra={"device_code": device_code, "warning_count": len(added)},
            )
        return WarningReport(active=active, history=history, recent=self.history.recent(now))

    def dismiss_warning(self, key: str) -> None:
        if not key.strip():
            raise ValueError("Warning key is required")
        self.history.dismiss(key, self._clock())

    def export(
        self,
        device_code: Optional[str],
        window: TimeWindow,
        metrics: Sequence[str] = PARAMETER_KEYS,
        fmt: ExportFormat = ExportFormat.csv,
    ) -> ExportArtifact:
        points = self.chart_points(device_code, window)
        return export_points(points, metrics, fmt, generated_at=self._clock())

    def refresh(self) -> Optional[Snapshot]:
        """Invalidate the store and refetch from the source."""
        self.store.invalidate()
        return self.store.snapshot


@lru_cache
def build_default_dashboard() -> DashboardService:
    """Factory that wires the dashboard with the configured source."""
    settings = get_settings()
    thresholds = load_thresholds(settings.thresholds_path)
    return DashboardService(
        store=build_default_store(),
        evaluator=ThresholdEvaluator(thresholds),
        aggregator=Aggregator(),
        history=build_default_history(),
        window_policy=EmptyWindowPolicy(settings.empty_window_policy),
        device_codes=settings.device_codes,
        poll_interval=settings.poll_interval,
    )
