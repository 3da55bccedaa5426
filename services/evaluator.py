"""Threshold evaluation of readings into warnings."""

from __future__ import annotations

from typing import List, Sequence

from models.parameters import DEFAULT_THRESHOLDS, ThresholdTable
from models.records import Direction, Reading, ThresholdWarning, coerce_number


class ThresholdEvaluator:
    """Compares readings against a threshold table.

    A value strictly above ``high`` is a high warning. A value strictly below
    ``low`` is a low warning, but only for parameters whose ``low`` is positive.
    At most one warning is produced per parameter of a reading.
    """

    def __init__(self, thresholds: ThresholdTable = DEFAULT_THRESHOLDS) -> None:
        self.thresholds = thresholds

    def evaluate_reading(self, reading: Reading) -> List[ThresholdWarning]:
        warnings: List[ThresholdWarning] = []
        for key, threshold in self.thresholds.items():
            value = coerce_number(reading.get(key))
            if value is None:
                continue

            if value > threshold.high:
                direction, limit = Direction.high, threshold.high
            elif threshold.low > 0 and value < threshold.low:
                direction, limit = Direction.low, threshold.low
            else:
                continue

            warnings.append(
                ThresholdWarning(
                    parameter=key,
                    direction=direction,
                    observed_value=value,
                    threshold_value=limit,
                    timestamp=reading.timestamp,
                    unit=threshold.unit,
                )
            )
        return warnings

    def evaluate_history(self, readings: Sequence[Reading]) -> List[ThresholdWarning]:
        """Warnings for every reading of the window, in reading order."""
        warnings: List[ThresholdWarning] = []
        seen = set()
        for reading in readings:
            for warning in self.evaluate_reading(reading):
                if warning.key in seen:
                    continue
                seen.add(warning.key)
                warnings.append(warning)
        return warnings

    def evaluate_latest(self, readings: Sequence[Reading]) -> List[ThresholdWarning]:
        """Warnings currently active, i.e. those of the most recent reading."""
        if not readings:
            return []
        return self.evaluate_reading(readings[-1])
