"""Air-quality parameters and the threshold table shared across the service."""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Dict, Mapping, Optional, Tuple


@dataclass(frozen=True)
class Parameter:
    """Static description of one measured parameter."""

    key: str
    name: str
    unit: str
    source_label: str
    export_label: str


@dataclass(frozen=True)
class Threshold:
    """Warning bounds for a parameter. A ``low`` of zero disables the low check."""

    low: float
    high: float
    unit: str = ""


PARAMETERS: Tuple[Parameter, ...] = (
    Parameter("temperature", "Temperature", "°C", "Temperature (°C)", "Temperature (°C)"),
    Parameter("humidity", "Humidity", "%", "Humidity (%)", "Humidity (%)"),
    Parameter("pm25", "PM2.5", "µg/m³", "PM2.5 (ug/m3)", "PM2.5 (µg/m³)"),
    Parameter("voc", "VOC", "ppm", "VOCs (ppm)", "VOC (ppm)"),
    Parameter("o3", "O3", "ppm", "O3 (ppm)", "Ozone (O₃) (ppm)"),
    Parameter("co", "CO", "ppm", "CO (ppm)", "Carbon Monoxide (CO) (ppm)"),
    Parameter("co2", "CO2", "ppm", "CO2 (ppm)", "Carbon Dioxide (CO₂) (ppm)"),
    Parameter("no2", "NO2", "ppm", "NO2 (ppm)", "Nitrogen Dioxide (NO₂) (ppm)"),
    Parameter("so2", "SO2", "ppm", "SO2 (ppm)", "Sulfur Dioxide (SO₂) (ppm)"),
)

PARAMETER_KEYS: Tuple[str, ...] = tuple(parameter.key for parameter in PARAMETERS)
PARAMETERS_BY_KEY: Mapping[str, Parameter] = MappingProxyType(
    {parameter.key: parameter for parameter in PARAMETERS}
)

ThresholdTable = Mapping[str, Threshold]

DEFAULT_THRESHOLDS: ThresholdTable = MappingProxyType(
    {
        "temperature": Threshold(low=22, high=28, unit="°C"),
        "humidity": Threshold(low=40, high=60, unit="%"),
        "pm25": Threshold(low=0, high=4, unit="µg/m³"),
        "voc": Threshold(low=0, high=0.05, unit="ppm"),
        "o3": Threshold(low=0, high=0.3, unit="ppm"),
        "co": Threshold(low=0, high=8.73, unit="ppm"),
        "co2": Threshold(low=0, high=500, unit="ppm"),
        "no2": Threshold(low=0, high=5, unit="ppm"),
        "so2": Threshold(low=0, high=5, unit="ppm"),
    }
)


_LABEL_INDEX: Dict[str, str] = {
    parameter.source_label.lower(): parameter.key for parameter in PARAMETERS
}


def resolve_parameter_key(label: str) -> Optional[str]:
    """Map a source label such as ``"CO2 (ppm)"`` or a bare key to its parameter key."""
    candidate = label.strip()
    if candidate in PARAMETERS_BY_KEY:
        return candidate
    return _LABEL_INDEX.get(candidate.lower())


def load_thresholds(path: Optional[str | Path] = None) -> ThresholdTable:
    """Return the default table, overlaid with ``{key: {low, high}}`` from ``path``."""
    if path is None:
        return DEFAULT_THRESHOLDS

    data = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError("Threshold file must contain a JSON object.")

    table: Dict[str, Threshold] = dict(DEFAULT_THRESHOLDS)
    for key, bounds in data.items():
        if key not in PARAMETERS_BY_KEY:
            raise ValueError(f"Unknown parameter in threshold file: {key!r}")
        if not isinstance(bounds, dict):
            raise ValueError(f"Threshold for {key!r} must be an object with low/high.")
        current = table[key]
        low = float(bounds.get("low", current.low))
        high = float(bounds.get("high", current.high))
        if low > high:
            raise ValueError(f"Threshold for {key!r} has low above high.")
        table[key] = Threshold(low=low, high=high, unit=current.unit)
    return MappingProxyType(table)
