"""Pydantic schemas for the HTTP API layer."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from models.records import ThresholdWarning


class WarningDirection(str, Enum):
    """Which bound a warning breached."""

    high = "high"
    low = "low"


class DeviceDataResponse(BaseModel):
    """Index-aligned per-parameter arrays for the requested window."""

    temperature: List[float] = Field(default_factory=list)
    humidity: List[float] = Field(default_factory=list)
    pm25: List[float] = Field(default_factory=list)
    voc: List[float] = Field(default_factory=list)
    o3: List[float] = Field(default_factory=list)
    co: List[float] = Field(default_factory=list)
    co2: List[float] = Field(default_factory=list)
    no2: List[float] = Field(default_factory=list)
    so2: List[float] = Field(default_factory=list)
    timestamp: List[str] = Field(default_factory=list)


class ChartPointModel(BaseModel):
    """A display-ready point with all nine metrics."""

    model_config = ConfigDict(from_attributes=True)

    time: str
    temperature: float = 0.0
    humidity: float = 0.0
    pm25: float = 0.0
    voc: float = 0.0
    o3: float = 0.0
    co: float = 0.0
    co2: float = 0.0
    no2: float = 0.0
    so2: float = 0.0


class WarningModel(BaseModel):
    """A single threshold breach."""

    key: str = Field(..., description="Stable identity used for dismissal.")
    parameter: str
    direction: WarningDirection
    observed_value: float
    threshold_value: float
    timestamp: datetime
    unit: str = ""
    title: str
    message: str

    @classmethod
    def from_warning(cls, warning: ThresholdWarning) -> "WarningModel":
        return cls(
            key=warning.key,
            parameter=warning.parameter,
            direction=WarningDirection(warning.direction.value),
            observed_value=warning.observed_value,
            threshold_value=warning.threshold_value,
            timestamp=warning.timestamp,
            unit=warning.unit,
            title=warning.title,
            message=warning.message,
        )


class WarningReportResponse(BaseModel):
    """Active, per-window and rolling warnings for a device."""

    active: List[WarningModel] = Field(default_factory=list)
    history: List[WarningModel] = Field(default_factory=list)
    recent: List[WarningModel] = Field(default_factory=list)


class DismissRequest(BaseModel):
    key: str = Field(..., min_length=1)


class DeviceCodeRequest(BaseModel):
    device_code: str = Field(default="", alias="deviceCode")

    model_config = ConfigDict(populate_by_name=True)


class DeviceCodeResponse(BaseModel):
    success: bool
    message: Optional[str] = None


class RefreshResponse(BaseModel):
    """Summary of the snapshot after an invalidate-and-refetch."""

    reading_count: int = Field(..., ge=0)
    refreshed_at: Optional[datetime] = None
    synthetic: bool = False
