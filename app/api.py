"""HTTP route definitions for the service."""

from __future__ import annotations

from dataclasses import asdict
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from app.schemas import (
    ChartPointModel,
    DeviceCodeRequest,
    DeviceCodeResponse,
    DeviceDataResponse,
    DismissRequest,
    RefreshResponse,
    WarningModel,
    WarningReportResponse,
)
from models.parameters import PARAMETER_KEYS
from services.dashboard import DashboardService, build_default_dashboard
from services.exporter import ExportFormat
from services.window import TimeWindow

router = APIRouter()

_NO_STORE_HEADERS = {
    "Cache-Control": "no-store, must-revalidate",
    "Pragma": "no-cache",
}


def get_dashboard() -> DashboardService:
    return build_default_dashboard()


def _to_http_error(exc: Exception) -> HTTPException:
    if isinstance(exc, PermissionError):
        return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(exc))
    if isinstance(exc, LookupError):
        detail = exc.args[0] if exc.args else str(exc)
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=detail)
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))


def _parse_window(value: Optional[str]) -> TimeWindow:
    try:
        return TimeWindow.parse(value)
    except ValueError as exc:
        raise _to_http_error(exc) from exc


def _parse_metrics(values: Optional[List[str]]) -> List[str]:
    if not values:
        return list(PARAMETER_KEYS)
    metrics: List[str] = []
    for value in values:
        metrics.extend(item.strip() for item in value.split(",") if item.strip())
    return metrics


@router.get(
    "/device/readings",
    response_model=DeviceDataResponse,
    summary="Readings for a device as index-aligned per-parameter arrays.",
)
async def get_readings(
    response: Response,
    device_code: Optional[str] = Query(None, alias="deviceCode"),
    time_filter: Optional[str] = Query(None, alias="timeFilter"),
    dashboard: DashboardService = Depends(get_dashboard),
) -> DeviceDataResponse:
    window = _parse_window(time_filter)
    try:
        data = dashboard.device_data(device_code, window)
    except (ValueError, LookupError) as exc:
        raise _to_http_error(exc) from exc
    response.headers.update(_NO_STORE_HEADERS)
    return DeviceDataResponse(**asdict(data))


@router.get(
    "/device/chart",
    response_model=List[ChartPointModel],
    summary="Chart-ready points for a device, one per reading.",
)
async def get_chart(
    device_code: Optional[str] = Query(None, alias="deviceCode"),
    time_filter: Optional[str] = Query(None, alias="timeFilter"),
    dashboard: DashboardService = Depends(get_dashboard),
) -> List[ChartPointModel]:
    window = _parse_window(time_filter)
    try:
        points = dashboard.chart_points(device_code, window)
    except (ValueError, LookupError) as exc:
        raise _to_http_error(exc) from exc
    return [ChartPointModel.model_validate(point) for point in points]


@router.get(
    "/device/warnings",
    response_model=WarningReportResponse,
    summary="Active, per-window and rolling 24h threshold warnings.",
)
async def get_warnings(
    device_code: Optional[str] = Query(None, alias="deviceCode"),
    time_filter: Optional[str] = Query(None, alias="timeFilter"),
    dashboard: DashboardService = Depends(get_dashboard),
) -> WarningReportResponse:
    window = _parse_window(time_filter)
    try:
        report = dashboard.warning_report(device_code, window)
    except (ValueError, LookupError) as exc:
        raise _to_http_error(exc) from exc
    return WarningReportResponse(
        active=[WarningModel.from_warning(warning) for warning in report.active],
        history=[WarningModel.from_warning(warning) for warning in report.history],
        recent=[WarningModel.from_warning(warning) for warning in report.recent],
    )


@router.post(
    "/device/warnings/dismiss",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Hide an active warning by its key.",
)
async def dismiss_warning(
    payload: DismissRequest,
    dashboard: DashboardService = Depends(get_dashboard),
) -> Response:
    try:
        dashboard.dismiss_warning(payload.key)
    except ValueError as exc:
        raise _to_http_error(exc) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get(
    "/device/export",
    summary="Download the selected metrics as CSV or Excel.",
    response_class=Response,
)
async def export_readings(
    device_code: Optional[str] = Query(None, alias="deviceCode"),
    time_filter: Optional[str] = Query(None, alias="timeFilter"),
    fmt: ExportFormat = Query(ExportFormat.csv, alias="format"),
    metrics: Optional[List[str]] = Query(None),
    dashboard: DashboardService = Depends(get_dashboard),
) -> Response:
    window = _parse_window(time_filter)
    try:
        artifact = dashboard.export(device_code, window, _parse_metrics(metrics), fmt)
    except (ValueError, LookupError) as exc:
        raise _to_http_error(exc) from exc
    return Response(
        content=artifact.content,
        media_type=artifact.media_type,
        headers={"Content-Disposition": f'attachment; filename="{artifact.filename}"'},
    )


@router.post(
    "/device/validate",
    response_model=DeviceCodeResponse,
    summary="Check a device code before entering the dashboard.",
)
async def validate_device(
    payload: DeviceCodeRequest,
    dashboard: DashboardService = Depends(get_dashboard),
) -> DeviceCodeResponse:
    try:
        dashboard.validate_device_code(payload.device_code)
    except (ValueError, PermissionError) as exc:
        raise _to_http_error(exc) from exc
    return DeviceCodeResponse(success=True, message="Device code accepted")


@router.post(
    "/device/refresh",
    response_model=RefreshResponse,
    summary="Invalidate cached readings and reload from the source.",
)
async def refresh_readings(
    dashboard: DashboardService = Depends(get_dashboard),
) -> RefreshResponse:
    snapshot = dashboard.refresh()
    if snapshot is None:
        return RefreshResponse(reading_count=0)
    return RefreshResponse(
        reading_count=len(snapshot.readings),
        refreshed_at=snapshot.refreshed_at,
        synthetic=snapshot.synthetic,
    )


@router.get(
    "/health",
    summary="Health check endpoint.",
    status_code=status.HTTP_200_OK,
)
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@router.get(
    "/",
    summary="Root endpoint mirrors health information.",
    status_code=status.HTTP_200_OK,
)
async def root() -> dict[str, str]:
    return {"status": "ok", "detail": "See /health for service status."}
